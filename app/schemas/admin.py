"""Schemas for the admin area."""

from pydantic import BaseModel, Field

from app.schemas.auth import CurrentUser


class AdminLoginInfo(BaseModel):
    """Where to send credentials; the login form itself is rendered elsewhere."""

    login_endpoint: str
    refresh_endpoint: str


class AdminDashboardResponse(BaseModel):
    user: CurrentUser
    total_users: int = Field(..., ge=0)
