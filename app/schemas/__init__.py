"""Pydantic request/response schemas."""

from app.schemas.admin import AdminDashboardResponse, AdminLoginInfo
from app.schemas.auth import (
    AuthUser,
    CurrentUser,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MeResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    TokenPair,
    UserListItem,
    UsersListResponse,
)
from app.schemas.health import HealthResponse

__all__ = [
    "AdminDashboardResponse",
    "AdminLoginInfo",
    "AuthUser",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "MeResponse",
    "RefreshRequest",
    "RefreshResponse",
    "RegisterRequest",
    "TokenPair",
    "UserListItem",
    "UsersListResponse",
]
