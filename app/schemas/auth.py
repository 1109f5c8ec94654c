"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.user import Role

PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128
EMAIL_MAX_LEN = 320
# bcrypt ignores input past 72 bytes, so longer passwords would collide.
PASSWORD_MAX_BYTES = 72


def check_password_bytes(password: str) -> str:
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes when UTF-8 encoded")
    return password


class LoginRequest(BaseModel):
    """Credentials for login. Password length is not checked here so old accounts can still log in."""

    email: str = Field(..., min_length=1, max_length=EMAIL_MAX_LEN, description="Email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class RegisterRequest(BaseModel):
    """New account; always created with role USER."""

    email: EmailStr = Field(..., description="Email")
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )
    name: str | None = Field(default=None, max_length=255, description="Display name")

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v: str) -> str:
        return check_password_bytes(v)


class CurrentUser(BaseModel):
    """Authenticated identity (id, email, name, role) carried in the access token."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str | None = None
    role: Role


class TokenPair(BaseModel):
    """Access + refresh token minted on successful login."""

    access_token: str
    refresh_token: str


class AuthUser(CurrentUser):
    """Identity plus the freshly issued token pair."""

    tokens: TokenPair


class LoginResponse(BaseModel):
    message: str = "Login successful"
    user: CurrentUser


class RefreshRequest(BaseModel):
    """Refresh token in the body; the refresh cookie is used when omitted."""

    refresh_token: str | None = Field(default=None, description="JWT refresh token")


class RefreshResponse(BaseModel):
    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class MeResponse(BaseModel):
    user: CurrentUser


class LogoutResponse(BaseModel):
    message: str = "Logout successful"


class UserListItem(BaseModel):
    """User entry for admin list (no password)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str | None = None
    role: Role


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[UserListItem]
