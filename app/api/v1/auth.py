"""Login, refresh, logout, registration and auth dependencies (get_current_user, require_admin)."""

from typing import Annotated

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import clear_auth_cookies
from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MeResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UserListItem,
)
from app.services.auth import AuthService, LoginOutcome, get_auth_service, is_admin
from app.services.users import EmailAlreadyRegisteredError, create_user

router = APIRouter()
security = HTTPBearer(auto_error=False)

RATE_LIMITED_DETAIL = "Too many login attempts. Please try again in 15 minutes."


def _set_access_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.ACCESS_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> LoginResponse:
    """
    Authenticate with email and password. Sets HTTP-only access and refresh cookies.
    """
    result = auth.authenticate(db, body.email, body.password)
    if result.outcome is LoginOutcome.RATE_LIMITED:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=RATE_LIMITED_DETAIL,
            headers={"Retry-After": str(auth.limiter.retry_after_seconds)},
        )
    if result.outcome is LoginOutcome.INTERNAL_ERROR:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )
    if not result.ok or result.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    user = result.user
    _set_access_cookie(response, user.tokens.access_token)
    _set_refresh_cookie(response, user.tokens.refresh_token)
    return LoginResponse(user=CurrentUser(**user.model_dump(exclude={"tokens"})))


@router.post("/refresh", response_model=RefreshResponse)
def refresh(
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
    body: RefreshRequest | None = None,
    refresh_cookie: Annotated[str | None, Cookie(alias=settings.REFRESH_COOKIE_NAME)] = None,
) -> RefreshResponse:
    """Exchange a refresh token (body first, then cookie) for a new access token."""
    token = (body.refresh_token if body else None) or refresh_cookie
    if not token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Refresh token required",
        )
    access_token = auth.refresh(db, token)
    if access_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )
    _set_access_cookie(response, access_token)
    return RefreshResponse(access_token=access_token)


@router.post("/logout", response_model=LogoutResponse)
def logout(response: Response) -> LogoutResponse:
    """Clear both auth cookies. Tokens themselves stay valid until they expire."""
    clear_auth_cookies(response)
    return LogoutResponse()


@router.post("/register", response_model=UserListItem, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> UserListItem:
    """Create an account with role USER."""
    try:
        user = create_user(db, body.email, body.password, name=body.name)
    except EmailAlreadyRegisteredError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    return UserListItem.model_validate(user)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
    access_cookie: Annotated[str | None, Cookie(alias=settings.ACCESS_COOKIE_NAME)] = None,
) -> CurrentUser:
    """Dependency: require a valid access token (Bearer header, else cookie). Raises 401."""
    token = credentials.credentials if credentials is not None else access_cookie
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    identity = auth.identify(token)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired access token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require authenticated user with role ADMIN. Raises 403 for non-admin."""
    if not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


@router.get("/me", response_model=MeResponse)
def me(current_user: Annotated[CurrentUser, Depends(get_current_user)]) -> MeResponse:
    """Identity of the caller, read from the access token."""
    return MeResponse(user=current_user)
