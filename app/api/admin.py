"""Admin area. Every route except the login page requires an ADMIN access cookie."""

from typing import Annotated

from fastapi import APIRouter, Cookie, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import LoginRequiredRedirect
from app.schemas.admin import AdminDashboardResponse, AdminLoginInfo
from app.schemas.auth import CurrentUser
from app.services.auth import AuthService, get_auth_service, is_admin
from app.services.users import count_users


def require_admin_session(
    auth: Annotated[AuthService, Depends(get_auth_service)],
    access_cookie: Annotated[str | None, Cookie(alias=settings.ACCESS_COOKIE_NAME)] = None,
) -> CurrentUser:
    """
    Gate for the admin area: redirect to the login page unless the access cookie
    decodes to an ADMIN identity. An invalid cookie is cleared on the way out.
    """
    if not access_cookie:
        raise LoginRequiredRedirect()
    identity = auth.identify(access_cookie)
    if identity is None:
        raise LoginRequiredRedirect(clear_cookies=True)
    if not is_admin(identity):
        raise LoginRequiredRedirect()
    return identity


public_router = APIRouter()
router = APIRouter(dependencies=[Depends(require_admin_session)])


@public_router.get(settings.ADMIN_LOGIN_PATH, response_model=AdminLoginInfo)
def admin_login_page() -> AdminLoginInfo:
    """Unauthenticated landing page for redirects out of the admin area."""
    return AdminLoginInfo(
        login_endpoint=f"{settings.API_V1_PREFIX}/auth/login",
        refresh_endpoint=f"{settings.API_V1_PREFIX}/auth/refresh",
    )


@router.get(settings.ADMIN_PATH_PREFIX, response_model=AdminDashboardResponse)
@router.get(f"{settings.ADMIN_PATH_PREFIX}/", response_model=AdminDashboardResponse, include_in_schema=False)
@router.get(f"{settings.ADMIN_PATH_PREFIX}/dashboard", response_model=AdminDashboardResponse)
def admin_dashboard(
    admin: Annotated[CurrentUser, Depends(require_admin_session)],
    db: Annotated[Session, Depends(get_db)],
) -> AdminDashboardResponse:
    """Signed-in admin and headline counts."""
    return AdminDashboardResponse(user=admin, total_users=count_users(db))


@router.get(f"{settings.ADMIN_PATH_PREFIX}/{{path:path}}", include_in_schema=False)
def admin_unknown(path: str) -> None:
    """Unknown admin paths are still gated; admins get a 404."""
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
