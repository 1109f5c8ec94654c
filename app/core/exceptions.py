"""
Global exception handlers. Clients never see stack traces or store errors.
"""

import logging

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings

logger = logging.getLogger(__name__)


class LoginRequiredRedirect(Exception):
    """Raised by admin-area guards; answered with a redirect to the login page."""

    def __init__(self, clear_cookies: bool = False) -> None:
        super().__init__("Admin login required")
        self.clear_cookies = clear_cookies


def clear_auth_cookies(response: Response) -> None:
    """Expire both auth cookies (max-age 0) with the flags they were set with."""
    for key in (settings.ACCESS_COOKIE_NAME, settings.REFRESH_COOKIE_NAME):
        response.set_cookie(
            key=key,
            value="",
            max_age=0,
            path="/",
            httponly=True,
            secure=settings.cookie_secure,
            samesite="strict",
        )


async def _login_redirect_handler(_request: Request, exc: LoginRequiredRedirect) -> RedirectResponse:
    response = RedirectResponse(
        url=settings.ADMIN_LOGIN_PATH,
        status_code=status.HTTP_303_SEE_OTHER,
    )
    if exc.clear_cookies:
        clear_auth_cookies(response)
    return response


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(LoginRequiredRedirect, _login_redirect_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
