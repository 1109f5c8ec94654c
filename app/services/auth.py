"""Login, token refresh and caller identification built on tokens, users and the rate limiter."""

import enum
import logging
from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import TokenService, get_token_service, hash_password, verify_password
from app.models.user import Role, User
from app.schemas.auth import AuthUser, CurrentUser
from app.services.rate_limit import LoginRateLimiter
from app.services.users import get_user_by_email, get_user_by_id, normalize_email

logger = logging.getLogger(__name__)


@lru_cache
def _dummy_hash() -> str:
    """Hash checked against when the email is unknown."""
    return hash_password("article-hub-no-such-user")


class LoginOutcome(str, enum.Enum):
    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    RATE_LIMITED = "rate_limited"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class LoginResult:
    """Outcome of authenticate(); user is set only on SUCCESS."""

    outcome: LoginOutcome
    user: AuthUser | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is LoginOutcome.SUCCESS


def _identity(user: User) -> CurrentUser:
    return CurrentUser(id=user.id, email=user.email, name=user.name, role=user.role)


def is_admin(identity: CurrentUser | None) -> bool:
    """The only authorization rule: role must be ADMIN."""
    return identity is not None and identity.role is Role.ADMIN


class AuthService:
    """
    Composes the rate limiter, user lookups, password hashing and the token
    service into login, refresh and identify operations.
    """

    def __init__(self, tokens: TokenService, limiter: LoginRateLimiter) -> None:
        self.tokens = tokens
        self.limiter = limiter

    def authenticate(self, db: Session, email: str, password: str) -> LoginResult:
        """
        Check the rate limiter, then the credentials; mint a token pair on success.

        Unknown email and wrong password both yield INVALID_CREDENTIALS.
        A locked-out identifier yields RATE_LIMITED even with the right password.
        """
        identifier = normalize_email(email)
        if self.limiter.is_rate_limited(identifier):
            return LoginResult(LoginOutcome.RATE_LIMITED)

        try:
            user = get_user_by_email(db, identifier)
        except SQLAlchemyError:
            logger.exception("User lookup failed during login")
            return LoginResult(LoginOutcome.INTERNAL_ERROR)

        if user is None:
            # Same bcrypt cost as a real account so unknown emails are not faster.
            verify_password(password, _dummy_hash())
            logger.info("Failed login attempt (attempts=%s)", self.limiter.attempts(identifier))
            return LoginResult(LoginOutcome.INVALID_CREDENTIALS)
        if not verify_password(password, user.password):
            logger.info("Failed login attempt (attempts=%s)", self.limiter.attempts(identifier))
            return LoginResult(LoginOutcome.INVALID_CREDENTIALS)

        identity = _identity(user)
        tokens = self.tokens.issue_token_pair(identity)
        self.limiter.reset(identifier)
        logger.info("User id=%s logged in", user.id)
        return LoginResult(
            LoginOutcome.SUCCESS,
            AuthUser(**identity.model_dump(), tokens=tokens),
        )

    def refresh(self, db: Session, refresh_token: str) -> str | None:
        """
        Exchange a refresh token for a new access token.

        The user is reloaded so role and name changes since issuance apply.
        Returns None if the token is invalid or the user no longer exists.
        """
        user_id = self.tokens.verify_refresh_token(refresh_token)
        if user_id is None:
            return None
        user = get_user_by_id(db, user_id)
        if user is None:
            logger.info("Refresh token presented for missing user id=%s", user_id)
            return None
        return self.tokens.issue_access_token(_identity(user))

    def identify(self, access_token: str) -> CurrentUser | None:
        """Identity from the access token alone; no database access."""
        return self.tokens.verify_access_token(access_token)


def build_auth_service(tokens: TokenService | None = None) -> AuthService:
    """New AuthService with a fresh in-memory rate limiter configured from settings."""
    return AuthService(
        tokens or get_token_service(),
        LoginRateLimiter(
            max_attempts=settings.LOGIN_MAX_ATTEMPTS,
            window=settings.login_window,
        ),
    )


@lru_cache
def get_auth_service() -> AuthService:
    """Process-wide AuthService (FastAPI dependency)."""
    return build_auth_service()
