"""Password hashing and JWT access/refresh token issuance and verification."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import bcrypt
import jwt
from pydantic import ValidationError

from app.core.config import ALLOWED_JWT_ALGORITHMS, JWT_SECRET_MIN_LEN, settings
from app.schemas.auth import CurrentUser, TokenPair

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# bcrypt only looks at the first 72 bytes of the input.
BCRYPT_MAX_BYTES = 72


class InsecureSecretError(ValueError):
    """Raised at construction when the signing secret is too short."""


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash. Malformed hashes never match."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenService:
    """
    Issues and verifies HS256 access and refresh tokens.

    Tokens are stateless: validity depends only on signature, issuer, audience,
    type and expiry. There is no revocation list, so a leaked refresh token stays
    valid until it expires.
    """

    def __init__(
        self,
        secret: str,
        *,
        issuer: str,
        audience: str,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret or len(secret.strip()) < JWT_SECRET_MIN_LEN:
            raise InsecureSecretError(
                f"JWT secret must be at least {JWT_SECRET_MIN_LEN} characters"
            )
        if algorithm not in ALLOWED_JWT_ALGORITHMS:
            raise ValueError(f"Unsupported JWT algorithm: {algorithm}")
        self._secret = secret
        self.issuer = issuer
        self.audience = audience
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.algorithm = algorithm
        self._clock = clock

    def _encode(self, claims: dict[str, Any], ttl: timedelta) -> str:
        # JWT times are whole seconds; truncate once so exp - iat == ttl.
        now = self._clock().replace(microsecond=0)
        payload = {
            **claims,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def issue_access_token(self, identity: CurrentUser) -> str:
        """Access token carrying id, email, name and role; expires after access_ttl."""
        return self._encode(
            {
                "sub": identity.id,
                "email": identity.email,
                "name": identity.name,
                "role": identity.role.value,
                "type": ACCESS_TOKEN_TYPE,
            },
            self.access_ttl,
        )

    def issue_refresh_token(self, user_id: str) -> str:
        """Refresh token carrying only the user id; expires after refresh_ttl."""
        return self._encode({"sub": str(user_id), "type": REFRESH_TOKEN_TYPE}, self.refresh_ttl)

    def issue_token_pair(self, identity: CurrentUser) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(identity),
            refresh_token=self.issue_refresh_token(identity.id),
        )

    def _decode(self, token: str, expected_type: str) -> dict[str, Any]:
        """
        Decode and validate a token; return its payload.
        Raises jwt.PyJWTError on any failure.

        Expiry is checked against the service clock rather than PyJWT's wall
        clock so a fixed clock can be injected.
        """
        payload = jwt.decode(
            token,
            self._secret,
            algorithms=list(ALLOWED_JWT_ALGORITHMS),
            audience=self.audience,
            issuer=self.issuer,
            options={
                "require": ["sub", "exp", "iat", "iss", "aud", "type"],
                "verify_exp": False,
                "verify_iat": False,
                "verify_nbf": False,
            },
        )
        try:
            exp = int(payload["exp"])
        except (TypeError, ValueError):
            raise jwt.DecodeError("Expiration Time claim (exp) must be an integer.")
        if exp <= self._clock().timestamp():
            raise jwt.ExpiredSignatureError("Signature has expired")
        if payload.get("type") != expected_type:
            raise jwt.InvalidTokenError(f"Expected a {expected_type} token")
        return payload

    def verify_access_token(self, token: str) -> CurrentUser | None:
        """Return the embedded identity, or None if the token is not a valid access token."""
        try:
            payload = self._decode(token, ACCESS_TOKEN_TYPE)
            return CurrentUser(
                id=payload["sub"],
                email=payload["email"],
                name=payload.get("name"),
                role=payload["role"],
            )
        except (jwt.PyJWTError, KeyError, ValidationError) as e:
            logger.debug("Access token rejected: %s", type(e).__name__)
            return None

    def verify_refresh_token(self, token: str) -> str | None:
        """Return the user id, or None if the token is not a valid refresh token."""
        try:
            payload = self._decode(token, REFRESH_TOKEN_TYPE)
        except jwt.PyJWTError as e:
            logger.debug("Refresh token rejected: %s", type(e).__name__)
            return None
        sub = payload.get("sub")
        return str(sub) if sub else None


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide token service built from settings (safe to call from dependencies)."""
    return TokenService(
        settings.JWT_SECRET.get_secret_value(),
        issuer=settings.JWT_ISSUER,
        audience=settings.JWT_AUDIENCE,
        access_ttl=settings.access_token_ttl,
        refresh_ttl=settings.refresh_token_ttl,
        algorithm=settings.JWT_ALGORITHM,
    )
