"""Unit tests for app.core.security: bcrypt hashing and the access/refresh TokenService."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt
from pydantic import ValidationError

from app.core.config import Settings
from app.core.security import (
    InsecureSecretError,
    TokenService,
    hash_password,
    verify_password,
)
from app.models.user import Role
from app.schemas.auth import CurrentUser

SECRET = "k" * 48
T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def _service(clock: FixedClock | None = None, **kwargs: object) -> TokenService:
    params: dict = {"issuer": "article-hub", "audience": "article-hub-admin"}
    params.update(kwargs)
    if clock is not None:
        params["clock"] = clock
    return TokenService(params.pop("secret", SECRET), **params)


def _identity(role: Role = Role.USER, name: str | None = "Ada") -> CurrentUser:
    return CurrentUser(id="3f1c2a9e-0000-4000-8000-000000000001", email="ada@example.com", name=name, role=role)


class TestPasswordHashing(unittest.TestCase):
    """hash_password / verify_password."""

    def test_round_trip(self) -> None:
        hashed = hash_password("longenoughpassword")
        self.assertTrue(verify_password("longenoughpassword", hashed))

    def test_wrong_password_rejected(self) -> None:
        hashed = hash_password("longenoughpassword")
        self.assertFalse(verify_password("longenoughpassworD", hashed))

    def test_hash_is_salted(self) -> None:
        self.assertNotEqual(hash_password("same-password"), hash_password("same-password"))

    def test_hash_is_not_plain_text(self) -> None:
        hashed = hash_password("longenoughpassword")
        self.assertNotIn("longenoughpassword", hashed)
        self.assertTrue(hashed.startswith("$2"))

    def test_malformed_hash_fails_closed(self) -> None:
        self.assertFalse(verify_password("anything", "not-a-bcrypt-hash"))
        self.assertFalse(verify_password("anything", ""))
        self.assertFalse(verify_password("anything", None))


class TestTokenServiceConstruction(unittest.TestCase):
    """Secrets shorter than 32 characters are refused up front."""

    def test_short_secret_raises(self) -> None:
        with self.assertRaises(InsecureSecretError):
            _service(secret="too-short")

    def test_whitespace_padding_does_not_count(self) -> None:
        with self.assertRaises(InsecureSecretError):
            _service(secret="abc" + " " * 40)

    def test_32_characters_accepted(self) -> None:
        _service(secret="s" * 32)

    def test_unsupported_algorithm_raises(self) -> None:
        with self.assertRaises(ValueError):
            _service(algorithm="none")


class TestAccessTokens(unittest.TestCase):
    """issue_access_token / verify_access_token."""

    def test_round_trip_returns_identity(self) -> None:
        service = _service()
        identity = _identity(Role.ADMIN)
        decoded = service.verify_access_token(service.issue_access_token(identity))
        self.assertEqual(decoded, identity)

    def test_round_trip_without_name(self) -> None:
        service = _service()
        identity = _identity(name=None)
        self.assertEqual(service.verify_access_token(service.issue_access_token(identity)), identity)

    def test_carries_standard_claims(self) -> None:
        clock = FixedClock(T0)
        service = _service(clock)
        token = service.issue_access_token(_identity())
        claims = jwt.decode(token, options={"verify_signature": False})
        self.assertEqual(claims["iss"], "article-hub")
        self.assertEqual(claims["aud"], "article-hub-admin")
        self.assertEqual(claims["type"], "access")
        self.assertEqual(claims["role"], "USER")
        self.assertEqual(claims["exp"] - claims["iat"], 15 * 60)
        self.assertEqual(jwt.get_unverified_header(token)["alg"], "HS256")

    def test_valid_just_before_expiry(self) -> None:
        clock = FixedClock(T0)
        service = _service(clock)
        token = service.issue_access_token(_identity())
        clock.advance(timedelta(minutes=15) - timedelta(seconds=1))
        self.assertIsNotNone(service.verify_access_token(token))

    def test_fractional_issue_time_gives_exact_lifetime(self) -> None:
        clock = FixedClock(T0 + timedelta(microseconds=900_000))
        service = _service(clock)
        token = service.issue_access_token(_identity())
        claims = jwt.decode(token, options={"verify_signature": False})
        self.assertEqual(claims["iat"], int(T0.timestamp()))
        self.assertEqual(claims["exp"] - claims["iat"], 15 * 60)
        clock.advance(timedelta(minutes=15) - timedelta(seconds=1))
        self.assertIsNotNone(service.verify_access_token(token))
        clock.advance(timedelta(seconds=1))
        self.assertIsNone(service.verify_access_token(token))

    def test_expired_after_window(self) -> None:
        clock = FixedClock(T0)
        service = _service(clock)
        token = service.issue_access_token(_identity())
        clock.advance(timedelta(minutes=15, seconds=1))
        self.assertIsNone(service.verify_access_token(token))

    def test_wrong_secret_rejected(self) -> None:
        token = _service(secret="a" * 40).issue_access_token(_identity())
        self.assertIsNone(_service(secret="b" * 40).verify_access_token(token))

    def test_wrong_issuer_rejected(self) -> None:
        token = _service(issuer="someone-else").issue_access_token(_identity())
        self.assertIsNone(_service().verify_access_token(token))

    def test_wrong_audience_rejected(self) -> None:
        token = _service(audience="another-app").issue_access_token(_identity())
        self.assertIsNone(_service().verify_access_token(token))

    def test_tampered_token_rejected(self) -> None:
        service = _service()
        token = service.issue_access_token(_identity())
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, ("A" if signature[0] != "A" else "B") + signature[1:]])
        self.assertIsNone(service.verify_access_token(tampered))

    def test_unsigned_token_rejected(self) -> None:
        claims = {
            "sub": "x",
            "email": "x@example.com",
            "role": "ADMIN",
            "type": "access",
            "iss": "article-hub",
            "aud": "article-hub-admin",
            "iat": int(datetime.now(UTC).timestamp()),
            "exp": int((datetime.now(UTC) + timedelta(minutes=5)).timestamp()),
        }
        token = jwt.encode(claims, key=None, algorithm="none")
        self.assertIsNone(_service().verify_access_token(token))

    def test_other_algorithm_rejected(self) -> None:
        service = _service()
        claims = jwt.decode(
            service.issue_access_token(_identity()), options={"verify_signature": False}
        )
        token = jwt.encode(claims, SECRET, algorithm="HS512")
        self.assertIsNone(service.verify_access_token(token))

    def test_unknown_role_rejected(self) -> None:
        service = _service()
        claims = jwt.decode(
            service.issue_access_token(_identity()), options={"verify_signature": False}
        )
        claims["role"] = "SUPERUSER"
        token = jwt.encode(claims, SECRET, algorithm="HS256")
        self.assertIsNone(service.verify_access_token(token))

    def test_garbage_rejected(self) -> None:
        self.assertIsNone(_service().verify_access_token("not.a.jwt"))
        self.assertIsNone(_service().verify_access_token(""))

    def test_refresh_token_does_not_grant_access(self) -> None:
        service = _service()
        refresh = service.issue_refresh_token("user-1")
        self.assertIsNone(service.verify_access_token(refresh))


class TestRefreshTokens(unittest.TestCase):
    """issue_refresh_token / verify_refresh_token."""

    def test_round_trip_returns_user_id(self) -> None:
        service = _service()
        self.assertEqual(service.verify_refresh_token(service.issue_refresh_token("user-1")), "user-1")

    def test_carries_only_id_and_type(self) -> None:
        token = _service().issue_refresh_token("user-1")
        claims = jwt.decode(token, options={"verify_signature": False})
        self.assertEqual(claims["sub"], "user-1")
        self.assertEqual(claims["type"], "refresh")
        self.assertNotIn("role", claims)
        self.assertNotIn("email", claims)

    def test_access_token_rejected(self) -> None:
        service = _service()
        access = service.issue_access_token(_identity())
        self.assertIsNone(service.verify_refresh_token(access))

    def test_expires_after_seven_days(self) -> None:
        clock = FixedClock(T0)
        service = _service(clock)
        token = service.issue_refresh_token("user-1")
        clock.advance(timedelta(days=7) - timedelta(seconds=1))
        self.assertEqual(service.verify_refresh_token(token), "user-1")
        clock.advance(timedelta(seconds=2))
        self.assertIsNone(service.verify_refresh_token(token))

    def test_token_pair(self) -> None:
        service = _service()
        identity = _identity()
        pair = service.issue_token_pair(identity)
        self.assertEqual(service.verify_access_token(pair.access_token), identity)
        self.assertEqual(service.verify_refresh_token(pair.refresh_token), identity.id)


class TestSettingsSecretValidation(unittest.TestCase):
    """Settings refuse to load with a weak or missing JWT configuration."""

    def test_short_secret_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(_env_file=None, JWT_SECRET="short")

    def test_algorithm_outside_allow_list_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(_env_file=None, JWT_SECRET=SECRET, JWT_ALGORITHM="none")

    def test_non_sql_database_url_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(_env_file=None, JWT_SECRET=SECRET, DATABASE_URL="mysql://localhost/db")

    def test_defaults(self) -> None:
        s = Settings(_env_file=None, JWT_SECRET=SECRET)
        self.assertEqual(s.ACCESS_TOKEN_EXPIRE_MINUTES, 15)
        self.assertEqual(s.REFRESH_TOKEN_EXPIRE_DAYS, 7)
        self.assertEqual(s.ACCESS_COOKIE_NAME, "access-token")
        self.assertEqual(s.REFRESH_COOKIE_NAME, "refresh-token")
        self.assertFalse(Settings(_env_file=None, JWT_SECRET=SECRET, APP_ENV="dev").cookie_secure)
        self.assertTrue(Settings(_env_file=None, JWT_SECRET=SECRET, APP_ENV="prod").cookie_secure)


if __name__ == "__main__":
    unittest.main()
