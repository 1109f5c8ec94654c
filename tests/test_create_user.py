"""Tests for the create_user CLI."""

import contextlib
import io
import unittest

from app.core.database import SessionLocal, engine
from app.core.security import verify_password
from app.models import Base
from app.scripts.create_user import main
from app.services.users import get_user_by_email


class TestCreateUserCli(unittest.TestCase):
    def setUp(self) -> None:
        Base.metadata.create_all(engine)

    def tearDown(self) -> None:
        Base.metadata.drop_all(engine)

    def _run(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_creates_admin(self) -> None:
        code, out, _ = self._run("Admin@Example.com", "a-secure-password", "ADMIN", "--name", "Admin User")
        self.assertEqual(code, 0)
        self.assertIn("admin@example.com", out)
        db = SessionLocal()
        try:
            user = get_user_by_email(db, "admin@example.com")
            self.assertEqual(user.role, "ADMIN")
            self.assertEqual(user.name, "Admin User")
            self.assertTrue(verify_password("a-secure-password", user.password))
        finally:
            db.close()

    def test_default_role_is_user(self) -> None:
        self.assertEqual(self._run("u@example.com", "a-secure-password")[0], 0)
        db = SessionLocal()
        try:
            self.assertEqual(get_user_by_email(db, "u@example.com").role, "USER")
        finally:
            db.close()

    def test_duplicate_rejected(self) -> None:
        self._run("u@example.com", "a-secure-password")
        code, _, err = self._run("U@example.com", "a-secure-password")
        self.assertEqual(code, 1)
        self.assertIn("already exists", err)

    def test_short_password_rejected(self) -> None:
        code, _, err = self._run("u@example.com", "short")
        self.assertEqual(code, 1)
        self.assertIn("Password must be", err)

    def test_invalid_email_rejected(self) -> None:
        self.assertEqual(self._run("not-an-email", "a-secure-password")[0], 1)

    def test_email_without_dot_in_domain_rejected(self) -> None:
        self.assertEqual(self._run("user@localhost", "a-secure-password")[0], 1)

    def test_password_over_72_bytes_rejected(self) -> None:
        # 37 two-byte characters: 74 bytes, well under the character limit.
        code, _, err = self._run("u@example.com", "\u00e9" * 37)
        self.assertEqual(code, 1)
        self.assertIn("72 bytes", err)
        db = SessionLocal()
        try:
            self.assertIsNone(get_user_by_email(db, "u@example.com"))
        finally:
            db.close()


if __name__ == "__main__":
    unittest.main()
