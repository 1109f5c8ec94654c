"""User lookups and creation against the users table."""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.security import hash_password
from app.models.user import Role, User

logger = logging.getLogger(__name__)


class EmailAlreadyRegisteredError(Exception):
    """Raised when creating a user whose email is already taken."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Email already registered: {email}")
        self.email = email


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Case-insensitive lookup by email."""
    return (
        db.query(User)
        .filter(func.lower(User.email) == normalize_email(email))
        .first()
    )


def get_user_by_id(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == str(user_id)).first()


def create_user(
    db: Session,
    email: str,
    password: str,
    name: str | None = None,
    role: Role = Role.USER,
) -> User:
    """
    Insert a user with a hashed password and return it.
    Raises EmailAlreadyRegisteredError if the normalized email exists.
    """
    email = normalize_email(email)
    if get_user_by_email(db, email) is not None:
        raise EmailAlreadyRegisteredError(email)
    user = User(
        email=email,
        name=name.strip() if name and name.strip() else None,
        password=hash_password(password),
        role=Role(role).value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent registration won the unique index.
        db.rollback()
        raise EmailAlreadyRegisteredError(email)
    db.refresh(user)
    logger.info("Created user id=%s role=%s", user.id, user.role)
    return user


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at, User.email).all()


def count_users(db: Session) -> int:
    return db.query(User).count()
