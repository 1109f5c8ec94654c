"""ORM model for application users (auth and RBAC)."""

import enum
import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, String, func

from app.models.base import Base


class Role(str, enum.Enum):
    """Coarse authorization tag embedded in access tokens."""

    USER = "USER"
    ADMIN = "ADMIN"


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    email is stored lower-cased; password holds a bcrypt hash, never plain text.
    """

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("role IN ('USER', 'ADMIN')", name="role"),)

    id = Column(String(36), primary_key=True, default=_new_user_id)
    email = Column(String(320), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    password = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default=Role.USER.value)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
