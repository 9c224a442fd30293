"""User model for sellers and admins."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from partsmarket.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

ROLE_SELLER = "seller"
ROLE_ADMIN = "admin"


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Marketplace account.

    Every self-registered account is a seller. ``is_admin`` is granted out of
    band and lets the account moderate listings and edit the category tree.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True,
        comment="User email address (unique)"
    )
    username: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True,
        comment="Display name"
    )
    hashed_password: Mapped[str] = mapped_column(
        String(128), nullable=False,
        comment="bcrypt hashed password"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
        comment="Whether user account is active"
    )
    is_admin: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
        comment="Whether user has admin privileges"
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True,
        comment="Last login timestamp"
    )

    @property
    def role(self) -> str:
        return ROLE_ADMIN if self.is_admin else ROLE_SELLER

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
