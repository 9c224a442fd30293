"""Product model for seller-submitted parts listings."""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import JSON, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partsmarket.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from partsmarket.models.category import Category


PRODUCT_STATUSES = ("pending", "approved", "rejected")


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A part listed by a seller.

    New listings start as ``pending`` and are moved to ``approved`` or
    ``rejected`` by an admin. ``compatibility`` holds ``{make, model, year}``
    entries, ``images`` holds image URLs.
    """

    __tablename__ = "products"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    oem_number: Mapped[str] = mapped_column(String(100), nullable=False, index=True, comment="OEM part number")

    category_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("categories.id"),
        nullable=False,
        index=True
    )
    seller_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    compatibility: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        index=True,
        comment="Moderation status: pending, approved or rejected"
    )

    __table_args__ = (
        Index("idx_products_category_status", "category_id", "status"),
    )

    # Relationships
    category: Mapped["Category"] = relationship(lazy="raise")

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, title='{self.title[:50]}', status='{self.status}')>"
