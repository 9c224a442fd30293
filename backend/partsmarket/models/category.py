"""Category model for the parts catalog hierarchy."""

import uuid
from typing import Optional

from sqlalchemy import JSON, ForeignKey, Index, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partsmarket.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Category(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Product category with hierarchical support.

    The hierarchy is defined by ``parent_id`` alone (e.g. 'Brakes' >
    'Brake Pads'). ``subcategory_ids`` is a denormalized list of child ids
    kept for clients that read a single record; it is never used to build
    trees or to decide whether a category can be deleted.
    """

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="Display name")
    slug: Mapped[str] = mapped_column(String(120), index=True, nullable=False, comment="URL-friendly name")
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Hierarchical support
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("categories.id"),
        nullable=True,
        index=True,
        comment="Parent category ID, NULL for root categories"
    )
    subcategory_ids: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Denormalized child ids (cache, not authoritative)"
    )

    # NULL parent ids never collide in a unique constraint, so roots get their own index
    __table_args__ = (
        UniqueConstraint("name", "parent_id", name="uq_category_name_parent"),
        Index(
            "uq_category_root_name",
            "name",
            unique=True,
            postgresql_where=text("parent_id IS NULL"),
            sqlite_where=text("parent_id IS NULL"),
        ),
    )

    # Self-referential relationship (read-side join for the parent name)
    parent: Mapped[Optional["Category"]] = relationship(
        "Category",
        remote_side="Category.id",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, slug='{self.slug}', name='{self.name}')>"
