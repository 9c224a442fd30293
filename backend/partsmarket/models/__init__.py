"""SQLAlchemy models for PartsMarket.

All models are imported here so ``Base.metadata`` knows every table.
"""

from partsmarket.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from partsmarket.models.category import Category
from partsmarket.models.product import PRODUCT_STATUSES, Product
from partsmarket.models.user import ROLE_ADMIN, ROLE_SELLER, User

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Category",
    "Product",
    "PRODUCT_STATUSES",
    "ROLE_ADMIN",
    "ROLE_SELLER",
    "User",
]
