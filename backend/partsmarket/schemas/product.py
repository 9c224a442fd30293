"""Product Pydantic schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from pydantic import Field

from partsmarket.schemas.common import CamelModel


class CompatibilityEntry(CamelModel):
    """Vehicle a part fits."""

    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int


class ProductCreateRequest(CamelModel):
    """Product submission.

    Types are loose on purpose: ``ProductService.validate_product_payload``
    reports every problem at once as a field -> message map.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Any] = None
    category: Optional[str] = None
    category_id: Optional[str] = None
    oem_number: Optional[str] = None
    oem: Optional[str] = None
    compatibility: Optional[Any] = None
    images: Optional[Any] = None


class ProductUpdateRequest(CamelModel):
    """Partial product update; only supplied fields change."""

    title: Optional[str] = Field(default=None, min_length=5, max_length=500)
    description: Optional[str] = Field(default=None, min_length=20)
    price: Optional[Decimal] = Field(default=None, gt=0)
    category_id: Optional[UUID] = None
    oem_number: Optional[str] = Field(default=None, min_length=1, max_length=100)
    compatibility: Optional[List[CompatibilityEntry]] = Field(default=None, min_length=1)
    images: Optional[List[str]] = Field(default=None, min_length=3)


class ProductStatusUpdateRequest(CamelModel):
    status: Optional[str] = None


class CategoryBrief(CamelModel):
    """Minimal category info embedded in product responses."""

    id: UUID
    name: str


class ProductResponse(CamelModel):
    """Product as shown in seller listings and search."""

    id: UUID
    title: str
    description: str
    price: float
    images: List[str] = []
    category: Optional[CategoryBrief] = None


class ProductDetailResponse(ProductResponse):
    """Product with moderation and fitment data."""

    category_id: UUID
    oem_number: str
    compatibility: List[CompatibilityEntry] = []
    status: str
    created_at: datetime
    updated_at: datetime


class ProductStatusBrief(CamelModel):
    id: UUID
    title: str
    status: str


class ProductStatusResponse(CamelModel):
    message: str
    product: ProductStatusBrief
