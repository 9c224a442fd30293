"""Category Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from partsmarket.schemas.common import CamelModel


class CategoryWriteRequest(CamelModel):
    """Fields accepted when creating or updating a category.

    Everything is optional at the schema level; required-field rules live in
    ``CategoryService`` so they produce the same error on every code path.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    image_url: Optional[str] = None

    @field_validator("parent_id", mode="before")
    @classmethod
    def blank_parent_is_root(cls, v):
        if v == "":
            return None
        return v


class CategoryCreateRequest(CategoryWriteRequest):
    """Request to create a category."""


class CategoryUpdateRequest(CategoryWriteRequest):
    """Request to update a category. Omitted or empty fields are kept."""


class CategoryBase(CamelModel):
    id: UUID
    name: str
    slug: str
    description: str
    parent_id: Optional[UUID] = None
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CategoryResponse(CategoryBase):
    """Flat category record, child ids included as stored."""

    subcategory_ids: List[str] = Field(default_factory=list, serialization_alias="subcategories")


class CategoryParentBrief(CamelModel):
    id: UUID
    name: str


class CategoryDetailResponse(CategoryResponse):
    """Single category with its parent's name resolved."""

    parent: Optional[CategoryParentBrief] = None


class CategoryTreeNode(CategoryBase):
    """Category with nested children for tree structure."""

    subcategories: List["CategoryTreeNode"] = Field(default_factory=list)


class CategorySearchResponse(CamelModel):
    """Search result: matches plus their direct parents, as a tree.

    ``count`` is the number of direct matches, not the number of nodes.
    """

    results: List[CategoryTreeNode]
    count: int
    query: str


class CategoryCountResponse(CamelModel):
    total_categories: int
