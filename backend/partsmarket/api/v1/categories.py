"""Categories API endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from partsmarket.dependencies import get_db, require_category_writer
from partsmarket.schemas import (
    CategoryCountResponse,
    CategoryCreateRequest,
    CategoryDetailResponse,
    CategoryResponse,
    CategorySearchResponse,
    CategoryTreeNode,
    CategoryUpdateRequest,
    MessageResponse,
)
from partsmarket.services.category_service import CategoryService

router = APIRouter()


@router.get("", response_model=List[CategoryTreeNode])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """Return the full category tree.

    Root categories are listed at the top level; every node carries its
    children under ``subcategories``.
    """
    service = CategoryService(db)
    return await service.list_category_tree()


@router.get("/count", response_model=CategoryCountResponse)
async def count_categories(db: AsyncSession = Depends(get_db)):
    """Return the total number of categories."""
    service = CategoryService(db)
    total = await service.count_categories()
    return CategoryCountResponse(total_categories=total)


@router.get("/search", response_model=CategorySearchResponse)
async def search_categories(
    query: Optional[str] = Query(None, description="Text to look for in names and descriptions"),
    db: AsyncSession = Depends(get_db),
):
    """Search categories and return matches with their parents as a tree.

    ``count`` is the number of categories that matched directly; parents
    added for context are not counted.
    """
    service = CategoryService(db)
    return await service.search_categories(query)


@router.get("/{category_id}", response_model=CategoryDetailResponse)
async def get_category(category_id: UUID, db: AsyncSession = Depends(get_db)):
    """Get a single category with its parent's name.

    An unknown id is a 404. An id that is not a UUID never reaches the
    lookup and is answered with a 400 validation error.
    """
    service = CategoryService(db)
    category = await service.get_category(category_id)
    return CategoryDetailResponse.model_validate(category)


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    body: CategoryCreateRequest,
    db: AsyncSession = Depends(get_db),
    _writer=Depends(require_category_writer),
):
    """Create a category, optionally under a parent category."""
    service = CategoryService(db)
    category = await service.create_category(
        name=body.name,
        description=body.description,
        parent_id=body.parent_id,
        image_url=body.image_url,
    )
    return CategoryResponse.model_validate(category)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: UUID,
    body: CategoryUpdateRequest,
    db: AsyncSession = Depends(get_db),
    _writer=Depends(require_category_writer),
):
    """Update a category. Omitted fields keep their current value.

    404 for an unknown id, 400 for an id that is not a UUID.
    """
    service = CategoryService(db)
    category = await service.update_category(
        category_id,
        name=body.name,
        description=body.description,
        parent_id=body.parent_id,
        image_url=body.image_url,
    )
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: UUID,
    db: AsyncSession = Depends(get_db),
    _writer=Depends(require_category_writer),
):
    """Delete a category that has no subcategories.

    404 for an unknown id, 400 for an id that is not a UUID.
    """
    service = CategoryService(db)
    await service.delete_category(category_id)
    return MessageResponse(message="Category deleted successfully")
