"""Products API endpoints (seller side)."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from partsmarket.dependencies import get_current_user, get_db
from partsmarket.models.user import User
from partsmarket.schemas import (
    ProductCreateRequest,
    ProductDetailResponse,
    ProductResponse,
    ProductUpdateRequest,
)
from partsmarket.services.product_service import ProductService

router = APIRouter()


@router.post("", response_model=ProductDetailResponse, status_code=201)
async def create_product(
    body: ProductCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Submit a product for moderation.

    All validation problems are reported together under ``errors``.
    """
    service = ProductService(db)
    product = await service.create_product(body.model_dump(), seller_id=current_user.id)
    return ProductDetailResponse.model_validate(product)


@router.get("", response_model=List[ProductResponse])
async def list_products(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List products with their category."""
    service = ProductService(db)
    products = await service.list_products()
    return [ProductResponse.model_validate(p) for p in products]


@router.get("/search", response_model=List[ProductResponse])
async def search_products(
    query: Optional[str] = Query(None, description="Text to look for in titles and descriptions"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Case-insensitive substring search over title and description."""
    service = ProductService(db)
    products = await service.search_products(query)
    return [ProductResponse.model_validate(p) for p in products]


@router.put("/{product_id}", response_model=ProductDetailResponse)
async def update_product(
    product_id: UUID,
    body: ProductUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update the supplied fields of a product."""
    service = ProductService(db)
    product = await service.update_product(product_id, body.model_dump(exclude_unset=True))
    return ProductDetailResponse.model_validate(product)


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a product."""
    service = ProductService(db)
    await service.delete_product(product_id)
    return Response(status_code=204)
