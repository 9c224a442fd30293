"""Admin moderation endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from partsmarket.dependencies import get_current_admin, get_db
from partsmarket.models.user import User
from partsmarket.schemas import (
    ProductDetailResponse,
    ProductStatusBrief,
    ProductStatusResponse,
    ProductStatusUpdateRequest,
)
from partsmarket.services.product_service import ProductService

router = APIRouter()


@router.get("/products", response_model=List[ProductDetailResponse])
async def admin_list_products(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """List every product with status, OEM number and compatibility."""
    service = ProductService(db)
    products = await service.list_products()
    return [ProductDetailResponse.model_validate(p) for p in products]


@router.patch("/products/{product_id}/status", response_model=ProductStatusResponse)
async def update_product_status(
    product_id: UUID,
    body: ProductStatusUpdateRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Approve, reject or reset a product to pending."""
    service = ProductService(db)
    product = await service.update_product_status(product_id, body.status)
    return ProductStatusResponse(
        message="Product status updated successfully",
        product=ProductStatusBrief.model_validate(product),
    )
