"""API v1 router -- aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from partsmarket.api.v1 import admin, auth, categories, health, products

api_v1_router = APIRouter()

api_v1_router.include_router(health.router, tags=["health"])
api_v1_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_v1_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_v1_router.include_router(products.router, prefix="/products", tags=["products"])
api_v1_router.include_router(admin.router, prefix="/admin", tags=["admin"])
