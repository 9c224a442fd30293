"""Pydantic schemas for the PartsMarket API.

All request/response models are defined here for easy import.
"""

from partsmarket.schemas.common import CamelModel, ErrorResponse, MessageResponse
from partsmarket.schemas.category import (
    CategoryCountResponse,
    CategoryCreateRequest,
    CategoryDetailResponse,
    CategoryParentBrief,
    CategoryResponse,
    CategorySearchResponse,
    CategoryTreeNode,
    CategoryUpdateRequest,
)
from partsmarket.schemas.product import (
    CategoryBrief,
    CompatibilityEntry,
    ProductCreateRequest,
    ProductDetailResponse,
    ProductResponse,
    ProductStatusBrief,
    ProductStatusResponse,
    ProductStatusUpdateRequest,
    ProductUpdateRequest,
)
from partsmarket.schemas.health import HealthCheckResponse
from partsmarket.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)

__all__ = [
    # Common
    "CamelModel",
    "ErrorResponse",
    "MessageResponse",
    # Category
    "CategoryCountResponse",
    "CategoryCreateRequest",
    "CategoryDetailResponse",
    "CategoryParentBrief",
    "CategoryResponse",
    "CategorySearchResponse",
    "CategoryTreeNode",
    "CategoryUpdateRequest",
    # Product
    "CategoryBrief",
    "CompatibilityEntry",
    "ProductCreateRequest",
    "ProductDetailResponse",
    "ProductResponse",
    "ProductStatusBrief",
    "ProductStatusResponse",
    "ProductStatusUpdateRequest",
    "ProductUpdateRequest",
    # Health
    "HealthCheckResponse",
    # Auth
    "AuthResponse",
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserResponse",
]
