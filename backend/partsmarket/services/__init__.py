"""Services module for business logic and data operations.

Services own the rules of the catalog: the category hierarchy and its
search, product submission and moderation, and account handling.
"""

from partsmarket.services.auth_service import AuthService
from partsmarket.services.category_service import CategoryService, slugify
from partsmarket.services.category_tree import build_category_tree, normalize_parent_id
from partsmarket.services.product_service import ProductService, validate_product_payload

__all__ = [
    "AuthService",
    "CategoryService",
    "ProductService",
    "build_category_tree",
    "normalize_parent_id",
    "slugify",
    "validate_product_payload",
]
