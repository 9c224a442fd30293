"""Product service for seller listings and admin moderation.

Handles submission validation, listing/search, partial updates and the
pending -> approved/rejected workflow.
"""

import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from partsmarket.config import settings
from partsmarket.core.exceptions import InvalidArgumentError, NotFoundError
from partsmarket.models.category import Category
from partsmarket.models.product import PRODUCT_STATUSES, Product
from partsmarket.services.category_service import like_pattern

logger = structlog.get_logger(__name__)

INVALID_STATUS_MESSAGE = "Status must be 'pending', 'approved', or 'rejected'"


def _parse_price(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite():
        return None
    return price


def _parse_year(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def validate_product_payload(payload: Mapping[str, Any]) -> Dict[str, str]:
    """Check a product submission and collect every problem found.

    Args:
        payload: Submitted fields, snake_case keys (``oem`` and
            ``category_id`` are accepted as alternatives to ``oem_number``
            and ``category``)

    Returns:
        Mapping of field name to error message; empty when the payload is valid
    """
    errors: Dict[str, str] = {}

    title = payload.get("title")
    if not isinstance(title, str) or len(title.strip()) < settings.PRODUCT_MIN_TITLE_LENGTH:
        errors["title"] = (
            f"Title is required and must be at least {settings.PRODUCT_MIN_TITLE_LENGTH} characters"
        )

    description = payload.get("description")
    if not isinstance(description, str) or len(description.strip()) < settings.PRODUCT_MIN_DESCRIPTION_LENGTH:
        errors["description"] = (
            f"Description is required and must be at least {settings.PRODUCT_MIN_DESCRIPTION_LENGTH} characters"
        )

    price = _parse_price(payload.get("price"))
    if price is None or price <= 0:
        errors["price"] = "Price is required and must be greater than zero"

    if not (payload.get("category") or payload.get("category_id")):
        errors["category"] = "Category is required"

    if not (payload.get("oem_number") or payload.get("oem")):
        errors["oem"] = "OEM number is required"

    images = payload.get("images")
    if not isinstance(images, list) or len(images) < settings.PRODUCT_MIN_IMAGES:
        errors["images"] = f"At least {settings.PRODUCT_MIN_IMAGES} images are required"

    compatibility = payload.get("compatibility")
    if not isinstance(compatibility, list) or not compatibility:
        errors["compatibility"] = "At least one vehicle compatibility entry is required"
    elif any(
        not isinstance(item, Mapping) or not item.get("make") or not item.get("model") or not item.get("year")
        for item in compatibility
    ):
        errors["compatibility"] = "All vehicle compatibility fields are required"
    elif any(_parse_year(item.get("year")) is None for item in compatibility):
        errors["compatibility"] = "Vehicle compatibility year must be a number"

    return errors


class ProductService:
    """Service for managing seller products.

    Sellers submit products which start as ``pending``; admins move them to
    ``approved`` or ``rejected``. The seller reference is stored but never
    part of any response schema.
    """

    def __init__(self, db: AsyncSession):
        """Initialize product service.

        Args:
            db: Async database session
        """
        self.db = db
        self.logger = logger.bind(service="product_service")

    async def create_product(self, payload: Mapping[str, Any], seller_id: uuid.UUID) -> Product:
        """Validate and store a new product as ``pending``.

        Nothing is written when validation fails.

        Raises:
            InvalidArgumentError: With ``errors`` holding one message per bad field
        """
        errors = validate_product_payload(payload)

        category = None
        if "category" not in errors:
            category = await self._find_category(payload.get("category") or payload.get("category_id"))
            if category is None:
                errors["category"] = "Category not found"

        if errors:
            self.logger.info("product_validation_failed", fields=sorted(errors))
            raise InvalidArgumentError("Validation failed", errors=errors)

        product = Product(
            id=uuid.uuid4(),
            title=payload["title"].strip(),
            description=payload["description"].strip(),
            price=_parse_price(payload["price"]),
            category_id=category.id,
            oem_number=str(payload.get("oem_number") or payload.get("oem")).strip(),
            compatibility=[
                {
                    "make": str(item["make"]).strip(),
                    "model": str(item["model"]).strip(),
                    "year": _parse_year(item["year"]),
                }
                for item in payload["compatibility"]
            ],
            images=[str(image) for image in payload["images"]],
            seller_id=seller_id,
            status="pending",
        )
        self.db.add(product)
        await self.db.commit()

        self.logger.info(
            "product_created",
            product_id=str(product.id),
            seller_id=str(seller_id),
            category_id=str(category.id),
        )
        return await self.get_product_by_id(product.id)

    async def get_product_by_id(self, product_id: uuid.UUID) -> Product:
        """Get product by ID with its category loaded.

        Raises:
            NotFoundError: If the product does not exist
        """
        result = await self.db.execute(
            select(Product)
            .options(selectinload(Product.category))
            .execution_options(populate_existing=True)
            .where(Product.id == product_id)
        )
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    async def list_products(self) -> List[Product]:
        """All products, newest first, with categories loaded."""
        result = await self.db.execute(
            select(Product)
            .options(selectinload(Product.category))
            .execution_options(populate_existing=True)
            .order_by(Product.created_at.desc())
        )
        return list(result.scalars().all())

    async def search_products(self, query: Optional[str]) -> List[Product]:
        """Case-insensitive substring search over title and description.

        The query is matched as given; only a missing or empty query is rejected.

        Raises:
            InvalidArgumentError: If the query is empty
        """
        if not query:
            raise InvalidArgumentError("Search query is required")

        pattern = like_pattern(query)
        result = await self.db.execute(
            select(Product)
            .options(selectinload(Product.category))
            .execution_options(populate_existing=True)
            .where(or_(
                Product.title.ilike(pattern, escape="\\"),
                Product.description.ilike(pattern, escape="\\"),
            ))
            .order_by(Product.created_at.desc())
        )
        products = list(result.scalars().all())

        self.logger.info("product_search_completed", query=query, results=len(products))
        return products

    async def update_product(self, product_id: uuid.UUID, changes: Mapping[str, Any]) -> Product:
        """Apply a partial update. Status changes go through ``update_product_status``.

        Raises:
            NotFoundError: If the product does not exist
            InvalidArgumentError: If the new category does not exist
        """
        product = await self.get_product_by_id(product_id)

        if changes.get("category_id") is not None:
            if await self._find_category(changes["category_id"]) is None:
                raise InvalidArgumentError("Validation failed", errors={"category": "Category not found"})

        for field in ("title", "description", "price", "category_id", "oem_number", "images"):
            if changes.get(field) is not None:
                setattr(product, field, changes[field])

        if changes.get("compatibility") is not None:
            product.compatibility = [
                {"make": item["make"], "model": item["model"], "year": item["year"]}
                for item in changes["compatibility"]
            ]

        await self.db.commit()
        self.logger.info("product_updated", product_id=str(product_id), fields=sorted(changes))

        return await self.get_product_by_id(product_id)

    async def delete_product(self, product_id: uuid.UUID) -> None:
        """Delete a product.

        Raises:
            NotFoundError: If the product does not exist
        """
        product = await self.db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product", product_id)

        await self.db.delete(product)
        await self.db.commit()
        self.logger.info("product_deleted", product_id=str(product_id))

    async def update_product_status(self, product_id: uuid.UUID, status: Optional[str]) -> Product:
        """Move a product to ``pending``, ``approved`` or ``rejected``.

        Raises:
            InvalidArgumentError: If ``status`` is not one of the three values
            NotFoundError: If the product does not exist
        """
        if status not in PRODUCT_STATUSES:
            raise InvalidArgumentError("Invalid status value", error=INVALID_STATUS_MESSAGE)

        product = await self.db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product", product_id)

        previous = product.status
        product.status = status
        await self.db.commit()

        self.logger.info(
            "product_status_changed",
            product_id=str(product_id),
            old_status=previous,
            new_status=status,
        )
        return product

    async def _find_category(self, category_id: Any) -> Optional[Category]:
        if isinstance(category_id, uuid.UUID):
            category_uuid = category_id
        else:
            try:
                category_uuid = uuid.UUID(str(category_id))
            except ValueError:
                return None
        return await self.db.get(Category, category_uuid)
