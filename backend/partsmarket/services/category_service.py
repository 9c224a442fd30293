"""Category service: hierarchy reads, ancestor-inclusive search and lifecycle rules.

Handles category CRUD while keeping the hierarchy consistent:
slugs follow names, a name is unique among its siblings, a category with
children cannot be deleted and a category cannot be moved under itself.
"""

import re
import uuid
from typing import Any, List, Optional

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from partsmarket.core.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from partsmarket.models.base import utcnow
from partsmarket.models.category import Category
from partsmarket.models.product import Product
from partsmarket.schemas.category import CategorySearchResponse, CategoryTreeNode
from partsmarket.services.category_tree import build_category_tree

logger = structlog.get_logger(__name__)

DUPLICATE_NAME_MESSAGE = "Category with this name already exists"
HAS_SUBCATEGORIES_MESSAGE = "Cannot delete category with subcategories. Delete subcategories first."


def slugify(name: str) -> str:
    """Lowercase, hyphenate whitespace runs and drop anything outside [A-Za-z0-9_-]."""
    slug = re.sub(r"\s+", "-", name.lower())
    return re.sub(r"[^\w-]+", "", slug, flags=re.ASCII)


def like_pattern(query: str) -> str:
    """Build a LIKE pattern matching ``query`` literally anywhere in the text."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _as_uuid(value: Any) -> Optional[uuid.UUID]:
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise InvalidArgumentError("Invalid category identifier", error=str(value)) from None


class CategoryService:
    """Service for the category hierarchy.

    Every read path that returns more than one category goes through
    ``build_category_tree`` so clients always receive nested nodes.
    """

    def __init__(self, db: AsyncSession):
        """Initialize category service.

        Args:
            db: Async database session
        """
        self.db = db
        self.logger = logger.bind(service="category_service")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_all_categories(self) -> List[Category]:
        result = await self.db.execute(select(Category).order_by(Category.created_at))
        return list(result.scalars().all())

    async def list_category_tree(self) -> List[CategoryTreeNode]:
        """Return every category as a forest of root categories."""
        categories = await self.get_all_categories()
        return build_category_tree(categories)

    async def get_category(self, category_id: Any) -> Category:
        """Get a category with its parent loaded.

        Raises:
            NotFoundError: If no category has this id
        """
        category_uuid = _as_uuid(category_id)
        result = await self.db.execute(
            select(Category)
            .options(selectinload(Category.parent))
            .execution_options(populate_existing=True)
            .where(Category.id == category_uuid)
        )
        category = result.scalar_one_or_none()
        if not category:
            raise NotFoundError("Category", category_id)
        return category

    async def count_categories(self) -> int:
        result = await self.db.execute(select(func.count(Category.id)))
        return result.scalar() or 0

    async def search_categories(self, query: Optional[str]) -> CategorySearchResponse:
        """Search categories by name or description, keeping parents for context.

        Matching is a case-insensitive substring match on the query exactly as
        given, surrounding whitespace included. Each match's direct parent is
        added to the result even if it does not match itself, so the result
        can be rendered as a tree. Grandparents are not added.

        Args:
            query: Search text

        Returns:
            CategorySearchResponse whose ``count`` is the number of direct matches

        Raises:
            InvalidArgumentError: If the query is empty
        """
        if not query:
            raise InvalidArgumentError("Search query is required")

        self.logger.info("searching_categories", query=query)

        pattern = like_pattern(query)
        result = await self.db.execute(
            select(Category)
            .where(or_(
                Category.name.ilike(pattern, escape="\\"),
                Category.description.ilike(pattern, escape="\\"),
            ))
            .order_by(Category.created_at)
        )
        matches = list(result.scalars().all())

        match_ids = {category.id for category in matches}
        parent_ids = {category.parent_id for category in matches if category.parent_id} - match_ids

        parents: List[Category] = []
        if parent_ids:
            result = await self.db.execute(
                select(Category)
                .where(Category.id.in_(parent_ids))
                .order_by(Category.created_at)
            )
            parents = list(result.scalars().all())

        tree = build_category_tree([*matches, *parents])

        self.logger.info(
            "category_search_completed",
            query=query,
            matches=len(matches),
            parents_added=len(parents),
        )

        return CategorySearchResponse(results=tree, count=len(matches), query=query)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_category(
        self,
        name: Optional[str],
        description: Optional[str],
        parent_id: Any = None,
        image_url: Optional[str] = None,
    ) -> Category:
        """Create a category, optionally under a parent.

        Raises:
            InvalidArgumentError: Missing name/description or unknown parent
            ConflictError: A sibling with the same name exists
        """
        name = (name or "").strip()
        description = (description or "").strip()
        if not name or not description:
            raise InvalidArgumentError("Name and description are required")

        parent_uuid = _as_uuid(parent_id)
        parent = None
        if parent_uuid:
            parent = await self.db.get(Category, parent_uuid)
            if not parent:
                raise InvalidArgumentError("Parent category not found", error=str(parent_uuid))

        await self._ensure_unique_name(name, parent_uuid)

        self.logger.info("creating_category", name=name, parent_id=str(parent_uuid) if parent_uuid else None)

        category = Category(
            id=uuid.uuid4(),
            name=name,
            slug=slugify(name),
            description=description,
            parent_id=parent_uuid,
            image_url=image_url,
            subcategory_ids=[],
        )
        self.db.add(category)

        if parent:
            self._link_child(parent, category.id)

        await self._commit(DUPLICATE_NAME_MESSAGE)

        self.logger.info("category_created", category_id=str(category.id), slug=category.slug)
        return category

    async def update_category(
        self,
        category_id: Any,
        name: Optional[str] = None,
        description: Optional[str] = None,
        parent_id: Any = None,
        image_url: Optional[str] = None,
    ) -> Category:
        """Update the supplied fields of a category.

        Empty values leave the stored value unchanged, so a field cannot be
        cleared through this method. ``updated_at`` is always refreshed.

        Raises:
            NotFoundError: If the category does not exist
            InvalidArgumentError: Unknown parent, or the move would create a cycle
            ConflictError: A sibling already uses the new name
        """
        category = await self._get_or_404(category_id)

        new_name = (name or "").strip() or category.name
        new_parent_id = _as_uuid(parent_id) or category.parent_id
        moving = new_parent_id != category.parent_id

        if moving:
            await self._ensure_valid_parent(category, new_parent_id)
        if moving or new_name != category.name:
            await self._ensure_unique_name(new_name, new_parent_id, exclude_id=category.id)

        if name and name.strip():
            category.name = new_name
            category.slug = slugify(new_name)
        if description and description.strip():
            category.description = description.strip()
        if image_url:
            category.image_url = image_url

        if moving:
            old_parent = await self.db.get(Category, category.parent_id) if category.parent_id else None
            new_parent = await self.db.get(Category, new_parent_id)
            if old_parent:
                self._unlink_child(old_parent, category.id)
            self._link_child(new_parent, category.id)
            category.parent_id = new_parent_id
            self.logger.info(
                "category_moved",
                category_id=str(category.id),
                old_parent_id=str(old_parent.id) if old_parent else None,
                new_parent_id=str(new_parent_id),
            )

        category.updated_at = utcnow()
        await self._commit(DUPLICATE_NAME_MESSAGE)

        self.logger.info("category_updated", category_id=str(category.id))
        return category

    async def delete_category(self, category_id: Any) -> None:
        """Delete a category that has no children and no products.

        Children are found through their ``parent_id``; the denormalized
        child list is not consulted. Nothing is deleted in cascade.

        Raises:
            NotFoundError: If the category does not exist
            ConflictError: If subcategories or products still reference it
        """
        category = await self._get_or_404(category_id)

        child = await self.db.execute(
            select(Category.id).where(Category.parent_id == category.id).limit(1)
        )
        if child.first() is not None:
            self.logger.info("category_delete_blocked", category_id=str(category.id), reason="subcategories")
            raise ConflictError(HAS_SUBCATEGORIES_MESSAGE)

        product = await self.db.execute(
            select(Product.id).where(Product.category_id == category.id).limit(1)
        )
        if product.first() is not None:
            self.logger.info("category_delete_blocked", category_id=str(category.id), reason="products")
            raise ConflictError("Cannot delete category with products. Move or delete its products first.")

        if category.parent_id:
            parent = await self.db.get(Category, category.parent_id)
            if parent:
                self._unlink_child(parent, category.id)

        await self.db.delete(category)
        await self._commit("Category is still referenced")

        self.logger.info("category_deleted", category_id=str(category.id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_or_404(self, category_id: Any) -> Category:
        category = await self.db.get(Category, _as_uuid(category_id))
        if not category:
            raise NotFoundError("Category", category_id)
        return category

    async def _ensure_unique_name(
        self,
        name: str,
        parent_id: Optional[uuid.UUID],
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        stmt = select(Category.id).where(Category.name == name)
        if parent_id is None:
            stmt = stmt.where(Category.parent_id.is_(None))
        else:
            stmt = stmt.where(Category.parent_id == parent_id)
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)

        existing = await self.db.execute(stmt.limit(1))
        if existing.first() is not None:
            self.logger.info("duplicate_category_rejected", name=name, parent_id=str(parent_id) if parent_id else None)
            raise ConflictError(DUPLICATE_NAME_MESSAGE)

    async def _ensure_valid_parent(self, category: Category, parent_id: uuid.UUID) -> None:
        """Reject unknown parents and moves that would put a category under itself.

        Walks up from the proposed parent; meeting ``category`` on the way
        means the move would create a cycle.
        """
        if parent_id == category.id:
            raise InvalidArgumentError("A category cannot be its own parent")

        rows = await self.db.execute(select(Category.id, Category.parent_id))
        parent_of = {row.id: row.parent_id for row in rows}

        if parent_id not in parent_of:
            raise InvalidArgumentError("Parent category not found", error=str(parent_id))

        visited = set()
        current: Optional[uuid.UUID] = parent_id
        while current is not None and current not in visited:
            if current == category.id:
                raise InvalidArgumentError("A category cannot be moved under one of its own subcategories")
            visited.add(current)
            current = parent_of.get(current)

    @staticmethod
    def _link_child(parent: Category, child_id: uuid.UUID) -> None:
        child_key = str(child_id)
        current = list(parent.subcategory_ids or [])
        if child_key not in current:
            parent.subcategory_ids = [*current, child_key]

    @staticmethod
    def _unlink_child(parent: Category, child_id: uuid.UUID) -> None:
        child_key = str(child_id)
        parent.subcategory_ids = [cid for cid in (parent.subcategory_ids or []) if cid != child_key]

    async def _commit(self, conflict_message: str) -> None:
        """Commit, reporting unique/foreign-key violations as conflicts."""
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            self.logger.warning("category_integrity_error", error=str(e.orig))
            raise ConflictError(conflict_message) from e
