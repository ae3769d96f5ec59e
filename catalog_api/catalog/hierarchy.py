"""Category hierarchy engine.

Maintains the category forest stored as rows with a ``parent_id``
reference. Children are found by index lookup on ``parent_id``, ancestors
by walking parent ids upward. No recursive SQL is used: descendant sets
are expanded level by level with one ``parent_id IN (...)`` query per
level.

Writes keep every root-to-leaf path within ``settings.max_category_depth``
levels. Every walk keeps a visited set and the same cutoff, so hitting
either can only mean the stored data contains a cycle; the operation then
fails closed instead of looping.

Tree operations return category IDs in their defined order. Callers load
the rows in whatever shape they need through the fetch planner.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.catalog.models import Category
from catalog_api.catalog.repository import CategoryRepository
from catalog_api.domain.exceptions import (
    CatalogValidationError,
    DuplicateEntityError,
    EntityNotFoundError,
    OperationNotAllowedError,
)
from catalog_api.domain.paging import PageRequest
from catalog_api.domain.slug import generate_slug
from catalog_api.infrastructure.config import settings

logger = structlog.get_logger()


@dataclass
class CategoryData:
    """Writable category fields."""

    name: str
    description: str | None = None
    slug: str | None = None
    image_url: str | None = None
    sort_order: int = 0
    active: bool = True


@dataclass(frozen=True)
class CategoryStatistics:
    total_active: int
    total_root: int
    total_with_products: int
    total_without_products: int


class HierarchyCorruptedError(OperationNotAllowedError):
    """Raised when a parent walk revisits a node or exceeds the depth cutoff."""

    def __init__(self, category_id: int) -> None:
        super().__init__(
            "Category hierarchy is corrupted",
            details={"category_id": category_id},
        )


class CategoryHierarchy:
    """Operations on the category forest.

    Invariants maintained:
        - no category is its own ancestor;
        - roots are exactly the categories without a parent;
        - names are unique case-insensitively, slugs exactly.

    Example usage:
        async with session_factory() as session, session.begin():
            hierarchy = CategoryHierarchy(session)
            electronics = await hierarchy.create(CategoryData(name="Electronics"))
            phones = await hierarchy.create(
                CategoryData(name="Phones"), parent_id=electronics.id
            )
            await hierarchy.path(phones.id)  # [electronics.id, phones.id]
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize hierarchy with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session
        self.repository = CategoryRepository(session)
        self.max_depth = settings.max_category_depth

    # ========================================================================
    # Mutations
    # ========================================================================

    async def create(self, data: CategoryData, parent_id: int | None = None) -> Category:
        """Create a category, optionally under a parent.

        Args:
            data: Category fields. An empty slug is derived from the name.
            parent_id: Parent category ID, None for a root.

        Returns:
            The persisted category.

        Raises:
            EntityNotFoundError: If the parent does not exist.
            DuplicateEntityError: If the name or slug is taken.
            OperationNotAllowedError: If the parent is already at the
                maximum depth.
        """
        if parent_id is not None:
            await self._check_depth(parent_id, height=1)

        slug = self._resolve_slug(data)
        await self._check_unique(data.name, slug)

        category = Category(
            name=data.name,
            slug=slug,
            description=data.description,
            image_url=data.image_url,
            sort_order=data.sort_order,
            active=data.active,
            parent_id=parent_id,
        )
        await self.repository.save(category)
        logger.info(
            "Category created",
            category_id=category.id,
            slug=category.slug,
            parent_id=parent_id,
        )
        return category

    async def update(self, category_id: int, data: CategoryData) -> Category:
        """Replace the descriptive fields of a category.

        The parent is not touched; use ``move`` to re-parent.
        """
        category = await self.repository.require(category_id)
        slug = self._resolve_slug(data)
        await self._check_unique(data.name, slug, exclude_id=category_id)

        category.name = data.name
        category.slug = slug
        category.description = data.description
        category.image_url = data.image_url
        category.sort_order = data.sort_order
        await self.repository.flush(category)
        return category

    async def move(self, category_id: int, new_parent_id: int | None) -> Category:
        """Re-parent a category.

        Only the moved row changes; its subtree follows implicitly.

        Args:
            category_id: Category to move.
            new_parent_id: New parent ID, None to make it a root.

        Raises:
            EntityNotFoundError: If either category does not exist.
            OperationNotAllowedError: If the new parent is the category
                itself or one of its descendants, or if the moved subtree
                would end up deeper than the maximum depth.
        """
        category = await self.repository.require(category_id)

        if new_parent_id is not None:
            ancestors = await self.path(new_parent_id)
            if category_id in ancestors:
                raise OperationNotAllowedError(
                    "Cannot move category to its own descendant",
                    details={
                        "category_id": category_id,
                        "new_parent_id": new_parent_id,
                    },
                )
            height = await self._subtree_height(category_id)
            self._require_within_depth(len(ancestors) + height, category_id)

        category.parent_id = new_parent_id
        await self.repository.flush()
        logger.info(
            "Category moved",
            category_id=category_id,
            new_parent_id=new_parent_id,
        )
        return category

    async def delete(self, category_id: int) -> bool:
        """Soft-delete a category.

        Raises:
            OperationNotAllowedError: If the category has active children.
        """
        category = await self.repository.require(category_id)
        if await self.repository.has_active_children(category_id):
            raise OperationNotAllowedError(
                "Cannot delete category with active child categories",
                details={"category_id": category_id},
            )
        category.deactivate()
        await self.repository.flush()
        logger.info("Category deleted", category_id=category_id)
        return True

    async def activate(self, category_id: int) -> Category:
        category = await self.repository.require(category_id)
        category.activate()
        await self.repository.flush()
        return category

    async def deactivate(self, category_id: int) -> Category:
        category = await self.repository.require(category_id)
        category.deactivate()
        await self.repository.flush()
        return category

    async def update_sort_order(self, category_id: int, sort_order: int) -> Category:
        category = await self.repository.require(category_id)
        category.sort_order = sort_order
        await self.repository.flush()
        return category

    # ========================================================================
    # Tree Queries
    # ========================================================================

    async def descendants(self, category_id: int, depth: int | None = None) -> list[int]:
        """Collect the active descendants of a category.

        Expands one level per query. Inactive categories are traversed but
        not returned.

        Args:
            category_id: Category whose subtree is listed.
            depth: Number of levels below the category, defaults to
                ``settings.default_descendant_depth`` (children and
                grandchildren).

        Returns:
            Descendant IDs ordered by (sort_order, name, id).

        Raises:
            CatalogValidationError: If depth is outside
                ``1..settings.max_descendant_depth``.
            EntityNotFoundError: If the category does not exist.
        """
        if depth is None:
            depth = settings.default_descendant_depth
        if not 1 <= depth <= settings.max_descendant_depth:
            raise CatalogValidationError(
                f"Depth must be between 1 and {settings.max_descendant_depth}",
                field="depth",
            )
        if not await self.repository.exists_by_id(category_id):
            raise EntityNotFoundError("Category", category_id)

        seen = {category_id}
        frontier = [category_id]
        collected = []
        for _ in range(depth):
            rows = await self.repository.find_child_links(frontier)
            frontier = []
            for row in rows:
                if row.id in seen:
                    raise HierarchyCorruptedError(row.id)
                seen.add(row.id)
                frontier.append(row.id)
                if row.active:
                    collected.append(row)
            if not frontier:
                break

        collected.sort(key=lambda row: (row.sort_order, row.name, row.id))
        return [row.id for row in collected]

    async def path(self, category_id: int) -> list[int]:
        """List the ancestors of a category, root first.

        Returns:
            IDs ordered root, ..., category.

        Raises:
            EntityNotFoundError: If the category does not exist.
            OperationNotAllowedError: If the parent chain is cyclic.
        """
        found, parent_id = await self.repository.get_parent_id(category_id)
        if not found:
            raise EntityNotFoundError("Category", category_id)

        chain = [category_id]
        visited = {category_id}
        while parent_id is not None:
            if parent_id in visited or len(chain) >= self.max_depth:
                raise HierarchyCorruptedError(category_id)
            visited.add(parent_id)
            chain.append(parent_id)
            found, parent_id = await self.repository.get_parent_id(parent_id)
            if not found:
                raise HierarchyCorruptedError(category_id)

        chain.reverse()
        return chain

    async def roots(self, page: PageRequest) -> list[int]:
        """List active root categories in sibling order."""
        return await self.repository.find_active_ids(
            Category.parent_id.is_(None),
            offset=page.offset,
            limit=page.limit,
        )

    async def children_of(self, parent_id: int, page: PageRequest) -> list[int]:
        """List the active direct children of a category in sibling order.

        Raises:
            EntityNotFoundError: If the parent does not exist.
        """
        if not await self.repository.exists_by_id(parent_id):
            raise EntityNotFoundError("Category", parent_id)
        return await self.repository.find_active_ids(
            Category.parent_id == parent_id,
            offset=page.offset,
            limit=page.limit,
        )

    # ========================================================================
    # Lookups
    # ========================================================================

    async def get(self, category_id: int) -> Category:
        return await self.repository.require(category_id)

    async def find_by_slug(self, slug: str) -> Category | None:
        return await self.repository.find_by_slug(slug)

    async def find_by_name(self, name: str) -> Category | None:
        return await self.repository.find_by_name(name)

    async def statistics(self) -> CategoryStatistics:
        return CategoryStatistics(
            total_active=await self.repository.count_active(),
            total_root=await self.repository.count_roots(),
            total_with_products=await self.repository.count_with_products(),
            total_without_products=await self.repository.count_without_products(),
        )

    # ========================================================================
    # Helpers
    # ========================================================================

    async def _check_depth(self, parent_id: int, height: int) -> None:
        """Ensure a subtree of ``height`` levels fits below ``parent_id``."""
        ancestors = await self.path(parent_id)
        self._require_within_depth(len(ancestors) + height, parent_id)

    def _require_within_depth(self, depth: int, category_id: int) -> None:
        if depth > self.max_depth:
            raise OperationNotAllowedError(
                f"Category tree cannot be deeper than {self.max_depth} levels",
                details={"category_id": category_id, "depth": depth},
            )

    async def _subtree_height(self, category_id: int) -> int:
        """Count the levels of the subtree rooted at ``category_id``.

        A leaf has height 1.
        """
        height = 1
        seen = {category_id}
        frontier = [category_id]
        while True:
            rows = await self.repository.find_child_links(frontier)
            if not rows:
                return height
            frontier = []
            for row in rows:
                if row.id in seen:
                    raise HierarchyCorruptedError(category_id)
                seen.add(row.id)
                frontier.append(row.id)
            height += 1
            if height > self.max_depth:
                raise HierarchyCorruptedError(category_id)

    def _resolve_slug(self, data: CategoryData) -> str:
        slug = data.slug or generate_slug(data.name)
        if not slug:
            raise CatalogValidationError(
                f"Cannot derive a slug from name '{data.name}'", field="slug"
            )
        return slug

    async def _check_unique(
        self, name: str, slug: str, exclude_id: int | None = None
    ) -> None:
        if await self.repository.exists_by_slug(slug, exclude_id=exclude_id):
            raise DuplicateEntityError("Category", "slug", slug)
        if await self.repository.exists_by_name(name, exclude_id=exclude_id):
            raise DuplicateEntityError("Category", "name", name)
