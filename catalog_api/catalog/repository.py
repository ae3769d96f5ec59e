"""Catalog repositories for database operations.

Thin persistence helpers for brands, categories and products: point and
unique-key lookups, uniqueness probes, bulk activation, counters and the
atomic stock statements. Listing queries live in the fetch planner.
"""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import Row, and_, exists, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.catalog.models import Brand, Category, Product
from catalog_api.domain.exceptions import DuplicateEntityError, EntityNotFoundError
from catalog_api.infrastructure.database import storage_errors

ModelT = TypeVar("ModelT", Brand, Category, Product)


class _Repository(Generic[ModelT]):
    """Operations shared by every catalog repository."""

    model: type[ModelT]
    entity_type: str

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def save(self, entity: ModelT) -> ModelT:
        """Add an entity to the session and flush it.

        Args:
            entity: Entity to save.

        Returns:
            Saved entity with its identity assigned.

        Raises:
            DuplicateEntityError: If a unique key is already taken, e.g.
                by a concurrent insert that passed the service checks.
        """
        self.session.add(entity)
        await self._flush(f"save_{self.model.__tablename__}", entity)
        return entity

    async def flush(self, entity: ModelT | None = None) -> None:
        await self._flush(f"flush_{self.model.__tablename__}", entity)

    async def _flush(self, operation: str, entity: ModelT | None) -> None:
        with storage_errors(operation):
            try:
                await self.session.flush()
            except IntegrityError as e:
                field = self._unique_field(e)
                if field is None:
                    raise
                value = getattr(entity, field, None) if entity is not None else None
                raise DuplicateEntityError(self.entity_type, field, value) from e

    def _unique_field(self, error: IntegrityError) -> str | None:
        """Name the unique column a constraint violation refers to.

        Both PostgreSQL and SQLite mention the column in the message,
        e.g. ``Key (sku)=(X) already exists`` or
        ``UNIQUE constraint failed: products.sku``.
        """
        message = str(error.orig)
        if "unique" not in message.lower():
            return None
        for column in self.model.__table__.columns:
            if column.unique and (
                f"({column.name})" in message
                or f".{column.name}" in message
            ):
                return column.name
        return None

    async def get_by_id(
        self,
        entity_id: int,
        options: Sequence[Any] = (),
        populate_existing: bool = False,
    ) -> ModelT | None:
        """Get entity by ID.

        Args:
            entity_id: Entity ID.
            options: Loader options to attach.
            populate_existing: Refresh an already-loaded instance.

        Returns:
            Entity if found, None otherwise.
        """
        with storage_errors(f"get_{self.model.__tablename__}"):
            return await self.session.get(
                self.model,
                entity_id,
                options=list(options) or None,
                populate_existing=populate_existing,
            )

    async def require(
        self,
        entity_id: int,
        options: Sequence[Any] = (),
        populate_existing: bool = False,
    ) -> ModelT:
        """Get entity by ID or raise.

        Raises:
            EntityNotFoundError: If no row has this ID.
        """
        entity = await self.get_by_id(entity_id, options, populate_existing)
        if entity is None:
            raise EntityNotFoundError(self.entity_type, entity_id)
        return entity

    async def exists_by_id(self, entity_id: int) -> bool:
        query = select(exists().where(self.model.id == entity_id))
        with storage_errors(f"exists_{self.model.__tablename__}"):
            result = await self.session.execute(query)
        return bool(result.scalar())

    async def set_active_many(self, ids: Sequence[int], active: bool) -> int:
        """Set the active flag on every row in the ID list.

        Args:
            ids: Entity IDs.
            active: New flag value.

        Returns:
            Number of rows updated.
        """
        statement = (
            update(self.model)
            .where(self.model.id.in_(list(ids)))
            .values(active=active)
            .execution_options(synchronize_session=False)
        )
        with storage_errors(f"bulk_activate_{self.model.__tablename__}"):
            result = await self.session.execute(statement)
        return result.rowcount

    async def count_where(self, *conditions: Any) -> int:
        query = select(func.count(self.model.id))
        if conditions:
            query = query.where(and_(*conditions))
        with storage_errors(f"count_{self.model.__tablename__}"):
            result = await self.session.execute(query)
        return result.scalar_one()

    async def count_active(self) -> int:
        return await self.count_where(self.model.active.is_(True))

    async def _exists(self, *conditions: Any) -> bool:
        query = select(exists().where(and_(*conditions)))
        with storage_errors(f"exists_{self.model.__tablename__}"):
            result = await self.session.execute(query)
        return bool(result.scalar())

    def _excluding(self, exclude_id: int | None) -> list[Any]:
        if exclude_id is None:
            return []
        return [self.model.id != exclude_id]


# ============================================================================
# Brand
# ============================================================================


def brand_has_active_products() -> Any:
    """Correlated EXISTS: the brand has at least one active product."""
    return (
        select(Product.id)
        .where(Product.brand_id == Brand.id, Product.active.is_(True))
        .exists()
    )


class BrandRepository(_Repository[Brand]):
    """Repository for Brand database operations.

    Example usage:
        async with session_factory() as session, session.begin():
            repo = BrandRepository(session)
            brand = await repo.find_by_name("nike")
    """

    model = Brand
    entity_type = "Brand"

    async def find_by_name(self, name: str) -> Brand | None:
        """Find brand by name, case-insensitively."""
        query = select(Brand).where(func.lower(Brand.name) == name.lower())
        with storage_errors("find_brand_by_name"):
            result = await self.session.execute(query)
        return result.scalars().first()

    async def exists_by_name(self, name: str, exclude_id: int | None = None) -> bool:
        return await self._exists(
            func.lower(Brand.name) == name.lower(),
            *self._excluding(exclude_id),
        )

    async def count_with_products(self) -> int:
        return await self.count_where(
            Brand.active.is_(True), brand_has_active_products()
        )

    async def count_without_products(self) -> int:
        return await self.count_where(
            Brand.active.is_(True), ~brand_has_active_products()
        )


# ============================================================================
# Category
# ============================================================================


def category_has_active_products() -> Any:
    """Correlated EXISTS: the category has at least one active product."""
    return (
        select(Product.id)
        .where(Product.category_id == Category.id, Product.active.is_(True))
        .exists()
    )


class CategoryRepository(_Repository[Category]):
    """Repository for Category database operations.

    Only stores and reads rows; tree invariants are enforced by
    ``CategoryHierarchy``.
    """

    model = Category
    entity_type = "Category"

    async def find_by_slug(self, slug: str) -> Category | None:
        query = select(Category).where(Category.slug == slug)
        with storage_errors("find_category_by_slug"):
            result = await self.session.execute(query)
        return result.scalars().first()

    async def find_by_name(self, name: str) -> Category | None:
        """Find category by name, case-insensitively."""
        query = select(Category).where(func.lower(Category.name) == name.lower())
        with storage_errors("find_category_by_name"):
            result = await self.session.execute(query)
        return result.scalars().first()

    async def exists_by_name(self, name: str, exclude_id: int | None = None) -> bool:
        return await self._exists(
            func.lower(Category.name) == name.lower(),
            *self._excluding(exclude_id),
        )

    async def exists_by_slug(self, slug: str, exclude_id: int | None = None) -> bool:
        return await self._exists(
            Category.slug == slug,
            *self._excluding(exclude_id),
        )

    async def get_parent_id(self, category_id: int) -> tuple[bool, int | None]:
        """Read only the parent reference of a category.

        Returns:
            Tuple of (found, parent_id).
        """
        query = select(Category.parent_id).where(Category.id == category_id)
        with storage_errors("get_category_parent"):
            result = await self.session.execute(query)
        row = result.first()
        if row is None:
            return False, None
        return True, row.parent_id

    async def find_child_links(self, parent_ids: Sequence[int]) -> list[Row]:
        """Find the direct children of a set of categories.

        Issues one ``parent_id IN (...)`` query regardless of how many
        parents are given.

        Args:
            parent_ids: Parent category IDs.

        Returns:
            Rows with ``id``, ``parent_id``, ``active``, ``sort_order`` and
            ``name``.
        """
        if not parent_ids:
            return []
        query = select(
            Category.id,
            Category.parent_id,
            Category.active,
            Category.sort_order,
            Category.name,
        ).where(Category.parent_id.in_(list(parent_ids)))
        with storage_errors("find_category_children"):
            result = await self.session.execute(query)
        return list(result.all())

    async def find_active_ids(
        self,
        *conditions: Any,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[int]:
        """List active category IDs in sibling order.

        Ordered by (sort_order, name, id).
        """
        query = (
            select(Category.id)
            .where(Category.active.is_(True), *conditions)
            .order_by(Category.sort_order, Category.name, Category.id)
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)
        with storage_errors("list_categories"):
            result = await self.session.execute(query)
        return list(result.scalars().all())

    async def has_active_children(self, category_id: int) -> bool:
        return await self._exists(
            Category.parent_id == category_id,
            Category.active.is_(True),
        )

    async def count_roots(self) -> int:
        return await self.count_where(
            Category.active.is_(True), Category.parent_id.is_(None)
        )

    async def count_with_products(self) -> int:
        return await self.count_where(
            Category.active.is_(True), category_has_active_products()
        )

    async def count_without_products(self) -> int:
        return await self.count_where(
            Category.active.is_(True), ~category_has_active_products()
        )


# ============================================================================
# Product
# ============================================================================


def product_is_low_stock() -> Any:
    return and_(
        Product.track_inventory.is_(True),
        Product.stock_quantity <= Product.low_stock_threshold,
    )


def product_is_out_of_stock() -> Any:
    return and_(
        Product.track_inventory.is_(True),
        Product.stock_quantity == 0,
    )


def product_is_in_stock() -> Any:
    return or_(
        Product.track_inventory.is_(False),
        Product.stock_quantity > 0,
    )


class ProductRepository(_Repository[Product]):
    """Repository for Product database operations.

    Stock mutations are single conditional UPDATE statements so that
    concurrent reductions can never drive the quantity below zero. Each
    returns True when exactly one row matched its guard.
    """

    model = Product
    entity_type = "Product"

    async def find_by_slug(self, slug: str) -> Product | None:
        query = select(Product).where(Product.slug == slug)
        with storage_errors("find_product_by_slug"):
            result = await self.session.execute(query)
        return result.scalars().first()

    async def find_by_sku(self, sku: str) -> Product | None:
        query = select(Product).where(Product.sku == sku)
        with storage_errors("find_product_by_sku"):
            result = await self.session.execute(query)
        return result.scalars().first()

    async def exists_by_slug(self, slug: str, exclude_id: int | None = None) -> bool:
        return await self._exists(
            Product.slug == slug,
            *self._excluding(exclude_id),
        )

    async def exists_by_sku(self, sku: str, exclude_id: int | None = None) -> bool:
        return await self._exists(
            Product.sku == sku,
            *self._excluding(exclude_id),
        )

    async def get_stock_state(self, product_id: int) -> tuple[bool, int] | None:
        """Read the inventory columns of a product.

        Returns:
            Tuple of (track_inventory, stock_quantity), or None if the
            product does not exist.
        """
        query = select(Product.track_inventory, Product.stock_quantity).where(
            Product.id == product_id
        )
        with storage_errors("get_product_stock"):
            result = await self.session.execute(query)
        row = result.first()
        if row is None:
            return None
        return row.track_inventory, row.stock_quantity

    async def reduce_stock(self, product_id: int, quantity: int) -> bool:
        """Atomically subtract ``quantity`` if enough stock is on hand."""
        return await self._update_stock(
            product_id,
            Product.stock_quantity - quantity,
            Product.stock_quantity >= quantity,
        )

    async def add_stock(self, product_id: int, quantity: int) -> bool:
        """Atomically add ``quantity`` to the stock on hand."""
        return await self._update_stock(product_id, Product.stock_quantity + quantity)

    async def set_stock(self, product_id: int, quantity: int) -> bool:
        """Overwrite the stock on hand."""
        return await self._update_stock(product_id, quantity)

    async def _update_stock(self, product_id: int, value: Any, *guards: Any) -> bool:
        statement = (
            update(Product)
            .where(
                Product.id == product_id,
                Product.track_inventory.is_(True),
                *guards,
            )
            .values(stock_quantity=value)
            .execution_options(synchronize_session=False)
        )
        with storage_errors("update_product_stock"):
            result = await self.session.execute(statement)
        return result.rowcount == 1

    async def count_featured(self) -> int:
        return await self.count_where(
            Product.active.is_(True), Product.featured.is_(True)
        )

    async def count_low_stock(self) -> int:
        return await self.count_where(Product.active.is_(True), product_is_low_stock())

    async def count_out_of_stock(self) -> int:
        return await self.count_where(
            Product.active.is_(True), product_is_out_of_stock()
        )
