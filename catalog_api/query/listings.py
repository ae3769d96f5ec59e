"""Named catalog listings.

Each listing is a fixed filter and ordering run through the fetch
planner, so every listing honours the caller's field selection. Listings
return only active rows; point lookups by id, slug, SKU or name return a
row regardless of its active flag.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.catalog.hierarchy import CategoryHierarchy
from catalog_api.catalog.models import Brand, Category, Product
from catalog_api.catalog.repository import (
    BrandRepository,
    CategoryRepository,
    brand_has_active_products,
    category_has_active_products,
    product_is_in_stock,
    product_is_low_stock,
    product_is_out_of_stock,
)
from catalog_api.domain.exceptions import CatalogValidationError, EntityNotFoundError
from catalog_api.domain.paging import PageRequest
from catalog_api.query.fields import EntityKind, FieldSelection
from catalog_api.query.planner import FetchResult, QueryPlanner

DEFAULT_RECENT_LIMIT = 10


def _contains(column: Any, pattern: str) -> Any:
    """Case-insensitive substring match."""
    return column.ilike(f"%{pattern}%")


def _recent_page(limit: int) -> PageRequest:
    if limit <= 0:
        raise CatalogValidationError("Limit must be positive", field="limit")
    return PageRequest(page_index=0, page_size=limit)


class CatalogListings:
    """Named read operations over brands, categories and products.

    Example usage:
        listings = CatalogListings(session)
        result = await listings.search_products(
            analyze_fields(EntityKind.PRODUCT, ["name", "price"]),
            "phone",
            PageRequest(0, 20),
        )
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize listings with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session
        self.planner = QueryPlanner(session)
        self.hierarchy = CategoryHierarchy(session)
        self.brand_repository = BrandRepository(session)
        self.category_repository = CategoryRepository(session)

    async def fetch_by_ids(
        self,
        kind: EntityKind,
        selection: FieldSelection,
        ids: Sequence[int],
    ) -> FetchResult:
        """Load rows for an ID list in the list's order."""
        return await self.planner.fetch_by_ids(kind, selection, ids)

    async def _require_one(
        self, kind: EntityKind, selection: FieldSelection, entity_id: int
    ) -> FetchResult:
        result = await self.planner.fetch_by_ids(kind, selection, [entity_id])
        if not result.items:
            raise EntityNotFoundError(kind.value.capitalize(), entity_id)
        return result

    # ========================================================================
    # Products
    # ========================================================================

    async def _products(
        self,
        selection: FieldSelection,
        *criteria: Any,
        order_by: Sequence[Any] = (Product.name,),
        page: PageRequest | None = None,
    ) -> FetchResult:
        return await self.planner.fetch(
            EntityKind.PRODUCT,
            selection,
            criteria=[Product.active.is_(True), *criteria],
            order_by=order_by,
            page=page,
        )

    async def product(self, selection: FieldSelection, product_id: int) -> FetchResult:
        return await self._require_one(EntityKind.PRODUCT, selection, product_id)

    async def product_by_slug(self, selection: FieldSelection, slug: str) -> FetchResult:
        return await self.planner.fetch(
            EntityKind.PRODUCT, selection, criteria=[Product.slug == slug]
        )

    async def product_by_sku(self, selection: FieldSelection, sku: str) -> FetchResult:
        return await self.planner.fetch(
            EntityKind.PRODUCT, selection, criteria=[Product.sku == sku]
        )

    async def products(self, selection: FieldSelection, page: PageRequest) -> FetchResult:
        return await self._products(selection, page=page)

    async def featured_products(
        self, selection: FieldSelection, page: PageRequest
    ) -> FetchResult:
        return await self._products(selection, Product.featured.is_(True), page=page)

    async def products_by_category(
        self, selection: FieldSelection, category_id: int, page: PageRequest
    ) -> FetchResult:
        """List active products of a category.

        Raises:
            EntityNotFoundError: If the category does not exist.
        """
        if not await self.category_repository.exists_by_id(category_id):
            raise EntityNotFoundError("Category", category_id)
        return await self._products(
            selection, Product.category_id == category_id, page=page
        )

    async def products_by_brand(
        self, selection: FieldSelection, brand_id: int, page: PageRequest
    ) -> FetchResult:
        """List active products of a brand.

        Raises:
            EntityNotFoundError: If the brand does not exist.
        """
        if not await self.brand_repository.exists_by_id(brand_id):
            raise EntityNotFoundError("Brand", brand_id)
        return await self._products(selection, Product.brand_id == brand_id, page=page)

    async def search_products(
        self, selection: FieldSelection, pattern: str, page: PageRequest
    ) -> FetchResult:
        return await self._products(
            selection, _contains(Product.name, pattern), page=page
        )

    async def products_by_price_range(
        self,
        selection: FieldSelection,
        min_price: Decimal,
        max_price: Decimal,
        page: PageRequest,
    ) -> FetchResult:
        """List active products priced within ``[min_price, max_price]``.

        Raises:
            CatalogValidationError: If the bounds are inverted.
        """
        if min_price > max_price:
            raise CatalogValidationError(
                "Minimum price cannot exceed maximum price", field="minPrice"
            )
        return await self._products(
            selection,
            Product.price >= min_price,
            Product.price <= max_price,
            order_by=(Product.price,),
            page=page,
        )

    async def low_stock_products(
        self, selection: FieldSelection, page: PageRequest
    ) -> FetchResult:
        return await self._products(
            selection,
            product_is_low_stock(),
            order_by=(Product.stock_quantity,),
            page=page,
        )

    async def out_of_stock_products(
        self, selection: FieldSelection, page: PageRequest
    ) -> FetchResult:
        return await self._products(selection, product_is_out_of_stock(), page=page)

    async def in_stock_products(
        self, selection: FieldSelection, page: PageRequest
    ) -> FetchResult:
        return await self._products(selection, product_is_in_stock(), page=page)

    async def recently_created_products(
        self, selection: FieldSelection, limit: int = DEFAULT_RECENT_LIMIT
    ) -> FetchResult:
        return await self._products(
            selection,
            order_by=(Product.created_at.desc(),),
            page=_recent_page(limit),
        )

    async def recently_updated_products(
        self, selection: FieldSelection, limit: int = DEFAULT_RECENT_LIMIT
    ) -> FetchResult:
        return await self._products(
            selection,
            order_by=(Product.updated_at.desc(),),
            page=_recent_page(limit),
        )

    # ========================================================================
    # Brands
    # ========================================================================

    async def _brands(
        self,
        selection: FieldSelection,
        *criteria: Any,
        order_by: Sequence[Any] = (Brand.name,),
        page: PageRequest | None = None,
    ) -> FetchResult:
        return await self.planner.fetch(
            EntityKind.BRAND,
            selection,
            criteria=[Brand.active.is_(True), *criteria],
            order_by=order_by,
            page=page,
        )

    async def brand(self, selection: FieldSelection, brand_id: int) -> FetchResult:
        return await self._require_one(EntityKind.BRAND, selection, brand_id)

    async def brand_by_name(self, selection: FieldSelection, name: str) -> FetchResult:
        return await self.planner.fetch(
            EntityKind.BRAND,
            selection,
            criteria=[func.lower(Brand.name) == name.lower()],
        )

    async def brands(
        self, selection: FieldSelection, page: PageRequest
    ) -> FetchResult:
        return await self._brands(selection, page=page)

    async def search_brands(
        self, selection: FieldSelection, pattern: str, page: PageRequest
    ) -> FetchResult:
        return await self._brands(selection, _contains(Brand.name, pattern), page=page)

    async def brands_with_products(
        self, selection: FieldSelection, page: PageRequest
    ) -> FetchResult:
        return await self._brands(selection, brand_has_active_products(), page=page)

    async def brands_without_products(
        self, selection: FieldSelection, page: PageRequest
    ) -> FetchResult:
        return await self._brands(selection, ~brand_has_active_products(), page=page)

    async def recently_created_brands(
        self, selection: FieldSelection, limit: int = DEFAULT_RECENT_LIMIT
    ) -> FetchResult:
        return await self._brands(
            selection,
            order_by=(Brand.created_at.desc(),),
            page=_recent_page(limit),
        )

    async def recently_updated_brands(
        self, selection: FieldSelection, limit: int = DEFAULT_RECENT_LIMIT
    ) -> FetchResult:
        return await self._brands(
            selection,
            order_by=(Brand.updated_at.desc(),),
            page=_recent_page(limit),
        )

    # ========================================================================
    # Categories
    # ========================================================================

    async def _categories(
        self,
        selection: FieldSelection,
        *criteria: Any,
        page: PageRequest | None = None,
    ) -> FetchResult:
        return await self.planner.fetch(
            EntityKind.CATEGORY,
            selection,
            criteria=[Category.active.is_(True), *criteria],
            order_by=(Category.sort_order, Category.name),
            page=page,
        )

    async def category(self, selection: FieldSelection, category_id: int) -> FetchResult:
        return await self._require_one(EntityKind.CATEGORY, selection, category_id)

    async def category_by_slug(self, selection: FieldSelection, slug: str) -> FetchResult:
        return await self.planner.fetch(
            EntityKind.CATEGORY, selection, criteria=[Category.slug == slug]
        )

    async def category_by_name(self, selection: FieldSelection, name: str) -> FetchResult:
        return await self.planner.fetch(
            EntityKind.CATEGORY,
            selection,
            criteria=[func.lower(Category.name) == name.lower()],
        )

    async def categories(
        self, selection: FieldSelection, page: PageRequest
    ) -> FetchResult:
        return await self._categories(selection, page=page)

    async def search_categories(
        self, selection: FieldSelection, pattern: str, page: PageRequest
    ) -> FetchResult:
        return await self._categories(
            selection, _contains(Category.name, pattern), page=page
        )

    async def categories_with_products(
        self, selection: FieldSelection, page: PageRequest
    ) -> FetchResult:
        return await self._categories(
            selection, category_has_active_products(), page=page
        )

    async def categories_without_products(
        self, selection: FieldSelection, page: PageRequest
    ) -> FetchResult:
        return await self._categories(
            selection, ~category_has_active_products(), page=page
        )

    async def root_categories(
        self, selection: FieldSelection, page: PageRequest
    ) -> FetchResult:
        ids = await self.hierarchy.roots(page)
        return await self.fetch_by_ids(EntityKind.CATEGORY, selection, ids)

    async def child_categories(
        self, selection: FieldSelection, parent_id: int, page: PageRequest
    ) -> FetchResult:
        ids = await self.hierarchy.children_of(parent_id, page)
        return await self.fetch_by_ids(EntityKind.CATEGORY, selection, ids)

    async def category_descendants(
        self,
        selection: FieldSelection,
        category_id: int,
        depth: int | None = None,
    ) -> FetchResult:
        ids = await self.hierarchy.descendants(category_id, depth)
        return await self.fetch_by_ids(EntityKind.CATEGORY, selection, ids)

    async def category_path(
        self, selection: FieldSelection, category_id: int
    ) -> FetchResult:
        ids = await self.hierarchy.path(category_id)
        return await self.fetch_by_ids(EntityKind.CATEGORY, selection, ids)
