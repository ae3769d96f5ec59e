"""Operation registry for the query endpoint.

Each operation name maps to a handler, the pydantic model validating its
arguments, the entity kind its output shape refers to and the shape of
its result. Names follow the public catalog API (``brands``,
``createProduct``, ``categoryPath`` and so on).

Every operation runs in its own session transaction: committed when the
handler returns, rolled back when it raises.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_api.api import schemas
from catalog_api.api.errors import UnknownOperationError
from catalog_api.api.rendering import render_many, render_one, render_value
from catalog_api.catalog.hierarchy import CategoryData, CategoryHierarchy
from catalog_api.catalog.service import (
    BrandData,
    BrandService,
    ProductData,
    ProductService,
)
from catalog_api.domain.paging import PageRequest
from catalog_api.query.fields import EntityKind, FieldSelection, analyze_fields
from catalog_api.query.listings import CatalogListings
from catalog_api.query.planner import FetchResult

Handler = Callable[[AsyncSession, Any, FieldSelection | None], Awaitable[Any]]


class ResultShape(str, Enum):
    """How a handler's result is rendered."""

    MANY = "many"
    ONE = "one"
    VALUE = "value"


@dataclass(frozen=True)
class Operation:
    """Registered operation.

    Attributes:
        name: Public operation name.
        handler: Coroutine doing the work.
        arguments: Model validating the raw arguments.
        kind: Entity kind of the output shape, None for plain values.
        shape: How the result is rendered.
    """

    name: str
    handler: Handler
    arguments: type[BaseModel]
    kind: EntityKind | None
    shape: ResultShape


OPERATIONS: dict[str, Operation] = {}


def operation(
    name: str,
    arguments: type[BaseModel] = schemas.NoArguments,
    kind: EntityKind | None = None,
    shape: ResultShape = ResultShape.MANY,
) -> Callable[[Handler], Handler]:
    """Register a handler under a public operation name."""

    def register(handler: Handler) -> Handler:
        OPERATIONS[name] = Operation(
            name=name,
            handler=handler,
            arguments=arguments,
            kind=kind,
            shape=shape,
        )
        return handler

    return register


async def execute_operation(
    session_factory: async_sessionmaker[AsyncSession],
    request: schemas.OperationRequest,
) -> Any:
    """Validate, run and render one operation.

    Args:
        session_factory: Factory for the operation's session.
        request: Operation as sent by the caller.

    Returns:
        Rendered payload.

    Raises:
        UnknownOperationError: If no operation has this name.
        ValidationError: If the arguments are invalid.
        DomainError: If the operation violates a catalog rule.
    """
    registered = OPERATIONS.get(request.name)
    if registered is None:
        raise UnknownOperationError(request.name)

    arguments = registered.arguments.model_validate(request.arguments)
    selection = (
        analyze_fields(registered.kind, request.fields)
        if registered.kind is not None
        else None
    )

    async with session_factory() as session, session.begin():
        result = await registered.handler(session, arguments, selection)
        if registered.shape is ResultShape.MANY:
            return render_many(result, selection)
        if registered.shape is ResultShape.ONE:
            return render_one(result, selection)
        return render_value(result)


def _page(arguments: schemas.PageArguments) -> PageRequest:
    return PageRequest(page_index=arguments.page_index, page_size=arguments.page_size)


async def _refetch(
    session: AsyncSession,
    kind: EntityKind,
    selection: FieldSelection,
    entity_id: int,
) -> FetchResult:
    """Load a mutated row in the caller's requested shape."""
    return await CatalogListings(session).fetch_by_ids(kind, selection, [entity_id])


# ============================================================================
# Brand Operations
# ============================================================================

BRAND = EntityKind.BRAND


@operation("brand", schemas.IdArguments, BRAND, ResultShape.ONE)
async def brand(session, args, selection):
    return await CatalogListings(session).brand(selection, args.id)


@operation("brandByName", schemas.NameArguments, BRAND, ResultShape.ONE)
async def brand_by_name(session, args, selection):
    return await CatalogListings(session).brand_by_name(selection, args.name)


@operation("brands", schemas.PageArguments, BRAND)
async def brands(session, args, selection):
    return await CatalogListings(session).brands(selection, _page(args))


@operation("searchBrands", schemas.SearchArguments, BRAND)
async def search_brands(session, args, selection):
    return await CatalogListings(session).search_brands(
        selection, args.name_pattern, _page(args)
    )


@operation("brandsWithProducts", schemas.PageArguments, BRAND)
async def brands_with_products(session, args, selection):
    return await CatalogListings(session).brands_with_products(selection, _page(args))


@operation("brandsWithoutProducts", schemas.PageArguments, BRAND)
async def brands_without_products(session, args, selection):
    return await CatalogListings(session).brands_without_products(
        selection, _page(args)
    )


@operation("recentlyCreatedBrands", schemas.RecentArguments, BRAND)
async def recently_created_brands(session, args, selection):
    return await CatalogListings(session).recently_created_brands(selection, args.limit)


@operation("recentlyUpdatedBrands", schemas.RecentArguments, BRAND)
async def recently_updated_brands(session, args, selection):
    return await CatalogListings(session).recently_updated_brands(selection, args.limit)


@operation("brandStatistics", shape=ResultShape.VALUE)
async def brand_statistics(session, args, selection):
    return await BrandService(session).statistics()


@operation("createBrand", schemas.CreateBrandArguments, BRAND, ResultShape.ONE)
async def create_brand(session, args, selection):
    created = await BrandService(session).create(BrandData(**args.input.model_dump()))
    return await _refetch(session, BRAND, selection, created.id)


@operation("updateBrand", schemas.UpdateBrandArguments, BRAND, ResultShape.ONE)
async def update_brand(session, args, selection):
    await BrandService(session).update(args.id, BrandData(**args.input.model_dump()))
    return await _refetch(session, BRAND, selection, args.id)


@operation("activateBrand", schemas.IdArguments, BRAND, ResultShape.ONE)
async def activate_brand(session, args, selection):
    await BrandService(session).activate(args.id)
    return await _refetch(session, BRAND, selection, args.id)


@operation("deactivateBrand", schemas.IdArguments, BRAND, ResultShape.ONE)
async def deactivate_brand(session, args, selection):
    await BrandService(session).deactivate(args.id)
    return await _refetch(session, BRAND, selection, args.id)


@operation("deleteBrand", schemas.IdArguments, shape=ResultShape.VALUE)
async def delete_brand(session, args, selection):
    return await BrandService(session).delete(args.id)


@operation("activateBrands", schemas.IdsArguments, shape=ResultShape.VALUE)
async def activate_brands(session, args, selection):
    return await BrandService(session).activate_many(args.ids)


@operation("deactivateBrands", schemas.IdsArguments, shape=ResultShape.VALUE)
async def deactivate_brands(session, args, selection):
    return await BrandService(session).deactivate_many(args.ids)


# ============================================================================
# Category Operations
# ============================================================================

CATEGORY = EntityKind.CATEGORY


def _category_data(category_input: schemas.CategoryInput) -> CategoryData:
    return CategoryData(**category_input.model_dump(exclude={"parent_id"}))


@operation("category", schemas.IdArguments, CATEGORY, ResultShape.ONE)
async def category(session, args, selection):
    return await CatalogListings(session).category(selection, args.id)


@operation("categoryBySlug", schemas.SlugArguments, CATEGORY, ResultShape.ONE)
async def category_by_slug(session, args, selection):
    return await CatalogListings(session).category_by_slug(selection, args.slug)


@operation("categoryByName", schemas.NameArguments, CATEGORY, ResultShape.ONE)
async def category_by_name(session, args, selection):
    return await CatalogListings(session).category_by_name(selection, args.name)


@operation("categories", schemas.PageArguments, CATEGORY)
async def categories(session, args, selection):
    return await CatalogListings(session).categories(selection, _page(args))


@operation("rootCategories", schemas.PageArguments, CATEGORY)
async def root_categories(session, args, selection):
    return await CatalogListings(session).root_categories(selection, _page(args))


@operation("childCategories", schemas.ChildCategoriesArguments, CATEGORY)
async def child_categories(session, args, selection):
    return await CatalogListings(session).child_categories(
        selection, args.parent_id, _page(args)
    )


@operation("categoryHierarchy", schemas.HierarchyArguments, CATEGORY)
async def category_hierarchy(session, args, selection):
    return await CatalogListings(session).category_descendants(
        selection, args.category_id, args.depth
    )


@operation("categoryPath", schemas.CategoryIdArguments, CATEGORY)
async def category_path(session, args, selection):
    return await CatalogListings(session).category_path(selection, args.category_id)


@operation("searchCategories", schemas.SearchArguments, CATEGORY)
async def search_categories(session, args, selection):
    return await CatalogListings(session).search_categories(
        selection, args.name_pattern, _page(args)
    )


@operation("categoriesWithProducts", schemas.PageArguments, CATEGORY)
async def categories_with_products(session, args, selection):
    return await CatalogListings(session).categories_with_products(
        selection, _page(args)
    )


@operation("categoriesWithoutProducts", schemas.PageArguments, CATEGORY)
async def categories_without_products(session, args, selection):
    return await CatalogListings(session).categories_without_products(
        selection, _page(args)
    )


@operation("categoryStatistics", shape=ResultShape.VALUE)
async def category_statistics(session, args, selection):
    return await CategoryHierarchy(session).statistics()


@operation("createCategory", schemas.CreateCategoryArguments, CATEGORY, ResultShape.ONE)
async def create_category(session, args, selection):
    created = await CategoryHierarchy(session).create(
        _category_data(args.input), parent_id=args.input.parent_id
    )
    return await _refetch(session, CATEGORY, selection, created.id)


@operation("updateCategory", schemas.UpdateCategoryArguments, CATEGORY, ResultShape.ONE)
async def update_category(session, args, selection):
    await CategoryHierarchy(session).update(args.id, _category_data(args.input))
    return await _refetch(session, CATEGORY, selection, args.id)


@operation("moveCategory", schemas.MoveCategoryArguments, CATEGORY, ResultShape.ONE)
async def move_category(session, args, selection):
    await CategoryHierarchy(session).move(args.category_id, args.new_parent_id)
    return await _refetch(session, CATEGORY, selection, args.category_id)


@operation("activateCategory", schemas.IdArguments, CATEGORY, ResultShape.ONE)
async def activate_category(session, args, selection):
    await CategoryHierarchy(session).activate(args.id)
    return await _refetch(session, CATEGORY, selection, args.id)


@operation("deactivateCategory", schemas.IdArguments, CATEGORY, ResultShape.ONE)
async def deactivate_category(session, args, selection):
    await CategoryHierarchy(session).deactivate(args.id)
    return await _refetch(session, CATEGORY, selection, args.id)


@operation(
    "updateCategorySortOrder", schemas.SortOrderArguments, CATEGORY, ResultShape.ONE
)
async def update_category_sort_order(session, args, selection):
    await CategoryHierarchy(session).update_sort_order(args.id, args.sort_order)
    return await _refetch(session, CATEGORY, selection, args.id)


@operation("deleteCategory", schemas.IdArguments, shape=ResultShape.VALUE)
async def delete_category(session, args, selection):
    return await CategoryHierarchy(session).delete(args.id)


# ============================================================================
# Product Operations
# ============================================================================

PRODUCT = EntityKind.PRODUCT


@operation("product", schemas.IdArguments, PRODUCT, ResultShape.ONE)
async def product(session, args, selection):
    return await CatalogListings(session).product(selection, args.id)


@operation("productBySlug", schemas.SlugArguments, PRODUCT, ResultShape.ONE)
async def product_by_slug(session, args, selection):
    return await CatalogListings(session).product_by_slug(selection, args.slug)


@operation("productBySku", schemas.SkuArguments, PRODUCT, ResultShape.ONE)
async def product_by_sku(session, args, selection):
    return await CatalogListings(session).product_by_sku(selection, args.sku)


@operation("products", schemas.PageArguments, PRODUCT)
async def products(session, args, selection):
    return await CatalogListings(session).products(selection, _page(args))


@operation("featuredProducts", schemas.PageArguments, PRODUCT)
async def featured_products(session, args, selection):
    return await CatalogListings(session).featured_products(selection, _page(args))


@operation("productsByCategory", schemas.CategoryProductsArguments, PRODUCT)
async def products_by_category(session, args, selection):
    return await CatalogListings(session).products_by_category(
        selection, args.category_id, _page(args)
    )


@operation("productsByBrand", schemas.BrandProductsArguments, PRODUCT)
async def products_by_brand(session, args, selection):
    return await CatalogListings(session).products_by_brand(
        selection, args.brand_id, _page(args)
    )


@operation("searchProducts", schemas.SearchArguments, PRODUCT)
async def search_products(session, args, selection):
    return await CatalogListings(session).search_products(
        selection, args.name_pattern, _page(args)
    )


@operation("productsByPriceRange", schemas.PriceRangeArguments, PRODUCT)
async def products_by_price_range(session, args, selection):
    return await CatalogListings(session).products_by_price_range(
        selection, args.min_price, args.max_price, _page(args)
    )


@operation("lowStockProducts", schemas.PageArguments, PRODUCT)
async def low_stock_products(session, args, selection):
    return await CatalogListings(session).low_stock_products(selection, _page(args))


@operation("outOfStockProducts", schemas.PageArguments, PRODUCT)
async def out_of_stock_products(session, args, selection):
    return await CatalogListings(session).out_of_stock_products(selection, _page(args))


@operation("inStockProducts", schemas.PageArguments, PRODUCT)
async def in_stock_products(session, args, selection):
    return await CatalogListings(session).in_stock_products(selection, _page(args))


@operation("recentlyCreatedProducts", schemas.RecentArguments, PRODUCT)
async def recently_created_products(session, args, selection):
    return await CatalogListings(session).recently_created_products(
        selection, args.limit
    )


@operation("recentlyUpdatedProducts", schemas.RecentArguments, PRODUCT)
async def recently_updated_products(session, args, selection):
    return await CatalogListings(session).recently_updated_products(
        selection, args.limit
    )


@operation("productStatistics", shape=ResultShape.VALUE)
async def product_statistics(session, args, selection):
    return await ProductService(session).statistics()


@operation("createProduct", schemas.CreateProductArguments, PRODUCT, ResultShape.ONE)
async def create_product(session, args, selection):
    created = await ProductService(session).create(
        ProductData(**args.input.model_dump())
    )
    return await _refetch(session, PRODUCT, selection, created.id)


@operation("updateProduct", schemas.UpdateProductArguments, PRODUCT, ResultShape.ONE)
async def update_product(session, args, selection):
    await ProductService(session).update(args.id, ProductData(**args.input.model_dump()))
    return await _refetch(session, PRODUCT, selection, args.id)


@operation("activateProduct", schemas.IdArguments, PRODUCT, ResultShape.ONE)
async def activate_product(session, args, selection):
    await ProductService(session).activate(args.id)
    return await _refetch(session, PRODUCT, selection, args.id)


@operation("deactivateProduct", schemas.IdArguments, PRODUCT, ResultShape.ONE)
async def deactivate_product(session, args, selection):
    await ProductService(session).deactivate(args.id)
    return await _refetch(session, PRODUCT, selection, args.id)


@operation("setProductFeatured", schemas.FeaturedArguments, PRODUCT, ResultShape.ONE)
async def set_product_featured(session, args, selection):
    await ProductService(session).set_featured(args.id, args.featured)
    return await _refetch(session, PRODUCT, selection, args.id)


@operation("updateProductStock", schemas.StockArguments, PRODUCT, ResultShape.ONE)
async def update_product_stock(session, args, selection):
    await ProductService(session).update_stock(args.id, args.quantity)
    return await _refetch(session, PRODUCT, selection, args.id)


@operation("addProductStock", schemas.StockArguments, PRODUCT, ResultShape.ONE)
async def add_product_stock(session, args, selection):
    await ProductService(session).add_stock(args.id, args.quantity)
    return await _refetch(session, PRODUCT, selection, args.id)


@operation("reduceProductStock", schemas.StockArguments, PRODUCT, ResultShape.ONE)
async def reduce_product_stock(session, args, selection):
    await ProductService(session).reduce_stock(args.id, args.quantity)
    return await _refetch(session, PRODUCT, selection, args.id)


@operation("deleteProduct", schemas.IdArguments, shape=ResultShape.VALUE)
async def delete_product(session, args, selection):
    return await ProductService(session).delete(args.id)
