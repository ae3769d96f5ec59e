"""Catalog services for brand and product operations.

Services combine repository operations with the business rules of the
catalog: uniqueness of names, slugs and SKUs, reference resolution and
inventory invariants. Category tree operations live in
``catalog_api.catalog.hierarchy``.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from catalog_api.catalog.models import Brand, Product, ProductImage, ProductTag
from catalog_api.catalog.repository import (
    BrandRepository,
    CategoryRepository,
    ProductRepository,
)
from catalog_api.domain.exceptions import (
    CatalogValidationError,
    DuplicateEntityError,
    EntityNotFoundError,
    InsufficientStockError,
    OperationNotAllowedError,
)
from catalog_api.domain.slug import generate_slug

logger = structlog.get_logger()


# ============================================================================
# Input Data
# ============================================================================


@dataclass
class BrandData:
    """Writable brand fields."""

    name: str
    description: str | None = None
    logo_url: str | None = None
    website_url: str | None = None


@dataclass
class ProductData:
    """Writable product fields.

    ``stock_quantity``, ``active`` and ``featured`` are only applied on
    create; afterwards they change through their dedicated operations.
    """

    name: str
    price: Decimal
    description: str | None = None
    sku: str | None = None
    slug: str | None = None
    compare_at_price: Decimal | None = None
    stock_quantity: int = 0
    low_stock_threshold: int = 5
    weight: Decimal | None = None
    weight_unit: str = "kg"
    active: bool = True
    featured: bool = False
    track_inventory: bool = True
    image_urls: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    brand_id: int | None = None
    category_id: int | None = None


# ============================================================================
# Statistics
# ============================================================================


@dataclass(frozen=True)
class BrandStatistics:
    total_active: int
    total_with_products: int
    total_without_products: int


@dataclass(frozen=True)
class ProductStatistics:
    total_active: int
    total_featured: int
    total_low_stock: int
    total_out_of_stock: int


def _require_ids(ids: Sequence[int], entity_type: str) -> None:
    if not ids:
        raise CatalogValidationError(
            f"{entity_type} IDs list cannot be null or empty", field="ids"
        )


# ============================================================================
# Brand Service
# ============================================================================


class BrandService:
    """Service for brand operations.

    Example usage:
        async with session_factory() as session, session.begin():
            service = BrandService(session)
            brand = await service.create(BrandData(name="Nike"))
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session
        self.repository = BrandRepository(session)

    async def create(self, data: BrandData) -> Brand:
        """Create a brand.

        Raises:
            DuplicateEntityError: If a brand with the same name exists,
                compared case-insensitively.
        """
        if await self.repository.exists_by_name(data.name):
            raise DuplicateEntityError("Brand", "name", data.name)

        brand = Brand(
            name=data.name,
            description=data.description,
            logo_url=data.logo_url,
            website_url=data.website_url,
            active=True,
        )
        await self.repository.save(brand)
        logger.info("Brand created", brand_id=brand.id, name=brand.name)
        return brand

    async def update(self, brand_id: int, data: BrandData) -> Brand:
        """Replace the writable fields of a brand.

        Raises:
            EntityNotFoundError: If the brand does not exist.
            DuplicateEntityError: If another brand already has the name.
        """
        brand = await self.repository.require(brand_id)
        if await self.repository.exists_by_name(data.name, exclude_id=brand_id):
            raise DuplicateEntityError("Brand", "name", data.name)

        brand.name = data.name
        brand.description = data.description
        brand.logo_url = data.logo_url
        brand.website_url = data.website_url
        await self.repository.flush(brand)
        return brand

    async def get(self, brand_id: int) -> Brand:
        return await self.repository.require(brand_id)

    async def find_by_name(self, name: str) -> Brand | None:
        return await self.repository.find_by_name(name)

    async def activate(self, brand_id: int) -> Brand:
        brand = await self.repository.require(brand_id)
        brand.activate()
        await self.repository.flush()
        return brand

    async def deactivate(self, brand_id: int) -> Brand:
        brand = await self.repository.require(brand_id)
        brand.deactivate()
        await self.repository.flush()
        return brand

    async def delete(self, brand_id: int) -> bool:
        """Soft-delete a brand. The row stays addressable by ID."""
        await self.deactivate(brand_id)
        logger.info("Brand deleted", brand_id=brand_id)
        return True

    async def activate_many(self, brand_ids: Sequence[int]) -> int:
        """Activate every brand in the list.

        Returns:
            Number of brands updated.

        Raises:
            CatalogValidationError: If the list is empty.
        """
        _require_ids(brand_ids, "Brand")
        return await self.repository.set_active_many(brand_ids, True)

    async def deactivate_many(self, brand_ids: Sequence[int]) -> int:
        _require_ids(brand_ids, "Brand")
        return await self.repository.set_active_many(brand_ids, False)

    async def statistics(self) -> BrandStatistics:
        return BrandStatistics(
            total_active=await self.repository.count_active(),
            total_with_products=await self.repository.count_with_products(),
            total_without_products=await self.repository.count_without_products(),
        )


# ============================================================================
# Product Service
# ============================================================================


class ProductService:
    """Service for product operations.

    Stock adjustments run as single guarded UPDATE statements; when the
    guard fails the row is read once to report the precise reason.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session
        self.repository = ProductRepository(session)
        self.brands = BrandRepository(session)
        self.categories = CategoryRepository(session)

    async def create(self, data: ProductData) -> Product:
        """Create a product.

        The slug is derived from the name when not given.

        Raises:
            DuplicateEntityError: If the slug or SKU is taken.
            EntityNotFoundError: If the brand or category does not exist.
        """
        slug = self._resolve_slug(data)
        if await self.repository.exists_by_slug(slug):
            raise DuplicateEntityError("Product", "slug", slug)
        if data.sku and await self.repository.exists_by_sku(data.sku):
            raise DuplicateEntityError("Product", "SKU", data.sku)
        await self._check_references(data)

        product = Product(
            name=data.name,
            description=data.description,
            sku=data.sku or None,
            slug=slug,
            price=data.price,
            compare_at_price=data.compare_at_price,
            stock_quantity=data.stock_quantity,
            low_stock_threshold=data.low_stock_threshold,
            weight=data.weight,
            weight_unit=data.weight_unit,
            active=data.active,
            featured=data.featured,
            track_inventory=data.track_inventory,
            brand_id=data.brand_id,
            category_id=data.category_id,
            images=_images(data.image_urls),
            tag_rows=_tags(data.tags),
        )
        await self.repository.save(product)
        logger.info("Product created", product_id=product.id, slug=product.slug)
        return product

    async def update(self, product_id: int, data: ProductData) -> Product:
        """Replace the descriptive fields of a product.

        Brand and category are only re-pointed when given.

        Raises:
            EntityNotFoundError: If the product, brand or category does not
                exist.
            DuplicateEntityError: If another product has the slug or SKU.
        """
        product = await self.repository.require(
            product_id,
            options=[selectinload(Product.images), selectinload(Product.tag_rows)],
        )
        slug = self._resolve_slug(data)
        if await self.repository.exists_by_slug(slug, exclude_id=product_id):
            raise DuplicateEntityError("Product", "slug", slug)
        if data.sku and await self.repository.exists_by_sku(
            data.sku, exclude_id=product_id
        ):
            raise DuplicateEntityError("Product", "SKU", data.sku)
        await self._check_references(data)

        product.name = data.name
        product.description = data.description
        product.sku = data.sku or None
        product.slug = slug
        product.price = data.price
        product.compare_at_price = data.compare_at_price
        product.low_stock_threshold = data.low_stock_threshold
        product.weight = data.weight
        product.weight_unit = data.weight_unit
        product.track_inventory = data.track_inventory
        product.images = _images(data.image_urls)
        product.tag_rows = _tags(data.tags)
        if data.brand_id is not None:
            product.brand_id = data.brand_id
        if data.category_id is not None:
            product.category_id = data.category_id
        await self.repository.flush(product)
        return product

    async def get(self, product_id: int) -> Product:
        return await self.repository.require(product_id)

    async def find_by_slug(self, slug: str) -> Product | None:
        return await self.repository.find_by_slug(slug)

    async def find_by_sku(self, sku: str) -> Product | None:
        return await self.repository.find_by_sku(sku)

    async def activate(self, product_id: int) -> Product:
        product = await self.repository.require(product_id)
        product.activate()
        await self.repository.flush()
        return product

    async def deactivate(self, product_id: int) -> Product:
        product = await self.repository.require(product_id)
        product.deactivate()
        await self.repository.flush()
        return product

    async def delete(self, product_id: int) -> bool:
        """Soft-delete a product. The row stays addressable by ID."""
        await self.deactivate(product_id)
        logger.info("Product deleted", product_id=product_id)
        return True

    async def set_featured(self, product_id: int, featured: bool) -> Product:
        product = await self.repository.require(product_id)
        product.set_featured(featured)
        await self.repository.flush()
        return product

    # ========================================================================
    # Inventory
    # ========================================================================

    async def reduce_stock(self, product_id: int, quantity: int) -> Product:
        """Remove units from stock.

        Args:
            product_id: Product ID.
            quantity: Units to remove, must be positive.

        Returns:
            The product with its refreshed quantity.

        Raises:
            CatalogValidationError: If quantity is not positive.
            EntityNotFoundError: If the product does not exist.
            OperationNotAllowedError: If the product does not track inventory.
            InsufficientStockError: If fewer than ``quantity`` units are on
                hand. Stock is left unchanged.
        """
        _require_positive(quantity)
        if not await self.repository.reduce_stock(product_id, quantity):
            await self._raise_stock_failure(product_id, quantity, "reduce")
        logger.info("Stock reduced", product_id=product_id, quantity=quantity)
        return await self._reload(product_id)

    async def add_stock(self, product_id: int, quantity: int) -> Product:
        _require_positive(quantity)
        if not await self.repository.add_stock(product_id, quantity):
            await self._raise_stock_failure(product_id, quantity, "add")
        return await self._reload(product_id)

    async def update_stock(self, product_id: int, quantity: int) -> Product:
        """Overwrite the stock on hand with a non-negative quantity."""
        if quantity < 0:
            raise CatalogValidationError(
                "Stock quantity cannot be negative", field="quantity"
            )
        if not await self.repository.set_stock(product_id, quantity):
            await self._raise_stock_failure(product_id, quantity, "update")
        return await self._reload(product_id)

    async def statistics(self) -> ProductStatistics:
        return ProductStatistics(
            total_active=await self.repository.count_active(),
            total_featured=await self.repository.count_featured(),
            total_low_stock=await self.repository.count_low_stock(),
            total_out_of_stock=await self.repository.count_out_of_stock(),
        )

    # ========================================================================
    # Helpers
    # ========================================================================

    def _resolve_slug(self, data: ProductData) -> str:
        slug = data.slug or generate_slug(data.name)
        if not slug:
            raise CatalogValidationError(
                f"Cannot derive a slug from name '{data.name}'", field="slug"
            )
        max_length = Product.__table__.c.slug.type.length
        if len(slug) > max_length:
            raise CatalogValidationError(
                f"Slug cannot be longer than {max_length} characters", field="slug"
            )
        return slug

    async def _check_references(self, data: ProductData) -> None:
        if data.brand_id is not None and not await self.brands.exists_by_id(
            data.brand_id
        ):
            raise EntityNotFoundError("Brand", data.brand_id)
        if data.category_id is not None and not await self.categories.exists_by_id(
            data.category_id
        ):
            raise EntityNotFoundError("Category", data.category_id)

    async def _raise_stock_failure(
        self, product_id: int, quantity: int, action: str
    ) -> None:
        state = await self.repository.get_stock_state(product_id)
        if state is None:
            raise EntityNotFoundError("Product", product_id)
        track_inventory, available = state
        if not track_inventory:
            raise OperationNotAllowedError(
                f"Cannot {action} stock for product that doesn't track inventory",
                details={"product_id": product_id},
            )
        raise InsufficientStockError(product_id, available, quantity)

    async def _reload(self, product_id: int) -> Product:
        return await self.repository.require(product_id, populate_existing=True)


def _require_positive(quantity: int) -> None:
    if quantity <= 0:
        raise CatalogValidationError("Quantity must be positive", field="quantity")


def _images(urls: Sequence[str]) -> list[ProductImage]:
    return [ProductImage(url=url, position=i) for i, url in enumerate(urls)]


def _tags(tags: Sequence[str]) -> list[ProductTag]:
    return [ProductTag(tag=tag, position=i) for i, tag in enumerate(tags)]
