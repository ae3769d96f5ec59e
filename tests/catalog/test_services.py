"""Tests for brand and product services."""

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.catalog.hierarchy import CategoryData, CategoryHierarchy
from catalog_api.catalog.models import Product
from catalog_api.catalog.service import (
    BrandData,
    BrandService,
    ProductData,
    ProductService,
)
from catalog_api.domain.exceptions import (
    CatalogValidationError,
    DuplicateEntityError,
    EntityNotFoundError,
    InsufficientStockError,
    OperationNotAllowedError,
)


@pytest.fixture
def brands(session: AsyncSession) -> BrandService:
    return BrandService(session)


@pytest.fixture
def products(session: AsyncSession) -> ProductService:
    return ProductService(session)


# ============================================================================
# Brand Service
# ============================================================================


class TestBrandService:
    """Tests for BrandService."""

    @pytest.mark.asyncio
    async def test_create_brand(self, brands: BrandService) -> None:
        """A created brand is active and has an id."""
        brand = await brands.create(BrandData(name="Nike", website_url="https://nike.com"))
        assert brand.id is not None
        assert brand.active is True
        assert brand.website_url == "https://nike.com"

    @pytest.mark.asyncio
    async def test_duplicate_name_is_case_insensitive(self, brands: BrandService) -> None:
        """Creating "nike" after "Nike" fails."""
        await brands.create(BrandData(name="Nike"))
        with pytest.raises(DuplicateEntityError) as exc_info:
            await brands.create(BrandData(name="nike"))
        assert exc_info.value.code == "DUPLICATE_ENTITY"

    @pytest.mark.asyncio
    async def test_update_rejects_other_brands_name(self, brands: BrandService) -> None:
        """Renaming onto another brand's name fails, keeping one's own is fine."""
        nike = await brands.create(BrandData(name="Nike"))
        await brands.create(BrandData(name="Adidas"))

        with pytest.raises(DuplicateEntityError):
            await brands.update(nike.id, BrandData(name="ADIDAS"))

        updated = await brands.update(nike.id, BrandData(name="NIKE", description="Shoes"))
        assert updated.name == "NIKE"
        assert updated.description == "Shoes"

    @pytest.mark.asyncio
    async def test_find_by_name(self, brands: BrandService) -> None:
        """Lookup by name ignores case."""
        created = await brands.create(BrandData(name="Puma"))
        found = await brands.find_by_name("PUMA")
        assert found is not None
        assert found.id == created.id
        assert await brands.find_by_name("Reebok") is None

    @pytest.mark.asyncio
    async def test_get_missing_brand(self, brands: BrandService) -> None:
        """Missing ids raise EntityNotFoundError."""
        with pytest.raises(EntityNotFoundError):
            await brands.get(999)

    @pytest.mark.asyncio
    async def test_delete_is_soft(self, brands: BrandService) -> None:
        """Deleting a brand deactivates it but keeps the row."""
        brand = await brands.create(BrandData(name="Asics"))
        assert await brands.delete(brand.id) is True
        assert (await brands.get(brand.id)).active is False

    @pytest.mark.asyncio
    async def test_bulk_activation(self, brands: BrandService) -> None:
        """Bulk operations return the number of rows updated."""
        first = await brands.create(BrandData(name="Fila"))
        second = await brands.create(BrandData(name="Umbro"))
        assert await brands.deactivate_many([first.id, second.id]) == 2
        assert await brands.activate_many([first.id]) == 1

    @pytest.mark.asyncio
    async def test_bulk_activation_requires_ids(self, brands: BrandService) -> None:
        """An empty id list is rejected."""
        with pytest.raises(CatalogValidationError) as exc_info:
            await brands.activate_many([])
        assert exc_info.value.message == "Brand IDs list cannot be null or empty"

    @pytest.mark.asyncio
    async def test_statistics(
        self, brands: BrandService, products: ProductService
    ) -> None:
        """Statistics count brands with and without active products."""
        nike = await brands.create(BrandData(name="Nike"))
        await brands.create(BrandData(name="Adidas"))
        await products.create(
            ProductData(name="Air Max", price=Decimal("120.00"), brand_id=nike.id)
        )

        stats = await brands.statistics()
        assert stats.total_active == 2
        assert stats.total_with_products == 1
        assert stats.total_without_products == 1


# ============================================================================
# Product Service
# ============================================================================


class TestProductService:
    """Tests for ProductService create and update."""

    @pytest.mark.asyncio
    async def test_create_derives_slug(self, products: ProductService) -> None:
        """The slug is derived from the name when not given."""
        product = await products.create(
            ProductData(name="Home & Garden Lamp!!", price=Decimal("19.99"))
        )
        assert product.slug == "home-garden-lamp"

    @pytest.mark.asyncio
    async def test_explicit_slug_is_used(self, products: ProductService) -> None:
        """An explicit slug is stored and found."""
        await products.create(
            ProductData(name="Trail Shoe", slug="trail-2024", price=Decimal("80.00"))
        )
        found = await products.find_by_slug("trail-2024")
        assert found is not None
        assert found.name == "Trail Shoe"

    @pytest.mark.asyncio
    async def test_long_name_derives_storable_slug(
        self, products: ProductService
    ) -> None:
        """A name at the input limit yields a slug that fits its column."""
        name = "Deluxe " + "x" * 143
        product = await products.create(ProductData(name=name, price=Decimal("5.00")))
        assert len(product.slug) == 150
        assert len(product.slug) <= Product.__table__.c.slug.type.length
        found = await products.find_by_slug(product.slug)
        assert found is not None

    @pytest.mark.asyncio
    async def test_oversized_slug_rejected(self, products: ProductService) -> None:
        with pytest.raises(CatalogValidationError) as exc_info:
            await products.create(
                ProductData(name="Lamp", slug="s" * 201, price=Decimal("5.00"))
            )
        assert exc_info.value.details["field"] == "slug"

    @pytest.mark.asyncio
    async def test_duplicate_slug_and_sku(self, products: ProductService) -> None:
        """Slug and SKU are unique."""
        await products.create(
            ProductData(name="Widget", sku="W-1", price=Decimal("1.00"))
        )
        with pytest.raises(DuplicateEntityError):
            await products.create(ProductData(name="Widget", price=Decimal("1.00")))
        with pytest.raises(DuplicateEntityError):
            await products.create(
                ProductData(name="Widget Two", sku="W-1", price=Decimal("1.00"))
            )

    @pytest.mark.asyncio
    async def test_unknown_references(self, products: ProductService) -> None:
        """Brand and category references must resolve."""
        with pytest.raises(EntityNotFoundError):
            await products.create(
                ProductData(name="Orphan", price=Decimal("1.00"), brand_id=42)
            )
        with pytest.raises(EntityNotFoundError):
            await products.create(
                ProductData(name="Orphan", price=Decimal("1.00"), category_id=42)
            )

    @pytest.mark.asyncio
    async def test_collections_keep_order(self, products: ProductService) -> None:
        """Images and tags keep their insertion order."""
        product = await products.create(
            ProductData(
                name="Camera",
                price=Decimal("499.00"),
                image_urls=["b.png", "a.png", "c.png"],
                tags=["photo", "digital"],
            )
        )
        assert list(product.image_urls) == ["b.png", "a.png", "c.png"]
        assert list(product.tags) == ["photo", "digital"]

    @pytest.mark.asyncio
    async def test_update_replaces_collections(
        self, session: AsyncSession, products: ProductService
    ) -> None:
        """Update replaces collections and keeps references when not given."""
        category = await CategoryHierarchy(session).create(CategoryData(name="Cameras"))
        product = await products.create(
            ProductData(
                name="Camera",
                price=Decimal("499.00"),
                image_urls=["a.png"],
                category_id=category.id,
            )
        )

        updated = await products.update(
            product.id,
            ProductData(name="Camera Mk II", price=Decimal("549.00"), image_urls=["z.png"]),
        )
        assert updated.slug == "camera-mk-ii"
        assert updated.price == Decimal("549.00")
        assert list(updated.image_urls) == ["z.png"]
        assert updated.category_id == category.id


class TestProductStock:
    """Tests for stock mutations."""

    @pytest.fixture
    async def widget(self, products: ProductService) -> int:
        product = await products.create(
            ProductData(name="Widget", price=Decimal("2.50"), stock_quantity=10)
        )
        return product.id

    @pytest.mark.asyncio
    async def test_reduce_stock(self, products: ProductService, widget: int) -> None:
        """Reducing within the stock on hand subtracts exactly."""
        product = await products.reduce_stock(widget, 3)
        assert product.stock_quantity == 7

    @pytest.mark.asyncio
    async def test_reduce_beyond_stock_fails(
        self, products: ProductService, widget: int
    ) -> None:
        """Reducing more than on hand fails and leaves stock unchanged."""
        await products.reduce_stock(widget, 3)
        with pytest.raises(InsufficientStockError) as exc_info:
            await products.reduce_stock(widget, 8)
        assert exc_info.value.details["available"] == 7
        assert exc_info.value.details["requested"] == 8
        assert (await products.get(widget)).stock_quantity == 7

    @pytest.mark.asyncio
    async def test_reduce_to_zero(self, products: ProductService, widget: int) -> None:
        """Stock can reach exactly zero."""
        product = await products.reduce_stock(widget, 10)
        assert product.stock_quantity == 0
        assert product.is_in_stock is False

    @pytest.mark.asyncio
    async def test_add_and_update_stock(
        self, products: ProductService, widget: int
    ) -> None:
        """Adding increases stock, updating overwrites it."""
        assert (await products.add_stock(widget, 5)).stock_quantity == 15
        assert (await products.update_stock(widget, 0)).stock_quantity == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -1])
    async def test_quantity_must_be_positive(
        self, products: ProductService, widget: int, quantity: int
    ) -> None:
        """Add and reduce reject non-positive quantities."""
        with pytest.raises(CatalogValidationError):
            await products.reduce_stock(widget, quantity)
        with pytest.raises(CatalogValidationError):
            await products.add_stock(widget, quantity)

    @pytest.mark.asyncio
    async def test_update_rejects_negative(
        self, products: ProductService, widget: int
    ) -> None:
        with pytest.raises(CatalogValidationError):
            await products.update_stock(widget, -1)

    @pytest.mark.asyncio
    async def test_untracked_inventory(self, products: ProductService) -> None:
        """Stock cannot change for products that don't track inventory."""
        product = await products.create(
            ProductData(name="E-Book", price=Decimal("9.99"), track_inventory=False)
        )
        with pytest.raises(OperationNotAllowedError):
            await products.reduce_stock(product.id, 1)
        with pytest.raises(OperationNotAllowedError):
            await products.add_stock(product.id, 1)

    @pytest.mark.asyncio
    async def test_missing_product(self, products: ProductService) -> None:
        with pytest.raises(EntityNotFoundError):
            await products.reduce_stock(999, 1)

    @pytest.mark.asyncio
    async def test_statistics(self, products: ProductService, widget: int) -> None:
        """Statistics count featured, low and out of stock products."""
        await products.create(
            ProductData(
                name="Gadget", price=Decimal("5.00"), stock_quantity=2, featured=True
            )
        )
        await products.create(ProductData(name="Gizmo", price=Decimal("5.00")))

        stats = await products.statistics()
        assert stats.total_active == 3
        assert stats.total_featured == 1
        assert stats.total_low_stock == 2
        assert stats.total_out_of_stock == 1
