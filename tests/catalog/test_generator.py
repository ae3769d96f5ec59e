"""Tests for catalog seed data generator."""

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_api.catalog.generator import (
    BRANDS,
    CatalogGenerator,
    GeneratorConfig,
)
from catalog_api.catalog.hierarchy import CategoryHierarchy
from catalog_api.catalog.repository import BrandRepository, ProductRepository
from catalog_api.catalog.service import ProductService


class TestGeneratorConfig:
    """Tests for GeneratorConfig."""

    def test_small_config(self) -> None:
        config = GeneratorConfig.small()
        assert config.products_per_category == 5
        assert config.brand_count == 5

    def test_full_config(self) -> None:
        """Full config creates a larger catalog."""
        config = GeneratorConfig.full()
        assert config.products_per_category > GeneratorConfig.small().products_per_category
        assert config.brand_count == len(BRANDS)


class TestProductPlanning:
    """Tests for deterministic product data."""

    @pytest.fixture
    def generator(self) -> CatalogGenerator:
        return CatalogGenerator(session_factory=None, config=GeneratorConfig.small())

    def test_same_seed_same_products(self) -> None:
        """The same seed yields the same product for a node and index."""
        first = CatalogGenerator(None, GeneratorConfig(seed=42))
        second = CatalogGenerator(None, GeneratorConfig(seed=42))
        node = first.taxonomy.get_by_id(328)
        assert first.plan_product(node, 0) == second.plan_product(node, 0)

    def test_different_seeds_differ(self) -> None:
        first = CatalogGenerator(None, GeneratorConfig(seed=42))
        second = CatalogGenerator(None, GeneratorConfig(seed=99))
        names_first = {
            first.plan_product(node, i)[1].name
            for node in first.taxonomy.get_leaf_categories()
            for i in range(2)
        }
        names_second = {
            second.plan_product(node, i)[1].name
            for node in second.taxonomy.get_leaf_categories()
            for i in range(2)
        }
        assert names_first != names_second

    def test_product_fields(self, generator: CatalogGenerator) -> None:
        """Planned products are valid create inputs."""
        node = generator.taxonomy.get_by_id(3622)  # Headphones
        brand, data = generator.plan_product(node, 3)
        assert brand in generator.brand_names
        assert data.sku == "HEA-3622-003"
        assert data.price > 0
        assert data.price == data.price.quantize(Decimal("0.01"))
        assert data.slug.endswith("hea-3622-003")
        assert 1 <= len(data.image_urls) <= 3
        assert data.tags[0] == "headphones"
        assert data.brand_id is None
        assert data.category_id is None

    def test_expected_count(self, generator: CatalogGenerator) -> None:
        leaves = len(generator.taxonomy.get_leaf_categories())
        assert generator.expected_product_count == leaves * 5


class TestCatalogGeneration:
    """Tests for storing a generated catalog."""

    @pytest.fixture
    def config(self) -> GeneratorConfig:
        return GeneratorConfig(seed=7, brand_count=3, products_per_category=1)

    @pytest.mark.asyncio
    async def test_run_creates_catalog(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: GeneratorConfig,
    ) -> None:
        """Brands, the taxonomy tree and one product per leaf are stored."""
        generator = CatalogGenerator(session_factory, config)
        report = await generator.run()

        assert report.brands_created == 3
        assert report.categories_created == len(generator.taxonomy.walk())
        assert report.products_created == generator.expected_product_count
        assert report.skipped == 0

        async with session_factory() as session, session.begin():
            hierarchy = CategoryHierarchy(session)
            laptops = await hierarchy.find_by_name("Laptops")
            path = await hierarchy.path(laptops.id)
            names = [(await hierarchy.get(category_id)).name for category_id in path]
            assert names == ["Electronics", "Computers", "Laptops"]

            product = await ProductService(session).find_by_sku("LAP-0328-000")
            assert product is not None
            assert product.category_id == laptops.id
            assert product.brand_id is not None
            assert await BrandRepository(session).count_active() == 3

    @pytest.mark.asyncio
    async def test_rerun_skips_existing_rows(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: GeneratorConfig,
    ) -> None:
        """A second run creates nothing new."""
        await CatalogGenerator(session_factory, config).run()
        report = await CatalogGenerator(session_factory, config).run()

        assert report.brands_created == 0
        assert report.categories_created == 0
        assert report.products_created == 0
        assert report.skipped > 0

        async with session_factory() as session, session.begin():
            total = await ProductRepository(session).count_active()
        assert total == CatalogGenerator(None, config).expected_product_count
