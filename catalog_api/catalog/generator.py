"""Catalog seed data generator with deterministic seeding.

Builds a catalog of brands, the embedded Google Product Taxonomy category
tree, and products for every leaf category. All writes go through the
ordinary brand, hierarchy and product services so generated rows obey the
same rules as rows created through the API. Re-running the generator
skips brands, categories and products that already exist.
"""

import hashlib
import random
from dataclasses import dataclass
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_api.catalog.hierarchy import CategoryData, CategoryHierarchy
from catalog_api.catalog.service import (
    BrandData,
    BrandService,
    ProductData,
    ProductService,
)
from catalog_api.catalog.taxonomy import TaxonomyNode, TaxonomyParser
from catalog_api.domain.slug import generate_slug

logger = structlog.get_logger()


# ============================================================================
# Constants
# ============================================================================

# Synthetic brand names (fictional companies)
BRANDS = [
    "Acme",
    "Contoso",
    "Northwind",
    "Fabrikam",
    "Tailwind",
    "Globex",
    "Initech",
    "Umbrella",
    "Stark",
    "Wayne",
]

# Price ranges by category keywords (in cents)
PRICE_RANGES: dict[str, tuple[int, int]] = {
    "Electronics": (2999, 199999),
    "Computers": (49999, 299999),
    "Laptops": (59999, 349999),
    "Tablets": (29999, 149999),
    "Mobile Phones": (19999, 149999),
    "Headphones": (2999, 39999),
    "Speakers": (4999, 79999),
    "Furniture": (9999, 299999),
    "Apparel & Accessories": (1999, 29999),
    "Shoes": (4999, 39999),
    "Toys & Games": (999, 9999),
    "Food, Beverages & Tobacco": (299, 4999),
    "Health & Beauty": (999, 14999),
    "Sporting Goods": (1999, 49999),
    "Home & Garden": (1999, 49999),
    "Office Supplies": (499, 19999),
    "default": (999, 9999),
}

# Product name templates by category keyword
PRODUCT_TEMPLATES: dict[str, list[str]] = {
    "Laptops": ["{brand} {adj} Laptop", "{brand} Notebook {adj}"],
    "Tablets": ["{brand} Tablet {adj}", "{brand} {adj} Pad"],
    "Mobile Phones": ["{brand} Phone {adj}", "{brand} Smartphone {adj}"],
    "Headphones": ["{brand} {adj} Headphones", "{brand} Wireless {adj} Earbuds"],
    "Speakers": ["{brand} {adj} Speaker", "{brand} Portable {adj} Speaker"],
    "Shirts & Tops": ["{brand} {adj} T-Shirt", "{brand} Cotton {adj} Shirt"],
    "Pants": ["{brand} {adj} Jeans", "{brand} {adj} Chinos"],
    "Shoes": ["{brand} {adj} Sneakers", "{brand} Running {adj}"],
    "Chairs": ["{brand} {adj} Office Chair", "{brand} Ergonomic {adj} Chair"],
    "Tables": ["{brand} {adj} Table", "{brand} {adj} Desk"],
    "Board Games": ["{brand} {adj} Board Game", "{brand} Family {adj} Game"],
    "Video Games": ["{brand} {adj} Adventure", "{brand} {adj} Legends"],
    "default": ["{brand} {adj} {category}", "{brand} Premium {adj} {category}"],
}

ADJECTIVES = [
    "Premium", "Elite", "Pro", "Ultra", "Max", "Plus",
    "Classic", "Essential", "Advanced", "Smart", "Dynamic",
    "Flex", "Prime", "Apex", "Core", "Nova", "Titan",
]

# Categories whose products are sold by weight
WEIGHED_CATEGORIES = {"Beverages", "Food Items", "Bird Supplies", "Cat Supplies", "Dog Supplies"}


# ============================================================================
# Generator Configuration
# ============================================================================


@dataclass
class GeneratorConfig:
    """Configuration for catalog generation.

    Attributes:
        seed: Random seed for reproducibility.
        brand_count: Number of brands taken from ``BRANDS``.
        products_per_category: Number of products per leaf category.
        featured_ratio: Share of products marked featured.
        out_of_stock_ratio: Share of products generated without stock.
    """

    seed: int = 42
    brand_count: int = len(BRANDS)
    products_per_category: int = 10
    featured_ratio: float = 0.1
    out_of_stock_ratio: float = 0.1

    @classmethod
    def small(cls) -> "GeneratorConfig":
        """Config for a small catalog (~150 products)."""
        return cls(seed=42, brand_count=5, products_per_category=5)

    @classmethod
    def full(cls) -> "GeneratorConfig":
        """Config for a full catalog (~500 products)."""
        return cls(seed=42, brand_count=len(BRANDS), products_per_category=15)


@dataclass
class GenerationReport:
    """Counts of rows written by a generator run."""

    brands_created: int = 0
    categories_created: int = 0
    products_created: int = 0
    skipped: int = 0


# ============================================================================
# Catalog Generator
# ============================================================================


class CatalogGenerator:
    """Generates and stores a catalog with deterministic seeding.

    Example usage:
        generator = CatalogGenerator(async_session_factory, GeneratorConfig.small())
        report = await generator.run()
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: GeneratorConfig,
    ) -> None:
        self.session_factory = session_factory
        self.config = config
        self.taxonomy = TaxonomyParser()
        self.taxonomy.parse_embedded()

    @property
    def brand_names(self) -> list[str]:
        return BRANDS[: self.config.brand_count]

    @property
    def expected_product_count(self) -> int:
        return len(self.taxonomy.get_leaf_categories()) * self.config.products_per_category

    # ========================================================================
    # Deterministic data
    # ========================================================================

    def _rng(self, *args: str | int) -> random.Random:
        """Create an RNG seeded from the config seed and the given values."""
        data = "|".join(str(a) for a in (self.config.seed, *args))
        digest = hashlib.md5(data.encode()).digest()
        return random.Random(int.from_bytes(digest[:4], "big"))

    def brand_data(self, name: str) -> BrandData:
        domain = generate_slug(name)
        return BrandData(
            name=name,
            description=f"{name} products for every day.",
            logo_url=f"https://picsum.photos/seed/{domain}/200/200",
            website_url=f"https://www.{domain}.example",
        )

    def category_data(self, node: TaxonomyNode, sort_order: int) -> CategoryData:
        return CategoryData(
            name=node.name,
            description=node.full_path,
            sort_order=sort_order,
        )

    def plan_product(self, node: TaxonomyNode, index: int) -> tuple[str, ProductData]:
        """Generate one product for a leaf category.

        The result depends only on the config seed, the node and the index.

        Args:
            node: Leaf taxonomy node.
            index: Product index within the category.

        Returns:
            Tuple of (brand name, product data without references).
        """
        rng = self._rng(node.id, index)

        brand = rng.choice(self.brand_names)
        adjective = rng.choice(ADJECTIVES)
        template = rng.choice(_lookup(PRODUCT_TEMPLATES, node))
        name = template.format(brand=brand, adj=adjective, category=node.name)

        prefix = "".join(c for c in node.name if c.isalpha())[:3].upper() or "PRD"
        sku = f"{prefix}-{node.id:04d}-{index:03d}"

        low, high = _lookup(PRICE_RANGES, node)
        cents = (rng.randint(low, high) // 100) * 100 + 99
        price = Decimal(cents) / 100
        compare_at_price = None
        if rng.random() < 0.25:
            compare_at_price = (price * Decimal("1.2")).quantize(Decimal("0.01"))

        in_stock = rng.random() >= self.config.out_of_stock_ratio
        weight = None
        weight_unit = "kg"
        if node.name in WEIGHED_CATEGORIES:
            weight = Decimal(rng.randint(250, 5000)) / 1000

        image_seed = hashlib.md5(sku.encode()).hexdigest()[:8]
        data = ProductData(
            name=name,
            slug=generate_slug(f"{name} {sku}"),
            sku=sku,
            description=(
                f"{adjective} {node.name.lower()} from {brand}. "
                f"Filed under {node.full_path}."
            ),
            price=price,
            compare_at_price=compare_at_price,
            stock_quantity=rng.randint(1, 200) if in_stock else 0,
            low_stock_threshold=5,
            weight=weight,
            weight_unit=weight_unit,
            featured=rng.random() < self.config.featured_ratio,
            image_urls=[
                f"https://picsum.photos/seed/{image_seed}-{n}/400/400"
                for n in range(rng.randint(1, 3))
            ],
            tags=[generate_slug(node.name), adjective.lower()],
        )
        return brand, data

    # ========================================================================
    # Storage
    # ========================================================================

    async def run(self) -> GenerationReport:
        """Write brands, categories and products.

        Brands and categories are written in one transaction each,
        products in one transaction per leaf category.

        Returns:
            Counts of created and skipped rows.
        """
        report = GenerationReport()
        brand_ids = await self._store_brands(report)
        category_ids = await self._store_categories(report)

        for node in self.taxonomy.get_leaf_categories():
            category_id = category_ids.get(node.id)
            if category_id is None:
                continue
            await self._store_products(node, category_id, brand_ids, report)

        logger.info(
            "Catalog generated",
            seed=self.config.seed,
            brands=report.brands_created,
            categories=report.categories_created,
            products=report.products_created,
            skipped=report.skipped,
        )
        return report

    async def _store_brands(self, report: GenerationReport) -> dict[str, int]:
        brand_ids: dict[str, int] = {}
        async with self.session_factory() as session, session.begin():
            service = BrandService(session)
            for name in self.brand_names:
                existing = await service.find_by_name(name)
                if existing is not None:
                    brand_ids[name] = existing.id
                    report.skipped += 1
                    continue
                brand = await service.create(self.brand_data(name))
                brand_ids[name] = brand.id
                report.brands_created += 1
        return brand_ids

    async def _store_categories(self, report: GenerationReport) -> dict[int, int]:
        """Create the taxonomy tree parents-first.

        Returns:
            Map of taxonomy ID to category ID.
        """
        category_ids: dict[int, int] = {}
        async with self.session_factory() as session, session.begin():
            hierarchy = CategoryHierarchy(session)
            for node in self.taxonomy.walk():
                existing = await hierarchy.find_by_name(node.name)
                if existing is not None:
                    category_ids[node.id] = existing.id
                    report.skipped += 1
                    continue

                parent_id = category_ids.get(node.parent_id) if node.parent_id else None
                siblings = (
                    self.taxonomy.get_by_id(node.parent_id).children
                    if node.parent_id
                    else self.taxonomy.get_root_categories()
                )
                category = await hierarchy.create(
                    self.category_data(node, siblings.index(node)),
                    parent_id=parent_id,
                )
                category_ids[node.id] = category.id
                report.categories_created += 1
        return category_ids

    async def _store_products(
        self,
        node: TaxonomyNode,
        category_id: int,
        brand_ids: dict[str, int],
        report: GenerationReport,
    ) -> None:
        async with self.session_factory() as session, session.begin():
            service = ProductService(session)
            for index in range(self.config.products_per_category):
                brand, data = self.plan_product(node, index)
                if await service.find_by_sku(data.sku) is not None:
                    report.skipped += 1
                    continue
                data.brand_id = brand_ids[brand]
                data.category_id = category_id
                await service.create(data)
                report.products_created += 1


def _lookup(table: dict, node: TaxonomyNode):
    """Return the entry for the most specific path part of the node."""
    for part in reversed(node.path_parts):
        if part in table:
            return table[part]
    return table["default"]
