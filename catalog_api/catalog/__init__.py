"""Product catalog store.

Provides the catalog models and repositories, the brand and product
services, the category hierarchy engine and the seed data generator.
"""

from catalog_api.catalog.generator import CatalogGenerator, GeneratorConfig
from catalog_api.catalog.hierarchy import CategoryData, CategoryHierarchy
from catalog_api.catalog.models import Brand, Category, Product
from catalog_api.catalog.repository import (
    BrandRepository,
    CategoryRepository,
    ProductRepository,
)
from catalog_api.catalog.service import BrandData, BrandService, ProductData, ProductService
from catalog_api.catalog.taxonomy import TaxonomyNode, TaxonomyParser

__all__ = [
    # Models
    "Brand",
    "Category",
    "Product",
    # Repositories
    "BrandRepository",
    "CategoryRepository",
    "ProductRepository",
    # Services
    "BrandData",
    "BrandService",
    "ProductData",
    "ProductService",
    # Hierarchy
    "CategoryData",
    "CategoryHierarchy",
    # Generator
    "CatalogGenerator",
    "GeneratorConfig",
    "TaxonomyNode",
    "TaxonomyParser",
]
