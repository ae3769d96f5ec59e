"""Selective-fetch query layer.

Analyzes requested output shapes and loads exactly the columns and
related rows they need.
"""

from catalog_api.query.fields import (
    BrandField,
    CategoryField,
    CollectionField,
    EntityKind,
    FieldSelection,
    ProductField,
    Relation,
    analyze_fields,
)
from catalog_api.query.listings import CatalogListings
from catalog_api.query.planner import (
    FetchPlan,
    FetchResult,
    FetchStrategy,
    PageRequest,
    QueryPlanner,
    plan_fetch,
)
from catalog_api.query.projections import BrandSummary, CategorySummary, ProductSummary

__all__ = [
    # Fields
    "BrandField",
    "CategoryField",
    "CollectionField",
    "EntityKind",
    "FieldSelection",
    "ProductField",
    "Relation",
    "analyze_fields",
    # Planner
    "FetchPlan",
    "FetchResult",
    "FetchStrategy",
    "PageRequest",
    "QueryPlanner",
    "plan_fetch",
    # Projections
    "BrandSummary",
    "CategorySummary",
    "ProductSummary",
    # Listings
    "CatalogListings",
]
