"""Projection records returned by the PROJECTION fetch strategy.

Summaries are plain frozen records built from a column subset. They
carry no relation attributes at all, so nothing downstream can trigger a
load of related rows. Columns that were not selected stay None.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.engine import RowMapping


@dataclass(frozen=True)
class BrandSummary:
    id: int
    name: str | None = None
    description: str | None = None
    logo_url: str | None = None
    website_url: str | None = None
    active: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class CategorySummary:
    id: int
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    image_url: str | None = None
    active: bool | None = None
    sort_order: int | None = None
    parent_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ProductSummary:
    """Product columns without brand, category or collections."""

    id: int
    name: str | None = None
    description: str | None = None
    sku: str | None = None
    slug: str | None = None
    price: Decimal | None = None
    compare_at_price: Decimal | None = None
    stock_quantity: int | None = None
    low_stock_threshold: int | None = None
    weight: Decimal | None = None
    weight_unit: str | None = None
    active: bool | None = None
    featured: bool | None = None
    track_inventory: bool | None = None
    brand_id: int | None = None
    category_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_in_stock(self) -> bool:
        return not self.track_inventory or (self.stock_quantity or 0) > 0

    @property
    def is_low_stock(self) -> bool:
        return bool(self.track_inventory) and (self.stock_quantity or 0) <= (
            self.low_stock_threshold or 0
        )


Summary = BrandSummary | CategorySummary | ProductSummary


def build_summary(summary_cls: type[Any], row: RowMapping) -> Any:
    """Build a summary from a result row, ignoring helper columns.

    Args:
        summary_cls: Summary record type.
        row: Row mapping keyed by column name.

    Returns:
        Summary instance.
    """
    names = {f.name for f in fields(summary_cls)}
    return summary_cls(**{key: value for key, value in row.items() if key in names})
