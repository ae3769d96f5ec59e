"""API schemas for the catalog query endpoint.

Pydantic models for the request envelope, per-operation arguments and
entity inputs. Wire names are camelCase; Python attributes snake_case.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from catalog_api.infrastructure.config import settings


class CamelModel(BaseModel):
    """Base model accepting camelCase wire names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# ============================================================================
# Envelope Schemas
# ============================================================================


class OperationRequest(BaseModel):
    """One named operation within a query request."""

    name: str = Field(..., min_length=1, description="Operation name, e.g. 'brands'")
    alias: str | None = Field(
        default=None, description="Key for the result, defaults to the name"
    )
    arguments: dict[str, Any] = Field(
        default_factory=dict, description="Operation arguments"
    )
    fields: list[str | dict[str, list[Any]]] = Field(
        default_factory=list,
        description="Requested output shape: field names and {relation: [subfields]}",
    )

    @property
    def key(self) -> str:
        return self.alias or self.name


class QueryRequest(BaseModel):
    """Batch of operations executed independently."""

    operations: list[OperationRequest] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_unique_keys(self) -> "QueryRequest":
        keys = [operation.key for operation in self.operations]
        duplicates = sorted({key for key in keys if keys.count(key) > 1})
        if duplicates:
            raise ValueError(f"Duplicate operation aliases: {', '.join(duplicates)}")
        return self


class OperationError(BaseModel):
    """Error entry for a failed operation."""

    path: list[str] = Field(..., description="Alias of the failed operation")
    code: str = Field(..., description="Machine-readable error code")
    classification: str = Field(..., description="Coarse error category")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)


class QueryResponse(BaseModel):
    """Per-alias results plus errors of the operations that failed."""

    data: dict[str, Any] = Field(default_factory=dict)
    errors: list[OperationError] = Field(default_factory=list)


# ============================================================================
# Entity Inputs
# ============================================================================


class BrandInput(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    logo_url: str | None = Field(default=None, max_length=255)
    website_url: str | None = Field(default=None, max_length=255)


class CategoryInput(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    slug: str | None = Field(default=None, max_length=100)
    image_url: str | None = Field(default=None, max_length=255)
    active: bool = True
    sort_order: int = 0
    parent_id: int | None = None


class ProductInput(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    sku: str | None = Field(default=None, max_length=100)
    slug: str | None = Field(default=None, max_length=200)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    compare_at_price: Decimal | None = Field(
        default=None, ge=0, max_digits=12, decimal_places=2
    )
    stock_quantity: int = Field(default=0, ge=0)
    low_stock_threshold: int = Field(default=5, ge=0)
    weight: Decimal | None = Field(default=None, ge=0, max_digits=11, decimal_places=3)
    weight_unit: str = Field(default="kg", max_length=50)
    active: bool = True
    featured: bool = False
    track_inventory: bool = True
    image_urls: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    category_id: int | None = None
    brand_id: int | None = None


# ============================================================================
# Operation Arguments
# ============================================================================


class NoArguments(CamelModel):
    pass


class PageArguments(CamelModel):
    page_index: int = Field(default=0, ge=0)
    page_size: int = Field(
        default=settings.default_page_size, ge=1, le=settings.max_page_size
    )


class IdArguments(CamelModel):
    id: int


class IdsArguments(CamelModel):
    ids: list[int]


class SlugArguments(CamelModel):
    slug: str = Field(..., min_length=1)


class SkuArguments(CamelModel):
    sku: str = Field(..., min_length=1)


class NameArguments(CamelModel):
    name: str = Field(..., min_length=1)


class SearchArguments(PageArguments):
    name_pattern: str = Field(..., min_length=1)


class RecentArguments(CamelModel):
    limit: int = Field(default=10, ge=1, le=settings.max_page_size)


class BrandProductsArguments(PageArguments):
    brand_id: int


class CategoryProductsArguments(PageArguments):
    category_id: int


class PriceRangeArguments(PageArguments):
    min_price: Decimal = Field(..., ge=0)
    max_price: Decimal = Field(..., ge=0)


class ChildCategoriesArguments(PageArguments):
    parent_id: int


class CategoryIdArguments(CamelModel):
    category_id: int


class HierarchyArguments(CamelModel):
    category_id: int
    depth: int | None = None


class MoveCategoryArguments(CamelModel):
    category_id: int
    new_parent_id: int | None = None


class SortOrderArguments(CamelModel):
    id: int
    sort_order: int


class FeaturedArguments(CamelModel):
    id: int
    featured: bool


class StockArguments(CamelModel):
    id: int
    quantity: int


class CreateBrandArguments(CamelModel):
    input: BrandInput


class UpdateBrandArguments(CamelModel):
    id: int
    input: BrandInput


class CreateCategoryArguments(CamelModel):
    input: CategoryInput


class UpdateCategoryArguments(CamelModel):
    id: int
    input: CategoryInput


class CreateProductArguments(CamelModel):
    input: ProductInput


class UpdateProductArguments(CamelModel):
    id: int
    input: ProductInput
