"""Field-selection analyzer.

Normalizes the output shape a caller asks for into a ``FieldSelection``:
which scalar columns to read, which relations to load and which element
collections to attach. Every name is checked against closed enumerations
for the entity kind; unknown names are dropped rather than rejected.

Example usage:
    selection = analyze_fields(
        EntityKind.PRODUCT,
        ["name", "price", {"brand": ["name"]}, "__typename"],
    )
    selection.is_only_basic_fields()  # False
    selection.relations  # frozenset({Relation.BRAND})
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

import structlog

logger = structlog.get_logger()

# Names starting with this prefix are protocol metadata, never data.
META_PREFIX = "__"


# ============================================================================
# Closed Enumerations
# ============================================================================


class EntityKind(str, Enum):
    """Kinds of catalog entity a selection can target."""

    BRAND = "brand"
    CATEGORY = "category"
    PRODUCT = "product"

    def scalar_fields(self) -> type["ScalarFieldEnum"]:
        return _SCALAR_ENUMS[self]

    def valid_relations(self) -> frozenset["Relation"]:
        return _VALID_RELATIONS[self]


class Relation(str, Enum):
    """Relations reachable from an entity."""

    BRAND = "brand"
    CATEGORY = "category"
    PARENT = "parent"
    CHILDREN = "children"
    PRODUCTS = "products"

    @property
    def target(self) -> EntityKind:
        """Kind of entity at the other end of the relation."""
        return _RELATION_TARGETS[self]

    @property
    def is_to_many(self) -> bool:
        return self in {Relation.CHILDREN, Relation.PRODUCTS}


class CollectionField(str, Enum):
    """Ordered element collections owned by a product."""

    IMAGE_URLS = "imageUrls"
    TAGS = "tags"

    @property
    def attribute(self) -> str:
        return _COLLECTION_ATTRIBUTES[self]


class _ScalarField(str, Enum):
    """Scalar output field with an explicit storage mapping.

    ``attribute`` is the Python attribute rendered for the field and
    ``columns`` the storage columns that must be read to compute it.
    """

    @property
    def attribute(self) -> str:
        return _snake_case(self.value)

    @property
    def columns(self) -> tuple[str, ...]:
        return _COMPUTED_COLUMNS.get(self, (self.attribute,))


class BrandField(_ScalarField):
    ID = "id"
    NAME = "name"
    DESCRIPTION = "description"
    LOGO_URL = "logoUrl"
    WEBSITE_URL = "websiteUrl"
    ACTIVE = "active"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


class CategoryField(_ScalarField):
    ID = "id"
    NAME = "name"
    SLUG = "slug"
    DESCRIPTION = "description"
    IMAGE_URL = "imageUrl"
    ACTIVE = "active"
    SORT_ORDER = "sortOrder"
    PARENT_ID = "parentId"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


class ProductField(_ScalarField):
    ID = "id"
    NAME = "name"
    DESCRIPTION = "description"
    SKU = "sku"
    SLUG = "slug"
    PRICE = "price"
    COMPARE_AT_PRICE = "compareAtPrice"
    STOCK_QUANTITY = "stockQuantity"
    LOW_STOCK_THRESHOLD = "lowStockThreshold"
    WEIGHT = "weight"
    WEIGHT_UNIT = "weightUnit"
    ACTIVE = "active"
    FEATURED = "featured"
    TRACK_INVENTORY = "trackInventory"
    BRAND_ID = "brandId"
    CATEGORY_ID = "categoryId"
    IS_IN_STOCK = "isInStock"
    IS_LOW_STOCK = "isLowStock"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


ScalarFieldEnum = Union[BrandField, CategoryField, ProductField]


def _snake_case(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


# Mappings (defined outside the enums to avoid Enum restrictions)
_SCALAR_ENUMS: dict[EntityKind, Any] = {
    EntityKind.BRAND: BrandField,
    EntityKind.CATEGORY: CategoryField,
    EntityKind.PRODUCT: ProductField,
}

_VALID_RELATIONS: dict[EntityKind, frozenset[Relation]] = {
    EntityKind.PRODUCT: frozenset({Relation.BRAND, Relation.CATEGORY}),
    EntityKind.BRAND: frozenset({Relation.PRODUCTS}),
    EntityKind.CATEGORY: frozenset(
        {Relation.PARENT, Relation.CHILDREN, Relation.PRODUCTS}
    ),
}

_RELATION_TARGETS: dict[Relation, EntityKind] = {
    Relation.BRAND: EntityKind.BRAND,
    Relation.CATEGORY: EntityKind.CATEGORY,
    Relation.PARENT: EntityKind.CATEGORY,
    Relation.CHILDREN: EntityKind.CATEGORY,
    Relation.PRODUCTS: EntityKind.PRODUCT,
}

_COLLECTION_ATTRIBUTES: dict[CollectionField, str] = {
    CollectionField.IMAGE_URLS: "image_urls",
    CollectionField.TAGS: "tags",
}

_COMPUTED_COLUMNS: dict[Any, tuple[str, ...]] = {
    ProductField.IS_IN_STOCK: ("track_inventory", "stock_quantity"),
    ProductField.IS_LOW_STOCK: (
        "track_inventory",
        "stock_quantity",
        "low_stock_threshold",
    ),
}

# Default shape for a relation requested without subfields.
_BARE_RELATION_FIELDS = ("id", "name")


# ============================================================================
# Field Selection
# ============================================================================


@dataclass(frozen=True)
class FieldSelection:
    """Normalized output shape for one entity kind.

    Attributes:
        kind: Entity kind the selection targets.
        scalars: Scalar fields in request order, identity first.
        relations: Requested relations.
        collections: Requested element collections.
        nested: Scalar-only selection for each requested relation.
        ignored: Requested names that were dropped.
    """

    kind: EntityKind
    scalars: tuple[ScalarFieldEnum, ...]
    relations: frozenset[Relation] = frozenset()
    collections: frozenset[CollectionField] = frozenset()
    nested: Mapping[Relation, "FieldSelection"] = field(default_factory=dict)
    ignored: tuple[str, ...] = ()

    def has_relationship_fields(self) -> bool:
        """Check whether any relation was requested."""
        return bool(self.relations)

    def is_only_basic_fields(self) -> bool:
        """Check whether only scalar fields were requested.

        Element collections count as non-basic: they live in their own
        tables and cannot be projected.
        """
        return not self.relations and not self.collections

    @property
    def columns(self) -> tuple[str, ...]:
        """Storage columns needed for the scalar fields, without repeats."""
        columns: dict[str, None] = {}
        for scalar in self.scalars:
            for column in scalar.columns:
                columns[column] = None
        return tuple(columns)


# ============================================================================
# Analyzer
# ============================================================================


def analyze_fields(
    kind: EntityKind,
    fields: Iterable[str | Mapping[str, Any]] | None,
    allow_relations: bool = True,
) -> FieldSelection:
    """Normalize a requested output shape.

    Args:
        kind: Entity kind the shape is for.
        fields: Field names, and ``{relation: [subfields]}`` mappings for
            relations with an explicit sub-shape.
        allow_relations: False for nested shapes, which are scalar-only.

    Returns:
        Immutable selection. The identity field is always included.
    """
    scalar_enum = kind.scalar_fields()
    scalars: dict[ScalarFieldEnum, None] = {scalar_enum("id"): None}
    relations: set[Relation] = set()
    collections: set[CollectionField] = set()
    nested: dict[Relation, FieldSelection] = {}
    ignored: list[str] = []

    for name, subfields in _iter_requested(fields or ()):
        if name.startswith(META_PREFIX):
            continue

        scalar = _lookup(scalar_enum, name)
        if scalar is not None and subfields is None:
            scalars[scalar] = None
            continue

        collection = _lookup(CollectionField, name)
        if (
            collection is not None
            and kind is EntityKind.PRODUCT
            and allow_relations
            and subfields is None
        ):
            collections.add(collection)
            continue

        relation = _lookup(Relation, name)
        if relation is not None and allow_relations and relation in kind.valid_relations():
            relations.add(relation)
            nested[relation] = analyze_fields(
                relation.target,
                _BARE_RELATION_FIELDS if subfields is None else subfields,
                allow_relations=False,
            )
            continue

        ignored.append(name)

    if ignored:
        logger.debug("Ignoring unknown fields", kind=kind.value, fields=ignored)

    return FieldSelection(
        kind=kind,
        scalars=tuple(scalars),
        relations=frozenset(relations),
        collections=frozenset(collections),
        nested=nested,
        ignored=tuple(ignored),
    )


def _iter_requested(
    fields: Iterable[str | Mapping[str, Any]],
) -> Iterable[tuple[str, Any]]:
    for item in fields:
        if isinstance(item, str):
            yield item, None
        elif isinstance(item, Mapping):
            for name, subfields in item.items():
                yield str(name), list(subfields or ())


def _lookup(enum_cls: Any, name: str) -> Any:
    try:
        return enum_cls(name)
    except ValueError:
        return None
