"""Fetch-strategy planner.

Turns a ``FieldSelection`` into exactly the queries needed to answer it.

Strategies:
    PROJECTION: only scalar fields were asked for. Select just those
        columns (plus id) and return frozen summary records.
    ENTITY_WITH_JOINS: relations were asked for. Load whole rows with
        ``joinedload`` for each requested many-to-one relation,
        ``selectinload`` for requested element collections and one
        batched ``IN`` query per requested one-to-many relation.
    ENTITY: whole rows without relation loads. Reached only when element
        collections are requested without relations; those collections
        are batch-loaded with ``selectinload``.

Every listing ends its ORDER BY with the identity column, so results are
deterministic for a fixed selection and data snapshot.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from catalog_api.catalog.models import Brand, Category, Product
from catalog_api.domain.paging import PageRequest
from catalog_api.infrastructure.database import storage_errors
from catalog_api.query.fields import (
    CollectionField,
    EntityKind,
    FieldSelection,
    Relation,
)
from catalog_api.query.projections import (
    BrandSummary,
    CategorySummary,
    ProductSummary,
    build_summary,
)

logger = structlog.get_logger()

__all__ = [
    "FetchPlan",
    "FetchResult",
    "FetchStrategy",
    "PageRequest",
    "QueryPlanner",
    "plan_fetch",
]


class FetchStrategy(str, Enum):
    """How rows for a selection are loaded."""

    PROJECTION = "projection"
    ENTITY = "entity"
    ENTITY_WITH_JOINS = "entity_with_joins"


MODELS: dict[EntityKind, Any] = {
    EntityKind.BRAND: Brand,
    EntityKind.CATEGORY: Category,
    EntityKind.PRODUCT: Product,
}

SUMMARIES: dict[EntityKind, Any] = {
    EntityKind.BRAND: BrandSummary,
    EntityKind.CATEGORY: CategorySummary,
    EntityKind.PRODUCT: ProductSummary,
}

# Many-to-one relations, loaded in the main statement.
_JOINED: dict[Relation, Any] = {
    Relation.BRAND: Product.brand,
    Relation.CATEGORY: Product.category,
    Relation.PARENT: Category.parent,
}

_COLLECTIONS: dict[CollectionField, Any] = {
    CollectionField.IMAGE_URLS: Product.images,
    CollectionField.TAGS: Product.tag_rows,
}

# One-to-many relations: (owner kind, related row, owner foreign key, order).
_BATCHED: dict[tuple[EntityKind, Relation], tuple[Any, Any, tuple[Any, ...]]] = {
    (EntityKind.CATEGORY, Relation.CHILDREN): (
        Category,
        Category.parent_id,
        (Category.sort_order, Category.name),
    ),
    (EntityKind.CATEGORY, Relation.PRODUCTS): (
        Product,
        Product.category_id,
        (Product.name,),
    ),
    (EntityKind.BRAND, Relation.PRODUCTS): (
        Product,
        Product.brand_id,
        (Product.name,),
    ),
}


@dataclass(frozen=True)
class FetchPlan:
    """Decided loading strategy for one selection.

    Attributes:
        kind: Entity kind being fetched.
        strategy: Chosen strategy.
        columns: Columns to select (PROJECTION only).
        joins: Many-to-one relations to join-load.
        collections: Element collections to select-in load.
        batched: One-to-many relations to load with one IN query each.
    """

    kind: EntityKind
    strategy: FetchStrategy
    columns: tuple[str, ...] = ()
    joins: tuple[Relation, ...] = ()
    collections: tuple[CollectionField, ...] = ()
    batched: tuple[Relation, ...] = ()


@dataclass
class FetchResult:
    """Rows loaded for a plan.

    Attributes:
        plan: Plan that produced the result.
        items: Entities or summary records, in query order.
        related: For each batched relation, related summaries keyed by
            owner id.
    """

    plan: FetchPlan
    items: list[Any]
    related: dict[Relation, dict[int, list[Any]]] = field(default_factory=dict)

    def first(self) -> Any | None:
        return self.items[0] if self.items else None


def plan_fetch(selection: FieldSelection) -> FetchPlan:
    """Choose the fetch strategy for a selection.

    Pure function of the selection.
    """
    if selection.is_only_basic_fields():
        return FetchPlan(
            kind=selection.kind,
            strategy=FetchStrategy.PROJECTION,
            columns=selection.columns,
        )

    collections = tuple(sorted(selection.collections, key=lambda c: c.value))
    if selection.has_relationship_fields():
        relations = sorted(selection.relations, key=lambda r: r.value)
        return FetchPlan(
            kind=selection.kind,
            strategy=FetchStrategy.ENTITY_WITH_JOINS,
            joins=tuple(r for r in relations if not r.is_to_many),
            collections=collections,
            batched=tuple(r for r in relations if r.is_to_many),
        )

    return FetchPlan(
        kind=selection.kind,
        strategy=FetchStrategy.ENTITY,
        collections=collections,
    )


class QueryPlanner:
    """Executes fetch plans against a session.

    Example usage:
        planner = QueryPlanner(session)
        result = await planner.fetch(
            EntityKind.PRODUCT,
            analyze_fields(EntityKind.PRODUCT, ["id", "name", "price"]),
            criteria=[Product.active.is_(True)],
            order_by=[Product.name],
            page=PageRequest(0, 20),
        )
        result.plan.strategy  # FetchStrategy.PROJECTION
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize planner with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def fetch(
        self,
        kind: EntityKind,
        selection: FieldSelection,
        criteria: Sequence[Any] = (),
        order_by: Sequence[Any] = (),
        page: PageRequest | None = None,
    ) -> FetchResult:
        """Load rows matching ``criteria`` in the shape of ``selection``.

        Args:
            kind: Entity kind to load.
            selection: Requested output shape.
            criteria: WHERE clauses.
            order_by: Ordering; the identity column is always appended.
            page: Page to return, all rows when None.

        Returns:
            Loaded rows plus any batched related rows.

        Raises:
            StorageError: If the persistence engine fails.
        """
        plan = plan_fetch(selection)
        model = MODELS[kind]
        statement = self._build_statement(plan, model)
        statement = statement.where(*criteria).order_by(*order_by, model.id)
        if page is not None:
            statement = statement.offset(page.offset).limit(page.limit)

        logger.debug(
            "Executing fetch plan",
            kind=kind.value,
            strategy=plan.strategy.value,
            columns=plan.columns,
            joins=[r.value for r in plan.joins],
            batched=[r.value for r in plan.batched],
        )

        with storage_errors(f"fetch_{kind.value}"):
            result = await self.session.execute(statement)
            if plan.strategy is FetchStrategy.PROJECTION and plan.columns:
                summary_cls = SUMMARIES[kind]
                items = [build_summary(summary_cls, row) for row in result.mappings()]
            else:
                items = list(result.scalars().unique().all())

        related = {}
        for relation in plan.batched:
            related[relation] = await self._load_related(
                kind, relation, selection.nested[relation], [item.id for item in items]
            )
        return FetchResult(plan=plan, items=items, related=related)

    async def fetch_by_ids(
        self,
        kind: EntityKind,
        selection: FieldSelection,
        ids: Sequence[int],
    ) -> FetchResult:
        """Load rows for an ID list, preserving the list's order.

        IDs without a row are skipped.
        """
        if not ids:
            return FetchResult(plan=plan_fetch(selection), items=[])
        model = MODELS[kind]
        result = await self.fetch(kind, selection, criteria=[model.id.in_(list(ids))])
        by_id = {item.id: item for item in result.items}
        result.items = [by_id[i] for i in ids if i in by_id]
        return result

    def _build_statement(self, plan: FetchPlan, model: Any) -> Any:
        if plan.strategy is FetchStrategy.PROJECTION:
            columns = [getattr(model, name) for name in plan.columns]
            if not columns:
                return select(model)
            return select(*columns)

        options = [joinedload(_JOINED[relation]) for relation in plan.joins]
        options.extend(selectinload(_COLLECTIONS[c]) for c in plan.collections)
        return select(model).options(*options)

    async def _load_related(
        self,
        kind: EntityKind,
        relation: Relation,
        nested: FieldSelection,
        owner_ids: list[int],
    ) -> dict[int, list[Any]]:
        """Load one-to-many related rows for every owner in one query.

        Only active related rows are returned, in listing order.
        """
        grouped: dict[int, list[Any]] = {owner_id: [] for owner_id in owner_ids}
        if not owner_ids:
            return grouped

        related_model, owner_key, ordering = _BATCHED[(kind, relation)]
        columns = [getattr(related_model, name) for name in nested.columns]
        statement = (
            select(owner_key.label("owner_id"), *columns)
            .where(owner_key.in_(owner_ids), related_model.active.is_(True))
            .order_by(*ordering, related_model.id)
        )
        summary_cls = SUMMARIES[relation.target]

        with storage_errors(f"fetch_{kind.value}_{relation.value}"):
            result = await self.session.execute(statement)
            for row in result.mappings():
                grouped[row["owner_id"]].append(build_summary(summary_cls, row))
        return grouped
