"""Rendering of fetched rows into response payloads.

Only the fields of the selection are read from each row, so rendering
never touches an attribute the planner did not load.
"""

from dataclasses import asdict, is_dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic.alias_generators import to_camel

from catalog_api.query.fields import FieldSelection
from catalog_api.query.planner import FetchResult


def _value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def render_item(
    item: Any,
    selection: FieldSelection,
    related: dict[Any, dict[int, list[Any]]] | None = None,
) -> dict[str, Any]:
    """Render one entity or summary record.

    Args:
        item: Loaded entity or summary.
        selection: Requested shape.
        related: Batched one-to-many rows keyed by relation then owner id.

    Returns:
        Dict keyed by wire field names.
    """
    payload = {
        scalar.value: _value(getattr(item, scalar.attribute))
        for scalar in selection.scalars
    }
    for collection in sorted(selection.collections, key=lambda c: c.value):
        payload[collection.value] = list(getattr(item, collection.attribute))

    for relation in sorted(selection.relations, key=lambda r: r.value):
        nested = selection.nested[relation]
        if relation.is_to_many:
            rows = (related or {}).get(relation, {}).get(item.id, [])
            payload[relation.value] = [render_item(row, nested) for row in rows]
        else:
            target = getattr(item, relation.value)
            payload[relation.value] = (
                render_item(target, nested) if target is not None else None
            )
    return payload


def render_many(result: FetchResult, selection: FieldSelection) -> list[dict[str, Any]]:
    return [render_item(item, selection, result.related) for item in result.items]


def render_one(result: FetchResult, selection: FieldSelection) -> dict[str, Any] | None:
    item = result.first()
    if item is None:
        return None
    return render_item(item, selection, result.related)


def render_value(value: Any) -> Any:
    """Render a plain operation result such as statistics or a count."""
    if is_dataclass(value) and not isinstance(value, type):
        return {to_camel(key): _value(v) for key, v in asdict(value).items()}
    return _value(value)
