"""Sibling ordering helpers for models with ``order_index``."""

from typing import Sequence, TypeVar
from uuid import UUID

from app.core.exceptions import NotFoundError, ValidationError

OrderedT = TypeVar("OrderedT")


def move_item(items: Sequence[OrderedT], item_id: UUID, new_index: int) -> list[OrderedT]:
    """Move one item to ``new_index`` and renumber all siblings 0..n-1.

    ``items`` must already be sorted by their current order. Indexes past
    the end are clamped to the last position.
    """
    if new_index < 0:
        raise ValidationError(
            "Order index must not be negative",
            errors=[{"field": "new_index", "value": new_index}],
        )

    ordered = list(items)
    position = next((i for i, item in enumerate(ordered) if item.id == item_id), None)
    if position is None:
        raise NotFoundError("Item", item_id)

    moved = ordered.pop(position)
    ordered.insert(min(new_index, len(ordered)), moved)

    for index, item in enumerate(ordered):
        item.order_index = index
    return ordered


def next_order_index(current_max: int | None) -> int:
    return 0 if current_max is None else current_max + 1
