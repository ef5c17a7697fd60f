"""Ordered list engine shared by the shot list, crew, budget and equipment lists.

All operations are pure: the input list and its items are never mutated, and
every successful operation returns a new list whose ``order`` values run
1..N in array position.  An id that is not in the list makes the operation a
no-op that returns the input list itself — double-fired UI events must not
raise.

Ids come from an IdAllocator, a monotonic counter that never reissues an id,
including ids of items that have since been removed.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar

from brief_engine.models import ListItem

T = TypeVar("T", bound=ListItem)

UNCATEGORIZED = "Uncategorized"

_PROTECTED_KEYS = frozenset({"id", "order"})


class IdAllocator:
    """Monotonic id source for one list.

    ``high_water`` is the largest id ever handed out or observed; it is
    persisted with the document so a reloaded session keeps counting upward.
    """

    def __init__(self, high_water: int = 0):
        self._high_water = max(0, int(high_water))

    @property
    def high_water(self) -> int:
        return self._high_water

    def observe(self, ids: Iterable[int]) -> None:
        for item_id in ids:
            if item_id > self._high_water:
                self._high_water = item_id

    def allocate(self) -> int:
        self._high_water += 1
        return self._high_water


def _index_of(items: Sequence[ListItem], item_id: int) -> Optional[int]:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return None


def find(items: Sequence[T], item_id: int) -> Optional[T]:
    index = _index_of(items, item_id)
    return None if index is None else items[index]


def restamp(items: Iterable[T]) -> List[T]:
    """Return *items* with ``order`` set to 1..N by position."""
    return [
        item if item.order == position else item.model_copy(update={"order": position})
        for position, item in enumerate(items, start=1)
    ]


def reorder(items: List[T], from_id: int, to_id: int) -> List[T]:
    """Move *from_id* to the slot *to_id* occupies (remove-then-insert, not a swap).

    Every item between the old and the new position shifts by one.
    """
    from_index = _index_of(items, from_id)
    to_index = _index_of(items, to_id)
    if from_index is None or to_index is None:
        return items
    moved = list(items)
    item = moved.pop(from_index)
    moved.insert(to_index, item)
    return restamp(moved)


def duplicate(items: List[T], item_id: int, allocator: IdAllocator) -> List[T]:
    """Append a deep copy of *item_id* under a fresh id."""
    source = find(items, item_id)
    if source is None:
        return items
    allocator.observe(item.id for item in items)
    clone = source.model_copy(deep=True, update={"id": allocator.allocate()})
    return restamp([*items, clone])


def append(items: List[T], item: T, allocator: IdAllocator) -> List[T]:
    """Append *item* under a fresh id, whatever id it carried."""
    allocator.observe(existing.id for existing in items)
    added = item.model_copy(update={"id": allocator.allocate()})
    return restamp([*items, added])


def remove(items: List[T], item_id: int) -> List[T]:
    if _index_of(items, item_id) is None:
        return items
    return restamp(item for item in items if item.id != item_id)


def update(items: List[T], item_id: int, patch: Mapping[str, Any]) -> List[T]:
    """Shallow-merge *patch* into the matching item.

    ``id`` and ``order`` in *patch* are ignored.  The merged item is
    re-validated, so derived fields (BudgetLineItem.total) follow the new
    operands.

    Raises:
        pydantic.ValidationError: the merged item is not valid.
    """
    index = _index_of(items, item_id)
    if index is None:
        return items
    current = items[index]
    changes = {k: v for k, v in patch.items() if k not in _PROTECTED_KEYS}
    merged = type(current).model_validate(
        {**current.model_dump(), **changes, "id": current.id, "order": current.order}
    )
    updated = list(items)
    updated[index] = merged
    return restamp(updated)


def group_by_category(items: Sequence[T]) -> Dict[str, List[T]]:
    """Partition *items* by category for display.

    Buckets appear in first-appearance order and keep their items' relative
    order.  Missing or empty categories land in UNCATEGORIZED.  The input list
    and the items' ``order`` values are left untouched.
    """
    groups: Dict[str, List[T]] = {}
    for item in items:
        label = getattr(item, "category", None) or UNCATEGORIZED
        groups.setdefault(label, []).append(item)
    return groups
