"""A set keyed by each item's unique id."""

from __future__ import annotations

import dataclasses
import json
from typing import Protocol


class UniqueItem(Protocol):
    def unique_id(self) -> str: ...


class StringUnique(str):
    """A string that is its own unique id."""

    def unique_id(self) -> str:
        return str(self)


class UniqueSet:
    """Items stored by unique id; adding an item with an existing id replaces it."""

    def __init__(self) -> None:
        self._items: dict[str, UniqueItem] = {}

    def add(self, item: UniqueItem) -> None:
        self._items[item.unique_id()] = item

    def add_kv(self, key: str, value: str) -> None:
        self._items[key] = StringUnique(value)

    def get(self, key: str) -> UniqueItem | None:
        return self._items.get(key)

    def items(self) -> dict[str, UniqueItem]:
        return dict(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def to_json(self) -> str:
        """A JSON array of the items, sorted by their serialised form."""
        if not self._items:
            return "[]"
        entries = sorted(_item_json(item) for item in self._items.values())
        return "[" + ",".join(entries) + "]"


def _item_json(item: UniqueItem) -> str:
    if isinstance(item, StringUnique):
        return '"' + str(item) + '"'
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return json.dumps(dataclasses.asdict(item), separators=(",", ":"))
    return json.dumps(item, separators=(",", ":"))