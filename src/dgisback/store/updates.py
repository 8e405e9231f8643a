"""Builder for MongoDB update documents."""

from __future__ import annotations

from typing import Any


class UpdateBuilder:
    """Accumulate update operators into a single update document.

    .. code-block:: python

        update = UpdateBuilder().set("status", "READ").pull("tags", "x").build()
    """

    def __init__(self) -> None:
        self._update: dict[str, dict[str, Any]] = {}

    def _operator(self, name: str) -> dict[str, Any]:
        return self._update.setdefault(name, {})

    def set(self, key: str, value: Any) -> UpdateBuilder:
        self._operator("$set")[key] = value
        return self

    def set_many(self, fields: dict[str, Any]) -> UpdateBuilder:
        self._operator("$set").update(fields)
        return self

    def unset(self, key: str) -> UpdateBuilder:
        self._operator("$unset")[key] = ""
        return self

    def inc(self, key: str, value: int) -> UpdateBuilder:
        self._operator("$inc")[key] = value
        return self

    def push(self, key: str, value: Any) -> UpdateBuilder:
        self._operator("$push")[key] = value
        return self

    def push_each(self, key: str, values: list[Any]) -> UpdateBuilder:
        """Append every value, keeping order and duplicates."""
        self._operator("$push")[key] = {"$each": list(values)}
        return self

    def pull(self, key: str, value: Any) -> UpdateBuilder:
        self._operator("$pull")[key] = value
        return self

    def add_to_set(self, key: str, value: Any) -> UpdateBuilder:
        self._operator("$addToSet")[key] = value
        return self

    def is_empty(self) -> bool:
        return not self._update

    def build(self) -> dict[str, dict[str, Any]]:
        """Return a copy of the accumulated update document."""
        return {name: dict(fields) for name, fields in self._update.items()}
