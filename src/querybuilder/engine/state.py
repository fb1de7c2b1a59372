"""Builder state: cross-phrase working memory for one build session."""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any


class BuilderState(MutableMapping[str, Any]):
    """Mutable mapping of builder flags and component tables.

    Component tables live under their type name (`"filter"`, `"callback"`)
    and map a component id to its record. Re-setting an id replaces the
    record in place, so insertion order is that of first registration.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._initial: dict[str, Any] = copy.deepcopy(dict(initial or {}))
        self._data: dict[str, Any] = copy.deepcopy(self._initial)

    def reset(self) -> None:
        self._data = copy.deepcopy(self._initial)

    def set_component(self, type_: str, id_: str, props: dict[str, Any]) -> None:
        table = self._data.get(type_)
        if table is None:
            table = self._data[type_] = {}
        table[id_] = props

    def get_component(self, type_: str, id_: str) -> dict[str, Any] | None:
        """Return the component record, or None when the id is not set.

        An empty record (as used by callbacks) is returned as-is and must
        not be confused with an absent one.
        """
        table = self._data.get(type_) or {}
        return table.get(id_)

    def components(self, type_: str) -> dict[str, dict[str, Any]]:
        return self._data.get(type_) or {}

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"BuilderState({self._data!r})"
