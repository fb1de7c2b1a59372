"""Phrase work-list consumed front to back during a dispatch loop."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping
from typing import Any

from querybuilder.types import Phrase

PhraseLike = Phrase | Mapping[str, Any]


def as_phrase(item: PhraseLike) -> Phrase:
    if isinstance(item, Phrase):
        return item
    params = item.get("params") or {}
    return Phrase(name=item["name"], params=dict(params))


class PhraseQueue:
    """Ordered, destructively consumed queue of phrases.

    Phrase handlers may grow the queue while it drains:
    `push` places phrases at the front so they run next, `unshift` places
    them after everything already queued.
    """

    def __init__(self, phrases: Iterable[PhraseLike] = ()) -> None:
        self._items: deque[Phrase] = deque(as_phrase(p) for p in phrases)

    def pop(self) -> Phrase:
        return self._items.popleft()

    def push(self, phrases: Iterable[PhraseLike]) -> None:
        self._items.extendleft(reversed([as_phrase(p) for p in phrases]))

    def unshift(self, phrases: Iterable[PhraseLike]) -> None:
        self._items.extend(as_phrase(p) for p in phrases)

    def clear(self) -> None:
        self._items.clear()

    def pending(self) -> list[Phrase]:
        return list(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __len__(self) -> int:
        return len(self._items)
