"""Filter merge policies for the search DSL."""

from __future__ import annotations

from typing import Any

from querybuilder.engine.resolver import FilterMergePolicy
from querybuilder.types import Document


def _nested(query: Document, *keys: str) -> dict[str, Any]:
    node = query
    for key in keys:
        child = node.get(key)
        if not isinstance(child, dict):
            child = node[key] = {}
        node = child
    return node


class AndFilterPolicy(FilterMergePolicy):
    """Combines every filter into one `and` group under a filtered query."""

    def merge(self, query: Document, bodies: list[Any]) -> None:
        _nested(query, "query", "filtered", "filter", "and")["filters"] = list(bodies)


class BoolFilterPolicy(FilterMergePolicy):
    """Places every filter in the `filter` clause of a bool query."""

    def merge(self, query: Document, bodies: list[Any]) -> None:
        _nested(query, "query", "bool")["filter"] = list(bodies)
