"""Resolution pass: turn components accumulated in builder state into query edits."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from querybuilder.types import Document

if TYPE_CHECKING:
    from querybuilder.engine.builder import QueryBuilder

FILTER = "filter"
CALLBACK = "callback"


class FilterMergePolicy(ABC):
    """Decides how the collected filter bodies are grouped into the query."""

    @abstractmethod
    def merge(self, query: Document, bodies: list[Any]) -> None:
        """Write `bodies` (in registration order) into `query` in place."""


class ComponentResolver:
    """Base resolver. Domains without deferred components keep this no-op."""

    def resolve(self, builder: QueryBuilder) -> None:
        return None


class DeferredComponentResolver(ComponentResolver):
    """Merges filter components, then runs callback components.

    One history entry is recorded after the filter merge, and one after
    each callback that has a registered handler.
    """

    def __init__(self, filter_policy: FilterMergePolicy) -> None:
        self.filter_policy = filter_policy

    def resolve(self, builder: QueryBuilder) -> None:
        self.apply_filters(builder)
        builder.record_history(stage="filters")
        self.apply_callbacks(builder)

    def apply_filters(self, builder: QueryBuilder) -> None:
        filters = builder.state.components(FILTER)
        if not filters:
            return
        bodies = [record["body"] for record in filters.values()]
        self.filter_policy.merge(builder.query, bodies)

    def apply_callbacks(self, builder: QueryBuilder) -> None:
        # Snapshot the ids: a callback may register further callbacks.
        for callback_id, record in list(builder.state.components(CALLBACK).items()):
            spec = builder.callbacks.get(callback_id)
            if spec is None:
                builder.handle_unknown(callback_id, kind=CALLBACK)
                continue
            spec.invoke(record)
            builder.record_history(stage="callback", callback=callback_id)
