"""Shared records passed between the engine, its domains and the API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

Document = dict[str, Any]


class Phrase(BaseModel):
    """A named, parameterized request to apply one transformation step."""

    name: str
    params: dict[str, Any] = Field(default_factory=dict)


@dataclass(slots=True)
class HistoryEntry:
    """Snapshot of the builder taken after a phrase or component pass."""

    query: Document
    builder_state: dict[str, Any]
    phrase_name: str | None = None
    phrase_params: dict[str, Any] | None = None
    input_query: Document | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_phrase(self) -> bool:
        return self.phrase_name is not None
