"""In-memory build history for introspection and debugging."""

from __future__ import annotations

import copy
from dataclasses import asdict
from typing import Any

from querybuilder.types import Document, HistoryEntry


class HistoryRecorder:
    """Append-only log of builder snapshots for the current build.

    Every entry deep-copies the document and builder state, so later
    mutation of the live structures never leaks into recorded entries.
    """

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []

    def record(
        self,
        query: Document,
        builder_state: dict[str, Any],
        *,
        phrase_name: str | None = None,
        phrase_params: dict[str, Any] | None = None,
        input_query: Document | None = None,
        **extra: Any,
    ) -> HistoryEntry:
        entry = HistoryEntry(
            query=copy.deepcopy(query),
            builder_state=copy.deepcopy(builder_state),
            phrase_name=phrase_name,
            phrase_params=copy.deepcopy(phrase_params),
            input_query=copy.deepcopy(input_query),
            extra=copy.deepcopy(extra),
        )
        self._entries.append(entry)
        return entry

    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def phrase_entries(self) -> list[HistoryEntry]:
        return [entry for entry in self._entries if entry.is_phrase]

    def clear(self) -> None:
        self._entries.clear()

    def as_dicts(self) -> list[dict[str, Any]]:
        """Export entries as plain dicts, dropping fields that were never set."""
        exported: list[dict[str, Any]] = []
        for entry in self._entries:
            data = asdict(entry)
            extra = data.pop("extra")
            exported.append(
                {key: value for key, value in data.items() if value is not None} | extra
            )
        return exported

    def __len__(self) -> int:
        return len(self._entries)
