"""Exceptions raised by the query builder."""

from __future__ import annotations


class QueryBuilderError(Exception):
    """Base class for every error the builder raises itself."""


class UnregisteredPhraseError(QueryBuilderError, KeyError):
    """A phrase or callback name has no registered handler."""

    def __init__(self, name: str, kind: str = "phrase") -> None:
        self.name = name
        self.kind = kind
        super().__init__(f"No {kind} handler registered for: {name}")

    def __str__(self) -> str:
        return str(self.args[0])


class MissingDescriptionError(QueryBuilderError, LookupError):
    """A phrase has no describer, so no description can be built for it."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"{name} phrase does not have an associated description")


class PipelineDepthExceeded(QueryBuilderError, RuntimeError):
    """The dispatch loop ran more phrases than the configured budget allows."""

    def __init__(self, limit: int, last_phrase: str | None = None) -> None:
        self.limit = limit
        self.last_phrase = last_phrase
        message = f"Dispatch budget of {limit} phrases exceeded"
        if last_phrase:
            message += f" (last phrase: {last_phrase})"
        super().__init__(message)
