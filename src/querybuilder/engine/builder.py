"""Pipeline engine: applies named phrases to a query, then resolves components."""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any

from querybuilder.config import BuilderConfig
from querybuilder.engine.queue import PhraseLike, PhraseQueue, as_phrase
from querybuilder.engine.registry import CallbackRegistry, PhraseRegistry, PhraseSpec
from querybuilder.engine.resolver import ComponentResolver
from querybuilder.engine.state import BuilderState
from querybuilder.errors import (
    MissingDescriptionError,
    PipelineDepthExceeded,
    UnregisteredPhraseError,
)
from querybuilder.obs.history import HistoryRecorder
from querybuilder.obs.log import get_logger
from querybuilder.types import Document, HistoryEntry, Phrase

log = get_logger(__name__)


class QueryBuilder:
    """Defines and executes named transformations on a nested query mapping.

    A build runs in two stages:

    1. Dispatch: phrases are popped off the queue in order and handed to the
       handler registered under their name. A handler either edits the query
       directly or records a component (filter, callback) in builder state
       to be applied later. Handlers may inject follow-up phrases.
    2. Resolve: once the queue is drained, the resolver reconciles the
       accumulated components into the query.

    Domains subclass this and register their handlers in
    `register_handlers`, or populate `phrases` / `callbacks` from outside.
    An instance holds session state and must not run overlapping builds.
    """

    def __init__(
        self,
        initial_query: Mapping[str, Any] | None = None,
        initial_state: Mapping[str, Any] | None = None,
        initial_phrases: Iterable[PhraseLike] | None = None,
        *,
        config: BuilderConfig | None = None,
        resolver: ComponentResolver | None = None,
        phrases: PhraseRegistry | None = None,
        callbacks: CallbackRegistry | None = None,
    ) -> None:
        self.config = config or BuilderConfig()
        self.resolver = resolver or ComponentResolver()
        self.phrases = phrases if phrases is not None else PhraseRegistry()
        self.callbacks = callbacks if callbacks is not None else CallbackRegistry()

        self._initial_query: Document = copy.deepcopy(dict(initial_query or {}))
        self._initial_phrases: list[Phrase] = [as_phrase(p) for p in initial_phrases or []]
        self._query: Document = {}
        self._state = BuilderState(initial_state)
        self._history = HistoryRecorder()
        self._queue = PhraseQueue()

        self.register_handlers()
        self.reset()

    def register_handlers(self) -> None:
        """Hook for subclasses to register their phrases and callbacks."""

    # -- public entry points -------------------------------------------------

    def build_query(self, phrases: Iterable[PhraseLike] = ()) -> Document:
        """Run a full build from a fresh session and return the query."""
        phrase_list = [as_phrase(p) for p in phrases]
        log.debug("Building query from %d phrases", len(phrase_list))
        self.apply_phrases(phrase_list, reset=True)
        self.apply_components()
        log.debug("Build finished with %d history entries", len(self._history))
        return self.get_query()

    def apply_phrase(
        self,
        name: str,
        params: Mapping[str, Any] | None = None,
        reset: bool = False,
    ) -> Document:
        return self.apply_phrases([Phrase(name=name, params=dict(params or {}))], reset=reset)

    def apply_phrases(self, phrases: Iterable[PhraseLike], reset: bool = False) -> Document:
        """Dispatch `phrases` against the current query without resolving.

        With `reset=False` the phrases apply on top of whatever the previous
        calls left behind.
        """
        if reset:
            self.reset()
        self._queue = PhraseQueue(phrases)
        self._drain()
        return self._query

    def apply_components(self) -> None:
        self.resolver.resolve(self)

    def build_description(self, phrases: Iterable[PhraseLike] = ()) -> list[str]:
        """Describe each phrase in human-readable form.

        Unlike dispatch, a phrase without a describer is an error.
        """
        description: list[str] = []
        for phrase in (as_phrase(p) for p in phrases):
            spec = self.phrases.get(phrase.name)
            text = spec.description(phrase.params) if spec is not None else None
            if text is None:
                raise MissingDescriptionError(phrase.name)
            description.append(text)
        return description

    def reset(self) -> None:
        """Restore the initial query and state, clear history, replay initial phrases."""
        self._history.clear()
        self._query = copy.deepcopy(self._initial_query)
        self._state.reset()
        self._queue.clear()
        if self._initial_phrases:
            self.apply_phrases(self._initial_phrases)

    # -- accessors -----------------------------------------------------------

    def get_query(self) -> Document:
        return self._query

    def get_history(self) -> list[HistoryEntry]:
        return self._history.entries()

    @property
    def query(self) -> Document:
        return self._query

    @query.setter
    def query(self, value: Document) -> None:
        self._query = value

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def history(self) -> HistoryRecorder:
        return self._history

    # -- helpers for phrase and callback handlers ----------------------------

    def push_phrases(self, phrases: Iterable[PhraseLike]) -> None:
        """Queue `phrases` to run immediately after the current one."""
        self._queue.push(phrases)

    def unshift_phrases(self, phrases: Iterable[PhraseLike]) -> None:
        """Queue `phrases` to run after everything already queued."""
        self._queue.unshift(phrases)

    def set_component(self, type_: str, id_: str, props: dict[str, Any]) -> None:
        self._state.set_component(type_, id_, props)

    def get_component(self, type_: str, id_: str) -> dict[str, Any] | None:
        return self._state.get_component(type_, id_)

    def record_history(self, **extra: Any) -> None:
        if not self.config.record_history:
            return
        self._history.record(self._query, self._state.snapshot(), **extra)

    def handle_unknown(self, name: str, *, kind: str = "phrase") -> None:
        """Apply the configured policy to a name with no registered handler."""
        policy = self.config.on_unknown_phrase
        if policy == "error":
            raise UnregisteredPhraseError(name, kind=kind)
        if policy == "warn":
            log.warning("Skipping unregistered %s: %s", kind, name)
        else:
            log.debug("Skipping unregistered %s: %s", kind, name)

    # -- internals -----------------------------------------------------------

    def _drain(self) -> None:
        dispatched = 0
        while self._queue:
            phrase = self._queue.pop()
            spec = self.phrases.get(phrase.name)
            if spec is None:
                self.handle_unknown(phrase.name)
                continue

            dispatched += 1
            if dispatched > self.config.max_dispatches:
                raise PipelineDepthExceeded(self.config.max_dispatches, phrase.name)
            self._call_phrase(spec, phrase)

    def _call_phrase(self, spec: PhraseSpec, phrase: Phrase) -> None:
        input_query = copy.deepcopy(self._query) if self.config.record_history else None
        spec.invoke(phrase.params)
        if self.config.record_history:
            self._history.record(
                self._query,
                self._state.snapshot(),
                phrase_name=phrase.name,
                phrase_params=phrase.params,
                input_query=input_query,
            )
