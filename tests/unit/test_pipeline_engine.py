import logging
from typing import Any

import pytest

from querybuilder.config import BuilderConfig
from querybuilder.engine.builder import QueryBuilder
from querybuilder.engine.registry import PhraseHandler
from querybuilder.errors import (
    MissingDescriptionError,
    PipelineDepthExceeded,
    UnregisteredPhraseError,
)


class MarkerBuilder(QueryBuilder):
    """Each marker phrase appends its own name to `query["seq"]`."""

    markers = ("a", "b", "c")

    def register_handlers(self) -> None:
        for marker in self.markers:
            self.phrases.add(
                marker,
                self._append(marker),
                describe=lambda params, marker=marker: f"append {marker}",
            )
        self.phrases.add("boom", self._boom)
        self.phrases.add("then_b", self._then_b)
        self.phrases.add("later_b", self._later_b)
        self.phrases.add("loop", self._loop)

    def _append(self, marker: str) -> PhraseHandler:
        def _handler(params: dict[str, Any]) -> None:
            self.query.setdefault("seq", []).append(marker)

        return _handler

    def _boom(self, params: dict[str, Any]) -> None:
        raise RuntimeError("phrase failed")

    def _then_b(self, params: dict[str, Any]) -> None:
        self.query.setdefault("seq", []).append("then_b")
        self.push_phrases([{"name": "b"}])

    def _later_b(self, params: dict[str, Any]) -> None:
        self.query.setdefault("seq", []).append("later_b")
        self.unshift_phrases([{"name": "b"}])

    def _loop(self, params: dict[str, Any]) -> None:
        self.push_phrases([{"name": "loop"}])


def _phrases(*names: str) -> list[dict[str, Any]]:
    return [{"name": name} for name in names]


def test_build_with_no_phrases_is_idempotent() -> None:
    initial = {"query": {"match_all": {}}}
    builder = MarkerBuilder(initial)

    first = dict(builder.build_query([]))
    second = dict(builder.build_query([]))

    assert first == second == initial
    assert builder.get_history() == []


def test_phrases_apply_in_order() -> None:
    builder = MarkerBuilder()

    assert builder.build_query(_phrases("a", "b", "c")) == {"seq": ["a", "b", "c"]}
    assert builder.build_query(_phrases("c", "a")) == {"seq": ["c", "a"]}


def test_unknown_phrase_is_skipped_without_history() -> None:
    builder = MarkerBuilder()

    query = builder.build_query(_phrases("a", "typo", "b"))

    assert query == {"seq": ["a", "b"]}
    assert [entry.phrase_name for entry in builder.get_history()] == ["a", "b"]


def test_empty_phrase_name_is_skipped_like_any_unknown_name() -> None:
    builder = MarkerBuilder()

    query = builder.build_query([{"name": "a"}, {"name": ""}, {"name": "b"}])

    assert query == {"seq": ["a", "b"]}
    assert [entry.phrase_name for entry in builder.get_history()] == ["a", "b"]
    assert builder.apply_phrase("") == {"seq": ["a", "b"]}


def test_unknown_phrase_warn_policy_logs(caplog: pytest.LogCaptureFixture) -> None:
    builder = MarkerBuilder(config=BuilderConfig(on_unknown_phrase="warn"))
    caplog.set_level(logging.WARNING, logger="querybuilder")

    assert builder.build_query(_phrases("typo", "a")) == {"seq": ["a"]}
    assert "typo" in caplog.text


def test_unknown_phrase_error_policy_raises() -> None:
    builder = MarkerBuilder(config=BuilderConfig(on_unknown_phrase="error"))

    with pytest.raises(UnregisteredPhraseError) as excinfo:
        builder.build_query(_phrases("a", "typo"))

    assert excinfo.value.name == "typo"
    assert builder.get_query() == {"seq": ["a"]}


def test_injected_phrases_run_in_injection_order() -> None:
    builder = MarkerBuilder()

    assert builder.build_query(_phrases("then_b", "c")) == {"seq": ["then_b", "b", "c"]}
    assert builder.build_query(_phrases("later_b", "c")) == {"seq": ["later_b", "c", "b"]}
    assert len(builder.get_history()) == 3


def test_failure_propagates_without_rollback() -> None:
    builder = MarkerBuilder()

    with pytest.raises(RuntimeError, match="phrase failed"):
        builder.build_query(_phrases("a", "boom", "c"))

    assert builder.get_query() == {"seq": ["a"]}
    assert [entry.phrase_name for entry in builder.get_history()] == ["a"]


def test_self_injecting_phrase_hits_dispatch_budget() -> None:
    builder = MarkerBuilder(config=BuilderConfig(max_dispatches=50))

    with pytest.raises(PipelineDepthExceeded) as excinfo:
        builder.build_query(_phrases("loop"))

    assert excinfo.value.limit == 50
    assert excinfo.value.last_phrase == "loop"


def test_incremental_application_keeps_state() -> None:
    builder = MarkerBuilder()

    builder.apply_phrase("a")
    builder.apply_phrases(_phrases("b"))
    assert builder.get_query() == {"seq": ["a", "b"]}

    assert builder.apply_phrase("c", reset=True) == {"seq": ["c"]}


def test_initial_phrases_replay_on_every_reset() -> None:
    builder = MarkerBuilder(initial_phrases=_phrases("a"))

    assert builder.get_query() == {"seq": ["a"]}
    assert builder.build_query(_phrases("b")) == {"seq": ["a", "b"]}
    assert builder.build_query(_phrases("c")) == {"seq": ["a", "c"]}


def test_initial_query_is_never_mutated() -> None:
    initial = {"seq": ["start"]}
    builder = MarkerBuilder(initial)

    builder.build_query(_phrases("a"))

    assert initial == {"seq": ["start"]}
    assert builder.build_query([]) == {"seq": ["start"]}


def test_history_records_input_and_output_per_phrase() -> None:
    builder = MarkerBuilder()
    builder.build_query([{"name": "a", "params": {"k": 1}}, {"name": "b"}])

    first, second = builder.get_history()
    assert first.input_query == {}
    assert first.query == {"seq": ["a"]}
    assert first.phrase_params == {"k": 1}
    assert second.input_query == {"seq": ["a"]}
    assert second.query == {"seq": ["a", "b"]}


def test_history_can_be_disabled() -> None:
    builder = MarkerBuilder(config=BuilderConfig(record_history=False))

    assert builder.build_query(_phrases("a")) == {"seq": ["a"]}
    assert builder.get_history() == []


def test_build_description_requires_describer() -> None:
    builder = MarkerBuilder()

    assert builder.build_description(_phrases("a", "c")) == ["append a", "append c"]

    with pytest.raises(MissingDescriptionError, match="boom"):
        builder.build_description(_phrases("a", "boom"))
    with pytest.raises(MissingDescriptionError):
        builder.build_description(_phrases("typo"))
