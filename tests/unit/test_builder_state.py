from querybuilder.engine.state import BuilderState


def test_set_component_last_write_wins_and_keeps_position() -> None:
    state = BuilderState({"filter": {}})
    state.set_component("filter", "f1", {"name": "f1", "body": {"term": {"a": 1}}, "config": {}})
    state.set_component("filter", "f2", {"name": "f2", "body": {"term": {"b": 2}}, "config": {}})
    state.set_component("filter", "f1", {"name": "f1", "body": {"term": {"a": 9}}, "config": {}})

    filters = state.components("filter")
    assert list(filters) == ["f1", "f2"]
    assert filters["f1"]["body"] == {"term": {"a": 9}}


def test_absent_component_distinct_from_empty_record() -> None:
    state = BuilderState()
    state.set_component("callback", "paginate", {})

    assert state.get_component("callback", "paginate") == {}
    assert state.get_component("callback", "paginate") is not None
    assert state.get_component("callback", "missing") is None
    assert state.get_component("unknown_type", "x") is None


def test_reset_restores_initial_without_aliasing() -> None:
    initial = {"filter": {}, "mode": "strict"}
    state = BuilderState(initial)
    state.set_component("filter", "f1", {"name": "f1", "body": {}, "config": {}})
    state["mode"] = "loose"

    state.reset()

    assert dict(state) == {"filter": {}, "mode": "strict"}
    assert initial == {"filter": {}, "mode": "strict"}


def test_snapshot_is_detached_copy() -> None:
    state = BuilderState({"flags": {"a": 1}})
    snapshot = state.snapshot()
    state["flags"]["a"] = 2

    assert snapshot == {"flags": {"a": 1}}
