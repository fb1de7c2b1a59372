from querybuilder.es.builder import ESQueryBuilder


def test_history_has_phrase_then_filter_then_callback_entries() -> None:
    builder = ESQueryBuilder()
    phrases = [
        {"name": "term", "params": {"field": "status", "value": "active"}},
        {"name": "unknownPhrase", "params": {}},
        {"name": "term", "params": {"field": "tier", "value": "gold"}},
        {"name": "page", "params": {"page": 2, "per_page": 25}},
    ]

    builder.build_query(phrases)
    history = builder.get_history()

    assert len(history) == 3 + 1 + 1
    assert [entry.phrase_name for entry in history[:3]] == ["term", "term", "page"]
    assert history[3].extra == {"stage": "filters"}
    assert "from" not in history[3].query
    assert history[4].extra == {"stage": "callback", "callback": "paginate"}
    assert history[4].query["from"] == 25


def test_every_build_starts_from_a_clean_session() -> None:
    builder = ESQueryBuilder({"query": {"match_all": {}}})
    builder.build_query([{"name": "term", "params": {"field": "status", "value": "active"}}])

    assert builder.build_query([]) == {"query": {"match_all": {}}}
    assert builder.state["filter"] == {}
    assert len(builder.get_history()) == 1
