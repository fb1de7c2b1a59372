"""Phrases common to every search-engine document type.

Filter phrases do not touch the query directly. They record filter
components, which the resolver groups into the query once every phrase has
run, so the grouping can depend on the full set of filters. `page` works the
same way through the `paginate` callback.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from datetime import date, timedelta
from typing import Any

from querybuilder.config import BuilderConfig, SearchDSLConfig
from querybuilder.engine.builder import QueryBuilder
from querybuilder.engine.queue import PhraseLike
from querybuilder.engine.resolver import (
    CALLBACK,
    FILTER,
    DeferredComponentResolver,
    FilterMergePolicy,
)
from querybuilder.es.params import (
    DateOffsetParams,
    DateRangeParams,
    FieldParams,
    PageParams,
    RangeParams,
    SizeParams,
    SortParams,
    TermParams,
    TermsParams,
    parse_range_params,
)
from querybuilder.es.policies import AndFilterPolicy


class ESQueryBuilder(QueryBuilder):
    """Query builder for an Elasticsearch-style query DSL.

    `field_mapping` maps the logical field names used in phrase params to
    the field names of the index being queried. Phrase and callback handlers
    are bound to this instance, so each builder owns its own registries.
    """

    def __init__(
        self,
        initial_query: Mapping[str, Any] | None = None,
        initial_state: Mapping[str, Any] | None = None,
        initial_phrases: Iterable[PhraseLike] | None = None,
        *,
        field_mapping: Mapping[str, str] | None = None,
        dsl_config: SearchDSLConfig | None = None,
        filter_policy: FilterMergePolicy | None = None,
        config: BuilderConfig | None = None,
    ) -> None:
        self.field_mapping: dict[str, str] = dict(field_mapping or {})
        self.dsl_config = dsl_config or SearchDSLConfig()

        state = copy.deepcopy(dict(initial_state or {}))
        for key in (FILTER, "query"):
            if not state.get(key):
                state[key] = {}

        super().__init__(
            initial_query,
            state,
            initial_phrases,
            config=config,
            resolver=DeferredComponentResolver(filter_policy or AndFilterPolicy()),
        )

    def register_handlers(self) -> None:
        add = self.phrases.add
        add("sort", self._phrase_sort, describe=self._describe_sort, params_model=SortParams)
        add("term", self._phrase_term, describe=self._describe_term, params_model=TermParams)
        add("terms", self._phrase_terms, describe=self._describe_terms, params_model=TermsParams)
        add("exists", self._phrase_exists, describe=self._describe_exists, params_model=FieldParams)
        add("range", self._phrase_range, describe=self._describe_range, params_model=RangeParams)
        add(
            "dateRange",
            self._phrase_date_range,
            describe=self._describe_range,
            params_model=DateRangeParams,
        )
        add(
            "dateOffset",
            self._phrase_date_offset,
            describe=self._describe_date_offset,
            params_model=DateOffsetParams,
        )
        add("size", self._phrase_size, describe=self._describe_size, params_model=SizeParams)
        add("page", self._phrase_page, describe=self._describe_page, params_model=PageParams)

        self.callbacks.add("paginate", self._callback_paginate)

    # -- component helpers ---------------------------------------------------

    def set_filter(
        self,
        name: str,
        body: Any,
        config: Mapping[str, Any] | None = None,
    ) -> None:
        """Record a filter component; its id is `config["id"]` or `name`."""
        filter_config = dict(config or {})
        filter_config["name"] = name
        filter_id = filter_config.get("id") or name
        self.set_component(FILTER, filter_id, {"name": name, "body": body, "config": filter_config})

    def get_filter(self, id_: str) -> dict[str, Any] | None:
        return self.get_component(FILTER, id_)

    def set_callback(self, name: str) -> None:
        self.set_component(CALLBACK, name, {})

    def map_field(self, field: str) -> str:
        return self.field_mapping.get(field, field)

    def _sort_direction(self, params: dict[str, Any]) -> str:
        direction = params.get("dir")
        if direction in ("asc", "desc"):
            return direction
        return self.dsl_config.default_sort_dir

    def fetch_date(self, value: date) -> str:
        """Format `value`, shifted by the `date_offset` flag (days) when set."""
        offset = self.state.get("date_offset")
        if offset:
            value = value + timedelta(days=offset)
        return value.strftime(self.dsl_config.date_format)

    # -- phrases -------------------------------------------------------------

    def _phrase_sort(self, params: dict[str, Any]) -> None:
        field = self.map_field(params["field"])
        direction = self._sort_direction(params)
        sort = self.query.get("sort")
        if not isinstance(sort, dict):
            sort = self.query["sort"] = {}
        sort[field] = direction

    def _phrase_term(self, params: dict[str, Any]) -> None:
        field = self.map_field(params["field"])
        self.set_filter("term", {"term": {field: params["value"]}}, {"id": f"term.{field}"})

    def _phrase_terms(self, params: dict[str, Any]) -> None:
        field = self.map_field(params["field"])
        self.set_filter("terms", {"terms": {field: list(params["values"])}}, {"id": f"terms.{field}"})

    def _phrase_exists(self, params: dict[str, Any]) -> None:
        field = self.map_field(params["field"])
        self.set_filter("exists", {"exists": {"field": field}}, {"id": f"exists.{field}"})

    def _phrase_range(self, params: dict[str, Any]) -> None:
        field = self.map_field(params["field"])
        ops = parse_range_params(params)
        if not ops:
            return
        self.set_filter("range", {"range": {field: ops}}, {"id": f"range.{field}"})

    def _phrase_date_range(self, params: dict[str, Any]) -> None:
        field = self.map_field(params["field"])
        ops = {
            op: self.fetch_date(value)
            for op, value in parse_range_params(params).items()
        }
        if not ops:
            return
        body = {"range": {field: ops | {"format": _es_date_format(self.dsl_config.date_format)}}}
        self.set_filter("dateRange", body, {"id": f"range.{field}"})

    def _phrase_date_offset(self, params: dict[str, Any]) -> None:
        self.state["date_offset"] = params["days"]

    def _phrase_size(self, params: dict[str, Any]) -> None:
        self.query["size"] = min(params["size"], self.dsl_config.max_page_size)

    def _phrase_page(self, params: dict[str, Any]) -> None:
        self.state["page"] = {
            "page": params["page"],
            "per_page": min(params["per_page"], self.dsl_config.max_page_size),
        }
        self.set_callback("paginate")

    # -- callbacks -----------------------------------------------------------

    def _callback_paginate(self, record: dict[str, Any]) -> None:
        page = self.state.get("page")
        if not page:
            return
        self.query["from"] = (page["page"] - 1) * page["per_page"]
        self.query["size"] = page["per_page"]

    # -- descriptions --------------------------------------------------------

    def _describe_sort(self, params: dict[str, Any]) -> str:
        direction = "ascending" if self._sort_direction(params) == "asc" else "descending"
        return f"Sorted by {params['field']}, {direction}"

    def _describe_term(self, params: dict[str, Any]) -> str:
        return f"{params['field']} is {params['value']}"

    def _describe_terms(self, params: dict[str, Any]) -> str:
        values = ", ".join(str(v) for v in params["values"])
        return f"{params['field']} is one of {values}"

    def _describe_exists(self, params: dict[str, Any]) -> str:
        return f"{params['field']} is set"

    def _describe_range(self, params: dict[str, Any]) -> str:
        ops = parse_range_params(params)
        words = {"gte": "at least", "gt": "more than", "lte": "at most", "lt": "less than"}
        bounds = " and ".join(f"{words[op]} {value}" for op, value in ops.items())
        return f"{params['field']} is {bounds}" if bounds else f"{params['field']} is any value"

    def _describe_date_offset(self, params: dict[str, Any]) -> str:
        return f"Dates shifted by {params['days']} days"

    def _describe_size(self, params: dict[str, Any]) -> str:
        return f"At most {params['size']} results"

    def _describe_page(self, params: dict[str, Any]) -> str:
        return f"Page {params['page']}, {params['per_page']} per page"


def _es_date_format(python_format: str) -> str:
    """Translate the strftime pattern into the equivalent index date format."""
    return (
        python_format.replace("%Y", "yyyy")
        .replace("%m", "MM")
        .replace("%d", "dd")
        .replace("%H", "HH")
        .replace("%M", "mm")
        .replace("%S", "ss")
    )
