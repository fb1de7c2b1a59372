"""Parameter models and normalization for the search DSL phrases."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

RANGE_OPERATORS = ("gte", "gt", "lte", "lt")


class FieldParams(BaseModel):
    field: str = Field(min_length=1)


class SortParams(FieldParams):
    dir: str | None = None


class TermParams(FieldParams):
    value: Any


class TermsParams(FieldParams):
    values: list[Any] = Field(min_length=1)


class RangeParams(FieldParams):
    min: Any = None
    max: Any = None
    gte: Any = None
    gt: Any = None
    lte: Any = None
    lt: Any = None


class DateRangeParams(FieldParams):
    min: date | None = None
    max: date | None = None
    gte: date | None = None
    gt: date | None = None
    lte: date | None = None
    lt: date | None = None


class DateOffsetParams(BaseModel):
    days: int


class SizeParams(BaseModel):
    size: int = Field(ge=0)


class PageParams(BaseModel):
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=20, ge=1)


def parse_range_params(params: dict[str, Any]) -> dict[str, Any]:
    """Restate `min`/`max` as `gte`/`lte` and keep only range operators.

    Explicit `gte`/`lte` lose to `min`/`max` when both are given.
    """
    ops = dict(params)
    if ops.get("min") is not None:
        ops["gte"] = ops["min"]
    if ops.get("max") is not None:
        ops["lte"] = ops["max"]
    return {op: ops[op] for op in RANGE_OPERATORS if ops.get(op) is not None}
