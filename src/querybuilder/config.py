"""Configuration models for the query builder."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

UnknownPolicy = Literal["ignore", "warn", "error"]


class BuilderConfig(BaseModel):
    """Configures dispatch limits and the unknown-name policy of the engine."""

    max_dispatches: int = Field(default=10_000, ge=1)
    on_unknown_phrase: UnknownPolicy = "ignore"
    record_history: bool = True


class SearchDSLConfig(BaseModel):
    """Configures the search DSL phrase set."""

    date_format: str = "%Y-%m-%d"
    default_sort_dir: Literal["asc", "desc"] = "desc"
    max_page_size: int = Field(default=500, ge=1)
