"""FastAPI entrypoint for building and describing queries from phrase lists."""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, ValidationError

from querybuilder.config import BuilderConfig, SearchDSLConfig
from querybuilder.engine.builder import QueryBuilder
from querybuilder.errors import (
    MissingDescriptionError,
    PipelineDepthExceeded,
    UnregisteredPhraseError,
)
from querybuilder.es.builder import ESQueryBuilder
from querybuilder.obs.log import get_logger
from querybuilder.types import Phrase

log = get_logger(__name__)

BuilderFactory = Callable[[], QueryBuilder]


def _field_mapping_from_env() -> dict[str, str]:
    raw = os.getenv("QUERYBUILDER_FIELD_MAPPING")
    if not raw:
        return {}
    return {str(key): str(value) for key, value in json.loads(raw).items()}


def builder_factory_from_env() -> BuilderFactory:
    """Read builder settings from the environment once and return a factory.

    Invalid settings fail here, at startup, rather than on the first request.
    Every factory call constructs a fresh builder; builders are never shared.
    """
    field_mapping = _field_mapping_from_env()
    dsl_config = SearchDSLConfig()
    config = BuilderConfig(
        on_unknown_phrase=os.getenv("QUERYBUILDER_ON_UNKNOWN_PHRASE", "ignore"),
    )

    def _factory() -> ESQueryBuilder:
        return ESQueryBuilder(field_mapping=field_mapping, dsl_config=dsl_config, config=config)

    return _factory


class BuildRequest(BaseModel):
    phrases: list[Phrase] = Field(default_factory=list)
    include_history: bool = False


class DescribeRequest(BaseModel):
    phrases: list[Phrase] = Field(default_factory=list)


def create_app(builder_factory: BuilderFactory | None = None) -> FastAPI:
    factory = builder_factory or builder_factory_from_env()
    app = FastAPI(title="Query Builder", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"status": "ok", "phrases": len(factory().phrases)}

    @app.get("/phrases")
    def phrases() -> dict[str, Any]:
        return {
            "items": [
                {"name": spec.name, "describable": spec.describe is not None}
                for spec in factory().phrases
            ]
        }

    @app.post("/build")
    def build(request: BuildRequest) -> dict[str, Any]:
        builder = factory()
        try:
            query = builder.build_query(request.phrases)
        except (PipelineDepthExceeded, UnregisteredPhraseError, ValidationError) as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except Exception as exc:
            log.exception("Query build failed")
            raise HTTPException(status_code=500, detail=str(exc)) from exc

        payload: dict[str, Any] = {"query": query}
        if request.include_history:
            payload["history"] = builder.history.as_dicts()
        return payload

    @app.post("/describe")
    def describe(request: DescribeRequest) -> dict[str, Any]:
        try:
            description = factory().build_description(request.phrases)
        except MissingDescriptionError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return {"description": description}

    return app


app = create_app()
