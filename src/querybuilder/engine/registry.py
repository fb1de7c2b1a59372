"""Phrase and callback registries built on Pydantic v2 models."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

PhraseHandler = Callable[[dict[str, Any]], None]
PhraseDescriber = Callable[[dict[str, Any]], str]
CallbackHandler = Callable[[dict[str, Any]], None]


class PhraseSpec(BaseModel):
    """Declarative phrase registration: a name bound to a transformation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(min_length=1)
    handler: PhraseHandler
    describe: PhraseDescriber | None = None
    params_model: type[BaseModel] | None = None

    def coerce(self, params: dict[str, Any]) -> dict[str, Any]:
        """Run params through `params_model` when the phrase declares one."""
        if self.params_model is None:
            return params
        data = self.params_model.model_validate(params)
        return data.model_dump(exclude_none=True)

    def invoke(self, params: dict[str, Any]) -> None:
        self.handler(self.coerce(params))

    def description(self, params: dict[str, Any]) -> str | None:
        if self.describe is None:
            return None
        return self.describe(self.coerce(params))


class CallbackSpec(BaseModel):
    """A deferred behavior run during the resolution pass."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(min_length=1)
    handler: CallbackHandler

    def invoke(self, record: dict[str, Any]) -> None:
        self.handler(record)


SpecT = TypeVar("SpecT", PhraseSpec, CallbackSpec)


class _Registry(Generic[SpecT]):
    kind = "handler"

    def __init__(self) -> None:
        self._specs: dict[str, SpecT] = {}

    def register(self, spec: SpecT, *, replace: bool = False) -> None:
        if spec.name in self._specs and not replace:
            raise ValueError(f"{self.kind.capitalize()} already registered: {spec.name}")
        self._specs[spec.name] = spec

    def get(self, name: str) -> SpecT | None:
        """Return the spec for `name`, or None when nothing is registered."""
        return self._specs.get(name)

    def names(self) -> list[str]:
        return list(self._specs)

    def specs(self) -> list[SpecT]:
        return list(self._specs.values())

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[SpecT]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)


class PhraseRegistry(_Registry[PhraseSpec]):
    """Maps phrase names to their transformation and describer."""

    kind = "phrase"

    def add(
        self,
        name: str,
        handler: PhraseHandler,
        *,
        describe: PhraseDescriber | None = None,
        params_model: type[BaseModel] | None = None,
    ) -> PhraseSpec:
        spec = PhraseSpec(
            name=name,
            handler=handler,
            describe=describe,
            params_model=params_model,
        )
        self.register(spec)
        return spec


class CallbackRegistry(_Registry[CallbackSpec]):
    """Maps callback component ids to the behavior run at resolution time."""

    kind = "callback"

    def add(self, name: str, handler: CallbackHandler) -> CallbackSpec:
        spec = CallbackSpec(name=name, handler=handler)
        self.register(spec)
        return spec
