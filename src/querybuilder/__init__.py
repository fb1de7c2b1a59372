"""Named-transformation query builder package."""

from .config import BuilderConfig, SearchDSLConfig
from .engine.builder import QueryBuilder
from .types import Phrase

__all__ = ["BuilderConfig", "Phrase", "QueryBuilder", "SearchDSLConfig"]
