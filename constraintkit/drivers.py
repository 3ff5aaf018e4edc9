"""The interface that policy evaluation back ends implement."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass
class QueryCfg:
    """Settings of a single query."""

    tracing_enabled: bool = False

    @classmethod
    def from_opts(cls, *opts: Callable[[QueryCfg], None]) -> QueryCfg:
        """Build a configuration by applying opts in order."""
        cfg = cls()
        for opt in opts:
            opt(cfg)
        return cfg


QueryOpt = Callable[[QueryCfg], None]


def tracing(enabled: bool) -> QueryOpt:
    """Option that turns evaluation tracing on or off for a query."""

    def apply(cfg: QueryCfg) -> None:
        cfg.tracing_enabled = enabled

    return apply


@dataclass
class QueryResponse:
    """What a query returned: the results, and optionally a trace and the input."""

    results: list[dict[str, Any]] = field(default_factory=list)
    trace: str | None = None
    input: str | None = None


class Driver(ABC):
    """A back end that stores policy modules and data and evaluates queries."""

    @abstractmethod
    def init(self) -> None:
        """Prepare the driver for use."""

    @abstractmethod
    def put_module(self, name: str, src: str) -> None:
        """Add or replace the policy module called name."""

    @abstractmethod
    def put_data(self, path: str, data: Any) -> None:
        """Store data at path."""

    @abstractmethod
    def delete_data(self, path: str) -> bool:
        """Remove data at path; return whether anything was there."""

    @abstractmethod
    def query(self, path: str, review_input: Any, *opts: QueryOpt) -> QueryResponse:
        """Evaluate the rule at path against review_input."""

    @abstractmethod
    def dump(self) -> str:
        """Return the stored modules and data as JSON text."""