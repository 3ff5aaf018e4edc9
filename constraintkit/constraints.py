"""Schemaless constraint resources and comparison of constraints."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class GroupVersionKind:
    group: str = ""
    version: str = ""
    kind: str = ""

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


def _json_path(fields: tuple[str, ...]) -> str:
    return "." + ".".join(fields)


@dataclass
class Unstructured:
    """A resource held as plain JSON-like data."""

    object: dict[str, Any] | None = field(default_factory=dict)

    def _nested_str(self, *fields: str) -> str:
        try:
            value = self.get_nested_field(*fields)
        except (KeyError, TypeError):
            return ""
        return value if isinstance(value, str) else ""

    def name(self) -> str:
        return self._nested_str("metadata", "name")

    def kind(self) -> str:
        return self._nested_str("kind")

    def group_version_kind(self) -> GroupVersionKind:
        api_version = self._nested_str("apiVersion")
        if not api_version:
            return GroupVersionKind(kind=self.kind())
        parts = api_version.split("/")
        if len(parts) == 1:
            return GroupVersionKind(version=parts[0], kind=self.kind())
        if len(parts) == 2:
            return GroupVersionKind(group=parts[0], version=parts[1], kind=self.kind())
        return GroupVersionKind()

    def set_name(self, name: str) -> None:
        self.set_nested_field(name, "metadata", "name")

    def set_group_version_kind(self, gvk: GroupVersionKind) -> None:
        self.set_nested_field(gvk.api_version, "apiVersion")
        self.set_nested_field(gvk.kind, "kind")

    def set_nested_field(self, value: Any, *fields: str) -> None:
        """Store a copy of value at the given path, creating objects on the way."""
        if not fields:
            raise ValueError("at least one field is required")
        if self.object is None:
            self.object = {}
        current = self.object
        for index, name in enumerate(fields[:-1]):
            child = current.get(name)
            if child is None:
                child = current[name] = {}
            elif not isinstance(child, dict):
                raise TypeError(
                    f"value cannot be set because {_json_path(fields[: index + 1])} "
                    "is not an object"
                )
            current = child
        current[fields[-1]] = copy.deepcopy(value)

    def get_nested_field(self, *fields: str) -> Any:
        """Return a copy of the value at the given path.

        Raises KeyError if the path does not exist and TypeError if a value
        along it is not an object.
        """
        current: Any = self.object if self.object is not None else {}
        for index, name in enumerate(fields):
            if not isinstance(current, dict):
                raise TypeError(
                    f"{_json_path(fields[:index])} accessor error: {current!r} is of "
                    f"the type {type(current).__name__}, expected an object"
                )
            if name not in current:
                raise KeyError(_json_path(fields[: index + 1]))
            current = current[name]
        return copy.deepcopy(current)


def semantic_equal(c1: Unstructured | None, c2: Unstructured | None) -> bool:
    """Report whether the specs of two constraints are equal.

    Metadata and status are ignored.
    """
    if c1 is None or c2 is None:
        return c1 is c2
    if c1.object is None or c2.object is None:
        return (c1.object is None) == (c2.object is None)
    return c1.object.get("spec") == c2.object.get("spec")


@runtime_checkable
class Matcher(Protocol):
    """Decides whether a constraint applies to a review object."""

    def match(self, review: Any) -> bool:
        """Return True if the constraint should run against review."""
        ...