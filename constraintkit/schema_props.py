"""OpenAPI v3 schema nodes used for constraint CRDs."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

_PRESERVE_KEY = "x-kubernetes-preserve-unknown-fields"


@dataclass
class JSONSchemaProps:
    """A node of an OpenAPI v3 schema."""

    type: str = ""
    description: str = ""
    format: str = ""
    pattern: str = ""
    properties: dict[str, JSONSchemaProps] | None = None
    items: JSONSchemaProps | None = None
    required: list[str] | None = None
    enum: list[Any] | None = None
    max_length: int | None = None
    min_length: int | None = None
    maximum: float | None = None
    minimum: float | None = None
    nullable: bool = False
    x_preserve_unknown_fields: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the schema in its JSON form, leaving out empty fields."""
        out: dict[str, Any] = {}
        for key, value in (
            ("type", self.type),
            ("description", self.description),
            ("format", self.format),
            ("pattern", self.pattern),
        ):
            if value:
                out[key] = value
        if self.properties:
            out["properties"] = {k: v.to_dict() for k, v in self.properties.items()}
        if self.items is not None:
            out["items"] = self.items.to_dict()
        if self.required:
            out["required"] = list(self.required)
        if self.enum:
            out["enum"] = copy.deepcopy(self.enum)
        for key, number in (
            ("maxLength", self.max_length),
            ("minLength", self.min_length),
            ("maximum", self.maximum),
            ("minimum", self.minimum),
        ):
            if number is not None:
                out[key] = number
        if self.nullable:
            out["nullable"] = True
        if self.x_preserve_unknown_fields is not None:
            out[_PRESERVE_KEY] = self.x_preserve_unknown_fields
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> JSONSchemaProps:
        """Build a schema node from its JSON form."""
        if not isinstance(data, Mapping):
            raise TypeError(f"schema must be an object, got {type(data).__name__}")
        properties = data.get("properties")
        items = data.get("items")
        return cls(
            type=data.get("type", ""),
            description=data.get("description", ""),
            format=data.get("format", ""),
            pattern=data.get("pattern", ""),
            properties=(
                {k: cls.from_dict(v) for k, v in properties.items()}
                if properties
                else None
            ),
            items=cls.from_dict(items) if items is not None else None,
            required=list(data["required"]) if data.get("required") else None,
            enum=copy.deepcopy(data["enum"]) if data.get("enum") else None,
            max_length=data.get("maxLength"),
            min_length=data.get("minLength"),
            maximum=data.get("maximum"),
            minimum=data.get("minimum"),
            nullable=bool(data.get("nullable", False)),
            x_preserve_unknown_fields=data.get(_PRESERVE_KEY),
        )

    def deep_copy(self) -> JSONSchemaProps:
        """Return an independent copy of this schema."""
        return copy.deepcopy(self)


@runtime_checkable
class MatchSchemaProvider(Protocol):
    """Something that supplies the schema of a constraint's `match` field."""

    def match_schema(self) -> JSONSchemaProps:
        """Return the JSON schema for the `match` field of a constraint."""
        ...