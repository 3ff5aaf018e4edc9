"""A minimal working target handler, with the objects it reviews."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from constraintkit.constraints import Unstructured
from constraintkit.handler import TargetHandler
from constraintkit.regolib import RegoTemplate
from constraintkit.schema_props import JSONSchemaProps

HANDLER_NAME = "test.target"


def _str_field(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


@dataclass
class Object:
    """An object under review."""

    name: str = ""
    namespace: str = ""
    # Checked by "CheckData" templates.
    data: str = ""
    root: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "namespace": self.namespace,
            "data": self.data,
            "root": self.root,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Object:
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("object must be a JSON object")
        return cls(
            name=_str_field(data, "name"),
            namespace=_str_field(data, "namespace"),
            data=_str_field(data, "data"),
            root=data.get("root"),
        )


@dataclass
class Review:
    """A request to review an Object."""

    object: Object = field(default_factory=Object)
    # Whether the review is rejected outright by constraints with autoreject set.
    autoreject: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"object": self.object.to_dict(), "autoreject": self.autoreject}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Review:
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("review must be a JSON object")
        autoreject = data.get("autoreject")
        if autoreject is None:
            autoreject = False
        if not isinstance(autoreject, bool):
            raise ValueError("field 'autoreject' must be a boolean")
        return cls(object=Object.from_dict(data.get("object")), autoreject=autoreject)


_LIBRARY = RegoTemplate(
    "library",
    """
package foo

autoreject_review[rejection] {
  constraint := {{.ConstraintsRoot}}[_][_]
  constraint.spec.autoreject
  input.review.autoreject

  rejection := {
    "msg": "autoreject",
    "details": {},
    "constraint": constraint,
  }
}

matching_constraints[constraint] {
  constraint = {{.ConstraintsRoot}}[_][_]
  spec := object.get(constraint, "spec", {})
  matchNamespace := object.get(spec, "matchNamespace", "")
  matches_namespace(matchNamespace)
}

matches_namespace(matchNamespace) = true {
  matchNamespace == ""
}

matches_namespace(matchNamespace) = true {
  matchNamespace != ""
  namespace := object.get(input.review.object, "namespace", "")
  namespace == matchNamespace
}

# Cluster scope
matching_reviews_and_constraints[[review, constraint]] {
  review := {"object": {{.DataRoot}}.cluster[_]}
  matching_constraints[constraint] with input as {"review": review}
}

# Namespace scope
matching_reviews_and_constraints[[review, constraint]] {
  review := {"object": {{.DataRoot}}.namespace[_][_]}
  matching_constraints[constraint] with input as {"review": review}
}

has_field(object, field) = true {
  object[field]
}

has_field(object, field) = true {
  object[field] == false
}

has_field(object, field) = false {
  not object[field]
  not object[field] == false
}

""",
)


@dataclass(frozen=True)
class Matcher:
    """Matches reviews of objects in one namespace, or all if none is set."""

    namespace: str = ""

    def match(self, review: Any) -> bool:
        if self.namespace == "":
            return True
        if not isinstance(review, Review):
            raise TypeError(
                f"unrecognized type {type(review).__name__}, want {Review.__name__}"
            )
        return self.namespace == review.object.namespace


class Handler(TargetHandler):
    """A target handler for Object and Review values."""

    def __init__(
        self,
        name: str | None = None,
        should_handle: Callable[[Object], bool] | None = None,
        process_data_error: BaseException | None = None,
    ) -> None:
        self._name = name
        self.should_handle = should_handle
        self.process_data_error = process_data_error

    def name(self) -> str:
        return self._name if self._name is not None else HANDLER_NAME

    def library(self) -> RegoTemplate:
        return _LIBRARY

    def process_data(self, obj: Any) -> tuple[bool, str, Any]:
        if not isinstance(obj, Object):
            raise TypeError(
                f"unrecognized type {type(obj).__name__}, want {Object.__name__}"
            )
        if self.process_data_error is not None:
            raise self.process_data_error
        if self.should_handle is not None and not self.should_handle(obj):
            return False, "", None
        if obj.namespace == "":
            return True, f"cluster/{obj.name}", obj
        return True, f"namespace/{obj.namespace}/{obj.name}", obj

    def handle_review(self, obj: Any) -> tuple[bool, Review]:
        if not isinstance(obj, Review):
            raise TypeError(f"unrecognized type {type(obj).__name__}")
        return True, obj

    def handle_violation(self, result: dict[str, Any]) -> None:
        review = result.get("review")
        if isinstance(review, Review):
            review = review.to_dict()
        result["resource"] = Review.from_dict(json.loads(json.dumps(review)))

    def match_schema(self) -> JSONSchemaProps:
        return JSONSchemaProps(
            type="object",
            properties={"label": JSONSchemaProps(type="string")},
        )

    def validate_constraint(self, constraint: Unstructured) -> None:
        return None

    def to_matcher(self, constraint: Unstructured) -> Matcher:
        try:
            namespace = constraint.get_nested_field("spec", "matchNamespace")
        except KeyError:
            namespace = ""
        except TypeError as exc:
            raise ValueError(f"unable to get spec.matchNamespace: {exc}") from exc
        if not isinstance(namespace, str):
            raise ValueError(
                "unable to get spec.matchNamespace: "
                f"{namespace!r} is of the type {type(namespace).__name__}, expected string"
            )
        return Matcher(namespace=namespace)