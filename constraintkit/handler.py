"""The interface a target implements to plug into constraint evaluation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from constraintkit.constraints import Matcher, Unstructured
from constraintkit.regolib import RegoTemplate
from constraintkit.schema_props import JSONSchemaProps


class TargetHandler(ABC):
    """Decides how data and reviews of one target are stored and evaluated."""

    @abstractmethod
    def name(self) -> str:
        """Return the target name; it must match `^[a-zA-Z][a-zA-Z0-9.]*$`.

        It is the key under which templates place their rego in
        `spec.targets`.
        """

    @abstractmethod
    def library(self) -> RegoTemplate:
        """Return the Rego library that evaluates constraints for the target.

        The template takes the fields `ConstraintsRoot`, the path under which
        constraints are stored by kind and name, and `DataRoot`, the path under
        which inventory data is stored. It must define the rules
        `matching_constraints[constraint]` and
        `matching_reviews_and_constraints[[review, constraint]]`, and may
        define `autoreject_review[rejection]`.
        """

    @abstractmethod
    def match_schema(self) -> JSONSchemaProps:
        """Return the JSON schema of the `match` field of a constraint."""

    @abstractmethod
    def process_data(self, data: Any) -> tuple[bool, str, Any]:
        """Convert data for storage in the inventory.

        Returns whether the target handles data, the path relative to the
        inventory root under which it is stored, and the value to store.
        """

    @abstractmethod
    def handle_review(self, obj: Any) -> tuple[bool, Any]:
        """Return whether the target reviews obj, and the `review` input for it."""

    @abstractmethod
    def handle_violation(self, result: dict[str, Any]) -> None:
        """Post-process a violation result in place."""

    @abstractmethod
    def validate_constraint(self, constraint: Unstructured) -> None:
        """Raise if the constraint is not semantically valid."""

    @abstractmethod
    def to_matcher(self, constraint: Unstructured) -> Matcher:
        """Return the Matcher that decides which reviews the constraint applies to."""