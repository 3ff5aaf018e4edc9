"""ConstraintTemplate resource types."""

from __future__ import annotations

from dataclasses import dataclass, field

from constraintkit.schema_props import JSONSchemaProps


@dataclass
class ObjectMeta:
    """Identifying metadata of a resource."""

    name: str = ""
    namespace: str = ""
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
    generation: int = 0


@dataclass
class Names:
    """Names of the constraint kind a template defines."""

    kind: str = ""
    short_names: list[str] | None = None


@dataclass
class Validation:
    """Parameter schema of a template."""

    open_api_v3_schema: JSONSchemaProps | None = None
    legacy_schema: bool | None = None


@dataclass
class Target:
    """Rego source for one target of a template."""

    target: str = ""
    rego: str = ""
    libs: list[str] | None = None


@dataclass
class CRDSpec:
    names: Names = field(default_factory=Names)
    validation: Validation | None = None


@dataclass
class CRD:
    spec: CRDSpec = field(default_factory=CRDSpec)


@dataclass
class ConstraintTemplateSpec:
    """Desired state of a ConstraintTemplate."""

    crd: CRD = field(default_factory=CRD)
    targets: list[Target] | None = None


@dataclass
class CreateCRDError:
    """A single error caught while parsing or compiling a template."""

    code: str
    message: str
    location: str = ""


@dataclass
class ByPodStatus:
    """Observed state of a template as seen by one controller."""

    id: str = ""
    observed_generation: int = 0
    errors: list[CreateCRDError] | None = None


@dataclass
class ConstraintTemplateStatus:
    created: bool = False
    by_pod: list[ByPodStatus] | None = None


@dataclass
class ConstraintTemplate:
    """A template from which a constraint kind is created."""

    api_version: str = ""
    kind: str = ""
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: ConstraintTemplateSpec = field(default_factory=ConstraintTemplateSpec)
    status: ConstraintTemplateStatus = field(default_factory=ConstraintTemplateStatus)

    def semantic_equal(self, other: ConstraintTemplate) -> bool:
        """Report whether the specs are equal; metadata and status are ignored."""
        return self.spec == other.spec


@dataclass
class ConstraintTemplateList:
    api_version: str = ""
    kind: str = ""
    items: list[ConstraintTemplate] = field(default_factory=list)