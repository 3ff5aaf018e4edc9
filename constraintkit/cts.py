"""Builders of ConstraintTemplates and constraint schemas for tests."""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping

from constraintkit.schema_props import JSONSchemaProps
from constraintkit.templates import ConstraintTemplate, Names, Target, Validation

DEFAULT_TARGET = "test.target"

MODULE_DENY = """
package foo

violation[{"msg": msg}] {
  true
  msg := "denied"
}
"""

Opt = Callable[[ConstraintTemplate], None]
PropMap = Mapping[str, JSONSchemaProps]


def _defaults() -> list[Opt]:
    return [
        opt_name("fakes"),
        opt_crd_names("Fakes"),
        opt_targets(target(DEFAULT_TARGET, MODULE_DENY)),
    ]


def new(*opts: Opt) -> ConstraintTemplate:
    """Build a template from the defaults followed by opts."""
    template = ConstraintTemplate()
    for opt in (*_defaults(), *opts):
        opt(template)
    return template


def opt_name(name: str) -> Opt:
    def apply(template: ConstraintTemplate) -> None:
        template.metadata.name = name

    return apply


def opt_crd_names(kind: str) -> Opt:
    def apply(template: ConstraintTemplate) -> None:
        template.spec.crd.spec.names = Names(kind=kind)

    return apply


def opt_labels(labels: Mapping[str, str] | None) -> Opt:
    def apply(template: ConstraintTemplate) -> None:
        template.metadata.labels = dict(labels) if labels is not None else None

    return apply


def opt_crd_schema(prop_map: PropMap) -> Opt:
    schema = prop(prop_map)

    def apply(template: ConstraintTemplate) -> None:
        template.spec.crd.spec.validation = Validation(
            open_api_v3_schema=schema.deep_copy()
        )

    return apply


def target(name: str, rego: str, *libs: str) -> Target:
    return Target(target=name, rego=rego, libs=list(libs) if libs else None)


def opt_targets(*targets: Target) -> Opt:
    def apply(template: ConstraintTemplate) -> None:
        # Copies keep templates built from the same option independent.
        template.spec.targets = copy.deepcopy(list(targets))

    return apply


def expected_schema(prop_map: PropMap) -> JSONSchemaProps:
    """Return the full constraint schema whose spec holds prop_map."""
    spec_props = dict(prop_map)
    spec_props["enforcementAction"] = prop_typed("string")
    return prop(
        {
            "metadata": prop({"name": JSONSchemaProps(type="string", max_length=63)}),
            "spec": prop(spec_props),
            "status": prop_unstructured(),
        }
    )


def prop(properties: PropMap) -> JSONSchemaProps:
    """An object schema node with the given properties."""
    return JSONSchemaProps(type="object", properties=dict(properties))


def prop_unstructured() -> JSONSchemaProps:
    """A schema node with no specified structure."""
    return JSONSchemaProps(x_preserve_unknown_fields=True)


def prop_typed(prop_type: str) -> JSONSchemaProps:
    """A typed schema node with no subfields."""
    return JSONSchemaProps(type=prop_type)