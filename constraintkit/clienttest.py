"""Example ConstraintTemplates and Constraints for exercising a client.

They target the handler in `constraintkit.handlertest` and document how
templates, constraints and a target handler are meant to interact.
"""

from __future__ import annotations

from collections.abc import Callable

from constraintkit.constraints import GroupVersionKind, Unstructured
from constraintkit.crds import CONSTRAINTS_GROUP
from constraintkit.handlertest import HANDLER_NAME
from constraintkit.schema_props import JSONSchemaProps
from constraintkit.templates import ConstraintTemplate, Target, Validation

KIND_ALLOW = "Allow"
KIND_DENY = "Deny"
KIND_DENY_PRINT = "DenyPrint"
KIND_DENY_IMPORT = "DenyImport"
KIND_CHECK_DATA = "CheckData"

ConstraintArg = Callable[[Unstructured], None]


def make_constraint(kind: str, name: str, *args: ConstraintArg) -> Unstructured:
    """Create a constraint of the given kind and name, then apply args."""
    constraint = Unstructured({})
    constraint.set_group_version_kind(
        GroupVersionKind(group=CONSTRAINTS_GROUP, version="v1beta1", kind=kind)
    )
    constraint.set_name(name)
    for arg in args:
        arg(constraint)
    return constraint


def enable_autoreject(constraint: Unstructured) -> None:
    """Autoreject reviews of objects the constraint matches."""
    constraint.set_nested_field(True, "spec", "autoreject")


def match_namespace(namespace: str) -> ConstraintArg:
    """Only match objects in the given namespace."""

    def apply(constraint: Unstructured) -> None:
        constraint.set_nested_field(namespace, "spec", "matchNamespace")

    return apply


def want_data(data: str) -> ConstraintArg:
    """Require the data of reviewed objects to equal data (CheckData only)."""

    def apply(constraint: Unstructured) -> None:
        constraint.set_nested_field(data, "spec", "parameters", "wantData")

    return apply


def enforcement_action(action: str) -> ConstraintArg:
    """Set the action taken when the constraint is violated."""

    def apply(constraint: Unstructured) -> None:
        constraint.set_nested_field(action, "spec", "enforcementAction")

    return apply


_MODULE_ALLOW = """
package foo

violation[{"msg": msg}] {
  false
  msg := "denied"
}
"""

_MODULE_DENY = """
package foo

violation[{"msg": msg}] {
  true
  msg := "denied"
}
"""

_MODULE_DENY_PRINT = """
package foo

violation[{"msg": msg}] {
  print("denied!")
  true
  msg := "denied"
}
"""

_MODULE_IMPORT_DENY_REGO = """
package foo

import data.lib.bar

violation[{"msg": msg}] {
  bar.always[x]
  x == "imported"
  msg := "denied with library"
}
"""

_MODULE_IMPORT_DENY_LIB = """
package lib.bar

always[y] {
  y = "imported"
}
"""

_MODULE_CHECK_DATA = """
package foo

violation[{"msg": msg, "details": details}] {
  wantData := input.parameters.wantData
  gotData := object.get(input.review.object, "data", "")
  wantData != gotData
  msg := sprintf("got %v but want %v for data", [gotData, wantData])
  details := {"got": gotData}
}
"""


def _template(
    name: str, kind: str, rego: str, libs: list[str] | None = None
) -> ConstraintTemplate:
    template = ConstraintTemplate()
    template.metadata.name = name
    template.spec.crd.spec.names.kind = kind
    template.spec.crd.spec.validation = Validation(
        open_api_v3_schema=JSONSchemaProps(type="object")
    )
    template.spec.targets = [Target(target=HANDLER_NAME, rego=rego, libs=libs)]
    return template


def template_allow() -> ConstraintTemplate:
    """A template that allows every object it reviews."""
    return _template("allow", KIND_ALLOW, _MODULE_ALLOW)


def template_deny() -> ConstraintTemplate:
    """A template that denies every object it reviews."""
    return _template("deny", KIND_DENY, _MODULE_DENY)


def template_deny_print() -> ConstraintTemplate:
    """A template that denies every object and prints while doing so."""
    return _template("denyprint", KIND_DENY_PRINT, _MODULE_DENY_PRINT)


def template_deny_import() -> ConstraintTemplate:
    """A template that denies every object with the help of a library."""
    return _template(
        "denyimport",
        KIND_DENY_IMPORT,
        _MODULE_IMPORT_DENY_REGO,
        [_MODULE_IMPORT_DENY_LIB],
    )


def template_check_data() -> ConstraintTemplate:
    """A template that checks the data field of reviewed objects."""
    return _template("checkdata", KIND_CHECK_DATA, _MODULE_CHECK_DATA)