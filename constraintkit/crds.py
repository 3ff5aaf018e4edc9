"""Constraint CRDs: building them from templates and validating them."""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from typing import Any

from constraintkit.constraints import Unstructured
from constraintkit.errors import InvalidConstraintError, InvalidConstraintTemplateError
from constraintkit.schema_props import JSONSchemaProps, MatchSchemaProvider
from constraintkit.templates import ConstraintTemplate

CONSTRAINTS_GROUP = "constraints.gatekeeper.sh"
CONSTRAINT_LABEL = "gatekeeper.sh/constraint"

_V1ALPHA1 = "v1alpha1"
_V1BETA1 = "v1beta1"
SUPPORTED_VERSIONS = frozenset({_V1ALPHA1, _V1BETA1})

_PRESERVE_KEY = "x-kubernetes-preserve-unknown-fields"
_DNS1123_LABEL = r"[a-z0-9]([-a-z0-9]*[a-z0-9])?"
_DNS1123_SUBDOMAIN = re.compile(rf"^{_DNS1123_LABEL}(\.{_DNS1123_LABEL})*$")
_DNS1035_LABEL = re.compile(r"^[a-z]([-a-z0-9]*[a-z0-9])?$")
_SCHEMA_TYPES = frozenset({"object", "array", "string", "boolean", "integer", "number"})
_COLUMN_TYPES = frozenset({"integer", "number", "string", "boolean", "date"})
_SCOPES = frozenset({"Cluster", "Namespaced"})


def _dns1123_subdomain_errors(value: str) -> list[str]:
    errors = []
    if len(value) > 253:
        errors.append("must be no more than 253 characters")
    if not _DNS1123_SUBDOMAIN.match(value):
        errors.append(
            "a lowercase RFC 1123 subdomain must consist of lower case alphanumeric "
            "characters, '-' or '.', and must start and end with an alphanumeric "
            "character"
        )
    return errors


def _dns1035_label_errors(value: str) -> list[str]:
    errors = []
    if len(value) > 63:
        errors.append("must be no more than 63 characters")
    if not _DNS1035_LABEL.match(value):
        errors.append(
            "a DNS-1035 label must consist of lower case alphanumeric characters "
            "or '-', start with an alphabetic character, and end with an "
            "alphanumeric character"
        )
    return errors


def create_schema(
    template: ConstraintTemplate, target: MatchSchemaProvider
) -> JSONSchemaProps:
    """Combine the target's match schema and the template's parameters schema."""
    props: dict[str, JSONSchemaProps] = {
        "match": target.match_schema().deep_copy(),
        "enforcementAction": JSONSchemaProps(type="string"),
    }
    validation = template.spec.crd.spec.validation
    if validation is not None and validation.open_api_v3_schema is not None:
        props["parameters"] = validation.open_api_v3_schema.deep_copy()

    return JSONSchemaProps(
        type="object",
        properties={
            "metadata": JSONSchemaProps(
                type="object",
                properties={"name": JSONSchemaProps(type="string", max_length=63)},
            ),
            "spec": JSONSchemaProps(type="object", properties=props),
            "status": JSONSchemaProps(x_preserve_unknown_fields=True),
        },
    )


def create_crd(
    template: ConstraintTemplate, schema: JSONSchemaProps | None
) -> dict[str, Any]:
    """Build the CustomResourceDefinition of the constraint kind a template defines."""
    names_spec = template.spec.crd.spec.names
    kind = names_spec.kind
    plural = kind.lower()
    names: dict[str, Any] = {
        "kind": kind,
        "listKind": kind + "List",
        "plural": plural,
        "singular": plural,
        "categories": ["constraint", "constraints"],
    }
    if names_spec.short_names:
        names["shortNames"] = list(names_spec.short_names)

    labels = dict(template.metadata.labels or {})
    labels[CONSTRAINT_LABEL] = "yes"

    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {"name": f"{plural}.{CONSTRAINTS_GROUP}", "labels": labels},
        "spec": {
            "preserveUnknownFields": False,
            "group": CONSTRAINTS_GROUP,
            "names": names,
            "validation": {
                "openAPIV3Schema": schema.to_dict() if schema is not None else None
            },
            "scope": "Cluster",
            "version": _V1BETA1,
            "subresources": {"status": {}},
            "versions": [
                {"name": _V1BETA1, "served": True, "storage": True},
                {"name": _V1ALPHA1, "served": True, "storage": False},
            ],
            "additionalPrinterColumns": [
                {
                    "name": "enforcement-action",
                    "type": "string",
                    "description": "Type of enforcement action",
                    "jsonPath": ".spec.enforcementAction",
                },
                {
                    "name": "total-violations",
                    "type": "integer",
                    "description": "Total number of violations",
                    "jsonPath": ".status.totalViolations",
                },
            ],
            "conversion": {"strategy": "None"},
        },
    }


def validate_targets(template: ConstraintTemplate | None) -> None:
    """Raise unless the template specifies exactly one target."""
    if template is None:
        raise InvalidConstraintTemplateError("ConstraintTemplate is nil")
    targets = template.spec.targets
    if targets is None:
        raise InvalidConstraintTemplateError(
            'field "targets" not specified in ConstraintTemplate spec'
        )
    if len(targets) == 0:
        raise InvalidConstraintTemplateError(
            "no targets specified: ConstraintTemplate must specify one target"
        )
    if len(targets) > 1:
        raise InvalidConstraintTemplateError(
            "multi-target templates are not currently supported"
        )


def _name_errors(path: str, value: Any, *, required: bool = True) -> Iterator[str]:
    if not value:
        if required:
            yield f"{path}: Required value"
        return
    if not isinstance(value, str):
        yield f"{path}: Invalid value: must be a string"
        return
    for message in _dns1035_label_errors(value.lower()):
        yield f"{path}: Invalid value: {value!r}: {message}"


def _structural_errors(node: Any, path: str, *, root: bool = False) -> Iterator[str]:
    if not isinstance(node, Mapping):
        yield f"{path}: Invalid value: schema must be an object"
        return
    node_type = node.get("type", "")
    preserve = node.get(_PRESERVE_KEY) is True
    if root:
        if node_type != "object":
            yield f"{path}.type: Unsupported value: {node_type!r}: must be object at the root"
    elif not node_type and not preserve:
        yield f"{path}.type: Required value: must not be empty for specified fields"
    if node_type and node_type not in _SCHEMA_TYPES:
        yield f"{path}.type: Unsupported value: {node_type!r}"

    properties = node.get("properties") or {}
    if properties and node_type not in ("object", ""):
        yield f"{path}.properties: Forbidden: only allowed for objects"
    for key, child in properties.items():
        yield from _structural_errors(child, f"{path}.properties[{key}]")
    if node.get("items") is not None:
        yield from _structural_errors(node["items"], f"{path}.items")

    metadata = properties.get("metadata") if root else None
    if isinstance(metadata, Mapping):
        meta_path = f"{path}.properties[metadata]"
        if metadata.get("type") != "object":
            yield f"{meta_path}.type: Unsupported value: must be object"
        for key, child in (metadata.get("properties") or {}).items():
            if key not in ("name", "generateName"):
                yield f"{meta_path}.properties[{key}]: Forbidden: not allowed in metadata"
            elif not isinstance(child, Mapping) or child.get("type") != "string":
                yield f"{meta_path}.properties[{key}].type: Invalid value: must be string"


def _crd_errors(crd: Mapping[str, Any]) -> Iterator[str]:
    spec = crd.get("spec") or {}
    names = spec.get("names") or {}
    group = spec.get("group") or ""
    plural = names.get("plural") or ""

    name = (crd.get("metadata") or {}).get("name", "")
    if name != f"{plural}.{group}":
        yield f'metadata.name: Invalid value: {name!r}: must be spec.names.plural+"."+spec.group'

    if not group:
        yield "spec.group: Required value"
    else:
        for message in _dns1123_subdomain_errors(group):
            yield f"spec.group: Invalid value: {group!r}: {message}"
        if len(group.split(".")) < 2:
            yield f"spec.group: Invalid value: {group!r}: should be a domain with at least one dot"

    scope = spec.get("scope")
    if scope not in _SCOPES:
        yield f"spec.scope: Unsupported value: {scope!r}"

    yield from _name_errors("spec.names.plural", plural)
    yield from _name_errors("spec.names.singular", names.get("singular"), required=False)
    kind = names.get("kind") or ""
    list_kind = names.get("listKind") or ""
    yield from _name_errors("spec.names.kind", kind)
    yield from _name_errors("spec.names.listKind", list_kind)
    if kind and kind == list_kind:
        yield "spec.names.listKind: Invalid value: kind and listKind may not be the same"
    for short in names.get("shortNames") or []:
        yield from _name_errors("spec.names.shortNames", short)
    for category in names.get("categories") or []:
        yield from _name_errors("spec.names.categories", category)

    versions = spec.get("versions") or []
    if not versions:
        yield "spec.versions: Invalid value: must have exactly one version marked as storage version"
    else:
        seen: set[str] = set()
        for version in versions:
            version_name = version.get("name") or ""
            yield from _name_errors("spec.versions.name", version_name)
            if version_name in seen:
                yield f"spec.versions: Invalid value: {version_name!r}: must be unique"
            seen.add(version_name)
        if sum(1 for version in versions if version.get("storage")) != 1:
            yield "spec.versions: Invalid value: must have exactly one version marked as storage version"
        top_version = spec.get("version")
        if top_version and top_version != versions[0].get("name"):
            yield "spec.version: Invalid value: must match the first version in spec.versions"

    if spec.get("preserveUnknownFields"):
        yield "spec.preserveUnknownFields: Invalid value: true: must be false"

    schema = (spec.get("validation") or {}).get("openAPIV3Schema")
    if schema is None:
        yield "spec.validation.openAPIV3Schema: Required value: schemas are required"
    else:
        yield from _structural_errors(schema, "spec.validation.openAPIV3Schema", root=True)

    for column in spec.get("additionalPrinterColumns") or []:
        if not column.get("name"):
            yield "spec.additionalPrinterColumns.name: Required value"
        if column.get("type") not in _COLUMN_TYPES:
            yield f"spec.additionalPrinterColumns.type: Unsupported value: {column.get('type')!r}"
        if not column.get("jsonPath"):
            yield "spec.additionalPrinterColumns.jsonPath: Required value"


def validate_crd(crd: Mapping[str, Any]) -> None:
    """Raise InvalidConstraintTemplateError if the CRD is not valid."""
    errors = list(_crd_errors(crd))
    if errors:
        raise InvalidConstraintTemplateError("; ".join(errors))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    if isinstance(value, float):
        return value.is_integer()
    return isinstance(value, int) and not isinstance(value, bool)


_TYPE_CHECKS = {
    "object": lambda value: isinstance(value, dict),
    "array": lambda value: isinstance(value, list),
    "string": lambda value: isinstance(value, str),
    "boolean": lambda value: isinstance(value, bool),
    "integer": _is_integer,
    "number": _is_number,
}


def _value_errors(value: Any, schema: Mapping[str, Any], path: str) -> Iterator[str]:
    where = path or "<root>"
    schema_type = schema.get("type", "")
    if value is None:
        if schema.get("nullable") or not schema_type:
            return
        yield f"{where}: Invalid value: \"null\": {where} in body must be of type {schema_type}"
        return
    check = _TYPE_CHECKS.get(schema_type)
    if check is not None and not check(value):
        yield (
            f"{where}: Invalid value: {type(value).__name__}: "
            f"{where} in body must be of type {schema_type}"
        )
        return

    if isinstance(value, str):
        max_length = schema.get("maxLength")
        if max_length is not None and len(value) > max_length:
            yield f"{where}: Too long: may not be longer than {max_length}"
        min_length = schema.get("minLength")
        if min_length is not None and len(value) < min_length:
            yield f"{where}: Invalid value: should be at least {min_length} chars long"
        pattern = schema.get("pattern")
        if pattern and not re.search(pattern, value):
            yield f"{where}: Invalid value: {value!r}: should match {pattern!r}"
    if _is_number(value):
        maximum = schema.get("maximum")
        if maximum is not None and value > maximum:
            yield f"{where}: Invalid value: should be less than or equal to {maximum}"
        minimum = schema.get("minimum")
        if minimum is not None and value < minimum:
            yield f"{where}: Invalid value: should be greater than or equal to {minimum}"
    enum = schema.get("enum")
    if enum and value not in enum:
        yield f"{where}: Unsupported value: {value!r}"

    if isinstance(value, dict):
        properties = schema.get("properties") or {}
        for key in schema.get("required") or []:
            if key not in value:
                yield f"{path + '.' if path else ''}{key}: Required value"
        for key, child in value.items():
            child_schema = properties.get(key)
            if child_schema is not None:
                child_path = f"{path}.{key}" if path else key
                yield from _value_errors(child, child_schema, child_path)
    elif isinstance(value, list) and schema.get("items") is not None:
        for index, element in enumerate(value):
            yield from _value_errors(element, schema["items"], f"{where}[{index}]")


def validate_cr(cr: Unstructured, crd: Mapping[str, Any]) -> None:
    """Raise InvalidConstraintError unless cr is a valid instance of crd."""
    spec = crd.get("spec") or {}
    schema = (spec.get("validation") or {}).get("openAPIV3Schema")
    if schema is not None:
        errors = list(_value_errors(cr.object or {}, schema, ""))
        if errors:
            raise InvalidConstraintError("; ".join(errors))

    name = cr.name()
    name_errors = _dns1123_subdomain_errors(name)
    if name_errors:
        raise InvalidConstraintError(f"invalid name: {chr(10).join(name_errors)!r}")

    want_kind = (spec.get("names") or {}).get("kind", "")
    gvk = cr.group_version_kind()
    if cr.kind() != want_kind:
        raise InvalidConstraintError(
            f"wrong kind {cr.kind()!r} for constraint {name!r}; want {want_kind!r}"
        )
    if gvk.group != CONSTRAINTS_GROUP:
        raise InvalidConstraintError(
            f"unsupported group {gvk.group!r} for constraint {name!r}; "
            f"allowed group: {CONSTRAINTS_GROUP!r}"
        )
    if gvk.version not in SUPPORTED_VERSIONS:
        raise InvalidConstraintError(
            f"unsupported version {gvk.version!r} for Constraint {name!r}; "
            f"supported versions: {sorted(SUPPORTED_VERSIONS)}"
        )