"""Rego library that stitches constraint evaluation together for a target."""

from __future__ import annotations

import re
from dataclasses import dataclass

_FIELD = re.compile(r"\{\{\s*\.(\w+)\s*\}\}")


@dataclass(frozen=True)
class RegoTemplate:
    """Rego source with `{{.Field}}` placeholders."""

    name: str
    source: str

    def render(self, **fields: object) -> str:
        """Replace each placeholder with its value; raise KeyError if one is missing."""

        def substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            if key not in fields:
                raise KeyError(f"template {self.name!r} has no value for field {key!r}")
            return str(fields[key])

        return _FIELD.sub(substitute, self.source)


_LIBRARY = 'data.hooks["{{.Target}}"].library'
_TEMPLATE_VIOLATION = 'data.templates["{{.Target}}"][constraint.kind].violation[r]'
_EXTERNAL = 'data.external["{{.Target}}"]'
_REVIEW_FROM_INPUT = 'review := get_default(input, "review", {})'


def _rule(head: str, body: list[str]) -> str:
    indented = "\n".join(f"\t{line}" for line in body)
    return f"{head} {{\n{indented}\n}}"


def _response_lines(msg: str, details_of: str) -> list[str]:
    return [
        'spec := get_default(constraint, "spec", {})',
        'enforcementAction := get_default(spec, "enforcementAction", "deny")',
        "response = {",
        f'\t"msg": {msg},',
        '\t"metadata": {"details": get_default(' + details_of + ', "details", {})},',
        '\t"constraint": constraint,',
        '\t"review": review,',
        '\t"enforcementAction": enforcementAction,',
        "}",
    ]


def _evaluation_lines(match: str, *review: str) -> list[str]:
    return [
        match,
        *review,
        "inp := {",
        '\t"review": review,',
        '\t"parameters": get_default(get_default(constraint, "spec", {}), "parameters", {}),',
        "}",
        "inventory[inv]",
        f"{_TEMPLATE_VIOLATION} with input as inp with data.inventory as inv",
        *_response_lines("r.msg", "r"),
    ]


def _build_target_lib() -> str:
    rules = [
        _rule(
            "violation[response]",
            [
                f"{_LIBRARY}.autoreject_review[rejection]",
                _REVIEW_FROM_INPUT,
                'constraint := get_default(rejection, "constraint", {})',
                *_response_lines('get_default(rejection, "msg", "")', "rejection"),
            ],
        ),
        _rule(
            "violation[response]",
            _evaluation_lines(
                f"{_LIBRARY}.matching_constraints[constraint]", _REVIEW_FROM_INPUT
            ),
        ),
        _rule(
            "audit[response]",
            _evaluation_lines(
                f"{_LIBRARY}.matching_reviews_and_constraints[[review, constraint]]"
            ),
        ),
        # External data is read directly: routing it through get_default
        # fails type checking.
        _rule("inventory[inv]", [f"inv = {_EXTERNAL}"]),
        _rule("inventory[{}]", [f"not {_EXTERNAL}"]),
        "get_default(object, field, _default) = object[field]",
        _rule(
            "get_default(object, field, _default) = _default",
            ["not has_field(object, field)"],
        ),
        _rule("has_field(object, field)", ["_ = object[field]"]),
    ]
    return 'package hooks["{{.Target}}"]\n\n' + "\n\n".join(rules) + "\n"


TARGET_LIB = RegoTemplate("TargetLib", _build_target_lib())


def render_target_lib(target: str) -> str:
    """Return the hooks library for the named target."""
    return TARGET_LIB.render(Target=target)