import pytest

from constraintkit.regolib import TARGET_LIB, RegoTemplate, render_target_lib


def test_target_lib_name_and_package():
    rego = TARGET_LIB.render(Target="foo")
    assert TARGET_LIB.name == "TargetLib"
    assert rego.startswith('package hooks["foo"]')


def test_render_target_lib_for_foo():
    rego = render_target_lib("foo")
    assert 'package hooks["foo"]' in rego
    assert 'data.hooks["foo"].library.matching_constraints[constraint]' in rego
    assert 'data.templates["foo"][constraint.kind].violation[r]' in rego
    assert "{{" not in rego


def test_rules_present():
    rego = render_target_lib("foo")
    assert rego.count("violation[response] {") == 2
    assert rego.count("audit[response] {") == 1
    assert "autoreject_review[rejection]" in rego
    assert "matching_reviews_and_constraints[[review, constraint]]" in rego
    assert 'inv = data.external["foo"]' in rego
    assert 'not data.external["foo"]' in rego


def test_every_placeholder_replaced():
    rego = TARGET_LIB.render(Target="foo")
    assert rego.count('"foo"') == TARGET_LIB.source.count("{{.Target}}")


def test_render_matches_render_target_lib():
    assert TARGET_LIB.render(Target="bar") == render_target_lib("bar")


def test_missing_field_raises():
    with pytest.raises(KeyError):
        TARGET_LIB.render()


def test_custom_template_with_spacing():
    template = RegoTemplate("t", "a {{.X}} b {{ .X }} c {{.Y}}")
    assert template.render(X="1", Y="2") == "a 1 b 1 c 2"


def test_template_without_placeholders_unchanged():
    template = RegoTemplate("plain", "package foo")
    assert template.render(Target="ignored") == "package foo"