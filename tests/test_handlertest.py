import pytest

from constraintkit.constraints import Unstructured
from constraintkit.handler import TargetHandler
from constraintkit.handlertest import (
    HANDLER_NAME,
    Handler,
    Matcher,
    Object,
    Review,
)
from constraintkit.schema_props import JSONSchemaProps


def test_default_name():
    assert Handler().name() == HANDLER_NAME
    assert HANDLER_NAME == "test.target"


def test_custom_name():
    assert Handler(name="other.target").name() == "other.target"


def test_handler_is_target_handler():
    handler = Handler()
    assert isinstance(handler, TargetHandler)
    assert handler.match_schema().to_dict() == {
        "type": "object",
        "properties": {"label": {"type": "string"}},
    }


def test_process_data_cluster_scoped():
    obj = Object(name="foo")
    handle, path, value = Handler().process_data(obj)
    assert handle is True
    assert path == "cluster/foo"
    assert value is obj


def test_process_data_namespaced():
    obj = Object(name="foo", namespace="bar")
    handle, path, value = Handler().process_data(obj)
    assert (handle, path) == (True, "namespace/bar/foo")
    assert value is obj


def test_process_data_should_handle_false():
    handler = Handler(should_handle=lambda o: o.name != "skip")
    assert handler.process_data(Object(name="skip")) == (False, "", None)
    assert handler.process_data(Object(name="keep"))[0] is True


def test_process_data_error_raised():
    err = RuntimeError("boom")
    with pytest.raises(RuntimeError) as info:
        Handler(process_data_error=err).process_data(Object(name="foo"))
    assert info.value is err


def test_process_data_wrong_type():
    with pytest.raises(TypeError):
        Handler().process_data({"name": "foo"})


def test_handle_review():
    review = Review(object=Object(name="foo"))
    assert Handler().handle_review(review) == (True, review)


def test_handle_review_wrong_type():
    with pytest.raises(TypeError):
        Handler().handle_review(Object(name="foo"))


def test_handle_violation_sets_resource():
    result = {
        "msg": "denied",
        "review": {"object": {"name": "foo", "namespace": "bar"}, "autoreject": True},
    }
    Handler().handle_violation(result)
    assert result["resource"] == Review(
        object=Object(name="foo", namespace="bar"), autoreject=True
    )


def test_handle_violation_without_review():
    result = {"msg": "denied"}
    Handler().handle_violation(result)
    assert result["resource"] == Review()


def test_handle_violation_bad_review():
    with pytest.raises(ValueError):
        Handler().handle_violation({"review": {"autoreject": "yes"}})


def test_match_schema():
    assert Handler().match_schema() == JSONSchemaProps(
        type="object", properties={"label": JSONSchemaProps(type="string")}
    )


def test_library_renders_roots():
    text = Handler().library().render(
        ConstraintsRoot="data.constraints", DataRoot="data.inventory"
    )
    assert "constraint := data.constraints[_][_]" in text
    assert "data.inventory.cluster[_]" in text
    assert "{{" not in text


def test_library_requires_fields():
    with pytest.raises(KeyError):
        Handler().library().render(ConstraintsRoot="data.constraints")


def test_to_matcher_without_namespace_matches_all():
    matcher = Handler().to_matcher(Unstructured())
    assert matcher == Matcher(namespace="")
    assert matcher.match("anything") is True


def test_to_matcher_with_namespace():
    constraint = Unstructured()
    constraint.set_nested_field("bar", "spec", "matchNamespace")
    matcher = Handler().to_matcher(constraint)
    assert matcher.match(Review(object=Object(name="a", namespace="bar"))) is True
    assert matcher.match(Review(object=Object(name="a", namespace="qux"))) is False


def test_to_matcher_non_string():
    constraint = Unstructured()
    constraint.set_nested_field(3, "spec", "matchNamespace")
    with pytest.raises(ValueError):
        Handler().to_matcher(constraint)


def test_to_matcher_spec_not_object():
    constraint = Unstructured({"spec": "x"})
    with pytest.raises(ValueError):
        Handler().to_matcher(constraint)


def test_matcher_wrong_review_type():
    with pytest.raises(TypeError):
        Matcher(namespace="bar").match(Object(namespace="bar"))


def test_object_round_trip():
    obj = Object(name="foo", namespace="bar", data="d", root={"a": [1, 2]})
    assert Object.from_dict(obj.to_dict()) == obj


def test_review_round_trip():
    review = Review(object=Object(name="foo", data="x"), autoreject=True)
    assert Review.from_dict(review.to_dict()) == review


def test_object_json_keys():
    assert set(Object().to_dict()) == {"name", "namespace", "data", "root"}


def test_object_from_dict_bad_type():
    with pytest.raises(ValueError):
        Object.from_dict({"name": 5})


def test_validate_constraint_accepts_anything():
    constraint = Unstructured({"spec": {"x": 1}})
    assert Handler().validate_constraint(constraint) is None
    assert constraint.object == {"spec": {"x": 1}}