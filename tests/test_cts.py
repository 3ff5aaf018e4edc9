from constraintkit import cts
from constraintkit.schema_props import JSONSchemaProps
from constraintkit.templates import Names


def test_new_defaults():
    template = cts.new()
    assert template.metadata.name == "fakes"
    assert template.spec.crd.spec.names.kind == "Fakes"
    assert template.spec.targets == [cts.target("test.target", cts.MODULE_DENY)]


def test_options_override_defaults():
    template = cts.new(cts.opt_name("horses"), cts.opt_crd_names("Horse"))
    assert template.metadata.name == "horses"
    assert template.spec.crd.spec.names.kind == "Horse"


def test_crd_names_clears_short_names():
    template = cts.new()
    template.spec.crd.spec.names = Names(kind="Old", short_names=["o"])
    cts.opt_crd_names("New")(template)
    assert template.spec.crd.spec.names == Names(kind="New")


def test_target_libs():
    with_libs = cts.target("t", "rego", "lib1", "lib2")
    without_libs = cts.target("t", "rego")
    assert with_libs.libs == ["lib1", "lib2"]
    assert without_libs.libs is None
    assert with_libs.target == "t"
    assert with_libs.rego == "rego"


def test_opt_targets_copies_targets():
    shared = cts.target("t", "rego", "lib")
    first = cts.new(cts.opt_targets(shared))
    second = cts.new(cts.opt_targets(shared))
    first.spec.targets[0].libs.append("extra")
    assert second.spec.targets[0].libs == ["lib"]
    assert shared.libs == ["lib"]


def test_opt_targets_empty():
    assert cts.new(cts.opt_targets()).spec.targets == []


def test_opt_labels():
    labels = {"horse": "smiley"}
    template = cts.new(cts.opt_labels(labels))
    assert template.metadata.labels == labels


def test_opt_crd_schema():
    prop_map = {"test": cts.prop_unstructured()}
    template = cts.new(cts.opt_crd_schema(prop_map))
    assert template.spec.crd.spec.validation.open_api_v3_schema == cts.prop(prop_map)


def test_opt_crd_schema_independent_between_templates():
    opt = cts.opt_crd_schema({"test": cts.prop_unstructured()})
    first = cts.new(opt)
    second = cts.new(opt)
    first.spec.crd.spec.validation.open_api_v3_schema.properties.clear()
    assert second.spec.crd.spec.validation.open_api_v3_schema == cts.prop(
        {"test": cts.prop_unstructured()}
    )


def test_prop_builders():
    node = cts.prop({"fast": cts.prop_typed("boolean")})
    assert node.type == "object"
    assert node.properties["fast"] == JSONSchemaProps(type="boolean")
    assert cts.prop_unstructured().to_dict() == {
        "x-kubernetes-preserve-unknown-fields": True
    }


def test_expected_schema_shape():
    prop_map = {"match": cts.prop_unstructured()}
    schema = cts.expected_schema(prop_map)
    spec = schema.properties["spec"]
    assert spec.properties["enforcementAction"] == cts.prop_typed("string")
    assert spec.properties["match"] == cts.prop_unstructured()
    assert schema.properties["metadata"].properties["name"].max_length == 63
    assert schema.properties["status"] == cts.prop_unstructured()
    assert set(prop_map) == {"match"}