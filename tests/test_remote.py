import json

import pytest

from constraintkit.drivers import tracing
from constraintkit.opa_http import OPAError, QueryResult
from constraintkit.remote import RemoteDriver, make_url_path

RESPONSE = """
[
    {
        "msg": "totally invalid",
        "metadata": {"details": {"not": "good"}},
        "constraint": {
            "apiVersion": "constraints.gatekeeper.sh/v1",
            "kind": "RequiredLabels",
            "metadata": {"name": "require-a-label"},
            "spec": {"parameters": {"hello": "world"}}
        },
        "resource": {"hi": "there"}
    },
    {"msg": "yep"}
]
"""


class FakeClient:
    def __init__(self, result=None, explanation=None, policies=None, delete_status=None):
        self.result = result
        self.explanation = explanation
        self.policies = policies
        self.delete_status = delete_status
        self.queries = []
        self.inserted = {}

    def query(self, path, input_value):
        self.queries.append((path, input_value))
        return QueryResult(result=self.result, explanation=self.explanation)

    def list_policies(self):
        return QueryResult(result=self.policies)

    def insert_policy(self, policy_id, source):
        self.inserted[policy_id] = source

    def delete_policy(self, policy_id):
        if self.delete_status is not None:
            raise OPAError(self.delete_status, "failed")

    def delete_data(self, path):
        if self.delete_status is not None:
            raise OPAError(self.delete_status, "failed")


def test_query_parse_response():
    driver = RemoteDriver(client=FakeClient(result=json.loads(RESPONSE)))
    res = driver.query("random", None)
    assert len(res.results) == 2
    assert res.results[0]["msg"] == "totally invalid"
    assert res.results[1]["msg"] == "yep"
    assert res.input == "null"
    assert res.trace is None


@pytest.mark.parametrize(
    "path, expected",
    [
        ("asdf", "asdf"),
        ("asdf.gfgf.dsdf", "asdf/gfgf/dsdf"),
        ("asdf[gfgf].dsdf", "asdf/gfgf/dsdf"),
        ('asdf["gfgf"].dsdf', "asdf/gfgf/dsdf"),
        ('asdf["gf.gf"].dsdf', "asdf/gf.gf/dsdf"),
    ],
)
def test_make_url_path(path, expected):
    assert make_url_path(path) == expected


@pytest.mark.parametrize("path", ["a[[b]]", "a]b"])
def test_make_url_path_mismatched(path):
    with pytest.raises(ValueError, match="mismatched bracketing"):
        make_url_path(path)


def test_query_with_tracing():
    client = FakeClient(result=[], explanation={"step": 1})
    driver = RemoteDriver(client=client)
    res = driver.query('hooks["t"].violation', {"a": 1}, tracing(True))
    assert client.queries[0][0] == "hooks/t/violation?explain=full&pretty=true"
    assert json.loads(res.trace) == {"step": 1}
    assert json.loads(res.input) == {"a": 1}


def test_query_rejects_bad_result():
    driver = RemoteDriver(client=FakeClient(result={"not": "a list"}))
    with pytest.raises(ValueError, match="Unmarshalling"):
        driver.query("x", None)


def test_missing_url():
    with pytest.raises(ValueError, match="missing URL"):
        RemoteDriver()


def test_put_module_encodes_source():
    client = FakeClient()
    RemoteDriver(client=client).put_module("m", "package x")
    assert client.inserted == {"m": b"package x"}


@pytest.mark.parametrize("status, expected", [(None, True), (404, False)])
def test_delete_module_and_data(status, expected):
    driver = RemoteDriver(client=FakeClient(delete_status=status))
    assert driver.delete_module("m") is expected
    assert driver.delete_data("/d") is expected


def test_delete_raises_other_errors():
    driver = RemoteDriver(client=FakeClient(delete_status=500))
    with pytest.raises(OPAError):
        driver.delete_module("m")
    with pytest.raises(OPAError):
        driver.delete_data("/d")


def test_dump():
    client = FakeClient(
        result={"x": 1},
        policies=[{"id": "a%2Fb", "raw": "package x"}, {"id": 1, "raw": "ignored"}],
    )
    dumped = json.loads(RemoteDriver(client=client).dump())
    assert dumped == {"data": {"x": 1}, "modules": {"a/b": "package x"}}
    assert client.queries == [("", None)]