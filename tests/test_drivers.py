import pytest

from constraintkit.drivers import Driver, QueryCfg, QueryResponse, tracing


def test_query_cfg_defaults_to_no_tracing():
    assert QueryCfg.from_opts().tracing_enabled is False


def test_tracing_option_enables():
    assert QueryCfg.from_opts(tracing(True)).tracing_enabled is True


def test_last_option_wins():
    assert QueryCfg.from_opts(tracing(True), tracing(False)).tracing_enabled is False
    assert QueryCfg.from_opts(tracing(False), tracing(True)).tracing_enabled is True


def test_tracing_applies_to_existing_cfg():
    cfg = QueryCfg()
    tracing(True)(cfg)
    assert cfg == QueryCfg(tracing_enabled=True)


def test_query_response_defaults():
    first = QueryResponse()
    second = QueryResponse()
    first.results.append({"msg": "denied"})
    assert second.results == []
    assert first.trace is None
    assert first.input is None


def test_driver_is_abstract():
    with pytest.raises(TypeError):
        Driver()