"""A driver that evaluates policies on a remote OPA server."""

from __future__ import annotations

import dataclasses
import json
import ssl
import urllib.parse
from typing import Any

from constraintkit.drivers import Driver, QueryCfg, QueryOpt, QueryResponse
from constraintkit.opa_http import HTTPClient, OPAError


def _json_default(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"value of type {type(value).__name__} is not JSON serializable")


def _pretty(value: Any) -> str:
    return json.dumps(value, indent=3, sort_keys=True, default=_json_default)


def make_url_path(path: str) -> str:
    """Convert a path like data.foo["bar.baz"].yes to data/foo/bar.baz/yes."""
    pieces: list[str] = []
    quoted = False
    open_bracket = False
    current: list[str] = []
    for ch in path:
        if not quoted:
            if ch == ".":
                pieces.append("".join(current))
                current = []
                continue
            if ch == "[":
                if open_bracket:
                    raise ValueError(f"mismatched bracketing: {path!r}")
                open_bracket = True
                pieces.append("".join(current))
                current = []
                continue
            if ch == "]":
                if not open_bracket:
                    raise ValueError(f"mismatched bracketing: {path!r}")
                open_bracket = False
                continue
        if ch == '"':
            quoted = not quoted
            continue
        current.append(ch)
    pieces.append("".join(current))
    return "/".join(pieces)


class RemoteDriver(Driver):
    """Stores modules and data on, and sends queries to, a remote server."""

    def __init__(
        self,
        url: str | None = None,
        ca_file: str | None = None,
        auth: str = "",
        tracing_enabled: bool = False,
        client: HTTPClient | None = None,
    ) -> None:
        if client is None:
            if not url:
                raise ValueError("missing URL for OPA")
            context = ssl.create_default_context(cafile=ca_file) if ca_file else None
            client = HTTPClient(url, context, auth)
        self.client = client
        self.tracing_enabled = tracing_enabled

    def init(self) -> None:
        """Check that the driver has a client to talk to the server through."""
        if self.client is None:
            raise ValueError("missing client for OPA")

    def put_module(self, name: str, src: str) -> None:
        self.client.insert_policy(name, src.encode("utf-8"))

    def delete_module(self, name: str) -> bool:
        """Delete a module; return False if there was none."""
        try:
            self.client.delete_policy(name)
        except OPAError as exc:
            if exc.status == 404:
                return False
            raise
        return True

    def put_data(self, path: str, data: Any) -> None:
        self.client.put_data(path, data)

    def delete_data(self, path: str) -> bool:
        """Delete data; return False if there was none."""
        try:
            self.client.delete_data(path)
        except OPAError as exc:
            if exc.status == 404:
                return False
            raise
        return True

    def query(self, path: str, review_input: Any, *opts: QueryOpt) -> QueryResponse:
        cfg = QueryCfg.from_opts(*opts)
        tracing = self.tracing_enabled or cfg.tracing_enabled
        url_path = make_url_path(path)
        if tracing:
            url_path += "?explain=full&pretty=true"
        response = self.client.query(url_path, review_input)

        results: list[dict[str, Any]] = []
        if response.result is not None:
            raw = response.result
            if not isinstance(raw, list) or not all(
                isinstance(item, dict) for item in raw
            ):
                raise ValueError(
                    "error Unmarshalling DriverQuery: Unmarshal result: "
                    f"{json.dumps(raw, default=_json_default)}"
                )
            results = raw

        trace = None
        if tracing and response.explanation is not None:
            trace = _pretty(response.explanation)
        return QueryResponse(results=results, trace=trace, input=_pretty(review_input))

    def dump(self) -> str:
        response = self.client.query("", None)
        listing = self.client.list_policies().result
        if listing is None:
            listing = []
        if not isinstance(listing, list):
            raise ValueError("policy listing must be a list")
        policies: dict[str, str] = {}
        for entry in listing:
            if not isinstance(entry, dict):
                raise ValueError("each policy must be an object")
            policy_id = entry.get("id")
            raw = entry.get("raw")
            if isinstance(policy_id, str) and isinstance(raw, str):
                policies[urllib.parse.unquote(policy_id)] = raw
        return _pretty({"data": response.result, "modules": policies})