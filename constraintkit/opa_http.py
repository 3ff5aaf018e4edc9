"""A small client for the policy and data REST API of an OPA server."""

from __future__ import annotations

import dataclasses
import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any

_MISSING: Any = object()


class OPAError(Exception):
    """An error response returned by the server."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(f"code {status}: {message}")


class Undefined(Exception):
    """The server reported an undefined result."""

    def __init__(self) -> None:
        super().__init__("undefined")


def is_undefined_error(err: BaseException | None) -> bool:
    """Return True if err reports an undefined result."""
    return isinstance(err, Undefined)


@dataclass
class QueryResult:
    """The decoded body of a query or policy listing."""

    result: Any = None
    explanation: Any = None
    error: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> QueryResult:
        if not isinstance(data, dict):
            raise ValueError("query response must be a JSON object")
        error = data.get("error")
        if error is not None and not isinstance(error, dict):
            raise ValueError("field 'error' must be an object")
        return cls(
            result=data.get("result"),
            explanation=data.get("explanation"),
            error=error,
        )


def join_paths(join: str, *paths: str) -> str:
    """Join the non-empty paths with join, trimming join from their ends."""
    parts = [trimmed for trimmed in (path.strip(join) for path in paths) if trimmed]
    return join.join(parts)


def slash_path(*paths: str) -> str:
    """Join paths into an absolute, slash-separated path."""
    return "/" + join_paths("/", *paths)


def _json_default(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"value of type {type(value).__name__} is not JSON serializable")


def _encode(value: Any) -> bytes:
    return json.dumps(value, default=_json_default).encode("utf-8")


class HTTPClient:
    """Talks to the policy and data endpoints of one server."""

    def __init__(
        self,
        url: str,
        ssl_context: ssl.SSLContext | None = None,
        auth: str = "",
        prefix: str = "",
    ) -> None:
        self.url = url.rstrip("/")
        self.ssl_context = ssl_context
        self.auth = auth
        self.prefix = prefix

    def with_prefix(self, path: str) -> HTTPClient:
        """Return a client whose data paths are relative to path."""
        return HTTPClient(
            self.url,
            self.ssl_context,
            self.auth,
            join_paths("/", self.prefix, path),
        )

    def make_patch(self, path: str, op: str, value: Any = _MISSING) -> bytes:
        """Return the JSON patch document applying op at path."""
        operation: dict[str, Any] = {"path": slash_path(self.prefix, path), "op": op}
        if value is not _MISSING:
            operation["value"] = value
        return _encode([operation])

    def patch_data(self, path: str, op: str, value: Any = _MISSING) -> None:
        body = self.make_patch(path, op, value)
        self._handle_errors(*self._do("PATCH", slash_path("v1", "data"), body))

    def put_data(self, path: str, value: Any) -> None:
        abs_path = slash_path("v1", "data", self.prefix, path)
        self._handle_errors(*self._do("PUT", abs_path, _encode(value)))

    def post_data(self, path: str, value: Any) -> Any:
        """Evaluate the document at path with value as input and return its result.

        Raises Undefined if the server returned no result.
        """
        abs_path = slash_path("v1", "data", self.prefix, path)
        status, body = self._do("POST", abs_path, _encode({"input": value}))
        if status != 200:
            self._handle_errors(status, body)
            return None
        decoded = json.loads(body)
        if not isinstance(decoded, dict) or decoded.get("result") is None:
            raise Undefined()
        return decoded["result"]

    def delete_data(self, path: str) -> None:
        abs_path = slash_path("v1", "data", self.prefix, path)
        self._handle_errors(*self._do("DELETE", abs_path))

    def query(self, path: str, input_value: Any) -> QueryResult:
        """Query the document at path; POST with input if given, else GET."""
        payload: dict[str, Any] = {}
        if input_value is not None:
            payload["input"] = input_value
        abs_path = slash_path("v1", "data", self.prefix, path)
        method = "GET" if input_value is None else "POST"
        status, body = self._do(method, abs_path, _encode(payload))
        if status != 200:
            raise OPAError(status, body.decode("utf-8", errors="replace"))
        return QueryResult.from_dict(json.loads(body))

    def insert_policy(self, policy_id: str, source: bytes) -> None:
        path = slash_path("v1", "policies", policy_id)
        self._handle_errors(*self._do("PUT", path, bytes(source)))

    def delete_policy(self, policy_id: str) -> None:
        path = slash_path("v1", "policies", policy_id)
        self._handle_errors(*self._do("DELETE", path))

    def list_policies(self) -> QueryResult:
        abs_path = slash_path("v1", "policies", self.prefix)
        status, body = self._do("GET", abs_path)
        if status != 200:
            raise OPAError(status, body.decode("utf-8", errors="replace"))
        return QueryResult.from_dict(json.loads(body))

    @staticmethod
    def _handle_errors(status: int, body: bytes) -> None:
        if 200 <= status < 300:
            return
        raise OPAError(status, body.decode("utf-8", errors="replace"))

    def _do(self, verb: str, path: str, body: bytes | None = None) -> tuple[int, bytes]:
        request = urllib.request.Request(self.url + path, data=body, method=verb)
        if self.auth:
            request.add_header("Authorization", "Bearer " + self.auth)
        context = self.ssl_context if self.url.startswith("https") else None
        try:
            with urllib.request.urlopen(request, context=context) as response:
                return response.status, response.read()
        except urllib.error.HTTPError as exc:
            try:
                return exc.code, exc.read()
            finally:
                exc.close()