"""External data providers: registry, request and response formats."""

from __future__ import annotations

import copy
import json
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

API_VERSION = "externaldata.gatekeeper.sh/v1alpha1"


@dataclass
class Provider:
    """An external data provider reachable over HTTP."""

    name: str = ""
    url: str = ""
    timeout: int = 0


def _is_valid_name(name: str) -> bool:
    return len(name) != 0


def _is_valid_url(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def _is_valid_timeout(timeout: int) -> bool:
    return timeout >= 0


class ProviderCache:
    """A thread-safe registry of providers keyed by name."""

    def __init__(self) -> None:
        self._cache: dict[str, Provider] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Provider:
        """Return a copy of the provider named key; raise KeyError if absent."""
        with self._lock:
            try:
                return copy.deepcopy(self._cache[key])
            except KeyError:
                raise KeyError("key is not found in provider cache") from None

    def upsert(self, provider: Provider) -> None:
        """Validate and store a copy of provider."""
        if not _is_valid_name(provider.name):
            raise ValueError(f"provider name can not be empty. value {provider.name}")
        if not _is_valid_url(provider.url):
            raise ValueError(f"invalid provider url. value: {provider.url}")
        if not _is_valid_timeout(provider.timeout):
            raise ValueError(
                "provider timeout should be a positive integer. "
                f"value: {provider.timeout}"
            )
        with self._lock:
            self._cache[provider.name] = copy.deepcopy(provider)

    def remove(self, name: str) -> None:
        with self._lock:
            self._cache.pop(name, None)


class ProviderKind(str, Enum):
    PROVIDER_REQUEST = "ProviderRequest"
    PROVIDER_RESPONSE = "ProviderResponse"


def _str_field(data: Mapping[str, Any], name: str) -> str:
    value = data.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {name!r} must be a string, got {type(value).__name__}")
    return value


@dataclass
class RegoRequest:
    """The argument of the external_data policy function."""

    provider_name: str = ""
    keys: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RegoRequest:
        if not isinstance(data, Mapping):
            raise ValueError("external data request must be an object")
        keys = data.get("keys") or []
        if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
            raise ValueError("field 'keys' must be a list of strings")
        return cls(provider_name=_str_field(data, "provider"), keys=list(keys))


@dataclass
class Request:
    keys: list[str] | None = None


@dataclass
class ProviderRequest:
    """The API request sent to an external data provider."""

    api_version: str = ""
    kind: str = ""
    request: Request = field(default_factory=Request)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.api_version:
            out["apiVersion"] = self.api_version
        if self.kind:
            out["kind"] = str(getattr(self.kind, "value", self.kind))
        request: dict[str, Any] = {}
        if self.request.keys:
            request["keys"] = list(self.request.keys)
        out["request"] = request
        return out


def new_provider_request(keys: list[str]) -> ProviderRequest:
    """Create the request that asks a provider for the given keys."""
    return ProviderRequest(
        api_version=API_VERSION,
        kind=ProviderKind.PROVIDER_REQUEST,
        request=Request(keys=keys),
    )


@dataclass
class Item:
    """A key with either its value or an error from the provider."""

    key: str = ""
    value: Any = None
    error: str = ""


@dataclass
class Response:
    idempotent: bool = False
    items: list[Item] = field(default_factory=list)
    system_error: str = ""


@dataclass
class ProviderResponse:
    """The API response returned by an external data provider."""

    api_version: str = ""
    kind: str = ""
    response: Response = field(default_factory=Response)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProviderResponse:
        if not isinstance(data, Mapping):
            raise ValueError("provider response must be an object")
        response = data.get("response") or {}
        if not isinstance(response, Mapping):
            raise ValueError("field 'response' must be an object")
        raw_items = response.get("items") or []
        if not isinstance(raw_items, list):
            raise ValueError("field 'items' must be a list")
        items = []
        for raw in raw_items:
            if not isinstance(raw, Mapping):
                raise ValueError("each item must be an object")
            items.append(
                Item(
                    key=_str_field(raw, "key"),
                    value=raw.get("value"),
                    error=_str_field(raw, "error"),
                )
            )
        idempotent = response.get("idempotent", False)
        if not isinstance(idempotent, bool):
            raise ValueError("field 'idempotent' must be a boolean")
        return cls(
            api_version=_str_field(data, "apiVersion"),
            kind=_str_field(data, "kind"),
            response=Response(
                idempotent=idempotent,
                items=items,
                system_error=_str_field(response, "systemError"),
            ),
        )


@dataclass
class RegoResponse:
    """The value the external_data policy function evaluates to."""

    responses: list[list[Any]] | None = None
    errors: list[list[Any]] | None = None
    status_code: int = 0
    system_error: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "responses": self.responses,
            "errors": self.errors,
            "status_code": self.status_code,
            "system_error": self.system_error,
        }


def new_rego_response(
    status_code: int, provider_response: ProviderResponse
) -> RegoResponse:
    """Split a provider's items into values and errors."""
    responses: list[list[Any]] = []
    errors: list[list[Any]] = []
    for item in provider_response.response.items:
        if item.error:
            errors.append([item.key, item.error])
        else:
            responses.append([item.key, item.value])
    return RegoResponse(
        responses=responses,
        errors=errors,
        status_code=status_code,
        system_error=provider_response.response.system_error,
    )


def prepare_rego_response(rego_response: RegoResponse) -> dict[str, Any]:
    """Return the JSON value of a response, as policy evaluation sees it."""
    return json.loads(json.dumps(rego_response.to_dict()))


def handle_error(status_code: int, err: BaseException) -> dict[str, Any]:
    """Return the policy value reporting err as a system error."""
    return prepare_rego_response(
        RegoResponse(status_code=status_code, system_error=str(err))
    )