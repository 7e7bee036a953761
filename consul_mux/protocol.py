"""Protocol adapter: operations to requests, responses to results or errors.

Each Operation knows its HTTP method, path and body, and how to turn a
successful response body into its typed result. ``build`` and
``interpret`` are shared by all of them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, ClassVar
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from consul_mux.errors import (
    ClientError,
    DecodeError,
    EncodingError,
    NotFound,
    ServerError,
    UriError,
)
from consul_mux.types import KVEntry, Request, Response, ServiceNode

_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")
_AUTHORITY_RE = re.compile(
    r"(?P<host>\[[0-9A-Fa-f:.]+\]|[A-Za-z0-9\-._~%!$&'()*+,;=]+)"
    r"(?::(?P<port>[0-9]{1,5}))?"
)

_KV_ENTRIES = TypeAdapter(list[KVEntry])
_KEYS = TypeAdapter(list[str])
_SERVICE_NODES = TypeAdapter(list[ServiceNode])


def _segment(value: str) -> str:
    """Percent-encode a key or name, keeping ``/`` as a path separator."""
    return quote(value, safe="/")


def _decode(adapter: TypeAdapter, body: bytes) -> Any:
    try:
        return adapter.validate_json(body)
    except ValidationError as exc:
        raise DecodeError(str(exc)) from exc


@dataclass(frozen=True)
class Operation:
    """Base class for the logical operations the client can perform."""

    method: ClassVar[str] = "GET"

    @property
    def path(self) -> str:
        raise NotImplementedError

    @property
    def body(self) -> bytes:
        return b""

    def decode(self, body: bytes) -> Any:
        """Turn a successful response body into this operation's result."""
        raise NotImplementedError


@dataclass(frozen=True)
class Get(Operation):
    key: str

    @property
    def path(self) -> str:
        return f"/v1/kv/{_segment(self.key)}"

    def decode(self, body: bytes) -> list[KVEntry]:
        return _decode(_KV_ENTRIES, body)


@dataclass(frozen=True)
class GetKeys(Operation):
    prefix: str

    @property
    def path(self) -> str:
        return f"/v1/kv/{_segment(self.prefix)}?keys"

    def decode(self, body: bytes) -> list[str]:
        return _decode(_KEYS, body)


@dataclass(frozen=True)
class Set(Operation):
    key: str
    value: bytes
    method: ClassVar[str] = "PUT"

    @property
    def path(self) -> str:
        return f"/v1/kv/{_segment(self.key)}"

    @property
    def body(self) -> bytes:
        return self.value

    def decode(self, body: bytes) -> bool:
        return True


@dataclass(frozen=True)
class Delete(Operation):
    key: str
    method: ClassVar[str] = "DELETE"

    @property
    def path(self) -> str:
        return f"/v1/kv/{_segment(self.key)}"

    def decode(self, body: bytes) -> bool:
        return True


@dataclass(frozen=True)
class ServiceNodes(Operation):
    name: str

    @property
    def path(self) -> str:
        return f"/v1/catalog/service/{_segment(self.name)}"

    def decode(self, body: bytes) -> list[ServiceNode]:
        return _decode(_SERVICE_NODES, body)


@dataclass(frozen=True)
class Register(Operation):
    """Register a service with the local agent; ``payload`` is encoded JSON."""

    payload: bytes
    method: ClassVar[str] = "PUT"

    @property
    def path(self) -> str:
        return "/v1/agent/service/register"

    @property
    def body(self) -> bytes:
        return self.payload

    def decode(self, body: bytes) -> None:
        return None


def _validate_authority(authority: str) -> None:
    match = _AUTHORITY_RE.fullmatch(authority)
    if match is None:
        raise UriError(f"invalid authority {authority!r}")
    port = match.group("port")
    if port is not None and int(port) > 65535:
        raise UriError(f"port out of range in authority {authority!r}")


def build_uri(scheme: str, authority: str, path: str) -> str:
    """Compose and validate an absolute URI from its parts."""
    if not _SCHEME_RE.fullmatch(scheme):
        raise UriError(f"invalid scheme {scheme!r}")
    _validate_authority(authority)
    if not path.startswith("/"):
        raise UriError(f"path must be absolute: {path!r}")
    uri = f"{scheme}://{authority}{path}"
    try:
        httpx.URL(uri)
    except httpx.InvalidURL as exc:
        raise UriError(str(exc)) from exc
    return uri


def build(operation: Operation, scheme: str, authority: str) -> Request:
    """Build the HTTP request for an operation against ``scheme://authority``."""
    uri = build_uri(scheme, authority, operation.path)
    return Request(method=operation.method, uri=uri, body=operation.body)


def _body_text(body: bytes) -> str:
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EncodingError(str(exc)) from exc


def interpret(response: Response) -> bytes:
    """Map a response status to success (its body) or a ConsulError.

    1xx, 2xx and 3xx are success. 404 raises NotFound, other 4xx raise
    ClientError, 5xx raise ServerError, each carrying the body as text.
    A body that is not UTF-8 raises EncodingError instead.
    """
    status = response.status
    if 100 <= status < 400:
        return response.body
    if status == 404:
        raise NotFound()
    if 400 <= status < 500:
        raise ClientError(_body_text(response.body))
    if 500 <= status < 600:
        raise ServerError(_body_text(response.body))
    raise RuntimeError(f"status {status} outside the HTTP range; this is a bug")
