"""Pytest configuration and shared fixtures."""

import base64
import json
import os
from urllib.parse import unquote, urlsplit

import pytest
from dotenv import load_dotenv

from consul_mux.types import Request, Response

# Load .env file for CONSUL_HTTP_ADDR
load_dotenv()

# -- Consul availability check (cached for the session) --

_consul_available: bool | None = None


def consul_address() -> str:
    return os.environ.get("CONSUL_HTTP_ADDR", "127.0.0.1:8500")


def _check_consul() -> bool:
    """Check if a Consul agent is reachable. Result is cached for the session."""
    global _consul_available  # noqa: PLW0603
    if _consul_available is not None:
        return _consul_available
    import socket
    host, _, port = consul_address().rpartition(":")
    try:
        with socket.create_connection((host, int(port)), timeout=2):
            _consul_available = True
    except (OSError, ValueError):
        _consul_available = False
    return _consul_available


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: tests against a running Consul agent")


def pytest_collection_modifyitems(config, items):
    """Auto-skip integration tests when no agent is listening."""
    skip_consul = pytest.mark.skip(reason="Consul agent not reachable")
    if any("integration" in item.keywords for item in items) and not _check_consul():
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_consul)


# -- In-memory Consul agent --


class FakeConsul:
    """Transport that answers the agent API from in-memory state.

    Mirrors Consul's behavior closely enough for client tests: missing keys
    and empty prefixes are 404, writes answer ``true``, unknown services
    list as ``[]``, and a malformed registration body is a 400.
    """

    def __init__(self) -> None:
        self.kv: dict[str, tuple[bytes, int]] = {}
        self.services: list[dict] = []
        self.requests: list[Request] = []
        self._index = 0

    async def ready(self) -> None:
        pass

    async def send(self, request: Request) -> Response:
        self.requests.append(request)
        parts = urlsplit(request.uri)
        path = unquote(parts.path)

        if path.startswith("/v1/kv/"):
            return self._kv(request.method, path[len("/v1/kv/"):], parts.query, request.body)
        if path.startswith("/v1/catalog/service/") and request.method == "GET":
            name = path[len("/v1/catalog/service/"):]
            nodes = [s for s in self.services if s["ServiceName"] == name]
            return Response(200, json.dumps(nodes).encode())
        if path == "/v1/agent/service/register" and request.method == "PUT":
            return self._register(request.body)
        return Response(405, b"method not allowed")

    def _kv(self, method: str, key: str, query: str, body: bytes) -> Response:
        if method == "GET" and query == "keys":
            keys = sorted(k for k in self.kv if k.startswith(key))
            if not keys:
                return Response(404)
            return Response(200, json.dumps(keys).encode())
        if method == "GET":
            if key not in self.kv:
                return Response(404)
            value, index = self.kv[key]
            entry = {
                "CreateIndex": index,
                "ModifyIndex": index,
                "LockIndex": 0,
                "Key": key,
                "Flags": 0,
                "Value": base64.b64encode(value).decode(),
                "Session": None,
            }
            return Response(200, json.dumps([entry]).encode())
        if method == "PUT":
            self._index += 1
            self.kv[key] = (body, self._index)
            return Response(200, b"true")
        if method == "DELETE":
            self.kv.pop(key, None)
            return Response(200, b"true")
        return Response(405, b"method not allowed")

    def _register(self, body: bytes) -> Response:
        try:
            service = json.loads(body)
        except ValueError as exc:
            return Response(400, f"Request decode failed: {exc}".encode())
        name = service.get("Name", "")
        self.services.append({
            "ServiceKind": "",
            "ID": service.get("ID", name),
            "ServiceID": service.get("ID", name),
            "ServiceName": name,
            "ServiceTags": service.get("Tags") or [],
            "ServiceMeta": service.get("Meta") or {},
            "Node": "fake-node",
            "Address": "127.0.0.1",
            "Datacenter": "dc1",
        })
        return Response(200)


@pytest.fixture
def fake_consul():
    return FakeConsul()
