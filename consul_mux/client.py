"""Consul agent API client.

Each method builds a request, submits it through the shared multiplexer
and interprets the response. Methods are independent coroutines; callers
that need read-after-write must await one before issuing the next.
"""

from __future__ import annotations

import copy
from typing import Any

from consul_mux.config import ClientConfig
from consul_mux.multiplexer import Multiplexer
from consul_mux.protocol import (
    Delete,
    Get,
    GetKeys,
    Operation,
    Register,
    ServiceNodes,
    Set,
    build,
    interpret,
)
from consul_mux.transport import HttpxTransport
from consul_mux.transport_protocol import Transport
from consul_mux.types import KVEntry, ServiceNode


class ConsulClient:
    """Typed client for the Consul KV, catalog and agent endpoints.

    ``scheme`` and ``authority`` are only validated when a request is
    built, so a bad address surfaces as UriError from the first call.
    Construction raises SpawnFailed when no event loop is running.
    """

    def __init__(
        self, transport: Transport, bound: int, scheme: str, authority: str
    ) -> None:
        self._mux = Multiplexer(transport, bound)
        self.scheme = scheme
        self.authority = authority

    @classmethod
    def from_config(
        cls, config: ClientConfig, transport: Transport | None = None
    ) -> ConsulClient:
        """Create a client from a ClientConfig, defaulting to httpx."""
        if transport is None:
            transport = HttpxTransport(timeout=config.timeout)
        return cls(transport, config.bound, config.scheme, config.address)

    @property
    def multiplexer(self) -> Multiplexer:
        return self._mux

    def clone(self) -> ConsulClient:
        """Return a client sharing this one's multiplexer and bound."""
        return copy.copy(self)

    async def get(self, key: str) -> list[KVEntry]:
        """Read a key. Raises NotFound if it does not exist."""
        return await self._call(Get(key))

    async def get_keys(self, prefix: str) -> list[str]:
        """List the keys under a prefix. Raises NotFound if there are none."""
        return await self._call(GetKeys(prefix))

    async def set(self, key: str, value: bytes | str) -> bool:
        """Store raw bytes under a key."""
        if isinstance(value, str):
            value = value.encode("utf-8")
        return await self._call(Set(key, value))

    async def delete(self, key: str) -> bool:
        """Delete a key. Deleting a missing key still succeeds."""
        return await self._call(Delete(key))

    async def service_nodes(self, service: str) -> list[ServiceNode]:
        """List the catalog nodes providing a service."""
        return await self._call(ServiceNodes(service))

    async def register(self, service: bytes) -> None:
        """Register a service with the local agent from pre-encoded JSON."""
        await self._call(Register(service))

    async def _call(self, operation: Operation) -> Any:
        request = build(operation, self.scheme, self.authority)
        response = await self._mux.submit(request)
        return operation.decode(interpret(response))

    async def aclose(self) -> None:
        """Drain the shared multiplexer, which then closes the transport once.

        Clones may call this too, concurrently or not; all of them wait for
        the same shutdown.
        """
        await self._mux.aclose()

    async def __aenter__(self) -> ConsulClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
