"""Concrete transports: an httpx adapter and a wrapper for plain coroutines."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

import httpx

from consul_mux.types import Request, Response

logger = logging.getLogger(__name__)


class HttpxTransport:
    """Sends requests through an ``httpx.AsyncClient``.

    Redirects are not followed, so 3xx statuses reach the protocol adapter
    as-is. Timeouts are enforced here, not in the multiplexer.

    Satisfies the Transport protocol via structural typing.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(timeout=timeout)

    async def ready(self) -> None:
        """httpx pools connections internally; always ready."""

    async def send(self, request: Request) -> Response:
        """Perform the exchange and buffer the whole response body."""
        r = await self._http.request(
            request.method,
            request.uri,
            content=request.body,
            follow_redirects=False,
        )
        logger.debug("%s %s -> %d", request.method, request.uri, r.status_code)
        return Response(status=r.status_code, body=r.content)

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._http.aclose()


class ServiceFn:
    """Adapts an ``async def fn(request) -> Response`` into a Transport."""

    def __init__(self, fn: Callable[[Request], Awaitable[Response]]) -> None:
        self._fn = fn

    async def ready(self) -> None:
        pass

    async def send(self, request: Request) -> Response:
        return await self._fn(request)


def service_fn(fn: Callable[[Request], Awaitable[Response]]) -> ServiceFn:
    """Wrap a coroutine function so it can be handed to the multiplexer."""
    return ServiceFn(fn)
