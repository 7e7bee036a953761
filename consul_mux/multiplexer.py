"""Bounded request multiplexer in front of a single transport.

Many callers submit requests concurrently; one background dispatch loop
hands them to the transport in submission order, never keeping more than
``bound`` of them outstanding at once.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from consul_mux.errors import SpawnFailed, TransportFailure
from consul_mux.transport_protocol import Transport
from consul_mux.types import Request, Response

logger = logging.getLogger(__name__)


@dataclass
class PendingCall:
    """One queued or dispatched request and the future its caller awaits."""

    request: Request
    future: asyncio.Future[Response] = field(repr=False)


class Multiplexer:
    """Serializes access to a transport behind a fixed concurrency bound.

    The dispatch loop is the only consumer of the queue and the only place
    a slot is taken; completions give slots back. Queued calls therefore go
    out strictly first-in first-out.

    Must be constructed while an event loop is running.
    """

    def __init__(self, transport: Transport, bound: int) -> None:
        if bound < 1:
            raise ValueError(f"bound must be >= 1, got {bound}")
        self._transport = transport
        self._bound = bound
        self._slots = asyncio.Semaphore(bound)
        self._queue: asyncio.Queue[PendingCall | None] = asyncio.Queue()
        self._in_flight = 0
        self._waiting = 0
        self._closed = False
        self._shutdown: asyncio.Task | None = None
        self._dispatched: set[asyncio.Task] = set()
        try:
            self._loop = asyncio.get_running_loop()
            self._worker = self._loop.create_task(self._run())
        except RuntimeError as exc:
            raise SpawnFailed(f"unable to start dispatch loop: {exc}") from exc

    @property
    def bound(self) -> int:
        return self._bound

    @property
    def in_flight(self) -> int:
        """Number of calls currently dispatched to the transport."""
        return self._in_flight

    @property
    def queued(self) -> int:
        """Number of submitted calls not yet dispatched."""
        return self._waiting

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, request: Request) -> asyncio.Future[Response]:
        """Queue a request and return the future that will carry its outcome.

        The future resolves to the transport's Response, or fails with
        TransportFailure. Never blocks.
        """
        future: asyncio.Future[Response] = self._loop.create_future()
        if self._closed or self._worker.done():
            future.set_exception(SpawnFailed("multiplexer is closed"))
            return future
        self._waiting += 1
        self._queue.put_nowait(PendingCall(request=request, future=future))
        return future

    async def call(self, request: Request) -> Response:
        """Submit a request and wait for its response."""
        return await self.submit(request)

    async def aclose(self) -> None:
        """Stop accepting calls, drain queued and in-flight calls, then
        close the transport if it has an ``aclose``.

        Safe to call from several owners at once (clients made with
        ``clone()`` share one multiplexer): every caller waits for the same
        shutdown, and the transport is closed exactly once.
        """
        if self._shutdown is None:
            self._closed = True
            self._queue.put_nowait(None)
            self._shutdown = self._loop.create_task(self._close_down())
        await asyncio.shield(self._shutdown)

    async def _close_down(self) -> None:
        await asyncio.gather(self._worker, return_exceptions=True)
        close = getattr(self._transport, "aclose", None)
        if close is not None:
            await close()
        logger.debug("Multiplexer closed")

    async def _run(self) -> None:
        """Dispatch loop: dequeue in order, wait for a slot, dispatch."""
        call: PendingCall | None = None
        try:
            while True:
                call = await self._queue.get()
                if call is None:
                    break
                if call.future.done():
                    # Caller gave up while queued
                    self._waiting -= 1
                    call = None
                    continue
                await self._slots.acquire()
                self._waiting -= 1
                if call.future.done():
                    self._slots.release()
                    call = None
                    continue
                self._in_flight += 1
                logger.debug(
                    "Dispatching %s %s (in_flight=%d, queued=%d)",
                    call.request.method, call.request.uri,
                    self._in_flight, self._waiting,
                )
                task = asyncio.create_task(self._dispatch(call))
                self._dispatched.add(task)
                task.add_done_callback(self._dispatched.discard)
                call = None

            if self._dispatched:
                await asyncio.gather(*self._dispatched, return_exceptions=True)
        finally:
            self._closed = True
            self._fail_undispatched(call)

    def _fail_undispatched(self, held: PendingCall | None) -> None:
        """Resolve every call the loop will never dispatch with SpawnFailed."""
        leftovers = [held] if held is not None else []
        while not self._queue.empty():
            leftovers.append(self._queue.get_nowait())
        for call in leftovers:
            if call is not None and not call.future.done():
                call.future.set_exception(SpawnFailed("dispatch loop stopped"))
        self._waiting = 0

    async def _dispatch(self, call: PendingCall) -> None:
        """Run one call on the transport and resolve its future exactly once."""
        try:
            await self._transport.ready()
            response = await self._transport.send(call.request)
        except Exception as exc:  # pylint: disable=broad-exception-caught  # any transport failure belongs to the caller
            if not call.future.done():
                failure = TransportFailure(exc)
                failure.__cause__ = exc
                call.future.set_exception(failure)
        except BaseException:
            # Cancellation or interpreter exit; never leave the caller hanging
            if not call.future.done():
                call.future.cancel()
            raise
        else:
            if not call.future.done():
                call.future.set_result(response)
        finally:
            self._in_flight -= 1
            self._slots.release()
