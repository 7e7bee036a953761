# pylint: disable=missing-function-docstring  # protocol stubs use `...` bodies; names are self-documenting
"""Transport protocol: the capability the multiplexer dispatches through.

Any object with these two coroutines satisfies it via structural typing.
Implementations need not be safe for concurrent use; the multiplexer never
calls ``send`` more than ``bound`` times at once.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from consul_mux.types import Request, Response


@runtime_checkable
class Transport(Protocol):
    """Interface every transport adapter implements."""

    # Wait until the transport can accept another request
    async def ready(self) -> None: ...

    # Perform one HTTP exchange; raise on transport-level failure
    async def send(self, request: Request) -> Response: ...
