"""
Single-flight helper for asyncio.

Concurrent callers of ``SingleFlight.run()`` share one in-flight operation:
the first caller starts it, later callers await the same future, and the
handle is cleared when the operation settles (success or failure) so the next
call starts fresh.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Owns at most one in-flight task for an async factory."""

    def __init__(self, factory: Callable[[], Awaitable[T]]) -> None:
        self._factory = factory
        self._inflight: asyncio.Future[T] | None = None
        self.started = 0

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    async def run(self) -> T:
        """Start the operation, or join the one already running."""
        fut = self._inflight
        if fut is None:
            fut = asyncio.ensure_future(self._factory())
            self._inflight = fut
            self.started += 1
            fut.add_done_callback(self._settled)
        # shield: a cancelled joiner must not cancel the shared operation
        return await asyncio.shield(fut)

    def _settled(self, fut: asyncio.Future[Any]) -> None:
        if self._inflight is fut:
            self._inflight = None
        # Mark the exception retrieved; joiners already received it
        if not fut.cancelled():
            fut.exception()
