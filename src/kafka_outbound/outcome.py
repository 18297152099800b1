"""
OutcomeHandle: single-resolution publish outcome with any number of observers.

Wraps an asyncio future. The router registers callbacks and the sync gate
awaits; both see the same resolution and neither can disturb it (waits go
through ``asyncio.shield``).
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

from .errors import OutboundAdapterError
from .records import SendResult

SuccessCallback = Callable[[SendResult], None]
FailureCallback = Callable[[BaseException], None]


class OutcomeState(str, Enum):
    """Outcome lifecycle. Terminal states are reached at most once."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class OutcomeHandle:
    """Eventual result of one publish attempt."""

    def __init__(self, future: "asyncio.Future[SendResult]"):
        self._future = future

    @property
    def future(self) -> "asyncio.Future[SendResult]":
        return self._future

    @property
    def state(self) -> OutcomeState:
        if not self._future.done():
            return OutcomeState.PENDING
        if self._future.cancelled() or self._future.exception() is not None:
            return OutcomeState.FAILED
        return OutcomeState.SUCCEEDED

    def done(self) -> bool:
        return self._future.done()

    def add_callback(self, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        """Register success/failure callbacks; exactly one fires, exactly once.

        Safe to call after resolution: asyncio schedules the callback anyway.
        """

        def _done(fut: "asyncio.Future[SendResult]") -> None:
            if fut.cancelled():
                on_failure(OutboundAdapterError("publish future was cancelled"))
                return
            exc = fut.exception()
            if exc is not None:
                on_failure(exc)
            else:
                on_success(fut.result())

        self._future.add_done_callback(_done)

    async def wait(self, timeout_ms: Optional[float] = None) -> SendResult:
        """Wait up to ``timeout_ms`` milliseconds (None: no limit) for the outcome
        without affecting it.

        Raises:
            asyncio.TimeoutError: timeout elapsed first (the publish keeps going)
            BaseException: the publish failure cause
        """
        shielded: Awaitable[SendResult] = asyncio.shield(self._future)
        if timeout_ms is None:
            return await shielded
        return await asyncio.wait_for(shielded, timeout=timeout_ms / 1000.0)
