"""
SyncGate: blocks a sync-mode invocation until its publish outcome resolves
or the per-message send timeout elapses.
"""

from __future__ import annotations

import asyncio
import math
from typing import Any, Optional

from loguru import logger

from .errors import (
    FieldResolutionError,
    KafkaSendFailureError,
    MessageTimeoutError,
    OutboundAdapterError,
)
from .messages import Message
from .outcome import OutcomeHandle
from .records import ProducerRecord, SendResult
from .rules import FieldRule, StaticValue, as_rule

DEFAULT_SEND_TIMEOUT_MS = 10_000


def _to_timeout_ms(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise FieldResolutionError("send_timeout", value, "boolean is not a timeout")
    try:
        timeout = float(value)
    except (TypeError, ValueError) as e:
        raise FieldResolutionError("send_timeout", value, str(e)) from e
    if math.isnan(timeout):
        raise FieldResolutionError("send_timeout", value, "not a number")
    if timeout < 0:
        return -1
    if math.isinf(timeout):
        return None
    # fractional millis round up
    return math.ceil(timeout)


def _failed_with(handle: OutcomeHandle, exc: BaseException) -> bool:
    # A publish failure may itself be a TimeoutError; that is not a gate timeout.
    fut = handle.future
    return fut.done() and not fut.cancelled() and fut.exception() is exc


class SyncGate:
    """Waits on an OutcomeHandle with a resolved timeout.

    Args:
        send_timeout: Milliseconds, a rule evaluated per message, or None.
            None or a negative value waits indefinitely.
    """

    def __init__(self, send_timeout: Any = DEFAULT_SEND_TIMEOUT_MS):
        self.send_timeout_rule: FieldRule = as_rule(send_timeout) or StaticValue(None)

    def resolve_timeout(self, message: Message) -> Optional[int]:
        return _to_timeout_ms(self.send_timeout_rule.evaluate(message))

    async def wait(
        self, handle: OutcomeHandle, message: Message, record: ProducerRecord
    ) -> SendResult:
        """Return the SendResult, or raise.

        Raises:
            MessageTimeoutError: timeout elapsed before the outcome resolved
            KafkaSendFailureError: the publish failed (cause chained)
        """
        timeout_ms = self.resolve_timeout(message)
        try:
            if timeout_ms is None or timeout_ms < 0:
                return await handle.wait()
            return await handle.wait(timeout_ms)
        except asyncio.TimeoutError as te:
            if _failed_with(handle, te):
                raise KafkaSendFailureError(message, record, te) from te
            logger.error(
                f"Timed out after {timeout_ms} ms waiting for publish to {record.topic} "
                f"(message {message.id})"
            )
            raise MessageTimeoutError(message, timeout_ms) from te
        except asyncio.CancelledError:
            # cancellation of the caller itself propagates unchanged
            if not handle.future.cancelled():
                raise
            cause = OutboundAdapterError("publish future was cancelled")
            raise KafkaSendFailureError(message, record, cause) from cause
        except Exception as cause:
            raise KafkaSendFailureError(message, record, cause) from cause
