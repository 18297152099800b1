"""
Custom exceptions for the Kafka outbound adapter.

Errors raised before dispatch (precondition, resolution) abort the invocation
with no publish attempt. Errors raised after dispatch (send failure, timeout)
carry the message being handled.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .messages import Message
    from .records import ProducerRecord


class OutboundAdapterError(Exception):
    """Base error for the outbound adapter."""

    pass


class PreconditionViolation(OutboundAdapterError):
    """Invocation state is invalid (e.g. no topic could be resolved)."""

    pass


class FieldResolutionError(OutboundAdapterError):
    """A resolved field value could not be converted to its expected type."""

    def __init__(self, field_name: str, value: Any, reason: str):
        super().__init__(f"Cannot resolve '{field_name}' from {value!r}: {reason}")
        self.field_name = field_name
        self.value = value


class ChannelResolutionError(OutboundAdapterError):
    """A channel name could not be resolved to a channel."""

    pass


class MessageHandlingError(OutboundAdapterError):
    """Failure while handling a specific message."""

    def __init__(self, failed_message: Optional["Message"], description: str):
        super().__init__(description)
        self.failed_message = failed_message


class KafkaSendFailureError(MessageHandlingError):
    """The broker reported a failure for a published record."""

    def __init__(
        self,
        failed_message: Optional["Message"],
        record: "ProducerRecord",
        cause: BaseException,
    ):
        super().__init__(
            failed_message,
            f"Failed to send record to topic '{record.topic}': {type(cause).__name__}: {cause}",
        )
        self.record = record
        self.cause = cause
        self.__cause__ = cause


class MessageTimeoutError(MessageHandlingError):
    """Sync-mode wait for a publish outcome exceeded the send timeout."""

    def __init__(self, failed_message: Optional["Message"], timeout_ms: int):
        super().__init__(
            failed_message,
            f"Timeout waiting for response from KafkaProducer after {timeout_ms} ms",
        )
        self.timeout_ms = timeout_ms
