"""
OutcomeRouter: turns a publish outcome into a message on the output channel
(success) or an error message on the failure channel (failure).

Routing is attached as a callback on the OutcomeHandle, so it works whether
the outcome resolves before or after attachment, and never blocks the caller.
Channel deliveries run as tasks owned by the router; ``drain()`` awaits them.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from loguru import logger

from .channels import ChannelRef, ChannelRegistry, MessageChannel, channel_registry
from .error_strategy import DefaultErrorMessageStrategy, ErrorMessageStrategy
from .errors import KafkaSendFailureError
from .headers import KafkaHeaders
from .messages import Message
from .outcome import OutcomeHandle
from .records import ProducerRecord, SendResult


class OutcomeRouter:
    """Two-channel outcome routing.

    Args:
        output_channel: Channel (or channel name) receiving the enriched
            original message on success. None: successes are not forwarded.
        failure_channel: Channel (or channel name) receiving an ErrorMessage on
            failure. None: failures are dropped in async mode.
        error_message_strategy: Builds the failure-channel message
        channel_resolver: Registry for channel names (default: process-wide)
    """

    def __init__(
        self,
        output_channel: Optional[ChannelRef] = None,
        failure_channel: Optional[ChannelRef] = None,
        *,
        error_message_strategy: Optional[ErrorMessageStrategy] = None,
        channel_resolver: Optional[ChannelRegistry] = None,
    ):
        self._output_ref = output_channel
        self._failure_ref = failure_channel
        self._output: Optional[MessageChannel] = None
        self._failure: Optional[MessageChannel] = None
        self.error_message_strategy = error_message_strategy or DefaultErrorMessageStrategy()
        self._resolver = channel_resolver
        self._pending: set[asyncio.Task] = set()

    # --------------- channels

    def _resolve(self, ref: Optional[ChannelRef]) -> Optional[MessageChannel]:
        if ref is None:
            return None
        if isinstance(ref, str):
            return (self._resolver or channel_registry()).resolve(ref)
        return ref

    @property
    def output_channel(self) -> Optional[MessageChannel]:
        if self._output is None:
            self._output = self._resolve(self._output_ref)
        return self._output

    @property
    def failure_channel(self) -> Optional[MessageChannel]:
        if self._failure is None:
            self._failure = self._resolve(self._failure_ref)
        return self._failure

    def resolve_channels(self) -> tuple[Optional[MessageChannel], Optional[MessageChannel]]:
        """(output, failure); names are resolved once and cached."""
        return self.output_channel, self.failure_channel

    # --------------- routing

    def attach(
        self,
        handle: OutcomeHandle,
        message: Message,
        record: ProducerRecord,
        *,
        sync: bool = False,
    ) -> None:
        output, failure = self.resolve_channels()

        def _on_success(result: SendResult) -> None:
            if output is None:
                return
            enriched = message.with_headers(
                **{KafkaHeaders.RECORD_METADATA: result.record_metadata}
            )
            self._spawn(output, enriched, "output")

        def _on_failure(cause: BaseException) -> None:
            if failure is None:
                if not sync:
                    logger.warning(
                        f"Send failure dropped (no failure channel): topic={record.topic} "
                        f"message={message.id} error={type(cause).__name__}: {cause}"
                    )
                return
            error = KafkaSendFailureError(message, record, cause)
            self._spawn(failure, self.error_message_strategy.build_error_message(error), "failure")

        handle.add_callback(_on_success, _on_failure)

    def _spawn(self, channel: MessageChannel, msg: Any, branch: str) -> None:
        task = asyncio.get_running_loop().create_task(self._deliver(channel, msg, branch))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, channel: MessageChannel, msg: Any, branch: str) -> None:
        try:
            await channel.send(msg)
            logger.debug(f"Routed message {msg.id} to {branch} channel")
        except Exception:
            logger.exception(f"Delivery to {branch} channel failed for message {msg.id}")

    @property
    def pending(self) -> int:
        """Channel deliveries still in flight."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all in-flight channel deliveries."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
