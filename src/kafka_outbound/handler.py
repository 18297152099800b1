"""
KafkaProducerMessageHandler: the outbound channel adapter.

Pipeline per message:
    FieldResolver -> RecordBuilder -> Dispatcher -> OutcomeRouter (attached)
                                                 -> SyncGate (sync mode only)

Everything up to dispatch runs on the caller's task. The outcome resolves on
the publish client's sender task; routing to the output/failure channels
happens from there. In sync mode the caller additionally waits for the
outcome (bounded by the send timeout) and sees failures as exceptions.
"""

from __future__ import annotations

import time
from typing import Any, Optional

from loguru import logger

from .channels import ChannelRef, ChannelRegistry
from .dispatcher import Dispatcher
from .error_strategy import ErrorMessageStrategy
from .errors import MessageTimeoutError
from .header_mapper import DefaultHeaderMapper, HeaderMapper
from .messages import Message
from .metrics import metrics_registry
from .outcome import OutcomeHandle
from .records import RecordBuilder, SendResult
from .resolver import FieldResolver
from .router import OutcomeRouter
from .sync_gate import DEFAULT_SEND_TIMEOUT_MS, SyncGate
from .template import Publisher

_DEFAULT_MAPPER: Any = object()


class KafkaProducerMessageHandler:
    """Publishes messages to Kafka and routes the outcome.

    Args:
        publisher: Publish client (e.g. KafkaTemplate); shared by all invocations
        topic: Topic rule; default reads the ``kafka_topic`` header
        partition: Partition rule; default reads ``kafka_partitionId``
        key: Key rule; default reads ``kafka_messageKey``
        timestamp: Timestamp rule; default reads ``kafka_timestamp``
        header_mapper: Header mapper; default DefaultHeaderMapper(), None disables
        sync: Wait for each publish outcome before returning
        send_timeout: Sync wait budget in ms (int, rule, or None for no limit)
        output_channel: Channel or channel name for successful publishes
        failure_channel: Channel or channel name for failed publishes
        error_message_strategy: Builds failure-channel messages
        channel_resolver: Registry used for channel names

    Rules accept a FieldRule, a callable of the message, or a plain value.

    Example:
        handler = KafkaProducerMessageHandler(
            template,
            topic="orders",
            key=PayloadAttribute("order_id"),
            failure_channel="kafkaErrors",
        )
        await handler.handle_message(Message.of({"order_id": "A1"}))
    """

    component_type = "kafka:outbound-channel-adapter"

    def __init__(
        self,
        publisher: Publisher,
        *,
        topic: Any = None,
        partition: Any = None,
        key: Any = None,
        timestamp: Any = None,
        header_mapper: Optional[HeaderMapper] = _DEFAULT_MAPPER,
        sync: bool = False,
        send_timeout: Any = DEFAULT_SEND_TIMEOUT_MS,
        output_channel: Optional[ChannelRef] = None,
        failure_channel: Optional[ChannelRef] = None,
        error_message_strategy: Optional[ErrorMessageStrategy] = None,
        channel_resolver: Optional[ChannelRegistry] = None,
    ):
        if publisher is None:
            raise ValueError("publisher cannot be None")
        if header_mapper is _DEFAULT_MAPPER:
            header_mapper = DefaultHeaderMapper()

        self.publisher = publisher
        self.sync = sync
        self.resolver = FieldResolver(
            topic=topic, partition=partition, key=key, timestamp=timestamp
        )
        self.builder = RecordBuilder(header_mapper)
        self.dispatcher = Dispatcher(publisher)
        self.router = OutcomeRouter(
            output_channel,
            failure_channel,
            error_message_strategy=error_message_strategy,
            channel_resolver=channel_resolver,
        )
        self.gate = SyncGate(send_timeout)

    @classmethod
    def from_settings(cls, publisher: Publisher, settings, **overrides) -> "KafkaProducerMessageHandler":
        """Build a handler using ``sync``/``send_timeout_ms`` from AdapterSettings."""
        overrides.setdefault("sync", settings.sync)
        overrides.setdefault("send_timeout", settings.send_timeout_ms)
        return cls(publisher, **overrides)

    async def handle_message(self, message: Message) -> Optional[SendResult]:
        """Publish one message.

        Returns:
            The SendResult in sync mode, None in async mode

        Raises:
            PreconditionViolation: no topic could be resolved (nothing sent)
            ChannelResolutionError: a channel name is unknown (nothing sent)
            KafkaSendFailureError: sync mode, the broker rejected the record
            MessageTimeoutError: sync mode, the send timeout elapsed first
            Exception: anything raised by a field rule, unchanged (nothing sent)
        """
        # Named channels resolve before dispatch so a bad name sends nothing.
        self.router.resolve_channels()

        fields = self.resolver.resolve(message)
        record = self.builder.build(fields, message)
        handle = await self.dispatcher.dispatch(record)

        self._observe(handle, record.topic)
        self.router.attach(handle, message, record, sync=self.sync)

        if not self.sync:
            return None

        try:
            return await self.gate.wait(handle, message, record)
        except MessageTimeoutError:
            metrics_registry.sync_timeout_total.labels(topic=record.topic).inc()
            raise

    async def drain(self) -> None:
        """Wait until every routed outcome message has been delivered."""
        await self.router.drain()

    def _observe(self, handle: OutcomeHandle, topic: str) -> None:
        metrics_registry.dispatch_total.labels(topic=topic).inc()
        start = time.perf_counter()

        def _record(outcome: str) -> None:
            metrics_registry.outcome_total.labels(topic=topic, outcome=outcome).inc()
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            metrics_registry.send_latency_ms.labels(topic=topic).observe(elapsed_ms)

        def _on_success(result: SendResult) -> None:
            _record("success")

        def _on_failure(cause: BaseException) -> None:
            logger.debug(f"Publish to {topic} failed: {type(cause).__name__}: {cause}")
            _record("failure")

        handle.add_callback(_on_success, _on_failure)
