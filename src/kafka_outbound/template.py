"""
Publish client: submits ProducerRecords to Kafka via aiokafka.

``send`` returns once the record is queued in the producer's buffer; the
returned future resolves on the producer's sender task when the broker acks
(or rejects) the batch.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Optional, Protocol

from aiokafka import AIOKafkaProducer
from loguru import logger

from .errors import OutboundAdapterError
from .records import ProducerRecord, RecordMetadata, SendResult

Serializer = Callable[[Any], Optional[bytes]]


class Publisher(Protocol):
    """Anything that can submit a record and hand back its eventual outcome."""

    async def send(self, record: ProducerRecord) -> "asyncio.Future[SendResult]":
        ...


def default_serializer(value: Any) -> Optional[bytes]:
    """bytes pass through, str is UTF-8, everything else is JSON."""
    if value is None:
        return None
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    return json.dumps(value, ensure_ascii=False, default=str).encode("utf-8")


class KafkaTemplate:
    """aiokafka-backed Publisher.

    Usage:

        async with KafkaTemplate({"bootstrap_servers": "localhost:9092"}) as template:
            fut = await template.send(ProducerRecord(topic="orders", value=b"..."))
            result = await fut

    Args:
        producer_config: Keyword arguments for AIOKafkaProducer
        producer: Pre-built producer (takes precedence over producer_config)
        key_serializer: Key encoder (default: default_serializer)
        value_serializer: Value encoder (default: default_serializer)
    """

    def __init__(
        self,
        producer_config: Optional[dict[str, Any]] = None,
        *,
        producer: Optional[AIOKafkaProducer] = None,
        key_serializer: Serializer = default_serializer,
        value_serializer: Serializer = default_serializer,
    ):
        self._config = dict(producer_config or {})
        self._producer = producer
        self._started = False
        self._key_serializer = key_serializer
        self._value_serializer = value_serializer

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "KafkaTemplate":
        return cls(settings.to_producer_config(), **kwargs)

    # --------------- lifecycle

    async def start(self) -> None:
        if self._started:
            return
        if self._producer is None:
            self._producer = AIOKafkaProducer(**self._config)
        await self._producer.start()
        self._started = True
        logger.info(
            f"KafkaTemplate started (bootstrap={self._config.get('bootstrap_servers', 'n/a')})"
        )

    async def stop(self) -> None:
        if not self._started or self._producer is None:
            return
        try:
            await self._producer.stop()
        finally:
            self._started = False
            logger.info("KafkaTemplate stopped")

    async def flush(self) -> None:
        if self._started and self._producer is not None:
            await self._producer.flush()

    async def __aenter__(self) -> "KafkaTemplate":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    # --------------- publish

    async def send(self, record: ProducerRecord) -> "asyncio.Future[SendResult]":
        if not self._started or self._producer is None:
            raise OutboundAdapterError("KafkaTemplate is not started; call start() first")

        delivery = await self._producer.send(
            record.topic,
            value=self._value_serializer(record.value),
            key=self._key_serializer(record.key),
            partition=record.partition,
            timestamp_ms=record.timestamp,
            headers=list(record.headers) if record.headers else None,
        )

        result: "asyncio.Future[SendResult]" = asyncio.get_running_loop().create_future()

        def _chain(fut: asyncio.Future) -> None:
            if result.done():
                return
            if fut.cancelled():
                result.set_exception(OutboundAdapterError("delivery cancelled by the producer"))
                return
            exc = fut.exception()
            if exc is not None:
                result.set_exception(exc)
            else:
                result.set_result(SendResult(record, RecordMetadata.from_client(fut.result())))

        delivery.add_done_callback(_chain)
        return result
