"""
Kafka record types and the builder that assembles a record from a message.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .header_mapper import HeaderMapper
from .headers import KAFKA_NULL
from .messages import Message
from .resolver import ResolvedFields


@dataclass(frozen=True)
class ProducerRecord:
    """Broker-ready record. ``value`` None publishes a tombstone."""

    topic: str
    partition: Optional[int] = None
    timestamp: Optional[int] = None
    key: Any = None
    value: Any = None
    headers: Optional[tuple[tuple[str, bytes], ...]] = None


@dataclass(frozen=True)
class RecordMetadata:
    """Broker-reported result of a successful publish."""

    topic: str
    partition: int
    offset: int
    timestamp: Optional[int] = None
    serialized_key_size: int = -1
    serialized_value_size: int = -1

    @classmethod
    def from_client(cls, meta: Any) -> "RecordMetadata":
        """Convert a client metadata object (e.g. aiokafka's RecordMetadata)."""
        return cls(
            topic=meta.topic,
            partition=meta.partition,
            offset=meta.offset,
            timestamp=getattr(meta, "timestamp", None),
            serialized_key_size=getattr(meta, "serialized_key_size", -1),
            serialized_value_size=getattr(meta, "serialized_value_size", -1),
        )


@dataclass(frozen=True)
class SendResult:
    record: ProducerRecord
    record_metadata: RecordMetadata


class RecordBuilder:
    """Assembles a ProducerRecord from resolved fields and a message.

    Args:
        header_mapper: Optional mapper; without one the record carries no headers
    """

    def __init__(self, header_mapper: Optional[HeaderMapper] = None):
        self.header_mapper = header_mapper

    def build(self, fields: ResolvedFields, message: Message) -> ProducerRecord:
        value = message.payload
        if value is KAFKA_NULL:
            value = None

        headers = None
        if self.header_mapper is not None:
            headers = tuple(self.header_mapper.from_headers(message.headers))

        return ProducerRecord(
            topic=fields.topic,
            partition=fields.partition,
            timestamp=fields.timestamp,
            key=fields.key,
            value=value,
            headers=headers,
        )
