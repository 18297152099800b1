"""
Resolution of the record-shaping fields (topic, partition, key, timestamp).

Each field uses its configured rule if there is one, otherwise the matching
well-known header. Rule errors propagate unchanged; a missing topic is a
precondition violation raised before anything is built or sent.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import FieldResolutionError, PreconditionViolation
from .headers import KafkaHeaders
from .messages import Message
from .rules import FieldRule, HeaderLookup, as_rule


class ResolvedFields(BaseModel):
    """Per-message destination fields. Unset optionals defer to broker defaults."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    topic: str = Field(min_length=1)
    partition: Optional[int] = Field(default=None, ge=0)
    key: Any = None
    timestamp: Optional[int] = None


def _to_topic(value: Any) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    topic = "" if value is None else str(value)
    if not topic.strip():
        raise PreconditionViolation("The 'topic' can not be empty or null")
    return topic


def _to_partition(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise FieldResolutionError("partition", value, "boolean is not a partition id")
    try:
        partition = int(value)
    except (TypeError, ValueError) as e:
        raise FieldResolutionError("partition", value, str(e)) from e
    if partition < 0:
        raise FieldResolutionError("partition", value, "partition id must be >= 0")
    return partition


def _to_timestamp(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    if isinstance(value, bool):
        raise FieldResolutionError("timestamp", value, "boolean is not a timestamp")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise FieldResolutionError("timestamp", value, str(e)) from e


class FieldResolver:
    """Evaluates the four record-shaping fields from a message.

    Args:
        topic: Rule (or plain value / callable) for the topic
        partition: Rule for the partition id
        key: Rule for the message key
        timestamp: Rule for the record timestamp (epoch millis or datetime)

    Unconfigured fields fall back to the KafkaHeaders entries of the message.
    """

    def __init__(self, topic=None, partition=None, key=None, timestamp=None):
        self.topic_rule: FieldRule = as_rule(topic) or HeaderLookup(KafkaHeaders.TOPIC)
        self.partition_rule: FieldRule = as_rule(partition) or HeaderLookup(
            KafkaHeaders.PARTITION_ID
        )
        self.key_rule: FieldRule = as_rule(key) or HeaderLookup(KafkaHeaders.MESSAGE_KEY)
        self.timestamp_rule: FieldRule = as_rule(timestamp) or HeaderLookup(
            KafkaHeaders.TIMESTAMP
        )

    def resolve(self, message: Message) -> ResolvedFields:
        # Topic first: nothing else is evaluated when it is missing.
        topic = _to_topic(self.topic_rule.evaluate(message))
        partition = _to_partition(self.partition_rule.evaluate(message))
        key = self.key_rule.evaluate(message)
        timestamp = _to_timestamp(self.timestamp_rule.evaluate(message))
        return ResolvedFields(topic=topic, partition=partition, key=key, timestamp=timestamp)
