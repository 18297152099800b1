"""
Kafka Outbound Adapter

Publishes application messages to Kafka and routes each publish outcome back
into the application: the enriched message to an output channel on success,
an ErrorMessage to a failure channel on failure. Optionally waits for the
outcome (sync mode) with a per-message timeout.

Usage:
    from kafka_outbound import KafkaTemplate, KafkaProducerMessageHandler, Message

    async with KafkaTemplate({"bootstrap_servers": "localhost:9092"}) as template:
        handler = KafkaProducerMessageHandler(template, topic="orders", sync=True)
        result = await handler.handle_message(Message.of(b"hello"))
"""

from .channels import CallbackChannel, ChannelRegistry, MessageChannel, QueueChannel, channel_registry
from .dispatcher import Dispatcher
from .error_strategy import DefaultErrorMessageStrategy, ErrorMessageStrategy
from .errors import (
    ChannelResolutionError,
    FieldResolutionError,
    KafkaSendFailureError,
    MessageHandlingError,
    MessageTimeoutError,
    OutboundAdapterError,
    PreconditionViolation,
)
from .handler import KafkaProducerMessageHandler
from .header_mapper import DefaultHeaderMapper, HeaderMapper
from .headers import KAFKA_NULL, KafkaHeaders
from .messages import ErrorMessage, Message
from .outcome import OutcomeHandle, OutcomeState
from .records import ProducerRecord, RecordBuilder, RecordMetadata, SendResult
from .resolver import FieldResolver, ResolvedFields
from .router import OutcomeRouter
from .rules import CustomFunction, FieldRule, HeaderLookup, PayloadAttribute, StaticValue, as_rule
from .settings import AdapterSettings, get_settings
from .sync_gate import DEFAULT_SEND_TIMEOUT_MS, SyncGate
from .template import KafkaTemplate, Publisher, default_serializer

__version__ = "1.0.0"
__all__ = [
    # adapter
    "KafkaProducerMessageHandler",
    "AdapterSettings",
    "get_settings",
    # messages
    "Message",
    "ErrorMessage",
    "KafkaHeaders",
    "KAFKA_NULL",
    # rules
    "FieldRule",
    "StaticValue",
    "HeaderLookup",
    "CustomFunction",
    "PayloadAttribute",
    "as_rule",
    # pipeline
    "FieldResolver",
    "ResolvedFields",
    "RecordBuilder",
    "ProducerRecord",
    "RecordMetadata",
    "SendResult",
    "HeaderMapper",
    "DefaultHeaderMapper",
    "Dispatcher",
    "OutcomeHandle",
    "OutcomeState",
    "OutcomeRouter",
    "SyncGate",
    "DEFAULT_SEND_TIMEOUT_MS",
    # publish client
    "Publisher",
    "KafkaTemplate",
    "default_serializer",
    # channels
    "MessageChannel",
    "QueueChannel",
    "CallbackChannel",
    "ChannelRegistry",
    "channel_registry",
    "ErrorMessageStrategy",
    "DefaultErrorMessageStrategy",
    # errors
    "OutboundAdapterError",
    "PreconditionViolation",
    "FieldResolutionError",
    "ChannelResolutionError",
    "MessageHandlingError",
    "KafkaSendFailureError",
    "MessageTimeoutError",
]
