"""
Well-known message header names and the tombstone payload sentinel.
"""


class KafkaHeaders:
    """Header names the adapter reads from (and writes to) messages."""

    PREFIX = "kafka_"

    TOPIC = PREFIX + "topic"
    PARTITION_ID = PREFIX + "partitionId"
    MESSAGE_KEY = PREFIX + "messageKey"
    TIMESTAMP = PREFIX + "timestamp"
    RECORD_METADATA = PREFIX + "recordMetadata"


class _KafkaNull:
    """Payload marker for tombstone publishes (record value is sent as None)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "KAFKA_NULL"

    def __bool__(self) -> bool:
        return False


KAFKA_NULL = _KafkaNull()
