"""
Unit tests for KafkaTemplate using a stand-in for AIOKafkaProducer.
"""

import asyncio
from collections import namedtuple

import pytest

from kafka_outbound import KafkaTemplate, OutboundAdapterError, ProducerRecord
from kafka_outbound.template import default_serializer

pytestmark = pytest.mark.timeout(5)

ClientMetadata = namedtuple("ClientMetadata", "topic partition offset timestamp")


class StubProducer:
    """Mimics the AIOKafkaProducer surface KafkaTemplate uses."""

    def __init__(self):
        self.started = False
        self.stopped = False
        self.flushed = 0
        self.calls = []
        self.deliveries = []

    async def start(self):
        self.started = True

    async def stop(self):
        self.stopped = True

    async def flush(self):
        self.flushed += 1

    async def send(self, topic, value=None, key=None, partition=None, timestamp_ms=None, headers=None):
        self.calls.append(
            dict(
                topic=topic,
                value=value,
                key=key,
                partition=partition,
                timestamp_ms=timestamp_ms,
                headers=headers,
            )
        )
        fut = asyncio.get_running_loop().create_future()
        self.deliveries.append(fut)
        return fut


@pytest.fixture
def producer():
    return StubProducer()


# --- serializers ---


def test_default_serializer():
    assert default_serializer(None) is None
    assert default_serializer(b"\x00raw") == b"\x00raw"
    assert default_serializer("héllo") == "héllo".encode("utf-8")
    assert default_serializer({"b": 1}) == b'{"b": 1}'


# --- lifecycle ---


@pytest.mark.asyncio
async def test_send_requires_start(producer):
    template = KafkaTemplate(producer=producer)
    with pytest.raises(OutboundAdapterError):
        await template.send(ProducerRecord(topic="t", value="x"))
    assert producer.calls == []


@pytest.mark.asyncio
async def test_context_manager_starts_and_stops(producer):
    async with KafkaTemplate(producer=producer) as template:
        assert producer.started
        await template.flush()
    assert producer.stopped
    assert producer.flushed == 1


@pytest.mark.asyncio
async def test_stop_without_start_is_noop(producer):
    await KafkaTemplate(producer=producer).stop()
    assert not producer.stopped


# --- send ---


@pytest.mark.asyncio
async def test_send_passes_record_fields(producer):
    record = ProducerRecord(
        topic="orders",
        partition=1,
        timestamp=1_700_000_000_000,
        key="A1",
        value={"qty": 2},
        headers=(("trace_id", b"abc"),),
    )
    async with KafkaTemplate(producer=producer) as template:
        await template.send(record)

    call = producer.calls[0]
    assert call["topic"] == "orders"
    assert call["partition"] == 1
    assert call["timestamp_ms"] == 1_700_000_000_000
    assert call["key"] == b"A1"
    assert call["value"] == b'{"qty": 2}'
    assert call["headers"] == [("trace_id", b"abc")]


@pytest.mark.asyncio
async def test_tombstone_and_no_headers(producer):
    async with KafkaTemplate(producer=producer) as template:
        await template.send(ProducerRecord(topic="t", value=None))

    assert producer.calls[0]["value"] is None
    assert producer.calls[0]["key"] is None
    assert producer.calls[0]["headers"] is None


@pytest.mark.asyncio
async def test_custom_serializers(producer):
    template = KafkaTemplate(
        producer=producer,
        key_serializer=lambda k: b"k:" + str(k).encode(),
        value_serializer=lambda v: b"v",
    )
    await template.start()
    await template.send(ProducerRecord(topic="t", key=7, value="ignored"))
    assert producer.calls[0]["key"] == b"k:7"
    assert producer.calls[0]["value"] == b"v"


@pytest.mark.asyncio
async def test_delivery_success_becomes_send_result(producer):
    record = ProducerRecord(topic="orders", value="x")
    async with KafkaTemplate(producer=producer) as template:
        fut = await template.send(record)
        assert not fut.done()

        producer.deliveries[0].set_result(ClientMetadata("orders", 0, 42, 123))
        result = await fut

    assert result.record is record
    assert result.record_metadata.offset == 42
    assert result.record_metadata.timestamp == 123
    assert result.record_metadata.serialized_key_size == -1


@pytest.mark.asyncio
async def test_delivery_failure_propagates(producer):
    async with KafkaTemplate(producer=producer) as template:
        fut = await template.send(ProducerRecord(topic="t", value="x"))
        cause = ConnectionError("broker down")
        producer.deliveries[0].set_exception(cause)

        with pytest.raises(ConnectionError) as exc_info:
            await fut
    assert exc_info.value is cause


@pytest.mark.asyncio
async def test_delivery_cancelled(producer):
    async with KafkaTemplate(producer=producer) as template:
        fut = await template.send(ProducerRecord(topic="t", value="x"))
        producer.deliveries[0].cancel()

        with pytest.raises(OutboundAdapterError):
            await fut


def test_from_settings():
    from kafka_outbound import AdapterSettings

    template = KafkaTemplate.from_settings(AdapterSettings(bootstrap_servers="broker:29092"))
    assert template._config["bootstrap_servers"] == "broker:29092"
