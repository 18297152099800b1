"""
Pytest configuration and fixtures for kafka-outbound.

Provides cross-platform event loop configuration and an in-memory publisher
whose outcomes the tests resolve explicitly.
"""

import asyncio
import sys
from typing import Optional

import pytest

from kafka_outbound import ChannelRegistry, ProducerRecord, QueueChannel, RecordMetadata, SendResult

# Set policy *before* pytest-asyncio creates any loops
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


class FakePublisher:
    """Publisher double: records every send and hands back a pending future.

    auto_offset: resolve each send immediately with this offset
    auto_error: fail each send immediately with this exception
    """

    def __init__(
        self,
        auto_offset: Optional[int] = None,
        auto_error: Optional[BaseException] = None,
    ):
        self.auto_offset = auto_offset
        self.auto_error = auto_error
        self.records: list[ProducerRecord] = []
        self.futures: list[asyncio.Future] = []

    async def send(self, record: ProducerRecord) -> asyncio.Future:
        fut = asyncio.get_running_loop().create_future()
        self.records.append(record)
        self.futures.append(fut)
        if self.auto_error is not None:
            fut.set_exception(self.auto_error)
        elif self.auto_offset is not None:
            fut.set_result(self._result(record, self.auto_offset))
        return fut

    @staticmethod
    def _result(record: ProducerRecord, offset: int) -> SendResult:
        return SendResult(
            record,
            RecordMetadata(
                topic=record.topic,
                partition=record.partition if record.partition is not None else 0,
                offset=offset,
                timestamp=record.timestamp,
            ),
        )

    def succeed(self, offset: int = 42, index: int = -1) -> None:
        fut = self.futures[index]
        fut.set_result(self._result(self.records[index], offset))

    def fail(self, exc: BaseException, index: int = -1) -> None:
        self.futures[index].set_exception(exc)

    @property
    def send_count(self) -> int:
        return len(self.records)


class BrokerUnavailable(Exception):
    """Stand-in for a broker-side publish failure."""


@pytest.fixture
def publisher():
    """Publisher with manually resolved outcomes."""
    return FakePublisher()


@pytest.fixture
def make_publisher():
    """Factory for publishers with auto-resolving outcomes."""
    return FakePublisher


@pytest.fixture
def broker_unavailable():
    return BrokerUnavailable


@pytest.fixture
def output_channel():
    return QueueChannel()


@pytest.fixture
def failure_channel():
    return QueueChannel()


@pytest.fixture
def registry():
    """Fresh ChannelRegistry for each test."""
    return ChannelRegistry()
