"""
Unit tests for SyncGate (sync-mode wait with per-message timeout).
"""

import asyncio

import pytest

from kafka_outbound import (
    DEFAULT_SEND_TIMEOUT_MS,
    FieldResolutionError,
    HeaderLookup,
    KafkaSendFailureError,
    Message,
    MessageTimeoutError,
    OutboundAdapterError,
    OutcomeHandle,
    ProducerRecord,
    RecordMetadata,
    SendResult,
    SyncGate,
)

pytestmark = pytest.mark.timeout(5)

RECORD = ProducerRecord(topic="orders")


def _result():
    return SendResult(RECORD, RecordMetadata(topic="orders", partition=0, offset=1))


def _resolve_later(fut, delay, *, result=None, error=None):
    loop = asyncio.get_running_loop()
    if error is not None:
        loop.call_later(delay, fut.set_exception, error)
    else:
        loop.call_later(delay, fut.set_result, result)


def test_default_timeout():
    gate = SyncGate()
    assert DEFAULT_SEND_TIMEOUT_MS == 10_000
    assert gate.resolve_timeout(Message.of("x")) == 10_000


def test_dynamic_timeout_rule():
    """The timeout may come from the message."""
    gate = SyncGate(HeaderLookup("send_timeout"))
    assert gate.resolve_timeout(Message.of("x", {"send_timeout": "250"})) == 250
    assert gate.resolve_timeout(Message.of("x")) is None


def test_fractional_timeout_rounds_up():
    assert SyncGate(0.9).resolve_timeout(Message.of("x")) == 1
    assert SyncGate("12.1").resolve_timeout(Message.of("x")) == 13
    assert SyncGate(-0.5).resolve_timeout(Message.of("x")) == -1


@pytest.mark.parametrize("value", [True, "soon", object(), float("nan")])
def test_invalid_timeout_rejected(value):
    with pytest.raises(FieldResolutionError):
        SyncGate(value).resolve_timeout(Message.of("x"))


@pytest.mark.asyncio
async def test_sub_millisecond_timeout_still_waits():
    """A 0.9 ms budget is not truncated to an immediate timeout."""
    fut = asyncio.get_running_loop().create_future()
    asyncio.get_running_loop().call_soon(fut.set_result, _result())
    result = await SyncGate(0.9).wait(OutcomeHandle(fut), Message.of("x"), RECORD)
    assert result.record_metadata.offset == 1


@pytest.mark.asyncio
async def test_success_returns_result():
    fut = asyncio.get_running_loop().create_future()
    _resolve_later(fut, 0.01, result=_result())
    result = await SyncGate(1000).wait(OutcomeHandle(fut), Message.of("x"), RECORD)
    assert result.record_metadata.offset == 1


@pytest.mark.asyncio
async def test_failure_raises_send_failure():
    """A publish failure surfaces as KafkaSendFailureError chained from the cause."""
    fut = asyncio.get_running_loop().create_future()
    cause = ConnectionError("broker down")
    _resolve_later(fut, 0.01, error=cause)

    msg = Message.of("x")
    with pytest.raises(KafkaSendFailureError) as exc_info:
        await SyncGate(1000).wait(OutcomeHandle(fut), msg, RECORD)

    assert exc_info.value.cause is cause
    assert exc_info.value.__cause__ is cause
    assert exc_info.value.failed_message is msg


@pytest.mark.asyncio
async def test_timeout_raises_timeout_error_not_failure():
    """Resolution delayed past the timeout raises MessageTimeoutError."""
    fut = asyncio.get_running_loop().create_future()
    _resolve_later(fut, 0.3, error=ConnectionError("late failure"))

    msg = Message.of("x")
    with pytest.raises(MessageTimeoutError) as exc_info:
        await SyncGate(50).wait(OutcomeHandle(fut), msg, RECORD)

    assert not isinstance(exc_info.value, KafkaSendFailureError)
    assert exc_info.value.failed_message is msg
    assert exc_info.value.timeout_ms == 50
    # the publish itself is not aborted
    assert not fut.cancelled()
    await asyncio.sleep(0.35)
    assert isinstance(fut.exception(), ConnectionError)


@pytest.mark.asyncio
@pytest.mark.parametrize("timeout", [None, -1])
async def test_absent_or_negative_timeout_waits_for_resolution(timeout):
    """No timeout: the wait does not return before a delayed resolution."""
    fut = asyncio.get_running_loop().create_future()
    _resolve_later(fut, 0.2, result=_result())

    loop = asyncio.get_running_loop()
    started = loop.time()
    result = await SyncGate(timeout).wait(OutcomeHandle(fut), Message.of("x"), RECORD)

    assert loop.time() - started >= 0.19
    assert result.record_metadata.offset == 1


@pytest.mark.asyncio
async def test_publish_timeout_error_is_a_failure_not_gate_timeout():
    """A TimeoutError reported by the broker is a publish failure."""
    fut = asyncio.get_running_loop().create_future()
    cause = TimeoutError("request timed out on broker")
    fut.set_exception(cause)

    with pytest.raises(KafkaSendFailureError) as exc_info:
        await SyncGate(1000).wait(OutcomeHandle(fut), Message.of("x"), RECORD)
    assert exc_info.value.cause is cause


@pytest.mark.asyncio
async def test_timeout_rule_errors_propagate():
    class Boom(Exception):
        pass

    def bad(m):
        raise Boom()

    fut = asyncio.get_running_loop().create_future()
    with pytest.raises(Boom):
        await SyncGate(bad).wait(OutcomeHandle(fut), Message.of("x"), RECORD)
    fut.cancel()


@pytest.mark.asyncio
async def test_cancelled_publish_is_a_send_failure():
    """A publish future cancelled by the client surfaces as KafkaSendFailureError."""
    fut = asyncio.get_running_loop().create_future()
    asyncio.get_running_loop().call_later(0.01, fut.cancel)

    msg = Message.of("x")
    with pytest.raises(KafkaSendFailureError) as exc_info:
        await SyncGate(1000).wait(OutcomeHandle(fut), msg, RECORD)

    assert isinstance(exc_info.value.cause, OutboundAdapterError)
    assert exc_info.value.failed_message is msg


@pytest.mark.asyncio
async def test_cancelling_the_caller_propagates():
    """Cancelling the waiting task is not a publish failure; the publish continues."""
    fut = asyncio.get_running_loop().create_future()
    waiter = asyncio.create_task(SyncGate(None).wait(OutcomeHandle(fut), Message.of("x"), RECORD))
    await asyncio.sleep(0.01)

    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter
    assert not fut.done()
    fut.cancel()
