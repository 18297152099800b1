"""
Dispatcher: one record in, one OutcomeHandle out.
"""

from __future__ import annotations

from loguru import logger

from .outcome import OutcomeHandle
from .records import ProducerRecord
from .template import Publisher


class Dispatcher:
    """Submits exactly one record per call; no retries here (client's concern).

    Errors raised by the submit call itself (serialization, producer not
    started, buffer timeout) propagate to the caller.
    """

    def __init__(self, publisher: Publisher):
        self.publisher = publisher

    async def dispatch(self, record: ProducerRecord) -> OutcomeHandle:
        future = await self.publisher.send(record)
        logger.debug(
            f"Dispatched record topic={record.topic} partition={record.partition} "
            f"key={record.key!r}"
        )
        return OutcomeHandle(future)
