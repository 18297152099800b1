"""
Demo: Outbound publishing with outcome routing

Publishes a handful of orders through KafkaProducerMessageHandler and
listens on the output and failure channels for the per-message outcome.

Requires a broker (default localhost:9092, override with
KAFKA_OUTBOUND_BOOTSTRAP_SERVERS).
"""

import asyncio

from loguru import logger

from kafka_outbound import (
    KAFKA_NULL,
    KafkaHeaders,
    KafkaProducerMessageHandler,
    KafkaTemplate,
    Message,
    PayloadAttribute,
    QueueChannel,
    channel_registry,
    get_settings,
)


async def consume(name: str, channel: QueueChannel, stop: asyncio.Event):
    while not stop.is_set() or channel.size:
        try:
            msg = await channel.receive(timeout=0.2)
        except asyncio.TimeoutError:
            continue
        if name == "output":
            meta = msg.headers[KafkaHeaders.RECORD_METADATA]
            logger.info(f"✅ {msg.payload!r} -> {meta.topic}[{meta.partition}]@{meta.offset}")
        else:
            logger.warning(f"🔴 {msg.original_message.payload!r} failed: {msg.payload}")


async def main():
    settings = get_settings()
    logger.info(f"🚀 Outbound routing demo (bootstrap={settings.bootstrap_servers})")

    output, errors = QueueChannel(), QueueChannel()
    channel_registry().register("kafkaErrors", errors)

    stop = asyncio.Event()
    consumers = [
        asyncio.create_task(consume("output", output, stop)),
        asyncio.create_task(consume("failure", errors, stop)),
    ]

    async with KafkaTemplate.from_settings(settings) as template:
        handler = KafkaProducerMessageHandler.from_settings(
            template,
            settings,
            topic="orders",
            key=PayloadAttribute("order_id"),
            output_channel=output,
            failure_channel="kafkaErrors",
        )

        for i in range(5):
            await handler.handle_message(Message.of({"order_id": f"A{i}", "qty": i + 1}))

        # Tombstone for a deleted order; key comes from the message header
        tombstones = KafkaProducerMessageHandler(template, topic="orders", output_channel=output)
        await tombstones.handle_message(Message.of(KAFKA_NULL, {KafkaHeaders.MESSAGE_KEY: "A0"}))

        await template.flush()
        await handler.drain()
        await tombstones.drain()

    stop.set()
    await asyncio.gather(*consumers)
    logger.info("Done")


if __name__ == "__main__":
    asyncio.run(main())
