from __future__ import annotations

import asyncio
import dataclasses
import json
import sys
from typing import List, Optional

import typer
from loguru import logger

from .handler import KafkaProducerMessageHandler
from .headers import KafkaHeaders
from .messages import Message
from .settings import AdapterSettings, get_settings
from .template import KafkaTemplate

app = typer.Typer(help="kafka-outbound publish CLI")


def _parse_headers(items: List[str]) -> dict:
    headers = {}
    for item in items:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"Header must be NAME=VALUE, got {item!r}")
        headers[name] = value
    return headers


async def _send(
    settings: AdapterSettings,
    topic: str,
    payload: str,
    key: Optional[str],
    partition: Optional[int],
    headers: dict,
    sync: bool,
    timeout_ms: int,
):
    if key is not None:
        headers[KafkaHeaders.MESSAGE_KEY] = key
    if partition is not None:
        headers[KafkaHeaders.PARTITION_ID] = partition

    async with KafkaTemplate.from_settings(settings) as template:
        handler = KafkaProducerMessageHandler(
            template, topic=topic, sync=sync, send_timeout=timeout_ms
        )
        result = await handler.handle_message(Message.of(payload, headers))
        await template.flush()
        await handler.drain()
        return result


@app.command("send")
def send(
    topic: str = typer.Argument(..., help="Destination topic"),
    payload: str = typer.Argument(..., help="Message payload (sent as UTF-8)"),
    key: Optional[str] = typer.Option(None, "--key", help="Message key"),
    partition: Optional[int] = typer.Option(None, "--partition", help="Partition id"),
    header: List[str] = typer.Option([], "--header", "-H", help="Header NAME=VALUE (repeatable)"),
    sync: bool = typer.Option(True, "--sync/--async", help="Wait for the broker ack"),
    timeout_ms: int = typer.Option(10_000, "--timeout-ms", help="Sync wait budget (<0: no limit)"),
    bootstrap: Optional[str] = typer.Option(None, "--bootstrap", help="Override bootstrap servers"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Publish a single message."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")

    extra_headers = _parse_headers(header)
    settings = get_settings()
    if bootstrap:
        settings = settings.model_copy(update={"bootstrap_servers": bootstrap})

    try:
        result = asyncio.run(
            _send(
                settings,
                topic,
                payload,
                key,
                partition,
                extra_headers,
                sync,
                timeout_ms,
            )
        )
    except Exception as e:
        logger.error(f"Send failed: {e}")
        raise typer.Exit(code=1)

    if result is None:
        typer.echo(json.dumps({"sent": True, "topic": topic}))
    else:
        typer.echo(json.dumps(dataclasses.asdict(result.record_metadata), indent=2))


@app.command("settings")
def show_settings():
    """Print the effective adapter settings."""
    typer.echo(get_settings().model_dump_json(indent=2))


if __name__ == "__main__":
    app()
