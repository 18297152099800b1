"""
Message types flowing through the outbound adapter.

Messages are immutable: every enrichment produces a new instance so that the
original can be shared safely between the publish path and outcome observers.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional


def _now_ms() -> int:
    return int(time.time() * 1000)


def _freeze(headers: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(headers or {}))


@dataclass(frozen=True)
class Message:
    """Application message: an opaque payload plus read-only headers.

    Attributes:
        payload: Message body (any object, or KAFKA_NULL for tombstones)
        headers: Metadata mapping; copied and frozen on construction
        id: Unique message id (uuid4 string)
        timestamp: Creation time in epoch millis
    """

    payload: Any
    headers: Mapping[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: int = field(default_factory=_now_ms)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _freeze(self.headers))

    def __hash__(self) -> int:
        return hash(self.id)

    @classmethod
    def of(cls, payload: Any, headers: Optional[Mapping[str, Any]] = None) -> "Message":
        return cls(payload=payload, headers=dict(headers or {}))

    def with_headers(self, **extra: Any) -> "Message":
        """Copy of this message with `extra` merged over the existing headers."""
        merged = dict(self.headers)
        merged.update(extra)
        return Message(payload=self.payload, headers=merged)

    def get_header(self, name: str, default: Any = None) -> Any:
        return self.headers.get(name, default)


@dataclass(frozen=True)
class ErrorMessage:
    """Message whose payload is an exception.

    Carries the message that was being handled when the error happened so that
    error flows can correlate back to the original request.
    """

    payload: BaseException
    headers: Mapping[str, Any] = field(default_factory=dict)
    original_message: Optional[Message] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: int = field(default_factory=_now_ms)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _freeze(self.headers))

    def __hash__(self) -> int:
        return hash(self.id)
