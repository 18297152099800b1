"""
Field rules: how a value (topic, partition, key, timestamp, send timeout) is
computed from a message.

Any object with an ``evaluate(message)`` method is a rule. Plain values and
callables are accepted wherever a rule is, via ``as_rule``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Protocol, runtime_checkable

from .messages import Message


@runtime_checkable
class FieldRule(Protocol):
    """Computes a value from a message."""

    def evaluate(self, message: Message) -> Any:
        ...


@dataclass(frozen=True)
class StaticValue:
    """Always yields the same value."""

    value: Any

    def evaluate(self, message: Message) -> Any:
        return self.value


@dataclass(frozen=True)
class HeaderLookup:
    """Reads a header from the message."""

    name: str
    default: Any = None

    def evaluate(self, message: Message) -> Any:
        return message.headers.get(self.name, self.default)


@dataclass(frozen=True)
class CustomFunction:
    """Delegates to an arbitrary callable of the message."""

    fn: Callable[[Message], Any]

    def evaluate(self, message: Message) -> Any:
        return self.fn(message)


@dataclass(frozen=True)
class PayloadAttribute:
    """Walks a dotted path into the payload.

    Each segment is looked up as a mapping key first, then as an attribute.
    A missing segment yields None.

    Example:
        PayloadAttribute("order.customer_id")
    """

    path: str

    def evaluate(self, message: Message) -> Any:
        current = message.payload
        for part in self.path.split("."):
            if current is None:
                return None
            if isinstance(current, Mapping):
                current = current.get(part)
            else:
                current = getattr(current, part, None)
        return current


def as_rule(obj: Any) -> Optional[FieldRule]:
    """Coerce a configuration value into a rule (None stays None)."""
    if obj is None:
        return None
    if isinstance(obj, FieldRule):
        return obj
    if callable(obj):
        return CustomFunction(obj)
    return StaticValue(obj)
