"""
Error message construction for the failure channel.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from .errors import MessageHandlingError
from .messages import ErrorMessage


class ErrorMessageStrategy(Protocol):
    def build_error_message(
        self, error: BaseException, attributes: Optional[Mapping[str, Any]] = None
    ) -> ErrorMessage:
        ...


class DefaultErrorMessageStrategy:
    """Wraps the error; the originating message comes from the error itself
    (MessageHandlingError.failed_message) or from ``attributes["input_message"]``."""

    def build_error_message(
        self, error: BaseException, attributes: Optional[Mapping[str, Any]] = None
    ) -> ErrorMessage:
        attributes = attributes or {}
        original = attributes.get("input_message")
        if original is None and isinstance(error, MessageHandlingError):
            original = error.failed_message
        return ErrorMessage(payload=error, original_message=original)
