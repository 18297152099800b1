"""
Header mapping between message headers and Kafka record headers.
"""

from __future__ import annotations

import json
from fnmatch import fnmatchcase
from typing import Any, Iterable, Mapping, Protocol, Sequence

from loguru import logger

from .headers import KafkaHeaders

KafkaHeaderList = list[tuple[str, bytes]]

JSON_TYPES_HEADER = "json_header_types"

_NEVER_MAPPED = frozenset({"id", "timestamp", JSON_TYPES_HEADER})


class HeaderMapper(Protocol):
    """Translates between message headers and Kafka record headers."""

    def from_headers(self, headers: Mapping[str, Any]) -> KafkaHeaderList:
        ...

    def to_headers(self, kafka_headers: Iterable[tuple[str, bytes]]) -> dict[str, Any]:
        ...


class DefaultHeaderMapper:
    """Pattern-filtered header mapper with typed encoding.

    Header names are matched against ``patterns`` in order; the first match
    decides. A pattern starting with ``!`` excludes matching names. Names that
    match nothing are not mapped. ``id``, ``timestamp`` and ``kafka_*`` headers
    are never mapped.

    Values are encoded as:
        bytes -> raw
        str   -> UTF-8
        other -> JSON (skipped if not JSON-serializable)

    The encoding of each non-bytes header is recorded in a ``json_header_types``
    header so that ``to_headers`` can restore the original values.
    """

    def __init__(self, patterns: Sequence[str] = ("*",)):
        self.patterns = tuple(patterns)

    def _matches(self, name: str) -> bool:
        if name in _NEVER_MAPPED or name.startswith(KafkaHeaders.PREFIX):
            return False
        for pattern in self.patterns:
            negated = pattern.startswith("!")
            if fnmatchcase(name, pattern[1:] if negated else pattern):
                return not negated
        return False

    def from_headers(self, headers: Mapping[str, Any]) -> KafkaHeaderList:
        mapped: KafkaHeaderList = []
        types: dict[str, str] = {}
        # Sorted so equal mappings always yield the same header list.
        for name in sorted(headers):
            if not self._matches(name):
                continue
            value = headers[name]
            if isinstance(value, bytes):
                mapped.append((name, value))
            elif isinstance(value, str):
                mapped.append((name, value.encode("utf-8")))
                types[name] = "str"
            else:
                try:
                    encoded = json.dumps(value, sort_keys=True).encode("utf-8")
                except (TypeError, ValueError) as exc:
                    logger.debug(f"Header '{name}' not mapped: {exc}")
                    continue
                mapped.append((name, encoded))
                types[name] = "json"
        if types:
            mapped.append((JSON_TYPES_HEADER, json.dumps(types, sort_keys=True).encode("utf-8")))
        return mapped

    def to_headers(self, kafka_headers: Iterable[tuple[str, bytes]]) -> dict[str, Any]:
        raw = list(kafka_headers)
        types: dict[str, str] = {}
        for name, value in raw:
            if name == JSON_TYPES_HEADER:
                types = json.loads(value.decode("utf-8"))

        headers: dict[str, Any] = {}
        for name, value in raw:
            if name == JSON_TYPES_HEADER:
                continue
            kind = types.get(name)
            if kind == "str":
                headers[name] = value.decode("utf-8")
            elif kind == "json":
                headers[name] = json.loads(value.decode("utf-8"))
            else:
                headers[name] = value
        return headers
