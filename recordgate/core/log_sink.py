"""Structured logging sink for remotely ingested log events.

The sink exposes one method per level, each taking a message and a
flattened ``key, value, key, value, ...`` sequence. Data keys that
structlog would read as its own (``event``, ``exc_info``, ...) are
written as ``data_<key>``.
"""
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog

LOG_LEVELS = ("debug", "info", "warn", "error")

# Keys that collide with the bound logger signature or that structlog,
# its processors and the stdlib ProcessorFormatter read as control fields
_RESERVED_KEYS = frozenset({
    "self",
    "event",
    "level",
    "logger",
    "timestamp",
    "exc_info",
    "stack_info",
    "exception",
    "positional_args",
    "_record",
    "_from_structlog",
    "_logger",
    "_name",
})


def flatten_data(data: Mapping[str, Any]) -> List[Any]:
    """Flatten a mapping into [k1, v1, k2, v2, ...] in iteration order."""
    pairs: List[Any] = []
    for key, value in data.items():
        pairs.extend((key, value))
    return pairs


def pairs_to_fields(pairs: Tuple[Any, ...]) -> Dict[str, Any]:
    """Turn a flattened key/value sequence back into log fields."""
    fields: Dict[str, Any] = {}
    for i in range(0, len(pairs) - 1, 2):
        key = str(pairs[i])
        if key in _RESERVED_KEYS:
            key = f"data_{key}"
        fields[key] = pairs[i + 1]
    if len(pairs) % 2:
        fields["data_extra"] = pairs[-1]
    return fields


class LogSink:
    """Forward log events to a structlog logger."""

    def __init__(self, logger: Optional[Any] = None):
        self._logger = logger or structlog.get_logger("remote")

    def debug(self, message: str, *pairs: Any) -> None:
        self._logger.debug(message, **pairs_to_fields(pairs))

    def info(self, message: str, *pairs: Any) -> None:
        self._logger.info(message, **pairs_to_fields(pairs))

    def warn(self, message: str, *pairs: Any) -> None:
        self._logger.warning(message, **pairs_to_fields(pairs))

    def error(self, message: str, *pairs: Any) -> None:
        self._logger.error(message, **pairs_to_fields(pairs))

    def emit(self, level: str, message: str, *pairs: Any) -> None:
        """Dispatch to the sink for ``level``."""
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        getattr(self, level)(message, *pairs)
