"""Structured JSON logging for notehistory.

Each record becomes one JSON object on one line::

    {"ts": "2026-10-19T12:00:00.123456+00:00", "level": "INFO",
     "logger": "notehistory.policy", "message": "version recorded",
     "document_id": "n1", "version_id": "v_1760875200000"}

Structured fields travel through ``extra={"extra_fields": {...}}``::

    from notehistory.observability import get_logger

    log = get_logger("notehistory.policy")
    log.info("version recorded", extra={"extra_fields": {"document_id": "n1"}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Render a :class:`logging.LogRecord` as a single-line JSON object.

    Guaranteed keys are ``ts``, ``level``, ``logger`` and ``message``.
    Caller fields from ``extra_fields`` are merged at the top level, and
    ``exception`` / ``stack_info`` are added when the record carries them.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(record, "extra_fields", None)
        if extra_fields:
            entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


# One handler per logger name, so repeated get_logger calls never stack handlers.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "notehistory",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Return the structured logger called *name*, configuring it once.

    Parameters
    ----------
    name:
        Logger name, conventionally ``"notehistory.<area>"``.
    level:
        Minimum level, as an ``int`` or a case-insensitive level name.
    stream:
        Handler output stream.  Defaults to ``sys.stderr``.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        resolved_level = (
            logging.getLevelName(level.upper()) if isinstance(level, str) else level
        )
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.propagate = False

        _configured_loggers.add(name)

    return logger
