"""Logging setup for the command line and embedding applications.

Library modules only create module-level loggers. Handlers are attached here,
either as plain text on stderr or as one JSON object per line drained through
a bounded queue so that slow sinks never block calculations.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from queue import Full, Queue
from typing import Iterable, TextIO
from uuid import uuid4

from typing_extensions import override

LOGGER = logging.getLogger(__name__)

PACKAGE_LOGGER_NAME = "carbon_lifecycle"
PLAIN_FORMAT = "%(levelname)s %(name)s: %(message)s"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED_RECORD_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """Render log records as JSON with their ``extra`` fields as context."""

    def __init__(self, *, session_id: str | None = None) -> None:
        super().__init__()
        self._session_id = session_id

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS and key != "session_id"
        }
        payload: dict[str, object] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "session_id": getattr(record, "session_id", None) or self._session_id,
            "context": context,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            payload["exception"] = record.exc_text
        return json.dumps(payload, default=str)


class BoundedQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that drops records when the queue is full."""

    @override
    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except Full:
            self.handleError(record)

    @override
    def handleError(self, record: logging.LogRecord) -> None:
        """Drop the record; a full queue must not interrupt the caller."""

        return


def parse_level(level: str | int) -> int:
    """Translate ``"debug"``/``"INFO"``/``20`` style input into a level number.

    Raises:
        ValueError: If ``level`` names no known logging level.
    """

    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {level!r}")
    return resolved


def configure_structured_logging(
    logger: logging.Logger,
    *,
    session_id: str | None = None,
    level: int = logging.INFO,
    stream: TextIO | None = None,
    queue_size: int = 1024,
) -> logging.handlers.QueueListener:
    """Attach JSON output to ``logger`` through a bounded queue.

    Args:
        logger: Target logger, usually the package logger.
        session_id: Identifier stamped on every record; a random one is
            generated when omitted.
        level: Logging verbosity level.
        stream: Destination of the JSON lines. Defaults to ``sys.stderr``.
        queue_size: Records buffered before new ones are dropped.

    Returns:
        The started queue listener; stop it with :func:`shutdown_listeners`.
    """

    logger.setLevel(level)
    record_queue: Queue[logging.LogRecord] = Queue(maxsize=queue_size)
    logger.addHandler(BoundedQueueHandler(record_queue))

    stream_handler = logging.StreamHandler(stream or sys.stderr)
    stream_handler.setFormatter(JsonFormatter(session_id=session_id or str(uuid4())))

    listener = logging.handlers.QueueListener(record_queue, stream_handler)
    listener.start()
    return listener


def configure_plain_logging(
    logger: logging.Logger,
    *,
    level: int = logging.WARNING,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Attach a human readable stderr handler to ``logger``."""

    logger.setLevel(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    logger.addHandler(handler)
    return handler


def shutdown_listeners(listeners: Iterable[logging.handlers.QueueListener]) -> None:
    """Stop all queue listeners, flushing what they still hold."""

    for listener in listeners:
        try:
            listener.stop()
        except Exception as exc:  # pragma: no cover - logging cleanup
            LOGGER.warning("Failed to stop logging listener", exc_info=exc)
