"""Tests for structured logging pipeline utilities."""

from __future__ import annotations

import io
import json
import logging
from logging.handlers import QueueListener
from queue import Queue
from typing import Any, cast

import pytest

from carbon_lifecycle import logging_pipeline


def test_configure_structured_logging_emits_json() -> None:
    """Configure structured logging and verify JSON payloads are emitted."""

    logger = logging.getLogger("lifecycle-json-test")
    buffer = io.StringIO()
    listener = logging_pipeline.configure_structured_logging(
        logger, session_id="session-123", level=logging.INFO, stream=buffer
    )
    try:
        logger.info("sample", extra={"stage": "modelTraining"})
    finally:
        logging_pipeline.shutdown_listeners([listener])
        logger.handlers.clear()

    payload = json.loads(buffer.getvalue().strip())
    assert payload["message"] == "sample"
    assert payload["level"] == "INFO"
    assert payload["session_id"] == "session-123"
    assert payload["context"]["stage"] == "modelTraining"
    assert "lineno" not in payload["context"]


def test_configure_structured_logging_generates_session_id() -> None:
    logger = logging.getLogger("lifecycle-auto-session")
    listener = logging_pipeline.configure_structured_logging(logger)
    stream_handler = cast(logging.StreamHandler[Any], listener.handlers[0])
    buffer = io.StringIO()
    stream_handler.setStream(buffer)

    logger.info("auto-session")
    logging_pipeline.shutdown_listeners([listener])
    logger.handlers.clear()

    payload = json.loads(buffer.getvalue())
    assert isinstance(payload["session_id"], str) and payload["session_id"]


def test_bounded_queue_drops_when_full() -> None:
    queue: Queue[logging.LogRecord] = Queue(maxsize=1)
    handler = logging_pipeline.BoundedQueueHandler(queue)
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "m", (), None)

    handler.enqueue(record)
    handler.enqueue(record)

    assert queue.qsize() == 1


def test_plain_logging_formats_text() -> None:
    logger = logging.getLogger("lifecycle-plain-test")
    buffer = io.StringIO()
    handler = logging_pipeline.configure_plain_logging(
        logger, level=logging.INFO, stream=buffer
    )
    try:
        logger.info("hello")
    finally:
        logger.removeHandler(handler)

    assert buffer.getvalue() == "INFO lifecycle-plain-test: hello\n"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("debug", logging.DEBUG), (" Warning ", logging.WARNING), (10, 10)],
)
def test_parse_level(raw, expected) -> None:
    assert logging_pipeline.parse_level(raw) == expected


def test_parse_level_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        logging_pipeline.parse_level("chatty")


def test_shutdown_listeners_logs_failures(caplog: pytest.LogCaptureFixture) -> None:
    """Listener shutdown failures should emit warnings."""

    class _FailingListener(QueueListener):
        def __init__(self) -> None:
            super().__init__(Queue(), logging.StreamHandler())

        def stop(self) -> None:
            raise RuntimeError("stop failure")

    with caplog.at_level(logging.WARNING):
        logging_pipeline.shutdown_listeners([_FailingListener()])

    assert "Failed to stop logging listener" in caplog.text
