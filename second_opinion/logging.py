"""Logging utilities for second-opinion commands and the tool service."""

from __future__ import annotations

import contextvars
import logging
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

_LOGGER_NAME = "second_opinion"

_request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "second_opinion_request_id", default=None
)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the second_opinion hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


@contextmanager
def request_scope(request_id: str | None = None) -> Iterator[str]:
    """Tag every record logged inside the block with a short request id.

    The id lives in a context variable, so concurrent requests served by the
    same event loop keep separate tags. Work pushed to an executor only sees
    the id when it runs inside a copied context.
    """
    value = request_id or uuid.uuid4().hex[:8]
    token = _request_id.set(value)
    try:
        yield value
    finally:
        _request_id.reset(token)


class RequestContextFilter(logging.Filter):
    """Adds ``request_tag`` ("[id] " or "") to each record for the formatters."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = _request_id.get()
        record.request_tag = f"[{request_id}] " if request_id else ""
        return True


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the package logger with stderr output and an optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    context_filter = RequestContextFilter()

    # StreamHandler defaults to stderr; stdout carries the answer text.
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.addFilter(context_filter)
    stream_handler.setFormatter(
        logging.Formatter("[second-opinion] %(levelname)s %(request_tag)s%(message)s")
    )
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.addFilter(context_filter)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(request_tag)s%(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = [
    "RequestContextFilter",
    "configure_logging",
    "get_logger",
    "request_scope",
]
