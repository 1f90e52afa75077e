"""Tests for the logging helpers."""

from __future__ import annotations

import logging
from pathlib import Path

from second_opinion.logging import configure_logging, get_logger, request_scope


def test_get_logger_nests_under_package_logger() -> None:
    assert get_logger().name == "second_opinion"
    assert get_logger("archive").name == "second_opinion.archive"


def test_configure_logging_does_not_duplicate_handlers(tmp_path: Path) -> None:
    configure_logging()
    logger = configure_logging(verbose=True, log_file=tmp_path / "run.log")

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2

    get_logger("test").debug("hello from the pipeline")
    for handler in logger.handlers:
        handler.flush()

    assert "hello from the pipeline" in (tmp_path / "run.log").read_text(encoding="utf-8")


def test_stream_output_goes_to_stderr(capsys) -> None:
    configure_logging()

    get_logger("test").warning("degraded")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[second-opinion] WARNING degraded" in captured.err


def test_records_inside_request_scope_carry_the_request_id(capsys) -> None:
    configure_logging()

    with request_scope("abc123") as request_id:
        get_logger("test").info("inside")
    get_logger("test").info("outside")

    err = capsys.readouterr().err
    assert request_id == "abc123"
    assert "[second-opinion] INFO [abc123] inside" in err
    assert "[second-opinion] INFO outside" in err


def test_request_scope_generates_short_ids() -> None:
    with request_scope() as first, request_scope() as second:
        assert len(first) == 8
        assert first != second
