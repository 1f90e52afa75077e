"""Tests for get_second_opinion argument validation."""

from __future__ import annotations

import pytest

from second_opinion.models import Request
from second_opinion.validation import validate_request


def test_validate_request_accepts_goal_only() -> None:
    result = validate_request({"goal": "optimize loop"})

    assert result.ok
    assert result.request == Request(goal="optimize loop")
    assert result.reason is None


def test_validate_request_maps_wire_names() -> None:
    result = validate_request(
        {
            "goal": "fix crash",
            "error": "TypeError: boom",
            "code": "x = 1",
            "solutionsTried": "restarted",
            "filePath": "/tmp/app.py",
        }
    )

    assert result.request == Request(
        goal="fix crash",
        error="TypeError: boom",
        code="x = 1",
        solutions_tried="restarted",
        file_path="/tmp/app.py",
    )


@pytest.mark.parametrize(
    "arguments",
    [
        None,
        "goal",
        ["goal"],
        {},
        {"goal": 3},
        {"goal": ""},
        {"goal": "   "},
        {"goal": "x", "error": 1},
        {"goal": "x", "code": ["a"]},
        {"goal": "x", "solutionsTried": {"a": 1}},
        {"goal": "x", "filePath": False},
        {"goal": "g", "error": None},
        {"goal": "g", "solutionsTried": None},
    ],
)
def test_validate_request_rejects_malformed_arguments(arguments: object) -> None:
    result = validate_request(arguments)

    assert not result.ok
    assert result.request is None
    assert result.reason


def test_validate_request_treats_missing_and_empty_optionals_as_absent() -> None:
    result = validate_request({"goal": "x", "error": "", "extra": 42})

    assert result.request == Request(goal="x")


def test_validate_request_names_the_null_field() -> None:
    result = validate_request({"goal": "x", "code": None})

    assert result.reason == "'code' must be a string when provided"


def test_validated_request_is_immutable() -> None:
    request = validate_request({"goal": "x"}).request
    assert request is not None

    with pytest.raises(AttributeError):
        request.goal = "y"  # type: ignore[misc]
