"""Shape checks for untyped get_second_opinion arguments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .models import Request

# Wire field name -> Request attribute.
_OPTIONAL_FIELDS = (
    ("error", "error"),
    ("code", "code"),
    ("solutionsTried", "solutions_tried"),
    ("filePath", "file_path"),
)


@dataclass(frozen=True)
class ValidationResult:
    """Either a validated request or the reason the arguments were rejected."""

    request: Optional[Request] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.request is not None


def validate_request(arguments: Any) -> ValidationResult:
    """Check ``arguments`` and build a :class:`Request` without raising."""
    if not isinstance(arguments, Mapping):
        return ValidationResult(reason="arguments must be an object")

    goal = arguments.get("goal")
    if not isinstance(goal, str):
        return ValidationResult(reason="'goal' must be a string")
    if not goal.strip():
        return ValidationResult(reason="'goal' must not be empty")

    values: dict[str, Optional[str]] = {}
    for wire_name, attribute in _OPTIONAL_FIELDS:
        if wire_name not in arguments:
            values[attribute] = None
            continue
        value = arguments[wire_name]
        if not isinstance(value, str):
            return ValidationResult(reason=f"'{wire_name}' must be a string when provided")
        # Empty strings contribute nothing downstream.
        values[attribute] = value if value else None

    return ValidationResult(request=Request(goal=goal, **values))


__all__ = ["ValidationResult", "validate_request"]
