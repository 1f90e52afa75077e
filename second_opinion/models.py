"""Core data models shared across second-opinion components."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Request:
    """A validated get_second_opinion invocation."""

    goal: str
    error: Optional[str] = None
    code: Optional[str] = None
    solutions_tried: Optional[str] = None
    file_path: Optional[str] = None


@dataclass(frozen=True)
class FileContext:
    """A file loaded for the prompt, labelled with its language."""

    path: str
    content: str
    language: str


@dataclass(frozen=True)
class InsightBundle:
    """Contributions from the reasoning and search services; empty means none."""

    reasoning_insight: str = ""
    search_insight: str = ""


@dataclass(frozen=True)
class ArchiveOutcome:
    """Result of persisting an exchange; failures are reported, never raised."""

    path: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.path is not None


@dataclass
class ToolResult:
    """Payload returned across the tool invocation boundary."""

    text: str
    is_error: bool = False

    def to_payload(self) -> Dict[str, Any]:
        content: List[Dict[str, str]] = [{"type": "text", "text": self.text}]
        payload: Dict[str, Any] = {"content": content}
        if self.is_error:
            payload["isError"] = True
        return payload
