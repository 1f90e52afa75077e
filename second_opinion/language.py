"""File extension to language label lookup."""

from __future__ import annotations

from pathlib import PurePath

UNKNOWN_LANGUAGE = "Unknown"

_LANGUAGE_BY_SUFFIX = {
    ".js": "JavaScript",
    ".ts": "TypeScript",
    ".jsx": "React/JavaScript",
    ".tsx": "React/TypeScript",
    ".py": "Python",
    ".rb": "Ruby",
    ".java": "Java",
    ".go": "Go",
    ".rs": "Rust",
    ".cpp": "C++",
    ".c": "C",
    ".cs": "C#",
    ".php": "PHP",
    ".swift": "Swift",
    ".kt": "Kotlin",
    ".scala": "Scala",
    ".html": "HTML",
    ".css": "CSS",
    ".scss": "SCSS",
    ".sql": "SQL",
}


def classify(path: str) -> str:
    """Return the language label for ``path`` based solely on its extension."""
    suffix = PurePath(path).suffix.lower()
    return _LANGUAGE_BY_SUFFIX.get(suffix, UNKNOWN_LANGUAGE)


__all__ = ["UNKNOWN_LANGUAGE", "classify"]
