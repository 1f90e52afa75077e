"""Fixed wording shared by the prompt composer."""

from __future__ import annotations

INTRODUCTION = (
    "I'm a developer seeking a second opinion on a coding problem. "
    "Here's what I'm trying to accomplish:"
)

SECTION_TITLES: dict[str, str] = {
    "goal": "Goal",
    "error": "Error",
    "reasoning": "Reasoning Analysis",
    "search": "Related Stack Overflow Discussions",
    "code": "Code",
    "files": "Related Files",
    "attempts": "Prior Attempts",
    "guidance": "Guidance",
}

GUIDANCE_TOPICS: tuple[str, ...] = (
    "Common pitfalls in {language} development",
    "Best practices for this type of implementation",
    "Performance considerations",
    "Testing strategies",
    "Alternative approaches",
)


__all__ = ["GUIDANCE_TOPICS", "INTRODUCTION", "SECTION_TITLES"]
