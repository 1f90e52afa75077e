"""Deterministic assembly of the synthesis prompt."""

from __future__ import annotations

from typing import List, Sequence

from ..language import UNKNOWN_LANGUAGE
from ..models import FileContext, InsightBundle, Request
from .constants import GUIDANCE_TOPICS, INTRODUCTION, SECTION_TITLES


def fence(body: str, language: str = UNKNOWN_LANGUAGE) -> str:
    """Wrap ``body`` in a code fence tagged with ``language`` when it is known."""
    label = "" if language == UNKNOWN_LANGUAGE else language
    text = body.rstrip("\n")
    return f"```{label}\n{text}\n```"


def compose(
    request: Request,
    file_contexts: Sequence[FileContext],
    insights: InsightBundle,
    *,
    language: str = UNKNOWN_LANGUAGE,
) -> str:
    """Render every contributing input into one prompt; empty inputs add nothing."""
    sections: List[str] = [_heading("goal", 2), INTRODUCTION, request.goal.strip()]

    if request.error:
        sections.extend([_heading("error", 2), "I'm encountering the following error:", fence(request.error)])
        if insights.reasoning_insight:
            sections.extend([_heading("reasoning", 3), insights.reasoning_insight])
        if insights.search_insight:
            sections.extend([_heading("search", 3), insights.search_insight])

    if request.code:
        sections.extend([_heading("code", 2), "Here's the relevant code:", fence(request.code, language)])

    if file_contexts:
        sections.extend([_heading("files", 2), "Related files and their contents:"])
        for context in file_contexts:
            sections.append(
                f"File: {context.path} ({context.language})\n{fence(context.content, context.language)}"
            )

    if request.solutions_tried:
        sections.extend(
            [_heading("attempts", 2), "I've already tried these solutions:", request.solutions_tried.strip()]
        )

    sections.extend([_heading("guidance", 2), _guidance(language)])
    return "\n\n".join(sections) + "\n"


def _heading(section: str, level: int) -> str:
    return f"{'#' * level} {SECTION_TITLES[section]}"


def _guidance(language: str) -> str:
    lines = [
        f"Based on the {language} context and best practices, could you provide insights and "
        "suggestions to help move forward? Please be specific and detailed in your response, considering:"
    ]
    for index, topic in enumerate(GUIDANCE_TOPICS, start=1):
        lines.append(f"{index}. {topic.format(language=language)}")
    return "\n".join(lines)


__all__ = ["compose", "fence"]
