"""Concurrent fan-out to the reasoning and search services."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Protocol

from ..logging import get_logger
from ..models import InsightBundle


class ReasoningSource(Protocol):
    def analyze(self, error: str, language: str) -> str: ...


class SearchSource(Protocol):
    def search(self, query: str) -> str: ...


class InsightAggregator:
    """Queries both insight services at once; each failure only empties its own field."""

    def __init__(
        self,
        reasoning: Optional[ReasoningSource] = None,
        search: Optional[SearchSource] = None,
    ) -> None:
        self.reasoning = reasoning
        self.search = search
        self.logger = get_logger("insights")

    async def aggregate(self, error_text: str, language: str) -> InsightBundle:
        reasoning_task = self._branch(
            "reasoning",
            self.reasoning.analyze if self.reasoning else None,
            error_text,
            language,
        )
        search_task = self._branch(
            "search",
            self.search.search if self.search else None,
            f"{error_text} {language}",
        )
        reasoning_insight, search_insight = await asyncio.gather(reasoning_task, search_task)
        return InsightBundle(reasoning_insight=reasoning_insight, search_insight=search_insight)

    async def _branch(
        self,
        name: str,
        call: Optional[Callable[..., str]],
        *args: str,
    ) -> str:
        if call is None:
            self.logger.debug("%s insight source disabled", name.capitalize())
            return ""
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, call, *args)
        except Exception as exc:
            self.logger.warning("%s insight unavailable: %s", name.capitalize(), exc)
            return ""
        if not isinstance(result, str):
            self.logger.warning("%s insight returned %s; ignoring", name.capitalize(), type(result).__name__)
            return ""
        return result.strip()


__all__ = ["InsightAggregator", "ReasoningSource", "SearchSource"]
