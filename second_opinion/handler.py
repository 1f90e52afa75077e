"""Request pipeline for the get_second_opinion tool."""

from __future__ import annotations

import asyncio
import contextvars
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from .config import SecondOpinionConfig
from .context.collector import FileContextCollector
from .git.grep import GitGrep
from .insights.aggregator import InsightAggregator
from .insights.reasoning import ReasoningClient
from .insights.search import StackExchangeClient
from .language import UNKNOWN_LANGUAGE
from .llm.gemini import GeminiClient
from .logging import get_logger, request_scope
from .models import ArchiveOutcome, FileContext, InsightBundle, Request, ToolResult
from .prompting.composer import compose
from .stores.archive import ResponseArchiver
from .validation import validate_request

TOOL_NAME = "get_second_opinion"

GENERIC_SYNTHESIS_FAILURE = "The synthesis service did not return an answer"

TOOL_DESCRIPTION = (
    "Get a second opinion on a coding problem using Google's Gemini AI, "
    "enhanced with Perplexity insights and Stack Overflow references"
)

INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "goal": {"type": "string", "description": "What the developer is trying to accomplish"},
        "error": {"type": "string", "description": "Any error messages they're seeing"},
        "code": {"type": "string", "description": "Relevant code context"},
        "solutionsTried": {"type": "string", "description": "What solutions they've already tried"},
        "filePath": {
            "type": "string",
            "description": "Path to the file with the issue (for automatic context gathering)",
        },
    },
    "required": ["goal"],
}


class InvalidRequestError(ValueError):
    """Raised when tool arguments do not have the expected shape."""


class UnknownToolError(LookupError):
    """Raised when a tool other than get_second_opinion is requested."""


class Synthesizer(Protocol):
    def generate(self, prompt: str) -> str: ...


def tool_definitions() -> List[Dict[str, Any]]:
    """Describe the tools exposed across the invocation boundary."""
    return [{"name": TOOL_NAME, "description": TOOL_DESCRIPTION, "inputSchema": INPUT_SCHEMA}]


@dataclass
class Exchange:
    """Everything gathered while answering one request."""

    request: Request
    language: str = UNKNOWN_LANGUAGE
    file_contexts: List[FileContext] = field(default_factory=list)
    insights: InsightBundle = field(default_factory=InsightBundle)
    prompt: str = ""
    answer: Optional[str] = None
    archive: Optional[ArchiveOutcome] = None


class SecondOpinionHandler:
    """Coordinates context gathering, insight fan-out, synthesis and archiving."""

    def __init__(
        self,
        config: SecondOpinionConfig | None = None,
        *,
        collector: FileContextCollector | None = None,
        aggregator: InsightAggregator | None = None,
        synthesizer: Synthesizer | None = None,
        archiver: ResponseArchiver | None = None,
    ) -> None:
        self.config = config
        self.collector = collector or self._build_collector(config)
        self.aggregator = aggregator or self._build_aggregator(config)
        self.synthesizer = synthesizer or GeminiClient(config.synthesis if config else None)
        if archiver is not None:
            self.archiver: Optional[ResponseArchiver] = archiver
        elif config is None or config.archive.enabled:
            self.archiver = ResponseArchiver(config.archive.directory if config else "responses")
        else:
            self.archiver = None
        self.logger = get_logger("handler")

    async def call_tool(self, name: str, arguments: Any) -> ToolResult:
        """Dispatch a tool invocation by name."""
        if name != TOOL_NAME:
            raise UnknownToolError(f"Unknown tool: {name}")
        return await self.handle(arguments)

    async def handle(self, arguments: Any) -> ToolResult:
        """Answer one get_second_opinion invocation.

        Raises :class:`InvalidRequestError` before any I/O when ``arguments``
        are malformed. Every later failure except synthesis degrades silently;
        a synthesis failure is returned as an error result.
        """
        validation = validate_request(arguments)
        if not validation.ok or validation.request is None:
            raise InvalidRequestError(f"Invalid {TOOL_NAME} arguments: {validation.reason}")

        with request_scope():
            self.logger.info("Handling %s request", TOOL_NAME)
            return await self._answer(validation.request)

    async def _answer(self, request: Request) -> ToolResult:
        exchange = await self.prepare(request)

        loop = asyncio.get_running_loop()
        try:
            answer = await loop.run_in_executor(
                None, contextvars.copy_context().run, self.synthesizer.generate, exchange.prompt
            )
        except Exception as exc:
            message = str(exc).strip() or GENERIC_SYNTHESIS_FAILURE
            self.logger.error("Synthesis failed: %s", message)
            return ToolResult(text=f"Gemini API error: {message}", is_error=True)
        exchange.answer = answer

        text = answer
        if self.archiver is not None:
            exchange.archive = await loop.run_in_executor(
                None,
                contextvars.copy_context().run,
                self.archiver.archive,
                exchange.request,
                answer,
                exchange.language,
            )
            if exchange.archive.ok:
                text = f"{answer}\n\nResponse saved to: {exchange.archive.path}"

        return ToolResult(text=text)

    async def prepare(self, request: Request) -> Exchange:
        """Gather context and insights for ``request`` and compose the prompt."""
        exchange = Exchange(request=request)

        if request.file_path:
            exchange.file_contexts = await self.collector.collect(request.file_path, request.error)
            if exchange.file_contexts:
                exchange.language = exchange.file_contexts[0].language
        self.logger.debug(
            "Gathered %d file context(s); language %s", len(exchange.file_contexts), exchange.language
        )

        if request.error:
            exchange.insights = await self.aggregator.aggregate(request.error, exchange.language)

        exchange.prompt = compose(
            request, exchange.file_contexts, exchange.insights, language=exchange.language
        )
        return exchange

    @staticmethod
    def _build_collector(config: SecondOpinionConfig | None) -> FileContextCollector:
        if config is None:
            return FileContextCollector()
        return FileContextCollector(
            GitGrep(timeout=config.context.search_timeout),
            max_related_files=config.context.max_related_files,
            fallback_limit=config.context.fallback_limit,
        )

    @staticmethod
    def _build_aggregator(config: SecondOpinionConfig | None) -> InsightAggregator:
        if config is None:
            return InsightAggregator(ReasoningClient(), StackExchangeClient())
        return InsightAggregator(
            ReasoningClient(config.reasoning) if config.reasoning.enabled else None,
            StackExchangeClient(config.search) if config.search.enabled else None,
        )


__all__ = [
    "Exchange",
    "GENERIC_SYNTHESIS_FAILURE",
    "InvalidRequestError",
    "SecondOpinionHandler",
    "TOOL_NAME",
    "UnknownToolError",
    "tool_definitions",
]
