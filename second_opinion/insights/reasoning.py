"""Perplexity chat-completions client used for error analysis."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..config import ReasoningConfig
from ..http import TransportError, post_json

SYSTEM_INSTRUCTION = (
    "You are an expert software developer. Analyze the given error and programming "
    "language context to provide specific insights about common causes and solutions."
)


class InsightError(RuntimeError):
    """Raised when an insight service cannot produce a contribution."""


@dataclass
class ReasoningRequest:
    """Represents a single error-analysis request."""

    system_instruction: str
    language: str
    error: str
    model: str
    base_url: str
    api_key: Optional[str]
    request_timeout: float


class ReasoningClient:
    """Asks the reasoning service for common causes and fixes of an error."""

    def __init__(
        self,
        config: ReasoningConfig | None = None,
        *,
        runner: Callable[[ReasoningRequest], str] | None = None,
    ) -> None:
        self.config = config or ReasoningConfig()
        self._runner = runner or self._http_runner

    def analyze(self, error: str, language: str) -> str:
        request = ReasoningRequest(
            system_instruction=SYSTEM_INSTRUCTION,
            language=language,
            error=error,
            model=self.config.model,
            base_url=self.config.base_url,
            api_key=self.config.api_key,
            request_timeout=self.config.request_timeout,
        )
        return self._runner(request)

    @staticmethod
    def _http_runner(request: ReasoningRequest) -> str:
        if not request.api_key:
            raise InsightError("Reasoning service requires an API key")
        payload = {
            "model": request.model,
            "messages": ReasoningClient._build_messages(request),
        }
        try:
            response = post_json(
                f"{request.base_url}/chat/completions",
                payload,
                headers={"Authorization": f"Bearer {request.api_key}"},
                timeout=request.request_timeout,
            )
        except TransportError as exc:
            raise InsightError(f"Reasoning service request failed: {exc}") from exc

        content = ReasoningClient._extract_content(response)
        if not content:
            raise InsightError("Reasoning service returned an empty response")
        return content.strip()

    @staticmethod
    def _build_messages(request: ReasoningRequest) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": request.system_instruction},
            {
                "role": "user",
                "content": (
                    f"Language: {request.language}\nError: {request.error}\n\n"
                    "What are the most common causes of this error and their solutions?"
                ),
            },
        ]

    @staticmethod
    def _extract_content(payload: Any) -> str:
        if not isinstance(payload, dict):
            return ""
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
        return ""


__all__ = ["InsightError", "ReasoningClient", "ReasoningRequest", "SYSTEM_INSTRUCTION"]
