"""Gemini generateContent client used to synthesize the final answer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..config import SynthesisConfig
from ..http import TransportError, post_json


class SynthesisError(RuntimeError):
    """Raised when the synthesis service does not return an answer."""


@dataclass
class SynthesisRequest:
    """Represents a single prompt submitted for synthesis."""

    prompt: str
    model: str
    base_url: str
    api_key: Optional[str]
    request_timeout: float


class GeminiClient:
    """Sends the composed prompt to Gemini and returns the answer text."""

    def __init__(
        self,
        config: SynthesisConfig | None = None,
        *,
        runner: Callable[[SynthesisRequest], str] | None = None,
    ) -> None:
        self.config = config or SynthesisConfig()
        self._runner = runner or self._http_runner

    def generate(self, prompt: str) -> str:
        request = SynthesisRequest(
            prompt=prompt,
            model=self.config.model,
            base_url=self.config.base_url,
            api_key=self.config.api_key,
            request_timeout=self.config.request_timeout,
        )
        return self._runner(request)

    @staticmethod
    def _http_runner(request: SynthesisRequest) -> str:
        if not request.api_key:
            raise SynthesisError("Synthesis service requires an API key")
        payload = {"contents": [{"role": "user", "parts": [{"text": request.prompt}]}]}
        try:
            response = post_json(
                f"{request.base_url}/models/{request.model}:generateContent",
                payload,
                headers={"x-goog-api-key": request.api_key},
                timeout=request.request_timeout,
            )
        except TransportError as exc:
            raise SynthesisError(GeminiClient._error_message(exc)) from exc

        text = GeminiClient._extract_text(response)
        if not text:
            raise SynthesisError("No response from Gemini")
        return text

    @staticmethod
    def _error_message(exc: TransportError) -> str:
        body = exc.payload()
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and isinstance(error.get("message"), str):
                return error["message"]
        return str(exc)

    @staticmethod
    def _extract_text(payload: Any) -> str:
        if not isinstance(payload, dict):
            return ""
        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return ""
        first = candidates[0]
        content = first.get("content") if isinstance(first, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return ""
        texts = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
        return "".join(texts).strip()


__all__ = ["GeminiClient", "SynthesisError", "SynthesisRequest"]
