"""Synthesis model adapters."""

from .gemini import GeminiClient, SynthesisError

__all__ = ["GeminiClient", "SynthesisError"]
