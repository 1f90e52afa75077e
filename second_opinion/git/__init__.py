"""Git-backed capabilities."""

from .grep import GitGrep, SearchUnavailableError

__all__ = ["GitGrep", "SearchUnavailableError"]
