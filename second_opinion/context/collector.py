"""Loads the primary file and related files for a request."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import List, Optional, Sequence

from ..git.grep import GitGrep, SearchUnavailableError
from ..language import classify
from ..logging import get_logger
from ..models import FileContext

_TERM_SPLIT = re.compile(r"\W+")
_MIN_TERM_LENGTH = 4


def search_terms(error_text: str) -> List[str]:
    """Split ``error_text`` into distinct tokens longer than three characters."""
    seen: set[str] = set()
    terms: List[str] = []
    for token in _TERM_SPLIT.split(error_text):
        if len(token) < _MIN_TERM_LENGTH or token in seen:
            continue
        seen.add(token)
        terms.append(token)
    return terms


def build_pattern(terms: Sequence[str]) -> str:
    """Join ``terms`` into an extended-regex alternation."""
    return "|".join(re.escape(term) for term in terms)


class FileContextCollector:
    """Gathers file context with git grep discovery and a sibling-file fallback.

    The collector never raises: unreadable files are logged and skipped, and a
    failed primary read yields an empty sequence.
    """

    def __init__(
        self,
        grep: GitGrep | None = None,
        *,
        max_related_files: int = 5,
        fallback_limit: Optional[int] = None,
    ) -> None:
        self.grep = grep or GitGrep()
        self.max_related_files = max_related_files
        self.fallback_limit = fallback_limit
        self.logger = get_logger("context")

    async def collect(
        self, primary_path: str, error_text: Optional[str] = None
    ) -> List[FileContext]:
        primary = Path(primary_path).expanduser()
        primary_context = await self._read(primary, display_path=primary_path)
        if primary_context is None:
            self.logger.warning("Unable to read primary file %s; continuing without file context", primary_path)
            return []

        contexts = [primary_context]
        if not error_text:
            return contexts

        related = await self._discover(primary, error_text)
        contexts.extend(await self._read_all(related))
        self.logger.debug("Collected %d related file(s) for %s", len(contexts) - 1, primary_path)
        return contexts

    async def _discover(self, primary: Path, error_text: str) -> List[Path]:
        base_dir = primary.parent
        terms = search_terms(error_text)
        if not terms:
            self.logger.debug("No usable search terms in error text; using sibling fallback")
            return self._siblings(primary)

        loop = asyncio.get_running_loop()
        try:
            matches = await loop.run_in_executor(
                None, self.grep.search, build_pattern(terms), base_dir
            )
        except SearchUnavailableError as exc:
            self.logger.info("Content search unavailable (%s); using sibling fallback", exc)
            return self._siblings(primary)

        primary_resolved = primary.resolve()
        related: List[Path] = []
        for match in matches:
            candidate = base_dir / match
            if candidate.resolve() == primary_resolved:
                continue
            related.append(candidate)
            if len(related) >= self.max_related_files:
                break
        return related

    def _siblings(self, primary: Path) -> List[Path]:
        suffix = primary.suffix
        try:
            entries = sorted(primary.parent.iterdir(), key=lambda entry: entry.name)
        except OSError as exc:
            self.logger.warning("Unable to list %s: %s", primary.parent, exc)
            return []

        siblings = [
            entry
            for entry in entries
            if entry.suffix == suffix and entry.name != primary.name and entry.is_file()
        ]
        if self.fallback_limit is not None:
            siblings = siblings[: self.fallback_limit]
        return siblings

    async def _read_all(self, paths: Sequence[Path]) -> List[FileContext]:
        # gather preserves argument order regardless of completion order.
        results = await asyncio.gather(*(self._read(path) for path in paths))
        return [context for context in results if context is not None]

    async def _read(
        self, path: Path, *, display_path: Optional[str] = None
    ) -> Optional[FileContext]:
        loop = asyncio.get_running_loop()
        try:
            content = await loop.run_in_executor(None, _read_text, path)
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Skipping unreadable file %s: %s", path, exc)
            return None
        label = display_path or str(path)
        return FileContext(path=label, content=content, language=classify(label))


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


__all__ = ["FileContextCollector", "build_pattern", "search_terms"]
