"""Persists each exchange as a markdown record under the responses directory."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable

from jinja2 import Environment, FileSystemLoader, TemplateError

from ..language import UNKNOWN_LANGUAGE
from ..logging import get_logger
from ..models import ArchiveOutcome, Request

RECORD_EXTENSION = ".md"
SLUG_MAX_LENGTH = 50

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
_FALLBACK_SLUG = "response"
_MAX_COLLISION_SUFFIX = 100


def slugify(goal: str, *, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Lowercase ``goal`` and collapse non-alphanumeric runs into single hyphens."""
    slug = _SLUG_PATTERN.sub("-", goal.lower()).strip("-")
    slug = slug[:max_length].rstrip("-")
    return slug or _FALLBACK_SLUG


def timestamp_token(moment: datetime) -> str:
    """Render ``moment`` in UTC with millisecond resolution and no ``:`` or ``.``."""
    utc = moment.astimezone(UTC) if moment.tzinfo else moment.replace(tzinfo=UTC)
    return f"{utc:%Y-%m-%dT%H-%M-%S}-{utc.microsecond // 1000:03d}Z"


def record_filename(goal: str, moment: datetime) -> str:
    return f"{timestamp_token(moment)}-{slugify(goal)}{RECORD_EXTENSION}"


class ResponseArchiver:
    """Writes one self-contained record per answered request.

    Failures are reported through :class:`ArchiveOutcome` and never raised, so
    a read-only working directory cannot block delivery of the answer.
    """

    def __init__(
        self,
        directory: Path | str = "responses",
        *,
        clock: Callable[[], datetime] | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        self.directory = Path(directory)
        self._clock = clock or (lambda: datetime.now(UTC))
        self._env = Environment(
            loader=FileSystemLoader(str(templates_dir or Path(__file__).with_name("templates"))),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.logger = get_logger("archive")

    def archive(self, request: Request, answer: str, language: str) -> ArchiveOutcome:
        moment = self._clock()
        try:
            document = self.render(request, answer, language, moment)
            target_dir = self._target_dir()
            target_dir.mkdir(parents=True, exist_ok=True)
            path = self._write_exclusive(target_dir, record_filename(request.goal, moment), document)
        except (OSError, TemplateError, ValueError) as exc:
            self.logger.warning("Unable to archive response: %s", exc)
            return ArchiveOutcome(error=str(exc))
        self.logger.info("Response archived to %s", path)
        return ArchiveOutcome(path=path)

    def render(self, request: Request, answer: str, language: str, moment: datetime) -> str:
        template = self._env.get_template("record.md.j2")
        utc = moment.astimezone(UTC) if moment.tzinfo else moment.replace(tzinfo=UTC)
        return template.render(
            goal=request.goal.strip(),
            error=request.error,
            code=request.code,
            code_fence="" if language == UNKNOWN_LANGUAGE else language,
            solutions_tried=request.solutions_tried,
            file_path=request.file_path,
            answer=answer.strip(),
            generated_at=f"{utc:%Y-%m-%d %H:%M:%S} UTC",
        )

    def _target_dir(self) -> Path:
        if self.directory.is_absolute():
            return self.directory
        return Path.cwd() / self.directory

    def _write_exclusive(self, directory: Path, filename: str, document: str) -> Path:
        # Lone surrogates from JSON input cannot be encoded as UTF-8.
        data = document.encode("utf-8", errors="replace")
        stem = filename[: -len(RECORD_EXTENSION)]
        candidate = directory / filename
        for attempt in range(2, _MAX_COLLISION_SUFFIX + 2):
            try:
                handle = candidate.open("xb")
            except FileExistsError:
                candidate = directory / f"{stem}-{attempt}{RECORD_EXTENSION}"
                continue
            try:
                with handle:
                    handle.write(data)
            except OSError:
                candidate.unlink(missing_ok=True)
                raise
            return candidate
        raise FileExistsError(f"Too many records named {filename} in {directory}")


__all__ = [
    "RECORD_EXTENSION",
    "ResponseArchiver",
    "record_filename",
    "slugify",
    "timestamp_token",
]
