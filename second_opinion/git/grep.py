"""Tracked-content search backed by ``git grep``."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, List


class SearchUnavailableError(RuntimeError):
    """Raised when git grep cannot be run for a directory."""


class GitGrep:
    """Lists tracked files under a directory whose content matches a pattern."""

    # git grep exits with 1 when nothing matched.
    _NO_MATCH_EXIT_CODE = 1

    def __init__(
        self,
        runner: Callable[..., str] | None = None,
        *,
        timeout: float = 15.0,
    ) -> None:
        self._runner = runner or self._default_runner
        self.timeout = timeout

    def search(self, pattern: str, directory: Path) -> List[str]:
        """Return paths (relative to ``directory``) of files matching ``pattern``."""
        if not pattern:
            raise SearchUnavailableError("Refusing to search with an empty pattern")
        if not directory.is_dir():
            raise SearchUnavailableError(f"{directory} is not a directory")

        # -z prints raw NUL-terminated paths instead of quoting non-ASCII names.
        args = ["git", "grep", "-l", "-z", "-I", "-E", "-e", pattern]
        try:
            output = self._runner(args, cwd=directory, timeout=self.timeout)
        except SearchUnavailableError:
            raise
        except Exception as exc:
            raise SearchUnavailableError(f"git grep failed in {directory}: {exc}") from exc
        return [entry for entry in output.split("\0") if entry.strip()]

    @classmethod
    def _default_runner(
        cls,
        args: Iterable[str],
        *,
        cwd: Path,
        timeout: float,
    ) -> str:
        import subprocess

        try:
            completed = subprocess.run(
                list(args),
                cwd=str(cwd),
                check=False,
                text=True,
                encoding="utf-8",
                errors="surrogateescape",
                capture_output=True,
                timeout=timeout,
            )
        except FileNotFoundError as exc:  # pragma: no cover - depends on environment
            raise SearchUnavailableError("Unable to locate the git executable") from exc
        except subprocess.TimeoutExpired as exc:  # pragma: no cover - depends on environment
            raise SearchUnavailableError(f"git grep timed out after {timeout}s") from exc

        if completed.returncode == cls._NO_MATCH_EXIT_CODE:
            return ""
        if completed.returncode != 0:
            message = completed.stderr.strip() or f"exit code {completed.returncode}"
            raise SearchUnavailableError(message)
        return completed.stdout


__all__ = ["GitGrep", "SearchUnavailableError"]
