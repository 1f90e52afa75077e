"""Tests for the git grep wrapper."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from second_opinion.git.grep import GitGrep, SearchUnavailableError


def test_search_builds_extended_regex_invocation(tmp_path: Path) -> None:
    captured: dict[str, object] = {}

    def fake_runner(args, *, cwd, timeout):
        captured["args"] = list(args)
        captured["cwd"] = cwd
        captured["timeout"] = timeout
        return "src/a.py\0src/b.py\0"

    grep = GitGrep(fake_runner, timeout=3.0)
    matches = grep.search("TypeError|undefined", tmp_path)

    assert matches == ["src/a.py", "src/b.py"]
    assert captured == {
        "args": ["git", "grep", "-l", "-z", "-I", "-E", "-e", "TypeError|undefined"],
        "cwd": tmp_path,
        "timeout": 3.0,
    }


def test_search_rejects_empty_pattern(tmp_path: Path) -> None:
    grep = GitGrep(lambda *args, **kwargs: "")

    with pytest.raises(SearchUnavailableError):
        grep.search("", tmp_path)


def test_search_rejects_missing_directory(tmp_path: Path) -> None:
    grep = GitGrep(lambda *args, **kwargs: "")

    with pytest.raises(SearchUnavailableError):
        grep.search("term", tmp_path / "missing")


def test_search_wraps_runner_failures(tmp_path: Path) -> None:
    def failing_runner(args, *, cwd, timeout):
        raise subprocess.CalledProcessError(128, list(args))

    with pytest.raises(SearchUnavailableError):
        GitGrep(failing_runner).search("term", tmp_path)


def test_default_runner_treats_exit_code_one_as_no_matches(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def fake_run(args, **kwargs):
        return subprocess.CompletedProcess(args, 1, stdout="", stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)

    assert GitGrep().search("term", tmp_path) == []


def test_default_runner_raises_outside_a_repository(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def fake_run(args, **kwargs):
        return subprocess.CompletedProcess(args, 128, stdout="", stderr="fatal: not a git repository")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(SearchUnavailableError, match="not a git repository"):
        GitGrep().search("term", tmp_path)


def test_search_keeps_non_ascii_and_spaced_paths_verbatim(tmp_path: Path) -> None:
    def fake_runner(args, *, cwd, timeout):
        return "docs/résumé.py\0src/with space.py\0"

    matches = GitGrep(fake_runner).search("term", tmp_path)

    assert matches == ["docs/résumé.py", "src/with space.py"]


def test_default_runner_decodes_nul_separated_output(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    captured = {}

    def fake_run(args, **kwargs):
        captured["args"] = args
        captured["encoding"] = kwargs.get("encoding")
        return subprocess.CompletedProcess(args, 0, stdout="naïve.py\0", stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)

    assert GitGrep().search("term", tmp_path) == ["naïve.py"]
    assert "-z" in captured["args"]
    assert captured["encoding"] == "utf-8"
