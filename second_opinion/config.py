"""Configuration loading for second-opinion (.second-opinion.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".second-opinion.yml"

ANSWER_STRATEGIES = ("all", "accepted")

_SYNTHESIS_KEY_ENV = ("SECOND_OPINION_GEMINI_API_KEY", "GEMINI_API_KEY")
_REASONING_KEY_ENV = ("SECOND_OPINION_PERPLEXITY_API_KEY", "PERPLEXITY_API_KEY")
_SEARCH_KEY_ENV = ("SECOND_OPINION_STACKEXCHANGE_KEY", "STACKEXCHANGE_KEY")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is invalid."""


@dataclass
class SynthesisConfig:
    """Settings for the Gemini synthesis collaborator."""

    model: str = "gemini-2.0-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    api_key: Optional[str] = None
    request_timeout: float = 120.0


@dataclass
class ReasoningConfig:
    """Settings for the Perplexity reasoning collaborator."""

    model: str = "sonar"
    base_url: str = "https://api.perplexity.ai"
    api_key: Optional[str] = None
    request_timeout: float = 30.0
    enabled: bool = True


@dataclass
class SearchConfig:
    """Settings for the Stack Exchange search collaborator."""

    base_url: str = "https://api.stackexchange.com/2.3"
    site: str = "stackoverflow"
    page_size: int = 3
    answer_strategy: str = "all"
    answers_per_question: int = 3
    api_key: Optional[str] = None
    request_timeout: float = 10.0
    enabled: bool = True


@dataclass
class ContextConfig:
    """Related-file discovery limits."""

    max_related_files: int = 5
    # None keeps the sibling fallback uncapped.
    fallback_limit: Optional[int] = None
    search_timeout: float = 15.0


@dataclass
class ArchiveConfig:
    """Where exchanges are recorded."""

    directory: str = "responses"
    enabled: bool = True


@dataclass
class SecondOpinionConfig:
    """Represents the settings defined in .second-opinion.yml."""

    root: Path
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    reasoning: ReasoningConfig = field(default_factory=ReasoningConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    context: ContextConfig = field(default_factory=ContextConfig)
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)


def load_config(
    config_path: Path, *, environ: Mapping[str, str] | None = None
) -> SecondOpinionConfig:
    """Load configuration from disk, filling API keys from the environment."""
    env = os.environ if environ is None else environ
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)

    synthesis_data = _as_dict(data.get("synthesis"))
    synthesis = SynthesisConfig(
        model=_as_str(synthesis_data.get("model")) or SynthesisConfig.model,
        base_url=_as_url(synthesis_data.get("base_url")) or SynthesisConfig.base_url,
        api_key=_as_str(synthesis_data.get("api_key")) or _first_env_value(env, _SYNTHESIS_KEY_ENV),
        request_timeout=_positive_float(
            synthesis_data.get("request_timeout"), SynthesisConfig.request_timeout, "synthesis.request_timeout"
        ),
    )

    reasoning_data = _as_dict(data.get("reasoning"))
    reasoning = ReasoningConfig(
        model=_as_str(reasoning_data.get("model")) or ReasoningConfig.model,
        base_url=_as_url(reasoning_data.get("base_url")) or ReasoningConfig.base_url,
        api_key=_as_str(reasoning_data.get("api_key")) or _first_env_value(env, _REASONING_KEY_ENV),
        request_timeout=_positive_float(
            reasoning_data.get("request_timeout"), ReasoningConfig.request_timeout, "reasoning.request_timeout"
        ),
        enabled=_as_bool(reasoning_data.get("enabled"), default=True),
    )

    search_data = _as_dict(data.get("search"))
    strategy = (_as_str(search_data.get("answer_strategy")) or SearchConfig.answer_strategy).lower()
    if strategy not in ANSWER_STRATEGIES:
        raise ConfigError(
            f"search.answer_strategy must be one of {', '.join(ANSWER_STRATEGIES)} (got {strategy!r})"
        )
    search = SearchConfig(
        base_url=_as_url(search_data.get("base_url")) or SearchConfig.base_url,
        site=_as_str(search_data.get("site")) or SearchConfig.site,
        page_size=_positive_int(search_data.get("page_size"), SearchConfig.page_size, "search.page_size"),
        answer_strategy=strategy,
        answers_per_question=_positive_int(
            search_data.get("answers_per_question"),
            SearchConfig.answers_per_question,
            "search.answers_per_question",
        ),
        api_key=_as_str(search_data.get("api_key")) or _first_env_value(env, _SEARCH_KEY_ENV),
        request_timeout=_positive_float(
            search_data.get("request_timeout"), SearchConfig.request_timeout, "search.request_timeout"
        ),
        enabled=_as_bool(search_data.get("enabled"), default=True),
    )

    context_data = _as_dict(data.get("context"))
    fallback_raw = context_data.get("fallback_limit")
    context = ContextConfig(
        max_related_files=_positive_int(
            context_data.get("max_related_files"),
            ContextConfig.max_related_files,
            "context.max_related_files",
        ),
        fallback_limit=(
            None
            if fallback_raw is None
            else _positive_int(fallback_raw, 0, "context.fallback_limit")
        ),
        search_timeout=_positive_float(
            context_data.get("search_timeout"), ContextConfig.search_timeout, "context.search_timeout"
        ),
    )

    archive_data = _as_dict(data.get("archive"))
    archive = ArchiveConfig(
        directory=_as_str(archive_data.get("directory")) or ArchiveConfig.directory,
        enabled=_as_bool(archive_data.get("enabled"), default=True),
    )

    return SecondOpinionConfig(
        root=root,
        synthesis=synthesis,
        reasoning=reasoning,
        search=search,
        context=context,
        archive=archive,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _first_env_value(env: Mapping[str, str], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = env.get(key)
        if value:
            return value
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_url(value: Any) -> Optional[str]:
    text = _as_str(value)
    return text.rstrip("/") if text else None


def _as_bool(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    raise ConfigError(f"Expected a boolean value, got {value!r}")


def _positive_int(value: Any, default: int, name: str) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(f"{name} must be a positive integer")
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a positive integer") from exc
    if parsed <= 0:
        raise ConfigError(f"{name} must be a positive integer")
    return parsed


def _positive_float(value: Any, default: float, name: str) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ConfigError(f"{name} must be a positive number")
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a positive number") from exc
    if parsed <= 0:
        raise ConfigError(f"{name} must be a positive number")
    return parsed


__all__ = [
    "ANSWER_STRATEGIES",
    "ArchiveConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "ContextConfig",
    "ReasoningConfig",
    "SearchConfig",
    "SecondOpinionConfig",
    "SynthesisConfig",
    "load_config",
]
