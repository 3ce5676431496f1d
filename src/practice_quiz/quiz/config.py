"""Configuration for quiz runs.

Precedence is CLI flag > ``PRACTICE_QUIZ_*`` environment variable > TOML
file > built-in default.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from practice_quiz.core import workspace as workspace_mod

from .loader import DEFAULT_TIMEOUT

CONFIG_FILENAME = "quiz.toml"
CONFIG_ENV = "PRACTICE_QUIZ_CONFIG"
ENV_PREFIX = "PRACTICE_QUIZ_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class QuizConfigError(RuntimeError):
    """Raised when quiz configuration cannot be loaded or validated."""


@dataclass(frozen=True)
class QuizConfig:
    """Resolved settings for one quiz run."""

    source: Optional[str]
    timeout_seconds: float
    show_explanations: bool
    log_level: str
    verbose: bool


@dataclass(frozen=True)
class ConfigOverrides:
    source: Optional[str] = None
    timeout_seconds: Optional[float] = None
    show_explanations: Optional[bool] = None
    log_level: Optional[str] = None
    verbose: Optional[bool] = None


@dataclass(frozen=True)
class LoadResult:
    config: QuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    except workspace_mod.WorkspaceError as exc:
        raise QuizConfigError(str(exc)) from exc

    explicit = config_path is not None or bool(
        (env_map.get(CONFIG_ENV) or "").strip()
    )
    requested = _resolve_config_path(config_path, env_map, layout)
    table = default_table()
    loaded_path: Optional[Path] = None
    if requested.exists():
        _overlay(table, _read_toml(requested))
        loaded_path = requested
    elif explicit:
        raise QuizConfigError(f"Config file not found: {requested}")

    source = _pick_first(
        overrides.source,
        _env_string(env_map, "SOURCE"),
        table["source"]["location"],
    )
    timeout = _pick_first(
        overrides.timeout_seconds,
        _env_float(env_map, "TIMEOUT"),
        table["source"]["timeout_seconds"],
    )
    show_explanations = _pick_first(
        overrides.show_explanations,
        table["display"]["show_explanations"],
    )
    log_level = _pick_first(
        overrides.log_level,
        _env_string(env_map, "LOG_LEVEL"),
        table["logging"]["level"],
    )
    verbose = _pick_first(overrides.verbose, table["logging"]["verbose"])

    config = QuizConfig(
        source=_validate_source(source),
        timeout_seconds=_validate_timeout(timeout),
        show_explanations=_require_bool(
            show_explanations, "display.show_explanations"
        ),
        log_level=_validate_log_level(log_level),
        verbose=_require_bool(verbose, "logging.verbose"),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def default_table() -> MutableMapping[str, MutableMapping[str, Any]]:
    return {
        "source": {"location": "", "timeout_seconds": DEFAULT_TIMEOUT},
        "display": {"show_explanations": True},
        "logging": {"level": "INFO", "verbose": False},
    }


def default_config_path(layout: workspace_mod.WorkspaceLayout) -> Path:
    return layout.path_for("config") / CONFIG_FILENAME


def _read_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except IsADirectoryError as exc:
        raise QuizConfigError(f"Config path is a directory: {path}") from exc
    except OSError as exc:
        raise QuizConfigError(f"Cannot read config {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise QuizConfigError(f"Invalid TOML in {path}: {exc}") from exc


def _overlay(
    table: MutableMapping[str, Any],
    values: Mapping[str, Any],
    prefix: str = "",
) -> None:
    # Only keys present in the defaults are accepted; tables merge per key.
    for key, value in values.items():
        dotted = f"{prefix}{key}"
        if key not in table:
            raise QuizConfigError(f"Unknown configuration key '{dotted}'.")
        if isinstance(table[key], MutableMapping):
            if not isinstance(value, Mapping):
                raise QuizConfigError(
                    f"Expected a table for '{dotted}', "
                    f"found {type(value).__name__}."
                )
            _overlay(table[key], value, f"{dotted}.")
        else:
            table[key] = value


def _resolve_config_path(
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    layout: workspace_mod.WorkspaceLayout,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    from_env = (env_map.get(CONFIG_ENV) or "").strip()
    if from_env:
        return Path(from_env).expanduser()
    return default_config_path(layout)


def _validate_source(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise QuizConfigError("source.location must be a string.")
    return value.strip() or None


def _validate_timeout(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise QuizConfigError("source.timeout_seconds must be a number.")
    if value <= 0:
        raise QuizConfigError("source.timeout_seconds must be positive.")
    return float(value)


def _validate_log_level(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QuizConfigError("logging.level must be a non-empty string.")
    level = value.strip().upper()
    if level not in _LOG_LEVELS:
        raise QuizConfigError(
            "logging.level must be one of " + ", ".join(_LOG_LEVELS) + "."
        )
    return level


def _require_bool(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise QuizConfigError(f"{field} must be true or false.")
    return value


def _env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    return raw.strip() or None


def _env_float(env_map: Mapping[str, str], key: str) -> Optional[float]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise QuizConfigError(
            f"{ENV_PREFIX}{key} must be a number, got {raw!r}."
        ) from exc


def _pick_first(*candidates: Any) -> Any:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
