"""Configuration loader for mobiledoc-md runs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from dotenv import load_dotenv

from .cards import RenderOptions
from .core import config as core_config

CONFIG_ENV = "MOBILEDOC_MD_CONFIG"
ENV_PREFIX = "MOBILEDOC_MD_"

_DEFAULT_LOG_LEVEL = "WARNING"
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class ConverterConfig:
    """Fully resolved configuration for a conversion run."""

    options: RenderOptions
    log_level: str
    log_file: Optional[Path]


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    use_figure: Optional[bool] = None
    escape_markdown: Optional[bool] = None
    log_level: Optional[str] = None
    log_file: Optional[Path] = None


@dataclass(frozen=True)
class LoadResult:
    config: ConverterConfig
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults.

    When ``env`` is omitted, a ``.env`` file in the working directory is
    loaded into the process environment first (existing variables win).
    """

    overrides = overrides or ConfigOverrides()
    if env is None:
        load_dotenv()
        env_map: Mapping[str, str] = os.environ
    else:
        env_map = env

    requested_path = _resolve_config_path(config_path, env_map)
    table = _default_table()
    if requested_path is not None:
        try:
            parsed = core_config.load_toml(requested_path)
            core_config.merge_defaults(table, parsed)
        except core_config.TomlConfigError as exc:
            raise ConfigError(str(exc)) from exc

    use_figure = _pick_first(
        overrides.use_figure,
        _parse_env_bool(env_map, "USE_FIGURE"),
        _file_bool(table["render"]["use_figure"], "render.use_figure"),
    )
    escape_markdown = _pick_first(
        overrides.escape_markdown,
        _parse_env_bool(env_map, "ESCAPE_MARKDOWN"),
        _file_bool(table["render"]["escape_markdown"], "render.escape_markdown"),
    )
    log_level = _resolve_log_level(
        _pick_first(
            overrides.log_level,
            _parse_env_string(env_map, "LOG_LEVEL"),
            table["logging"]["level"],
        )
    )
    log_file = _pick_first(
        overrides.log_file,
        _coerce_optional_path(_parse_env_string(env_map, "LOG_FILE")),
        _coerce_optional_path(table["logging"]["file"]),
    )

    config = ConverterConfig(
        options=RenderOptions(
            use_figure=bool(use_figure),
            escape_markdown=bool(escape_markdown),
        ),
        log_level=log_level,
        log_file=log_file,
    )
    return LoadResult(config=config, config_path=requested_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "render": {"use_figure": False, "escape_markdown": False},
        "logging": {"level": _DEFAULT_LOG_LEVEL, "file": ""},
    }


def _resolve_config_path(
    config_path: Optional[Path], env_map: Mapping[str, str]
) -> Optional[Path]:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = env_map.get(CONFIG_ENV, "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return None


def _file_bool(value: object, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ConfigError(f"{key} must be a boolean.")


def _resolve_log_level(candidate: object) -> str:
    if not isinstance(candidate, str):
        raise ConfigError("logging.level must be a string.")
    level = candidate.strip()
    if not level:
        raise ConfigError("logging.level must be a non-empty string.")
    return level.upper()


def _coerce_optional_path(value: object) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        return Path(raw).expanduser()
    raise ConfigError("logging.file must be a string when provided.")


def _parse_env_bool(env_map: Mapping[str, str], key: str) -> Optional[bool]:
    raw = _parse_env_string(env_map, key)
    if raw is None:
        return None
    normalized = raw.lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(
        f"{ENV_PREFIX}{key} must be a boolean (1/0, true/false, yes/no, on/off)."
    )


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


__all__ = [
    "CONFIG_ENV",
    "ENV_PREFIX",
    "ConfigError",
    "ConfigOverrides",
    "ConverterConfig",
    "LoadResult",
    "load_config",
]
