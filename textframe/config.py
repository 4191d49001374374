"""YAML-based configuration for index and logging settings.

Loads an optional ``--config textframe.yaml`` file and merges values using
the priority::

    CLI flags  >  TEXTFRAME_* environment  >  config file  >  hardcoded defaults

Example file::

    index:
      checkpoint_interval: 4096
      line_index: true
      cache: true
      cache_dir: ~/.cache/textframe
    logging:
      level: INFO
"""

from __future__ import annotations

import hashlib
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .index import DEFAULT_CHECKPOINT_INTERVAL

INDEX_SUFFIX = ".tfidx"


class ConfigError(ValueError):
    """Raised on configuration validation failures."""


# =====================================================================
# Dataclasses
# =====================================================================

_VALID_SECTIONS = frozenset({"index", "logging"})
_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


@dataclass
class IndexConfig:
    """Settings for building and caching position indices."""

    checkpoint_interval: int = DEFAULT_CHECKPOINT_INTERVAL
    line_index: bool = True
    cache: bool = True
    cache_dir: Path | None = None


@dataclass
class LoggingConfig:
    """Logging settings applied by the CLI."""

    level: str = "WARNING"


@dataclass
class TextFrameConfig:
    """Top-level parsed config."""

    index: IndexConfig = field(default_factory=IndexConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    config_dir: Path = field(default_factory=Path.cwd)


# =====================================================================
# Loading & Validation
# =====================================================================


def load_config(path: Path) -> TextFrameConfig:
    """Parse a YAML config file and return a ``TextFrameConfig``.

    Parameters
    ----------
    path : Path
        Path to the YAML configuration file.

    Returns
    -------
    TextFrameConfig
        Parsed configuration.

    Raises
    ------
    ConfigError
        If the file is not valid YAML or fails validation.
    FileNotFoundError
        If the config file does not exist.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file is not valid YAML: {e}") from e

    config_dir = path.parent.resolve()
    if raw is None:
        # Empty YAML file: defaults
        return TextFrameConfig(config_dir=config_dir)

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    config = _parse_raw(raw, config_dir=config_dir)
    _validate_config(config)
    return config


def _parse_raw(raw: dict[str, Any], config_dir: Path) -> TextFrameConfig:
    """Build a ``TextFrameConfig`` from a raw YAML dict."""
    for section in raw:
        if section not in _VALID_SECTIONS:
            raise ConfigError(
                f"Unknown section '{section}'. Valid sections: {sorted(_VALID_SECTIONS)}"
            )

    index = IndexConfig()
    if "index" in raw:
        d = raw["index"]
        if not isinstance(d, dict):
            raise ConfigError("Section 'index' must be a mapping")
        cache_dir = d.get("cache_dir")
        index = IndexConfig(
            checkpoint_interval=d.get("checkpoint_interval", DEFAULT_CHECKPOINT_INTERVAL),
            line_index=d.get("line_index", True),
            cache=d.get("cache", True),
            cache_dir=_resolve_dir(cache_dir, config_dir) if cache_dir else None,
        )

    logging_config = LoggingConfig()
    if "logging" in raw:
        d = raw["logging"]
        if not isinstance(d, dict):
            raise ConfigError("Section 'logging' must be a mapping")
        logging_config = LoggingConfig(level=str(d.get("level", "WARNING")).upper())

    return TextFrameConfig(index=index, logging=logging_config, config_dir=config_dir)


def _resolve_dir(value: object, base: Path) -> Path:
    """Expand ``~`` and make relative directories relative to *base*."""
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else base / path


def _validate_config(config: TextFrameConfig) -> None:
    """Validate a parsed config, raising ``ConfigError`` on problems."""
    interval = config.index.checkpoint_interval
    if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
        raise ConfigError(f"index.checkpoint_interval must be a positive integer, got {interval!r}")

    for name in ("line_index", "cache"):
        value = getattr(config.index, name)
        if not isinstance(value, bool):
            raise ConfigError(f"index.{name} must be a boolean, got {value!r}")

    if config.logging.level not in _VALID_LOG_LEVELS:
        raise ConfigError(
            f"Unknown logging.level '{config.logging.level}'. "
            f"Valid levels: {sorted(_VALID_LOG_LEVELS)}"
        )


# =====================================================================
# Environment overrides
# =====================================================================


def apply_env_overrides(
    config: TextFrameConfig, environ: Mapping[str, str] | None = None
) -> TextFrameConfig:
    """Override config values from ``TEXTFRAME_*`` environment variables.

    Recognised variables: ``TEXTFRAME_CHECKPOINT_INTERVAL``,
    ``TEXTFRAME_LINE_INDEX``, ``TEXTFRAME_CACHE``, ``TEXTFRAME_CACHE_DIR``
    and ``TEXTFRAME_LOG_LEVEL``. Mutates and returns *config*.
    """
    env = os.environ if environ is None else environ

    if value := env.get("TEXTFRAME_CHECKPOINT_INTERVAL"):
        try:
            config.index.checkpoint_interval = int(value)
        except ValueError:
            raise ConfigError(f"TEXTFRAME_CHECKPOINT_INTERVAL must be an integer, got {value!r}") from None
    if value := env.get("TEXTFRAME_LINE_INDEX"):
        config.index.line_index = _parse_bool("TEXTFRAME_LINE_INDEX", value)
    if value := env.get("TEXTFRAME_CACHE"):
        config.index.cache = _parse_bool("TEXTFRAME_CACHE", value)
    if value := env.get("TEXTFRAME_CACHE_DIR"):
        config.index.cache_dir = _resolve_dir(value, Path.cwd())
    if value := env.get("TEXTFRAME_LOG_LEVEL"):
        config.logging.level = value.upper()

    _validate_config(config)
    return config


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


# =====================================================================
# Resolution
# =====================================================================


def index_path_for(text_path: str | Path, config: TextFrameConfig) -> Path:
    """Return the side-car index path for a text file.

    Without ``cache_dir`` the index lives next to the text file as
    ``<name>.tfidx``. With ``cache_dir`` the file name also carries a short
    hash of the absolute text path so that equally named files in different
    directories do not collide.
    """
    text_path = Path(text_path)
    if config.index.cache_dir is None:
        return text_path.with_name(text_path.name + INDEX_SUFFIX)
    key = hashlib.sha1(str(text_path.resolve()).encode("utf-8")).hexdigest()[:12]
    return config.index.cache_dir / f"{text_path.name}.{key}{INDEX_SUFFIX}"
