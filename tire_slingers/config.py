"""
Application configuration for the Tire Slingers recommendation engine.

Layers, later ones winning:
  1. ``config/default.toml``   committed defaults
  2. ``config/local.toml``     optional, next to the chosen file, gitignored
  3. ``.env``                  loaded into the process environment (no override)
  4. ``TIRE_SLINGERS_*``       environment variables, see ``ENV_OVERRIDES``

``load_config()`` returns one frozen ``AppConfig``; the CLI and
``RecommendStage`` take that object and never read the environment
themselves.

This file holds deployment settings only. Per-yard tuning (windows,
thresholds, multipliers) is data: it lives in ``inventory_settings`` and
falls back to ``DEFAULT_INVENTORY_SETTINGS``. The one engine value here,
``default_capacity_total_tires``, applies to yards without a ceiling.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DatabaseConfig(BaseModel):
    """Where the SQLite file lives and how connections are opened."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/tire_slingers.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000

    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("db_path must not be empty.")
        return v

    @field_validator("busy_timeout_ms")
    @classmethod
    def validate_busy_timeout(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"busy_timeout_ms must be >= 0, got {v}.")
        return v


class DataConfig(BaseModel):
    """Report output location."""

    model_config = ConfigDict(frozen=True)

    report_output_dir: str = "data/outputs/recommendations"


class EngineConfig(BaseModel):
    """Facility-wide fallback for yards with no capacity recorded."""

    model_config = ConfigDict(frozen=True)

    default_capacity_total_tires: int = 200

    @field_validator("default_capacity_total_tires")
    @classmethod
    def validate_capacity(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"default_capacity_total_tires must be >= 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Arguments for ``configure_logging()``. An empty ``log_file`` means stdout only."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/tire_slingers.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        if v.upper() not in _LOG_LEVELS:
            raise ValueError(f"Log level must be one of {list(_LOG_LEVELS)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Every setting the CLI and pipeline need, validated and frozen."""

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    data: DataConfig = DataConfig()
    engine: EngineConfig = EngineConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "AppConfig":
        """Build from a merged TOML dict; ``[project].debug`` is accepted too."""
        debug = raw.get("debug", raw.get("project", {}).get("debug", False))
        return cls(
            database=DatabaseConfig(**raw.get("database", {})),
            data=DataConfig(**raw.get("data", {})),
            engine=EngineConfig(**raw.get("engine", {})),
            logging=LoggingConfig(**raw.get("logging", {})),
            debug=debug,
        )


# ── Loader ────────────────────────────────────────────────────────────────────

def _truthy(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# env var -> (section or None for top level, key, converter)
ENV_OVERRIDES: dict[str, tuple[Optional[str], str, Callable[[str], Any]]] = {
    "TIRE_SLINGERS_DB_PATH":          ("database", "db_path", str),
    "TIRE_SLINGERS_LOG_LEVEL":        ("logging", "level", str),
    "TIRE_SLINGERS_DEFAULT_CAPACITY": ("engine", "default_capacity_total_tires", int),
    "TIRE_SLINGERS_DEBUG":            (None, "debug", _truthy),
}


def find_project_root(start: Optional[Path] = None) -> Path:
    """Nearest ancestor of ``start`` (default: this package) holding pyproject.toml."""
    here = (start or Path(__file__)).resolve()
    for candidate in [here, *here.parents][:6]:
        if (candidate / "pyproject.toml").exists():
            return candidate
    return Path(__file__).resolve().parent.parent


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, val in override.items():
        if isinstance(val, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], val)
        else:
            merged[key] = val
    return merged


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    for var, (section, key, convert) in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if not value:
            continue
        target = raw if section is None else raw.setdefault(section, {})
        target[key] = convert(value)
    return raw


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Read, merge and validate configuration.

    Args:
        config_path: TOML file to start from; defaults to
            ``<project root>/config/default.toml``.

    Raises:
        FileNotFoundError: ``config_path`` does not exist.
        pydantic.ValidationError: A merged value is out of range.
        ValueError: An integer environment override is not a number.
    """
    root = find_project_root()
    load_dotenv(dotenv_path=root / ".env", override=False)

    path = Path(config_path) if config_path else root / "config" / "default.toml"
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}\nCreate config/default.toml or pass --config."
        )

    raw = _read_toml(path)
    local = path.parent / "local.toml"
    if local.exists():
        raw = _deep_merge(raw, _read_toml(local))

    return AppConfig.from_raw(_apply_env_overrides(raw))
