"""
Tests for tire_slingers/config.py.

What we test
------------
  - The committed config/default.toml loads and validates.
  - Explicit TOML files override defaults; config/local.toml beside it is merged.
  - TIRE_SLINGERS_* environment variables override TOML values.
  - Invalid values raise pydantic.ValidationError; missing files raise
    FileNotFoundError.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tire_slingers.config import (
    AppConfig,
    DatabaseConfig,
    EngineConfig,
    LoggingConfig,
    find_project_root,
    load_config,
)

_ENV_VARS = (
    "TIRE_SLINGERS_DB_PATH",
    "TIRE_SLINGERS_LOG_LEVEL",
    "TIRE_SLINGERS_DEFAULT_CAPACITY",
    "TIRE_SLINGERS_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def _write_toml(path, text: str):
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaults:
    def test_model_defaults(self):
        config = AppConfig()
        assert config.engine.default_capacity_total_tires == 200
        assert config.database.wal_mode is True
        assert config.debug is False

    def test_committed_default_toml_loads(self):
        config = load_config()
        assert config.database.db_path == "data/db/tire_slingers.db"
        assert config.engine.default_capacity_total_tires == 200
        assert config.logging.level == "INFO"


class TestTomlLoading:
    def test_explicit_file(self, tmp_path):
        path = _write_toml(
            tmp_path / "custom.toml",
            """
[project]
debug = true

[database]
db_path = "x/y.db"

[engine]
default_capacity_total_tires = 350
""",
        )
        config = load_config(path)
        assert config.database.db_path == "x/y.db"
        assert config.engine.default_capacity_total_tires == 350
        assert config.debug is True
        # Sections not in the file keep model defaults.
        assert config.data.report_output_dir == "data/outputs/recommendations"

    def test_local_toml_merged(self, tmp_path):
        path = _write_toml(tmp_path / "default.toml", '[database]\ndb_path = "base.db"\nwal_mode = false\n')
        _write_toml(tmp_path / "local.toml", '[database]\ndb_path = "local.db"\n')
        config = load_config(path)
        assert config.database.db_path == "local.db"
        assert config.database.wal_mode is False

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")


class TestEnvOverrides:
    def test_env_beats_toml(self, tmp_path, monkeypatch):
        path = _write_toml(tmp_path / "c.toml", '[database]\ndb_path = "toml.db"\n')
        monkeypatch.setenv("TIRE_SLINGERS_DB_PATH", "env.db")
        monkeypatch.setenv("TIRE_SLINGERS_LOG_LEVEL", "debug")
        monkeypatch.setenv("TIRE_SLINGERS_DEFAULT_CAPACITY", "75")
        monkeypatch.setenv("TIRE_SLINGERS_DEBUG", "yes")

        config = load_config(path)
        assert config.database.db_path == "env.db"
        assert config.logging.level == "DEBUG"
        assert config.engine.default_capacity_total_tires == 75
        assert config.debug is True


class TestValidation:
    def test_bad_log_level(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")

    def test_zero_capacity_rejected(self):
        with pytest.raises(ValidationError):
            EngineConfig(default_capacity_total_tires=0)

    def test_invalid_toml_value_raises(self, tmp_path):
        path = _write_toml(tmp_path / "c.toml", "[engine]\ndefault_capacity_total_tires = -5\n")
        with pytest.raises(ValidationError):
            load_config(path)

    def test_frozen(self):
        config = AppConfig()
        with pytest.raises(ValidationError):
            config.debug = True  # type: ignore[misc]

    def test_empty_db_path_rejected(self):
        with pytest.raises(ValidationError):
            DatabaseConfig(db_path="  ")

    def test_negative_busy_timeout_rejected(self):
        with pytest.raises(ValidationError):
            DatabaseConfig(busy_timeout_ms=-1)

    def test_non_numeric_capacity_env(self, tmp_path, monkeypatch):
        path = _write_toml(tmp_path / "c.toml", "")
        monkeypatch.setenv("TIRE_SLINGERS_DEFAULT_CAPACITY", "lots")
        with pytest.raises(ValueError):
            load_config(path)


class TestFromRaw:
    def test_top_level_debug_wins(self):
        config = AppConfig.from_raw({"project": {"debug": False}, "debug": True})
        assert config.debug is True

    def test_empty_dict_gives_defaults(self):
        assert AppConfig.from_raw({}) == AppConfig()


class TestProjectRoot:
    def test_finds_pyproject(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == tmp_path.resolve()

    def test_repo_root_holds_default_toml(self):
        assert (find_project_root() / "config" / "default.toml").exists()
