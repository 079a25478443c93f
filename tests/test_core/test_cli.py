"""CLI smoke tests using typer's CliRunner against a temporary database."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

import pytest
from typer.testing import CliRunner

from tire_slingers.cli import app
from tire_slingers.db.connection import get_connection
from tire_slingers.db.repositories.inventory_repo import TireRepository
from tire_slingers.db.repositories.organization_repo import OrganizationRepository
from tire_slingers.db.repositories.run_repo import RunMetadataRepository
from tire_slingers.models.inventory import Organization, TireRow
from tire_slingers.recommendations.engine import get_recommendations, needs_refresh

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_root_logger(monkeypatch):
    for var in ("TIRE_SLINGERS_DB_PATH", "TIRE_SLINGERS_LOG_LEVEL",
                "TIRE_SLINGERS_DEFAULT_CAPACITY", "TIRE_SLINGERS_DEBUG"):
        monkeypatch.delenv(var, raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def cli_config(tmp_path):
    """A TOML config pointing every path under tmp_path."""
    path = tmp_path / "cli.toml"
    path.write_text(
        f"""
[database]
db_path = "{(tmp_path / 'db' / 'cli.db').as_posix()}"
wal_mode = false

[data]
report_output_dir = "{(tmp_path / 'reports').as_posix()}"

[logging]
level = "WARNING"
log_file = "{(tmp_path / 'logs' / 'cli.log').as_posix()}"
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def initialized(cli_config, tmp_path):
    """Run init-db and seed one stale yard holding two idle tires."""
    result = runner.invoke(app, ["init-db", "--config", str(cli_config)])
    assert result.exit_code == 0, result.output

    db_path = str(tmp_path / "db" / "cli.db")
    with get_connection(db_path) as conn:
        OrganizationRepository(conn).insert(Organization(org_id="yard-1", name="Yard One"))
        TireRepository(conn).insert(
            TireRow(
                org_id="yard-1",
                size_key="205-55-16",
                quantity=2,
                created_at=datetime.now(tz=timezone.utc),
            )
        )
    return db_path


class TestValidateConfig:
    def test_prints_values(self, cli_config):
        result = runner.invoke(app, ["validate-config", "--config", str(cli_config)])
        assert result.exit_code == 0
        assert "Default capacity: 200" in result.output
        assert "[OK] Config valid." in result.output

    def test_missing_file_exits_1(self, tmp_path):
        result = runner.invoke(app, ["validate-config", "--config", str(tmp_path / "nope.toml")])
        assert result.exit_code == 1


class TestInitDb:
    def test_creates_database(self, cli_config, tmp_path):
        result = runner.invoke(app, ["init-db", "--config", str(cli_config)])
        assert result.exit_code == 0
        assert "[OK] Database ready." in result.output
        assert (tmp_path / "db" / "cli.db").exists()


class TestRecommend:
    def test_dry_run_writes_nothing(self, cli_config, initialized):
        result = runner.invoke(
            app, ["recommend", "--org", "yard-1", "--dry-run", "--config", str(cli_config)]
        )
        assert result.exit_code == 0, result.output
        assert "[DRY RUN]" in result.output
        assert "205/55R16" in result.output

        with get_connection(initialized) as conn:
            assert get_recommendations(conn, "yard-1") == []

    def test_refresh_stores_and_clears_flag(self, cli_config, initialized):
        result = runner.invoke(app, ["recommend", "--org", "yard-1", "--config", str(cli_config)])
        assert result.exit_code == 0, result.output
        assert "Recommendations written: 1" in result.output

        with get_connection(initialized) as conn:
            (rec,) = get_recommendations(conn, "yard-1")
            assert rec.action == "purge"
            assert needs_refresh(conn, "yard-1") is False

    def test_refresh_stale(self, cli_config, initialized):
        result = runner.invoke(app, ["refresh-stale", "--config", str(cli_config)])
        assert result.exit_code == 0, result.output
        assert "yard-1" in result.output

        again = runner.invoke(app, ["refresh-stale", "--config", str(cli_config)])
        assert "No stale organizations" in again.output


class TestShowAndExport:
    def test_show_warns_when_stale(self, cli_config, initialized):
        result = runner.invoke(
            app, ["show-recommendations", "--org", "yard-1", "--config", str(cli_config)]
        )
        assert result.exit_code == 0
        assert "[WARN]" in result.output
        assert "No stored recommendations" in result.output

    def test_export_after_refresh(self, cli_config, initialized, tmp_path):
        runner.invoke(app, ["recommend", "--org", "yard-1", "--config", str(cli_config)])
        out_dir = tmp_path / "exports"
        result = runner.invoke(
            app,
            ["export-recommendations", "--org", "yard-1",
             "--out-dir", str(out_dir), "--config", str(cli_config)],
        )
        assert result.exit_code == 0, result.output

        (json_path,) = out_dir.glob("stock_yard-1_*.json")
        payload = json.loads(json_path.read_text())
        assert payload["summary"]["purge"] == 1
        assert len(list(out_dir.glob("stock_yard-1_*.csv"))) == 1

    def test_show_json_after_refresh(self, cli_config, initialized):
        runner.invoke(app, ["recommend", "--org", "yard-1", "--config", str(cli_config)])
        result = runner.invoke(
            app,
            ["show-recommendations", "--org", "yard-1", "--json", "--config", str(cli_config)],
        )
        assert result.exit_code == 0, result.output
        (row,) = json.loads(result.output)
        assert row["size_key"] == "205-55-16"
        assert row["action"] == "purge"


class TestListRuns:
    def test_empty_audit_table(self, cli_config, initialized):
        result = runner.invoke(app, ["list-runs", "--config", str(cli_config)])
        assert result.exit_code == 0, result.output
        assert "No runs recorded." in result.output

    def test_lists_refresh_run(self, cli_config, initialized):
        runner.invoke(app, ["recommend", "--org", "yard-1", "--config", str(cli_config)])
        result = runner.invoke(app, ["list-runs", "--config", str(cli_config)])
        assert result.exit_code == 0, result.output
        assert "recommend" in result.output
        assert "success" in result.output
        assert "yard-1" in result.output

    def test_slug_detail(self, cli_config, initialized):
        runner.invoke(app, ["recommend", "--org", "yard-1", "--config", str(cli_config)])
        with get_connection(initialized) as conn:
            (run,) = RunMetadataRepository(conn).get_recent_runs(limit=1)

        result = runner.invoke(
            app, ["list-runs", "--slug", run.run_slug, "--config", str(cli_config)]
        )
        assert result.exit_code == 0, result.output
        assert run.run_slug in result.output
        assert "Rows:" in result.output

    def test_unknown_slug_exits_1(self, cli_config, initialized):
        result = runner.invoke(
            app, ["list-runs", "--slug", "no-such-run", "--config", str(cli_config)]
        )
        assert result.exit_code == 1
