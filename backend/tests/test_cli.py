"""
Tests for the command line interface.
"""
import json
import socket

import pytest
from typer.testing import CliRunner

from sqlite_eda import cli
from sqlite_eda.core.config import reload_settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_env_database(monkeypatch):
    monkeypatch.delenv("DATABASE_PATH", raising=False)
    reload_settings()
    yield
    reload_settings()


@pytest.mark.integration
def test_profile_command(db_path):
    result = runner.invoke(cli.app, ["profile", "orders", "--database", str(db_path)])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["tableName"] == "orders"
    assert data["rowCount"] == 100
    assert data["columnCount"] == 4


@pytest.mark.integration
def test_profile_command_with_recommendations(db_path):
    result = runner.invoke(cli.app, ["profile", "orders", "-d", str(db_path), "--recommend"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["profile"]["tableName"] == "orders"
    assert len(data["recommendations"]) == 9


@pytest.mark.integration
def test_profile_command_sample_size(db_path):
    result = runner.invoke(cli.app, ["profile", "orders", "-d", str(db_path), "--sample-size", "10"])

    assert result.exit_code == 0
    columns = json.loads(result.stdout)["columns"]
    assert columns[0]["stats"]["totalCount"] == 10


@pytest.mark.integration
def test_profile_missing_table(db_path):
    result = runner.invoke(cli.app, ["profile", "nowhere", "-d", str(db_path)])

    assert result.exit_code == 1


@pytest.mark.integration
def test_stats_command(db_path):
    result = runner.invoke(cli.app, ["stats", "numbers", "n", "--database", str(db_path)])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["kind"] == "numeric"
    assert data["mean"] == 5.5


@pytest.mark.integration
def test_stats_command_reports_failure(db_path):
    result = runner.invoke(cli.app, ["stats", "empty_table", "name", "-d", str(db_path)])

    assert result.exit_code == 1
    assert json.loads(result.stdout) == {"error": "No data available"}


@pytest.mark.integration
def test_database_is_required():
    result = runner.invoke(cli.app, ["profile", "orders"])

    assert result.exit_code == 1


@pytest.mark.integration
def test_missing_database_file(tmp_path):
    result = runner.invoke(cli.app, ["stats", "t", "c", "-d", str(tmp_path / "missing.db")])

    assert result.exit_code == 1


@pytest.mark.integration
def test_serve_starts_uvicorn(db_path, monkeypatch):
    calls = {}

    def fake_run(app, host, port, **kwargs):
        calls.update(app=app, host=host, port=port)

    monkeypatch.setattr(cli.uvicorn, "run", fake_run)
    monkeypatch.setattr(cli, "find_available_port", lambda start, host: start + 1)

    result = runner.invoke(cli.app, ["serve", "-d", str(db_path), "--port", "4000"])

    assert result.exit_code == 0
    assert calls["port"] == 4001
    assert calls["host"] == "127.0.0.1"
    assert calls["app"].state.database is not None
    calls["app"].state.database.close()


@pytest.mark.integration
def test_serve_rejects_unsupported_type(db_path):
    result = runner.invoke(cli.app, ["serve", "-d", str(db_path), "--type", "mysql"])

    assert result.exit_code == 1


@pytest.mark.unit
def test_find_available_port_skips_busy_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen(1)
        busy_port = busy.getsockname()[1]

        port = cli.find_available_port(busy_port, "127.0.0.1")

    assert port > busy_port
