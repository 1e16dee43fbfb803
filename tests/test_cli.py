"""
Tests for the Travelogues command-line interface
"""

import pytest
from click.testing import CliRunner

from cli import cli
from tests.conftest import SAMPLE_DATASET_PATH


@pytest.fixture
def runner():
    return CliRunner()


class TestDatabaseCommands:

    def test_init_db_creates_schema(self, runner, tmp_path):
        db_path = tmp_path / "nested" / "catalog.db"
        result = runner.invoke(cli, ["init-db", "--database", str(db_path)])
        assert result.exit_code == 0, result.output
        assert db_path.exists()
        assert "Schema ready" in result.output

    def test_load_json_then_stats(self, runner, tmp_path):
        db_path = tmp_path / "catalog.db"
        result = runner.invoke(cli, ["load-json", str(SAMPLE_DATASET_PATH), "--database", str(db_path)])
        assert result.exit_code == 0, result.output
        assert "publications: 7" in result.output
        assert "contributions: 8" in result.output

        result = runner.invoke(cli, ["stats", "--database", str(db_path)])
        assert result.exit_code == 0, result.output
        assert "travelers: 6" in result.output

    def test_load_json_twice_replaces_rows(self, runner, tmp_path):
        db_path = tmp_path / "catalog.db"
        args = ["load-json", str(SAMPLE_DATASET_PATH), "--database", str(db_path)]
        assert runner.invoke(cli, args).exit_code == 0
        assert runner.invoke(cli, args).exit_code == 0

        result = runner.invoke(cli, ["stats", "--database", str(db_path)])
        assert "publications: 7" in result.output

    def test_load_json_rejects_invalid_json(self, runner, tmp_path):
        dataset_file = tmp_path / "broken.json"
        dataset_file.write_text("{not json", encoding="utf-8")
        result = runner.invoke(cli, ["load-json", str(dataset_file), "--database", str(tmp_path / "catalog.db")])
        assert result.exit_code == 1

    def test_load_json_rejects_incomplete_records(self, runner, tmp_path):
        dataset_file = tmp_path / "incomplete.json"
        dataset_file.write_text('{"publications": [{"id": 1}]}', encoding="utf-8")
        result = runner.invoke(cli, ["load-json", str(dataset_file), "--database", str(tmp_path / "catalog.db")])
        assert result.exit_code == 1

    def test_stats_missing_database(self, runner, tmp_path):
        result = runner.invoke(cli, ["stats", "--database", str(tmp_path / "missing.db")])
        assert result.exit_code == 1


class TestInfo:

    def test_info_shows_settings(self, runner, monkeypatch, tmp_path):
        monkeypatch.setenv("TRAVELOGUES_DATABASE_PATH", str(tmp_path / "catalog.db"))
        monkeypatch.setenv("TRAVELOGUES_PORT", "9100")
        result = runner.invoke(cli, ["info"])
        assert result.exit_code == 0, result.output
        assert "catalog.db (missing)" in result.output
        assert ":9100" in result.output
