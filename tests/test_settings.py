"""
Tests for TraveloguesConfig environment overrides
"""

from pathlib import Path

from config.settings import TraveloguesConfig


class TestTraveloguesConfig:

    def test_defaults(self, monkeypatch):
        for name in ("TRAVELOGUES_DATABASE_PATH", "TRAVELOGUES_PORT", "PORT", "TRAVELOGUES_DEFAULT_PAGE_SIZE"):
            monkeypatch.delenv(name, raising=False)
        settings = TraveloguesConfig()
        assert settings.database_path == Path("data/travelogues.db")
        assert settings.port == 8000
        assert settings.default_page_size == 50

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TRAVELOGUES_DATABASE_PATH", str(tmp_path / "other.db"))
        monkeypatch.setenv("TRAVELOGUES_PORT", "9000")
        monkeypatch.setenv("TRAVELOGUES_LOG_LEVEL", "debug")
        monkeypatch.setenv("TRAVELOGUES_CORS_ORIGINS", "https://a.example, https://b.example,")
        settings = TraveloguesConfig()
        assert settings.database_path == tmp_path / "other.db"
        assert settings.port == 9000
        assert settings.log_level == "DEBUG"
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert not settings.database_exists

    def test_generic_port_variable(self, monkeypatch):
        monkeypatch.delenv("TRAVELOGUES_PORT", raising=False)
        monkeypatch.setenv("PORT", "8080")
        assert TraveloguesConfig().port == 8080

    def test_unknown_log_level_keeps_default(self, monkeypatch):
        monkeypatch.setenv("TRAVELOGUES_LOG_LEVEL", "verbose")
        assert TraveloguesConfig().log_level == "INFO"

    def test_known_log_level_is_normalized(self, monkeypatch):
        monkeypatch.setenv("TRAVELOGUES_LOG_LEVEL", "warning")
        assert TraveloguesConfig().log_level == "WARNING"

    def test_invalid_numbers_keep_defaults(self, monkeypatch):
        monkeypatch.setenv("TRAVELOGUES_PORT", "eighty")
        monkeypatch.setenv("TRAVELOGUES_DEFAULT_PAGE_SIZE", "many")
        settings = TraveloguesConfig()
        assert settings.port == 8000
        assert settings.default_page_size == 50
