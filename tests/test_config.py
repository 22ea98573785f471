"""Tests for settings parsing."""
from app.core.config import Settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        for var in ("STORAGE_BACKEND", "API_PREFIX", "DEFAULT_LIST_LIMIT", "CORS_ORIGINS"):
            monkeypatch.delenv(var, raising=False)
        settings = Settings(_env_file=None)

        assert settings.storage_backend == "memory"
        assert settings.uses_database is False
        assert settings.route_prefix == ""
        assert settings.default_list_limit == 50
        assert settings.cors_origins_list == ["*"]

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "database")
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@h/db")
        monkeypatch.setenv("API_PREFIX", "/api/")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.com, http://b.com")
        settings = Settings(_env_file=None)

        assert settings.uses_database is True
        assert settings.route_prefix == "/api"
        assert settings.cors_origins_list == ["http://a.com", "http://b.com"]
