from pathlib import Path

import pytest
from pydantic import ValidationError

from ..test_fixtures.settings import make_test_settings

POSTGRES = {
    "POSTGRES_USERNAME": "cattery",
    "POSTGRES_PASSWORD": "meow",
    "POSTGRES_HOST": "db",
    "POSTGRES_DB": "cattery",
}


class TestDatabaseUrl:
    def test_defaults_to_sqlite(self):
        settings = make_test_settings(SQLITE_PATH=Path("data/cats.db"))
        assert not settings.uses_postgres
        assert settings.DATABASE_URL == "sqlite+aiosqlite:///data/cats.db"

    def test_postgres_when_configured(self):
        settings = make_test_settings(TESTING=False, **POSTGRES)
        assert settings.uses_postgres
        assert settings.DATABASE_URL == "postgresql+asyncpg://cattery:meow@db:5432/cattery"

    def test_incomplete_postgres_falls_back_to_sqlite(self):
        settings = make_test_settings(POSTGRES_HOST="db")
        assert settings.DATABASE_URL.startswith("sqlite+aiosqlite:///")

    def test_testing_uses_test_database(self):
        settings = make_test_settings(TESTING=True, TEST_POSTGRES_DB="cattery_test", **POSTGRES)
        assert settings.DATABASE_URL.endswith("/cattery_test")


class TestNormalization:
    def test_log_level_case_insensitive(self):
        assert make_test_settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_unpermitted_params_case_insensitive(self):
        assert make_test_settings(UNPERMITTED_PARAMS="RAISE").UNPERMITTED_PARAMS == "raise"

    def test_unknown_unpermitted_mode_rejected(self):
        with pytest.raises(ValidationError):
            make_test_settings(UNPERMITTED_PARAMS="ignore")

    def test_reads_environment(self, monkeypatch):
        from cattery.config import Settings

        monkeypatch.setenv("UNPERMITTED_PARAMS", "raise")
        monkeypatch.setenv("API_PORT", "9000")
        settings = Settings(_env_file=None)
        assert settings.UNPERMITTED_PARAMS == "raise"
        assert settings.API_PORT == 9000
