"""
Tests for settings derived properties.
"""

import pytest

from rules_service.core.config import Settings


class TestDatabaseUrl:
    def test_postgres_url_uses_asyncpg(self):
        settings = Settings(LOG_LEVEL="INFO", DATABASE_URL="postgres://u:p@db/rules")

        assert settings.database_url == "postgresql+asyncpg://u:p@db/rules"

    def test_sqlite_url_is_unchanged(self):
        settings = Settings(LOG_LEVEL="INFO", DATABASE_URL="sqlite+aiosqlite:///:memory:")

        assert settings.database_url == "sqlite+aiosqlite:///:memory:"

    def test_missing_url_raises(self):
        settings = Settings(LOG_LEVEL="INFO", DATABASE_URL=None)

        with pytest.raises(ValueError):
            settings.database_url


class TestEnvironment:
    @pytest.mark.parametrize(
        "environment, expected",
        [("local", True), ("LOCAL_DEV", True), ("prod", False), (None, False)],
    )
    def test_is_local(self, environment, expected):
        settings = Settings(LOG_LEVEL="INFO", ENVIRONMENT=environment)

        assert settings.is_local is expected
