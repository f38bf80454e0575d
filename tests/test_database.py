"""
Tests for engine construction from settings.
"""

import pytest

from config.settings import Settings
from database.session import Database


class TestDatabaseFromSettings:
    def test_sqlite_detection(self):
        assert Settings(_env_file=None, database_url="sqlite+aiosqlite:///./x.db").is_sqlite
        assert not Settings(_env_file=None, database_url="postgresql+asyncpg://u:p@db/tasks").is_sqlite

    @pytest.mark.asyncio
    async def test_server_databases_get_a_sized_pool(self):
        db = Database.from_settings(
            Settings(_env_file=None, database_url="postgresql+asyncpg://u:p@db/tasks")
        )
        try:
            assert db.engine.pool.size() == 10
        finally:
            await db.dispose()

