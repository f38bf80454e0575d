"""
Shared fixtures: a throwaway SQLite database per test and a TestClient
wired to it.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from config.settings import Settings
from database.models import User
from database.session import Database
from database.users import UserStore
from main import create_app


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
    )


@pytest.fixture()
def client(settings: Settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest_asyncio.fixture()
async def db(settings: Settings):
    database = Database.from_settings(settings)
    await database.create_all()
    yield database
    await database.dispose()


@pytest_asyncio.fixture()
async def session(db: Database):
    async with db.session_factory() as db_session:
        yield db_session


@pytest_asyncio.fixture()
async def alice(session) -> User:
    return await UserStore(session).create_user("alice@x.com", "Alice", "not-a-real-hash")


@pytest_asyncio.fixture()
async def bob(session) -> User:
    return await UserStore(session).create_user("bob@x.com", "Bob", "not-a-real-hash")
