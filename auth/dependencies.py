"""
FastAPI dependencies for authentication.

Provides ``db_session``, the store/service accessors and
``get_current_user``, which every protected route depends on.
"""

from __future__ import annotations

from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth.gate import AuthGate
from auth.jwt import TokenService
from config.settings import Settings
from database.models import User
from database.tasks import TaskStore
from database.users import UserStore


async def db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session from the app's ``Database`` handle."""
    async with request.app.state.db.session() as session:
        yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_user_store(session: AsyncSession = Depends(db_session)) -> UserStore:
    return UserStore(session)


def get_task_store(session: AsyncSession = Depends(db_session)) -> TaskStore:
    return TaskStore(session)


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
    users: UserStore = Depends(get_user_store),
) -> User:
    """
    Resolve the Bearer token to a live ``User`` or fail with
    ``UnauthenticatedError`` (401).
    """
    return await AuthGate(tokens, users).authenticate(authorization)
