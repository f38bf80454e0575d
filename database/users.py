"""
Credential store: user rows keyed by id and (case-insensitive) email.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database.helpers import storage_errors, to_uuid
from database.models import User
from utils.errors import DuplicateKeyError

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserStore:
    def __init__(self, session: AsyncSession):
        self._session = session

    @storage_errors
    async def create_user(self, email: str, name: str, password_hash: str) -> User:
        """
        Insert a new user.

        Uniqueness is left to the ``ix_users_email_lower`` index so two
        concurrent signups for the same address can't both succeed.
        """
        user = User(
            user_id=uuid.uuid4(),
            email=normalize_email(email),
            name=name,
            password_hash=password_hash,
        )
        self._session.add(user)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            logger.info("Signup rejected, email already registered")
            raise DuplicateKeyError(
                "User already exists with this email",
                errors=[{"field": "email", "message": "Email already registered"}],
            ) from exc

        await self._session.commit()
        logger.info("Created user %s", user.user_id)
        return user

    @storage_errors
    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self._session.execute(
            select(User).where(func.lower(User.email) == normalize_email(email))
        )
        return result.scalar_one_or_none()

    @storage_errors
    async def find_by_id(self, user_id: str | uuid.UUID) -> Optional[User]:
        uid = to_uuid(user_id)
        if uid is None:
            return None
        return await self._session.get(User, uid)
