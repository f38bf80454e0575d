"""
Shared helpers for the store classes.
"""

from __future__ import annotations

import functools
import logging
import uuid
from typing import Any, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from utils.errors import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def to_uuid(value: str | uuid.UUID) -> Optional[uuid.UUID]:
    """Parse an id; anything that isn't a UUID yields ``None``."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def storage_errors(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Re-raise driver/ORM failures from a store method as ``StorageError``."""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.exception("Storage failure in %s", func.__qualname__)
            raise StorageError() from exc

    return wrapper
