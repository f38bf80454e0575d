"""
Task store: every query is scoped to the owning user.

A task that exists but belongs to someone else is reported exactly like a
task that doesn't exist (``NotFoundError``), so callers learn nothing about
other users' data.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.helpers import storage_errors, to_uuid
from database.models import Task
from utils.errors import InvalidArgumentError, NotFoundError
from utils.schemas import (
    TaskCreate,
    TaskPriority,
    TaskSort,
    TaskStats,
    TaskStatus,
    TaskUpdate,
)

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w+", re.UNICODE)

TITLE_WEIGHT = 2
DESCRIPTION_WEIGHT = 1


def search_terms(query: Optional[str]) -> List[str]:
    """Lower-cased, de-duplicated words of a search query."""
    seen: List[str] = []
    for word in _WORD_RE.findall((query or "").lower()):
        if word not in seen:
            seen.append(word)
    return seen


def relevance(task: Task, terms: Sequence[str]) -> int:
    title = task.title.lower()
    description = (task.description or "").lower()
    return sum(
        title.count(term) * TITLE_WEIGHT + description.count(term) * DESCRIPTION_WEIGHT
        for term in terms
    )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _order_by(sort: TaskSort):
    if sort == TaskSort.OLDEST:
        return (Task.created_at.asc(),)
    if sort == TaskSort.TITLE:
        return (Task.title.asc(), Task.created_at.desc())
    if sort == TaskSort.DUE_DATE:
        # Tasks without a due date go last.
        return (Task.due_date.is_(None), Task.due_date.asc(), Task.created_at.desc())
    return (Task.created_at.desc(),)


class TaskStore:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_owned(self, user_id: str | uuid.UUID, task_id: str | uuid.UUID) -> Task:
        uid, tid = to_uuid(user_id), to_uuid(task_id)
        if uid is None or tid is None:
            raise NotFoundError("Task not found")
        result = await self._session.execute(
            select(Task).where(Task.task_id == tid, Task.user_id == uid)
        )
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFoundError("Task not found")
        return task

    @storage_errors
    async def list(
        self,
        user_id: str | uuid.UUID,
        *,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        sort: TaskSort = TaskSort.NEWEST,
    ) -> List[Task]:
        stmt = select(Task).where(Task.user_id == to_uuid(user_id))
        if status is not None:
            stmt = stmt.where(Task.status == TaskStatus(status).value)
        if priority is not None:
            stmt = stmt.where(Task.priority == TaskPriority(priority).value)
        stmt = stmt.order_by(*_order_by(TaskSort(sort)))

        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    @storage_errors
    async def search(self, user_id: str | uuid.UUID, query: Optional[str]) -> List[Task]:
        """
        Tasks whose title or description contains any word of ``query``,
        best match first. Title hits weigh more than description hits.
        """
        terms = search_terms(query)
        if not terms:
            raise InvalidArgumentError("q", "Search query is required")

        # On SQLite, ilike folds ASCII case only, so "CAFÉ" in a title
        # is not found by "café". Postgres folds all of Unicode.
        conditions = []
        for term in terms:
            pattern = f"%{_escape_like(term)}%"
            conditions.append(Task.title.ilike(pattern, escape="\\"))
            conditions.append(Task.description.ilike(pattern, escape="\\"))

        result = await self._session.execute(
            select(Task).where(Task.user_id == to_uuid(user_id), or_(*conditions))
        )
        scored = [(relevance(task, terms), task) for task in result.scalars().all()]
        scored = [item for item in scored if item[0] > 0]
        scored.sort(key=lambda item: (item[0], item[1].created_at), reverse=True)
        logger.debug("Search %r matched %d task(s)", terms, len(scored))
        return [task for _, task in scored]

    @storage_errors
    async def get(self, user_id: str | uuid.UUID, task_id: str | uuid.UUID) -> Task:
        return await self._get_owned(user_id, task_id)

    @storage_errors
    async def create(self, user_id: str | uuid.UUID, fields: TaskCreate) -> Task:
        task = Task(
            task_id=uuid.uuid4(),
            user_id=to_uuid(user_id),
            title=fields.title,
            description=fields.description,
            status=TaskStatus(fields.status).value,
            priority=TaskPriority(fields.priority).value,
            due_date=fields.due_date,
        )
        self._session.add(task)
        await self._session.commit()
        logger.info("Created task %s for user %s", task.task_id, task.user_id)
        return task

    @storage_errors
    async def update(
        self,
        user_id: str | uuid.UUID,
        task_id: str | uuid.UUID,
        fields: TaskUpdate,
    ) -> Task:
        """Apply only the fields present in ``fields``; refresh ``updated_at``."""
        task = await self._get_owned(user_id, task_id)
        for key, value in fields.changes().items():
            if isinstance(value, (TaskStatus, TaskPriority)):
                value = value.value
            setattr(task, key, value)
        task.updated_at = datetime.now(timezone.utc)
        await self._session.commit()
        logger.info("Updated task %s", task.task_id)
        return task

    @storage_errors
    async def delete(self, user_id: str | uuid.UUID, task_id: str | uuid.UUID) -> Task:
        """Remove the task and return its last state."""
        task = await self._get_owned(user_id, task_id)
        await self._session.delete(task)
        await self._session.commit()
        logger.info("Deleted task %s", task.task_id)
        return task

    @storage_errors
    async def stats(self, user_id: str | uuid.UUID) -> TaskStats:
        result = await self._session.execute(
            select(Task.status, func.count())
            .where(Task.user_id == to_uuid(user_id))
            .group_by(Task.status)
        )
        counts = {status: count for status, count in result.all()}
        return TaskStats(
            total=sum(counts.values()),
            pending=counts.get(TaskStatus.PENDING.value, 0),
            in_progress=counts.get(TaskStatus.IN_PROGRESS.value, 0),
            completed=counts.get(TaskStatus.COMPLETED.value, 0),
        )
