"""
Task API routes. Every route requires a Bearer token.

Route prefix: /tasks
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Type, TypeVar

from fastapi import APIRouter, Depends, Query, status

from auth.dependencies import get_current_user, get_task_store
from database.models import User
from database.tasks import TaskStore
from utils.errors import InvalidArgumentError
from utils.schemas import (
    ERROR_RESPONSES,
    TaskCreate,
    TaskListResponse,
    TaskOut,
    TaskPriority,
    TaskResponse,
    TaskSort,
    TaskStatsResponse,
    TaskStatus,
    TaskUpdate,
)

router = APIRouter(tags=["tasks"], responses=ERROR_RESPONSES)

E = TypeVar("E", bound=Enum)


def _parse_choice(enum_cls: Type[E], value: Optional[str], field: str) -> Optional[E]:
    """Blank query values mean "no filter"; anything else must be a member."""
    if value is None or not value.strip():
        return None
    try:
        return enum_cls(value.strip())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidArgumentError(field, f"Invalid {field}. Allowed values: {allowed}") from None


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    priority: Optional[str] = Query(default=None),
    sort: Optional[str] = Query(default=None),
    current_user: User = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
) -> TaskListResponse:
    """List the caller's tasks, optionally filtered by status and/or priority."""
    found = await tasks.list(
        current_user.user_id,
        status=_parse_choice(TaskStatus, status_filter, "status"),
        priority=_parse_choice(TaskPriority, priority, "priority"),
        sort=_parse_choice(TaskSort, sort, "sort") or TaskSort.NEWEST,
    )
    return TaskListResponse.from_models(found)


@router.get("/search", response_model=TaskListResponse)
async def search_tasks(
    q: Optional[str] = Query(default=None),
    current_user: User = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
) -> TaskListResponse:
    """Search title and description, best match first."""
    found = await tasks.search(current_user.user_id, q)
    return TaskListResponse.from_models(found)


@router.get("/stats", response_model=TaskStatsResponse)
async def task_stats(
    current_user: User = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
) -> TaskStatsResponse:
    """Task counts per status for the caller."""
    return TaskStatsResponse(stats=await tasks.stats(current_user.user_id))


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
) -> TaskResponse:
    task = await tasks.get(current_user.user_id, task_id)
    return TaskResponse(task=TaskOut.from_model(task))


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    body: TaskCreate,
    current_user: User = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
) -> TaskResponse:
    task = await tasks.create(current_user.user_id, body)
    return TaskResponse(message="Task created successfully", task=TaskOut.from_model(task))


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    body: TaskUpdate,
    current_user: User = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
) -> TaskResponse:
    """Update a task. Only provided fields are changed."""
    task = await tasks.update(current_user.user_id, task_id, body)
    return TaskResponse(message="Task updated successfully", task=TaskOut.from_model(task))


@router.delete("/{task_id}", response_model=TaskResponse)
async def delete_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
) -> TaskResponse:
    """Delete a task and return what it looked like."""
    task = await tasks.delete(current_user.user_id, task_id)
    return TaskResponse(message="Task deleted successfully", task=TaskOut.from_model(task))
