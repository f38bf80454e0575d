"""
Pydantic schemas for the task manager API.

JSON bodies use camelCase (``dueDate``, ``createdAt``); snake_case field
names are accepted on input as well.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from auth.password import MAX_PASSWORD_BYTES


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are read as UTC; aware ones are converted to it."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Enumerations
# ═══════════════════════════════════════════════════════════════════════════════


class TaskStatus(str, Enum):
    # No transition rules: any status may follow any other.
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE = "title"
    DUE_DATE = "dueDate"


# ═══════════════════════════════════════════════════════════════════════════════
# Auth: Requests / Responses
# ═══════════════════════════════════════════════════════════════════════════════


class SignupRequest(BaseModel):
    # Passwords are taken verbatim, so no blanket whitespace stripping here.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=64)]
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("email", mode="before")
    @classmethod
    def _strip_email(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def _password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode()) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password cannot exceed {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    password: str = Field(..., min_length=1)


class UserOut(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, user) -> "UserOut":
        return cls(
            id=user.user_id,
            name=user.name,
            email=user.email,
            created_at=user.created_at,
        )


class AuthResponse(CamelModel):
    success: bool = True
    user: UserOut
    token: str


class ProfileResponse(CamelModel):
    success: bool = True
    user: UserOut


# ═══════════════════════════════════════════════════════════════════════════════
# Tasks: Requests
# ═══════════════════════════════════════════════════════════════════════════════


class TaskCreate(CamelModel):
    """Fields a client may supply when creating a task."""

    title: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class TaskUpdate(CamelModel):
    """
    Partial update. Only fields present in the body are applied.

    ``description`` and ``dueDate`` may be cleared with ``null``; the other
    fields may not.
    """

    title: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None

    @field_validator("title", "status", "priority")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Tasks: Responses
# ═══════════════════════════════════════════════════════════════════════════════


class TaskOut(CamelModel):
    id: uuid.UUID
    user: uuid.UUID
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, task) -> "TaskOut":
        return cls(
            id=task.task_id,
            user=task.user_id,
            title=task.title,
            description=task.description,
            status=task.status,
            priority=task.priority,
            due_date=task.due_date,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    task: TaskOut


class TaskListResponse(CamelModel):
    success: bool = True
    count: int
    tasks: List[TaskOut] = Field(default_factory=list)

    @classmethod
    def from_models(cls, tasks) -> "TaskListResponse":
        items = [TaskOut.from_model(t) for t in tasks]
        return cls(count=len(items), tasks=items)


class TaskStats(CamelModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0


class TaskStatsResponse(CamelModel):
    success: bool = True
    stats: TaskStats


class ErrorDetail(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: Optional[List[ErrorDetail]] = None


# OpenAPI docs for the shared error body.
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation failed"},
    401: {"model": ErrorResponse, "description": "Not authorized"},
    404: {"model": ErrorResponse, "description": "Not found"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}
