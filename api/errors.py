"""
Exception handlers: render every failure as the shared error body.

    {"success": false, "message": "...", "errors": [...]}
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from utils.errors import StorageError, TaskManagerError, UnauthenticatedError, ValidationError

logger = logging.getLogger(__name__)


def _field_name(loc: tuple) -> str:
    # Drop the "body" / "query" / "path" prefix FastAPI puts in front.
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


def validation_details(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    return [
        {"field": _field_name(tuple(err.get("loc", ()))), "message": err.get("msg", "Invalid value")}
        for err in errors
    ]


async def handle_task_manager_error(request: Request, exc: TaskManagerError) -> JSONResponse:
    headers = None
    if isinstance(exc, UnauthenticatedError):
        headers = {"WWW-Authenticate": "Bearer"}
    elif isinstance(exc, StorageError):
        logger.error("Storage error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationError(errors=validation_details(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "An unexpected error occurred"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskManagerError, handle_task_manager_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)
