import json
import logging
import re
import traceback
from typing import Any, Dict, List, Union

from asyncpg.exceptions import (
    ConnectionDoesNotExistError,
    ConnectionFailureError,
    PostgresError,
    TooManyConnectionsError,
)
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from yogastudio.core.config import DEBUG
from yogastudio.core.exceptions import (
    BaseAppException,
    DatabaseConnectionError,
    DatabaseError,
    DatabaseIntegrityError,
    DatabaseTimeoutError,
)

logger = logging.getLogger(__name__)

CONSTRAINT_RE = re.compile(r'constraint "([^"]+)"')


def error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: Dict[str, Any] = None,
    headers: Dict[str, str] = None,
) -> JSONResponse:
    """Every error leaves the API in this one shape"""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "details": details or {},
            "path": request.url.path,
        },
        headers=headers,
    )


async def handle_app_exception(request: Request, exc: BaseAppException):
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        level,
        f"{request.method} {request.url.path}: {exc.error_code} ({exc.message})",
        extra={"error_code": exc.error_code, "details": exc.details},
    )
    return error_response(
        request, exc.status_code, exc.error_code, exc.message, exc.details
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    logger.warning(f"{request.method} {request.url.path}: HTTP {exc.status_code}")
    return error_response(
        request,
        exc.status_code,
        "HTTP_ERROR",
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


def _describe_fields(errors: List[dict]) -> List[dict]:
    fields = []
    for error in errors:
        value = error.get("input")
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            value = str(value)
        fields.append(
            {
                "field": ".".join(str(part) for part in error.get("loc", ())),
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "value_error"),
                "input": value,
            }
        )
    return fields


async def handle_validation_error(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
):
    fields = _describe_fields(exc.errors())
    logger.warning(
        f"{request.method} {request.url.path}: {len(fields)} invalid field(s)",
        extra={"fields": fields},
    )
    return error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        f"Validation failed for {len(fields)} field(s)",
        {"fields": fields},
    )


def _translate_sqlalchemy(exc: SQLAlchemyError) -> BaseAppException:
    if isinstance(exc, IntegrityError):
        constraint = getattr(exc.orig, "constraint_name", None)
        if not constraint:
            found = CONSTRAINT_RE.search(str(exc.orig))
            constraint = found.group(1) if found else "unknown"
        return DatabaseIntegrityError(constraint, {"original_error": str(exc.orig)})
    if isinstance(exc, (OperationalError, DisconnectionError)):
        return DatabaseConnectionError("Database connection lost")
    if isinstance(exc, TimeoutError):
        return DatabaseTimeoutError("database_operation", 30)
    return DatabaseError(f"Database operation failed: {exc}")


def _translate_postgres(exc: PostgresError) -> BaseAppException:
    if isinstance(exc, (ConnectionFailureError, ConnectionDoesNotExistError)):
        return DatabaseConnectionError("PostgreSQL connection failed")
    if isinstance(exc, TooManyConnectionsError):
        return DatabaseConnectionError("Too many database connections")
    return DatabaseError(
        f"PostgreSQL error: {exc}",
        {"postgres_code": getattr(exc, "sqlstate", "unknown")},
    )


async def handle_database_error(
    request: Request, exc: Union[SQLAlchemyError, PostgresError]
):
    if isinstance(exc, SQLAlchemyError):
        translated = _translate_sqlalchemy(exc)
    else:
        translated = _translate_postgres(exc)
    logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
    return await handle_app_exception(request, translated)


async def handle_unexpected(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        exc_info=exc,
    )
    details = {}
    if DEBUG:
        details = {
            "exception_type": type(exc).__name__,
            "traceback": "".join(traceback.format_exception(exc)),
        }
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
        details,
    )


def setup_exception_handlers(app: FastAPI):
    app.add_exception_handler(BaseAppException, handle_app_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(PydanticValidationError, handle_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
    app.add_exception_handler(PostgresError, handle_database_error)
    app.add_exception_handler(Exception, handle_unexpected)
