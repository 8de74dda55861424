"""Callable operations: caller context, error kinds and the JSON envelope.

A callable is invoked with ``{"data": <payload>}`` and answers either
``{"result": <value>}`` or ``{"error": {"status", "code", "message"}}``
with an HTTP status matching the error kind.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


@dataclass
class CallerContext:
    """Identity of the principal invoking a callable."""

    uid: str
    claims: Dict[str, Any] = field(default_factory=dict)


class CallableRequest(BaseModel):
    data: Any = None

    def payload(self) -> Dict[str, Any]:
        return self.data if isinstance(self.data, dict) else {}


class CallableError(Exception):
    kind = "internal"
    status = "INTERNAL"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"status": self.status, "code": self.kind, "message": self.message}


class Unauthenticated(CallableError):
    kind = "unauthenticated"
    status = "UNAUTHENTICATED"
    http_status = 401


class PermissionDenied(CallableError):
    kind = "permission-denied"
    status = "PERMISSION_DENIED"
    http_status = 403


class InvalidArgument(CallableError):
    kind = "invalid-argument"
    status = "INVALID_ARGUMENT"
    http_status = 400


class NotFound(CallableError):
    kind = "not-found"
    status = "NOT_FOUND"
    http_status = 404


class FailedPrecondition(CallableError):
    kind = "failed-precondition"
    status = "FAILED_PRECONDITION"
    http_status = 400


class Internal(CallableError):
    pass


def result(value) -> Dict[str, Any]:
    return {"result": value}


async def callable_error_handler(request: Request, exc: CallableError):
    return JSONResponse(status_code=exc.http_status, content={"error": exc.to_dict()})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = InvalidArgument("Bad Request")
    logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=error.http_status, content={"error": error.to_dict()})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    error = Internal("INTERNAL")
    return JSONResponse(status_code=error.http_status, content={"error": error.to_dict()})
