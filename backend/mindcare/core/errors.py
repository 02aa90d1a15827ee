import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from mindcare.config.constants import FailureKind
from mindcare.scheduling.results import Outcome

logger = logging.getLogger(__name__)

# Transport status for each business failure kind
STATUS_BY_KIND = {
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.SCHEDULE_VIOLATION: status.HTTP_400_BAD_REQUEST,
    FailureKind.ADVANCE_NOTICE_VIOLATION: status.HTTP_400_BAD_REQUEST,
    FailureKind.INVALID_TRANSITION: status.HTTP_400_BAD_REQUEST,
    FailureKind.SCHEDULING_CONFLICT: status.HTTP_409_CONFLICT,
    FailureKind.ALREADY_TERMINAL: status.HTTP_409_CONFLICT,
}

CODE_BY_STATUS = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
}


class ApiError(HTTPException):
    """HTTPException that also carries the envelope error ``code``."""

    def __init__(self, status_code: int, message: str, code: str):
        super().__init__(status_code=status_code, detail=message)
        self.code = code


def raise_for_outcome(outcome: Outcome) -> None:
    if outcome.ok:
        return
    raise ApiError(STATUS_BY_KIND[outcome.kind], outcome.reason, outcome.kind.value)


def error_response(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"message": message, "code": code}},
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    code = getattr(exc, "code", None) or CODE_BY_STATUS.get(exc.status_code, "ERROR")
    return error_response(exc.status_code, str(exc.detail), code)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    logger.info(f"Validation failed for {request.url.path}: {message}")
    return error_response(status.HTTP_400_BAD_REQUEST, message, "VALIDATION_ERROR")


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {type(exc).__name__} - {exc}",
        exc_info=exc,
    )
    return error_response(500, "Internal server error", "INTERNAL_ERROR")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
