# quotebook/core/errors.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from quotebook.core.logging_config import logger


class QuotebookError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(QuotebookError):
    status_code = 404
    code = "not_found"


class DomainValidationError(QuotebookError):
    status_code = 422
    code = "validation_error"


class PermissionDeniedError(QuotebookError):
    status_code = 403
    code = "permission_denied"


class InvalidTransitionError(QuotebookError):
    status_code = 409
    code = "invalid_transition"


class ConflictError(QuotebookError):
    status_code = 409
    code = "conflict"


class AuthError(QuotebookError):
    status_code = 401
    code = "not_authenticated"


async def quotebook_error_handler(request: Request, exc: QuotebookError) -> JSONResponse:
    logger.bind(
        endpoint=str(request.url.path),
        method=request.method,
        code=exc.code,
        status_code=exc.status_code,
    ).info("domain_error", message=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(QuotebookError, quotebook_error_handler)
