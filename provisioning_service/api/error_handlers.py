"""Exception handlers mapping domain errors to HTTP responses"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from provisioning_service.api.dependencies import get_request_id
from provisioning_service.domain.exceptions import (
    ConflictError,
    DomainException,
    NotFoundError,
    ValidationError,
)


def _status_for(exc: DomainException) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ConflictError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def _error_body(exc: DomainException) -> dict:
    error = {"code": exc.code, "message": exc.message}
    if isinstance(exc, ValidationError):
        error["field"] = exc.field
    return {"error": error}


def register_error_handlers(app: FastAPI) -> None:
    """Register domain and request-validation handlers on the app"""

    @app.exception_handler(DomainException)
    async def domain_error_handler(request: Request, exc: DomainException):
        return JSONResponse(status_code=_status_for(exc), content=_error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logging.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"request_id": get_request_id(request)},
        )
        first = exc.errors()[0] if exc.errors() else {"loc": (), "msg": "Invalid request"}
        field = ".".join(str(part) for part in first["loc"] if part != "body") or "payload"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": {
                    "code": ValidationError.code,
                    "message": first["msg"],
                    "field": field,
                }
            },
        )
