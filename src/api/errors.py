"""
HTTP rendering of domain errors.

Every failure leaves the API as the same envelope the success paths use:
{"message": str, "errors": [str]?}.
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.domain.errors import (
    ConflictError,
    DomainError,
    DuplicateBidError,
    ForbiddenError,
    NotAcceptingBidsError,
    NotActiveError,
    NotFoundError,
    UnauthorizedError,
    UploadError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

# Checked in order, so subclasses must come before their bases
STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (DuplicateBidError, status.HTTP_400_BAD_REQUEST),
    (NotAcceptingBidsError, status.HTTP_400_BAD_REQUEST),
    (NotActiveError, status.HTTP_400_BAD_REQUEST),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (UploadError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: DomainError) -> int:
    for error_cls, code in STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _envelope(code: int, message: str, errors: list[str] | None = None) -> JSONResponse:
    content: dict[str, object] = {"message": message}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=code, content=content)


def _field_path(loc: tuple) -> str:  # type: ignore[type-arg]
    # ("body", "agentInviteDetails", "commissionRate") -> agentInviteDetails.commissionRate
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "request"


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message)
    else:
        logger.info(
            "request_rejected",
            path=request.url.path,
            status_code=code,
            error_type=type(exc).__name__,
        )
    errors = exc.errors if isinstance(exc, ValidationError) else None
    return _envelope(code, exc.message, errors)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [f"{_field_path(err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()]
    logger.info("request_body_invalid", path=request.url.path, errors=errors)
    return _envelope(status.HTTP_400_BAD_REQUEST, "Validation failed", errors)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
