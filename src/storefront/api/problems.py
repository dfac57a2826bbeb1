"""Problem-details error responses.

Every failure leaves the API as ``application/problem+json`` with the same
envelope: ``{type, title, status, detail, instance}``. Field-level messages
from domain validation are added under ``errors``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront import config
from storefront.shared.exceptions import ConflictError, InsufficientStockError

logger = structlog.get_logger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"


def _messages(exc):
    messages = getattr(exc, "messages", None)
    return messages if isinstance(messages, dict) else None


def _detail(exc, errors):
    if errors:
        return "; ".join(
            f"{field}: {message}" for field, messages in errors.items() for message in messages
        )
    return str(exc) or None


def problem_response(request: Request, status: int, slug: str, title: str, detail=None, errors=None):
    body = {
        "type": f"{config.PROBLEM_TYPE_BASE}/{slug}",
        "title": title,
        "status": status,
        "detail": detail,
        "instance": request.url.path,
    }
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status, content=body, media_type=PROBLEM_MEDIA_TYPE)


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = _messages(exc)
    return problem_response(request, 400, "validation-error", "Validation failed", _detail(exc, errors), errors)


async def insufficient_stock_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = _messages(exc)
    return problem_response(
        request, 422, "insufficient-stock", "Insufficient stock", _detail(exc, errors), errors
    )


async def conflict_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = _messages(exc)
    return problem_response(request, 409, "conflict", "Conflict", _detail(exc, errors), errors)


async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = _messages(exc)
    return problem_response(request, 404, "not-found", "Resource not found", _detail(exc, errors))


async def request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = {}
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors.setdefault(field or "body", []).append(error["msg"])
    return problem_response(request, 400, "validation-error", "Validation failed", _detail(exc, errors), errors)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", method=request.method, path=request.url.path)
    return problem_response(request, 500, "internal-error", "Internal server error")


def register_problem_handlers(app: FastAPI) -> None:
    """Map domain exceptions to problem responses.

    Handlers are looked up along the exception's MRO, so the ValidationError
    subclasses get their own status before the base class catches the rest.
    """
    app.add_exception_handler(InsufficientStockError, insufficient_stock_handler)
    app.add_exception_handler(ConflictError, conflict_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
