"""Map ordering errors onto HTTP responses.

Protean's own handlers cover ``ValidationError`` (400) and
``ObjectNotFoundError`` (404); the subclasses registered here take precedence
for their own status codes because Starlette resolves handlers along the MRO.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from ordering.errors import (
    CartMismatch,
    EmptyCart,
    ExternalServiceError,
    InvalidInput,
    MaterializationFailure,
    NotFound,
    OutOfStock,
    Unauthorized,
)
from ordering.utils.logging import get_logger

logger = get_logger(__name__)

_STATUS_CODES = {
    InvalidInput: 400,
    Unauthorized: 401,
    CartMismatch: 403,
    NotFound: 404,
    OutOfStock: 409,
    EmptyCart: 422,
    ExternalServiceError: 502,
}


def error_body(exc: Exception) -> dict:
    messages = getattr(exc, "messages", None)
    return {"error": messages if messages else str(exc)}


def _handler_for(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error("Request failed", path=request.url.path, error=str(exc), error_type=type(exc).__name__)
        return JSONResponse(status_code=status_code, content=error_body(exc))

    return handler


async def _materialization_failure(request: Request, exc: MaterializationFailure) -> JSONResponse:
    logger.error(
        "Order materialization failed",
        path=request.url.path,
        transaction_ref=exc.transaction_ref,
        retryable=exc.retryable,
        error=exc.message,
    )
    return JSONResponse(
        status_code=503 if exc.retryable else 422,
        content={"error": exc.message, "retryable": exc.retryable},
    )


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    for exc_class, status_code in _STATUS_CODES.items():
        app.add_exception_handler(exc_class, _handler_for(status_code))
    app.add_exception_handler(MaterializationFailure, _materialization_failure)
