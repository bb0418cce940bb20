"""
Exception handlers mapping service errors to JSON responses
"""
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from order_service.exceptions import (
    IdempotencyConflictError,
    OrderNotFoundError,
    OrderValidationError,
    PaymentDeclinedError,
    PersistenceError,
)
from order_service.utils.logging import get_logger

logger = get_logger(__name__)


def error_response(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


def _describe(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{location}: {error.get('msg')}" if location else error.get("msg", "Invalid request")


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    details = [{"field": ".".join(str(p) for p in e.get("loc", ())), "message": e.get("msg")} for e in errors]
    message = _describe(errors[0]) if errors else "Invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, f"Invalid request: {message}", details=details)


async def order_validation_handler(request: Request, exc: OrderValidationError):
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def payment_declined_handler(request: Request, exc: PaymentDeclinedError):
    return error_response(status.HTTP_400_BAD_REQUEST, f"Payment failed: {exc.reason}", details=exc.details)


async def idempotency_conflict_handler(request: Request, exc: IdempotencyConflictError):
    return error_response(status.HTTP_409_CONFLICT, str(exc), orderNumber=exc.order_number)


async def order_not_found_handler(request: Request, exc: OrderNotFoundError):
    return error_response(status.HTTP_404_NOT_FOUND, "Order not found")


async def persistence_error_handler(request: Request, exc: PersistenceError):
    if exc.payment_id:
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Payment was received but the order could not be saved. Our team has been notified.",
            paymentId=exc.payment_id,
        )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save order")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return error_response(exc.status_code, "Endpoint not found")
    return error_response(exc.status_code, str(exc.detail))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", path=request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(OrderValidationError, order_validation_handler)
    app.add_exception_handler(PaymentDeclinedError, payment_declined_handler)
    app.add_exception_handler(IdempotencyConflictError, idempotency_conflict_handler)
    app.add_exception_handler(OrderNotFoundError, order_not_found_handler)
    app.add_exception_handler(PersistenceError, persistence_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
