"""Translation of service and validation errors into HTTP responses."""
from datetime import datetime, timezone
import logging
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.schemas.error import ErrorResponse, ValidationErrorResponse
from app.services.exceptions import BusinessRuleError, ProductNotFoundError, ProductServiceError

logger = logging.getLogger(__name__)

# Error class -> HTTP status; the most specific class in the MRO wins
ERROR_STATUS_CODES = {
    ProductNotFoundError: status.HTTP_404_NOT_FOUND,
    BusinessRuleError: status.HTTP_400_BAD_REQUEST,
}


def generate_error_id() -> str:
    """Short id that ties an error response to its log line."""
    return uuid.uuid4().hex[:8].upper()


def status_code_for(exc: Exception) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(status_code: int, error_id: str, code: str, message: str, path: str) -> JSONResponse:
    body = ErrorResponse(
        error_id=error_id,
        timestamp=datetime.now(timezone.utc),
        status=status_code,
        code=code,
        message=message,
        path=path,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def handle_product_service_error(request: Request, exc: ProductServiceError) -> JSONResponse:
    error_id = generate_error_id()
    status_code = status_code_for(exc)

    if status_code >= 500:
        return handle_unexpected_error(request, exc)

    logger.warning(f"Error ID: {error_id} - {exc.error_code}: {exc.message}")
    return _error_response(status_code, error_id, exc.error_code, exc.message, request.url.path)


def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Log the full traceback but keep internal detail out of the response."""
    error_id = generate_error_id()
    logger.error(f"Error ID: {error_id} - Unexpected error occurred", exc_info=exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_id,
        "INTERNAL_ERROR",
        f"An unexpected error occurred. Error ID: {error_id}",
        request.url.path,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report every rejected field, keyed by the last element of its location."""
    error_id = generate_error_id()
    field_errors = {}
    for error in exc.errors():
        field = str(error["loc"][-1]) if error.get("loc") else "request"
        field_errors[field] = error["msg"]
        logger.debug(f"Error ID: {error_id} - Validation failed for field '{field}': {error['msg']}")

    logger.warning(f"Error ID: {error_id} - Request validation failed on {request.url.path}")
    body = ValidationErrorResponse(
        error_id=error_id,
        timestamp=datetime.now(timezone.utc),
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="VALIDATION_FAILED",
        message="Request validation failed",
        path=request.url.path,
        field_errors=field_errors,
    )
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=body.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProductServiceError, handle_product_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
