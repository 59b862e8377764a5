import logging
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from app.errors import ErrorType, ERROR_STATUS_MAP

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Custom exception that services can raise."""

    def __init__(self, error_type: ErrorType, message: str):
        self.error_type = error_type
        self.message = message
        super().__init__(message)

    def to_content(self) -> dict:
        return {"detail": self.message, "error": self.error_type.value}


class ValidationError(AppException):
    """A candidate product or query parameter failed a business rule."""

    def __init__(self, field: str, reason: str, message: str):
        self.field = field
        self.reason = reason
        super().__init__(ErrorType.VALIDATION, message)

    def to_content(self) -> dict:
        content = super().to_content()
        content["field"] = self.field
        content["reason"] = self.reason
        return content


class ConflictError(AppException):
    """Another product already uses the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(ErrorType.CONFLICT, f"Product name already exists: {name}")


class NotFoundError(AppException):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(ErrorType.NOT_FOUND, f"Product not found. ID: {product_id}")


class InternalError(AppException):
    def __init__(self, message: str = "Internal server error"):
        super().__init__(ErrorType.INTERNAL_ERROR, message)


async def app_exception_handler(_request: Request, exc: AppException) -> JSONResponse:
    """Global handler for AppException - converts to proper HTTP response."""
    status_code = ERROR_STATUS_MAP.get(exc.error_type, 500)
    return JSONResponse(
        status_code=status_code,
        content=exc.to_content()
    )


async def request_validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query parameters are client errors - returns 400."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"Invalid request parameter {location}: {first.get('msg', 'invalid value')}"
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"detail": message, "error": ErrorType.VALIDATION.value}
    )


async def generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Global handler for unhandled exceptions - returns 500."""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error": ErrorType.INTERNAL_ERROR.value}
    )
