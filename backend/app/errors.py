from enum import Enum


class ErrorType(Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"


# Map error types to HTTP status codes
ERROR_STATUS_MAP = {
    ErrorType.VALIDATION: 400,
    ErrorType.CONFLICT: 400,
    ErrorType.NOT_FOUND: 404,
    ErrorType.INTERNAL_ERROR: 500,
}
