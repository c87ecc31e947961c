"""Error handling utilities.

Unified handling and user-facing messages for application errors.
"""

from __future__ import annotations

import functools
from typing import Any, Callable, Optional, TypeVar

from inkora.utils.exceptions import (
    AppException,
    BatchRequestError,
    BatchRowError,
    ColorSamplingUnsupportedError,
    ConfigError,
    EmptyOrOversizedInputError,
    GenerationInProgressError,
    ImageDecodeError,
    IncompleteFieldMappingError,
    MissingSourceImageError,
    StorageWriteError,
    TemplateNotFoundError,
)
from inkora.utils.logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")


# Fixed messages; exceptions not listed fall back to their own message
ERROR_MESSAGES = {
    MissingSourceImageError: "No image found. Please upload again.",
    ImageDecodeError: "Failed to load image",
    StorageWriteError: "Failed to save template. Your changes are only kept in memory.",
    TemplateNotFoundError: "Template not found",
    GenerationInProgressError: "Generation is already running, please wait",
    BatchRowError: "Failed to generate invitations",
    ColorSamplingUnsupportedError: "Eyedropper is not supported here",
    ConfigError: "Configuration error, please check your settings",
}


def get_user_friendly_message(exception: Exception) -> str:
    """Get a user-facing message for an exception.

    Validation errors carry their full details (every violation), so their
    own message is returned.

    Args:
        exception: The exception

    Returns:
        Message suitable for display
    """
    if isinstance(
        exception,
        (IncompleteFieldMappingError, EmptyOrOversizedInputError, BatchRequestError),
    ):
        return exception.message

    for exc_type, message in ERROR_MESSAGES.items():
        if isinstance(exception, exc_type):
            return message

    if isinstance(exception, AppException):
        return exception.message

    return "Operation failed, please try again"


def get_error_details(exception: Exception) -> dict[str, Any]:
    """Get structured error details.

    Args:
        exception: The exception

    Returns:
        Dict with type, message, user message and code
    """
    details: dict[str, Any] = {
        "type": type(exception).__name__,
        "message": str(exception),
        "user_message": get_user_friendly_message(exception),
    }

    if isinstance(exception, AppException):
        details["code"] = exception.code

    if isinstance(exception, IncompleteFieldMappingError):
        details["field_names"] = exception.field_names
    elif isinstance(exception, BatchRequestError):
        details["errors"] = [e.code for e in exception.errors]
    elif isinstance(exception, BatchRowError):
        details["row_index"] = exception.row_index

    return details


def handle_errors(
    default: Optional[T] = None,
    on_error: Optional[Callable[[Exception], None]] = None,
) -> Callable[[Callable[..., T]], Callable[..., Optional[T]]]:
    """Decorator for UI callbacks: log the failure and return a default.

    Only use this at the outer edge (signal handlers), never inside the
    engine, where errors propagate.

    Args:
        default: Value returned on error
        on_error: Called with the exception, e.g. to show a message

    Returns:
        Decorator
    """

    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if isinstance(e, AppException):
                    logger.error(f"{func.__name__} failed: {e}")
                else:
                    logger.exception(f"{func.__name__} failed: {e}")
                if on_error:
                    on_error(e)
                return default

        return wrapper

    return decorator
