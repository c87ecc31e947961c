"""Custom exceptions."""

from __future__ import annotations

from typing import Sequence


class AppException(Exception):
    """Base application exception.

    Every custom exception derives from this class.

    Attributes:
        message: Error message
        code: Error code
    """

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
        """
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return the string form."""
        return f"[{self.code}] {self.message}"


# ===================
# Configuration
# ===================
class ConfigError(AppException):
    """Configuration error."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


# ===================
# Images
# ===================
class MissingSourceImageError(AppException):
    """No source image is available for a new template."""

    def __init__(self) -> None:
        super().__init__("No image found, please upload again", "MISSING_SOURCE_IMAGE")


class ImageDecodeError(AppException):
    """The source image could not be decoded."""

    def __init__(self, reason: str = "") -> None:
        msg = "Failed to load image"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, "IMAGE_DECODE_FAILURE")


class ColorSamplingUnsupportedError(AppException):
    """The host cannot sample colors."""

    def __init__(self, reason: str = "") -> None:
        msg = "Color sampling is not supported"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, "COLOR_SAMPLING_UNSUPPORTED")


# ===================
# Generation
# ===================
class IncompleteFieldMappingError(AppException):
    """One or more text boxes have no mapped column.

    Attributes:
        field_names: Names of every unmapped field
    """

    def __init__(self, field_names: Sequence[str]) -> None:
        self.field_names = list(field_names)
        super().__init__(
            f"Please map all fields: {', '.join(self.field_names)}",
            "INCOMPLETE_FIELD_MAPPING",
        )


class EmptyOrOversizedInputError(AppException):
    """Tabular input is empty, has too many rows or is too large."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "EMPTY_OR_OVERSIZED_INPUT")

    @classmethod
    def empty(cls) -> "EmptyOrOversizedInputError":
        return cls("File is empty")

    @classmethod
    def too_many_rows(cls, count: int, max_rows: int) -> "EmptyOrOversizedInputError":
        return cls(f"Maximum {max_rows} rows allowed, got {count}")

    @classmethod
    def too_large(cls, size: int, max_size: int) -> "EmptyOrOversizedInputError":
        size_mb = size / (1024 * 1024)
        max_mb = max_size / (1024 * 1024)
        return cls(f"File too large ({size_mb:.1f}MB), maximum {max_mb:.0f}MB")


class BatchRequestError(AppException):
    """Several validation errors found in one batch request.

    Attributes:
        errors: Every validation error, in detection order
    """

    def __init__(self, errors: Sequence[AppException]) -> None:
        self.errors = list(errors)
        details = "; ".join(e.message for e in self.errors)
        super().__init__(f"Invalid generation request: {details}", "BATCH_REQUEST_INVALID")


class BatchRowError(AppException):
    """Rendering one batch row failed, aborting the run.

    Attributes:
        row_index: Zero-based index of the failing row
    """

    def __init__(self, row_index: int, reason: str) -> None:
        self.row_index = row_index
        super().__init__(f"Row {row_index + 1} failed: {reason}", "BATCH_ROW_FAILED")


class GenerationInProgressError(AppException):
    """A batch run is already in flight."""

    def __init__(self) -> None:
        super().__init__("A generation run is already in progress", "GENERATION_IN_PROGRESS")


# ===================
# Storage
# ===================
class StorageWriteError(AppException):
    """The template store failed to persist data."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to save template: {reason}", "STORAGE_WRITE_FAILURE")


class TemplateNotFoundError(AppException):
    """No template exists for the given id."""

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Template not found: {template_id}", "TEMPLATE_NOT_FOUND")
