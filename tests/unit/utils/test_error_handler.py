"""Error handling unit tests."""

from inkora.utils.error_handler import get_error_details, get_user_friendly_message, handle_errors
from inkora.utils.exceptions import (
    AppException,
    BatchRequestError,
    BatchRowError,
    EmptyOrOversizedInputError,
    IncompleteFieldMappingError,
    StorageWriteError,
    TemplateNotFoundError,
)


class TestExceptions:
    """Exception hierarchy."""

    def test_str_includes_code(self):
        assert str(TemplateNotFoundError("template_1")) == "[TEMPLATE_NOT_FOUND] Template not found: template_1"

    def test_incomplete_mapping_names_fields(self):
        error = IncompleteFieldMappingError(["Name", "Date"])
        assert error.message == "Please map all fields: Name, Date"
        assert isinstance(error, AppException)

    def test_too_large_message(self):
        error = EmptyOrOversizedInputError.too_large(6 * 1024 * 1024, 5 * 1024 * 1024)
        assert error.message == "File too large (6.0MB), maximum 5MB"

    def test_row_error_is_one_based_in_message(self):
        assert BatchRowError(0, "boom").message == "Row 1 failed: boom"


class TestUserFriendlyMessage:
    """User-facing messages."""

    def test_validation_errors_keep_details(self):
        error = IncompleteFieldMappingError(["Name"])
        assert get_user_friendly_message(error) == "Please map all fields: Name"

    def test_fixed_message(self):
        message = get_user_friendly_message(StorageWriteError("disk full"))
        assert message == "Failed to save template. Your changes are only kept in memory."

    def test_unknown_app_exception(self):
        assert get_user_friendly_message(AppException("Custom")) == "Custom"

    def test_non_app_exception(self):
        assert get_user_friendly_message(RuntimeError("x")) == "Operation failed, please try again"


class TestErrorDetails:
    """Structured details."""

    def test_details_for_batch_request(self):
        error = BatchRequestError([IncompleteFieldMappingError(["Name"]), EmptyOrOversizedInputError.empty()])

        details = get_error_details(error)

        assert details["code"] == "BATCH_REQUEST_INVALID"
        assert details["errors"] == ["INCOMPLETE_FIELD_MAPPING", "EMPTY_OR_OVERSIZED_INPUT"]

    def test_details_for_row_error(self):
        details = get_error_details(BatchRowError(4, "boom"))
        assert details["row_index"] == 4
        assert details["type"] == "BatchRowError"


class TestHandleErrors:
    """UI callback decorator."""

    def test_returns_result(self):
        @handle_errors(default=0)
        def ok():
            return 5

        assert ok() == 5

    def test_returns_default_and_reports(self):
        seen = []

        @handle_errors(default="fallback", on_error=seen.append)
        def fail():
            raise TemplateNotFoundError("template_1")

        assert fail() == "fallback"
        assert isinstance(seen[0], TemplateNotFoundError)

    def test_catches_unexpected_errors(self):
        @handle_errors()
        def fail():
            raise KeyError("x")

        assert fail() is None
