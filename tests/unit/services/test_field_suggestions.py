"""Field suggestion unit tests."""

from datetime import date

from inkora.services.field_suggestions import DEFAULT_SUGGESTIONS, get_field_suggestions


class TestFieldSuggestions:
    """Sample values by field name."""

    def test_should_match_keyword_in_field_name(self):
        assert get_field_suggestions("Guest Name")[0] == "Rajesh Kumar"

    def test_should_ignore_case(self):
        assert get_field_suggestions("EMAIL") == get_field_suggestions("email")

    def test_should_format_dates_from_today(self):
        suggestions = get_field_suggestions("Event Date", today=date(2024, 6, 1))
        assert suggestions == ["1/6/2024", "8/6/2024", "15/6/2024"]

    def test_should_return_defaults(self):
        suggestions = get_field_suggestions("Field 1")

        assert suggestions == DEFAULT_SUGGESTIONS
        suggestions.append("x")
        assert get_field_suggestions("Field 1") == ["Sample 1", "Sample 2", "Sample 3"]
