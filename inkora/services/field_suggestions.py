"""Sample values for single generation form fields."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

DEFAULT_SUGGESTIONS = ["Sample 1", "Sample 2", "Sample 3"]


def _format_date(value: date) -> str:
    # day/month/year, unpadded
    return f"{value.day}/{value.month}/{value.year}"


def _suggestion_table(today: date) -> dict[str, list[str]]:
    return {
        "name": [
            "Rajesh Kumar",
            "Priya Sharma",
            "Amit Patel",
            "Sneha Reddy",
            "Vikram Singh",
        ],
        "phone": [
            "9876543210",
            "8765432109",
            "7654321098",
            "9123456789",
            "8234567890",
        ],
        "contact": [
            "9876543210",
            "8765432109",
            "7654321098",
        ],
        "email": [
            "example@gmail.com",
            "contact@company.com",
            "info@business.in",
        ],
        "address": [
            "123 MG Road, Bangalore",
            "456 Park Street, Mumbai",
            "789 Mall Road, Delhi",
        ],
        "date": [
            _format_date(today),
            _format_date(today + timedelta(days=7)),
            _format_date(today + timedelta(days=14)),
        ],
        "time": [
            "10:00 AM",
            "2:00 PM",
            "6:00 PM",
        ],
        "venue": [
            "Hotel Taj, MG Road",
            "Community Hall, Sector 5",
            "Garden Lawn, City Center",
        ],
    }


def get_field_suggestions(field_name: str, today: Optional[date] = None) -> list[str]:
    """Suggest sample values for a form field.

    The first keyword contained in the lowercased field name selects the
    list, e.g. "Guest Name" matches ``name``.

    Args:
        field_name: Text box field name
        today: Reference date for date suggestions

    Returns:
        Suggested values
    """
    field = field_name.lower()
    for key, values in _suggestion_table(today or date.today()).items():
        if key in field:
            return values
    return list(DEFAULT_SUGGESTIONS)
