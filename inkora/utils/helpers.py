"""Helper functions.

Small general-purpose helpers.
"""

from __future__ import annotations

import re
import time
import uuid

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def now_ms() -> int:
    """Current time in integer milliseconds since the epoch."""
    return int(time.time() * 1000)


def generate_short_id(length: int = 8) -> str:
    """Generate a short hex id.

    Args:
        length: Id length

    Returns:
        Short id string
    """
    return uuid.uuid4().hex[:length]


def sanitize_name_token(value: str) -> str:
    """Replace every non-alphanumeric character with an underscore.

    Args:
        value: Raw value, e.g. a person's name

    Returns:
        Filename-safe token of the same length
    """
    return _NON_ALNUM.sub("_", value)


def format_file_size(size_bytes: float) -> str:
    """Format a byte count for display.

    Args:
        size_bytes: Size in bytes

    Returns:
        Human readable size
    """
    for unit in ["B", "KB", "MB", "GB"]:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"
