"""Tabular data loading for batch generation."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

from inkora.core.config_manager import get_settings
from inkora.models.template import Template
from inkora.utils.exceptions import EmptyOrOversizedInputError
from inkora.utils.logger import setup_logger

logger = setup_logger(__name__)

CsvSource = Union[Path, str, bytes]


@dataclass
class TabularData:
    """Parsed table.

    Attributes:
        headers: Column names in file order
        rows: Rows of ``header -> value``, header row excluded
    """

    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def _read_bytes(source: CsvSource, max_bytes: int) -> bytes:
    if isinstance(source, bytes):
        data = source
    else:
        path = Path(source)
        size = path.stat().st_size
        if size > max_bytes:
            raise EmptyOrOversizedInputError.too_large(size, max_bytes)
        data = path.read_bytes()

    if len(data) > max_bytes:
        raise EmptyOrOversizedInputError.too_large(len(data), max_bytes)
    return data


def load_csv(
    source: CsvSource,
    max_rows: Optional[int] = None,
    max_bytes: Optional[int] = None,
) -> TabularData:
    """Load a CSV file with a header row.

    Rows whose values are all empty are dropped. Missing trailing cells
    become ``""``; cells beyond the header are ignored.

    Args:
        source: File path or raw CSV bytes
        max_rows: Row limit, defaults to ``Settings.max_rows``
        max_bytes: Size limit checked before parsing, defaults to
            ``Settings.max_csv_bytes``

    Returns:
        TabularData

    Raises:
        EmptyOrOversizedInputError: File too large, no rows or too many rows
        UnicodeDecodeError: The file is not UTF-8
    """
    if max_rows is None or max_bytes is None:
        settings = get_settings()
        max_rows = settings.max_rows if max_rows is None else max_rows
        max_bytes = settings.max_csv_bytes if max_bytes is None else max_bytes

    data = _read_bytes(source, max_bytes)
    text = data.decode("utf-8-sig")

    reader = csv.DictReader(io.StringIO(text, newline=""))
    headers = list(reader.fieldnames or [])

    rows = []
    for raw in reader:
        row = {header: (raw.get(header) or "") for header in headers}
        if any(row.values()):
            rows.append(row)

    if not rows:
        raise EmptyOrOversizedInputError.empty()
    if len(rows) > max_rows:
        raise EmptyOrOversizedInputError.too_many_rows(len(rows), max_rows)

    logger.info(f"CSV loaded: {len(headers)} columns, {len(rows)} rows")
    return TabularData(headers=headers, rows=rows)


def auto_map_fields(template: Template, headers: Sequence[str]) -> dict[str, str]:
    """Map text boxes to columns whose header equals the field name.

    The comparison ignores case; the first matching header wins.

    Args:
        template: Template whose text boxes are mapped
        headers: Available column names

    Returns:
        Column per text box id, only for matched boxes
    """
    mapping = {}
    for box in template.text_boxes:
        match: Optional[str] = next(
            (header for header in headers if header.lower() == box.field_name.lower()),
            None,
        )
        if match is not None:
            mapping[box.id] = match
    return mapping
