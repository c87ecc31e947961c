"""Batch generation pipeline.

Renders one personalized image per tabular row and packages the results.

Features:
    - Up-front request validation reporting every violation
    - Strictly sequential rendering in row order
    - Progress callback after every row
    - Cooperative yielding to the event loop
    - Abort on the first failing row, no partial output
"""

from __future__ import annotations

import asyncio
from typing import Callable, Mapping, Optional, Sequence

from inkora.core.config_manager import get_settings
from inkora.models.app_settings import Settings
from inkora.models.template import Template
from inkora.services.archive import GeneratedImage, archive_filename, create_zip
from inkora.services.template_renderer import RenderMode, TemplateRenderer
from inkora.utils.constants import OUTPUT_EXTENSION
from inkora.utils.exceptions import (
    AppException,
    BatchRequestError,
    BatchRowError,
    EmptyOrOversizedInputError,
    GenerationInProgressError,
    IncompleteFieldMappingError,
)
from inkora.utils.helpers import sanitize_name_token
from inkora.utils.image_utils import decode_image_data
from inkora.utils.logger import setup_logger

logger = setup_logger(__name__)

# Type aliases
Row = Mapping[str, str]
FieldMapping = Mapping[str, str]  # text box id -> column
ProgressCallback = Callable[[int, int], None]  # (completed, total)


# ===================
# Request helpers
# ===================


def validate_request(
    template: Template,
    mapping: FieldMapping,
    rows: Sequence[Row],
    max_rows: int,
) -> None:
    """Validate a batch request before anything is rendered.

    Args:
        template: Template to render
        mapping: Column per text box id
        rows: Input rows
        max_rows: Row limit

    Raises:
        IncompleteFieldMappingError: Some text boxes have no column
        EmptyOrOversizedInputError: No rows or more than ``max_rows``
        BatchRequestError: Both of the above
    """
    errors: list[AppException] = []

    unmapped = [box.field_name for box in template.text_boxes if not mapping.get(box.id)]
    if unmapped:
        errors.append(IncompleteFieldMappingError(unmapped))

    if not rows:
        errors.append(EmptyOrOversizedInputError.empty())
    elif len(rows) > max_rows:
        errors.append(EmptyOrOversizedInputError.too_many_rows(len(rows), max_rows))

    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise BatchRequestError(errors)


def build_values(template: Template, mapping: FieldMapping, row: Row) -> dict[str, str]:
    """Text per text box id for one row; a missing column gives ``""``."""
    values = {}
    for box in template.text_boxes:
        column = mapping.get(box.id)
        values[box.id] = (row.get(column) or "") if column else ""
    return values


def output_filename(index: int, primary: str, extension: str = OUTPUT_EXTENSION) -> str:
    """Output name for a row, e.g. ``001_Asha_Rao.jpg``.

    Args:
        index: Zero-based row index
        primary: Value of the first text box
        extension: File extension

    Returns:
        File name
    """
    name = primary or f"invitation_{index + 1}"
    return f"{index + 1:03d}_{sanitize_name_token(name)}.{extension}"


# ===================
# Generator
# ===================


class BatchGenerator:
    """Batch generation pipeline.

    Only one run at a time per generator.

    Example:
        >>> generator = BatchGenerator()
        >>> images = await generator.generate(template, mapping, rows, on_progress=cb)
        >>> filename, data = await generator.generate_archive(template, mapping, rows)
    """

    def __init__(
        self,
        renderer: Optional[TemplateRenderer] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """Initialize the generator.

        Args:
            renderer: Compositing renderer
            settings: Settings for quality, row limit and yield cadence
        """
        self._renderer = renderer or TemplateRenderer()
        self._settings = settings or get_settings()
        self._is_running = False

    @property
    def is_running(self) -> bool:
        """Whether a run is in flight."""
        return self._is_running

    async def generate(
        self,
        template: Template,
        mapping: FieldMapping,
        rows: Sequence[Row],
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[GeneratedImage]:
        """Render one image per row.

        Args:
            template: Template to render
            mapping: Column per text box id
            rows: Input rows, in output order
            on_progress: Called with (completed, total) after each row

        Returns:
            Generated images in row order

        Raises:
            GenerationInProgressError: A run is already in flight
            IncompleteFieldMappingError: Unmapped text boxes
            EmptyOrOversizedInputError: Row count out of range
            BatchRequestError: Several validation errors
            ImageDecodeError: The template image cannot be decoded
            BatchRowError: A row failed; the run is aborted
        """
        if self._is_running:
            raise GenerationInProgressError()

        validate_request(template, mapping, rows, self._settings.max_rows)

        self._is_running = True
        try:
            return await self._run(template, mapping, rows, on_progress)
        finally:
            self._is_running = False

    async def generate_archive(
        self,
        template: Template,
        mapping: FieldMapping,
        rows: Sequence[Row],
        on_progress: Optional[ProgressCallback] = None,
    ) -> tuple[str, bytes]:
        """Render every row and package the results into a ZIP.

        Returns:
            (archive filename, ZIP bytes)
        """
        images = await self.generate(template, mapping, rows, on_progress)
        return archive_filename(), create_zip(images)

    async def _run(
        self,
        template: Template,
        mapping: FieldMapping,
        rows: Sequence[Row],
        on_progress: Optional[ProgressCallback],
    ) -> list[GeneratedImage]:
        total = len(rows)
        logger.info(f"Batch generation started: {template.id}, {total} rows")

        source = decode_image_data(template.image)
        primary_box = template.text_boxes[0] if template.text_boxes else None
        quality = self._settings.output_quality
        images: list[GeneratedImage] = []

        for index, row in enumerate(rows):
            values = build_values(template, mapping, row)
            try:
                image = self._renderer.render(template, values, RenderMode.FINAL, source=source)
                data = self._renderer.encode(image, quality)
            except Exception as e:
                logger.error(f"Row {index + 1} failed: {e}")
                raise BatchRowError(index, str(e)) from e

            primary = values.get(primary_box.id, "") if primary_box else ""
            images.append(GeneratedImage(name=output_filename(index, primary), data=data))

            if on_progress:
                on_progress(index + 1, total)

            if index % self._settings.yield_every == 0:
                await asyncio.sleep(self._settings.yield_delay)

        logger.info(f"Batch generation finished: {len(images)} images")
        return images
