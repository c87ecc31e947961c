"""Single generation service.

Renders one personalized image from form values, for live preview and
download.
"""

from __future__ import annotations

from typing import Mapping, Optional

from PIL import Image

from inkora.core.config_manager import get_settings
from inkora.models.app_settings import Settings
from inkora.models.template import Template
from inkora.services.archive import GeneratedImage
from inkora.services.template_renderer import RenderMode, TemplateRenderer
from inkora.utils.constants import OUTPUT_EXTENSION
from inkora.utils.helpers import now_ms, sanitize_name_token
from inkora.utils.logger import setup_logger

logger = setup_logger(__name__)


def single_output_filename(
    template: Template,
    values: Mapping[str, str],
    timestamp: Optional[int] = None,
) -> str:
    """Download name, e.g. ``Asha_Rao_1718000000000.jpg``.

    Uses the value of the first text box, or ``invitation`` when empty.

    Args:
        template: Rendered template
        values: Text per text box id
        timestamp: Milliseconds suffix, defaults to now

    Returns:
        File name
    """
    name = "invitation"
    if template.text_boxes:
        primary = values.get(template.text_boxes[0].id, "")
        if primary:
            name = sanitize_name_token(primary)
    return f"{name}_{timestamp if timestamp is not None else now_ms()}.{OUTPUT_EXTENSION}"


class GenerationService:
    """Single generation service.

    Example:
        >>> service = GenerationService()
        >>> output = service.generate_single(template, {box.id: "Asha Rao"})
        >>> output.name
        'Asha_Rao_1718000000000.jpg'
    """

    def __init__(
        self,
        renderer: Optional[TemplateRenderer] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._renderer = renderer or TemplateRenderer()
        self._settings = settings or get_settings()

    @property
    def renderer(self) -> TemplateRenderer:
        return self._renderer

    def render(
        self,
        template: Template,
        values: Mapping[str, str],
        source: Optional[Image.Image] = None,
    ) -> Image.Image:
        """Final-mode render; a missing value renders as empty text."""
        return self._renderer.render(template, values, RenderMode.FINAL, source=source)

    def generate_single(
        self,
        template: Template,
        values: Mapping[str, str],
        source: Optional[Image.Image] = None,
        quality: Optional[float] = None,
    ) -> GeneratedImage:
        """Render and encode one image with its download name.

        Args:
            template: Template to render
            values: Text per text box id
            source: Decoded source image, decoded from the template if None
            quality: JPEG quality 0-1, defaults to the preview quality setting

        Returns:
            GeneratedImage

        Raises:
            ImageDecodeError: The template image cannot be decoded
        """
        image = self.render(template, values, source)
        data = self._renderer.encode(
            image, self._settings.preview_quality if quality is None else quality
        )
        output = GeneratedImage(name=single_output_filename(template, values), data=data)
        logger.info(f"Generated {output.name} ({len(data)} bytes)")
        return output


# Singleton instance
_generation_service_instance: Optional[GenerationService] = None


def get_generation_service() -> GenerationService:
    """Get the generation service singleton."""
    global _generation_service_instance

    if _generation_service_instance is None:
        _generation_service_instance = GenerationService()

    return _generation_service_instance


def reset_generation_service() -> None:
    """Reset the generation service singleton."""
    global _generation_service_instance
    _generation_service_instance = None
