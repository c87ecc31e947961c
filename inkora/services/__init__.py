"""Service layer."""

from inkora.services.archive import GeneratedImage, archive_filename, create_zip, write_archive
from inkora.services.color_sampler import (
    ColorSampler,
    ImageColorSampler,
    UnsupportedColorSampler,
    rgba_to_hex,
)
from inkora.services.field_suggestions import get_field_suggestions
from inkora.services.generation_service import (
    GenerationService,
    get_generation_service,
    reset_generation_service,
    single_output_filename,
)
from inkora.services.tabular_loader import TabularData, auto_map_fields, load_csv
from inkora.services.template_renderer import (
    EditorOverlay,
    RenderMode,
    TemplateRenderer,
    find_font,
    render_template,
)
from inkora.services.template_store import TemplateStore

__all__ = [
    # Archive
    "GeneratedImage",
    "archive_filename",
    "create_zip",
    "write_archive",
    # Color sampling
    "ColorSampler",
    "ImageColorSampler",
    "UnsupportedColorSampler",
    "rgba_to_hex",
    # Suggestions
    "get_field_suggestions",
    # Single generation
    "GenerationService",
    "get_generation_service",
    "reset_generation_service",
    "single_output_filename",
    # Tabular input
    "TabularData",
    "auto_map_fields",
    "load_csv",
    # Rendering
    "EditorOverlay",
    "RenderMode",
    "TemplateRenderer",
    "find_font",
    "render_template",
    # Storage
    "TemplateStore",
]
