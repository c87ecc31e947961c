"""Data models."""

from inkora.models.app_settings import Settings
from inkora.models.template import (
    # Enums
    BoxKind,
    FillType,
    TextAlign,
    # Boxes
    AnyBox,
    BoxElement,
    ColorBox,
    TextBox,
    # Template
    Template,
    # Helpers
    generate_box_id,
    generate_template_id,
    normalize_hex_color,
)

__all__ = [
    "Settings",
    # Enums
    "BoxKind",
    "FillType",
    "TextAlign",
    # Boxes
    "AnyBox",
    "BoxElement",
    "ColorBox",
    "TextBox",
    # Template
    "Template",
    # Helpers
    "generate_box_id",
    "generate_template_id",
    "normalize_hex_color",
]
