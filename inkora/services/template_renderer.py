"""Template compositing renderer.

Renders a template plus field values into a raster image. The same pipeline
serves the editor preview and final generation.

Features:
    - Fixed draw order: source image, color boxes, text boxes, editor overlay
    - Solid and left-to-right gradient fills with opacity
    - Text with optional background panel, aligned on a baseline
    - Editor overlay: outlines, resize handles, field labels, live rectangle
"""

from __future__ import annotations

import functools
import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union

from PIL import Image, ImageDraw, ImageFont

from inkora.core.geometry import Rect, handle_positions
from inkora.models.template import BoxKind, ColorBox, TextAlign, Template, TextBox
from inkora.utils.image_utils import decode_image_data, encode_jpeg
from inkora.utils.logger import setup_logger

logger = setup_logger(__name__)

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]
RGBA = tuple[int, int, int, int]


# ===================
# Constants
# ===================

# Font search paths
FONT_SEARCH_PATHS = [
    "/System/Library/Fonts/",
    "/System/Library/Fonts/Supplemental/",
    "/Library/Fonts/",
    "~/Library/Fonts/",
    "C:/Windows/Fonts/",
    "/usr/share/fonts/",
    "/usr/share/fonts/truetype/",
    "/usr/share/fonts/truetype/dejavu/",
    "/usr/share/fonts/truetype/liberation/",
]

# Font files for generic CSS families: (regular, bold)
GENERIC_FAMILIES: dict[str, list[tuple[str, str]]] = {
    "sans-serif": [
        ("Arial.ttf", "Arial Bold.ttf"),
        ("arial.ttf", "arialbd.ttf"),
        ("DejaVuSans.ttf", "DejaVuSans-Bold.ttf"),
        ("LiberationSans-Regular.ttf", "LiberationSans-Bold.ttf"),
    ],
    "serif": [
        ("Times New Roman.ttf", "Times New Roman Bold.ttf"),
        ("times.ttf", "timesbd.ttf"),
        ("DejaVuSerif.ttf", "DejaVuSerif-Bold.ttf"),
        ("LiberationSerif-Regular.ttf", "LiberationSerif-Bold.ttf"),
    ],
    "monospace": [
        ("Courier New.ttf", "Courier New Bold.ttf"),
        ("cour.ttf", "courbd.ttf"),
        ("DejaVuSansMono.ttf", "DejaVuSansMono-Bold.ttf"),
        ("LiberationMono-Regular.ttf", "LiberationMono-Bold.ttf"),
    ],
}

# Editor overlay colors
TEXT_OUTLINE = (0x4A, 0x90, 0xE2)
COLOR_OUTLINE = (0xF5, 0xA6, 0x23)
UNSELECTED_OUTLINE_ALPHA = 0x50
DRAWING_FILL_ALPHA = 0x40
PLACEHOLDER_ALPHA = 0x80

HANDLE_SIZE = 8
OUTLINE_WIDTH = 2
LABEL_OFFSET = 10
LABEL_STROKE_WIDTH = 2
DASH_PATTERN = (5, 5)


# ===================
# Font management
# ===================


def _candidate_files(font_family: str, bold: bool) -> list[str]:
    family = font_family.strip().strip("'\"")
    generic = GENERIC_FAMILIES.get(family.lower())
    if generic:
        return [pair[1] if bold else pair[0] for pair in generic]

    variants = []
    if bold:
        variants.extend([
            f"{family}-Bold.ttf",
            f"{family} Bold.ttf",
        ])
    variants.extend([
        family,
        f"{family}.ttf",
        f"{family}.otf",
        f"{family}.ttc",
    ])
    return variants


@functools.lru_cache(maxsize=64)
def find_font(font_family: Optional[str], font_size: int, bold: bool = False) -> Font:
    """Resolve a font by family name.

    Generic CSS families (``sans-serif``, ``serif``, ``monospace``) map to
    common system fonts. Unknown families fall back to ``sans-serif`` and
    then to Pillow's bundled font.

    Args:
        font_family: Font family name
        font_size: Size in pixels
        bold: Whether to prefer a bold face

    Returns:
        ImageFont object
    """
    font_size = max(1, font_size)
    families = [font_family or "sans-serif"]
    if families[0].lower() != "sans-serif":
        families.append("sans-serif")

    for family in families:
        candidates = _candidate_files(family, bold)

        for candidate in candidates:
            try:
                return ImageFont.truetype(candidate, font_size)
            except OSError:
                pass

        for search_path in FONT_SEARCH_PATHS:
            expanded_path = os.path.expanduser(search_path)
            if not os.path.isdir(expanded_path):
                continue

            for candidate in candidates:
                font_path = os.path.join(expanded_path, candidate)
                if os.path.exists(font_path):
                    try:
                        return ImageFont.truetype(font_path, font_size)
                    except OSError:
                        continue

        if family is not families[-1]:
            logger.warning(f"Font '{family}' not found, using sans-serif")

    logger.debug("No system font found, using the bundled font")
    return ImageFont.load_default(size=font_size)


def _hex_to_rgba(color: str, alpha: int = 255) -> RGBA:
    color = color.lstrip("#")
    return (int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16), alpha)


def _alpha(opacity: float) -> int:
    return max(0, min(255, round(opacity * 255)))


def _pixel_bounds(rect: Rect) -> Optional[tuple[int, int, int, int]]:
    """Inclusive pixel bounds of a rectangle, or None when it covers no pixel."""
    x0 = round(rect.x)
    y0 = round(rect.y)
    x1 = round(rect.x + rect.width) - 1
    y1 = round(rect.y + rect.height) - 1
    if x1 < x0 or y1 < y0:
        return None
    return (x0, y0, x1, y1)


def _draw_text(
    draw: ImageDraw.ImageDraw,
    xy: tuple[float, float],
    text: str,
    font: Font,
    fill: RGBA,
    align: TextAlign = TextAlign.LEFT,
    stroke_width: int = 0,
    stroke_fill: Optional[RGBA] = None,
) -> None:
    """Draw one line of text with ``xy`` on its baseline."""
    if isinstance(font, ImageFont.FreeTypeFont):
        anchor = {TextAlign.LEFT: "ls", TextAlign.CENTER: "ms", TextAlign.RIGHT: "rs"}[align]
        draw.text(
            xy,
            text,
            font=font,
            fill=fill,
            anchor=anchor,
            stroke_width=stroke_width,
            stroke_fill=stroke_fill,
        )
        return

    # Bitmap fonts have no anchors
    x, y = xy
    width = draw.textlength(text, font=font)
    if align == TextAlign.CENTER:
        x -= width / 2
    elif align == TextAlign.RIGHT:
        x -= width
    bbox = font.getbbox(text)
    draw.text((x, y - bbox[3]), text, font=font, fill=fill)


# ===================
# Render options
# ===================


class RenderMode(str, Enum):
    """Render mode."""

    EDITOR_PREVIEW = "editor_preview"
    FINAL = "final"


@dataclass
class EditorOverlay:
    """Editor state drawn on top of the preview.

    Attributes:
        selected_box_id: Selected box, drawn with a brighter outline
        show_handles: Draw resize handles for the selected box
        drawing_rect: Live rectangle of a drawing gesture
        drawing_kind: Kind of box being drawn
        scale: Display scale; outlines and handles keep a constant on-screen size
    """

    selected_box_id: Optional[str] = None
    show_handles: bool = True
    drawing_rect: Optional[Rect] = None
    drawing_kind: Optional[BoxKind] = None
    scale: float = 1.0


# ===================
# Renderer
# ===================


class TemplateRenderer:
    """Template compositing renderer.

    Rendering is deterministic: identical inputs produce identical pixels.

    Example:
        >>> renderer = TemplateRenderer()
        >>> image = renderer.render(template, {"text_1a2b3c4d": "Asha Rao"})
        >>> data = renderer.encode(image, 0.85)
    """

    def render(
        self,
        template: Template,
        values: Optional[Mapping[str, str]] = None,
        mode: RenderMode = RenderMode.FINAL,
        *,
        source: Optional[Image.Image] = None,
        overlay: Optional[EditorOverlay] = None,
    ) -> Image.Image:
        """Render a template.

        Args:
            template: Template to render
            values: Text per text box id. Ignored in editor mode, where the
                field names are shown instead.
            mode: Final or editor preview
            source: Decoded source image, decoded from the template if None
            overlay: Editor overlay state (editor mode only)

        Returns:
            RGBA image of the template's size

        Raises:
            ImageDecodeError: The embedded image cannot be decoded
        """
        values = values or {}
        if source is None:
            source = decode_image_data(template.image)

        size = (template.width, template.height)
        result = Image.new("RGBA", size, (0, 0, 0, 0))
        result = Image.alpha_composite(result, self._prepare_source(source, size))

        for color_box in template.color_boxes:
            result = self._render_color_box(result, color_box)

        editor = mode == RenderMode.EDITOR_PREVIEW
        for text_box in template.text_boxes:
            text = text_box.field_name if editor else values.get(text_box.id, "")
            result = self._render_text_box(result, text_box, text, placeholder=editor)

        if editor:
            result = self._render_overlay(result, template, overlay or EditorOverlay())

        return result

    def encode(self, image: Image.Image, quality: float) -> bytes:
        """Encode a rendered image as JPEG (quality 0-1)."""
        return encode_jpeg(image, quality)

    # ========================
    # Layers
    # ========================

    def _prepare_source(self, source: Image.Image, size: tuple[int, int]) -> Image.Image:
        if source.mode != "RGBA":
            source = source.convert("RGBA")
        if source.size != size:
            logger.debug(f"Scaling source {source.size} to template size {size}")
            source = source.resize(size, Image.Resampling.LANCZOS)
        return source

    def _render_color_box(self, image: Image.Image, box: ColorBox) -> Image.Image:
        bounds = _pixel_bounds(Rect.of(box))
        if bounds is None:
            return image

        alpha = _alpha(box.opacity)
        temp = Image.new("RGBA", image.size, (0, 0, 0, 0))

        if box.is_gradient:
            x0, y0, x1, y1 = bounds
            width = x1 - x0 + 1
            start = _hex_to_rgba(box.fill_color, alpha)
            end = _hex_to_rgba(box.fill_color2 or box.fill_color, alpha)
            strip = Image.new("RGBA", (width, 1))
            pixels = []
            for i in range(width):
                # Sample at pixel centers across the box's horizontal extent
                t = min(1.0, max(0.0, (x0 + i + 0.5 - box.x) / box.width))
                pixels.append(tuple(round(s + (e - s) * t) for s, e in zip(start, end)))
            strip.putdata(pixels)
            gradient = strip.resize((width, y1 - y0 + 1), Image.Resampling.NEAREST)
            temp.paste(gradient, (x0, y0))
        else:
            draw = ImageDraw.Draw(temp)
            draw.rectangle(bounds, fill=_hex_to_rgba(box.fill_color, alpha))

        return Image.alpha_composite(image, temp)

    def _render_text_box(
        self,
        image: Image.Image,
        box: TextBox,
        text: str,
        placeholder: bool = False,
    ) -> Image.Image:
        temp = Image.new("RGBA", image.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(temp)

        if box.background_color:
            bounds = _pixel_bounds(Rect.of(box))
            if bounds is not None:
                opacity = 1.0 if box.background_opacity is None else box.background_opacity
                draw.rectangle(bounds, fill=_hex_to_rgba(box.background_color, _alpha(opacity)))

        text = text.replace("\n", " ")
        if text:
            font = find_font(box.font_family, round(box.font_size), box.is_bold)
            alpha = PLACEHOLDER_ALPHA if placeholder else 255
            if box.text_align == TextAlign.CENTER:
                x = box.x + box.width / 2
            elif box.text_align == TextAlign.RIGHT:
                x = box.x + box.width
            else:
                x = box.x
            baseline = box.y + box.font_size
            _draw_text(draw, (x, baseline), text, font, _hex_to_rgba(box.color, alpha), box.text_align)

        return Image.alpha_composite(image, temp)

    # ========================
    # Editor overlay
    # ========================

    def _render_overlay(
        self,
        image: Image.Image,
        template: Template,
        overlay: EditorOverlay,
    ) -> Image.Image:
        temp = Image.new("RGBA", image.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(temp)
        scale = overlay.scale if overlay.scale > 0 else 1.0
        line_width = max(1, round(OUTLINE_WIDTH / scale))

        for color_box in template.color_boxes:
            selected = color_box.id == overlay.selected_box_id
            self._draw_outline(draw, color_box, COLOR_OUTLINE, selected, line_width)

        label_size = round(max(14, min(template.width / 50, 20)))
        label_font = find_font("sans-serif", label_size, bold=True)
        for text_box in template.text_boxes:
            selected = text_box.id == overlay.selected_box_id
            self._draw_outline(draw, text_box, TEXT_OUTLINE, selected, line_width)
            _draw_text(
                draw,
                (text_box.x, text_box.y - LABEL_OFFSET),
                text_box.field_name,
                label_font,
                (255, 255, 255, 255),
                stroke_width=LABEL_STROKE_WIDTH,
                stroke_fill=(0, 0, 0, 255),
            )

        selected_box = template.get_box(overlay.selected_box_id) if overlay.selected_box_id else None
        if selected_box is not None and overlay.show_handles:
            self._draw_handles(draw, selected_box, scale, line_width)

        if overlay.drawing_rect is not None:
            self._draw_live_rect(draw, overlay.drawing_rect, overlay.drawing_kind)

        return Image.alpha_composite(image, temp)

    def _draw_outline(
        self,
        draw: ImageDraw.ImageDraw,
        box: Union[TextBox, ColorBox],
        rgb: tuple[int, int, int],
        selected: bool,
        line_width: int,
    ) -> None:
        bounds = _pixel_bounds(Rect.of(box))
        if bounds is None:
            return
        alpha = 255 if selected else UNSELECTED_OUTLINE_ALPHA
        draw.rectangle(bounds, outline=(*rgb, alpha), width=line_width)

    def _draw_handles(
        self,
        draw: ImageDraw.ImageDraw,
        box: Union[TextBox, ColorBox],
        scale: float,
        line_width: int,
    ) -> None:
        half = HANDLE_SIZE / scale / 2
        for hx, hy in handle_positions(box).values():
            draw.rectangle(
                (round(hx - half), round(hy - half), round(hx + half), round(hy + half)),
                fill=(255, 255, 255, 255),
                outline=(*TEXT_OUTLINE, 255),
                width=line_width,
            )

    def _draw_live_rect(
        self,
        draw: ImageDraw.ImageDraw,
        rect: Rect,
        kind: Optional[BoxKind],
    ) -> None:
        bounds = _pixel_bounds(rect)
        if bounds is None:
            return
        if kind == BoxKind.COLOR:
            draw.rectangle(bounds, fill=(*COLOR_OUTLINE, DRAWING_FILL_ALPHA))
            stroke = (*COLOR_OUTLINE, 255)
        else:
            stroke = (*TEXT_OUTLINE, 255)
        self._draw_dashed_rect(draw, bounds, stroke, OUTLINE_WIDTH)

    def _draw_dashed_rect(
        self,
        draw: ImageDraw.ImageDraw,
        bounds: tuple[int, int, int, int],
        fill: RGBA,
        width: int,
    ) -> None:
        x0, y0, x1, y1 = bounds
        dash, gap = DASH_PATTERN
        step = dash + gap
        for x in range(x0, x1 + 1, step):
            end = min(x + dash - 1, x1)
            draw.line([(x, y0), (end, y0)], fill=fill, width=width)
            draw.line([(x, y1), (end, y1)], fill=fill, width=width)
        for y in range(y0, y1 + 1, step):
            end = min(y + dash - 1, y1)
            draw.line([(x0, y), (x0, end)], fill=fill, width=width)
            draw.line([(x1, y), (x1, end)], fill=fill, width=width)


# ===================
# Convenience functions
# ===================


def render_template(
    template: Template,
    values: Optional[Mapping[str, str]] = None,
    mode: RenderMode = RenderMode.FINAL,
) -> Image.Image:
    """Render a template (convenience function).

    Args:
        template: Template to render
        values: Text per text box id
        mode: Render mode

    Returns:
        Rendered RGBA image
    """
    renderer = TemplateRenderer()
    return renderer.render(template, values, mode)
