"""Template and box data models.

Data model for the template editor: a source image annotated with text boxes
(substituted at generation time) and color boxes (solid or gradient fills).

Features:
    - TextBox / ColorBox models with hex color validation
    - Template with two ordered box sequences (array order is z-order)
    - Box mutation operations that keep ids unique and sizes above the floor
    - camelCase JSON record serialization
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from enum import Enum
from typing import Any, Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from inkora.utils.constants import MAX_DEFAULT_FONT_SIZE, MIN_BOX_SIZE
from inkora.utils.exceptions import MissingSourceImageError
from inkora.utils.helpers import generate_short_id, now_ms


# ===================
# Constants
# ===================

DEFAULT_FONT_FAMILY = "sans-serif"
DEFAULT_FONT_WEIGHT = "normal"
DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_FILL_COLOR = "#FFFFFF"

TEXT_BOX_PREFIX = "text"
COLOR_BOX_PREFIX = "color"

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")

# Fields that describe a box's rectangle
GEOMETRY_FIELDS = ("x", "y", "width", "height")


# ===================
# Enums
# ===================


class TextAlign(str, Enum):
    """Horizontal text alignment."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class FillType(str, Enum):
    """Color box fill type."""

    SOLID = "solid"
    GRADIENT = "gradient"  # left-to-right linear gradient


class BoxKind(str, Enum):
    """Which sequence a box lives in."""

    TEXT = "text"
    COLOR = "color"


# ===================
# Helpers
# ===================


def normalize_hex_color(value: str) -> str:
    """Validate a ``#RRGGBB`` color and normalize it to uppercase.

    Args:
        value: Hex color, any case

    Returns:
        Uppercase hex color

    Raises:
        ValueError: Not a 6-digit hex color
    """
    if not isinstance(value, str) or not _HEX_COLOR.match(value.strip()):
        raise ValueError(f"Color must be a #RRGGBB hex value, got: {value!r}")
    return value.strip().upper()


def generate_box_id(kind: BoxKind) -> str:
    """Generate a unique box id such as ``text_1a2b3c4d``."""
    prefix = TEXT_BOX_PREFIX if kind == BoxKind.TEXT else COLOR_BOX_PREFIX
    return f"{prefix}_{generate_short_id()}"


def generate_template_id() -> str:
    """Generate a template id such as ``template_1718000000000``."""
    return f"template_{now_ms()}"


class _RecordModel(BaseModel):
    """Base for models persisted with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ===================
# Boxes
# ===================


class BoxElement(_RecordModel):
    """Common rectangle of text and color boxes.

    Coordinates are image pixels.

    Attributes:
        id: Id, unique within the template
        x: Left edge
        y: Top edge
        width: Width
        height: Height
    """

    id: str
    x: float = 0.0
    y: float = 0.0
    width: float = Field(default=100.0, gt=0)
    height: float = Field(default=100.0, gt=0)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(left, top, right, bottom)."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


class TextBox(BoxElement):
    """A box that renders substituted text.

    Example:
        >>> box = TextBox.create(10, 10, 200, 40, field_name="Name")
        >>> box.font_size
        24.0
    """

    kind: BoxKind = Field(default=BoxKind.TEXT, exclude=True)

    field_name: str = Field(default="Field 1", max_length=100)
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: float = Field(default=24.0, gt=0)
    font_weight: str = DEFAULT_FONT_WEIGHT
    text_align: TextAlign = TextAlign.LEFT
    color: str = DEFAULT_TEXT_COLOR

    # A background color means a filled panel is drawn behind the text
    background_color: Optional[str] = None
    background_opacity: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        return normalize_hex_color(v)

    @field_validator("background_color")
    @classmethod
    def validate_background_color(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        return normalize_hex_color(v)

    @property
    def is_bold(self) -> bool:
        """Whether the font weight is bold."""
        weight = self.font_weight.strip().lower()
        return weight == "bold" or (weight.isdigit() and int(weight) >= 600)

    @classmethod
    def create(
        cls,
        x: float,
        y: float,
        width: float,
        height: float,
        field_name: str,
    ) -> "TextBox":
        """Create a text box with the editor's defaults.

        The font size follows the box height (60%), capped at 48.

        Args:
            x: Left edge
            y: Top edge
            width: Width
            height: Height
            field_name: Label shown to the data-entry user

        Returns:
            New TextBox with a fresh id
        """
        return cls(
            id=generate_box_id(BoxKind.TEXT),
            x=x,
            y=y,
            width=width,
            height=height,
            field_name=field_name,
            font_size=min(height * 0.6, MAX_DEFAULT_FONT_SIZE),
        )


class ColorBox(BoxElement):
    """A box that paints a solid or gradient fill.

    ``fill_color2`` is required for gradients and ignored for solid fills.
    """

    kind: BoxKind = Field(default=BoxKind.COLOR, exclude=True)

    fill_type: FillType = FillType.SOLID
    fill_color: str = DEFAULT_FILL_COLOR
    fill_color2: Optional[str] = None
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)

    @field_validator("fill_color")
    @classmethod
    def validate_fill_color(cls, v: str) -> str:
        return normalize_hex_color(v)

    @field_validator("fill_color2")
    @classmethod
    def validate_fill_color2(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        return normalize_hex_color(v)

    @model_validator(mode="after")
    def check_gradient(self) -> "ColorBox":
        if self.fill_type == FillType.GRADIENT and not self.fill_color2:
            raise ValueError("Gradient fill requires fill_color2")
        return self

    @property
    def is_gradient(self) -> bool:
        """Whether this box paints a gradient."""
        return self.fill_type == FillType.GRADIENT and self.fill_color2 is not None

    @classmethod
    def create(cls, x: float, y: float, width: float, height: float) -> "ColorBox":
        """Create an opaque solid white color box."""
        return cls(
            id=generate_box_id(BoxKind.COLOR),
            x=x,
            y=y,
            width=width,
            height=height,
        )


AnyBox = Union[TextBox, ColorBox]


# ===================
# Template
# ===================


class Template(_RecordModel):
    """An image annotated with text and color boxes.

    Boxes are kept in two ordered sequences; array order is z-order (later
    boxes are on top). Every mutation advances ``updated_at``.

    Attributes:
        id: Template id (``template_{timestamp}``)
        name: Display name
        image: Embedded source image (data URL or base64)
        thumbnail: Embedded thumbnail (data URL)
        width: Image width in pixels
        height: Image height in pixels
        text_boxes: Text boxes in z-order
        color_boxes: Color boxes in z-order
        created_at: Creation time (ms since epoch)
        updated_at: Last mutation time (ms since epoch)

    Example:
        >>> template = Template.create(image=data_url, width=800, height=600)
        >>> box = template.add_text_box(TextBox.create(10, 10, 200, 40, "Name"))
        >>> template.delete_box(box.id)
        True
    """

    id: str = Field(default_factory=generate_template_id)
    name: str = Field(default="Untitled template", max_length=200)
    image: str = ""
    thumbnail: str = ""
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    text_boxes: list[TextBox] = Field(default_factory=list)
    color_boxes: list[ColorBox] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    @classmethod
    def create(
        cls,
        image: str,
        width: int,
        height: int,
        name: Optional[str] = None,
        thumbnail: str = "",
    ) -> "Template":
        """Create a new empty template for an uploaded image.

        Args:
            image: Embedded source image
            width: Image width
            height: Image height
            name: Display name, defaults to a timestamped name
            thumbnail: Embedded thumbnail

        Returns:
            New Template

        Raises:
            MissingSourceImageError: No image data
        """
        if not image:
            raise MissingSourceImageError()
        now = now_ms()
        return cls(
            id=f"template_{now}",
            name=name or f"Template {datetime.now():%Y-%m-%d %H:%M:%S}",
            image=image,
            thumbnail=thumbnail,
            width=width,
            height=height,
            created_at=now,
            updated_at=now,
        )

    # ========================
    # Queries
    # ========================

    @property
    def size(self) -> tuple[int, int]:
        """(width, height)."""
        return (self.width, self.height)

    @property
    def box_count(self) -> int:
        """Total number of boxes."""
        return len(self.text_boxes) + len(self.color_boxes)

    def iter_boxes(self) -> Iterator[AnyBox]:
        """All boxes, color boxes first (render order)."""
        yield from self.color_boxes
        yield from self.text_boxes

    def get_box(self, box_id: str) -> Optional[AnyBox]:
        """Find a box in either sequence."""
        return self.get_text_box(box_id) or self.get_color_box(box_id)

    def get_text_box(self, box_id: str) -> Optional[TextBox]:
        for box in self.text_boxes:
            if box.id == box_id:
                return box
        return None

    def get_color_box(self, box_id: str) -> Optional[ColorBox]:
        for box in self.color_boxes:
            if box.id == box_id:
                return box
        return None

    def has_box(self, box_id: str) -> bool:
        return self.get_box(box_id) is not None

    def next_field_name(self) -> str:
        """Default field name for the next text box."""
        return f"Field {len(self.text_boxes) + 1}"

    # ========================
    # Mutations
    # ========================

    def touch(self) -> None:
        """Advance ``updated_at``; strictly increasing even within one millisecond."""
        self.updated_at = max(now_ms(), self.updated_at + 1)

    def add_text_box(self, box: TextBox) -> TextBox:
        """Append a text box on top of the existing ones.

        Raises:
            ValueError: The id is already used in this template
        """
        self._check_new_box(box)
        self.text_boxes.append(box)
        self.touch()
        return box

    def add_color_box(self, box: ColorBox) -> ColorBox:
        """Append a color box on top of the existing ones.

        Raises:
            ValueError: The id is already used in this template
        """
        self._check_new_box(box)
        self.color_boxes.append(box)
        self.touch()
        return box

    def update_box(
        self,
        box_id: str,
        *,
        min_size: float = MIN_BOX_SIZE,
        **updates: Any,
    ) -> Optional[AnyBox]:
        """Update fields of a box in place (same position in its sequence).

        The result is validated as a whole, so ``fill_type`` and
        ``fill_color2`` can be changed together. Width and height are
        clamped to ``min_size``. The id cannot change.

        Args:
            box_id: Box id
            min_size: Size floor per axis
            **updates: Field values by Python name

        Returns:
            The updated box, or None when no box has this id

        Raises:
            pydantic.ValidationError: Invalid field values
        """
        updates.pop("id", None)
        for key in ("width", "height"):
            if key in updates and updates[key] is not None:
                updates[key] = max(min_size, updates[key])

        for sequence in (self.text_boxes, self.color_boxes):
            for index, box in enumerate(sequence):
                if box.id != box_id:
                    continue
                data = box.model_dump()
                data.update(updates)
                updated = type(box).model_validate(data)
                sequence[index] = updated
                self.touch()
                return updated
        return None

    def move_box(self, box_id: str, x: float, y: float) -> Optional[AnyBox]:
        """Move a box's origin. Boxes may extend past the image edges."""
        box = self.get_box(box_id)
        if box is None:
            return None
        box.x = x
        box.y = y
        self.touch()
        return box

    def set_box_rect(
        self,
        box_id: str,
        x: float,
        y: float,
        width: float,
        height: float,
        min_size: float = MIN_BOX_SIZE,
    ) -> Optional[AnyBox]:
        """Replace a box's rectangle, clamping the size to ``min_size``."""
        box = self.get_box(box_id)
        if box is None:
            return None
        box.x = x
        box.y = y
        box.width = max(min_size, width)
        box.height = max(min_size, height)
        self.touch()
        return box

    def delete_box(self, box_id: str) -> bool:
        """Remove a box from whichever sequence holds it.

        Returns:
            Whether a box was removed
        """
        text_before = len(self.text_boxes)
        color_before = len(self.color_boxes)
        self.text_boxes = [b for b in self.text_boxes if b.id != box_id]
        self.color_boxes = [b for b in self.color_boxes if b.id != box_id]
        removed = len(self.text_boxes) != text_before or len(self.color_boxes) != color_before
        if removed:
            self.touch()
        return removed

    def rename(self, name: str) -> None:
        self.name = name
        self.touch()

    def _check_new_box(self, box: AnyBox) -> None:
        if self.has_box(box.id):
            raise ValueError(f"Box id already exists: {box.id}")

    # ========================
    # Copies and serialization
    # ========================

    def snapshot(self) -> "Template":
        """Deep copy suitable for persisting while editing continues."""
        return self.model_copy(deep=True)

    def duplicate(self) -> "Template":
        """Copy with a new id, a "(Copy)" name and fresh timestamps."""
        now = now_ms()
        copy = self.snapshot()
        copy.id = f"template_{now}"
        copy.name = f"{self.name} (Copy)"
        copy.created_at = now
        copy.updated_at = now
        return copy

    def to_record(self) -> dict[str, Any]:
        """Persisted form with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Template":
        """Build a template from its persisted form."""
        return cls.model_validate(record)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_record(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "Template":
        return cls.from_record(json.loads(json_str))
