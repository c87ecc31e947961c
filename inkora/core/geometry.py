"""Box geometry.

Coordinate transforms, containment, resize handle detection and the handle
resize rules. All coordinates are logical image pixels unless noted.

Works on any object with ``x``, ``y``, ``width`` and ``height`` attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Sequence, TypeVar

from inkora.utils.constants import HANDLE_TOLERANCE, MIN_BOX_SIZE

Point = tuple[float, float]


class BoxLike(Protocol):
    x: float
    y: float
    width: float
    height: float


B = TypeVar("B", bound=BoxLike)


# ===================
# Types
# ===================


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def of(cls, box: BoxLike) -> "Rect":
        return cls(box.x, box.y, box.width, box.height)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class DisplayRect:
    """Where the image is displayed, in client (screen/widget) coordinates."""

    left: float
    top: float
    width: float
    height: float


class ResizeHandle(str, Enum):
    """Resize handles, in hit-test priority order."""

    NW = "nw"
    NE = "ne"
    SW = "sw"
    SE = "se"
    N = "n"
    S = "s"
    W = "w"
    E = "e"


# Edges moved by each handle: (left, top, right, bottom)
_HANDLE_EDGES: dict[ResizeHandle, tuple[bool, bool, bool, bool]] = {
    ResizeHandle.NW: (True, True, False, False),
    ResizeHandle.NE: (False, True, True, False),
    ResizeHandle.SW: (True, False, False, True),
    ResizeHandle.SE: (False, False, True, True),
    ResizeHandle.N: (False, True, False, False),
    ResizeHandle.S: (False, False, False, True),
    ResizeHandle.W: (True, False, False, False),
    ResizeHandle.E: (False, False, True, False),
}


# ===================
# Transforms
# ===================


def to_logical_point(
    client_x: float,
    client_y: float,
    display_rect: DisplayRect,
    image_size: tuple[int, int],
    display_scale: float = 1.0,
) -> Point:
    """Convert a client-space point to image pixels.

    Args:
        client_x: Pointer x in client coordinates
        client_y: Pointer y in client coordinates
        display_rect: Displayed image rectangle in client coordinates
        image_size: (width, height) of the image in pixels
        display_scale: Zoom factor. Informational only, the display rect
            already reflects it.

    Returns:
        (x, y) in image pixels
    """
    image_width, image_height = image_size
    # Multiply first: exact for 1:1 and integer-ratio viewports
    x = (client_x - display_rect.left) * image_width / display_rect.width
    y = (client_y - display_rect.top) * image_height / display_rect.height
    return (x, y)


def normalize_rect(start: Point, end: Point) -> Rect:
    """Rectangle spanned by two corner points, in any drag direction."""
    return Rect(
        x=min(start[0], end[0]),
        y=min(start[1], end[1]),
        width=abs(end[0] - start[0]),
        height=abs(end[1] - start[1]),
    )


# ===================
# Hit testing
# ===================


def point_in_box(point: Point, box: BoxLike) -> bool:
    """Inclusive containment test."""
    px, py = point
    return box.x <= px <= box.x + box.width and box.y <= py <= box.y + box.height


def handle_positions(box: BoxLike) -> dict[ResizeHandle, Point]:
    """Handle centers: four corners and four edge midpoints."""
    x, y, w, h = box.x, box.y, box.width, box.height
    return {
        ResizeHandle.NW: (x, y),
        ResizeHandle.NE: (x + w, y),
        ResizeHandle.SW: (x, y + h),
        ResizeHandle.SE: (x + w, y + h),
        ResizeHandle.N: (x + w / 2, y),
        ResizeHandle.S: (x + w / 2, y + h),
        ResizeHandle.W: (x, y + h / 2),
        ResizeHandle.E: (x + w, y + h / 2),
    }


def hit_test_handle(
    point: Point,
    box: BoxLike,
    tolerance: float = HANDLE_TOLERANCE,
) -> Optional[ResizeHandle]:
    """Find the resize handle under a point.

    Handles are checked in order nw, ne, sw, se, n, s, w, e; the first whose
    center is strictly within ``tolerance`` on both axes wins.

    Args:
        point: Point in image pixels
        box: Box to test
        tolerance: Hit distance in image pixels, not scaled by zoom

    Returns:
        The handle, or None
    """
    px, py = point
    for handle, (hx, hy) in handle_positions(box).items():
        if abs(px - hx) < tolerance and abs(py - hy) < tolerance:
            return handle
    return None


def hit_test_boxes(point: Point, boxes: Sequence[B]) -> Optional[B]:
    """Topmost box containing a point (later boxes are on top)."""
    for box in reversed(boxes):
        if point_in_box(point, box):
            return box
    return None


# ===================
# Resizing
# ===================


def resize_rect(
    rect: Rect,
    handle: ResizeHandle,
    dx: float,
    dy: float,
    min_size: float = MIN_BOX_SIZE,
) -> Rect:
    """Apply a handle drag to a rectangle.

    Left/top handles move the origin and shrink the size; right/bottom
    handles grow the size. Each axis is clamped to ``min_size``
    independently; when a left or top edge hits the floor the opposite edge
    stays where it was.

    Args:
        rect: Current rectangle
        handle: Dragged handle
        dx: Pointer delta x since the last update
        dy: Pointer delta y since the last update
        min_size: Size floor per axis

    Returns:
        New rectangle
    """
    moves_left, moves_top, moves_right, moves_bottom = _HANDLE_EDGES[handle]
    x, y, width, height = rect.x, rect.y, rect.width, rect.height

    if moves_left:
        right = x + width
        width = max(min_size, width - dx)
        x = right - width
    elif moves_right:
        width = max(min_size, width + dx)

    if moves_top:
        bottom = y + height
        height = max(min_size, height - dy)
        y = bottom - height
    elif moves_bottom:
        height = max(min_size, height + dy)

    return Rect(x, y, width, height)
