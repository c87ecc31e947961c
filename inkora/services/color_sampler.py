"""Color sampling for the eyedropper."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from PIL import Image

from inkora.core.geometry import Point
from inkora.utils.exceptions import ColorSamplingUnsupportedError


def rgba_to_hex(r: float, g: float, b: float, a: float = 1.0) -> str:
    """Format a color as uppercase hex.

    Opaque colors (alpha >= 0.99) give ``#RRGGBB``; translucent ones give
    ``#RRGGBBAA``.

    Args:
        r: Red 0-255
        g: Green 0-255
        b: Blue 0-255
        a: Alpha 0-1

    Returns:
        Hex color string
    """

    def to_hex(n: float) -> str:
        return f"{round(n):02X}"

    if a >= 0.99:
        return f"#{to_hex(r)}{to_hex(g)}{to_hex(b)}"
    return f"#{to_hex(r)}{to_hex(g)}{to_hex(b)}{to_hex(a * 255)}"


@runtime_checkable
class ColorSampler(Protocol):
    """Samples a color at a point of the rendered template."""

    def sample_color(self, point: Point) -> str:
        """Return the color at ``point`` (image pixels) as hex.

        Raises:
            ColorSamplingUnsupportedError: The host cannot sample colors
        """
        ...


class ImageColorSampler:
    """Samples pixels of a rendered image."""

    def __init__(self, image: Image.Image) -> None:
        self._image = image.convert("RGBA")

    def sample_rgba(self, point: Point) -> tuple[int, int, int, int]:
        """Pixel at a point, clamped to the image bounds."""
        x = max(0, min(int(point[0]), self._image.width - 1))
        y = max(0, min(int(point[1]), self._image.height - 1))
        return self._image.getpixel((x, y))

    def sample_color(self, point: Point) -> str:
        r, g, b, a = self.sample_rgba(point)
        return rgba_to_hex(r, g, b, a / 255)


class UnsupportedColorSampler:
    """Sampler for hosts without pixel access."""

    def __init__(self, reason: str = "") -> None:
        self._reason = reason

    def sample_color(self, point: Point) -> str:
        raise ColorSamplingUnsupportedError(self._reason)
