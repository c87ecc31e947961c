"""Image utility functions.

Decoding embedded images, data URLs, upload compression and thumbnails.
"""

from __future__ import annotations

import base64
import binascii
import io
from typing import Union

from PIL import Image, UnidentifiedImageError

from inkora.utils.constants import (
    COMPRESS_TARGET_KB,
    MAX_IMAGE_DIMENSION,
    THUMBNAIL_QUALITY,
    THUMBNAIL_SIZE,
)
from inkora.utils.exceptions import ImageDecodeError
from inkora.utils.logger import setup_logger

logger = setup_logger(__name__)

ImageData = Union[str, bytes]

_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}


def _to_bytes(data: ImageData) -> bytes:
    """Raw bytes of a data URL, bare base64 string or bytes."""
    if isinstance(data, bytes):
        return data
    if data.startswith("data:"):
        if "," not in data:
            raise ImageDecodeError("malformed data URL")
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"invalid base64: {e}") from e


def decode_image_data(data: ImageData) -> Image.Image:
    """Decode an embedded image.

    Args:
        data: Data URL, bare base64 string or raw bytes

    Returns:
        Fully loaded PIL Image

    Raises:
        ImageDecodeError: Empty, malformed or unreadable data
    """
    if not data:
        raise ImageDecodeError("no image data")

    raw = _to_bytes(data)
    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(str(e)) from e

    return image


def to_data_url(data: bytes, format: str = "JPEG") -> str:
    """Wrap encoded image bytes in a data URL.

    Args:
        data: Encoded image bytes
        format: Image format of ``data``

    Returns:
        ``data:<mime>;base64,...`` string
    """
    mime = _MIME_TYPES.get(format.upper(), "application/octet-stream")
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def flatten_to_rgb(image: Image.Image, background: tuple[int, int, int] = (0, 0, 0)) -> Image.Image:
    """Flatten transparency onto a solid background.

    Transparent pixels become black by default, as a canvas JPEG export does.
    """
    if image.mode == "RGB":
        return image
    rgba = image.convert("RGBA")
    result = Image.new("RGB", rgba.size, background)
    result.paste(rgba, mask=rgba.split()[3])
    return result


def encode_jpeg(image: Image.Image, quality: float) -> bytes:
    """Encode an image as JPEG.

    Args:
        image: Image in any mode
        quality: Quality 0-1

    Returns:
        JPEG bytes
    """
    buffer = io.BytesIO()
    pil_quality = max(1, min(100, round(quality * 100)))
    flatten_to_rgb(image).save(buffer, format="JPEG", quality=pil_quality)
    return buffer.getvalue()


def compress_image(data: ImageData, target_kb: float = COMPRESS_TARGET_KB) -> str:
    """Compress an uploaded image for embedding in a template.

    The longest side is limited to 2000 pixels. JPEG quality starts at 0.9
    and steps down by 0.1 while the result is above ``target_kb`` and the
    quality is above 0.1.

    Args:
        data: Uploaded image (data URL, base64 or bytes)
        target_kb: Target size in KB

    Returns:
        JPEG data URL

    Raises:
        ImageDecodeError: Unreadable upload
    """
    image = decode_image_data(data)
    width, height = image.size

    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        ratio = min(MAX_IMAGE_DIMENSION / width, MAX_IMAGE_DIMENSION / height)
        width = max(1, round(width * ratio))
        height = max(1, round(height * ratio))
        image = image.resize((width, height), Image.Resampling.LANCZOS)
        logger.debug(f"Upload downscaled to {width}x{height}")

    quality = 0.9
    encoded = encode_jpeg(image, quality)
    while len(encoded) / 1024 > target_kb and quality > 0.1:
        quality = round(quality - 0.1, 2)
        encoded = encode_jpeg(image, quality)

    logger.info(f"Image compressed: {len(encoded) / 1024:.1f}KB at quality {quality:.1f}")
    return to_data_url(encoded)


def create_thumbnail(data: ImageData, size: int = THUMBNAIL_SIZE) -> str:
    """Create a square, letterboxed thumbnail.

    Args:
        data: Source image (data URL, base64 or bytes)
        size: Side length of the square thumbnail

    Returns:
        JPEG data URL

    Raises:
        ImageDecodeError: Unreadable source
    """
    image = decode_image_data(data).convert("RGBA")
    ratio = min(size / image.width, size / image.height)
    width = max(1, round(image.width * ratio))
    height = max(1, round(image.height * ratio))
    resized = image.resize((width, height), Image.Resampling.LANCZOS)

    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    canvas.paste(resized, ((size - width) // 2, (size - height) // 2), resized)
    return to_data_url(encode_jpeg(canvas, THUMBNAIL_QUALITY))
