"""Archive packaging of generated images."""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from inkora.utils.constants import ARCHIVE_PREFIX
from inkora.utils.exceptions import StorageWriteError
from inkora.utils.helpers import format_file_size
from inkora.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class GeneratedImage:
    """One generated output.

    Attributes:
        name: File name inside the archive, e.g. ``001_Asha_Rao.jpg``
        data: Encoded image bytes
    """

    name: str
    data: bytes


def archive_filename(on: Optional[date] = None) -> str:
    """Archive name for a generation run, e.g. ``inkora_invitations_2024-06-01.zip``."""
    on = on or date.today()
    return f"{ARCHIVE_PREFIX}_{on.isoformat()}.zip"


def create_zip(images: Sequence[GeneratedImage]) -> bytes:
    """Package images into a ZIP archive, in order.

    JPEG data is already compressed, so entries are stored.

    Args:
        images: Generated images

    Returns:
        ZIP bytes
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as archive:
        for image in images:
            archive.writestr(image.name, image.data)

    logger.debug(f"Archive created: {len(images)} files, {format_file_size(buffer.tell())}")
    return buffer.getvalue()


def write_archive(path: Path | str, images: Sequence[GeneratedImage]) -> Path:
    """Write a ZIP archive of images to disk.

    Args:
        path: Target file, or a directory to write a dated archive into
        images: Generated images

    Returns:
        Path of the written archive

    Raises:
        StorageWriteError: The file could not be written
    """
    path = Path(path)
    if path.is_dir():
        path = path / archive_filename()

    try:
        path.write_bytes(create_zip(images))
    except OSError as e:
        logger.error(f"Failed to write archive {path}: {e}")
        raise StorageWriteError(str(e)) from e

    logger.info(f"Archive written: {path}")
    return path
