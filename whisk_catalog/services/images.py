"""Image documents, base64 file helpers and dimension checks."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from PIL import Image, UnidentifiedImageError

from whisk_catalog.core.exceptions import ImageFileError
from whisk_catalog.core.logging import get_logger


logger = get_logger("services.images")


@dataclass
class ImageDecodeResult:
    """Outcome of decoding an image file. Failures carry ``error``."""

    path: Path
    ok: bool
    width: int = 0
    height: int = 0
    error: str | None = None

    @property
    def has_positive_dimensions(self) -> bool:
        return self.ok and self.width > 0 and self.height > 0


def read_dimensions(path: str | Path) -> ImageDecodeResult:
    """Decode ``path`` and report its pixel size."""
    path = Path(path)
    try:
        with Image.open(path) as img:
            img.load()
            width, height = img.size
    except (OSError, UnidentifiedImageError, ValueError) as exc:
        logger.warning("Could not decode image %s: %s", path, exc)
        return ImageDecodeResult(path=path, ok=False, error=str(exc))
    return ImageDecodeResult(path=path, ok=True, width=width, height=height)


def read_file_base64(path: str | Path) -> str:
    """Return the base64 text of a non-empty readable file."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ImageFileError(
            message=f"Cannot read image file {path}",
            details={"path": str(path), "reason": str(exc)},
        ) from exc
    if not data:
        raise ImageFileError(
            message=f"Image file {path} is empty",
            details={"path": str(path)},
        )
    return base64.b64encode(data).decode("ascii")


def write_file_base64(path: str | Path, encoded: str | bytes) -> Path:
    """Decode base64 ``encoded`` and write the bytes to ``path``."""
    path = Path(path)
    try:
        data = base64.b64decode(encoded, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise ImageFileError(
            message=f"Invalid base64 payload for {path}",
            details={"path": str(path)},
        ) from exc
    path.write_bytes(data)
    return path


def create_image_doc(path: str | Path) -> dict[str, Any]:
    """Document holding a whole image: ``{"size": ..., "data": <base64>}``."""
    path = Path(path)
    payload = read_file_base64(path)
    return {"size": str(path.stat().st_size), "data": payload}


def create_doc(message: str) -> dict[str, Any]:
    """A plain ``{"message": ...}`` document with no image in it."""
    return {"message": message}
