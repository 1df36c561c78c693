"""Decode image files into Pillow images.

Only the first frame of animated formats is used.
"""

from __future__ import annotations

from pathlib import Path

from PIL import Image

SUPPORTED_FORMATS: dict[str, str] = {
    ".png": "png",
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".gif": "gif",
    ".bmp": "bmp",
    ".webp": "webp",
    ".tif": "tiff",
    ".tiff": "tiff",
}


def detect_format(path: Path) -> str:
    """Detect image format from file extension."""
    suffix = path.suffix.lower()
    if suffix in SUPPORTED_FORMATS:
        return SUPPORTED_FORMATS[suffix]
    raise ValueError(f"Unsupported format: {suffix or path.name}")


def open_image(path: str | Path) -> Image.Image:
    """Open and fully decode an image file.

    Raises:
        FileNotFoundError: if ``path`` does not exist.
        ValueError: if the extension is not a supported image format.
        PIL.UnidentifiedImageError: if the content cannot be decoded.
    """
    local_path = Path(path)
    if not local_path.exists():
        raise FileNotFoundError(f"File not found: {local_path}")
    detect_format(local_path)

    img = Image.open(local_path)
    try:
        img.seek(0)
        img.load()
    except Exception:
        img.close()
        raise
    return img
