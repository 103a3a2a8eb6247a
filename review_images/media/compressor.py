"""Size-bounded image re-encoding.

The compressor re-encodes an image in its own format with decreasing
quality (JPEG/WEBP) or compression level (PNG) until it fits the byte
budget or the format's floor is reached. It is best effort: the returned
bytes can still be over budget and callers must check.
"""
import logging
from io import BytesIO
from typing import Dict, Tuple

from PIL import Image

from ..core.errors import UnsupportedFormatError

logger = logging.getLogger(__name__)

# mime type -> (Pillow format, start, step, floor)
FORMAT_SCHEDULES: Dict[str, Tuple[str, int, int, int]] = {
    "image/jpeg": ("JPEG", 90, 10, 70),
    "image/jpg": ("JPEG", 90, 10, 70),
    "image/webp": ("WEBP", 90, 10, 70),
    "image/png": ("PNG", 9, 1, 0),
}

SUPPORTED_MIME_TYPES = frozenset(FORMAT_SCHEDULES)


def levels_for(mime_type: str) -> range:
    """Quality/compression levels tried for ``mime_type``, in order."""
    try:
        _, start, step, floor = FORMAT_SCHEDULES[mime_type.lower()]
    except KeyError:
        raise UnsupportedFormatError(f"Unsupported image format: {mime_type}")
    return range(start, floor - 1, -step)


class Compressor:
    def __init__(self, max_size: int):
        self.max_size = max_size

    def compress(self, data: bytes, mime_type: str) -> bytes:
        levels = levels_for(mime_type or "")
        if len(data) <= self.max_size:
            return data

        fmt = FORMAT_SCHEDULES[mime_type.lower()][0]
        image = self._open(data)

        best = data
        for level in levels:
            attempt = self._encode(image, fmt, level)
            logger.debug("compress %s level=%d size=%d max=%d", fmt, level, len(attempt), self.max_size)
            if len(attempt) < len(best):
                best = attempt
            if len(best) <= self.max_size:
                break
        return best

    def _open(self, data: bytes) -> Image.Image:
        try:
            img = Image.open(BytesIO(data))
            img.load()
        except Exception as e:
            raise UnsupportedFormatError(f"Could not decode image: {e}") from e
        return img

    def _encode(self, image: Image.Image, fmt: str, level: int) -> bytes:
        buf = BytesIO()
        if fmt == "PNG":
            image.save(buf, format="PNG", compress_level=level)
        else:
            if fmt == "JPEG" and image.mode not in ("RGB", "L"):
                image = image.convert("RGB")
            image.save(buf, format=fmt, quality=level)
        return buf.getvalue()


def compress(data: bytes, mime_type: str, max_size: int) -> bytes:
    return Compressor(max_size).compress(data, mime_type)
