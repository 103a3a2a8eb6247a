import os
import re
import uuid
from typing import Optional, Tuple

_EXT_BY_MIME = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}

_UNSAFE = re.compile(r"[^a-z0-9]")


def sanitize_extension(original_filename: Optional[str], mime_type: Optional[str] = None) -> str:
    """Return a lowercase ``.ext`` made only of ASCII letters and digits.

    Falls back to the extension implied by ``mime_type`` when the original
    name has none worth keeping.
    """
    ext = os.path.splitext(os.path.basename(original_filename or ""))[1]
    ext = _UNSAFE.sub("", ext.lower())[:10]
    if ext:
        return f".{ext}"
    return _EXT_BY_MIME.get((mime_type or "").lower(), "")


def generate_filename(original_filename: Optional[str], mime_type: Optional[str] = None) -> Tuple[str, str]:
    """Return ``(image_id, filename)``; the filename is the id plus extension."""
    image_id = uuid.uuid4().hex
    return image_id, f"{image_id}{sanitize_extension(original_filename, mime_type)}"
