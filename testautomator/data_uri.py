"""Screenshot encoding: image files to ``data:`` URIs and back to SDK parts."""

from __future__ import annotations

import base64
import logging
import mimetypes
import re
from pathlib import Path

logger = logging.getLogger(__name__)

IMAGE_TYPE_MESSAGE = "Please upload an image file (PNG, JPG, etc.)."

# Image block media types accepted by the Messages API
SUPPORTED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)


def guess_mime_type(path: str | Path) -> str:
    mime, _ = mimetypes.guess_type(str(path))
    return mime or "application/octet-stream"


def encode_image_file(path: str | Path) -> str:
    """Read an image file and return it as a ``data:<mime>;base64,...`` string.

    Raises ValueError unless the file is a PNG, JPEG, GIF or WebP image,
    the types the model accepts.
    """
    path = Path(path)
    mime = guess_mime_type(path)
    if mime not in SUPPORTED_IMAGE_TYPES:
        raise ValueError(IMAGE_TYPE_MESSAGE)
    raw = path.read_bytes()
    encoded = base64.b64encode(raw).decode("ascii")
    logger.debug("Encoded %s as %s (%d bytes)", path.name, mime, len(raw))
    return f"data:{mime};base64,{encoded}"


def is_data_uri(value: object) -> bool:
    return isinstance(value, str) and _DATA_URI_RE.match(value) is not None


def split_data_uri(value: str) -> tuple[str, str]:
    """Return ``(media_type, base64_payload)`` without decoding the payload."""
    match = _DATA_URI_RE.match(value)
    if not match:
        raise ValueError("Expected a data URI of the form 'data:<mimetype>;base64,<encoded_data>'")
    return match.group("mime"), match.group("data")


def is_supported_image_uri(value: object) -> bool:
    """True for a data URI whose media type the model accepts."""
    if not is_data_uri(value):
        return False
    media_type, _ = split_data_uri(value)
    return media_type in SUPPORTED_IMAGE_TYPES
