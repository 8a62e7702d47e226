"""Photo preparation: data-URL encoding and size reduction before storage."""

from __future__ import annotations

import base64
import binascii
import io
import re

from PIL import Image, ImageOps, UnidentifiedImageError

from memory_box.errors import ImagePreparationError

MAX_EDGE = 1280
JPEG_QUALITY = 82

_DATA_URL_RE = re.compile(
    r"^data:(?P<mime>[^;,]+)?(?:;[^,]*)?;base64,(?P<data>.*)$", re.S
)


def to_data_url(data: bytes, media_type: str) -> str:
    return f"data:{media_type};base64,{base64.b64encode(data).decode()}"


def decode_data_url(url: str) -> tuple[str, bytes]:
    """Split a base64 data URL into ``(media_type, bytes)``."""
    match = _DATA_URL_RE.match(url)
    if match is None:
        raise ValueError("Not a base64 data URL")
    try:
        payload = base64.b64decode(match.group("data"), validate=True)
    except binascii.Error as exc:
        raise ValueError("Malformed base64 payload in data URL") from exc
    return match.group("mime") or "application/octet-stream", payload


def load_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ImagePreparationError("暂时无法处理这张照片，请稍后再试。") from exc
    return ImageOps.exif_transpose(image)


def compress_image(data: bytes, max_edge: int = MAX_EDGE) -> str:
    """Downscale so the longest edge is at most ``max_edge`` and re-encode
    as JPEG. Returns a ``data:image/jpeg`` URL. Never upscales."""
    image = load_image(data)

    longest = max(image.width, image.height) or 1
    scale = min(1.0, max_edge / longest)
    if scale < 1.0:
        size = (round(image.width * scale), round(image.height * scale))
        image = image.resize(size, Image.Resampling.LANCZOS)

    if image.mode != "RGB":
        image = image.convert("RGB")

    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return to_data_url(buffer.getvalue(), "image/jpeg")
