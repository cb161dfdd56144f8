"""Image normalization for photo-based meal logging."""

import base64
import binascii
import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_MAX_EDGE = 1024
DEFAULT_QUALITY = 70
OUTPUT_MEDIA_TYPE = "image/jpeg"


class ImageDecodeError(ValueError):
    """Raised when image bytes cannot be decoded."""


@dataclass(frozen=True)
class NormalizedImage:
    """Re-encoded image ready for transport."""

    media_type: str
    data: str
    width: int
    height: int

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


def normalize_image(
    raw: bytes,
    *,
    max_edge: int = DEFAULT_MAX_EDGE,
    quality: int = DEFAULT_QUALITY,
) -> NormalizedImage:
    """Downsample and re-encode an image as a base64 JPEG payload.

    The longer edge is scaled down to ``max_edge`` with the aspect ratio
    preserved. Smaller images keep their dimensions but are still re-encoded.
    """
    try:
        with Image.open(io.BytesIO(raw)) as source:
            source.load()
            image = _to_rgb(ImageOps.exif_transpose(source))
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as exc:
        raise ImageDecodeError("Unable to decode image bytes") from exc

    if max(image.size) > max_edge:
        image.thumbnail((max_edge, max_edge), Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality, optimize=True)
    encoded = base64.b64encode(buffer.getvalue()).decode("utf-8")
    logger.debug(
        "Normalized image",
        extra={"width": image.width, "height": image.height, "bytes": len(encoded)},
    )
    return NormalizedImage(
        media_type=OUTPUT_MEDIA_TYPE,
        data=encoded,
        width=image.width,
        height=image.height,
    )


def decode_image_payload(payload: str) -> bytes:
    """Return raw bytes from a data URL or bare base64 string.

    Line breaks and other whitespace inside the base64 text are ignored.
    """
    _, data = parse_data_url(payload)
    data = "".join(data.split())
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError("Image payload is not valid base64") from exc


def parse_data_url(payload: str) -> tuple[str, str]:
    """Split a ``data:<type>;base64,<data>`` string into type and data.

    Bare base64 strings are treated as JPEG.
    """
    if payload.startswith("data:") and ";base64," in payload:
        header, data = payload.split(";base64,", maxsplit=1)
        media_type = header.removeprefix("data:") or OUTPUT_MEDIA_TYPE
        return media_type, data
    return OUTPUT_MEDIA_TYPE, payload


def _to_rgb(image: Image.Image) -> Image.Image:
    if image.mode == "RGB":
        return image
    if image.mode in {"RGBA", "LA", "P"}:
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")
