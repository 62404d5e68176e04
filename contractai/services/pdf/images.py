"""Image decoding/encoding helpers for the PDF pipeline"""

import base64
import binascii
import io
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader

from .errors import PdfRenderError
from .layout import PageLayout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    format: str  # "PNG" or "JPEG"

    def reader(self) -> ImageReader:
        return ImageReader(io.BytesIO(self.data))


def decode_data_url(value: Optional[str]) -> Optional[bytes]:
    """Return the payload of a data:image/...;base64 URL, or None if it is not one"""
    if not value or not value.startswith("data:image/"):
        return None
    header, _, payload = value.partition(",")
    if ";base64" not in header or not payload:
        return None
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"⚠️ Invalid base64 image payload: {e}")
        return None


def flatten_to_white(image: Image.Image) -> Image.Image:
    """Composite any transparency onto opaque white so the PDF shows no artifacts"""
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def open_image(data: bytes) -> Image.Image:
    """Decode image bytes fully (raises PdfRenderError when they are not an image)"""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise PdfRenderError(f"Could not decode image: {e}") from e
    return image


def image_reader(data: bytes) -> ImageReader:
    """Build a reportlab reader for arbitrary image bytes, keeping alpha when present"""
    image = open_image(data)
    if image.mode not in ("RGB", "RGBA", "L"):
        image = image.convert("RGBA")
    return ImageReader(image)


def encode_segment(image: Image.Image, layout: PageLayout) -> EncodedImage:
    """
    Encode a page bitmap, preferring lossless PNG.

    A PNG above `layout.lossless_limit_bytes` (or one that fails to encode) is
    re-encoded as high quality JPEG. The degradation is silent apart from the log.
    """
    try:
        buffer = io.BytesIO()
        image.save(buffer, format="PNG", optimize=False)
        data = buffer.getvalue()
        if len(data) <= layout.lossless_limit_bytes:
            return EncodedImage(data=data, format="PNG")
        logger.info(
            f"🗜️ PNG segment is {len(data) / (1024 * 1024):.1f}MB, "
            f"re-encoding as JPEG (quality {layout.lossy_quality})"
        )
    except (OSError, ValueError) as e:
        logger.warning(f"⚠️ PNG encoding failed, falling back to JPEG: {e}")

    try:
        buffer = io.BytesIO()
        flatten_to_white(image).save(buffer, format="JPEG", quality=layout.lossy_quality)
        return EncodedImage(data=buffer.getvalue(), format="JPEG")
    except (OSError, ValueError) as e:
        raise PdfRenderError(f"Failed to encode page image: {e}") from e
