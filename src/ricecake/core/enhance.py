"""Fixed image enhancement filters for finished trays."""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageEnhance, ImageFilter

from ricecake.core.errors import ImageProcessingError
from ricecake.core.placeholders import encode_png

logger = logging.getLogger(__name__)

ENHANCEMENT_KINDS: tuple[str, ...] = ("sharpen", "brightness", "contrast", "general")


def _sharpen(image: Image.Image, radius: float = 1.5) -> Image.Image:
    return image.filter(ImageFilter.UnsharpMask(radius=radius, percent=150, threshold=3))


def _brightness(image: Image.Image, factor: float) -> Image.Image:
    return ImageEnhance.Brightness(image).enhance(factor)


def _linear(image: Image.Image, multiplier: float) -> Image.Image:
    # Per-channel v * multiplier, clamped to 255.
    return image.point(lambda value: min(255, int(value * multiplier)))


def enhance_image(data: bytes, kind: str) -> bytes:
    """Apply the named filter to *data* and return PNG bytes.

    Unknown kinds apply the ``general`` chain: sharpen, brightness ×1.1 and
    linear ×1.1.

    Raises:
        ImageProcessingError: *data* is not a decodable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as source:
            image = source.convert("RGB")
    except Exception as e:
        raise ImageProcessingError(f"Cannot decode image for enhancement: {e}") from e

    if kind == "sharpen":
        result = _sharpen(image)
    elif kind == "brightness":
        result = _brightness(image, 1.2)
    elif kind == "contrast":
        result = _linear(image, 1.3)
    else:
        result = _linear(_brightness(_sharpen(image, radius=1.0), 1.1), 1.1)

    logger.info("Applied '%s' enhancement.", kind)
    return encode_png(result)
