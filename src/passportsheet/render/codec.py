from __future__ import annotations

import io
import logging
from typing import Union

import numpy as np
from PIL import Image, ImageOps

from passportsheet.core.errors import CodecFailure

logger = logging.getLogger(__name__)


def flatten_rgb(img: Image.Image) -> Image.Image:
    """
    Return an RGB version of `img`.

    Transparent areas (alpha bands or palette transparency) are composited
    onto white; palette, grayscale and other modes are converted.
    """
    if img.mode == "RGB":
        return img
    if img.has_transparency_data:
        rgba = img.convert("RGBA")
        white = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        return Image.alpha_composite(white, rgba).convert("RGB")
    return img.convert("RGB")


def _to_rgb(img: Image.Image) -> Image.Image:
    """Apply EXIF orientation and return an RGB image."""
    return flatten_rgb(ImageOps.exif_transpose(img))


def load_image_rgb(path: str) -> Image.Image:
    """Load an image file, apply EXIF orientation, return RGB PIL Image."""
    try:
        with Image.open(path) as img:
            img.load()
            return _to_rgb(img)
    except (OSError, ValueError) as e:
        raise CodecFailure(f"Could not decode image {path!r}: {e}") from e


def decode_image(data: bytes) -> Image.Image:
    """Decode encoded image bytes (JPEG, PNG, ...) into an RGB PIL Image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return _to_rgb(img)
    except (OSError, ValueError) as e:
        raise CodecFailure(f"Could not decode image bytes: {e}") from e


def ensure_image(source: Union[Image.Image, bytes]) -> Image.Image:
    """Accept either a decoded image or encoded bytes; always returns RGB."""
    if isinstance(source, Image.Image):
        try:
            return flatten_rgb(source)
        except (OSError, ValueError) as e:
            raise CodecFailure(f"Could not convert {source.mode} image to RGB: {e}") from e
    return decode_image(source)


def encode_image(img: Image.Image, fmt: str = "JPEG", quality: int = 95) -> bytes:
    """
    Encode an image to bytes.

    JPEG output uses a fixed quality and 4:4:4 subsampling at quality 100, so
    identical pixels always give identical bytes.
    """
    buf = io.BytesIO()
    fmt = fmt.upper()
    try:
        if fmt in ("JPEG", "JPG"):
            subsampling = 0 if quality >= 100 else 2
            flatten_rgb(img).save(buf, format="JPEG", quality=quality, subsampling=subsampling, optimize=True)
        else:
            img.save(buf, format=fmt)
    except (OSError, ValueError, KeyError) as e:
        raise CodecFailure(f"Could not encode image as {fmt}: {e}") from e
    data = buf.getvalue()
    logger.debug("Encoded %dx%d image as %s (%d bytes)", img.width, img.height, fmt, len(data))
    return data


def pil_to_np_rgb(img: Image.Image) -> np.ndarray:
    """PIL image -> HxWx3 uint8 RGB array, transparency flattened onto white."""
    return np.asarray(flatten_rgb(img), dtype=np.uint8)
