from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from PIL import Image

from passportsheet.core.errors import InvalidRegion
from passportsheet.core.models import CROP_JPEG_QUALITY, DEFAULT_CROP_WIDTH, CropRect
from passportsheet.render.canvas import WHITE, PillowCanvas, RasterCanvas
from passportsheet.render.codec import encode_image, ensure_image

logger = logging.getLogger(__name__)

# Float crop rectangles scaled from display coordinates can overshoot the
# image edge by rounding noise.
_EDGE_TOLERANCE_PX = 1e-6

# Relative difference allowed between a crop's ratio and `expected_aspect`.
ASPECT_TOLERANCE = 0.01

CanvasFactory = Callable[[int, int], RasterCanvas]


def validate_crop_rect(rect: CropRect, image_w: int, image_h: int) -> None:
    """Raise InvalidRegion unless `rect` is non-degenerate and inside the image."""
    if rect.width <= 0 or rect.height <= 0:
        raise InvalidRegion(f"Crop rectangle must have positive size, got {rect.width}x{rect.height}")
    if rect.x < -_EDGE_TOLERANCE_PX or rect.y < -_EDGE_TOLERANCE_PX:
        raise InvalidRegion(f"Crop origin ({rect.x}, {rect.y}) is outside the image")
    if rect.x + rect.width > image_w + _EDGE_TOLERANCE_PX or rect.y + rect.height > image_h + _EDGE_TOLERANCE_PX:
        raise InvalidRegion(
            f"Crop rectangle {rect.box} extends past the {image_w}x{image_h} image"
        )


def crop_output_size(rect: CropRect, target_width: int) -> Tuple[int, int]:
    """Output (width, height) keeping the crop rectangle's own aspect ratio."""
    if target_width <= 0:
        raise ValueError(f"target_width must be > 0, got {target_width}")
    return target_width, max(1, int(round(target_width / rect.aspect_ratio)))


def extract_crop_image(
    source: Image.Image,
    rect: CropRect,
    target_width: int = DEFAULT_CROP_WIDTH,
    expected_aspect: Optional[float] = None,
    canvas_factory: CanvasFactory = PillowCanvas,
) -> Image.Image:
    """
    Cut `rect` out of `source` and resample it to `target_width` pixels wide.

    The output height follows the rectangle's own ratio. Pass `expected_aspect`
    (the photo standard's width / height) to reject rectangles that drifted
    from it. Non-RGB sources are converted (transparency onto white); the
    source image itself is not modified.

    Raises:
      InvalidRegion: degenerate or out-of-bounds rectangle, or ratio drift.
      ValueError: non-positive target width.
      CodecFailure: source mode cannot be converted to RGB.
    """
    source = ensure_image(source)
    validate_crop_rect(rect, source.width, source.height)
    if expected_aspect is not None:
        drift = abs(rect.aspect_ratio - expected_aspect) / expected_aspect
        if drift > ASPECT_TOLERANCE:
            raise InvalidRegion(
                f"Crop ratio {rect.aspect_ratio:.4f} differs from the expected {expected_aspect:.4f}"
            )

    out_w, out_h = crop_output_size(rect, target_width)
    canvas = canvas_factory(out_w, out_h)
    canvas.fill_rect((0, 0, out_w, out_h), WHITE)
    canvas.draw_image(source, rect.box, (0, 0, out_w, out_h))
    logger.debug("Cropped %s from %dx%d source into %dx%d", rect.box, source.width, source.height, out_w, out_h)
    return canvas.to_image()


def extract_crop(
    source: Image.Image,
    rect: CropRect,
    target_width: int = DEFAULT_CROP_WIDTH,
    expected_aspect: Optional[float] = None,
) -> bytes:
    """extract_crop_image() encoded as maximum-quality JPEG."""
    img = extract_crop_image(source, rect, target_width=target_width, expected_aspect=expected_aspect)
    return encode_image(img, fmt="JPEG", quality=CROP_JPEG_QUALITY)
