"""
Raster drawing backend.

The compositor and crop extractor only talk to `RasterCanvas`, a protocol
covering the four drawing primitives they need. `PillowCanvas` implements it
on a PIL image, with OpenCV doing the resampling.
"""

from __future__ import annotations

from typing import Protocol, Tuple

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from passportsheet.render.codec import flatten_rgb, pil_to_np_rgb

Box = Tuple[float, float, float, float]
Color = Tuple[int, int, int]

WHITE: Color = (255, 255, 255)
BLACK: Color = (0, 0, 0)


class RasterCanvas(Protocol):
    @property
    def size(self) -> Tuple[int, int]: ...

    def fill_rect(self, box: Box, color: Color) -> None: ...

    def draw_image(self, image: Image.Image, src_box: Box, dst_box: Box) -> None: ...

    def stroke_rect(self, box: Box, color: Color, width: int = 1) -> None: ...

    def draw_text(self, text: str, x: float, y: float, color: Color, font_size: int) -> None: ...

    def to_image(self) -> Image.Image: ...


def snap_box(box: Box) -> Tuple[int, int, int, int]:
    """Round a float box to whole pixels, edges rounded independently."""
    left, top, right, bottom = box
    return int(round(left)), int(round(top)), int(round(right)), int(round(bottom))


def _is_whole(box: Box, eps: float = 1e-6) -> bool:
    return all(abs(v - round(v)) < eps for v in box)


def resample_region(arr: np.ndarray, src_box: Box, out_w: int, out_h: int) -> np.ndarray:
    """
    Resample `src_box` of an HxWx3 array into an out_w x out_h array.

    Whole-pixel regions go through cv2.resize (INTER_AREA when shrinking,
    INTER_LANCZOS4 when enlarging). Sub-pixel regions are mapped with a
    bilinear affine warp that repeats the edge pixels instead of sampling
    past them.
    """
    if out_w <= 0 or out_h <= 0:
        raise ValueError(f"Output size must be positive, got {out_w}x{out_h}")
    left, top, right, bottom = src_box
    src_w = right - left
    src_h = bottom - top

    if _is_whole(src_box):
        l, t, r, b = snap_box(src_box)
        region = np.ascontiguousarray(arr[t:b, l:r])
        if region.shape[1] == out_w and region.shape[0] == out_h:
            return region.copy()
        shrinking = out_w < region.shape[1] and out_h < region.shape[0]
        interp = cv2.INTER_AREA if shrinking else cv2.INTER_LANCZOS4
        return cv2.resize(region, (out_w, out_h), interpolation=interp)

    sx = src_w / out_w
    sy = src_h / out_h
    # Maps output pixel centers back onto source pixel centers.
    m = np.array(
        [
            [sx, 0.0, left + 0.5 * sx - 0.5],
            [0.0, sy, top + 0.5 * sy - 0.5],
        ],
        dtype=np.float64,
    )
    return cv2.warpAffine(
        arr,
        m,
        (out_w, out_h),
        flags=cv2.INTER_LINEAR | cv2.WARP_INVERSE_MAP,
        borderMode=cv2.BORDER_REPLICATE,
    )


def resize_image(image: Image.Image, width: int, height: int) -> Image.Image:
    """Whole image resampled to width x height, as RGB."""
    out = resample_region(pil_to_np_rgb(image), (0, 0, image.width, image.height), width, height)
    return Image.fromarray(out)


class PillowCanvas:
    """A white RGB canvas. Each instance owns its own pixel buffer."""

    def __init__(self, width: int, height: int, background: Color = WHITE):
        if width <= 0 or height <= 0:
            raise ValueError(f"Canvas size must be positive, got {width}x{height}")
        self._img = Image.new("RGB", (width, height), background)
        self._draw = ImageDraw.Draw(self._img)

    @property
    def size(self) -> Tuple[int, int]:
        return self._img.size

    def fill_rect(self, box: Box, color: Color) -> None:
        l, t, r, b = snap_box(box)
        if r <= l or b <= t:
            return
        self._draw.rectangle([l, t, r - 1, b - 1], fill=color)

    def draw_image(self, image: Image.Image, src_box: Box, dst_box: Box) -> None:
        l, t, r, b = snap_box(dst_box)
        if r <= l or b <= t:
            return
        if tuple(src_box) == (0, 0, image.width, image.height) and (r - l, b - t) == image.size:
            # Already at the destination size.
            self._img.paste(flatten_rgb(image), (l, t))
            return
        arr = pil_to_np_rgb(image)
        out = resample_region(arr, src_box, r - l, b - t)
        self._img.paste(Image.fromarray(out), (l, t))

    def stroke_rect(self, box: Box, color: Color, width: int = 1) -> None:
        l, t, r, b = snap_box(box)
        if r <= l or b <= t:
            return
        self._draw.rectangle([l, t, r - 1, b - 1], outline=color, width=width)

    def draw_text(self, text: str, x: float, y: float, color: Color, font_size: int) -> None:
        """Draw `text` horizontally centered on x with its baseline at y."""
        font = ImageFont.load_default(size=font_size)
        self._draw.text((x, y), text, fill=color, font=font, anchor="ms")

    def to_image(self) -> Image.Image:
        return self._img.copy()
