"""
Sheet layout geometry.

Pure numeric derivation behind the compositor: unit conversion, tile sizing,
grid fitting and centering. Nothing here touches pixels, so every function is
safe to call from any thread.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from passportsheet.core.errors import DegenerateGrid
from passportsheet.core.models import (
    DPI,
    MM_PER_INCH,
    CropRect,
    LayoutOptions,
    Orientation,
    PhotoStandard,
    SheetSize,
)

logger = logging.getLogger(__name__)


def mm_to_px(mm: float, dpi: int = DPI) -> float:
    """Convert millimeters to (unrounded) pixels at `dpi`."""
    return (mm / MM_PER_INCH) * dpi


def sheet_pixel_size(
    sheet_size: SheetSize | str,
    orientation: Orientation | str = Orientation.PORTRAIT,
    dpi: int = DPI,
) -> Tuple[int, int]:
    """
    Pixel (width, height) of a sheet.

    Raises UnsupportedSheetSize for unknown sizes or orientations.
    """
    size = SheetSize.parse(sheet_size)
    orient = Orientation.parse(orientation)
    w_mm, h_mm = size.dimensions_mm
    width = int(round(mm_to_px(w_mm, dpi)))
    height = int(round(mm_to_px(h_mm, dpi)))
    if orient is Orientation.LANDSCAPE:
        width, height = height, width
    return width, height


def fit_in_slot(slot_w: float, slot_h: float, aspect: float) -> Tuple[float, float, str]:
    """
    Largest (width, height) with `aspect` that fits a slot.

    Returns the binding side as well: "height" when the slot is wider than the
    photo, "width" otherwise.
    """
    if slot_w / slot_h > aspect:
        return slot_h * aspect, slot_h, "height"
    return slot_w, slot_w / aspect, "width"


def fit_count(available: float, item: float, gap: float) -> int:
    """How many `item`-sized spans with `gap` between them fit in `available`."""
    return int(math.floor((available + gap) / (item + gap)))


@dataclass(frozen=True)
class TilePlacement:
    row: int
    col: int
    x: float
    y: float
    width: float
    height: float

    @property
    def box(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class SheetLayout:
    """
    Resolved geometry of one print sheet, all distances in pixels.

    binding:
        "auto" for auto-fit; "width" or "height" for the side that limited
        tile size in forced-grid mode.
    """
    sheet_width: int
    sheet_height: int
    gap: float
    margin: float
    cols: int
    rows: int
    tile_width: float
    tile_height: float
    binding: str

    @property
    def grid_width(self) -> float:
        return self.cols * self.tile_width + (self.cols - 1) * self.gap

    @property
    def grid_height(self) -> float:
        return self.rows * self.tile_height + (self.rows - 1) * self.gap

    @property
    def start_x(self) -> float:
        return (self.sheet_width - self.grid_width) / 2

    @property
    def start_y(self) -> float:
        return (self.sheet_height - self.grid_height) / 2

    @property
    def capacity(self) -> int:
        return self.cols * self.rows

    @property
    def space_below(self) -> float:
        return self.sheet_height - (self.start_y + self.grid_height)

    def effective_limit(self, limit_count: Optional[int] = None) -> int:
        return limit_count if limit_count is not None else self.capacity


def plan_layout(
    standard: PhotoStandard,
    sheet_size: SheetSize | str,
    orientation: Orientation | str,
    options: LayoutOptions,
    dpi: int = DPI,
) -> SheetLayout:
    """
    Resolve grid dimensions, tile size and centering for a sheet.

    With `options.force_grid` the tile is the largest one with the standard's
    aspect ratio that fits each slot. Otherwise the tile is the standard's
    physical size and the grid is as large as fits inside the margins.

    Raises:
      UnsupportedSheetSize: unknown sheet size or orientation.
      DegenerateGrid: no usable column or row, or no room for a tile.
    """
    sheet_w, sheet_h = sheet_pixel_size(sheet_size, orientation, dpi)
    gap = mm_to_px(options.gap_mm, dpi)
    margin = gap

    if options.force_grid is not None:
        cols = options.force_grid.cols
        rows = options.force_grid.rows
        if cols < 1 or rows < 1:
            raise DegenerateGrid(f"Forced grid needs at least 1 column and 1 row, got {cols}x{rows}")

        available_w = sheet_w - 2 * margin - (cols - 1) * gap
        available_h = sheet_h - 2 * margin - (rows - 1) * gap
        if available_w <= 0 or available_h <= 0:
            raise DegenerateGrid(
                f"No room for a {cols}x{rows} grid with {options.gap_mm}mm gaps on a {sheet_w}x{sheet_h}px sheet"
            )
        tile_w, tile_h, binding = fit_in_slot(available_w / cols, available_h / rows, standard.aspect_ratio)
    else:
        tile_w = mm_to_px(standard.width_mm, dpi)
        tile_h = mm_to_px(standard.height_mm, dpi)
        cols = fit_count(sheet_w - 2 * margin, tile_w, gap)
        rows = fit_count(sheet_h - 2 * margin, tile_h, gap)
        binding = "auto"
        if cols < 1 or rows < 1:
            raise DegenerateGrid(
                f"{standard.width_mm}x{standard.height_mm}mm photos with {options.gap_mm}mm gaps "
                f"do not fit a {sheet_w}x{sheet_h}px sheet ({cols}x{rows})"
            )

    layout = SheetLayout(
        sheet_width=sheet_w,
        sheet_height=sheet_h,
        gap=gap,
        margin=margin,
        cols=cols,
        rows=rows,
        tile_width=tile_w,
        tile_height=tile_h,
        binding=binding,
    )
    logger.debug(
        "Layout %dx%d (%s) tile %.1fx%.1fpx on %dx%dpx, start (%.1f, %.1f)",
        cols, rows, binding, tile_w, tile_h, sheet_w, sheet_h, layout.start_x, layout.start_y,
    )
    return layout


def tile_positions(layout: SheetLayout, limit_count: Optional[int] = None) -> List[TilePlacement]:
    """Row-major tile placements, stopping once the effective limit is reached."""
    limit = layout.effective_limit(limit_count)
    placements: List[TilePlacement] = []
    for row in range(layout.rows):
        if len(placements) >= limit:
            break
        for col in range(layout.cols):
            if len(placements) >= limit:
                break
            placements.append(
                TilePlacement(
                    row=row,
                    col=col,
                    x=layout.start_x + col * (layout.tile_width + layout.gap),
                    y=layout.start_y + row * (layout.tile_height + layout.gap),
                    width=layout.tile_width,
                    height=layout.tile_height,
                )
            )
    return placements


# ---------- Crop rectangles ----------

def initial_crop_rect(image_w: float, image_h: float, aspect: float, fraction: float = 0.8) -> CropRect:
    """
    Centered starting crop with the given aspect ratio.

    Takes `fraction` of the image width, shrinking to `fraction` of the height
    when the resulting box would be too tall.
    """
    width = image_w * fraction
    height = width / aspect
    if height > image_h * fraction:
        height = image_h * fraction
        width = height * aspect
    return CropRect(x=(image_w - width) / 2, y=(image_h - height) / 2, width=width, height=height)


def crop_rect_for_width(x: float, y: float, width: float, aspect: float, scale: float = 1.0) -> CropRect:
    """
    Crop rectangle whose height follows from `aspect`.

    `scale` maps display coordinates to the source's native pixels
    (native width / displayed width).
    """
    return CropRect(x=x * scale, y=y * scale, width=width * scale, height=(width / aspect) * scale)
