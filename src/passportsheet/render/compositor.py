"""
Sheet compositor.

Tiles one cropped photo onto a print sheet at 300 DPI: as many copies as fit
(or as requested), centered, optionally with cut guides and a caption.
"""

from __future__ import annotations

import logging
from typing import Callable, Tuple, Union

from PIL import Image

from passportsheet.core.models import (
    CAPTION_MIN_SPACE_PX,
    DPI,
    SHEET_JPEG_QUALITY,
    CompositeResult,
    LayoutOptions,
    Orientation,
    PhotoStandard,
    SheetSize,
)
from passportsheet.layout.geometry import SheetLayout, plan_layout, tile_positions
from passportsheet.render.canvas import BLACK, WHITE, PillowCanvas, RasterCanvas, resize_image
from passportsheet.render.codec import encode_image, ensure_image

logger = logging.getLogger(__name__)

CAPTION_COLOR = (0xAA, 0xAA, 0xAA)
CAPTION_FONT_SIZE = 24
CAPTION_BASELINE_OFFSET = 15
CAPTION_BRAND = "PassportSheet"

CanvasFactory = Callable[[int, int], RasterCanvas]


def caption_text(count: int) -> str:
    return f"{CAPTION_BRAND} - {count} Photos"


def _draw_caption(canvas: RasterCanvas, layout: SheetLayout, count: int) -> bool:
    """Best-effort caption below the grid. Returns True when it was drawn."""
    if layout.space_below <= CAPTION_MIN_SPACE_PX:
        return False
    try:
        canvas.draw_text(
            caption_text(count),
            layout.sheet_width / 2,
            layout.sheet_height - CAPTION_BASELINE_OFFSET,
            CAPTION_COLOR,
            CAPTION_FONT_SIZE,
        )
    except (OSError, ValueError) as e:
        logger.warning("Skipping sheet caption: %s", e)
        return False
    return True


def render_sheet_image(
    unit_image: Union[Image.Image, bytes],
    standard: PhotoStandard,
    sheet_size: Union[SheetSize, str],
    orientation: Union[Orientation, str],
    options: LayoutOptions,
    canvas_factory: CanvasFactory = PillowCanvas,
    dpi: int = DPI,
) -> Tuple[Image.Image, int, SheetLayout]:
    """
    Draw the sheet and return (image, placed count, layout) without encoding.

    All validation happens before the canvas is allocated, so a failure never
    leaves a partially drawn sheet behind.
    """
    layout = plan_layout(standard, sheet_size, orientation, options, dpi=dpi)
    placements = tile_positions(layout, options.limit_count)
    unit = ensure_image(unit_image)

    # One resample for the whole sheet; every tile is the same pixel size.
    tile_w = max(1, int(round(layout.tile_width)))
    tile_h = max(1, int(round(layout.tile_height)))
    tile_img = resize_image(unit, tile_w, tile_h)
    src_box = (0, 0, tile_w, tile_h)

    canvas = canvas_factory(layout.sheet_width, layout.sheet_height)
    canvas.fill_rect((0, 0, layout.sheet_width, layout.sheet_height), WHITE)

    for tile in placements:
        x, y = int(round(tile.x)), int(round(tile.y))
        box = (x, y, x + tile_w, y + tile_h)
        canvas.draw_image(tile_img, src_box, box)
        if options.add_border:
            canvas.stroke_rect(box, BLACK, 1)

    count = len(placements)
    _draw_caption(canvas, layout, count)
    logger.info(
        "Composed %s sheet (%dx%dpx) with %d x %s photos",
        SheetSize.parse(sheet_size).value, layout.sheet_width, layout.sheet_height, count, standard.id,
    )
    return canvas.to_image(), count, layout


def compose_sheet(
    unit_image: Union[Image.Image, bytes],
    standard: PhotoStandard,
    sheet_size: Union[SheetSize, str] = SheetSize.PHOTO_4X6,
    orientation: Union[Orientation, str] = Orientation.PORTRAIT,
    options: LayoutOptions = LayoutOptions(),
    canvas_factory: CanvasFactory = PillowCanvas,
) -> CompositeResult:
    """
    Compose a print sheet of `unit_image` copies and encode it as JPEG.

    Args:
      unit_image: the cropped photo (PIL image or encoded bytes)
      standard: physical photo size; sets tile size or aspect ratio
      sheet_size: "4x6" or "A4" (or a SheetSize)
      orientation: "portrait" or "landscape"
      options: gap, borders, forced grid and copy limit

    Raises:
      UnsupportedSheetSize, DegenerateGrid, CodecFailure
    """
    img, count, layout = render_sheet_image(
        unit_image, standard, sheet_size, orientation, options, canvas_factory=canvas_factory
    )
    data = encode_image(img, fmt="JPEG", quality=SHEET_JPEG_QUALITY)
    return CompositeResult(data=data, count=count, layout=layout, size=img.size)
