#!/usr/bin/env python3
"""
passport_sheet.py

Crop passport photos and lay them out on print-ready sheets at 300 DPI:
- crop:  cut a standard-ratio rectangle out of a photo and resample it
- sheet: tile a cropped photo onto a 4x6" or A4 sheet, centered, with
         optional 4mm gaps, cut guides and a copy limit

Usage:
  python passport_sheet.py crop -i in.jpg -o photo.jpg --x 120 --y 80 --width 700 --standard uk_eu
  python passport_sheet.py sheet -i photo.jpg -o sheet.jpg --paper A4 --gap-mm 4 --border
  python passport_sheet.py sheet -i photo.jpg -o sheet.jpg --preset --count 8
  python passport_sheet.py sheet -i photo.jpg --grid 6x6 --dry-run

Notes:
- Always check the printed size against the official requirements before
  cutting; printers may scale pages unless "actual size" is selected.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from passportsheet.core.errors import PassportSheetError
from passportsheet.core.models import (
    DEFAULT_CROP_WIDTH,
    CropRect,
    GridSize,
    LayoutOptions,
    Orientation,
    SheetSize,
    SheetSpec,
)
from passportsheet.core.standards import (
    DEFAULT_STANDARD_ID,
    PASSPORT_STANDARDS,
    PrintSettings,
    get_standard,
)
from passportsheet.layout.geometry import plan_layout
from passportsheet.layout.report import build_layout_report, format_layout_text
from passportsheet.render.codec import load_image_rgb
from passportsheet.render.compositor import compose_sheet
from passportsheet.render.crop import extract_crop

logger = logging.getLogger("passport_sheet")


def _parse_grid(value: str) -> GridSize:
    try:
        cols, rows = value.lower().split("x")
        return GridSize(cols=int(cols), rows=int(rows))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected COLSxROWS (e.g. 6x6), got {value!r}") from None


def resolve_sheet_request(args: argparse.Namespace) -> Tuple[SheetSpec, LayoutOptions]:
    """Target sheet and LayoutOptions from CLI flags; --preset starts from the PrintSettings defaults."""
    standard = get_standard(args.standard)
    orientation = Orientation.LANDSCAPE if args.landscape else Orientation.PORTRAIT
    if args.preset:
        settings = PrintSettings(
            paper_size=SheetSize.parse(args.paper),
            orientation=orientation,
            use_custom_count=args.count is not None,
            custom_count=args.count if args.count is not None else PrintSettings.custom_count,
        )
        return settings.sheet, settings.to_layout_options(standard)
    options = LayoutOptions(
        gap_mm=args.gap_mm if args.gap_mm is not None else 0.0,
        add_border=args.border,
        force_grid=args.grid,
        limit_count=args.count,
    )
    return SheetSpec(SheetSize.parse(args.paper), orientation), options


def run_crop(args: argparse.Namespace) -> int:
    standard = get_standard(args.standard)
    height = args.height if args.height is not None else args.width / standard.aspect_ratio
    rect = CropRect(x=args.x, y=args.y, width=args.width, height=height)

    source = load_image_rgb(args.input)
    data = extract_crop(
        source,
        rect,
        target_width=args.target_width,
        expected_aspect=standard.aspect_ratio if args.strict else None,
    )
    with open(args.output, "wb") as f:
        f.write(data)
    print(f"Saved: {args.output}")
    return 0


def run_sheet(args: argparse.Namespace) -> int:
    standard = get_standard(args.standard)
    sheet, options = resolve_sheet_request(args)

    if args.dry_run:
        layout = plan_layout(standard, sheet.size, sheet.orientation, options, dpi=sheet.dpi)
        print(f"Sheet: {sheet.size.value} {sheet.orientation.value} ({sheet.width_mm:g}x{sheet.height_mm:g} mm)")
        print(format_layout_text(build_layout_report(layout, options.limit_count, dpi=sheet.dpi)))
        return 0

    if not args.output:
        raise ValueError("--output is required unless --dry-run is given")

    unit = load_image_rgb(args.input)
    result = compose_sheet(unit, standard, sheet.size, sheet.orientation, options)
    with open(args.output, "wb") as f:
        f.write(result.data)
    print(f"Saved: {args.output} ({result.count} photos, {result.size[0]}x{result.size[1]} px)")
    return 0


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Crop passport photos and compose print-ready sheets.")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    standard_ids = [s.id for s in PASSPORT_STANDARDS]

    c = sub.add_parser("crop", help="Extract a standard-ratio crop from a photo")
    c.add_argument("--input", "-i", required=True, help="Path to source image")
    c.add_argument("--output", "-o", required=True, help="Path to output JPEG")
    c.add_argument("--x", type=float, required=True, help="Crop left edge (source pixels)")
    c.add_argument("--y", type=float, required=True, help="Crop top edge (source pixels)")
    c.add_argument("--width", type=float, required=True, help="Crop width (source pixels)")
    c.add_argument("--height", type=float, default=None, help="Crop height; derived from the standard if omitted")
    c.add_argument("--standard", choices=standard_ids, default=DEFAULT_STANDARD_ID)
    c.add_argument("--target-width", type=int, default=DEFAULT_CROP_WIDTH, help="Output width in pixels (default: 600)")
    c.add_argument("--strict", action="store_true", help="Reject crops whose ratio drifted from the standard")
    c.set_defaults(func=run_crop)

    s = sub.add_parser("sheet", help="Tile a cropped photo onto a print sheet")
    s.add_argument("--input", "-i", required=True, help="Path to cropped photo")
    s.add_argument("--output", "-o", default=None, help="Path to output sheet JPEG")
    s.add_argument("--standard", choices=standard_ids, default=DEFAULT_STANDARD_ID)
    s.add_argument("--paper", choices=[size.value for size in SheetSize], default=SheetSize.A4.value)
    s.add_argument("--landscape", action="store_true", help="Landscape sheet orientation")
    s.add_argument("--gap-mm", type=float, default=None, help="Gap and margin in millimeters (default: 0)")
    s.add_argument("--border", action="store_true", help="Draw 1px cut guides around each photo")
    s.add_argument("--grid", type=_parse_grid, default=None, help="Force a COLSxROWS grid, e.g. 6x6")
    s.add_argument("--count", type=int, default=None, help="Place at most this many photos")
    s.add_argument("--preset", action="store_true", help="Preset grid, 4mm gap and cut guides (excludes --gap-mm, --border, --grid)")
    s.add_argument("--dry-run", action="store_true", help="Print the layout without rendering")
    s.set_defaults(func=run_sheet)
    return p


_PRESET_CONFLICTS = (("gap_mm", "--gap-mm"), ("grid", "--grid"))


def _check_preset_conflicts(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    """--preset fixes gap, cut guides and grid; refuse flags it would override."""
    if getattr(args, "command", None) != "sheet" or not args.preset:
        return
    given = [flag for attr, flag in _PRESET_CONFLICTS if getattr(args, attr) is not None]
    if args.border:
        given.append("--border")
    if given:
        parser.error(f"--preset cannot be combined with {', '.join(given)}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    _check_preset_conflicts(parser, args)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except (PassportSheetError, ValueError, KeyError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
