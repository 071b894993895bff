from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from passportsheet.core.models import CAPTION_MIN_SPACE_PX, DPI, MM_PER_INCH
from passportsheet.layout.geometry import SheetLayout


@dataclass(frozen=True)
class LayoutReport:
    """
    Human-readable facts about a resolved sheet layout.
    """
    cols: int
    rows: int
    count: int
    tile_px: Tuple[float, float]
    tile_mm: Tuple[float, float]
    sheet_px: Tuple[int, int]
    binding: str
    start: Tuple[float, float]
    caption_room: bool


def _px_to_mm(px: float, dpi: int = DPI) -> float:
    return px / dpi * MM_PER_INCH


def build_layout_report(layout: SheetLayout, limit_count: Optional[int] = None, dpi: int = DPI) -> LayoutReport:
    count = min(layout.capacity, layout.effective_limit(limit_count))
    return LayoutReport(
        cols=layout.cols,
        rows=layout.rows,
        count=count,
        tile_px=(layout.tile_width, layout.tile_height),
        tile_mm=(_px_to_mm(layout.tile_width, dpi), _px_to_mm(layout.tile_height, dpi)),
        sheet_px=(layout.sheet_width, layout.sheet_height),
        binding=layout.binding,
        start=(layout.start_x, layout.start_y),
        caption_room=layout.space_below > CAPTION_MIN_SPACE_PX,
    )


def format_layout_text(report: LayoutReport) -> str:
    lines: List[str] = []
    lines.append("PassportSheet Layout")
    lines.append("-" * 20)
    lines.append(f"Sheet: {report.sheet_px[0]}x{report.sheet_px[1]} px")
    lines.append(f"Grid: {report.cols} cols x {report.rows} rows ({report.binding})")
    lines.append(
        f"Tile: {report.tile_px[0]:.1f}x{report.tile_px[1]:.1f} px "
        f"({report.tile_mm[0]:.1f}x{report.tile_mm[1]:.1f} mm)"
    )
    lines.append(f"Origin: ({report.start[0]:.1f}, {report.start[1]:.1f}) px")
    lines.append(f"Photos: {report.count}")
    lines.append(f"Caption: {'yes' if report.caption_room else 'no room'}")
    return "\n".join(lines)
