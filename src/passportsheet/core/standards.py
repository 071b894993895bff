from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from passportsheet.core.models import GridSize, LayoutOptions, Orientation, PhotoStandard, SheetSize, SheetSpec


PASSPORT_STANDARDS: Tuple[PhotoStandard, ...] = (
    PhotoStandard(
        id="us_2x2",
        name='United States (2x2")',
        description="2x2 inch (51x51mm)",
        width_mm=51,
        height_mm=51,
    ),
    PhotoStandard(
        id="uk_eu",
        name="Standard / UK / EU",
        description="35x45mm (Most Common)",
        width_mm=35,
        height_mm=45,
    ),
    PhotoStandard(
        id="in_pan",
        name="India - PAN Card (UTI/NSDL)",
        description="25x35mm (Strictly for PAN)",
        width_mm=25,
        height_mm=35,
    ),
    PhotoStandard(
        id="in_stamp",
        name="Stamp Size",
        description="20x25mm",
        width_mm=20,
        height_mm=25,
    ),
)

DEFAULT_STANDARD_ID = "uk_eu"

_BY_ID: Dict[str, PhotoStandard] = {s.id: s for s in PASSPORT_STANDARDS}

# Fixed layouts for the larger standards; they fit more photos than auto-fit.
_PRESET_GRIDS: Dict[SheetSize, GridSize] = {
    SheetSize.A4: GridSize(cols=6, rows=6),
    SheetSize.PHOTO_4X6: GridSize(cols=3, rows=4),
}
_PRESET_STANDARDS = frozenset({"us_2x2", "uk_eu"})

PRESET_GAP_MM = 4.0


def get_standard(standard_id: str) -> PhotoStandard:
    try:
        return _BY_ID[standard_id]
    except KeyError:
        known = ", ".join(_BY_ID)
        raise KeyError(f"Unknown photo standard {standard_id!r} (known: {known})") from None


def preset_grid(standard: PhotoStandard, sheet_size: SheetSize) -> Optional[GridSize]:
    """Forced grid used for `standard` on `sheet_size`, or None to auto-fit."""
    if standard.id not in _PRESET_STANDARDS:
        return None
    return _PRESET_GRIDS.get(SheetSize.parse(sheet_size))


@dataclass(frozen=True)
class PrintSettings:
    """
    User-facing print options, translated into LayoutOptions per standard.

    paper_size / orientation:
        Target sheet.
    force_layout:
        Use the preset grid for standards that have one.
    add_gap:
        4mm spacing plus cut-guide borders; no spacing and no borders when off.
    use_custom_count / custom_count:
        Cap the number of photos placed on the sheet.
    """
    paper_size: SheetSize = SheetSize.A4
    orientation: Orientation = Orientation.PORTRAIT
    force_layout: bool = True
    add_gap: bool = True
    use_custom_count: bool = False
    custom_count: int = 4

    @property
    def sheet(self) -> SheetSpec:
        return SheetSpec(SheetSize.parse(self.paper_size), Orientation.parse(self.orientation))

    def to_layout_options(self, standard: PhotoStandard) -> LayoutOptions:
        return LayoutOptions(
            gap_mm=PRESET_GAP_MM if self.add_gap else 0.0,
            add_border=self.add_gap,
            force_grid=preset_grid(standard, self.paper_size) if self.force_layout else None,
            limit_count=self.custom_count if self.use_custom_count else None,
        )
