from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple, Union

from passportsheet.core.errors import UnsupportedSheetSize

if TYPE_CHECKING:  # avoid a circular import; geometry depends on these models
    from passportsheet.layout.geometry import SheetLayout


DPI = 300
MM_PER_INCH = 25.4

DEFAULT_CROP_WIDTH = 600
SHEET_JPEG_QUALITY = 95
CROP_JPEG_QUALITY = 100

# Free space (px) needed below the grid before the caption is drawn.
CAPTION_MIN_SPACE_PX = 30


@dataclass(frozen=True)
class PhotoStandard:
    """
    A named physical photo size that a document authority expects.

    width_mm / height_mm:
        Physical print size of one photo.
    aspect_ratio:
        Derived width / height, used to size crops and forced-grid tiles.
    """
    id: str
    name: str
    width_mm: float
    height_mm: float
    description: str = ""

    def __post_init__(self) -> None:
        if self.width_mm <= 0 or self.height_mm <= 0:
            raise ValueError(
                f"Photo standard {self.id!r} needs positive dimensions, got {self.width_mm}x{self.height_mm} mm"
            )

    @property
    def aspect_ratio(self) -> float:
        return self.width_mm / self.height_mm


class SheetSize(Enum):
    """Print media the compositor knows how to lay out (portrait mm)."""
    PHOTO_4X6 = "4x6"
    A4 = "A4"

    @property
    def dimensions_mm(self) -> Tuple[float, float]:
        return _SHEET_DIMENSIONS_MM[self]

    @classmethod
    def parse(cls, value: Union["SheetSize", str]) -> "SheetSize":
        if isinstance(value, cls):
            return value
        size = _SHEET_ALIASES.get(str(value).strip().lower())
        if size is not None:
            return size
        raise UnsupportedSheetSize(
            f"Unsupported sheet size {value!r} (expected one of: {', '.join(s.value for s in cls)})"
        )


_SHEET_DIMENSIONS_MM = {
    SheetSize.PHOTO_4X6: (101.6, 152.4),
    SheetSize.A4: (210.0, 297.0),
}

_SHEET_ALIASES = {
    "4x6": SheetSize.PHOTO_4X6,
    "photo-4x6": SheetSize.PHOTO_4X6,
    "4x6-inch": SheetSize.PHOTO_4X6,
    "a4": SheetSize.A4,
}


class Orientation(Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"

    @classmethod
    def parse(cls, value: Union["Orientation", str]) -> "Orientation":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise UnsupportedSheetSize(f"Unsupported orientation {value!r} (expected portrait or landscape)")


@dataclass(frozen=True)
class SheetSpec:
    """Physical output sheet at a fixed printing resolution."""
    size: SheetSize
    orientation: Orientation = Orientation.PORTRAIT
    dpi: int = DPI

    @property
    def width_mm(self) -> float:
        w, h = self.size.dimensions_mm
        return h if self.orientation is Orientation.LANDSCAPE else w

    @property
    def height_mm(self) -> float:
        w, h = self.size.dimensions_mm
        return w if self.orientation is Orientation.LANDSCAPE else h

    @property
    def pixel_size(self) -> Tuple[int, int]:
        from passportsheet.layout.geometry import sheet_pixel_size

        return sheet_pixel_size(self.size, self.orientation, self.dpi)


@dataclass(frozen=True)
class CropRect:
    """Rectangle in the source image's native pixel coordinates."""
    x: float
    y: float
    width: float
    height: float

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def box(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class GridSize:
    cols: int
    rows: int


@dataclass(frozen=True)
class LayoutOptions:
    """
    Options that control how tiles are laid out on the sheet.

    gap_mm:
        Spacing between tiles, also used as the sheet margin.
    add_border:
        Stroke a 1px black cut guide around each tile.
    force_grid:
        Explicit column/row counts; tiles are scaled to fit the slots.
    limit_count:
        Stop after this many tiles. None fills the grid.
    """
    gap_mm: float = 0.0
    add_border: bool = False
    force_grid: Optional[GridSize] = None
    limit_count: Optional[int] = None

    def __post_init__(self) -> None:
        if self.gap_mm < 0:
            raise ValueError(f"gap_mm must be >= 0, got {self.gap_mm}")
        if self.limit_count is not None and self.limit_count < 1:
            raise ValueError(f"limit_count must be >= 1 when set, got {self.limit_count}")


@dataclass(frozen=True)
class CompositeResult:
    """Encoded print sheet plus the number of tiles actually placed."""
    data: bytes
    count: int
    layout: "SheetLayout"
    size: Tuple[int, int]
    mime_type: str = "image/jpeg"
