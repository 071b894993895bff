from __future__ import annotations


class PassportSheetError(Exception):
    """Base class for every error raised by the sheet composition engine."""


class InvalidRegion(PassportSheetError, ValueError):
    """Crop rectangle is degenerate or extends outside the source image."""


class UnsupportedSheetSize(PassportSheetError, ValueError):
    """Sheet size or orientation is not one of the recognized values."""


class DegenerateGrid(PassportSheetError, ValueError):
    """Computed layout has no usable columns or rows."""


class CodecFailure(PassportSheetError, RuntimeError):
    """Image could not be decoded or encoded."""
