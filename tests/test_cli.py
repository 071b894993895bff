import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from tests._test_path import SRC, solid  # noqa: F401

import passport_sheet
from passportsheet.core.models import LayoutOptions, Orientation, SheetSize, SheetSpec
from passportsheet.render.codec import load_image_rgb


def _run(argv):
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        code = passport_sheet.main(argv)
    return code, out.getvalue(), err.getvalue()


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.source = self.tmp / "source.png"
        solid(1000, 800).save(self.source)

    def tearDown(self):
        self._tmp.cleanup()

    def test_crop_derives_height_from_standard(self):
        out = self.tmp / "photo.jpg"
        code, stdout, _ = _run([
            "crop", "-i", str(self.source), "-o", str(out),
            "--x", "100", "--y", "100", "--width", "350", "--standard", "uk_eu",
        ])
        self.assertEqual(code, 0)
        self.assertIn("Saved:", stdout)
        self.assertEqual(load_image_rgb(str(out)).size, (600, 771))

    def test_crop_out_of_bounds(self):
        code, _, stderr = _run([
            "crop", "-i", str(self.source), "-o", str(self.tmp / "x.jpg"),
            "--x", "900", "--y", "0", "--width", "350",
        ])
        self.assertEqual(code, 2)
        self.assertIn("ERROR:", stderr)

    def test_crop_strict_rejects_drift(self):
        code, _, stderr = _run([
            "crop", "-i", str(self.source), "-o", str(self.tmp / "x.jpg"),
            "--x", "0", "--y", "0", "--width", "400", "--height", "400", "--strict",
        ])
        self.assertEqual(code, 2)
        self.assertIn("ERROR:", stderr)

    def test_sheet_with_preset(self):
        unit = self.tmp / "unit.png"
        solid(600, 771).save(unit)
        out = self.tmp / "sheet.jpg"
        code, stdout, _ = _run(["sheet", "-i", str(unit), "-o", str(out), "--preset", "--count", "8"])
        self.assertEqual(code, 0)
        self.assertIn("8 photos", stdout)
        self.assertEqual(load_image_rgb(str(out)).size, (2480, 3508))

    def test_sheet_dry_run(self):
        code, stdout, _ = _run(["sheet", "-i", str(self.source), "--grid", "6x6", "--gap-mm", "4", "--dry-run"])
        self.assertEqual(code, 0)
        self.assertIn("Grid: 6 cols x 6 rows (width)", stdout)
        self.assertIn("Photos: 36", stdout)

    def test_sheet_degenerate(self):
        code, _, stderr = _run([
            "sheet", "-i", str(self.source), "-o", str(self.tmp / "s.jpg"), "--paper", "4x6", "--gap-mm", "100",
        ])
        self.assertEqual(code, 2)
        self.assertIn("ERROR:", stderr)

    def test_sheet_requires_output(self):
        code, _, stderr = _run(["sheet", "-i", str(self.source)])
        self.assertEqual(code, 2)
        self.assertIn("--output", stderr)

    def test_parse_grid(self):
        grid = passport_sheet._parse_grid("3x4")
        self.assertEqual((grid.cols, grid.rows), (3, 4))

    def test_preset_landscape(self):
        unit = self.tmp / "unit.png"
        solid(600, 771).save(unit)
        out = self.tmp / "sheet.jpg"
        code, stdout, _ = _run(["sheet", "-i", str(unit), "-o", str(out), "--preset", "--landscape"])
        self.assertEqual(code, 0)
        self.assertEqual(load_image_rgb(str(out)).size, (3508, 2480))

    def test_dry_run_reports_sheet(self):
        code, stdout, _ = _run(["sheet", "-i", str(self.source), "--paper", "4x6", "--landscape", "--dry-run"])
        self.assertEqual(code, 0)
        self.assertIn("Sheet: 4x6 landscape (152.4x101.6 mm)", stdout)

    def test_preset_rejects_layout_flags(self):
        for extra in (["--gap-mm", "0"], ["--border"], ["--grid", "3x3"]):
            err = io.StringIO()
            with redirect_stderr(err), self.assertRaises(SystemExit) as ctx:
                passport_sheet.main(["sheet", "-i", str(self.source), "--preset", "--dry-run"] + extra)
            self.assertEqual(ctx.exception.code, 2)
            self.assertIn("--preset cannot be combined with " + extra[0], err.getvalue())

    def test_resolve_sheet_request_without_preset(self):
        args = passport_sheet._build_arg_parser().parse_args(["sheet", "-i", "x.png", "--paper", "4x6"])
        sheet, options = passport_sheet.resolve_sheet_request(args)
        self.assertEqual(sheet, SheetSpec(SheetSize.PHOTO_4X6, Orientation.PORTRAIT))
        self.assertEqual(options, LayoutOptions())
