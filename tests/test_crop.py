import unittest

import numpy as np
from PIL import Image

from tests._test_path import SRC, solid  # noqa: F401

from passportsheet.core.errors import InvalidRegion
from passportsheet.core.models import CropRect
from passportsheet.render.codec import decode_image
from passportsheet.render.crop import crop_output_size, extract_crop, extract_crop_image


def _split_image(width: int = 1000, height: int = 800) -> Image.Image:
    """Left half red, right half blue."""
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    arr[:, : width // 2] = (255, 0, 0)
    arr[:, width // 2 :] = (0, 0, 255)
    return Image.fromarray(arr, "RGB")


class TestCropOutputSize(unittest.TestCase):
    def test_height_follows_rect_ratio(self):
        self.assertEqual(crop_output_size(CropRect(0, 0, 350, 450), 600), (600, 771))
        self.assertEqual(crop_output_size(CropRect(0, 0, 510, 510), 600), (600, 600))
        self.assertEqual(crop_output_size(CropRect(0, 0, 400, 300), 600), (600, 450))

    def test_rejects_bad_target_width(self):
        with self.assertRaises(ValueError):
            crop_output_size(CropRect(0, 0, 10, 10), 0)


class TestExtractCrop(unittest.TestCase):
    def test_output_dimensions(self):
        src = solid(1000, 800)
        for rect, target in [
            (CropRect(100, 100, 350, 450), 600),
            (CropRect(0, 0, 1000, 800), 300),
            (CropRect(10.5, 20.25, 300.3, 386.1), 600),
        ]:
            out = extract_crop_image(src, rect, target)
            self.assertEqual(out.width, target)
            self.assertLessEqual(abs(out.height - round(target / (rect.width / rect.height))), 1)

    def test_whole_pixel_region_content(self):
        src = _split_image()
        out = extract_crop_image(src, CropRect(300, 100, 400, 400), target_width=200)
        arr = np.asarray(out)
        self.assertEqual(arr.shape, (200, 200, 3))
        self.assertEqual(tuple(arr[100, 10]), (255, 0, 0))
        self.assertEqual(tuple(arr[100, 190]), (0, 0, 255))

    def test_subpixel_region_keeps_solid_color(self):
        src = solid(1000, 800, (10, 120, 200))
        out = extract_crop_image(src, CropRect(100.4, 50.6, 350.2, 450.3), target_width=300)
        arr = np.asarray(out).astype(int)
        self.assertTrue(np.all(np.abs(arr - np.array([10, 120, 200])) <= 1))

    def test_source_not_mutated(self):
        src = _split_image()
        before = src.tobytes()
        extract_crop_image(src, CropRect(0, 0, 500, 500), target_width=100)
        self.assertEqual(src.tobytes(), before)

    def test_invalid_regions(self):
        src = solid(100, 100)
        bad = [
            CropRect(0, 0, 0, 10),
            CropRect(0, 0, 10, -5),
            CropRect(-1, 0, 10, 10),
            CropRect(0, -0.5, 10, 10),
            CropRect(95, 0, 10, 10),
            CropRect(0, 50, 10, 60),
        ]
        for rect in bad:
            with self.assertRaises(InvalidRegion, msg=str(rect)):
                extract_crop_image(src, rect, 50)

    def test_full_image_is_valid(self):
        out = extract_crop_image(solid(100, 100), CropRect(0, 0, 100, 100), 50)
        self.assertEqual(out.size, (50, 50))

    def test_expected_aspect_drift(self):
        src = solid(1000, 1000)
        rect = CropRect(0, 0, 350, 450)
        extract_crop_image(src, rect, 100, expected_aspect=35 / 45)
        with self.assertRaises(InvalidRegion):
            extract_crop_image(src, CropRect(0, 0, 400, 450), 100, expected_aspect=35 / 45)

    def test_encoded_output(self):
        data = extract_crop(solid(1000, 800), CropRect(100, 100, 350, 450), 600)
        self.assertTrue(data.startswith(b"\xff\xd8"))
        self.assertEqual(decode_image(data).size, (600, 771))

    def test_enlarged_subpixel_crop_keeps_edge_color(self):
        src = solid(100, 100, (200, 30, 30))
        out = extract_crop_image(src, CropRect(0.5, 0.5, 99.5, 99.5), target_width=300)
        arr = np.asarray(out).astype(int)
        self.assertEqual(arr.shape, (300, 300, 3))
        for edge in (arr[:, 0], arr[:, -1], arr[0, :], arr[-1, :]):
            self.assertTrue(np.all(np.abs(edge - np.array([200, 30, 30])) <= 1))


class TestCropSourceModes(unittest.TestCase):
    def test_palette_source(self):
        src = solid(100, 100, (200, 30, 30)).convert("P", palette=Image.Palette.ADAPTIVE)
        out = extract_crop_image(src, CropRect(0, 0, 50, 50), target_width=50)
        self.assertEqual(out.mode, "RGB")
        self.assertEqual(out.getpixel((10, 10)), (200, 30, 30))

    def test_grayscale_source(self):
        out = extract_crop_image(Image.new("L", (100, 100), 128), CropRect(10, 10, 50, 50), target_width=100)
        self.assertEqual(out.mode, "RGB")
        self.assertEqual(out.getpixel((50, 50)), (128, 128, 128))

    def test_grayscale_alpha_source(self):
        out = extract_crop_image(Image.new("LA", (100, 100), (90, 255)), CropRect(0, 0, 50, 50), target_width=50)
        self.assertEqual(out.mode, "RGB")
        self.assertEqual(out.getpixel((25, 25)), (90, 90, 90))

    def test_transparent_source_becomes_white(self):
        src = Image.new("RGBA", (100, 100), (0, 0, 0, 0))
        out = extract_crop_image(src, CropRect(0, 0, 50, 50), target_width=50)
        self.assertEqual(out.getpixel((25, 25)), (255, 255, 255))

    def test_encoded_palette_crop(self):
        src = solid(100, 100, (200, 30, 30)).convert("P", palette=Image.Palette.ADAPTIVE)
        data = extract_crop(src, CropRect(0, 0, 50, 50), 50)
        self.assertEqual(decode_image(data).size, (50, 50))
