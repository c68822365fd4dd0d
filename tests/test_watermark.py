import unittest

import numpy as np

from imaging_studio.core.buffer import PixelBuffer
from imaging_studio.core.watermark import WatermarkRemover

from .helpers import noise_buffer, watermarked_sample


class TestWatermarkRemover(unittest.TestCase):
    def setUp(self) -> None:
        self.remover = WatermarkRemover()

    def test_undersized_buffer_is_returned_unchanged(self) -> None:
        for width, height in ((199, 100), (300, 34), (10, 10)):
            with self.subTest(size=(width, height)):
                source = noise_buffer(width, height, seed=width)
                with self.assertLogs("imaging_studio.core.watermark", level="WARNING"):
                    result = self.remover.remove_watermark(source)
                self.assertTrue(np.array_equal(result.pixels, source.pixels))
                self.assertIsNot(result.pixels, source.pixels)

    def test_pixels_outside_region_are_untouched(self) -> None:
        source = noise_buffer(300, 100, seed=1)
        original = source.pixels.copy()
        result = self.remover.remove_watermark(source).pixels

        x0, y0 = 300 - 200, 100 - 35
        self.assertTrue(np.array_equal(result[:y0], original[:y0]))
        self.assertTrue(np.array_equal(result[:, :x0], original[:, :x0]))
        self.assertTrue(np.array_equal(source.pixels, original), "Input buffer was mutated.")

    def test_region_is_tiled_from_strip_above(self) -> None:
        source = noise_buffer(300, 100, seed=2)
        result = self.remover.remove_watermark(source).pixels

        x0, y0 = 100, 65
        strip = source.pixels[y0 - 5:y0, x0:]
        for row in range(35):
            self.assertTrue(
                np.array_equal(result[y0 + row, x0:], strip[row % 5]),
                f"Row {row} of the watermark region was not painted from the strip.",
            )

    def test_exact_size_buffer_reads_transparent_strip(self) -> None:
        source = noise_buffer(200, 35, seed=3)
        result = self.remover.remove_watermark(source)
        self.assertEqual(result.size, (200, 35))
        self.assertFalse(result.pixels.any())

    def test_partial_last_band_is_truncated(self) -> None:
        remover = WatermarkRemover(width=10, height=7, strip_height=5)
        source = noise_buffer(20, 20, seed=4)
        result = remover.remove_watermark(source).pixels
        strip = source.pixels[8:13, 10:]
        self.assertTrue(np.array_equal(result[13:18, 10:], strip))
        self.assertTrue(np.array_equal(result[18:20, 10:], strip[:2]))
        self.assertTrue(np.array_equal(result[:13], source.pixels[:13]))

    def test_flat_background_is_restored(self) -> None:
        sample = watermarked_sample()
        background = sample.pixels[0, 0].copy()
        self.assertTrue((sample.pixels[-35:, -200:] != background).any())

        result = self.remover.remove_watermark(sample)
        self.assertTrue((result.pixels[-35:, -200:] == background).all())

    def test_region_and_validation(self) -> None:
        buffer = PixelBuffer(np.zeros((50, 400, 4), dtype=np.uint8))
        self.assertEqual(self.remover.region(buffer), (200, 15, 200, 35))
        with self.assertRaises(ValueError):
            WatermarkRemover(width=0)
        with self.assertRaises(ValueError):
            WatermarkRemover(strip_height=0)

    def test_from_config(self) -> None:
        remover = WatermarkRemover.from_config({"watermark": {"width": 120, "height": 20, "strip_height": 4}})
        self.assertEqual((remover.width, remover.height, remover.strip_height), (120, 20, 4))
        defaults = WatermarkRemover.from_config({})
        self.assertEqual((defaults.width, defaults.height, defaults.strip_height), (200, 35, 5))


if __name__ == "__main__":
    unittest.main()
