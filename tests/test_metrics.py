import json
import tempfile
import unittest
from pathlib import Path

import numpy as np

from imaging_studio.core.buffer import PixelBuffer
from imaging_studio.core.encoder import FormatReencoder
from imaging_studio.qc import build_report, structural_similarity

from .helpers import gradient_buffer, noise_buffer


class TestFidelityMetrics(unittest.TestCase):
    def test_identical_buffers_score_one(self) -> None:
        buffer = gradient_buffer(64, 48)
        self.assertAlmostEqual(structural_similarity(buffer, buffer.copy()), 1.0, places=6)

    def test_high_quality_webp_stays_close(self) -> None:
        buffer = gradient_buffer(160, 90)
        encoded = FormatReencoder().reencode(buffer, 0.95)
        report = build_report(buffer, encoded)
        self.assertGreater(report.ssim, 0.9)
        self.assertEqual(report.mime_type, "image/webp")
        self.assertEqual((report.width, report.height), (160, 90))
        self.assertEqual(report.size_bytes, len(encoded.data))

    def test_unrelated_images_score_low(self) -> None:
        score = structural_similarity(noise_buffer(64, 64, seed=1), noise_buffer(64, 64, seed=2))
        self.assertLess(score, 0.5)

    def test_geometry_mismatch_raises(self) -> None:
        with self.assertRaises(ValueError):
            structural_similarity(gradient_buffer(10, 10), gradient_buffer(12, 10))

    def test_tiny_images_fall_back_to_equality(self) -> None:
        pixel = PixelBuffer(np.full((2, 2, 4), 90, dtype=np.uint8))
        other = PixelBuffer(np.full((2, 2, 4), 10, dtype=np.uint8))
        self.assertEqual(structural_similarity(pixel, pixel.copy()), 1.0)
        self.assertEqual(structural_similarity(pixel, other), 0.0)

    def test_report_is_written_as_json(self) -> None:
        buffer = gradient_buffer(32, 32)
        report = build_report(buffer, FormatReencoder().encode_lossless(buffer))
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "reports" / "fidelity.json"
            report.save(path)
            payload = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(payload["mime_type"], "image/png")
        self.assertIsNone(payload["quality"])
        self.assertAlmostEqual(payload["ssim"], 1.0, places=6)


if __name__ == "__main__":
    unittest.main()
