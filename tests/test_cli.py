import io
import json
import logging
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

import requests
import yaml

from imaging_studio.cli import main as cli_main
from imaging_studio.config import DEFAULT_CONFIG_PATH
from imaging_studio.core.buffer import decode_image

from .helpers import encode_png, gradient_buffer, watermarked_sample


class TestCLI(unittest.TestCase):
    def run_cli(self, args: list) -> int:
        exit_code = cli_main.main(["--config", str(DEFAULT_CONFIG_PATH), *args])
        logging.shutdown()
        logging.getLogger().handlers.clear()
        return exit_code

    def run_cli_capturing(self, args: list):
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            exit_code = self.run_cli(args)
        return exit_code, buffer.getvalue()

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_dir = Path(self._tmp.name)
        self.input_path = self.tmp_dir / "watermarked.png"
        self.input_path.write_bytes(encode_png(watermarked_sample()))

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_clean_command_writes_png_and_log(self) -> None:
        output_path = self.tmp_dir / "clean" / "restored.png"
        log_file = self.tmp_dir / "cli.log"
        exit_code = self.run_cli(
            [
                "--log-level",
                "DEBUG",
                "--log-file",
                str(log_file),
                "clean",
                "--input",
                str(self.input_path),
                "--output",
                str(output_path),
            ]
        )

        self.assertEqual(exit_code, 0)
        self.assertTrue(output_path.exists(), "Output image not created.")
        self.assertTrue(log_file.exists(), "Log file override was not respected.")
        restored = decode_image(output_path.read_bytes())
        self.assertEqual(restored.size, (400, 240))

    def test_convert_command_with_report(self) -> None:
        source = self.tmp_dir / "gradient.png"
        source.write_bytes(encode_png(gradient_buffer()))
        output_path = self.tmp_dir / "gradient.webp"
        report_path = self.tmp_dir / "report.json"
        exit_code = self.run_cli(
            ["convert", "-i", str(source), "-o", str(output_path), "-q", "0.9", "--report", str(report_path)]
        )

        self.assertEqual(exit_code, 0)
        self.assertTrue(output_path.read_bytes().startswith(b"RIFF"))
        report = json.loads(report_path.read_text(encoding="utf-8"))
        self.assertEqual(report["quality"], 0.9)
        self.assertGreater(report["ssim"], 0.9)

    def test_resize_command_with_preset(self) -> None:
        output_path = self.tmp_dir / "twitter.webp"
        exit_code = self.run_cli(
            ["resize", "-i", str(self.input_path), "-o", str(output_path), "--preset", "Twitter Post (16:9)"]
        )

        self.assertEqual(exit_code, 0)
        self.assertEqual(decode_image(output_path.read_bytes()).size, (1600, 900))

    def test_resize_without_size_fails(self) -> None:
        exit_code = self.run_cli(["resize", "-i", str(self.input_path), "-o", str(self.tmp_dir / "x.webp")])
        self.assertEqual(exit_code, 1)
        exit_code = self.run_cli(
            ["resize", "-i", str(self.input_path), "-o", str(self.tmp_dir / "x.webp"), "--preset", "Standard Square (1:1)"]
        )
        self.assertEqual(exit_code, 1)

    def test_missing_input_returns_error(self) -> None:
        exit_code = self.run_cli(
            ["clean", "-i", str(self.tmp_dir / "absent.png"), "-o", str(self.tmp_dir / "out.png")]
        )
        self.assertEqual(exit_code, 1)

    def test_unreachable_remote_input_tries_relay(self) -> None:
        with mock.patch("requests.Session") as session_cls:
            session = session_cls.return_value
            session.get.side_effect = requests.ConnectionError("offline")
            exit_code = self.run_cli(
                ["convert", "-i", "https://img.example.com/fox.png", "-o", str(self.tmp_dir / "fox.webp")]
            )

        self.assertEqual(exit_code, 1)
        urls = [call.args[0] for call in session.get.call_args_list]
        self.assertEqual(len(urls), 2)
        self.assertEqual(urls[0], "https://img.example.com/fox.png")
        self.assertTrue(urls[1].startswith("https://api.allorigins.win/raw?url=https%3A%2F%2F"))

    def test_generate_url_prints_to_stdout(self) -> None:
        exit_code, output = self.run_cli_capturing(
            ["generate-url", "misty harbor", "--preset", "Instagram Post (1:1)", "--seed", "7"]
        )
        self.assertEqual(exit_code, 0)
        self.assertEqual(
            output.strip(),
            "https://image.pollinations.ai/prompt/misty%20harbor?seed=7&width=1080&height=1080",
        )

    def test_suggest_prints_each_suggestion(self) -> None:
        response = mock.Mock(status_code=200, text="")
        response.json.return_value = {"text": "1. misty harbor at dawn\n2. harbor in fog"}
        with mock.patch("requests.Session") as session_cls:
            session_cls.return_value.get.return_value = response
            exit_code, output = self.run_cli_capturing(["suggest", "harbor"])

        self.assertEqual(exit_code, 0)
        self.assertEqual(output.splitlines(), ["misty harbor at dawn", "harbor in fog"])

    def test_export_command_uploads_when_requested(self) -> None:
        response = mock.Mock(status_code=200, text="")
        response.json.return_value = {"success": True, "data": {"url": "https://i.host.example/fox.webp"}}
        output_path = self.tmp_dir / "fox.webp"
        with mock.patch.dict(os.environ, {"IMGBB_API_KEY": "test-key"}):
            with mock.patch("requests.Session") as session_cls:
                session_cls.return_value.post.return_value = response
                exit_code, output = self.run_cli_capturing(
                    ["export", "-i", str(self.input_path), "-o", str(output_path), "--upload", "--slug", "fox"]
                )

        self.assertEqual(exit_code, 0)
        self.assertEqual(output.strip(), "https://i.host.example/fox.webp")
        self.assertTrue(output_path.exists())
        form = session_cls.return_value.post.call_args.kwargs["data"]
        self.assertEqual(form["name"], "fox")

    def test_export_upload_requires_slug(self) -> None:
        with mock.patch.dict(os.environ, {"IMGBB_API_KEY": "test-key"}):
            exit_code = self.run_cli(
                ["export", "-i", str(self.input_path), "-o", str(self.tmp_dir / "fox.webp"), "--upload"]
            )
        self.assertEqual(exit_code, 1)
        self.assertFalse((self.tmp_dir / "fox.webp").exists())

    def test_batch_command_runs_manifest(self) -> None:
        manifest = [
            {"operation": "clean", "input": str(self.input_path), "output": str(self.tmp_dir / "b" / "clean.png")},
            {
                "operation": "resize",
                "input": str(self.input_path),
                "output": str(self.tmp_dir / "b" / "square.webp"),
                "width": 128,
                "height": 128,
            },
        ]
        manifest_path = self.tmp_dir / "jobs.yaml"
        manifest_path.write_text(yaml.safe_dump(manifest), encoding="utf-8")

        exit_code = self.run_cli(["batch", "--manifest", str(manifest_path)])

        self.assertEqual(exit_code, 0)
        self.assertTrue((self.tmp_dir / "b" / "clean.png").exists())
        self.assertEqual(decode_image((self.tmp_dir / "b" / "square.webp").read_bytes()).size, (128, 128))

    def test_batch_manifest_with_plain_string_entries_fails_cleanly(self) -> None:
        manifest_path = self.tmp_dir / "jobs.yaml"
        manifest_path.write_text(f"- clean {self.input_path} out.png\n", encoding="utf-8")

        exit_code = self.run_cli(["batch", "--manifest", str(manifest_path)])

        self.assertEqual(exit_code, 1)

    def test_batch_command_reports_failures(self) -> None:
        manifest = [
            {"operation": "clean", "input": str(self.tmp_dir / "absent.png"), "output": str(self.tmp_dir / "x.png")},
            {"operation": "convert", "input": str(self.input_path), "output": str(self.tmp_dir / "y.webp")},
        ]
        manifest_path = self.tmp_dir / "jobs.json"
        manifest_path.write_text(json.dumps(manifest), encoding="utf-8")

        exit_code = self.run_cli(["batch", "--manifest", str(manifest_path), "--halt-on-error"])

        self.assertEqual(exit_code, 1)
        self.assertFalse((self.tmp_dir / "y.webp").exists())


if __name__ == "__main__":
    unittest.main()
