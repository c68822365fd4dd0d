"""Command-line interface for imaging-studio."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import yaml

from imaging_studio.config import DEFAULT_CONFIG_PATH, load_config
from imaging_studio.core import (
    BatchItem,
    BatchProcessor,
    BatchResult,
    ImagePipeline,
    ImagingError,
    LoadError,
)
from imaging_studio.core.batch_manager import OPERATIONS, resolve_reference
from imaging_studio.core.logger import setup_logging
from imaging_studio.core.presets import get_preset
from imaging_studio.qc import build_report
from imaging_studio.services import ImageHostClient, SuggestionClient, build_image_url

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        ivalue = int(value)
    except ValueError as exc:  # pragma: no cover - argparse failure path
        raise argparse.ArgumentTypeError(f"Expected integer, received '{value}'") from exc
    if ivalue <= 0:
        raise argparse.ArgumentTypeError("Value must be a positive integer.")
    return ivalue


def _quality(value: str) -> float:
    try:
        fvalue = float(value)
    except ValueError as exc:  # pragma: no cover - argparse failure path
        raise argparse.ArgumentTypeError(f"Expected number, received '{value}'") from exc
    if not 0.0 <= fvalue <= 1.0:
        raise argparse.ArgumentTypeError("Quality must be between 0 and 1.")
    return fvalue


def _add_io_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-i", "--input", required=True, help="Image path, data URL or http(s) URL."
    )
    parser.add_argument("-o", "--output", required=True, help="Where to write the result.")


def _add_size_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--width", type=_positive_int, help="Target width in pixels.")
    parser.add_argument("--height", type=_positive_int, help="Target height in pixels.")
    parser.add_argument("--preset", help="Named size preset, e.g. 'Twitter Post (16:9)'.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="imaging-studio",
        description="Watermark removal, WebP conversion and center-crop resizing.",
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help=f"Path to configuration YAML (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--log-level", help="Override logging level (e.g. INFO, DEBUG).")
    parser.add_argument("--log-file", help="Override log file path.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    clean_parser = subparsers.add_parser("clean", help="Paint over the bottom-right watermark (PNG).")
    _add_io_args(clean_parser)

    convert_parser = subparsers.add_parser("convert", help="Re-encode an image to WebP.")
    _add_io_args(convert_parser)
    convert_parser.add_argument("-q", "--quality", type=_quality, help="WebP quality in [0, 1].")
    convert_parser.add_argument("--report", help="Write an SSIM fidelity report (JSON) here.")

    resize_parser = subparsers.add_parser("resize", help="Center-crop and scale to exact dimensions.")
    _add_io_args(resize_parser)
    _add_size_args(resize_parser)

    export_parser = subparsers.add_parser(
        "export", help="Remove the watermark, convert to WebP and optionally upload."
    )
    _add_io_args(export_parser)
    export_parser.add_argument("-q", "--quality", type=_quality, help="WebP quality in [0, 1].")
    export_parser.add_argument("--upload", action="store_true", help="Upload to the image host.")
    export_parser.add_argument("--slug", help="Name for the hosted image.")

    url_parser = subparsers.add_parser("generate-url", help="Build an image-generation URL.")
    url_parser.add_argument("prompt")
    _add_size_args(url_parser)
    url_parser.add_argument("--seed", type=int, help="Fixed seed for repeatable renders.")

    suggest_parser = subparsers.add_parser("suggest", help="Ask the text service for prompt ideas.")
    suggest_parser.add_argument("prompt")

    batch_parser = subparsers.add_parser(
        "batch", help="Process a batch manifest describing multiple jobs."
    )
    batch_parser.add_argument(
        "-m",
        "--manifest",
        required=True,
        help="Path to a YAML or JSON manifest describing batch jobs.",
    )
    batch_parser.add_argument(
        "--halt-on-error",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Stop processing remaining items after the first failure.",
    )

    return parser


def _apply_logging_overrides(overrides: Dict[str, Any], args: argparse.Namespace) -> None:
    if args.log_level:
        overrides.setdefault("logging", {})["level"] = args.log_level.upper()
    if args.log_file:
        file_overrides = overrides.setdefault("logging", {}).setdefault("file", {})
        file_overrides["enabled"] = True
        file_overrides["filename"] = args.log_file


def _apply_batch_overrides(overrides: Dict[str, Any], args: argparse.Namespace) -> None:
    if args.command != "batch":
        return
    if args.halt_on_error is not None:
        overrides.setdefault("batch", {})["halt_on_error"] = args.halt_on_error


def _configure_logging(config: Dict[str, Any]) -> None:
    setup_logging(config.get("logging", {}), force=True)


def _resolve_size(args: argparse.Namespace, *, required: bool) -> tuple:
    if args.preset:
        preset = get_preset(args.preset)
        if preset.has_size:
            return preset.width, preset.height
        if required:
            raise argparse.ArgumentTypeError(
                f"Preset '{preset.label}' has no fixed size; pass --width and --height."
            )
        return None, None
    if required and (args.width is None or args.height is None):
        raise argparse.ArgumentTypeError("Pass --width and --height, or a sized --preset.")
    return args.width, args.height


def _run_clean(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    pipeline = ImagePipeline.from_config(config)
    result = pipeline.remove_watermark(resolve_reference(args.input))
    output = result.save(args.output)
    logger.info("Watermark removed: %s", output)
    return 0


def _run_convert(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    pipeline = ImagePipeline.from_config(config)
    reference = resolve_reference(args.input)
    if args.report:
        # Keep the decoded source so the report compares against it.
        buffer = pipeline.loader.load(reference)
        quality = pipeline.export_quality if args.quality is None else args.quality
        result = pipeline.reencoder.reencode(buffer, quality)
        report = build_report(buffer, result)
        report.save(Path(args.report))
        logger.info("Fidelity report written to %s (SSIM %.4f)", args.report, report.ssim)
    else:
        result = pipeline.reencode(reference, args.quality)
    output = result.save(args.output)
    logger.info("Converted to WebP: %s", output)
    return 0


def _run_resize(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    width, height = _resolve_size(args, required=True)
    pipeline = ImagePipeline.from_config(config)
    result = pipeline.resize_and_crop(resolve_reference(args.input), width, height)
    output = result.save(args.output)
    logger.info("Resized to %sx%s: %s", result.width, result.height, output)
    return 0


def _run_export(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    pipeline = ImagePipeline.from_config(config)
    uploader = ImageHostClient.from_config(config) if args.upload else None
    export = pipeline.clean_and_export(
        resolve_reference(args.input), args.quality, uploader=uploader, slug=args.slug
    )
    output = export.image.save(args.output)
    logger.info("Exported %s", output)
    if export.hosted_url:
        print(export.hosted_url)
    return 0


def _run_generate_url(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    width, height = _resolve_size(args, required=False)
    settings = dict(dict(config.get("services", {})).get("generation", {}))
    kwargs = {"seed": args.seed}
    if settings.get("base_url"):
        kwargs["base_url"] = settings["base_url"]
    print(build_image_url(args.prompt, width, height, **kwargs))
    return 0


def _run_suggest(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    client = SuggestionClient.from_config(config)
    for suggestion in client.suggest(args.prompt):
        print(suggestion)
    return 0


def _load_manifest(path: Path) -> Iterable[Dict[str, Any]]:
    content = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        data = yaml.safe_load(content)
    else:
        data = json.loads(content)
    if not isinstance(data, list):
        raise ValueError("Batch manifest must be a list of job entries.")
    return data


def _prepare_batch_items(entries: Iterable[Dict[str, Any]]) -> List[BatchItem]:
    items: List[BatchItem] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise ValueError(f"Batch entry must be a mapping of job fields, got {entry!r}")
        operation = entry.get("operation")
        if operation not in OPERATIONS:
            raise ValueError(f"Batch entry has unknown 'operation': {operation!r}")
        input_value = entry.get("input")
        output_path = entry.get("output")
        if not input_value or not output_path:
            raise ValueError("Batch entry must include 'input' and 'output' fields.")
        items.append(
            BatchItem(
                operation=operation,
                input=str(input_value),
                output_path=output_path,
                quality=entry.get("quality"),
                width=entry.get("width"),
                height=entry.get("height"),
            )
        )
    return items


def _summarize_batch(results: List[BatchResult]) -> int:
    success = sum(1 for r in results if r.success)
    failures = [r for r in results if not r.success]
    logger.info("Batch complete. Successes: %s | Failures: %s", success, len(failures))
    for result in failures:
        logger.error("Failed %s job for %s: %s", result.operation, result.input, result.error)
    return 0 if not failures else 1


def _run_batch(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    manifest_path = Path(args.manifest)
    items = _prepare_batch_items(_load_manifest(manifest_path))
    logger.info("Processing %s batch item(s) defined in %s", len(items), manifest_path)
    processor = BatchProcessor(config=config)
    return _summarize_batch(processor.process(items))


COMMANDS = {
    "clean": _run_clean,
    "convert": _run_convert,
    "resize": _run_resize,
    "export": _run_export,
    "generate-url": _run_generate_url,
    "suggest": _run_suggest,
    "batch": _run_batch,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    overrides: Dict[str, Any] = {}
    _apply_logging_overrides(overrides, args)
    _apply_batch_overrides(overrides, args)

    config = load_config(args.config, overrides=overrides or None)
    _configure_logging(config)

    try:
        return COMMANDS[args.command](args, config)
    except LoadError as exc:
        logger.error("%s", exc)
        if exc.fallback_url:
            logger.error("Try opening the original manually: %s", exc.fallback_url)
        return 1
    except (ImagingError, argparse.ArgumentTypeError, OSError, ValueError) as exc:
        logger.error("Command failed: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
