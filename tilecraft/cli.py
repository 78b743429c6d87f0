"""
Command-line interface.

Usage:
    python -m tilecraft split <image> [--grid 9] [--layout 0] [--enhance] [-o tiles.zip]
    python -m tilecraft crop <images...> [--ratio 16:9] [--pan-x 0] [--pan-y 0] [-o crops.zip]
    python -m tilecraft enhance <images...> [--target-width 3840] [-o enhanced.zip]
    python -m tilecraft segment <images...> [-o cutouts.zip]
    python -m tilecraft layouts
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import yaml

from .config.settings import TilecraftConfig
from .errors import DecodeError, TilecraftError
from .geometry.models import CROP_RATIOS, GRID_LAYOUTS
from .processing.runner import RunReport
from .sampling.codec import load_image
from .workflows import CropWorkflow, EnhanceWorkflow, SegmentWorkflow, SplitWorkflow
from .workflows.base import BatchWorkflow

logger = logging.getLogger(__name__)


def setup_argparse() -> argparse.ArgumentParser:
    """Set up argument parser."""
    parser = argparse.ArgumentParser(
        prog="tilecraft",
        description="Grid splitting, cropping, enhancement and background removal for images",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="YAML configuration file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # split
    split_parser = subparsers.add_parser("split", help="Split one image into a uniform grid")
    split_parser.add_argument("image_path", type=str, help="Path to the source image")
    split_parser.add_argument(
        "--grid",
        choices=[g.value for g in GRID_LAYOUTS],
        default="9",
        help="Number of tiles (default: 9)",
    )
    split_parser.add_argument(
        "--layout",
        type=int,
        default=0,
        help="Layout index for that tile count, 0 = landscape (default: 0)",
    )
    split_parser.add_argument(
        "--enhance",
        action="store_true",
        help="Enhance every tile before export",
    )
    split_parser.add_argument("-o", "--output", type=str, default="tiles.zip", help="Output archive")

    # crop
    crop_parser = subparsers.add_parser("crop", help="Crop images to an aspect ratio")
    crop_parser.add_argument("image_paths", nargs="+", help="Input images")
    crop_parser.add_argument(
        "--ratio",
        type=str,
        default=None,
        help=f"Aspect ratio, e.g. {', '.join(r.label for r in CROP_RATIOS[:4])} (default: config)",
    )
    crop_parser.add_argument("--pan-x", type=float, default=0.0, help="Horizontal pan in percent")
    crop_parser.add_argument("--pan-y", type=float, default=0.0, help="Vertical pan in percent")
    crop_parser.add_argument("-o", "--output", type=str, default="crops.zip", help="Output archive")

    # enhance
    enhance_parser = subparsers.add_parser("enhance", help="Upscale images")
    enhance_parser.add_argument("image_paths", nargs="+", help="Input images")
    enhance_parser.add_argument(
        "--target-width",
        type=int,
        default=None,
        help="Target width in pixels (default: config, 3840)",
    )
    enhance_parser.add_argument("-o", "--output", type=str, default="enhanced.zip", help="Output archive")

    # segment
    segment_parser = subparsers.add_parser("segment", help="Remove image backgrounds")
    segment_parser.add_argument("image_paths", nargs="+", help="Input images")
    segment_parser.add_argument("-o", "--output", type=str, default="cutouts.zip", help="Output archive")

    # layouts
    subparsers.add_parser("layouts", help="List grid layouts and crop ratios as JSON")

    return parser


def load_inputs(paths: List[str]) -> Tuple[List[Tuple[str, np.ndarray]], int]:
    """Decode input files, reporting the ones that fail. Returns (images, error count)."""
    images = []
    errors = 0
    for path in paths:
        try:
            images.append((Path(path).name, load_image(path)))
        except DecodeError as e:
            print(f"Error: {e}", file=sys.stderr)
            errors += 1
    return images, errors


def print_report(workflow: BatchWorkflow, report: Optional[RunReport]) -> None:
    """Print a run summary."""
    counts = workflow.batch.counts()
    print("\nResults:")
    print(f"  Total: {len(workflow.batch)}")
    print(f"  Completed: {counts['completed']}")
    print(f"  Failed: {counts['failed']}")
    if report is not None:
        print(f"  Time: {report.elapsed_ms:.1f}ms")
    for item in workflow.items():
        if item.error:
            print(f"  ! {item.name}: {item.error}", file=sys.stderr)


def run_batch_command(workflow: BatchWorkflow, paths: List[str], output: str) -> int:
    """Shared flow of the crop, enhance and segment commands."""
    images, decode_errors = load_inputs(paths)
    added = workflow.add_images(images)
    if len(added) < len(images):
        print(
            f"Warning: batch limit reached, processing the first {len(added)} image(s)",
            file=sys.stderr,
        )

    print(f"Processing {len(added)} image(s)...")
    report = asyncio.run(workflow.process_all())
    print_report(workflow, report)

    if workflow.completed_items():
        archive_path = workflow.export_archive(output)
        print(f"\nResults saved to: {archive_path}")

    failed = workflow.batch.counts()["failed"]
    return 0 if failed == 0 and decode_errors == 0 else 1


def cmd_split(args, config: TilecraftConfig) -> int:
    """Handle split command."""
    try:
        image = load_image(args.image_path)
    except DecodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    workflow = SplitWorkflow(config)
    workflow.set_source(image)
    try:
        tiles = workflow.split(args.grid, args.layout)
    except TilecraftError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Split into {len(tiles)} tiles ({workflow.grid.label})")

    report = None
    if args.enhance:
        report = asyncio.run(workflow.process_all())
        print_report(workflow, report)

    archive_path = workflow.export_archive(args.output)
    print(f"\nResults saved to: {archive_path}")

    if report is not None and report.failed:
        return 1
    return 0


def cmd_crop(args, config: TilecraftConfig) -> int:
    """Handle crop command."""
    workflow = CropWorkflow(config)
    if args.ratio:
        try:
            workflow.set_ratio(args.ratio)
        except TilecraftError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    images, decode_errors = load_inputs(args.image_paths)
    for item in workflow.add_images(images):
        workflow.set_pan(item.id, args.pan_x, args.pan_y)

    print(f"Cropping {len(workflow.batch)} image(s) to {workflow.ratio.label}...")
    report = asyncio.run(workflow.process_all())
    print_report(workflow, report)

    if workflow.completed_items():
        archive_path = workflow.export_archive(args.output)
        print(f"\nResults saved to: {archive_path}")

    failed = workflow.batch.counts()["failed"]
    return 0 if failed == 0 and decode_errors == 0 else 1


def cmd_enhance(args, config: TilecraftConfig) -> int:
    """Handle enhance command."""
    if args.target_width is not None:
        try:
            config.enhance = replace(config.enhance, target_width=args.target_width)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    return run_batch_command(EnhanceWorkflow(config), args.image_paths, args.output)


def cmd_segment(args, config: TilecraftConfig) -> int:
    """Handle segment command."""
    return run_batch_command(SegmentWorkflow(config), args.image_paths, args.output)


def cmd_layouts(args, config: TilecraftConfig) -> int:
    """Handle layouts command."""
    output = {
        "grids": {
            grid_type.value: [spec.to_dict() for spec in specs]
            for grid_type, specs in GRID_LAYOUTS.items()
        },
        "crop_ratios": [{"label": r.label, "ratio": r.ratio} for r in CROP_RATIOS],
    }
    print(json.dumps(output, indent=2))
    return 0


COMMANDS = {
    "split": cmd_split,
    "crop": cmd_crop,
    "enhance": cmd_enhance,
    "segment": cmd_segment,
    "layouts": cmd_layouts,
}


def main(args: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        args: Command line arguments (uses sys.argv if not provided)

    Returns:
        Exit code (0 for success)
    """
    parser = setup_argparse()
    parsed = parser.parse_args(args)

    # Configure logging
    log_level = logging.DEBUG if parsed.verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if parsed.command is None:
        parser.print_help()
        return 0

    try:
        config = TilecraftConfig.from_yaml(parsed.config) if parsed.config else TilecraftConfig()
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    return COMMANDS[parsed.command](parsed, config)


if __name__ == "__main__":
    sys.exit(main())
