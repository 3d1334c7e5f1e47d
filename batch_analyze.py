#!/usr/bin/env python3
"""Batch extract palettes from a directory of screenshots and write JSON records."""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

from analyze import configure_logging, run_pipeline
from categorize_colors import assemble_site_style, format_output
from palette_config import PaletteConfig, add_config_arguments, config_from_args

logger = logging.getLogger(__name__)


def find_images(directory: Path) -> list[Path]:
    """Find all image files in directory."""
    extensions = {'.jpg', '.jpeg', '.png', '.webp'}
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in extensions
    )


def analyze_one(image_path: Path, config: PaletteConfig) -> dict:
    """Extract one screenshot into a report with record and site style."""
    stages = run_pipeline(str(image_path), config)
    record = format_output(stages.promoted, stages.roles)
    return {
        'image': image_path.name,
        'colors': record,
        'siteStyle': assemble_site_style(record),
    }


def run_batch(images: list[Path], output_dir: Path, config: PaletteConfig) -> tuple[int, list]:
    """
    Process every image, writing <stem>-palette.json into output_dir.

    Returns:
        Tuple of (succeeded, failed) where failed lists (name, error) pairs
    """
    total = len(images)
    succeeded = 0
    failed = []

    for i, image_path in enumerate(images, 1):
        try:
            img_start = time.perf_counter()
            report = analyze_one(image_path, config)
            img_elapsed = time.perf_counter() - img_start

            output_file = output_dir / f"{image_path.stem}-palette.json"
            if output_file.exists():
                logger.warning("Overwriting %s", output_file.name)
            output_file.write_text(json.dumps(report, indent=2))

            print(f"[{i}/{total}] {image_path.name} → {report['colors']['primaryColor']} ({img_elapsed:.2f}s)")
            succeeded += 1

        except (OSError, ValueError) as e:
            error_msg = f"{type(e).__name__}: {e}"
            print(f"[{i}/{total}] {image_path.name} → ERROR: {error_msg}", file=sys.stderr)
            failed.append((image_path.name, error_msg))

    return succeeded, failed


def main():
    parser = argparse.ArgumentParser(
        description='Batch extract palettes from screenshots and write JSON records.'
    )
    parser.add_argument(
        '--input', '-i',
        required=True,
        help='Directory containing screenshots'
    )
    parser.add_argument(
        '--output', '-o',
        required=True,
        help='Directory for JSON output files'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Log every stage')
    parser.add_argument('--quiet', '-q', action='store_true', help='Only log errors')
    add_config_arguments(parser)

    args = parser.parse_args()
    configure_logging(args.verbose, args.quiet)

    input_dir = Path(args.input)
    output_dir = Path(args.output)

    try:
        config = config_from_args(args)
    except (OSError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    # Validate input directory
    if not input_dir.is_dir():
        print(f"Error: Input directory not found: {input_dir}", file=sys.stderr)
        sys.exit(2)

    # Create output directory if needed
    output_dir.mkdir(parents=True, exist_ok=True)

    # Find images
    images = find_images(input_dir)
    if not images:
        print(f"No images found in {input_dir}", file=sys.stderr)
        sys.exit(2)

    batch_start = time.perf_counter()
    succeeded, failed = run_batch(images, output_dir, config)
    batch_elapsed = time.perf_counter() - batch_start

    # Summary
    print()
    print(f"Completed: {succeeded}/{len(images)} succeeded in {batch_elapsed:.2f}s")
    if succeeded > 0:
        print(f"Average: {batch_elapsed / succeeded:.2f}s per image")
    if failed:
        print(f"Failed ({len(failed)}):")
        for name, error in failed:
            print(f"  - {name}: {error}")
        sys.exit(1)


if __name__ == '__main__':
    main()
