#!/usr/bin/env python3
"""
Unified palette extraction pipeline.

Extracts a themable color palette from a rendered page screenshot.
Stages: Sample → Quantize → Filter → Boost → Diversify → Synthesize → Categorize
"""

import json
import logging
import os
import random
from dataclasses import dataclass, field
from typing import Optional

from categorize_colors import (
    assemble_site_style, categorize, detect_accent_color,
    empty_result, format_output, promote_accent,
)
from extract_colors import (
    ColorCandidate, load_image, quantize, quantize_kmeans,
    sample_pixels, visualize_palette,
)
from palette_config import PaletteConfig
from refine_colors import (
    boost_saturated, enforce_diversity, filter_similar,
    synthesize_colors, truncate,
)

logger = logging.getLogger(__name__)


@dataclass
class PaletteStages:
    """Every intermediate list of one pipeline run, in stage order."""
    total_pixels: int
    candidates: list  # Quantized, by count descending
    filtered: list
    boosted: list
    diversified: list
    synthesized: list  # Before truncation
    palette: list  # Truncated to min_colors
    accent: Optional[ColorCandidate]
    promoted: list  # Final palette
    roles: dict = field(default_factory=dict)


# =============================================================================
# Main Pipeline
# =============================================================================

def run_pipeline(source, config: Optional[PaletteConfig] = None, rng: Optional[random.Random] = None) -> PaletteStages:
    """
    Run every stage on one screenshot.

    Args:
        source: Image path, file object or PIL image
        config: Extraction parameters, defaults to PaletteConfig()
        rng: Random source for fallback synthesized colors, seeded from config.seed if omitted

    Raises:
        FileNotFoundError: If the image file doesn't exist
        ValueError: If the image cannot be decoded or resized
    """
    config = config or PaletteConfig()
    rng = rng or random.Random(config.seed)

    # Stage 1: Sample and quantize
    img = load_image(source)
    pixels, total = sample_pixels(img, config.sample_size)
    if config.quantizer == 'kmeans':
        candidates = quantize_kmeans(pixels, config.kmeans_clusters, seed=config.seed, total=total)
    else:
        candidates = quantize(pixels, total)

    # Stage 2: Refine
    filtered = filter_similar(candidates, config.area_threshold, config.similarity_threshold)
    boosted = boost_saturated(filtered)
    diversified = enforce_diversity(boosted, pool=candidates)
    synthesized = synthesize_colors(diversified, config.min_colors, config.similarity_threshold, rng)

    # Stage 3: Categorize
    accent = detect_accent_color(synthesized)
    palette = truncate(synthesized, config.min_colors)
    promoted = promote_accent(palette, accent, config.min_colors)
    roles = categorize(promoted)

    logger.debug(
        "Stages: %d candidates, %d filtered, %d diversified, %d synthesized, %d final",
        len(candidates), len(filtered), len(diversified), len(synthesized), len(promoted)
    )

    return PaletteStages(
        total_pixels=total,
        candidates=candidates,
        filtered=filtered,
        boosted=boosted,
        diversified=diversified,
        synthesized=synthesized,
        palette=palette,
        accent=accent,
        promoted=promoted,
        roles=roles,
    )


def extract_palette(source, config: Optional[PaletteConfig] = None, rng: Optional[random.Random] = None) -> dict:
    """
    Extract the output record for one screenshot.

    Never raises for unreadable images: the failure is logged and the
    all-null record from empty_result() is returned instead.
    """
    try:
        stages = run_pipeline(source, config, rng)
    except (OSError, ValueError) as e:
        logger.warning("Color extraction failed for %s: %s", source, e)
        return empty_result()

    return format_output(stages.promoted, stages.roles)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Set up root logging from CLI flags, falling back to LOG_LEVEL."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = getattr(logging, os.environ.get('LOG_LEVEL', 'INFO').upper(), logging.INFO)
    logging.basicConfig(level=level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')


# =============================================================================
# CLI
# =============================================================================

def main():
    import argparse
    import sys
    from pathlib import Path

    from palette_config import add_config_arguments, config_from_args

    parser = argparse.ArgumentParser(
        description='Extract a themable color palette from a page screenshot.'
    )
    parser.add_argument(
        '--input', '-i',
        required=True,
        help='Path to the screenshot'
    )
    parser.add_argument(
        '--output', '-o',
        nargs='?',
        const=True,
        default=None,
        help='Write the JSON record. Optionally specify path, otherwise auto-names from input.'
    )
    parser.add_argument(
        '--swatch', '-s',
        nargs='?',
        const=True,
        default=None,
        help='Write a PNG swatch of the palette. Optionally specify path.'
    )
    parser.add_argument(
        '--site-style',
        action='store_true',
        help='Include the site style block in the JSON output'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Log every stage')
    parser.add_argument('--quiet', '-q', action='store_true', help='Only log errors')
    add_config_arguments(parser)

    args = parser.parse_args()
    configure_logging(args.verbose, args.quiet)
    image_path = Path(args.input)

    try:
        config = config_from_args(args)
    except (OSError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        stages = run_pipeline(str(image_path), config)
    except (OSError, ValueError) as e:
        logger.warning("Color extraction failed for %s: %s", image_path, e)
        stages = None

    record = format_output(stages.promoted, stages.roles) if stages else empty_result()
    if args.site_style:
        record = {**record, 'siteStyle': assemble_site_style(record)}

    output = json.dumps(record, indent=2)
    print(output)

    if args.output:
        if args.output is True:
            output_path = image_path.with_name(f"{image_path.stem}-palette.json")
        else:
            output_path = Path(args.output)

        try:
            output_path.write_text(output)
            print(f"\nWrote: {output_path}")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            sys.exit(1)

    if args.swatch and stages:
        if args.swatch is True:
            swatch_path = image_path.with_name(f"{image_path.stem}-swatch.png")
        else:
            swatch_path = Path(args.swatch)
        visualize_palette(stages.promoted, swatch_path, stages.roles)

    if stages is None:
        sys.exit(1)


if __name__ == '__main__':
    main()
