#!/usr/bin/env python3
"""
Refine quantized candidates into a palette.

Each stage takes a candidate list and returns a new one:
Filter → Boost → Diversify → Synthesize → Truncate
"""

import logging
import math
import random
from dataclasses import replace
from typing import Optional

from extract_colors import ColorCandidate, make_candidate

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

AREA_THRESHOLD_FACTOR = 0.5  # Filter keeps colors above half the configured area
SATURATION_SPREAD_THRESHOLD = 100  # max(rgb) - min(rgb) above this counts as vivid
BOOST_FACTOR = 2.0

CANONICAL_HUES = (0, 60, 120, 180, 240, 300)
HUE_BAND = 30  # Degrees around a canonical hue
MIN_DIVERSITY_AREA = 0.0001

# Synthesis preference order
BASE_COLORS = (
    (255, 0, 0),    # red
    (0, 255, 0),    # green
    (0, 0, 255),    # blue
    (255, 255, 0),  # yellow
    (255, 0, 255),  # magenta
    (0, 255, 255),  # cyan
)


# =============================================================================
# Distances
# =============================================================================

def hsl_distance(a: ColorCandidate, b: ColorCandidate) -> float:
    """Euclidean distance over the raw (h, s, l) components."""
    return math.dist(a.hsl, b.hsl)


def circular_hue_distance(hue1: float, hue2: float) -> float:
    """Compute minimum angular distance between two hues (0-180)."""
    diff = abs(hue1 - hue2) % 360
    return min(diff, 360 - diff)


def channel_spread(rgb: tuple) -> int:
    return max(rgb) - min(rgb)


def is_distinct(color: ColorCandidate, others: list[ColorCandidate], threshold: float) -> bool:
    """True if color is farther than threshold from every color in others."""
    return all(hsl_distance(color, other) > threshold for other in others)


# =============================================================================
# Color Filter
# =============================================================================

def filter_similar(colors: list[ColorCandidate], area_threshold: float,
                   similarity_threshold: float) -> list[ColorCandidate]:
    """
    Drop small colors and near-duplicates.

    colors[0] is the background and always kept. A later color survives
    only if its area beats half the threshold and it is farther than
    similarity_threshold from the background and from every color
    accepted before it.
    """
    if not colors:
        return []

    background = colors[0]
    accepted = [background]
    min_area = area_threshold * AREA_THRESHOLD_FACTOR

    for color in colors[1:]:
        if color.area <= min_area:
            continue
        # Background is accepted[0], so this covers both distance checks
        if is_distinct(color, accepted, similarity_threshold):
            accepted.append(color)

    return accepted


# =============================================================================
# Salience Booster
# =============================================================================

def boost_saturated(colors: list[ColorCandidate]) -> list[ColorCandidate]:
    """Double the area of vivid colors so they survive large neutral regions."""
    return [
        replace(c, area=c.area * BOOST_FACTOR) if channel_spread(c.rgb) > SATURATION_SPREAD_THRESHOLD else c
        for c in colors
    ]


# =============================================================================
# Diversity Enforcer
# =============================================================================

def in_hue_band(color: ColorCandidate, hue: float) -> bool:
    return circular_hue_distance(color.hsl[0], hue) <= HUE_BAND


def enforce_diversity(colors: list[ColorCandidate], pool: list[ColorCandidate]) -> list[ColorCandidate]:
    """
    Make every canonical hue band represented when the pool allows it.

    For each band with no member in colors, the first pool color in that
    band with a non-negligible area is appended. Pulled colors may repeat
    across bands. The result is re-sorted by area, descending.

    Args:
        colors: Filtered, boosted candidates
        pool: Candidates to pull missing hues from, in preference order
    """
    result = list(colors)

    for hue in CANONICAL_HUES:
        if any(in_hue_band(c, hue) for c in result):
            continue
        for candidate in pool:
            if in_hue_band(candidate, hue) and candidate.area > MIN_DIVERSITY_AREA:
                logger.debug("Pulled %s in for hue band %d", candidate.rgb, hue)
                result.append(candidate)
                break

    return sorted(result, key=lambda c: c.area, reverse=True)


# =============================================================================
# Color Synthesizer
# =============================================================================

def synthesize_color(existing: list[ColorCandidate], similarity_threshold: float,
                     rng: random.Random) -> ColorCandidate:
    """Pick the first base color unlike all existing colors, else a random one."""
    for rgb in BASE_COLORS:
        candidate = make_candidate(rgb)
        if is_distinct(candidate, existing, similarity_threshold):
            return candidate

    rgb = (rng.randint(0, 255), rng.randint(0, 255), rng.randint(0, 255))
    return make_candidate(rgb)


def synthesize_colors(colors: list[ColorCandidate], min_colors: int, similarity_threshold: float,
                      rng: Optional[random.Random] = None) -> list[ColorCandidate]:
    """
    Append synthesized colors until the list holds min_colors entries.

    Synthesized colors carry zero count and area, so they sort last.
    """
    rng = rng or random.Random()
    result = list(colors)

    while len(result) < min_colors:
        color = synthesize_color(result, similarity_threshold, rng)
        logger.debug("Synthesized %s", color.rgb)
        result.append(color)

    return result


def truncate(colors: list[ColorCandidate], size: int) -> list[ColorCandidate]:
    return list(colors[:size])
