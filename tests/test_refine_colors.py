import itertools
import random

import numpy as np
import pytest

from extract_colors import make_candidate, quantize
from refine_colors import (
    BASE_COLORS, CANONICAL_HUES, boost_saturated, circular_hue_distance,
    enforce_diversity, filter_similar, hsl_distance, synthesize_colors, truncate,
)


def candidate(rgb, area):
    return make_candidate(rgb, count=int(area * 1000), area=area)


BLACK = candidate((0, 0, 0), 0.6)
WHITE = candidate((255, 255, 255), 0.3)


# =============================================================================
# Filter
# =============================================================================

def test_filter_keeps_background_unconditionally():
    tiny_background = candidate((10, 10, 10), 0.0001)
    assert filter_similar([tiny_background], 0.01, 20) == [tiny_background]


def test_filter_empty():
    assert filter_similar([], 0.01, 20) == []


def test_filter_uses_half_area_threshold():
    kept = candidate((255, 0, 0), 0.006)
    dropped = candidate((0, 0, 255), 0.004)
    assert filter_similar([BLACK, kept, dropped], 0.01, 20) == [BLACK, kept]


def test_filter_drops_colors_close_to_background():
    near_black = candidate((12, 12, 12), 0.2)
    assert filter_similar([BLACK, near_black, WHITE], 0.01, 20) == [BLACK, WHITE]


def test_filter_drops_colors_close_to_accepted():
    red = candidate((220, 30, 30), 0.2)
    similar_red = candidate((210, 35, 35), 0.1)
    assert filter_similar([BLACK, red, similar_red], 0.01, 20) == [BLACK, red]


def test_filter_leaves_no_near_duplicates():
    rng = np.random.default_rng(3)
    base = rng.integers(0, 256, size=(12, 3))
    pixels = np.repeat(base, rng.integers(50, 400, size=12), axis=0).astype(np.uint8)
    candidates = quantize(pixels)

    kept = filter_similar(candidates, 0.01, 20)

    assert kept[0] == candidates[0]
    for a, b in itertools.combinations(kept, 2):
        assert hsl_distance(a, b) > 20


# =============================================================================
# Booster
# =============================================================================

def test_boost_doubles_vivid_colors_only():
    red = candidate((220, 30, 30), 0.3)
    gray = candidate((120, 120, 120), 0.7)

    boosted = boost_saturated([gray, red])

    assert [c.area for c in boosted] == pytest.approx([0.7, 0.6])
    assert boosted[1].rgb == red.rgb
    # Inputs are untouched
    assert red.area == 0.3


def test_boost_threshold_is_exclusive():
    edge = candidate((150, 50, 50), 0.1)
    assert boost_saturated([edge])[0].area == pytest.approx(0.1)


# =============================================================================
# Diversity
# =============================================================================

def test_circular_hue_distance_wraps():
    assert circular_hue_distance(350, 10) == 20
    assert circular_hue_distance(0, 180) == 180


def test_diversity_pulls_missing_hue_from_pool():
    red = candidate((220, 30, 30), 0.5)
    green = candidate((30, 200, 30), 0.001)

    result = enforce_diversity([red], pool=[red, green])

    assert result == [red, green]


def test_diversity_ignores_negligible_pool_colors():
    red = candidate((220, 30, 30), 0.5)
    speck = candidate((30, 200, 30), 0.00005)
    assert enforce_diversity([red], pool=[red, speck]) == [red]


def test_diversity_resorts_by_area():
    red = candidate((220, 30, 30), 0.1)
    blue = candidate((30, 30, 220), 0.4)
    cyan = candidate((30, 200, 200), 0.2)

    result = enforce_diversity([red, blue], pool=[cyan])

    assert result == [blue, cyan, red]


def test_diversity_covers_every_available_band():
    rng = np.random.default_rng(11)
    pixels = rng.integers(0, 256, size=(5000, 3), dtype=np.uint8)
    pool = quantize(np.repeat(pixels[:300], 3, axis=0))
    filtered = boost_saturated(filter_similar(pool, 0.01, 20))

    result = enforce_diversity(filtered, pool=pool)

    for hue in CANONICAL_HUES:
        available = [c for c in pool if circular_hue_distance(c.hsl[0], hue) <= 30 and c.area > 0.0001]
        if available:
            assert any(circular_hue_distance(c.hsl[0], hue) <= 30 for c in result)


# =============================================================================
# Synthesizer
# =============================================================================

def test_synthesis_prefers_base_colors_in_order():
    result = synthesize_colors([BLACK, WHITE], 5, 20, random.Random(0))

    assert len(result) == 5
    assert [c.rgb for c in result[2:]] == [(255, 0, 0), (0, 255, 0), (0, 0, 255)]
    assert all(c.count == 0 and c.area == 0 for c in result[2:])


def test_synthesis_skips_base_colors_already_present():
    near_red = candidate((250, 5, 5), 0.4)
    result = synthesize_colors([near_red], 2, 20, random.Random(0))
    assert result[1].rgb == (0, 255, 0)


def test_synthesis_falls_back_to_random_colors():
    existing = [make_candidate(rgb) for rgb in BASE_COLORS]

    first = synthesize_colors(existing, 8, 20, random.Random(42))
    second = synthesize_colors(existing, 8, 20, random.Random(42))

    assert len(first) == 8
    assert [c.rgb for c in first] == [c.rgb for c in second]
    assert all(0 <= v <= 255 for c in first[6:] for v in c.rgb)


def test_synthesis_leaves_long_lists_alone():
    colors = [BLACK, WHITE]
    assert synthesize_colors(colors, 1, 20) == colors


def test_truncate():
    assert truncate([BLACK, WHITE], 1) == [BLACK]
    assert truncate([BLACK], 3) == [BLACK]
