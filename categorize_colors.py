#!/usr/bin/env python3
"""
Map a final palette onto semantic theming roles and format the output record.
"""

from typing import Optional

from extract_colors import ColorCandidate, make_candidate, rgb_to_hex

ROLES = ('primary', 'secondary', 'accent', 'text', 'background')

DEFAULT_BLACK = make_candidate((0, 0, 0))
DEFAULT_WHITE = make_candidate((255, 255, 255))
DEFAULT_GRAY = make_candidate((128, 128, 128))

MUTED_ALPHA = 0.5
GRAYSCALE_WEIGHTS = (0.299, 0.587, 0.114)


# =============================================================================
# Role Categorizer
# =============================================================================

def detect_accent_color(colors: list[ColorCandidate]) -> Optional[ColorCandidate]:
    """First saturated mid-to-light color (s > 50, 50 < l < 80), if any."""
    for color in colors:
        _, s, l = color.hsl
        if s > 50 and 50 < l < 80:
            return color
    return None


def promote_accent(palette: list[ColorCandidate], accent: Optional[ColorCandidate],
                   size: int) -> list[ColorCandidate]:
    """
    Move the accent to the front of the palette.

    An accent already in the palette is moved, not duplicated. An accent
    from outside it is inserted and the palette cut back to size, so the
    length never changes.
    """
    if accent is None:
        return list(palette)

    rest = list(palette)
    if accent in rest:
        rest.remove(accent)
        return [accent] + rest
    return ([accent] + rest)[:size]


def first_matching(colors: list[ColorCandidate], predicate) -> Optional[ColorCandidate]:
    return next((c for c in colors if predicate(c)), None)


def categorize(colors: list[ColorCandidate]) -> dict:
    """
    Assign each role a color. Total over all palettes, including empty ones.

    Returns:
        dict mapping each name in ROLES to a ColorCandidate (roles may share one)
    """
    first = colors[0] if colors else None

    primary = first or DEFAULT_BLACK
    secondary = colors[1] if len(colors) > 1 else (first or DEFAULT_WHITE)

    accent = detect_accent_color(colors)
    if accent is None:
        accent = colors[2] if len(colors) > 2 else (first or DEFAULT_GRAY)

    text = first_matching(colors, lambda c: c.hsl[2] < 30) or first or DEFAULT_BLACK
    background = first_matching(colors, lambda c: c.hsl[2] > 80) or (colors[-1] if colors else DEFAULT_WHITE)

    return {
        'primary': primary,
        'secondary': secondary,
        'accent': accent,
        'text': text,
        'background': background,
    }


# =============================================================================
# Output
# =============================================================================

def rgb_string(rgb: tuple) -> str:
    return f"rgb({rgb[0]},{rgb[1]},{rgb[2]})"


def rgba_string(rgb: tuple, alpha: float) -> str:
    return f"rgba({rgb[0]},{rgb[1]},{rgb[2]},{alpha})"


def grayscale_of(rgb: tuple) -> str:
    """Luminance-weighted gray equivalent as an rgb() string."""
    y = round(sum(w * c for w, c in zip(GRAYSCALE_WEIGHTS, rgb)))
    return rgb_string((y, y, y))


def format_output(palette: list[ColorCandidate], roles: dict) -> dict:
    """Build the output record from the final palette and its roles."""
    top = palette[0] if palette else roles['primary']
    return {
        'primaryColor': rgb_string(roles['primary'].rgb),
        'secondaryColor': rgb_string(roles['secondary'].rgb),
        'accentColor': rgb_string(roles['accent'].rgb),
        'textColor': rgb_string(roles['text'].rgb),
        'backgroundColor': rgb_string(roles['background'].rgb),
        'mutedColor': rgba_string(top.rgb, MUTED_ALPHA),
        'grayscale': [grayscale_of(top.rgb)],
        'allColors': [
            {'hex': rgb_to_hex(c.rgb), 'rgb': rgb_string(c.rgb), 'area': c.area}
            for c in palette
        ],
    }


def empty_result() -> dict:
    """Record returned when extraction is unavailable. Same keys as format_output()."""
    return {
        'primaryColor': None,
        'secondaryColor': None,
        'accentColor': None,
        'textColor': None,
        'backgroundColor': None,
        'mutedColor': None,
        'grayscale': [],
        'allColors': [],
    }


def assemble_site_style(record: dict) -> dict:
    """Site style block: the non-empty primary and muted colors plus grays."""
    return {
        'colors': [c for c in (record['primaryColor'], record['mutedColor']) if c],
        'grays': list(record['grayscale']),
    }
