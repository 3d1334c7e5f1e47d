#!/usr/bin/env python3
"""
Sample a screenshot and quantize its pixels into HSL-bucketed color candidates.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image, ImageDraw, ImageOps

logger = logging.getLogger(__name__)

# Image size limits (security: prevent decompression bombs)
MAX_IMAGE_PIXELS = 50_000_000  # 50 megapixels
MAX_IMAGE_DIMENSION = 20_000  # full-page screenshots are tall

SAMPLE_SIZE = 200  # Side of the square the screenshot is cover-fitted to


@dataclass(frozen=True)
class ColorCandidate:
    """A representative color and its share of the sampled pixels."""
    rgb: tuple  # (r, g, b) 0-255
    hsl: tuple  # (h, s, l) h in [0, 360), s/l in [0, 100]
    count: int = 0
    area: float = 0.0


# =============================================================================
# Color Conversion
# =============================================================================

def rgb_to_hsl(rgb: np.ndarray) -> np.ndarray:
    """Convert RGB array (0-255) to HSL (h in degrees, s/l in percent)."""
    rgb_norm = np.atleast_2d(rgb).astype(np.float64) / 255.0
    r, g, b = rgb_norm[:, 0], rgb_norm[:, 1], rgb_norm[:, 2]

    mx = rgb_norm.max(axis=1)
    mn = rgb_norm.min(axis=1)
    delta = mx - mn
    L = (mx + mn) / 2

    # Achromatic pixels have zero delta; avoid dividing by it
    chromatic = delta > 0
    safe_delta = np.where(chromatic, delta, 1.0)
    denom = 1 - np.abs(2 * L - 1)
    S = np.where(chromatic, delta / np.where(denom > 0, denom, 1.0), 0.0)

    h = np.where(
        mx == r, ((g - b) / safe_delta) % 6,
        np.where(mx == g, (b - r) / safe_delta + 2, (r - g) / safe_delta + 4)
    )
    H = np.where(chromatic, h * 60, 0.0) % 360

    return np.column_stack([H, np.clip(S, 0, 1) * 100, L * 100])


def hsl_to_rgb(hsl: np.ndarray) -> np.ndarray:
    """Convert HSL array to RGB (0-255)."""
    hsl = np.atleast_2d(hsl).astype(np.float64)
    H = hsl[:, 0] % 360
    S = hsl[:, 1] / 100
    L = hsl[:, 2] / 100

    c = (1 - np.abs(2 * L - 1)) * S
    x = c * (1 - np.abs((H / 60) % 2 - 1))
    m = L - c / 2
    zero = np.zeros_like(c)

    sector = (H // 60).astype(np.int32)
    r = np.select([sector == 0, sector == 1, sector == 2, sector == 3, sector == 4], [c, x, zero, zero, x], c)
    g = np.select([sector == 0, sector == 1, sector == 2, sector == 3, sector == 4], [x, c, c, x, zero], zero)
    b = np.select([sector == 0, sector == 1, sector == 2, sector == 3, sector == 4], [zero, zero, x, c, c], x)

    rgb = np.column_stack([r + m, g + m, b + m])
    return np.clip(np.round(rgb * 255), 0, 255).astype(np.uint8)


def rgb_to_hex(rgb: tuple) -> str:
    """Convert RGB tuple to lowercase hex string."""
    return f"#{int(rgb[0]):02x}{int(rgb[1]):02x}{int(rgb[2]):02x}"


def make_candidate(rgb: tuple, count: int = 0, area: float = 0.0) -> ColorCandidate:
    """Build a candidate from an RGB triple, deriving its HSL."""
    rgb = tuple(int(c) for c in rgb)
    hsl = rgb_to_hsl(np.array(rgb))[0]
    return ColorCandidate(rgb=rgb, hsl=tuple(float(v) for v in hsl), count=count, area=area)


# =============================================================================
# Pixel Sampler
# =============================================================================

def load_image(source) -> Image.Image:
    """
    Open a screenshot and return it as an RGB image.

    Args:
        source: Path, file object, or an already decoded PIL image

    Raises:
        FileNotFoundError: If the image file doesn't exist
        ValueError: If the source is not a valid image or exceeds size limits
    """
    if isinstance(source, Image.Image):
        img = source
    else:
        try:
            img = Image.open(source)
        except FileNotFoundError:
            raise FileNotFoundError(f"Image not found: {source}")
        except Exception as e:
            raise ValueError(f"Could not open image: {e}")

    width, height = img.size
    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise ValueError(
            f"Image dimensions {width}x{height} exceed maximum "
            f"{MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}"
        )
    if width * height > MAX_IMAGE_PIXELS:
        raise ValueError(
            f"Image has {width * height:,} pixels, exceeding maximum {MAX_IMAGE_PIXELS:,}"
        )

    try:
        return img.convert('RGB')
    except Exception as e:
        raise ValueError(f"Could not decode image: {e}")


def sample_pixels(img: Image.Image, size: int = SAMPLE_SIZE) -> tuple[np.ndarray, int]:
    """
    Cover-fit the image to a size x size square and flatten it.

    Returns:
        Tuple of (pixels, total) where pixels has shape (size*size, 3), row-major
    """
    try:
        resized = ImageOps.fit(img, (size, size), method=Image.Resampling.BILINEAR)
    except Exception as e:
        raise ValueError(f"Could not resize image: {e}")

    pixels = np.asarray(resized, dtype=np.uint8).reshape(-1, 3)
    return pixels, len(pixels)


# =============================================================================
# Color Quantizer
# =============================================================================

def quantize(pixels: np.ndarray, total: Optional[int] = None) -> list[ColorCandidate]:
    """
    Bucket pixels by rounded HSL and count them.

    Near-identical shades collapse into one bucket; each bucket's RGB is
    recomputed from its rounded HSL, not taken from any source pixel.

    Args:
        pixels: Array of shape (n, 3) with RGB values
        total: Pixel count used for area, defaults to len(pixels)

    Returns:
        Candidates sorted by pixel count descending.
    """
    total = len(pixels) if total is None else total
    if len(pixels) == 0 or total == 0:
        return []

    hsl = rgb_to_hsl(pixels)
    binned = np.round(hsl).astype(np.int32)
    binned[:, 0] %= 360

    unique_bins, counts = np.unique(binned, axis=0, return_counts=True)
    rgb = hsl_to_rgb(unique_bins)

    order = np.argsort(-counts, kind='stable')
    return [
        ColorCandidate(
            rgb=tuple(int(c) for c in rgb[i]),
            hsl=tuple(float(v) for v in unique_bins[i]),
            count=int(counts[i]),
            area=float(counts[i]) / total,
        )
        for i in order
    ]


def quantize_kmeans(pixels: np.ndarray, n_clusters: int = 16, seed: Optional[int] = None,
                    total: Optional[int] = None) -> list[ColorCandidate]:
    """
    Cluster pixels with k-means instead of HSL buckets.

    Produces the same candidate contract as quantize(): one representative
    per cluster weighted by the pixels assigned to it.
    """
    from sklearn.cluster import KMeans

    total = len(pixels) if total is None else total
    if len(pixels) == 0 or total == 0:
        return []

    # More clusters than distinct colors would leave empty centers
    distinct = len(np.unique(pixels, axis=0))
    k = max(1, min(n_clusters, distinct))

    kmeans = KMeans(n_clusters=k, n_init='auto', random_state=seed)
    labels = kmeans.fit_predict(pixels.astype(np.float64))
    centers = np.clip(np.round(kmeans.cluster_centers_), 0, 255).astype(np.uint8)
    counts = np.bincount(labels, minlength=k)

    order = np.argsort(-counts, kind='stable')
    return [
        make_candidate(centers[i], count=int(counts[i]), area=float(counts[i]) / total)
        for i in order
        if counts[i] > 0
    ]


def extract_colors(source, size: int = SAMPLE_SIZE) -> list[ColorCandidate]:
    """Load, sample and bucket-quantize a screenshot in one call."""
    img = load_image(source)
    pixels, total = sample_pixels(img, size)
    candidates = quantize(pixels, total)
    logger.debug("Quantized %d pixels into %d buckets", total, len(candidates))
    return candidates


# =============================================================================
# Visualization
# =============================================================================

def visualize_palette(colors: list[ColorCandidate], output_path, roles: Optional[dict] = None) -> None:
    """
    Create a swatch image of the palette with hex, area and role labels.

    Args:
        colors: Final palette
        output_path: Path to save the output image
        roles: Optional role -> candidate mapping; matching roles are listed under each swatch
    """
    roles = roles or {}
    swatch_size = 80
    padding = 10
    text_height = 45
    cols = max(1, min(len(colors), 6))
    rows = max(1, (len(colors) + cols - 1) // cols)

    img_width = cols * (swatch_size + padding) + padding
    img_height = rows * (swatch_size + text_height + padding) + padding

    img = Image.new('RGB', (img_width, img_height), (240, 240, 240))
    draw = ImageDraw.Draw(img)

    for i, color in enumerate(colors):
        row = i // cols
        col = i % cols

        x = padding + col * (swatch_size + padding)
        y = padding + row * (swatch_size + text_height + padding)

        draw.rectangle([x, y, x + swatch_size, y + swatch_size], fill=color.rgb)

        role_names = [name for name, c in roles.items() if c == color]
        lines = [rgb_to_hex(color.rgb), f"{color.area * 100:.1f}%"]
        if role_names:
            lines.append(",".join(name[:4] for name in role_names))

        for j, text in enumerate(lines):
            bbox = draw.textbbox((0, 0), text)
            text_width = bbox[2] - bbox[0]
            text_x = x + (swatch_size - text_width) // 2
            draw.text((text_x, y + swatch_size + 3 + j * 13), text, fill=(0, 0, 0))

    img.save(output_path)
    logger.info("Saved swatch to %s", output_path)


if __name__ == '__main__':
    import sys

    if len(sys.argv) < 2:
        print("Usage: extract_colors.py IMAGE", file=sys.stderr)
        sys.exit(2)

    image_path = Path(sys.argv[1])
    candidates = extract_colors(str(image_path))
    print(f"{image_path.name}: {len(candidates)} buckets")
    for c in candidates[:12]:
        print(f"  {rgb_to_hex(c.rgb)}  {c.area * 100:5.1f}%  hsl{tuple(int(v) for v in c.hsl)}")
