import numpy as np
import pytest
from PIL import Image


def striped_image(bands: list, width: int = 100) -> Image.Image:
    """Stack horizontal bands of solid color: bands is a list of (rgb, rows)."""
    rows = []
    for rgb, height in bands:
        rows.append(np.tile(np.array(rgb, dtype=np.uint8), (height, width, 1)))
    return Image.fromarray(np.concatenate(rows, axis=0), 'RGB')


@pytest.fixture
def make_image():
    return striped_image


@pytest.fixture
def noise_image():
    rng = np.random.default_rng(7)
    pixels = rng.integers(0, 256, size=(120, 160, 3), dtype=np.uint8)
    return Image.fromarray(pixels, 'RGB')


@pytest.fixture
def broken_image(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"this is not a png")
    return path
