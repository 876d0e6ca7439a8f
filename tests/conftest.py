"""Pytest configuration and fixtures."""
import numpy as np
import pytest
from PIL import Image

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
YELLOW = (255, 255, 0)
JUNK = (9, 9, 9)


def make_grid(height, width, color=JUNK, alpha=0):
    """Create a uniform (H, W, 4) uint8 RGBA grid."""
    grid = np.zeros((height, width, 4), dtype=np.uint8)
    grid[..., :3] = color
    grid[..., 3] = alpha
    return grid


def save_png(grid, path):
    """Write an RGBA grid to a PNG file."""
    Image.fromarray(grid).save(path)
    return path


def load_png(path):
    """Read a PNG file back as an RGBA grid."""
    with Image.open(path) as img:
        return np.array(img.convert("RGBA"))


@pytest.fixture
def ring_grid():
    """4x4 grid: opaque 2x2 block of four colors inside a transparent ring."""
    grid = make_grid(4, 4)
    grid[1, 1] = (*RED, 255)
    grid[1, 2] = (*GREEN, 255)
    grid[2, 1] = (*BLUE, 255)
    grid[2, 2] = (*YELLOW, 255)
    return grid


@pytest.fixture
def tie_grid():
    """5x1 row: red opaque, three transparent, blue opaque."""
    grid = make_grid(1, 5)
    grid[0, 0] = (*RED, 255)
    grid[0, 4] = (*BLUE, 255)
    return grid


@pytest.fixture
def random_grid():
    """Random 30x25 grid with roughly a third of pixels transparent."""
    rng = np.random.default_rng(42)
    grid = rng.integers(0, 256, size=(30, 25, 4), dtype=np.uint8)
    transparent = rng.random((30, 25)) < 0.33
    grid[..., 3] = np.where(transparent, 0, grid[..., 3] | 1)
    return grid


def expected_ring_color(x, y, ring_grid):
    """Nearest interior pixel of the 2x2 block is the clamped coordinate."""
    cx = min(max(x, 1), 2)
    cy = min(max(y, 1), 2)
    return tuple(int(c) for c in ring_grid[cy, cx, :3])
