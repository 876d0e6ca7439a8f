"""Border pixel detection: opaque pixels 8-connected to a transparent one."""
from concurrent.futures import Executor
from typing import List, Optional, Tuple
import logging

import numpy as np
from scipy import ndimage

from pixelfix.types import BorderPixels, PixelGrid, validate_grid

logger = logging.getLogger(__name__)

# (dx, dy) for N, NE, E, SE, S, SW, W, NW
NEIGHBOR_OFFSETS = (
    (0, -1),
    (1, -1),
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
    (-1, -1),
)

_NEIGHBORHOOD = np.ones((3, 3), dtype=bool)


def is_border_pixel(grid: PixelGrid, x: int, y: int) -> bool:
    """
    Check a single cell against the border rule.

    A pixel is a border pixel when its alpha is non-zero and at least one
    in-bounds 8-connected neighbor has alpha == 0. Neighbors outside the
    grid never count as transparent.
    """
    height, width = grid.shape[:2]
    if grid[y, x, 3] == 0:
        return False

    for dx, dy in NEIGHBOR_OFFSETS:
        nx, ny = x + dx, y + dy
        if 0 <= nx < width and 0 <= ny < height and grid[ny, nx, 3] == 0:
            return True
    return False


def _row_bands(height: int, band_rows: int) -> List[Tuple[int, int]]:
    """Split [0, height) into consecutive (start, end) row ranges."""
    band_rows = max(1, band_rows)
    return [(start, min(start + band_rows, height)) for start in range(0, height, band_rows)]


def _scan_band(grid: PixelGrid, start: int, end: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Find border pixels in rows [start, end).

    The band is read with a one-row halo above and below so neighbors in
    adjacent bands are seen. Rows beyond the grid are absent, and the
    dilation treats everything outside the slice as opaque.

    Returns:
        Tuple of (positions, colors) in row-major order
    """
    height = grid.shape[0]
    lo = max(start - 1, 0)
    hi = min(end + 1, height)

    alpha = grid[lo:hi, :, 3]
    transparent = alpha == 0

    # True wherever a pixel or one of its 8 neighbors is transparent
    touches = ndimage.binary_dilation(
        transparent, structure=_NEIGHBORHOOD, border_value=0
    )
    border = (alpha > 0) & touches
    border = border[start - lo:end - lo]

    ys, xs = np.nonzero(border)
    ys = ys + start

    positions = np.column_stack([xs, ys]).astype(np.float64)
    colors = grid[ys, xs, :3]
    return positions, colors


def find_border_pixels(
    grid: PixelGrid,
    executor: Optional[Executor] = None,
    max_border_pixels: Optional[int] = None,
    min_parallel_rows: int = 64,
    workers: int = 1,
) -> BorderPixels:
    """
    Collect every border pixel of a grid in row-major order.

    Args:
        grid: (H, W, 4) uint8 RGBA array (read only)
        executor: Optional executor; rows are split into bands and scanned
                  concurrently, then concatenated in band order
        max_border_pixels: Optional cap; keeps the first N in scan order
        min_parallel_rows: Minimum rows per band
        workers: Number of threads behind executor; rows are split into
                 about this many bands

    Returns:
        BorderPixels ordered by row, then column
    """
    validate_grid(grid)
    height, width = grid.shape[:2]

    if height == 0 or width == 0:
        return BorderPixels.empty()

    if executor is None or height <= min_parallel_rows:
        bands = [(0, height)]
        parts = [_scan_band(grid, 0, height)]
    else:
        band_rows = max(min_parallel_rows, -(-height // max(1, workers)))
        bands = _row_bands(height, band_rows)
        # map() yields in submission order, which keeps rows ordered
        parts = list(executor.map(lambda band: _scan_band(grid, *band), bands))

    positions = np.concatenate([p for p, _ in parts], axis=0)
    colors = np.concatenate([c for _, c in parts], axis=0)

    if max_border_pixels is not None and len(positions) > max_border_pixels:
        logger.warning(
            f"Truncating border pixels from {len(positions)} to {max_border_pixels}"
        )
        positions = positions[:max_border_pixels]
        colors = colors[:max_border_pixels]

    logger.debug(f"Found {len(positions)} border pixels in {len(bands)} band(s)")

    return BorderPixels(positions, colors)
