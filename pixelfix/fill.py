"""Nearest-color fill of fully transparent pixels."""
from concurrent.futures import Executor
from typing import Optional
import logging

import numpy as np

from pixelfix.spatial_index import SpatialIndex
from pixelfix.types import BorderPixels, PixelGrid, validate_grid

logger = logging.getLogger(__name__)

OPAQUE = 255
TRANSPARENT = 0


def _fill_chunk(
    index: SpatialIndex,
    border_pixels: BorderPixels,
    grid: PixelGrid,
    ys: np.ndarray,
    xs: np.ndarray,
    alpha: int,
) -> int:
    """
    Fill one chunk of transparent pixels.

    Every chunk owns a disjoint set of cells, so chunks can be written
    concurrently without locking.

    Returns:
        Number of pixels left untouched because the lookup was out of range
    """
    queries = np.column_stack([xs, ys]).astype(np.float64)
    nearest = index.nearest(queries)

    valid = (nearest >= 0) & (nearest < len(border_pixels))
    if not np.all(valid):
        ys, xs, nearest = ys[valid], xs[valid], nearest[valid]

    grid[ys, xs, :3] = border_pixels.colors[nearest]
    grid[ys, xs, 3] = alpha

    return int(np.count_nonzero(~valid))


def fill_transparent_pixels(
    index: SpatialIndex,
    border_pixels: BorderPixels,
    grid: PixelGrid,
    visualize: bool = False,
    executor: Optional[Executor] = None,
    chunk_size: int = 65536,
) -> int:
    """
    Overwrite every alpha == 0 pixel with its nearest border pixel's color.

    Pixels with alpha > 0 are left untouched. Queries use the unjittered
    pixel coordinates.

    Args:
        index: Spatial index built from border_pixels (must not be empty)
        border_pixels: Border pixel sequence the index points into
        grid: (H, W, 4) uint8 RGBA array, modified in place
        visualize: If True, filled pixels become opaque so they can be seen
        executor: Optional executor to fill chunks concurrently
        chunk_size: Number of transparent pixels per task

    Returns:
        Number of transparent pixels skipped due to an invalid lookup
    """
    validate_grid(grid)

    ys, xs = np.nonzero(grid[..., 3] == 0)
    if len(ys) == 0:
        return 0

    alpha = OPAQUE if visualize else TRANSPARENT
    chunk_size = max(1, chunk_size)
    bounds = [(start, start + chunk_size) for start in range(0, len(ys), chunk_size)]

    if executor is None or len(bounds) == 1:
        anomalies = sum(
            _fill_chunk(index, border_pixels, grid, ys[s:e], xs[s:e], alpha)
            for s, e in bounds
        )
    else:
        futures = [
            executor.submit(_fill_chunk, index, border_pixels, grid, ys[s:e], xs[s:e], alpha)
            for s, e in bounds
        ]
        anomalies = sum(future.result() for future in futures)

    if anomalies:
        logger.warning(f"{anomalies} pixels left unmodified after invalid index lookups")

    logger.debug(f"Filled {len(ys) - anomalies} transparent pixels in {len(bounds)} chunk(s)")

    return anomalies
