"""Nearest-neighbor index over border pixel positions."""
from dataclasses import dataclass
from typing import Optional
import logging

import numpy as np
from scipy.spatial import cKDTree

from pixelfix.types import BorderPixels

logger = logging.getLogger(__name__)

JITTER_SCALE = 0.00001
JITTER_RANGE = 0.001


@dataclass
class SpatialIndex:
    """
    k-d tree over jittered border positions.

    entries[i] is the index into the BorderPixels sequence of the i-th point
    stored in the tree.
    """
    tree: Optional[cKDTree]
    entries: np.ndarray

    def __len__(self) -> int:
        return len(self.entries)

    def nearest(self, points: np.ndarray) -> np.ndarray:
        """
        Find the nearest indexed border pixel for each query point.

        Args:
            points: (M, 2) array of (x, y) query coordinates

        Returns:
            (M,) int64 array of BorderPixels indices, -1 where the tree
            returned no usable neighbor
        """
        if self.tree is None:
            raise ValueError("Cannot query an empty spatial index")

        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        _, hits = self.tree.query(points, k=1)
        hits = np.asarray(hits, dtype=np.int64)

        result = np.full(len(hits), -1, dtype=np.int64)
        # cKDTree reports a missing neighbor as index == n
        valid = (hits >= 0) & (hits < len(self.entries))
        result[valid] = self.entries[hits[valid]]
        return result


def apply_position_jitter(positions: np.ndarray, seq_indices: np.ndarray) -> np.ndarray:
    """
    Offset positions by a sub-pixel amount derived from their sequence index.

    jitter_x = (i * 1e-5) mod 1e-3
    jitter_y = ((i * 7) * 1e-5) mod 1e-3

    The offset depends only on the index, so equidistant queries break ties
    the same way on every run.
    """
    seq = np.asarray(seq_indices, dtype=np.int64)
    jitter_x = np.fmod(seq.astype(np.float64) * JITTER_SCALE, JITTER_RANGE)
    jitter_y = np.fmod((seq * 7).astype(np.float64) * JITTER_SCALE, JITTER_RANGE)

    jittered = np.array(positions, dtype=np.float64).reshape(-1, 2)
    jittered[:, 0] += jitter_x
    jittered[:, 1] += jitter_y
    return jittered


def build_spatial_index(border_pixels: BorderPixels) -> SpatialIndex:
    """
    Build the nearest-neighbor index for a border pixel sequence.

    Positions are deduplicated on their integer cell, keeping the first
    border pixel in scan order. Later duplicates stay in the sequence but
    are never returned by a lookup.

    Args:
        border_pixels: Ordered border pixels

    Returns:
        SpatialIndex; its tree is None when there are no border pixels
    """
    if len(border_pixels) == 0:
        return SpatialIndex(tree=None, entries=np.empty(0, dtype=np.int64))

    # astype truncates toward zero
    cells = border_pixels.positions.astype(np.int64)
    _, first_seen = np.unique(cells, axis=0, return_index=True)
    entries = np.sort(first_seen).astype(np.int64)

    dropped = len(border_pixels) - len(entries)
    if dropped:
        logger.debug(f"Dropped {dropped} border pixels sharing a cell")

    points = apply_position_jitter(border_pixels.positions[entries], entries)
    tree = cKDTree(points)

    return SpatialIndex(tree=tree, entries=entries)
