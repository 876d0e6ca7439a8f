"""Core types for the transparent-pixel fill pipeline."""
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple
from enum import Enum, auto
import os

import numpy as np

# (H, W, 4) uint8 RGBA array
PixelGrid = np.ndarray


class ProcessResult(Enum):
    """Outcome of processing one image."""
    SUCCESS = auto()
    SKIPPED = auto()  # No border pixels, file left untouched


@dataclass(frozen=True)
class BorderPixel:
    """Opaque pixel touching at least one fully transparent neighbor."""
    position: Tuple[float, float]  # x, y
    color: Tuple[int, int, int]


class BorderPixels:
    """
    Ordered, read-only sequence of border pixels.

    Backed by two parallel arrays so the spatial index and filler can work
    on whole columns at once:
    - positions: (N, 2) float64 of (x, y)
    - colors: (N, 3) uint8 of (r, g, b)
    """

    def __init__(self, positions: np.ndarray, colors: np.ndarray):
        positions = np.array(positions, dtype=np.float64).reshape(-1, 2)
        colors = np.array(colors, dtype=np.uint8).reshape(-1, 3)
        if len(positions) != len(colors):
            raise GridError(
                f"positions/colors length mismatch: {len(positions)} != {len(colors)}"
            )
        positions.setflags(write=False)
        colors.setflags(write=False)
        self.positions = positions
        self.colors = colors

    @classmethod
    def empty(cls) -> "BorderPixels":
        return cls(np.empty((0, 2)), np.empty((0, 3), dtype=np.uint8))

    def __len__(self) -> int:
        return len(self.positions)

    def __getitem__(self, index: int) -> BorderPixel:
        x, y = self.positions[index]
        r, g, b = self.colors[index]
        return BorderPixel(position=(float(x), float(y)), color=(int(r), int(g), int(b)))

    def __iter__(self) -> Iterator[BorderPixel]:
        for i in range(len(self)):
            yield self[i]

    def __repr__(self) -> str:
        return f"BorderPixels(n={len(self)})"


@dataclass
class FixConfig:
    """Configuration for the fill pipeline."""
    # Output
    visualize: bool = False  # Force filled pixels opaque

    # Performance
    max_workers: int = -1  # -1 = auto
    min_parallel_rows: int = 64

    # Size policy
    large_image_threshold: int = 4096
    max_dimension: int = 65536

    # Optional cap on border pixels (truncates row-major order)
    max_border_pixels: Optional[int] = None

    def resolve_workers(self) -> int:
        """Number of worker threads to use."""
        if self.max_workers == -1:
            return os.cpu_count() or 1
        return max(1, self.max_workers)


def validate_grid(grid: np.ndarray) -> None:
    """
    Check that an array is a usable RGBA pixel grid.

    Raises:
        GridError: If the array is not (H, W, 4) uint8
    """
    if not isinstance(grid, np.ndarray):
        raise GridError("Pixel grid must be a numpy array")

    if grid.ndim != 3 or grid.shape[2] != 4:
        raise GridError(f"Pixel grid must be HxWx4, got shape {grid.shape}")

    if grid.dtype != np.uint8:
        raise GridError(f"Pixel grid must be uint8, got {grid.dtype}")


class PixelFixError(Exception):
    """Base exception for pixelfix errors."""
    pass


class GridError(PixelFixError):
    """Malformed pixel grid passed to the core."""
    pass


class PolicyRejection(PixelFixError):
    """Image refused by the size policy before any pixels were read."""

    def __init__(self, message: str, declined: bool = False):
        super().__init__(message)
        # True when the user answered "no", False for the hard ceiling
        self.declined = declined


class CodecError(PixelFixError):
    """Image could not be decoded or encoded."""
    pass
