"""Raster image reading and writing for RGBA pixel grids."""
from pathlib import Path
from typing import Tuple, Union
import numpy as np
from PIL import Image

from pixelfix.types import CodecError, PixelGrid, validate_grid

# Size limits are enforced by LargeImagePolicy, not by Pillow
Image.MAX_IMAGE_PIXELS = None


def read_dimensions(path: Union[str, Path]) -> Tuple[int, int]:
    """
    Read image width and height without decoding pixel data.

    Raises:
        FileNotFoundError: If file doesn't exist
        CodecError: If the header cannot be parsed
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    try:
        with Image.open(path) as img:
            return img.size
    except (IOError, OSError) as e:
        raise CodecError(f"Failed to read image header {path}: {e}") from e


def load_rgba(path: Union[str, Path]) -> PixelGrid:
    """
    Decode an image file into an RGBA pixel grid.

    Args:
        path: Path to image file

    Returns:
        (H, W, 4) uint8 array

    Raises:
        FileNotFoundError: If file doesn't exist
        CodecError: If file cannot be decoded
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    if not path.is_file():
        raise CodecError(f"Path is not a file: {path}")

    try:
        with Image.open(path) as img:
            if img.mode != 'RGBA':
                img = img.convert('RGBA')
            # Copy so the array owns writable memory
            return np.array(img, dtype=np.uint8)
    except (IOError, OSError) as e:
        raise CodecError(f"Failed to load image {path}: {e}") from e


def save_rgba(grid: PixelGrid, path: Union[str, Path]) -> None:
    """
    Encode an RGBA pixel grid to path, format chosen by extension.

    Raises:
        CodecError: If the image cannot be written
    """
    validate_grid(grid)
    path = Path(path)

    try:
        # (H, W, 4) uint8 maps to RGBA
        Image.fromarray(grid).save(path)
    except (IOError, OSError, ValueError) as e:
        raise CodecError(f"Failed to save image {path}: {e}") from e
