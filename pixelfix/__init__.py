"""pixelfix package."""
from pixelfix.types import (
    BorderPixel,
    BorderPixels,
    FixConfig,
    ProcessResult,
    PixelFixError,
    GridError,
    PolicyRejection,
    CodecError,
)

__version__ = "0.1.0"

__all__ = [
    "BorderPixel",
    "BorderPixels",
    "FixConfig",
    "ProcessResult",
    "PixelFixError",
    "GridError",
    "PolicyRejection",
    "CodecError",
]
