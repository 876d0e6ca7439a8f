"""Per-image pipeline: border extraction, spatial index, nearest-color fill."""
from concurrent.futures import Executor
from pathlib import Path
from typing import Optional, Tuple, Union
import logging

from pixelfix.border_extraction import find_border_pixels
from pixelfix.fill import fill_transparent_pixels
from pixelfix.raster_ingest import load_rgba, read_dimensions, save_rgba
from pixelfix.size_policy import LargeImagePolicy
from pixelfix.spatial_index import build_spatial_index
from pixelfix.types import FixConfig, PixelGrid, ProcessResult

logger = logging.getLogger(__name__)


def fix_grid(
    grid: PixelGrid,
    config: Optional[FixConfig] = None,
    executor: Optional[Executor] = None,
) -> Tuple[ProcessResult, int]:
    """
    Fill the transparent pixels of a grid in place.

    Args:
        grid: (H, W, 4) uint8 RGBA array, modified in place
        config: Pipeline configuration (defaults if None)
        executor: Optional executor for the row scan and fill stages

    Returns:
        Tuple of (result, anomalies). SKIPPED means no border pixels were
        found and the grid was not touched.
    """
    config = config or FixConfig()

    border_pixels = find_border_pixels(
        grid,
        executor=executor,
        max_border_pixels=config.max_border_pixels,
        min_parallel_rows=config.min_parallel_rows,
        workers=config.resolve_workers(),
    )
    if len(border_pixels) == 0:
        return ProcessResult.SKIPPED, 0

    index = build_spatial_index(border_pixels)
    anomalies = fill_transparent_pixels(
        index,
        border_pixels,
        grid,
        visualize=config.visualize,
        executor=executor,
    )
    return ProcessResult.SUCCESS, anomalies


class FixPipeline:
    """Fix one image file in place."""

    def __init__(
        self,
        config: Optional[FixConfig] = None,
        policy: Optional[LargeImagePolicy] = None,
    ):
        """
        Initialize pipeline.

        Args:
            config: Configuration (uses defaults if None)
            policy: Size policy shared across files; built from config if None
        """
        self.config = config or FixConfig()
        self.policy = policy or LargeImagePolicy(
            threshold=self.config.large_image_threshold,
            max_dimension=self.config.max_dimension,
        )

    def process(
        self,
        path: Union[str, Path],
        executor: Optional[Executor] = None,
    ) -> ProcessResult:
        """
        Process an image file and write the result back to the same path.

        Args:
            path: Image file to fix
            executor: Optional executor for the inner stages

        Returns:
            ProcessResult.SUCCESS if the file was rewritten,
            ProcessResult.SKIPPED if it had nothing to fill

        Raises:
            FileNotFoundError: If the file doesn't exist
            PolicyRejection: If the size policy refused the image
            CodecError: If the image cannot be decoded or encoded
        """
        result, _ = self.process_with_anomalies(path, executor)
        return result

    def process_with_anomalies(
        self,
        path: Union[str, Path],
        executor: Optional[Executor] = None,
    ) -> Tuple[ProcessResult, int]:
        """Same as process(), also returning the count of unfilled pixels."""
        path = Path(path)

        width, height = read_dimensions(path)
        self.policy.check(width, height, str(path))

        grid = load_rgba(path)
        result, anomalies = fix_grid(grid, self.config, executor=executor)

        if result is ProcessResult.SKIPPED:
            logger.info(f"{path.name}: no border pixels, skipped")
            return result, anomalies

        save_rgba(grid, path)
        logger.info(f"{path.name}: filled ({width}x{height})")
        return result, anomalies
