"""
Batch processing of image files and folders.

Files are processed concurrently on one shared thread pool. Per-file
outcomes are collected first and folded into ProcessingStats afterwards,
so no counter is shared between workers.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
import logging
import sys

from pixelfix.pipeline import FixPipeline
from pixelfix.size_policy import LargeImagePolicy
from pixelfix.types import FixConfig, PixelFixError, PolicyRejection, ProcessResult

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.png'}

STATUS_OK = "OK"
STATUS_SKIP = "SKIP"
STATUS_DECLINED = "DECLINED"
STATUS_FAIL = "FAIL"


def collect_png_files(folder: Path) -> List[str]:
    """Recursively list PNG files under a folder, sorted."""
    folder = Path(folder)
    files = [
        str(p) for p in folder.rglob('*')
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    ]
    return sorted(files)


def collect_file_paths(args: Iterable[str]) -> List[str]:
    """
    Expand command-line paths into a list of files.

    Directories are searched recursively for PNG files; files are taken as
    given. Missing paths are reported and ignored.
    """
    file_paths = []

    for arg in args:
        path = Path(arg)
        if path.is_dir():
            try:
                file_paths.extend(collect_png_files(path))
            except OSError as e:
                print(f"Error reading directory {arg}: {e}", file=sys.stderr)
        elif path.is_file():
            file_paths.append(arg)
        else:
            print(f"Path not found: {arg}", file=sys.stderr)

    return file_paths


@dataclass
class FileOutcome:
    """Result of processing one file."""
    path: str
    status: str
    message: str = ""
    anomalies: int = 0


@dataclass
class ProcessingStats:
    """Totals for a batch run."""
    completed: int = 0
    skipped: int = 0
    declined: int = 0
    errors: int = 0
    anomalies: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[FileOutcome]) -> "ProcessingStats":
        stats = cls()
        for outcome in outcomes:
            stats.anomalies += outcome.anomalies
            if outcome.status == STATUS_OK:
                stats.completed += 1
            elif outcome.status == STATUS_SKIP:
                stats.skipped += 1
            elif outcome.status == STATUS_DECLINED:
                stats.declined += 1
            else:
                stats.errors += 1
                stats.failures.append((outcome.path, outcome.message))
        return stats

    def summary_lines(self) -> List[str]:
        lines = [f"Successfully processed: {self.completed}"]
        if self.skipped > 0:
            lines.append(f"Skipped (no transparent pixels or already processed): {self.skipped}")
        if self.declined > 0:
            lines.append(f"Declined (large images): {self.declined}")
        if self.errors > 0:
            lines.append(f"Errors: {self.errors}")
        if self.anomalies > 0:
            lines.append(f"Pixels left unfilled after invalid lookups: {self.anomalies}")
        return lines

    def print_summary(self) -> None:
        for line in self.summary_lines():
            print(line)


def process_single_file(
    pipeline: FixPipeline,
    file_path: str,
    executor: Optional[ThreadPoolExecutor] = None,
) -> FileOutcome:
    """
    Process one file, turning every per-file failure into an outcome.

    Args:
        pipeline: Shared pipeline (its size policy is shared across files)
        file_path: Image to fix in place
        executor: Executor for the inner stages, None to run them inline

    Returns:
        FileOutcome describing what happened
    """
    try:
        result, anomalies = pipeline.process_with_anomalies(file_path, executor)
    except PolicyRejection as e:
        status = STATUS_DECLINED if e.declined else STATUS_FAIL
        return FileOutcome(file_path, status, str(e))
    except (PixelFixError, OSError) as e:
        return FileOutcome(file_path, STATUS_FAIL, str(e))
    except Exception as e:
        logger.exception(f"Unexpected error processing {file_path}")
        return FileOutcome(file_path, STATUS_FAIL, f"Exception: {e}")

    if result is ProcessResult.SKIPPED:
        return FileOutcome(file_path, STATUS_SKIP, "No border pixels", anomalies)
    return FileOutcome(file_path, STATUS_OK, "Success", anomalies)


def process_files_parallel(
    file_paths: List[str],
    config: Optional[FixConfig] = None,
    policy: Optional[LargeImagePolicy] = None,
    verbose: bool = True,
) -> ProcessingStats:
    """
    Fix a list of image files in place.

    With several files the pool runs whole files in parallel and each
    file's inner stages run inline. A single file gets the pool for its
    row scan and fill instead.

    Args:
        file_paths: Files to process
        config: Pipeline configuration
        policy: Size policy (one is created from config if None)
        verbose: Print a progress line per file

    Returns:
        ProcessingStats for the whole batch
    """
    config = config or FixConfig()
    pipeline = FixPipeline(config, policy)
    workers = config.resolve_workers()

    outcomes: List[FileOutcome] = []
    total = len(file_paths)
    if total == 0:
        return ProcessingStats()

    with ThreadPoolExecutor(max_workers=workers) as executor:
        if total == 1 or workers == 1:
            inner = executor if total == 1 and workers > 1 else None
            pending = (process_single_file(pipeline, path, inner) for path in file_paths)
            for i, outcome in enumerate(pending):
                outcomes.append(outcome)
                if verbose:
                    _print_progress(i + 1, total, outcome)
        else:
            future_to_path = {
                executor.submit(process_single_file, pipeline, path, None): path
                for path in file_paths
            }
            for i, future in enumerate(as_completed(future_to_path)):
                outcome = future.result()
                outcomes.append(outcome)
                if verbose:
                    _print_progress(i + 1, total, outcome)

    return ProcessingStats.from_outcomes(outcomes)


def _print_progress(done: int, total: int, outcome: FileOutcome) -> None:
    name = Path(outcome.path).name
    print(f"[{done}/{total}] [{outcome.status}] {name}: {outcome.message}")
