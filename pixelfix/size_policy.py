"""Size limits and the one-time large image confirmation."""
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Optional
import logging
import threading

from pixelfix.types import PolicyRejection

logger = logging.getLogger(__name__)

LARGE_IMAGE_THRESHOLD = 4096
MAX_DIMENSION = 65536


class Decision(Enum):
    """State of the cached large image answer."""
    UNSET = auto()
    ALLOW = auto()
    DENY = auto()


def ask_yes_no(prompt: str) -> bool:
    """Prompt on stdin; only 'y' and 'yes' count as consent."""
    response = input(f"   {prompt} (y/n): ")
    return response.strip().lower() in ("y", "yes")


class LargeImagePolicy:
    """
    Gate images by size before they are decoded.

    Images above max_dimension on either axis are always rejected. Images
    above threshold need a user decision, asked once and then reused for
    every later file. The decision cell is guarded by a lock so concurrent
    workers never prompt twice.
    """

    def __init__(
        self,
        threshold: int = LARGE_IMAGE_THRESHOLD,
        max_dimension: int = MAX_DIMENSION,
        confirm: Optional[Callable[[str], bool]] = None,
    ):
        self.threshold = threshold
        self.max_dimension = max_dimension
        self.confirm = confirm or ask_yes_no
        self._decision = Decision.UNSET
        self._lock = threading.Lock()

    @property
    def decision(self) -> Decision:
        return self._decision

    def check(self, width: int, height: int, file_path: str = "") -> None:
        """
        Raise if an image of this size must not be processed.

        Raises:
            PolicyRejection: declined=False above the hard ceiling,
                             declined=True if the user refused large images
        """
        if width > self.max_dimension or height > self.max_dimension:
            raise PolicyRejection(
                f"Image too large: {width}x{height} - maximum supported size is "
                f"{self.max_dimension}x{self.max_dimension}"
            )

        if width <= self.threshold and height <= self.threshold:
            return

        if not self._is_allowed(width, height, file_path):
            raise PolicyRejection(
                'Skipped: Answered "no" to processing large images', declined=True
            )

    def _is_allowed(self, width: int, height: int, file_path: str) -> bool:
        # Racing threads wait here until the first one has an answer
        with self._lock:
            if self._decision is Decision.UNSET:
                allow = self._prompt(width, height, file_path)
                self._decision = Decision.ALLOW if allow else Decision.DENY
                logger.info(f"Large image decision: {self._decision.name}")
            return self._decision is Decision.ALLOW

    def _prompt(self, width: int, height: int, file_path: str) -> bool:
        megapixels = (width * height) / 1_000_000.0
        print()
        print(f"Large image detected: {width}x{height} ({megapixels:.1f} MP)")
        if file_path:
            print(f"File: {Path(file_path).name}")
        print("Processing large images will take significant time and system memory.")

        allow = self.confirm("Continue processing large images?")

        if allow:
            print("Processing all images...")
        else:
            print("Skipping all large images in processing.")
        print()
        return allow
