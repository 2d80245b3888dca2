"""Shared plumbing for the analysis components.

Every component runs over a FileCorpus, records per-file soft failures as
AnalysisError entries instead of aborting, and polls an optional cancellation
event between file units.
"""

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

from springlens.models.analysis import AnalysisError

R = TypeVar("R")
T = TypeVar("T")

logger = logging.getLogger(__name__)


class SpringLensError(Exception):
    """Base class for run-level failures."""


class CorpusUnavailableError(SpringLensError):
    """Raised when the corpus cannot be read at all."""


class ModuleDiscoveryError(SpringLensError):
    """Raised when module partitioning fails as a whole."""


class AnalysisCancelledError(SpringLensError):
    """Raised when a run is cancelled between file units."""


def check_cancelled(cancel: threading.Event | None) -> None:
    """Raise AnalysisCancelledError if the cancellation event is set."""
    if cancel is not None and cancel.is_set():
        raise AnalysisCancelledError("Analysis cancelled")


def line_number_at(text: str, offset: int) -> int:
    """1-based line number of a character offset."""
    return text.count("\n", 0, offset) + 1


def parallel_map(
    func: Callable[[T], R],
    items: Sequence[T],
    workers: int = 1,
    cancel: threading.Event | None = None,
) -> list[R]:
    """Apply func to every item, in order, polling for cancellation per item.

    With workers > 1 the calls run on a thread pool; results keep input order
    so the caller can merge them single-threaded.

    Raises:
        AnalysisCancelledError: If the cancellation event is set
    """

    def run(item: T) -> R:
        check_cancelled(cancel)
        return func(item)

    if workers <= 1 or len(items) <= 1:
        return [run(item) for item in items]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(run, items))


class AnalysisComponent:
    """Base class for corpus-wide analysis passes.

    Attributes:
        name: Component identifier used on recorded errors
        errors: Soft failures recorded during the current pass
    """

    def __init__(self, name: str, cancel: threading.Event | None = None) -> None:
        """Initialize the component.

        Args:
            name: Component identifier
            cancel: Optional cancellation event polled between file units
        """
        self.name = name
        self.cancel = cancel
        self.errors: list[AnalysisError] = []

    def check_cancelled(self) -> None:
        check_cancelled(self.cancel)

    def record_error(self, message: str, file_path: str | None = None) -> None:
        """Record and log a recoverable failure."""
        self.errors.append(
            AnalysisError(component=self.name, message=message, file_path=file_path)
        )
        if file_path:
            logger.warning(f"{self.name}: {message} ({file_path})")
        else:
            logger.warning(f"{self.name}: {message}")

    def guarded(
        self,
        label: str,
        func: Callable[..., R],
        *args: object,
        file_path: str | None = None,
    ) -> R | None:
        """Run one detector, turning unexpected failures into recorded errors.

        Cancellation is never swallowed.

        Args:
            label: Detector name used in the error message
            func: Detector callable
            *args: Detector arguments
            file_path: File being processed, if any

        Returns:
            Detector result, or None if it failed
        """
        try:
            return func(*args)
        except AnalysisCancelledError:
            raise
        except Exception as e:
            self.record_error(f"{label} failed: {e}", file_path)
            return None
