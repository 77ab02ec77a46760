"""Terminal feedback for pipeline runs."""

from .progress import ProgressReporter, ProgressState

__all__ = ["ProgressReporter", "ProgressState"]
