"""Reporting and progress tracking for docbridge imports."""

from docbridge.reporting.progress import ProgressTracker

__all__ = [
    "ProgressTracker",
]
