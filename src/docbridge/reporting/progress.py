"""Progress tracking for import runs.

This module provides a tqdm progress bar driven by the importer's
callbacks. Callbacks arrive from the scheduler thread (ranges dispatched)
and from worker threads (blocks committed).
"""

import threading
from typing import Any

from tqdm import tqdm

from docbridge.migration.documents import RangeDescriptor
from docbridge.utils.logging import get_logger

logger = get_logger(__name__)


class ProgressTracker:
    """Tracks and displays import progress in real-time."""

    def __init__(self, total_items: int, enable: bool = True):
        """Initialize progress tracker.

        Args:
            total_items: Items planned for this run
            enable: Whether to show the progress bar (False for CI/automation)
        """
        self.total_items = total_items
        self.enable = enable
        self._lock = threading.Lock()
        self.bar: tqdm | None = None

        self.stats = {
            "ranges_dispatched": 0,
            "blocks_committed": 0,
            "items_imported": 0,
        }

        if self.enable:
            self.bar = tqdm(
                total=total_items,
                desc="Importing",
                unit="doc",
                leave=True,
                bar_format="{desc}: {percentage:3.0f}%|{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]",
            )

        logger.debug("progress_tracker_initialized", total_items=total_items)

    def range_dispatched(self, range_offset: int) -> None:
        """Importer ``on_progress`` callback."""
        with self._lock:
            self.stats["ranges_dispatched"] += 1
            if self.bar is not None:
                self.bar.set_postfix(ranges=self.stats["ranges_dispatched"], offset=range_offset)

    def block_committed(self, descriptor: RangeDescriptor, items: int) -> None:
        """Importer ``on_block_committed`` callback."""
        with self._lock:
            self.stats["blocks_committed"] += 1
            self.stats["items_imported"] += items
            if self.bar is not None:
                self.bar.update(items)

    def close(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            return dict(self.stats)

    def __enter__(self) -> "ProgressTracker":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
