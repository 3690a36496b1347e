"""
Dataclass for tracking the outcome of a sync session.
"""

import time
from dataclasses import dataclass, field


@dataclass
class SyncStats:
    """Tracks what a sync pass did to the cache directory."""

    packages_total: int = 0
    packages_downloaded: int = 0
    packages_skipped: int = 0
    orphans_removed: int = 0
    indexes_written: int = 0
    total_size_downloaded: int = 0
    _start_time: float = field(default_factory=time.monotonic, repr=False)
    _end_time: float | None = field(default=None, repr=False)

    def finish(self) -> None:
        """Stops the clock; later reads of the elapsed time no longer grow."""
        self._end_time = time.monotonic()

    @property
    def elapsed_seconds(self) -> float:
        end_time = self._end_time if self._end_time is not None else time.monotonic()
        return end_time - self._start_time

    @property
    def average_speed_bps(self) -> float:
        """Average transfer speed over the whole session, in bytes per second."""
        elapsed = self.elapsed_seconds
        if elapsed <= 0:
            return 0.0
        return self.total_size_downloaded / elapsed
