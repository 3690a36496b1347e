"""
The notification contract between the sync engine and whoever observes it.

Two independent signals are exposed: an aggregate percentage advanced once per
distinct package, and a per-file status describing the transfer in flight.
Observers are passed into the sync call; the engine keeps no subscriber lists
and makes no promise about which thread or task raises a notification.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class DownloadStatus:
    """
    State of a single package transfer.

    Byte counts are -1 when unknown, i.e. at the start and completion
    notifications.
    """

    filename: str
    percent: int
    bytes_downloaded: int = -1
    bytes_to_download: int = -1


class ProgressSink(Protocol):
    def report(self, percent: int) -> None:
        """Receives the overall completion, 0-100."""

    def status_changed(self, status: DownloadStatus) -> None:
        """Receives the status of the file currently being downloaded."""


class CallbackProgressSink:
    """Adapts plain callables to the ProgressSink protocol."""

    def __init__(
        self,
        on_progress: Callable[[int], None],
        on_status: Callable[[DownloadStatus], None] | None = None,
    ):
        self._on_progress = on_progress
        self._on_status = on_status

    def report(self, percent: int) -> None:
        self._on_progress(percent)

    def status_changed(self, status: DownloadStatus) -> None:
        if self._on_status:
            self._on_status(status)
