"""
Renders sync progress with Rich: an overall bar advanced once per package and
a transfer bar for the file currently being downloaded.
"""

import asyncio
import logging

from rich.console import Console, Group
from rich.live import Live
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from vshelp_cli.core.events import DownloadStatus

log = logging.getLogger("vshelp_cli")


class ProgressManager:
    """
    A ProgressSink that drives a Rich Live display.

    Both notifications arrive on the event loop running the sync, which is
    also the thread that owns the display, so no marshalling is needed.
    """

    def __init__(self, console: Console):
        self.console = console

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            DownloadColumn(),
            "•",
            TransferSpeedColumn(),
            "•",
            TimeRemainingColumn(),
            console=console,
            transient=True,
        )

        self.overall_progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            "[progress.percentage]{task.percentage:>3.0f}%",
            console=console,
        )

        self._live: Live | None = None
        self._overall_task_id: TaskID = self.overall_progress.add_task(
            "Overall Progress", total=100
        )
        self._file_task_id: TaskID | None = None
        self._current_file: str | None = None
        self._file_total = -1
        self.last_percent = 0

    def report(self, percent: int) -> None:
        self.last_percent = percent
        self.overall_progress.update(self._overall_task_id, completed=percent)

    def status_changed(self, status: DownloadStatus) -> None:
        if status.filename != self._current_file:
            self._start_file(status.filename)

        if status.bytes_to_download > 0:
            self._file_total = status.bytes_to_download
            self.progress.update(
                self._file_task_id,
                total=status.bytes_to_download,
                completed=status.bytes_downloaded,
            )
        elif status.percent == 100:
            if self._file_total > 0:
                self.progress.update(self._file_task_id, completed=self._file_total)
            self.progress.stop_task(self._file_task_id)

    def _start_file(self, filename: str) -> None:
        if self._file_task_id is not None:
            self.progress.remove_task(self._file_task_id)
        description = filename if len(filename) <= 40 else filename[:37] + "..."
        self._file_task_id = self.progress.add_task(description, total=None)
        self._current_file = filename
        self._file_total = -1
        log.debug(f"Started transfer of {filename}")

    async def __aenter__(self):
        self._live = Live(
            Group(self.overall_progress, self.progress),
            console=self.console,
            refresh_per_second=12,
        )
        self._live.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._live:
            await asyncio.sleep(0.2)
            self._live.stop()
