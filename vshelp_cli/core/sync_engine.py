"""
The sync engine: brings a cache directory in line with the wanted books of a
catalog.

A sync runs through fixed steps, each of which is a commit point; a failure
aborts the remaining steps but nothing already written is rolled back:

1. create <cache>/Packages;
2. delete the old top-level index files;
3. write the setup index;
4. write every group index and the index of every wanted book, collecting the
   distinct packages of the wanted books;
5. delete cached packages no wanted book references any more and give the
   cached wanted ones their canonical file name;
6. download the packages flagged for download, one at a time, verifying each.
"""

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

import aiofiles
from rich.markup import escape

from vshelp_cli.exceptions import FilesystemError, IntegrityError, InvalidArgumentError
from vshelp_cli.index.naming import (
    INDEX_EXTENSION,
    PACKAGES_DIRECTORY,
    SETUP_INDEX_EXTENSION,
    SETUP_INDEX_NAME,
    book_file_name,
    group_file_name,
    package_file_name,
    package_key,
)
from vshelp_cli.index.writer import (
    render_book_index,
    render_group_index,
    render_setup_index,
)
from vshelp_cli.models.catalog import BookGroup, Package, PackageState
from vshelp_cli.models.stats import SyncStats
from vshelp_cli.transfer.downloader import TransferCallback
from vshelp_cli.transfer.integrity import FileIntegrityChecker
from vshelp_cli.utils.formatting import timestamp_to_microseconds
from vshelp_cli.utils.path import create_dir

from .events import DownloadStatus, ProgressSink
from .reconciler import scan_cached_packages

log = logging.getLogger(__name__)

# Index files are read by the help viewer, which expects a byte order mark
INDEX_ENCODING = "utf-8-sig"

Verifier = Callable[[Path], bool]


class PackageFetcher(Protocol):
    async def download_file(
        self,
        link: str,
        destination_path: str | os.PathLike,
        total_size_estimate: int = -1,
        on_progress: TransferCallback | None = None,
    ) -> int: ...


def collect_wanted_packages(book_groups: list[BookGroup]) -> dict[str, Package]:
    """
    Distinct packages of all wanted books keyed by `package_key`.

    The first occurrence of a name wins; later packages with the same name are
    dropped even when their link or size differ.
    """
    packages: dict[str, Package] = {}
    for book_group in book_groups:
        for book in book_group.books:
            if not book.wanted:
                continue
            for package in book.packages:
                packages.setdefault(package_key(package), package)
    return packages


class SyncEngine:
    """Downloads the wanted books into a cache directory and writes their indexes."""

    def __init__(
        self,
        downloader: PackageFetcher,
        verifier: Verifier = FileIntegrityChecker.check_cabinet,
    ):
        self.downloader = downloader
        self.verifier = verifier

    async def sync_books(
        self,
        book_groups: list[BookGroup],
        cache_directory: str | Path,
        progress: ProgressSink,
    ) -> SyncStats:
        """
        Runs a full sync of the wanted books.

        Args:
            book_groups: The catalog; `Book.wanted` selects what is fetched.
            cache_directory: Root of the local cache.
            progress: Receives the aggregate percentage and per-file statuses.

        Returns:
            Statistics describing what the sync did.

        Raises:
            InvalidArgumentError: If an argument is missing.
            FilesystemError: If the cache directory or an index cannot be written.
            NetworkError: If a package download fails.
            IntegrityError: If a downloaded package fails verification.
        """
        if book_groups is None:
            raise InvalidArgumentError("book_groups is required.")
        if not cache_directory:
            raise InvalidArgumentError("cache_directory is required.")
        if progress is None:
            raise InvalidArgumentError("progress is required.")

        cache_path = Path(cache_directory)
        packages_dir = cache_path / PACKAGES_DIRECTORY
        stats = SyncStats()

        try:
            create_dir(packages_dir)
        except OSError as e:
            raise FilesystemError(f"Could not create '{packages_dir}': {e}") from e

        await asyncio.to_thread(self._remove_stale_indexes, cache_path)

        await self._write_index(
            cache_path / SETUP_INDEX_NAME, render_setup_index(book_groups), stats
        )
        for book_group in book_groups:
            log.debug(f"BookGroup: {book_group.name}")
            await self._write_index(
                cache_path / group_file_name(book_group),
                render_group_index(book_group),
                stats,
            )
            for book in book_group.books:
                if book.wanted:
                    log.debug(f"   Book: {book.name}")
                    await self._write_index(
                        cache_path / book_file_name(book),
                        render_book_index(book_group, book),
                        stats,
                    )

        packages = collect_wanted_packages(book_groups)
        stats.packages_total = len(packages)
        stats.orphans_removed = await asyncio.to_thread(
            self._prune_packages, packages_dir, packages
        )

        for processed, package in enumerate(packages.values(), start=1):
            if package.state in (PackageState.NOT_DOWNLOADED, PackageState.OUT_OF_DATE):
                await self._download_package(package, packages_dir, progress, stats)
            else:
                log.debug(f"      Package up to date: {package.name}")
                stats.packages_skipped += 1
            progress.report(round(100 * processed / len(packages)))

        log.info(
            f"Sync finished: {stats.packages_downloaded} downloaded, "
            f"{stats.packages_skipped} skipped, {stats.orphans_removed} removed."
        )
        stats.finish()
        return stats

    @staticmethod
    def _remove_stale_indexes(cache_path: Path) -> None:
        """Deletes the top-level index files; the Packages directory is untouched."""
        extensions = (SETUP_INDEX_EXTENSION, INDEX_EXTENSION)
        for index_file in cache_path.iterdir():
            if index_file.suffix.lower() not in extensions or not index_file.is_file():
                continue
            try:
                index_file.unlink()
            except OSError as e:
                raise FilesystemError(
                    f"Could not delete old index '{index_file}': {e}"
                ) from e

    @staticmethod
    async def _write_index(path: Path, content: str, stats: SyncStats) -> None:
        try:
            async with aiofiles.open(path, "w", encoding=INDEX_ENCODING) as f:
                await f.write(content)
        except OSError as e:
            raise FilesystemError(f"Could not write index '{path}': {e}") from e
        stats.indexes_written += 1

    @staticmethod
    def _delete_package_file(package_file: Path, reason: str) -> bool:
        try:
            package_file.unlink()
        except OSError as e:
            log.warning(
                f"[yellow]Could not remove {reason} "
                f"'{escape(package_file.name)}': {e}[/yellow]"
            )
            return False
        log.debug(f"Removed {reason} '{package_file.name}'.")
        return True

    @classmethod
    def _prune_packages(cls, packages_dir: Path, packages: dict[str, Package]) -> int:
        """
        Deletes cached packages that no wanted package refers to and gives
        every wanted package that is cached its canonical file name.

        A wanted package cached under another case is renamed; further case
        variants of it are deleted. Cleanup is advisory: a file that cannot be
        deleted or renamed is logged and left.
        """
        removed = 0
        for key, package_files in scan_cached_packages(packages_dir).items():
            package = packages.get(key)
            if package is None:
                for package_file in package_files:
                    removed += cls._delete_package_file(
                        package_file, "unreferenced package"
                    )
                continue

            file_name = package_file_name(package)
            keep = next((p for p in package_files if p.name == file_name), None)
            if keep is None:
                keep = package_files[0]
                try:
                    keep.rename(packages_dir / file_name)
                    log.debug(f"Renamed cached package '{keep.name}' to '{file_name}'.")
                except OSError as e:
                    log.warning(
                        f"[yellow]Could not rename cached package "
                        f"'{escape(keep.name)}': {e}[/yellow]"
                    )
            for package_file in package_files:
                if package_file is not keep:
                    removed += cls._delete_package_file(
                        package_file, "duplicate package"
                    )
        return removed

    async def _download_package(
        self,
        package: Package,
        packages_dir: Path,
        progress: ProgressSink,
        stats: SyncStats,
    ) -> None:
        file_name = package_file_name(package)
        target = packages_dir / file_name
        log.info(f"Downloading [cyan]{escape(file_name)}[/cyan]")
        log.debug(f"         Downloading : '{package.link}' to '{target}'")

        progress.status_changed(DownloadStatus(file_name, 0))

        def on_progress(received: int, total: int) -> None:
            percent = min(100, 100 * received // total) if total > 0 else 0
            progress.status_changed(DownloadStatus(file_name, percent, received, total))

        written = await self.downloader.download_file(
            package.link, target, package.size, on_progress
        )

        progress.status_changed(DownloadStatus(file_name, 100))

        if not await asyncio.to_thread(self.verifier, target):
            log.error(
                f"[red]The signature on '{escape(str(target))}' is not valid"
                " - deleting[/red]"
            )
            try:
                target.unlink(missing_ok=True)
            except OSError as e:
                log.warning(f"Could not delete rejected package '{target}': {e}")
            raise IntegrityError(f"The signature on '{target}' is not valid - deleting")

        timestamp_ns = timestamp_to_microseconds(package.last_modified) * 1000
        try:
            os.utime(target, ns=(timestamp_ns, timestamp_ns))
        except OSError as e:
            raise FilesystemError(f"Could not set file times on '{target}': {e}") from e

        package.state = PackageState.READY
        stats.packages_downloaded += 1
        stats.total_size_downloaded += written
