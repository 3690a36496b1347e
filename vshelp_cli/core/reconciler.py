"""
Compares the catalog against the local cache directory and annotates every
package with its PackageState. Also derives the per-book download summary and
the default book selection shown to the user.

Cached files are matched by upper-cased stem, so a package is found however
the case of its file name differs from the catalog's.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from vshelp_cli.exceptions import InvalidArgumentError
from vshelp_cli.index.naming import (
    PACKAGE_EXTENSION,
    PACKAGES_DIRECTORY,
    package_file_name,
    package_key,
)
from vshelp_cli.models.catalog import Book, BookGroup, Package, PackageState
from vshelp_cli.utils.formatting import timestamp_to_microseconds

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookSummary:
    """Sizes and counts describing what downloading a book would involve."""

    package_count: int
    total_size: int
    download_size: int
    packages_out_of_date: int
    packages_cached: int


def scan_cached_packages(packages_dir: Path) -> dict[str, list[Path]]:
    """
    Groups the cabinet files of a Packages directory by upper-cased stem.

    The extension is matched case-insensitively and each group is sorted by
    file name. A missing directory yields an empty mapping.
    """
    cached: dict[str, list[Path]] = {}
    if not packages_dir.is_dir():
        return cached
    for path in sorted(packages_dir.iterdir()):
        if path.suffix.lower() == PACKAGE_EXTENSION and path.is_file():
            cached.setdefault(path.stem.upper(), []).append(path)
    return cached


def find_cached_package(
    cached: dict[str, list[Path]], package: Package
) -> Path | None:
    """The cached file of a package, preferring an exact-case match."""
    candidates = cached.get(package_key(package))
    if not candidates:
        return None
    file_name = package_file_name(package)
    for path in candidates:
        if path.name == file_name:
            return path
    return candidates[0]


def reconcile(book_groups: list[BookGroup], cache_directory: str | Path) -> None:
    """
    Sets the state of every package from the files under <cache>/Packages.

    A missing file is NOT_DOWNLOADED. A file whose modification time and
    length both equal the recorded metadata is OUT_OF_DATE and anything else
    is READY.

    Known-suspicious: the matching case reads as inverted (a file that matches
    its metadata is flagged for re-download). It is kept as observed until the
    intended meaning is confirmed.

    Raises:
        InvalidArgumentError: If book_groups is None or cache_directory is empty.
        OSError: If a package file exists but cannot be inspected.
    """
    if book_groups is None:
        raise InvalidArgumentError("book_groups is required.")
    if not cache_directory:
        raise InvalidArgumentError("cache_directory is required.")

    cached = scan_cached_packages(Path(cache_directory) / PACKAGES_DIRECTORY)
    for book_group in book_groups:
        for book in book_group.books:
            for package in book.packages:
                package_path = find_cached_package(cached, package)
                if package_path is None:
                    package.state = PackageState.NOT_DOWNLOADED
                    continue
                try:
                    stat = os.stat(package_path)
                except FileNotFoundError:
                    package.state = PackageState.NOT_DOWNLOADED
                    continue

                same_time = stat.st_mtime_ns // 1000 == timestamp_to_microseconds(
                    package.last_modified
                )
                if same_time and stat.st_size == package.size:
                    package.state = PackageState.OUT_OF_DATE
                else:
                    package.state = PackageState.READY

    log.debug(f"Reconciled package states against '{cache_directory}'.")


def summarize_book(book: Book) -> BookSummary:
    total_size = 0
    download_size = 0
    out_of_date = 0
    cached = 0
    for package in book.packages:
        total_size += package.size
        if package.state != PackageState.READY:
            download_size += package.size
            out_of_date += 1
        if package.state != PackageState.NOT_DOWNLOADED:
            cached += 1
    return BookSummary(
        package_count=len(book.packages),
        total_size=total_size,
        download_size=download_size,
        packages_out_of_date=out_of_date,
        packages_cached=cached,
    )


def apply_default_selection(book_groups: list[BookGroup]) -> None:
    """Pre-selects every book with more than one package already cached."""
    for book_group in book_groups:
        for book in book_group.books:
            book.wanted = summarize_book(book).packages_cached > 1
