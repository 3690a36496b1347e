"""
Shared fixtures and fakes for the vshelp-cli test suite.
"""

import os
import struct
from datetime import datetime, timezone
from pathlib import Path

import pytest

from vshelp_cli.core.events import DownloadStatus
from vshelp_cli.exceptions import NetworkError
from vshelp_cli.models.catalog import Book, BookGroup, Package, PackageState

TIMESTAMP = datetime(2012, 8, 21, 12, 6, 43, tzinfo=timezone.utc)

LOCALES_PAYLOAD = b"""<html xmlns="http://www.w3.org/1999/xhtml">
<head />
<body class="locales">
  <div class="locale">
    <span class="name">en-us</span>
    <a class="catalog-link" href="catalogs/visualstudio11/en-us">en-us</a>
  </div>
  <div class="locale">
    <span class="name">de-de</span>
    <a class="catalog-link" href="catalogs/visualstudio11/de-de">de-de</a>
  </div>
</body>
</html>
"""

CATALOG_PAYLOAD = b"""<html xmlns="http://www.w3.org/1999/xhtml">
<head />
<body class="product-groups">
  <div class="book-group">
    <span class="name">Visual Studio 2012</span>
    <span class="id">vs_2012</span>
    <span class="description">Visual Studio documentation</span>
    <span class="locale">en-us</span>
    <span class="vendor">Microsoft</span>
    <div class="book-list">
      <div class="book">
        <span class="name">C# Reference</span>
        <span class="id">csharp_ref</span>
        <span class="category">Languages</span>
        <span class="description">C# &amp; language reference</span>
        <span class="locale">en-us</span>
        <div class="packages">
          <div class="package">
            <span class="name">Visual_Studio_21798_cs_1</span>
            <span class="deployed">true</span>
            <span class="last-modified">2012-08-21T12:06:43.1234567Z</span>
            <span class="package-etag">abc123</span>
            <a class="current-link" href="/packages/en-us/cs_1.cab">cs_1</a>
            <span class="package-size-bytes">500000</span>
            <span class="package-size-bytes-uncompressed">900000</span>
            <a class="package-constituent-link" href="/content/cs_1">content</a>
          </div>
          <div class="package">
            <span class="name">Shared_Package</span>
            <span class="last-modified">2012-08-20T08:00:00Z</span>
            <a class="current-link" href="/packages/en-us/shared.cab">shared</a>
            <span class="package-size-bytes">1200</span>
          </div>
        </div>
      </div>
      <div class="book">
        <span class="name">Visual Basic Reference</span>
        <span class="id">vb_ref</span>
        <span class="category">Languages</span>
        <div class="packages">
          <div class="package">
            <span class="name">SHARED_PACKAGE</span>
            <span class="last-modified">2012-08-20T08:00:00Z</span>
            <a class="current-link" href="/packages/en-us/shared-other.cab">shared</a>
            <span class="package-size-bytes">1300</span>
          </div>
        </div>
      </div>
    </div>
  </div>
  <div class="book-group">
    <span class="name">.NET Framework 4.5</span>
    <span class="id">netfx_45</span>
    <div class="book-list">
      <div class="book">
        <span class="name">Class Library</span>
        <span class="id">netfx_classlib</span>
      </div>
    </div>
  </div>
</body>
</html>
"""


def cabinet_bytes(size: int) -> bytes:
    """A minimal byte string that passes the structural cabinet check."""
    header = struct.pack("<4sII", b"MSCF", 0, size)
    return header + b"\0" * (size - len(header))


def make_package(name: str, size: int = 64, link: str | None = None, **kwargs) -> Package:
    return Package(
        name=name,
        link=link or f"/packages/{name.lower()}.cab",
        size=size,
        last_modified=TIMESTAMP,
        **kwargs,
    )


def make_book(name: str, packages: list[Package], wanted: bool = True) -> Book:
    return Book(
        name=name,
        code=name.lower().replace(" ", "_"),
        category="Languages",
        wanted=wanted,
        packages=packages,
    )


def set_file_time(path: Path, value: datetime) -> None:
    timestamp_ns = int(value.timestamp()) * 1_000_000_000
    os.utime(path, ns=(timestamp_ns, timestamp_ns))


class FakeDownloader:
    """Writes cabinet bytes of the package size and reports progress in two steps."""

    def __init__(self, fail_links: set[str] | None = None):
        self.calls: list[str] = []
        self.fail_links = fail_links or set()

    async def download_file(
        self, link, destination_path, total_size_estimate=-1, on_progress=None
    ) -> int:
        self.calls.append(link)
        if link in self.fail_links:
            raise NetworkError(f"Download of '{link}' failed: connection reset")
        size = max(total_size_estimate, 16)
        Path(destination_path).write_bytes(cabinet_bytes(size))
        if on_progress:
            on_progress(size // 2, size)
            on_progress(size, size)
        return size


class RecordingSink:
    """A ProgressSink that keeps every notification."""

    def __init__(self):
        self.percents: list[int] = []
        self.statuses: list[DownloadStatus] = []

    def report(self, percent: int) -> None:
        self.percents.append(percent)

    def status_changed(self, status: DownloadStatus) -> None:
        self.statuses.append(status)


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "MSDN Library"


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture
def csharp_docs() -> list[BookGroup]:
    """One group 'C# Docs' with a wanted book 'Intro' holding A and B."""
    intro = make_book(
        "Intro",
        [
            make_package("A", size=500000),
            make_package("B", state=PackageState.NOT_DOWNLOADED),
        ],
    )
    return [BookGroup(name="C# Docs", code="csharp_docs", books=[intro])]
