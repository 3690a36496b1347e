"""
Data classes describing the remote help catalog: locales, book groups, books
and the downloadable packages behind them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class PackageState(Enum):
    """Caching state of a package relative to the local cache directory."""

    NOT_DOWNLOADED = "not_downloaded"
    OUT_OF_DATE = "out_of_date"
    READY = "ready"


@dataclass(frozen=True)
class Locale:
    """A language the catalog is published in, e.g. 'en-us'."""

    code: str
    catalog_link: str

    def __str__(self) -> str:
        return self.code


@dataclass
class Package:
    """
    The smallest downloadable unit: a single cabinet archive.

    Identity is the case-insensitive name. The same logical package may be
    referenced by several books, so anything that keys packages must use
    `index.naming.package_key` rather than the link or the size.
    """

    name: str
    link: str
    size: int
    last_modified: datetime
    state: PackageState = PackageState.NOT_DOWNLOADED
    deployed: bool = True
    etag: str = ""
    size_uncompressed: int = 0
    constituent_link: str = ""


@dataclass
class Book:
    """A single book; `wanted` is the caller's selection."""

    name: str
    code: str
    category: str = ""
    description: str = ""
    locale: str = ""
    wanted: bool = False
    packages: list[Package] = field(default_factory=list)


@dataclass
class BookGroup:
    """A product grouping of books, e.g. 'Visual Studio 2012'."""

    name: str
    code: str
    description: str = ""
    locale: str = ""
    vendor: str = ""
    books: list[Book] = field(default_factory=list)
