"""
Deterministic file names for cached packages and generated index files.

The same names are used on disk and as cross-references inside the generated
indexes, so they must depend only on the identity fields of each entity.
Characters a file system would reject are percent-encoded rather than
dropped, and '%' itself is encoded, so distinct names never share a file.
"""

import re

from pathvalidate import validate_filename

from vshelp_cli.models.catalog import Book, BookGroup, Package

PACKAGE_EXTENSION = ".cab"
INDEX_EXTENSION = ".xml"
SETUP_INDEX_EXTENSION = ".msha"
SETUP_INDEX_NAME = "HelpContentSetup" + SETUP_INDEX_EXTENSION
PACKAGES_DIRECTORY = "Packages"

_UNSAFE_CHARS = re.compile(r'[\x00-\x1f\x7f"*/:<>?\\|%]')
_RESERVED_STEMS = frozenset(
    ["CON", "PRN", "AUX", "NUL", "CLOCK$"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)


def _encode_char(char: str) -> str:
    return f"%{ord(char):02X}"


def _safe_stem(name: str) -> str:
    stem = _UNSAFE_CHARS.sub(lambda m: _encode_char(m.group()), name)
    if stem.upper() in _RESERVED_STEMS:
        # upper-cased so that names differing only in case still share a file
        stem = stem[:-1] + _encode_char(stem[-1].upper())
    return stem


def _file_name(stem: str, extension: str) -> str:
    """
    Raises:
        pathvalidate.ValidationError: If the encoded name is still not a
            portable file name, e.g. because it is too long.
    """
    file_name = _safe_stem(stem) + extension
    validate_filename(file_name, platform="universal")
    return file_name


def package_file_name(package: Package) -> str:
    return _file_name(package.name, PACKAGE_EXTENSION)


def package_key(package: Package) -> str:
    """Case-insensitive identity of a package, equal to its upper-cased file stem."""
    return package_file_name(package)[: -len(PACKAGE_EXTENSION)].upper()


def book_file_name(book: Book) -> str:
    return _file_name(f"book-{book.code}", INDEX_EXTENSION)


def group_file_name(book_group: BookGroup) -> str:
    return _file_name(f"product-{book_group.code}", INDEX_EXTENSION)
