"""
Parses the help service's XHTML catalog payloads into the catalog model.

Both payloads identify their elements through the `class` attribute, e.g. a
locale entry is `<div class="locale">` holding a `<span class="name">` and an
`<a class="catalog-link">`. Only direct children are matched so that nested
entries sharing a class name (a book's `name` inside a group's `book-list`)
never leak into their parent.
"""

import logging

from bs4 import BeautifulSoup, Tag
from pathvalidate import ValidationError

from vshelp_cli.exceptions import CatalogParseError
from vshelp_cli.models.catalog import Book, BookGroup, Locale, Package
from vshelp_cli.utils.formatting import parse_timestamp

from .naming import package_file_name

log = logging.getLogger(__name__)


def _has_class(tag: Tag, css_class: str) -> bool:
    return css_class in (tag.get("class") or [])


def _load_body(data: bytes, body_class: str) -> Tag:
    """Decodes a payload and returns its <body>, checking the document class."""
    if not data:
        raise CatalogParseError("Catalog payload is empty.")
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CatalogParseError(f"Catalog payload is not valid UTF-8: {e}") from e

    soup = BeautifulSoup(text, "html.parser")
    body = soup.find("body")
    if not isinstance(body, Tag):
        raise CatalogParseError("Catalog payload has no <body> element.")
    if not _has_class(body, body_class):
        raise CatalogParseError(
            f"Unexpected catalog document: expected body class '{body_class}', "
            f"got '{' '.join(body.get('class') or []) or 'none'}'."
        )
    return body


def _children(tag: Tag, css_class: str) -> list[Tag]:
    return [
        child
        for child in tag.find_all(recursive=False)
        if isinstance(child, Tag) and _has_class(child, css_class)
    ]


def _child(tag: Tag, css_class: str, context: str, required: bool = True) -> Tag | None:
    matches = _children(tag, css_class)
    if not matches:
        if required:
            raise CatalogParseError(f"Missing '{css_class}' element in {context}.")
        return None
    return matches[0]


def _text(tag: Tag, css_class: str, context: str, required: bool = True) -> str:
    child = _child(tag, css_class, context, required)
    if child is None:
        return ""
    value = child.get_text(strip=True)
    if required and not value:
        raise CatalogParseError(f"Empty '{css_class}' element in {context}.")
    return value


def _link(tag: Tag, css_class: str, context: str, required: bool = True) -> str:
    child = _child(tag, css_class, context, required)
    if child is None:
        return ""
    href = child.get("href")
    if required and not href:
        raise CatalogParseError(f"Link '{css_class}' in {context} has no href.")
    return href or ""


def _int(tag: Tag, css_class: str, context: str, required: bool = True) -> int:
    value = _text(tag, css_class, context, required)
    if not value:
        return 0
    try:
        return int(value)
    except ValueError as e:
        raise CatalogParseError(
            f"Invalid number '{value}' for '{css_class}' in {context}."
        ) from e


def parse_locales(data: bytes) -> list[Locale]:
    """
    Parses the locales list published for one Visual Studio version.

    Raises:
        CatalogParseError: If the payload is malformed or has an unexpected shape.
    """
    body = _load_body(data, "locales")
    locales = []
    for entry in _children(body, "locale"):
        locales.append(
            Locale(
                code=_text(entry, "name", "locale"),
                catalog_link=_link(entry, "catalog-link", "locale"),
            )
        )
    log.debug(f"Parsed {len(locales)} locales.")
    return locales


def _parse_package(entry: Tag, book_name: str) -> Package:
    context = f"a package of book '{book_name}'"
    name = _text(entry, "name", context)
    context = f"package '{name}'"

    raw_timestamp = _text(entry, "last-modified", context)
    try:
        last_modified = parse_timestamp(raw_timestamp)
    except ValueError as e:
        raise CatalogParseError(
            f"Invalid timestamp '{raw_timestamp}' in {context}."
        ) from e

    package = Package(
        name=name,
        link=_link(entry, "current-link", context),
        size=_int(entry, "package-size-bytes", context),
        last_modified=last_modified,
        deployed=_text(entry, "deployed", context, required=False).lower() != "false",
        etag=_text(entry, "package-etag", context, required=False),
        size_uncompressed=_int(
            entry, "package-size-bytes-uncompressed", context, required=False
        ),
        constituent_link=_link(
            entry, "package-constituent-link", context, required=False
        ),
    )
    try:
        package_file_name(package)
    except ValidationError as e:
        raise CatalogParseError(
            f"Package name '{name}' cannot be stored as a file: {e}"
        ) from e
    return package


def _parse_book(entry: Tag, group_name: str) -> Book:
    name = _text(entry, "name", f"a book of group '{group_name}'")
    context = f"book '{name}'"
    book = Book(
        name=name,
        code=_text(entry, "id", context),
        category=_text(entry, "category", context, required=False),
        description=_text(entry, "description", context, required=False),
        locale=_text(entry, "locale", context, required=False),
    )
    packages = _child(entry, "packages", context, required=False)
    if packages is not None:
        book.packages = [
            _parse_package(package, name) for package in _children(packages, "package")
        ]
    return book


def parse_catalog(data: bytes) -> list[BookGroup]:
    """
    Parses the book catalog of one locale into book groups, books and packages.

    Raises:
        CatalogParseError: If the payload is malformed or has an unexpected shape.
    """
    body = _load_body(data, "product-groups")
    book_groups = []
    for entry in _children(body, "book-group"):
        name = _text(entry, "name", "a book group")
        context = f"book group '{name}'"
        book_group = BookGroup(
            name=name,
            code=_text(entry, "id", context),
            description=_text(entry, "description", context, required=False),
            locale=_text(entry, "locale", context, required=False),
            vendor=_text(entry, "vendor", context, required=False),
        )
        book_list = _child(entry, "book-list", context, required=False)
        if book_list is not None:
            book_group.books = [
                _parse_book(book, name) for book in _children(book_list, "book")
            ]
        book_groups.append(book_group)

    log.debug(
        f"Parsed {len(book_groups)} book groups with "
        f"{sum(len(g.books) for g in book_groups)} books."
    )
    return book_groups
