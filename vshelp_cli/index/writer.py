"""
Renders the three tiers of index files read by the offline help viewer:
the setup index (HelpContentSetup.msha), one index per book group and one
index per wanted book. Rendering is pure and deterministic; callers decide
where the text is written.
"""

from html import escape

from vshelp_cli.models.catalog import Book, BookGroup, Package
from vshelp_cli.utils.formatting import format_timestamp

from .naming import PACKAGES_DIRECTORY, book_file_name, group_file_name, package_file_name

_DOCUMENT_HEAD = '<html xmlns="http://www.w3.org/1999/xhtml">\n<head />'
_DOCUMENT_TAIL = "</body>\n</html>\n"


def _span(css_class: str, value: object, indent: int) -> str:
    return f'{"  " * indent}<span class="{css_class}">{escape(str(value))}</span>'


def _anchor(css_class: str, href: str, text: str, indent: int) -> str:
    return (
        f'{"  " * indent}<a class="{css_class}" href="{escape(href, quote=True)}">'
        f"{escape(text)}</a>"
    )


def _document(body_class: str, lines: list[str]) -> str:
    return "\n".join(
        [_DOCUMENT_HEAD, f'<body class="{body_class}">', *lines, _DOCUMENT_TAIL]
    )


def render_setup_index(book_groups: list[BookGroup]) -> str:
    """Lists every book group's index file, whether or not any book is wanted."""
    lines = []
    for book_group in book_groups:
        file_name = group_file_name(book_group)
        lines += [
            '  <div class="product">',
            _span("product-code", book_group.code, 2),
            _span("name", book_group.name, 2),
            _span("description", book_group.description, 2),
            _span("locale", book_group.locale, 2),
            _span("vendor", book_group.vendor, 2),
            _anchor("product-link", file_name, file_name, 2),
            "  </div>",
        ]
    return _document("product-list", lines)


def render_group_index(book_group: BookGroup) -> str:
    """Lists every book of a group with its display metadata."""
    lines = [
        '  <div class="details">',
        _span("name", book_group.name, 2),
        _span("description", book_group.description, 2),
        _span("locale", book_group.locale, 2),
        _span("vendor", book_group.vendor, 2),
        _span("product-code", book_group.code, 2),
        "  </div>",
        '  <div class="book-list">',
    ]
    for book in book_group.books:
        file_name = book_file_name(book)
        lines += [
            '    <div class="book">',
            _span("name", book.name, 3),
            _span("description", book.description, 3),
            _span("category", book.category, 3),
            _span("locale", book.locale, 3),
            _span("book-code", book.code, 3),
            _anchor("book-link", file_name, file_name, 3),
            "    </div>",
        ]
    lines.append("  </div>")
    return _document("product", lines)


def _package_lines(package: Package) -> list[str]:
    file_name = package_file_name(package)
    lines = [
        '    <div class="package">',
        _span("name", package.name, 3),
        _span("deployed", "True" if package.deployed else "False", 3),
        _span("last-modified", format_timestamp(package.last_modified), 3),
        _span("package-etag", package.etag, 3),
        _anchor("current-link", f"{PACKAGES_DIRECTORY}/{file_name}", file_name, 3),
        _span("package-size-bytes", package.size, 3),
        _span("package-size-bytes-uncompressed", package.size_uncompressed, 3),
    ]
    if package.constituent_link:
        lines.append(
            _anchor(
                "package-constituent-link",
                package.constituent_link,
                package.constituent_link,
                3,
            )
        )
    lines.append("    </div>")
    return lines


def render_book_index(book_group: BookGroup, book: Book) -> str:
    """Lists the packages of a single book, pointing at their cached files."""
    lines = [
        '  <div class="details">',
        _span("name", book.name, 2),
        _span("description", book.description, 2),
        _span("category", book.category, 2),
        _span("locale", book.locale, 2),
        _span("book-code", book.code, 2),
        _span("product-code", book_group.code, 2),
        "  </div>",
        '  <div class="packages">',
    ]
    for package in book.packages:
        lines += _package_lines(package)
    lines.append("  </div>")
    return _document("book", lines)
