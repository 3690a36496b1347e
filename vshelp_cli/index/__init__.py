"""
Index Layer.

This package converts between the help service's catalog documents and the
catalog model, and renders the index files the offline help viewer reads.
Nothing here performs I/O.
"""

from .naming import book_file_name, group_file_name, package_file_name, package_key
from .parser import parse_catalog, parse_locales
from .writer import render_book_index, render_group_index, render_setup_index

__all__ = [
    "book_file_name",
    "group_file_name",
    "package_file_name",
    "package_key",
    "parse_catalog",
    "parse_locales",
    "render_book_index",
    "render_group_index",
    "render_setup_index",
]
