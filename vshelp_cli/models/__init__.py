"""
Data Models Layer.

This package contains the dataclasses and Pydantic models that define the core
data structures used throughout the application: the catalog graph,
configuration and sync statistics.
"""

from .catalog import Book, BookGroup, Locale, Package, PackageState
from .config import AppConfig
from .stats import SyncStats

__all__ = [
    "AppConfig",
    "Book",
    "BookGroup",
    "Locale",
    "Package",
    "PackageState",
    "SyncStats",
]
