"""
Transfer Layer.

This package is responsible for moving package files onto disk and for
validating what arrived.
"""

from .downloader import PackageDownloader
from .integrity import FileIntegrityChecker

__all__ = ["FileIntegrityChecker", "PackageDownloader"]
