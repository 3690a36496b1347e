"""
Core application engine for mirroring the help catalog.

The reconciler annotates the catalog with what is already cached; the
`SyncEngine` then brings the cache directory in line with the wanted books,
reporting through the channel defined in `events`.
"""

from .events import CallbackProgressSink, DownloadStatus, ProgressSink
from .reconciler import BookSummary, apply_default_selection, reconcile, summarize_book
from .sync_engine import SyncEngine, collect_wanted_packages

__all__ = [
    "BookSummary",
    "CallbackProgressSink",
    "DownloadStatus",
    "ProgressSink",
    "SyncEngine",
    "apply_default_selection",
    "collect_wanted_packages",
    "reconcile",
    "summarize_book",
]
