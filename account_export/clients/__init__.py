"""Expose constructed client wrappers."""

from .blob_store import BlobNotFoundError, EphemeralBlobStore, StoredBlob
from .report_service import AccountDataReportClient, ReportDownloadError
from .sqlite_store import SQLiteKeyValueStore

__all__ = [
    "AccountDataReportClient",
    "BlobNotFoundError",
    "EphemeralBlobStore",
    "ReportDownloadError",
    "SQLiteKeyValueStore",
    "StoredBlob",
]
