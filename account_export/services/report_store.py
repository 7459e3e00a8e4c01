"""
Persistence for the downloaded account data report.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from account_export.clients.sqlite_store import SQLiteKeyValueStore
from account_export.schemas import DownloadRecord
from account_export.services.report_cipher import ReportCipher
from account_export.services.report_export import MalformedReportError

logger = logging.getLogger(__name__)

KEY_ACCOUNT_DATA_REPORT = "account.account_data_report"
KEY_ACCOUNT_DATA_REPORT_DOWNLOAD_TIME = "account.account_data_report_download_time"


class ReportStore:
    """Single source of truth for whether a report has been downloaded.

    The document and its download time are always written and cleared
    together.
    """

    _KEYS = (KEY_ACCOUNT_DATA_REPORT, KEY_ACCOUNT_DATA_REPORT_DOWNLOAD_TIME)

    def __init__(self, backend: SQLiteKeyValueStore, cipher: ReportCipher | None = None) -> None:
        self._backend = backend
        self._cipher = cipher
        self._lock = threading.RLock()

    def get(self) -> Optional[str]:
        return self.get_record().document

    def get_record(self) -> DownloadRecord:
        with self._lock:
            values = self._backend.get_values(self._KEYS)

        stored = values.get(KEY_ACCOUNT_DATA_REPORT)
        raw_time = values.get(KEY_ACCOUNT_DATA_REPORT_DOWNLOAD_TIME)
        if stored is None:
            return DownloadRecord()

        document = stored
        if self._cipher is not None:
            try:
                document = self._cipher.decrypt(stored)
            except ValueError as exc:
                raise MalformedReportError(str(exc)) from exc

        return DownloadRecord(
            document=document,
            downloaded_at_ms=int(raw_time) if raw_time is not None else None,
        )

    def has_report(self) -> bool:
        with self._lock:
            values = self._backend.get_values((KEY_ACCOUNT_DATA_REPORT,))
        return KEY_ACCOUNT_DATA_REPORT in values

    def set(self, document: str, timestamp_ms: int) -> None:
        stored = self._cipher.encrypt(document) if self._cipher is not None else document
        with self._lock:
            self._backend.put_values(
                {
                    KEY_ACCOUNT_DATA_REPORT: stored,
                    KEY_ACCOUNT_DATA_REPORT_DOWNLOAD_TIME: str(timestamp_ms),
                }
            )
        logger.debug("Stored account data report downloaded at %s", timestamp_ms)

    def clear(self) -> None:
        with self._lock:
            self._backend.delete_keys(self._KEYS)


__all__ = [
    "KEY_ACCOUNT_DATA_REPORT",
    "KEY_ACCOUNT_DATA_REPORT_DOWNLOAD_TIME",
    "ReportStore",
]
