"""
State machine behind the "export account data" screen.

Downloads run as a task on the caller's event loop and their completion is
applied on that same loop, so state transitions never interleave.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
import time
from typing import Callable, Optional, TYPE_CHECKING

from account_export.clients.report_service import ReportDownloadError
from account_export.schemas import (
    DownloadRecord,
    ExportArtifact,
    ExportedReport,
    ExportFormat,
    ExportUiState,
)
from account_export.services.report_export import NoReportAvailableError, build_export
from account_export.services.report_store import ReportStore

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from account_export.clients import AccountDataReportClient, EphemeralBlobStore

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class ExportCoordinator:
    """Orchestrates report download, deletion and export."""

    def __init__(
        self,
        *,
        store: ReportStore,
        client: "AccountDataReportClient",
        blob_store: Optional["EphemeralBlobStore"] = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._store = store
        self._client = client
        self._blob_store = blob_store
        self._clock = clock
        self._download_in_progress = False
        self._show_download_failed_dialog = False
        self._export_format = ExportFormat.JSON
        self._download_task: asyncio.Task[None] | None = None
        self._discard_download = False
        self._pending_export_uri: str | None = None

    @property
    def state(self) -> ExportUiState:
        """Current snapshot; ``report_downloaded`` is read from the store."""
        return ExportUiState(
            download_in_progress=self._download_in_progress,
            report_downloaded=self._store.has_report(),
            show_download_failed_dialog=self._show_download_failed_dialog,
            export_format=self._export_format,
        )

    def on_download_report(self) -> asyncio.Task[None] | None:
        """Start a download unless one is already running.

        Must be called from within a running event loop. Returns the download
        task, or ``None`` when the trigger was ignored.
        """
        if self._download_in_progress:
            logger.debug("Download already in progress; ignoring trigger")
            return None

        self._download_in_progress = True
        self._show_download_failed_dialog = False
        self._discard_download = False
        self._download_task = asyncio.get_running_loop().create_task(self._download())
        logger.info("Account data report download started")
        return self._download_task

    async def _download(self) -> None:
        try:
            document = await self._client.fetch_report()
            if self._discard_download:
                logger.info("Report deleted during download; discarding downloaded report")
            else:
                self._store.set(document, self._clock())
                logger.info("Account data report downloaded")
        except ReportDownloadError as exc:
            logger.warning("Account data report download failed: %s", exc)
            self._show_download_failed_dialog = True
        except (sqlite3.Error, OSError):
            logger.exception("Downloaded account data report could not be stored")
            self._show_download_failed_dialog = True
        finally:
            self._download_in_progress = False

    async def wait_for_download(self) -> None:
        """Wait for the in-flight download, if any, to finish."""
        task = self._download_task
        if task is not None and not task.done():
            await asyncio.shield(task)

    def download_record(self) -> DownloadRecord:
        """The cached report and when it was downloaded."""
        return self._store.get_record()

    def dismiss_download_error_dialog(self) -> None:
        self._show_download_failed_dialog = False

    def delete_report(self) -> None:
        """Remove the cached report.

        A download still in flight is allowed to finish but its result is
        not committed.
        """
        if self._download_in_progress:
            self._discard_download = True
        self._store.clear()
        logger.info("Account data report deleted")

    def set_export_format(self, export_format: ExportFormat) -> None:
        self._export_format = ExportFormat(export_format)

    def set_export_as_json(self) -> None:
        self.set_export_format(ExportFormat.JSON)

    def set_export_as_txt(self) -> None:
        self.set_export_format(ExportFormat.TEXT)

    def generate_report(self) -> ExportArtifact:
        """Render the currently stored report in the selected format."""
        document = self._store.get()
        if document is None:
            raise NoReportAvailableError("No account data report has been downloaded.")
        return build_export(document, self._export_format)

    def export_report(self) -> ExportedReport:
        """Generate the export and publish it to the blob sink.

        Only the newest export stays available; an unread earlier one is
        discarded.
        """
        if self._blob_store is None:
            raise RuntimeError("No blob store configured for exports.")
        artifact = self.generate_report()
        if self._pending_export_uri is not None:
            self._blob_store.discard(self._pending_export_uri)
        uri = self._blob_store.put(
            artifact.data,
            mime_type=artifact.mime_type,
            file_name=artifact.file_name,
        )
        self._pending_export_uri = uri
        logger.info("Exported account data report as %s", artifact.mime_type)
        return ExportedReport(uri=uri, mime_type=artifact.mime_type, file_name=artifact.file_name)

    async def aclose(self) -> None:
        """Tear down, abandoning any in-flight download and pending exports."""
        task = self._download_task
        self._download_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._download_in_progress = False
        self._pending_export_uri = None
        if self._blob_store is not None:
            self._blob_store.clear()


__all__ = ["ExportCoordinator"]
