"""
Models describing the cached report, export artifacts and the UI-facing state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ExportFormat(str, Enum):
    JSON = "json"
    TEXT = "text"


class DownloadState(str, Enum):
    IDLE = "idle"
    DOWNLOADING = "downloading"
    DOWNLOADED = "downloaded"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class DownloadRecord:
    """Cached report text and the epoch-millisecond time it was downloaded."""

    document: Optional[str] = None
    downloaded_at_ms: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.document is None


@dataclass(slots=True, frozen=True)
class ExportArtifact:
    """Single-use export payload handed to a blob sink."""

    data: bytes
    mime_type: str
    file_name: str


class ExportedReport(BaseModel):
    """Locator for an artifact published to the blob sink."""

    uri: str = Field(..., description="Single-use locator for the exported file.")
    mime_type: str = Field(..., description="MIME type of the exported file.")
    file_name: str = Field(..., description="Suggested file name for the consumer.")


class ExportUiState(BaseModel):
    """Read-only snapshot of the export screen."""

    model_config = ConfigDict(frozen=True)

    download_in_progress: bool = False
    report_downloaded: bool = False
    show_download_failed_dialog: bool = False
    export_format: ExportFormat = ExportFormat.JSON

    @computed_field  # type: ignore[prop-decorator]
    @property
    def download_state(self) -> DownloadState:
        """Single label for the flags, checked in priority order.

        An in-flight download wins, then an undismissed failure, so a failed
        re-download reads ``failed`` even while an older report is still
        cached (``report_downloaded`` stays true).
        """
        if self.download_in_progress:
            return DownloadState.DOWNLOADING
        if self.show_download_failed_dialog:
            return DownloadState.FAILED
        if self.report_downloaded:
            return DownloadState.DOWNLOADED
        return DownloadState.IDLE


class ExportFormatRequest(BaseModel):
    """Body for selecting the export format."""

    format: ExportFormat = Field(..., description="Either 'json' or 'text'.")
