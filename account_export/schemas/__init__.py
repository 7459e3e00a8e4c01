"""Public schema exports."""

from .report import (
    DownloadRecord,
    DownloadState,
    ExportArtifact,
    ExportedReport,
    ExportFormat,
    ExportFormatRequest,
    ExportUiState,
)

__all__ = [
    "DownloadRecord",
    "DownloadState",
    "ExportArtifact",
    "ExportedReport",
    "ExportFormat",
    "ExportFormatRequest",
    "ExportUiState",
]
