"""Service layer exports."""

from .export_coordinator import ExportCoordinator
from .report_cipher import ReportCipher
from .report_export import MalformedReportError, NoReportAvailableError, build_export
from .report_store import ReportStore

__all__ = [
    "ExportCoordinator",
    "MalformedReportError",
    "NoReportAvailableError",
    "ReportCipher",
    "ReportStore",
    "build_export",
]
