"""
Derive the downloadable export formats from a cached account data report.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from account_export.schemas import ExportArtifact, ExportFormat

TEXT_FIELD = "text"

JSON_MIME_TYPE = "application/json"
TEXT_MIME_TYPE = "text/plain"
JSON_FILE_NAME = "account-data.json"
TEXT_FILE_NAME = "account-data.txt"


class NoReportAvailableError(Exception):
    """Raised when an export is requested but no report is cached."""


class MalformedReportError(Exception):
    """Raised when the cached report does not have the expected shape."""


def parse_report(document: str) -> Dict[str, Any]:
    """Parse report text into an ordered mapping, rejecting non-object roots."""
    try:
        tree = json.loads(document)
    except json.JSONDecodeError as exc:
        raise MalformedReportError(f"Cached report is not valid JSON: {exc.msg}.") from exc
    if not isinstance(tree, dict):
        raise MalformedReportError("Cached report must be a JSON object.")
    return tree


def build_export(document: str, export_format: ExportFormat) -> ExportArtifact:
    """Render ``document`` as a JSON or plain-text export.

    The JSON export is the whole report minus the top-level ``text`` field,
    which only repeats the structured data in prose. The text export is that
    field verbatim.
    """
    tree = parse_report(document)

    if export_format is ExportFormat.TEXT:
        text = tree.get(TEXT_FIELD)
        if not isinstance(text, str):
            raise MalformedReportError("Cached report has no text rendering.")
        return ExportArtifact(
            data=text.encode("utf-8"),
            mime_type=TEXT_MIME_TYPE,
            file_name=TEXT_FILE_NAME,
        )

    tree.pop(TEXT_FIELD, None)
    payload = json.dumps(tree, ensure_ascii=False, separators=(",", ":"))
    return ExportArtifact(
        data=payload.encode("utf-8"),
        mime_type=JSON_MIME_TYPE,
        file_name=JSON_FILE_NAME,
    )


__all__ = [
    "MalformedReportError",
    "NoReportAvailableError",
    "build_export",
    "parse_report",
]
