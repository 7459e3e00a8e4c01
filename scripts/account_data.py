"""Command-line access to the cached account data report.

Example usages::

    # Fetch and cache the latest report.
    python -m scripts.account_data download

    # Write the cached report as plain text.
    python -m scripts.account_data export --format text --output report.txt

    # Show whether a report is cached and when it was downloaded.
    python -m scripts.account_data status

    # Remove the cached report.
    python -m scripts.account_data delete
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

from account_export.clients import AccountDataReportClient, SQLiteKeyValueStore
from account_export.core.config import get_settings
from account_export.core.logging import configure_logging
from account_export.schemas import ExportFormat
from account_export.services import (
    ExportCoordinator,
    MalformedReportError,
    NoReportAvailableError,
    ReportCipher,
    ReportStore,
)

EXIT_OK = 0
EXIT_NO_REPORT = 2
EXIT_DOWNLOAD_ERROR = 3
EXIT_MALFORMED_REPORT = 4


def _build_coordinator() -> ExportCoordinator:
    settings = get_settings()
    configure_logging(settings.log_level)
    secret = settings.storage.encryption_secret
    store = ReportStore(
        SQLiteKeyValueStore(settings.storage.db_path),
        cipher=ReportCipher(secret=secret) if secret else None,
    )
    return ExportCoordinator(
        store=store,
        client=AccountDataReportClient(settings.report_service),
    )


def _status(coordinator: ExportCoordinator) -> int:
    record = coordinator.download_record()
    if record.is_empty:
        print("No account data report downloaded.")
        return EXIT_OK
    downloaded = "unknown time"
    if record.downloaded_at_ms is not None:
        downloaded = datetime.fromtimestamp(
            record.downloaded_at_ms / 1000, tz=timezone.utc
        ).isoformat()
    print(f"Account data report downloaded at {downloaded}.")
    return EXIT_OK


async def _download(coordinator: ExportCoordinator) -> int:
    coordinator.on_download_report()
    try:
        await coordinator.wait_for_download()
    finally:
        await coordinator.aclose()
    if coordinator.state.show_download_failed_dialog:
        print("Failed to download the account data report.", file=sys.stderr)
        return EXIT_DOWNLOAD_ERROR
    print("Account data report downloaded.")
    return EXIT_OK


def _export(coordinator: ExportCoordinator, export_format: ExportFormat, output: Path | None) -> int:
    coordinator.set_export_format(export_format)
    try:
        artifact = coordinator.generate_report()
    except NoReportAvailableError as exc:
        print(f"{exc} Run the 'download' command first.", file=sys.stderr)
        return EXIT_NO_REPORT
    except MalformedReportError as exc:
        print(f"Cached report is unusable: {exc}", file=sys.stderr)
        return EXIT_MALFORMED_REPORT

    target = output or Path(artifact.file_name)
    target.write_bytes(artifact.data)
    print(f"Wrote {artifact.mime_type} export to {target}")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Download, export or delete the account data report."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("status", help="Show whether a report is cached.")
    subparsers.add_parser("download", help="Fetch and cache the latest report.")
    subparsers.add_parser("delete", help="Remove the cached report.")

    export_parser = subparsers.add_parser("export", help="Write the cached report to a file.")
    export_parser.add_argument(
        "--format",
        choices=[fmt.value for fmt in ExportFormat],
        default=ExportFormat.JSON.value,
        help="Export format (default: json).",
    )
    export_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Destination file (default: account-data.json or account-data.txt).",
    )
    return parser


def main(
    argv: list[str] | None = None,
    *,
    coordinator: ExportCoordinator | None = None,
) -> int:
    args = _build_parser().parse_args(argv)
    if coordinator is None:
        coordinator = _build_coordinator()

    command: str = args.command
    if command == "status":
        return _status(coordinator)
    if command == "download":
        return asyncio.run(_download(coordinator))
    if command == "delete":
        coordinator.delete_report()
        print("Account data report deleted.")
        return EXIT_OK
    return _export(coordinator, ExportFormat(args.format), args.output)


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
