import asyncio
import json
import sqlite3

import pytest

from account_export.clients import BlobNotFoundError, EphemeralBlobStore
from account_export.schemas import DownloadState, ExportFormat
from account_export.services import (
    ExportCoordinator,
    MalformedReportError,
    NoReportAvailableError,
    ReportStore,
)
from conftest import SAMPLE_REPORT_TEXT, StubReportClient


def _coordinator(store: ReportStore, client: StubReportClient, **kwargs) -> ExportCoordinator:
    return ExportCoordinator(store=store, client=client, clock=lambda: 123456, **kwargs)


@pytest.mark.asyncio
async def test_successful_download_then_delete(report_store: ReportStore, sample_report: str) -> None:
    client = StubReportClient()
    coordinator = _coordinator(report_store, client)
    assert not coordinator.state.report_downloaded
    assert coordinator.state.download_state is DownloadState.IDLE

    task = coordinator.on_download_report()
    assert task is not None
    assert coordinator.state.download_in_progress
    assert coordinator.state.download_state is DownloadState.DOWNLOADING

    client.release.set()
    await task

    state = coordinator.state
    assert not state.download_in_progress
    assert state.report_downloaded
    assert state.download_state is DownloadState.DOWNLOADED
    record = report_store.get_record()
    assert record.document == sample_report
    assert record.downloaded_at_ms == 123456

    coordinator.delete_report()
    assert report_store.get() is None
    assert not coordinator.state.report_downloaded


@pytest.mark.asyncio
async def test_failed_download_shows_dialog_and_keeps_store(report_store: ReportStore) -> None:
    report_store.set('{"text":"previous"}', 1)
    client = StubReportClient(fail=True)
    coordinator = _coordinator(report_store, client)

    task = coordinator.on_download_report()
    assert coordinator.state.download_in_progress
    client.release.set()
    await task

    state = coordinator.state
    assert not state.download_in_progress
    assert state.show_download_failed_dialog
    assert state.download_state is DownloadState.FAILED
    record = report_store.get_record()
    assert record.document == '{"text":"previous"}'
    assert record.downloaded_at_ms == 1

    coordinator.dismiss_download_error_dialog()
    once = coordinator.state
    coordinator.dismiss_download_error_dialog()
    assert coordinator.state == once
    assert not once.show_download_failed_dialog
    assert once.download_state is DownloadState.DOWNLOADED


@pytest.mark.asyncio
async def test_failed_download_on_empty_store(report_store: ReportStore) -> None:
    client = StubReportClient(fail=True)
    coordinator = _coordinator(report_store, client)

    coordinator.on_download_report()
    client.release.set()
    await coordinator.wait_for_download()

    assert not coordinator.state.report_downloaded
    assert report_store.get_record().is_empty


@pytest.mark.asyncio
async def test_repeated_trigger_while_downloading_is_ignored(report_store: ReportStore) -> None:
    client = StubReportClient()
    coordinator = _coordinator(report_store, client)

    first = coordinator.on_download_report()
    await asyncio.sleep(0)
    second = coordinator.on_download_report()

    assert first is not None
    assert second is None

    client.release.set()
    await first
    assert client.calls == 1


@pytest.mark.asyncio
async def test_download_can_be_retried_after_failure(report_store: ReportStore, sample_report: str) -> None:
    client = StubReportClient(fail=True)
    client.release.set()
    coordinator = _coordinator(report_store, client)

    await coordinator.on_download_report()
    assert coordinator.state.show_download_failed_dialog

    client.fail = False
    task = coordinator.on_download_report()
    assert not coordinator.state.show_download_failed_dialog
    await task

    assert client.calls == 2
    assert report_store.get() == sample_report


@pytest.mark.asyncio
async def test_delete_during_download_discards_result(report_store: ReportStore) -> None:
    report_store.set('{"text":"old"}', 1)
    client = StubReportClient()
    coordinator = _coordinator(report_store, client)

    task = coordinator.on_download_report()
    await asyncio.sleep(0)
    coordinator.delete_report()
    assert not coordinator.state.report_downloaded

    client.release.set()
    await task

    assert not coordinator.state.download_in_progress
    assert not coordinator.state.report_downloaded
    assert report_store.get() is None


def test_delete_on_empty_store_is_noop(report_store: ReportStore) -> None:
    coordinator = _coordinator(report_store, StubReportClient())

    coordinator.delete_report()
    coordinator.delete_report()

    assert not coordinator.state.report_downloaded


def test_generate_report_without_download_fails(report_store: ReportStore) -> None:
    coordinator = _coordinator(report_store, StubReportClient())

    with pytest.raises(NoReportAvailableError):
        coordinator.generate_report()


def test_generate_report_follows_selected_format(report_store: ReportStore, sample_report: str) -> None:
    report_store.set(sample_report, 1)
    coordinator = _coordinator(report_store, StubReportClient())
    assert coordinator.state.export_format is ExportFormat.JSON

    coordinator.set_export_as_txt()
    text_report = coordinator.generate_report()
    assert text_report.mime_type == "text/plain"
    assert text_report.data.decode("utf-8") == SAMPLE_REPORT_TEXT

    coordinator.set_export_as_json()
    json_report = coordinator.generate_report()
    assert json_report.mime_type == "application/json"
    exported = json.loads(json_report.data)
    assert "text" not in exported
    assert {"data", "reportId", "reportTimestamp"} <= exported.keys()


def test_generate_report_after_delete_fails(report_store: ReportStore, sample_report: str) -> None:
    report_store.set(sample_report, 1)
    coordinator = _coordinator(report_store, StubReportClient())
    coordinator.generate_report()

    coordinator.delete_report()

    with pytest.raises(NoReportAvailableError):
        coordinator.generate_report()


def test_generate_report_reads_latest_stored_document(report_store: ReportStore) -> None:
    coordinator = _coordinator(report_store, StubReportClient())
    coordinator.set_export_format(ExportFormat.TEXT)

    report_store.set('{"text":"first"}', 1)
    assert coordinator.generate_report().data == b"first"
    report_store.set('{"text":"second"}', 2)
    assert coordinator.generate_report().data == b"second"


def test_generate_report_surfaces_malformed_documents(report_store: ReportStore) -> None:
    report_store.set("{not json", 1)
    coordinator = _coordinator(report_store, StubReportClient())

    with pytest.raises(MalformedReportError):
        coordinator.generate_report()


def test_set_export_format_accepts_plain_values(report_store: ReportStore) -> None:
    coordinator = _coordinator(report_store, StubReportClient())

    coordinator.set_export_format("text")

    assert coordinator.state.export_format is ExportFormat.TEXT


def test_export_report_publishes_single_use_blob(report_store: ReportStore, sample_report: str) -> None:
    report_store.set(sample_report, 1)
    blobs = EphemeralBlobStore()
    coordinator = _coordinator(report_store, StubReportClient(), blob_store=blobs)
    coordinator.set_export_as_txt()

    exported = coordinator.export_report()

    assert exported.mime_type == "text/plain"
    assert exported.file_name == "account-data.txt"
    assert exported.uri.startswith(f"blob:{blobs.session_id}/")
    assert blobs.take(exported.uri).data.decode("utf-8") == SAMPLE_REPORT_TEXT
    assert len(blobs) == 0


@pytest.mark.asyncio
async def test_aclose_abandons_in_flight_download(report_store: ReportStore) -> None:
    client = StubReportClient()
    coordinator = _coordinator(report_store, client)

    task = coordinator.on_download_report()
    await asyncio.sleep(0)
    await coordinator.aclose()

    assert task.cancelled()
    assert not coordinator.state.download_in_progress
    assert report_store.get() is None


class LockedReportStore(ReportStore):
    def set(self, document: str, timestamp_ms: int) -> None:
        raise sqlite3.OperationalError("database is locked")


@pytest.mark.asyncio
async def test_failed_commit_surfaces_as_download_failure(key_value_store) -> None:
    store = LockedReportStore(key_value_store)
    client = StubReportClient()
    client.release.set()
    coordinator = _coordinator(store, client)

    await coordinator.on_download_report()

    state = coordinator.state
    assert not state.download_in_progress
    assert not state.report_downloaded
    assert state.show_download_failed_dialog
    assert state.download_state is DownloadState.FAILED


@pytest.mark.asyncio
async def test_failed_redownload_keeps_cached_report(report_store: ReportStore, sample_report: str) -> None:
    report_store.set(sample_report, 1)
    client = StubReportClient(fail=True)
    client.release.set()
    coordinator = _coordinator(report_store, client)

    await coordinator.on_download_report()

    state = coordinator.state
    assert state.report_downloaded
    assert state.download_state is DownloadState.FAILED
    assert report_store.get() == sample_report


def test_repeated_exports_keep_only_latest_blob(report_store: ReportStore, sample_report: str) -> None:
    report_store.set(sample_report, 1)
    blobs = EphemeralBlobStore()
    coordinator = _coordinator(report_store, StubReportClient(), blob_store=blobs)

    uris = [coordinator.export_report().uri for _ in range(50)]

    assert len(blobs) == 1
    assert blobs.take(uris[-1]).mime_type == "application/json"


def test_export_after_previous_blob_was_read(report_store: ReportStore, sample_report: str) -> None:
    report_store.set(sample_report, 1)
    blobs = EphemeralBlobStore()
    coordinator = _coordinator(report_store, StubReportClient(), blob_store=blobs)

    blobs.take(coordinator.export_report().uri)
    second = coordinator.export_report()

    assert len(blobs) == 1
    assert blobs.take(second.uri).file_name == "account-data.json"


@pytest.mark.asyncio
async def test_aclose_drops_pending_exports(report_store: ReportStore, sample_report: str) -> None:
    report_store.set(sample_report, 1)
    blobs = EphemeralBlobStore()
    coordinator = _coordinator(report_store, StubReportClient(), blob_store=blobs)
    exported = coordinator.export_report()

    await coordinator.aclose()

    assert len(blobs) == 0
    with pytest.raises(BlobNotFoundError):
        blobs.take(exported.uri)
