"""
FastAPI routes for the account data export screen.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response

from account_export.clients import BlobNotFoundError, EphemeralBlobStore
from account_export.core.config import AppSettings
from account_export.dependencies import (
    get_app_settings,
    get_blob_store,
    get_export_coordinator,
)
from account_export.schemas import ExportedReport, ExportFormatRequest, ExportUiState
from account_export.services import (
    ExportCoordinator,
    MalformedReportError,
    NoReportAvailableError,
)

router = APIRouter()
logger = logging.getLogger(__name__)

CoordinatorDependency = Annotated[ExportCoordinator, Depends(get_export_coordinator)]


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(settings: Annotated[AppSettings, Depends(get_app_settings)]) -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "environment": settings.environment}


@router.get("/account-data", response_model=ExportUiState)
def get_export_state(coordinator: CoordinatorDependency) -> ExportUiState:
    """Read-only snapshot; a plain def so the SQLite read runs in the threadpool."""
    return coordinator.state


@router.post(
    "/account-data/download",
    status_code=HTTPStatus.ACCEPTED,
    response_model=ExportUiState,
)
async def download_report(coordinator: CoordinatorDependency) -> ExportUiState:
    """Start downloading the report; repeated calls while one runs are ignored."""
    coordinator.on_download_report()
    return coordinator.state


@router.post("/account-data/dialog/dismiss", response_model=ExportUiState)
async def dismiss_download_error(coordinator: CoordinatorDependency) -> ExportUiState:
    coordinator.dismiss_download_error_dialog()
    return coordinator.state


@router.delete("/account-data", response_model=ExportUiState)
async def delete_report(coordinator: CoordinatorDependency) -> ExportUiState:
    coordinator.delete_report()
    return coordinator.state


@router.put("/account-data/format", response_model=ExportUiState)
async def set_export_format(
    payload: ExportFormatRequest, coordinator: CoordinatorDependency
) -> ExportUiState:
    coordinator.set_export_format(payload.format)
    return coordinator.state


@router.post("/account-data/export", response_model=ExportedReport)
async def export_report(coordinator: CoordinatorDependency) -> ExportedReport:
    """Render the cached report and return a single-use blob locator."""
    try:
        return coordinator.export_report()
    except NoReportAvailableError as exc:
        raise HTTPException(status_code=HTTPStatus.CONFLICT, detail=str(exc)) from exc
    except MalformedReportError as exc:
        logger.error("Cached account data report is malformed: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Cached account data report is malformed.",
        ) from exc


@router.get("/blobs/{blob_id}")
async def read_blob(
    blob_id: str,
    blob_store: Annotated[EphemeralBlobStore, Depends(get_blob_store)],
) -> Response:
    """Serve an exported file exactly once."""
    try:
        blob = blob_store.take(blob_store.build_uri(blob_id))
    except BlobNotFoundError as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc)) from exc
    return Response(
        content=blob.data,
        media_type=blob.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{blob.file_name}"'},
    )


__all__ = ["router"]
