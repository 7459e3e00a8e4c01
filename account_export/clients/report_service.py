"""Client for the remote account data report endpoint."""

from __future__ import annotations

import logging

import httpx

from account_export.core.config import ReportServiceSettings
from account_export.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)


class ReportDownloadError(Exception):
    """Raised when the report could not be fetched from the service."""


class AccountDataReportClient:
    """Fetch the account data report as raw JSON text.

    The client only produces data; persisting the result is left to the caller.
    """

    def __init__(
        self,
        settings: ReportServiceSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    def _auth(self) -> httpx.BasicAuth | None:
        if not self._settings.username:
            return None
        return httpx.BasicAuth(self._settings.username, self._settings.password or "")

    async def fetch_report(self) -> str:
        """Return the report body exactly as served."""
        base_url = str(self._settings.base_url).rstrip("/")
        try:
            async with httpx.AsyncClient(
                base_url=base_url,
                auth=self._auth(),
                timeout=self._settings.timeout_seconds,
                transport=self._transport,
                headers={"Accept": "application/json"},
            ) as client:
                response = await request_with_retry(
                    client.get,
                    self._settings.data_report_path,
                    retry_config=RetryConfig(attempts=self._settings.retry_attempts),
                )
        except httpx.HTTPError as exc:
            logger.warning("Account data report request failed: %s", exc)
            raise ReportDownloadError("Failed to download account data report.") from exc

        logger.info("Fetched account data report (%s bytes)", len(response.content))
        return response.text


__all__ = ["AccountDataReportClient", "ReportDownloadError"]
