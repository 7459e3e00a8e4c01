"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from account_export.clients import (
    AccountDataReportClient,
    EphemeralBlobStore,
    SQLiteKeyValueStore,
)
from account_export.core.config import AppSettings, get_settings
from account_export.services import ExportCoordinator, ReportCipher, ReportStore


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings()


@lru_cache()
def get_key_value_store() -> SQLiteKeyValueStore:
    """Provide the shared SQLite key-value store."""
    return SQLiteKeyValueStore(_settings().storage.db_path)


@lru_cache()
def get_report_cipher() -> ReportCipher | None:
    """Provide at-rest encryption when a secret is configured."""
    secret = _settings().storage.encryption_secret
    if not secret:
        return None
    return ReportCipher(secret=secret)


@lru_cache()
def get_report_store() -> ReportStore:
    return ReportStore(get_key_value_store(), cipher=get_report_cipher())


@lru_cache()
def get_report_client() -> AccountDataReportClient:
    return AccountDataReportClient(_settings().report_service)


@lru_cache()
def get_blob_store() -> EphemeralBlobStore:
    """Provide the process-wide ephemeral blob sink."""
    return EphemeralBlobStore()


@lru_cache()
def get_export_coordinator() -> ExportCoordinator:
    """Provide the single coordinator owning the export screen state."""
    return ExportCoordinator(
        store=get_report_store(),
        client=get_report_client(),
        blob_store=get_blob_store(),
    )


__all__ = [
    "get_app_settings",
    "get_blob_store",
    "get_export_coordinator",
    "get_key_value_store",
    "get_report_cipher",
    "get_report_client",
    "get_report_store",
]
