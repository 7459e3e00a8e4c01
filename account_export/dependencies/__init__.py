"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_app_settings,
    get_blob_store,
    get_export_coordinator,
    get_key_value_store,
    get_report_cipher,
    get_report_client,
    get_report_store,
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
