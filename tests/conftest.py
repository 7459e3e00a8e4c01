"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio

import pytest

from account_export.clients import ReportDownloadError, SQLiteKeyValueStore
from account_export.services import ReportStore

SAMPLE_REPORT = """
{
    "reportId": "4c0ca2aa-151b-4e9e-8bf4-ea2c64345a22",
    "reportTimestamp": "2023-03-22T20:21:24Z",
    "data": {
        "account": {
            "phoneNumber": "+14125556950",
            "badges": [
                {
                    "id": "R_LOW",
                    "expiration": "2023-04-27T00:00:00Z",
                    "visible": true
                }
            ],
            "allowSealedSenderFromAnyone": false,
            "findAccountByPhoneNumber": true
        },
        "devices": [
            {
                "id": 1,
                "lastSeen": "2023-03-22T00:00:00Z",
                "created": "2023-03-07T19:37:08Z",
                "userAgent": "OWA"
            },
            {
                "id": 2,
                "lastSeen": "2023-03-21T00:00:00Z",
                "created": "2023-03-07T19:40:56Z",
                "userAgent": null
            }
        ]
    },
    "text": "Report ID: 4c0ca2aa-151b-4e9e-8bf4-ea2c64345a22\\nReport timestamp: 2023-03-22T20:21:24Z\\n\\n# Account\\nPhone number: +14125556950\\nAllow sealed sender from anyone: false\\nFind account by phone number: true\\n"
}
"""

SAMPLE_REPORT_TEXT = (
    "Report ID: 4c0ca2aa-151b-4e9e-8bf4-ea2c64345a22\n"
    "Report timestamp: 2023-03-22T20:21:24Z\n"
    "\n"
    "# Account\n"
    "Phone number: +14125556950\n"
    "Allow sealed sender from anyone: false\n"
    "Find account by phone number: true\n"
)


class StubReportClient:
    """Report client whose fetch completes only when released."""

    def __init__(self, *, document: str = SAMPLE_REPORT, fail: bool = False) -> None:
        self.document = document
        self.fail = fail
        self.calls = 0
        self.release = asyncio.Event()

    async def fetch_report(self) -> str:
        self.calls += 1
        await self.release.wait()
        if self.fail:
            raise ReportDownloadError("service unavailable")
        return self.document


@pytest.fixture
def sample_report() -> str:
    return SAMPLE_REPORT


@pytest.fixture
def key_value_store(tmp_path) -> SQLiteKeyValueStore:
    return SQLiteKeyValueStore(str(tmp_path / "account_export.db"))


@pytest.fixture
def report_store(key_value_store) -> ReportStore:
    return ReportStore(key_value_store)
