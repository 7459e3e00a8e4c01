"""In-memory, single-session blob sink for handing exported files to a consumer."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict
from uuid import uuid4

_SCHEME = "blob:"


class BlobNotFoundError(Exception):
    """Raised when a locator is unknown, already consumed, or from another session."""


@dataclass(slots=True, frozen=True)
class StoredBlob:
    data: bytes
    mime_type: str
    file_name: str


class EphemeralBlobStore:
    """Keep blobs in memory until they are read once or the session ends."""

    def __init__(self) -> None:
        self._session_id = uuid4().hex
        self._blobs: Dict[str, StoredBlob] = {}
        self._lock = threading.Lock()

    @property
    def session_id(self) -> str:
        return self._session_id

    def put(self, data: bytes, *, mime_type: str, file_name: str) -> str:
        """Store ``data`` and return its locator."""
        blob_id = uuid4().hex
        with self._lock:
            self._blobs[blob_id] = StoredBlob(data=data, mime_type=mime_type, file_name=file_name)
        return self.build_uri(blob_id)

    def build_uri(self, blob_id: str) -> str:
        return f"{_SCHEME}{self._session_id}/{blob_id}"

    def take(self, uri: str) -> StoredBlob:
        """Return the blob behind ``uri`` and forget it."""
        blob_id = self._parse(uri)
        with self._lock:
            blob = self._blobs.pop(blob_id, None)
        if blob is None:
            raise BlobNotFoundError(f"No blob available for {uri}.")
        return blob

    def discard(self, uri: str) -> None:
        """Forget ``uri`` if it is still pending; unknown locators are ignored."""
        try:
            blob_id = self._parse(uri)
        except BlobNotFoundError:
            return
        with self._lock:
            self._blobs.pop(blob_id, None)

    def clear(self) -> None:
        """Drop every blob and start a new session."""
        with self._lock:
            self._blobs.clear()
            self._session_id = uuid4().hex

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)

    def _parse(self, uri: str) -> str:
        if not uri.startswith(_SCHEME):
            raise BlobNotFoundError(f"Unsupported blob locator {uri!r}.")
        session_id, sep, blob_id = uri[len(_SCHEME):].partition("/")
        if not sep or not blob_id:
            raise BlobNotFoundError(f"Malformed blob locator {uri!r}.")
        if session_id != self._session_id:
            raise BlobNotFoundError("Blob locator belongs to a previous session.")
        return blob_id


__all__ = ["BlobNotFoundError", "EphemeralBlobStore", "StoredBlob"]
