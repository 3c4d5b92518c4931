# frontend/streamlit_app/services/bucket.py
# SPDX-License-Identifier: Apache-2.0
"""Blob storage for uploaded documents.

Two backends share one method, `upload(doc_id, filename, content, mime_type)`,
which returns the public URL stored as the document's canonical reference:

  • SupabaseBucket — Supabase Storage REST API over `requests`
  • LocalBucket    — a directory on disk, `file://` URLs (development/tests)

Object keys are `documents/<doc_id>-<timestamp_ms>.<ext>`. No content hash is
recorded anywhere; the URL is the only link between the blob and the chain
record.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Protocol

import requests

from core.constants import file_extension

log = logging.getLogger(__name__)


def object_key(doc_id: int, filename: str, now_ms: int | None = None) -> str:
    """Return `documents/<doc_id>-<timestamp_ms>.<ext>` for an upload."""
    ts = int(time.time() * 1000) if now_ms is None else int(now_ms)
    ext = file_extension(filename) or "bin"
    return f"documents/{int(doc_id)}-{ts}.{ext}"


class Bucket(Protocol):
    def upload(
        self, doc_id: int, filename: str, content: bytes, mime_type: str | None = None
    ) -> str: ...


class SupabaseBucket:
    """Upload to a public Supabase Storage bucket."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        bucket: str = "documents",
        *,
        session: requests.Session | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.bucket = bucket
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self, mime_type: str | None) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "apikey": self.api_key,
            "Content-Type": mime_type or "application/octet-stream",
            "x-upsert": "false",
        }

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{key}"

    def upload(
        self, doc_id: int, filename: str, content: bytes, mime_type: str | None = None
    ) -> str:
        key = object_key(doc_id, filename)
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{key}"
        response = self.session.post(
            url, data=content, headers=self._headers(mime_type), timeout=self.timeout
        )
        response.raise_for_status()
        log.info("Uploaded %d bytes to %s/%s", len(content), self.bucket, key)
        return self.public_url(key)


class LocalBucket:
    """Write uploads under `root`; URLs are `file://` URIs."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def upload(
        self, doc_id: int, filename: str, content: bytes, mime_type: str | None = None
    ) -> str:
        key = object_key(doc_id, filename)
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        log.info("Stored %d bytes at %s", len(content), path)
        return path.as_uri()
