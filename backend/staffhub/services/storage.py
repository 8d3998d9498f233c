"""Document storage for sick-day doctor's notes (Supabase-style object storage over HTTP)."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from staffhub.config import get_settings
from staffhub.exceptions import ExternalChannelError, ValidationError

if TYPE_CHECKING:
    from staffhub.config import Settings
    from staffhub.schemas.submission import UploadedDocument

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset({"application/pdf", "image/jpeg", "image/png"})
MAX_DOCUMENT_BYTES = 10 * 1024 * 1024

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def check_document(document: UploadedDocument) -> None:
    """Raise ``ValidationError`` when the upload is not an accepted doctor's note."""
    if document.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationError("doctor_note", "Doctor's note must be a PDF, JPEG or PNG file")
    if len(document.content) > MAX_DOCUMENT_BYTES:
        raise ValidationError("doctor_note", "Doctor's note must be 10 MB or smaller")
    if not document.content:
        raise ValidationError("doctor_note", "Doctor's note file is empty")


def object_path(filename: str, *, now: float | None = None) -> str:
    """``doctor-notes/{millis}-{sanitized name}``"""
    millis = int((now if now is not None else time.time()) * 1000)
    return f"doctor-notes/{millis}-{_UNSAFE_CHARS.sub('_', filename) or 'note'}"


@runtime_checkable
class DocumentStorage(Protocol):
    async def upload(self, document: UploadedDocument) -> str:
        """Store the document and return its public URL."""
        ...


class HttpDocumentStorage:
    def __init__(self, base_url: str, service_key: str, bucket: str, *, timeout: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._bucket = bucket
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpDocumentStorage | None:
        if not settings.storage_url or not settings.storage_service_key:
            return None
        return cls(
            settings.storage_url,
            settings.storage_service_key,
            settings.storage_bucket,
            timeout=settings.channel_timeout_seconds,
        )

    def public_url(self, path: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{self._bucket}/{path}"

    async def upload(self, document: UploadedDocument) -> str:
        path = object_path(document.filename)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    f"{self._base_url}/storage/v1/object/{self._bucket}/{path}",
                    content=document.content,
                    headers={
                        "Authorization": f"Bearer {self._service_key}",
                        "Content-Type": document.content_type,
                        "x-upsert": "false",
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ExternalChannelError("storage", str(exc)) from exc
        url = self.public_url(path)
        logger.info("Uploaded doctor's note to %s", path)
        return url


class InMemoryDocumentStorage:
    def __init__(self, fail_with: Exception | None = None, delay: float = 0.0) -> None:
        self.documents: dict[str, bytes] = {}
        self.fail_with = fail_with
        self.delay = delay

    async def upload(self, document: UploadedDocument) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        path = object_path(document.filename)
        self.documents[path] = document.content
        return f"memory://sick-day-documents/{path}"


_storage: DocumentStorage | None = None
_storage_configured = False


def get_document_storage() -> DocumentStorage | None:
    """Return the document storage, or None when uploads are not configured."""
    global _storage, _storage_configured
    if not _storage_configured:
        _storage = HttpDocumentStorage.from_settings(get_settings())
        _storage_configured = True
    return _storage


def set_document_storage(storage: DocumentStorage | None) -> None:
    """Replace the document storage (for testing or alternative wiring)."""
    global _storage, _storage_configured
    _storage = storage
    _storage_configured = True
