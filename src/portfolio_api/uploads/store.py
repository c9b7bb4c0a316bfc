"""
portfolio_api.uploads.store

Disk storage for validated uploads.

Responsibilities:
- Ensure the image/document directories exist (once, at startup).
- Read the upload with a hard byte ceiling before anything touches disk.
- Write it under a random hex name and run the post-storage scan hook.
"""

from __future__ import annotations

import secrets
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import anyio
from starlette.datastructures import UploadFile

from portfolio_api.observability.logging import get_logger
from portfolio_api.uploads.validation import (
    MAX_FILE_BYTES,
    MediaKind,
    UploadError,
    UploadErrorCode,
    media_kind,
    normalize_media_type,
    validate_media,
)

log = get_logger(__name__)

UPLOAD_URL_PREFIX = "/uploads"

_READ_CHUNK = 64 * 1024

# Called with the stored path; raising vetoes the upload.
ScanHook = Callable[[Path], Awaitable[None]]


async def no_scan(path: Path) -> None:
    return None


@dataclass(frozen=True, slots=True)
class UploadRecord:
    filename: str
    path: Path
    media_type: str
    size: int
    original_filename: str
    kind: MediaKind

    @property
    def url(self) -> str:
        return f"{UPLOAD_URL_PREFIX}/{self.kind.directory}/{self.filename}"


class UploadStore:
    def __init__(
        self,
        root: str | Path,
        *,
        max_bytes: int = MAX_FILE_BYTES,
        scan_hook: ScanHook | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.max_bytes = max_bytes
        self._scan_hook = scan_hook or no_scan

    def directory_for(self, kind: MediaKind) -> Path:
        return self.root / kind.directory

    def ensure_directories(self) -> None:
        for kind in MediaKind:
            self.directory_for(kind).mkdir(parents=True, exist_ok=True)

    async def save(self, upload: UploadFile, *, expected_kind: MediaKind | None = None) -> UploadRecord:
        original_filename = upload.filename or ""
        media_type = normalize_media_type(upload.content_type)
        extension = validate_media(media_type, original_filename)

        kind = media_kind(media_type)
        if expected_kind is not None and kind is not expected_kind:
            article = "an" if expected_kind is MediaKind.image else "a"
            raise UploadError(UploadErrorCode.wrong_kind, f"Expected {article} {expected_kind.value} file")

        data = await self._read_limited(upload)

        filename = f"{secrets.token_hex(16)}{extension}"
        path = self.directory_for(kind) / filename
        await anyio.Path(path).write_bytes(data)

        try:
            await self._scan_hook(path)
        except Exception as e:
            await anyio.Path(path).unlink(missing_ok=True)
            log.warning("upload_vetoed", filename=filename, original_filename=original_filename, error=str(e))
            if isinstance(e, UploadError):
                raise
            raise UploadError(UploadErrorCode.scan_rejected) from e

        log.info(
            "upload_stored",
            original_filename=original_filename,
            filename=filename,
            media_type=media_type,
            size=len(data),
        )
        return UploadRecord(
            filename=filename,
            path=path,
            media_type=media_type,
            size=len(data),
            original_filename=original_filename,
            kind=kind,
        )

    async def discard(self, record: UploadRecord) -> None:
        await anyio.Path(record.path).unlink(missing_ok=True)

    async def discard_url(self, url: str | None) -> bool:
        """
        Delete a file previously stored here, given its public URL. URLs that do
        not point inside the upload root are ignored.
        """

        if not url or not url.startswith(f"{UPLOAD_URL_PREFIX}/"):
            return False
        path = (self.root / url[len(UPLOAD_URL_PREFIX) + 1 :]).resolve()
        if path.parent not in {self.directory_for(kind) for kind in MediaKind}:
            return False
        await anyio.Path(path).unlink(missing_ok=True)
        log.info("upload_discarded", filename=path.name)
        return True

    async def _read_limited(self, upload: UploadFile) -> bytes:
        chunks: list[bytes] = []
        total = 0
        while chunk := await upload.read(_READ_CHUNK):
            total += len(chunk)
            if total > self.max_bytes:
                raise UploadError(UploadErrorCode.file_size)
            chunks.append(chunk)
        return b"".join(chunks)


# --- Module Notes -----------------------------------------------------------
# The client filename is only logged and returned in the record; it never becomes
# part of a storage path.
