"""
portfolio_api.uploads.deps

FastAPI dependency that turns a multipart request into a stored `UploadRecord`.
"""

from __future__ import annotations

from fastapi import Request
from starlette.datastructures import UploadFile

from portfolio_api.errors import BadRequestError
from portfolio_api.uploads.store import UploadRecord, UploadStore
from portfolio_api.uploads.validation import MAX_FILES, MediaKind, UploadError, UploadErrorCode


def require_upload(field: str, *, kind: MediaKind | None = None):
    """
    Dependency factory: exactly one file, sent under `field`, optionally restricted
    to one media kind.
    """

    async def _dep(request: Request) -> UploadRecord:
        form = await request.form()
        files = [(name, value) for name, value in form.multi_items() if isinstance(value, UploadFile)]
        if not files:
            raise BadRequestError("No file uploaded")
        # Count is checked before anything is read so rejected requests persist nothing.
        if len(files) > MAX_FILES:
            raise UploadError(UploadErrorCode.file_count)
        name, upload = files[0]
        if name != field:
            raise UploadError(UploadErrorCode.unexpected_file)

        store: UploadStore = request.app.state.upload_store
        record = await store.save(upload, expected_kind=kind)
        request.state.upload = record
        return record

    return _dep
