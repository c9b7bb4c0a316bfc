"""
portfolio_api.uploads.validation

Upload allow-list and the upload error type.

Responsibilities:
- Map each accepted media type to the file extensions allowed for it.
- Classify media types into coarse kinds (image vs document).
- Reject declared-type / extension mismatches even when the type itself is allowed.
"""

from __future__ import annotations

import enum
from pathlib import PurePosixPath

MAX_FILE_BYTES = 5 * 1024 * 1024
MAX_FILES = 1

ALLOWED_TYPES: dict[str, frozenset[str]] = {
    "image/jpeg": frozenset({".jpg", ".jpeg"}),
    "image/png": frozenset({".png"}),
    "image/gif": frozenset({".gif"}),
    "application/pdf": frozenset({".pdf"}),
}


class MediaKind(enum.StrEnum):
    image = "image"
    document = "document"

    @property
    def directory(self) -> str:
        return f"{self.value}s"


class UploadErrorCode(enum.StrEnum):
    file_size = "LIMIT_FILE_SIZE"
    file_count = "LIMIT_FILE_COUNT"
    unexpected_file = "LIMIT_UNEXPECTED_FILE"
    invalid_type = "INVALID_FILE_TYPE"
    extension_mismatch = "EXTENSION_MISMATCH"
    wrong_kind = "WRONG_MEDIA_KIND"
    scan_rejected = "SCAN_REJECTED"


UPLOAD_MESSAGES: dict[UploadErrorCode, str] = {
    UploadErrorCode.file_size: "File too large",
    UploadErrorCode.file_count: "Too many files. Only one file is allowed.",
    UploadErrorCode.unexpected_file: "Unexpected file field",
    UploadErrorCode.invalid_type: "Invalid file type. Only JPEG, PNG, GIF and PDF files are allowed.",
    UploadErrorCode.extension_mismatch: "File extension does not match the declared file type.",
    UploadErrorCode.scan_rejected: "File failed security scan",
}


class UploadError(Exception):
    def __init__(self, code: UploadErrorCode, message: str | None = None) -> None:
        self.code = code
        self.message = message or UPLOAD_MESSAGES.get(code, "File upload error")
        super().__init__(self.message)


def normalize_media_type(content_type: str | None) -> str:
    # "image/png; charset=binary" -> "image/png"
    return (content_type or "").split(";", 1)[0].strip().lower()


def file_extension(filename: str | None) -> str:
    # Windows clients may send backslash-separated paths.
    return PurePosixPath((filename or "").replace("\\", "/")).suffix.lower()


def media_kind(media_type: str) -> MediaKind:
    return MediaKind.image if media_type.startswith("image/") else MediaKind.document


def validate_media(media_type: str, filename: str | None) -> str:
    """
    Check the declared type against the allow-list and the extension against the
    type. Returns the lower-cased extension to keep on the stored file.
    """

    allowed_extensions = ALLOWED_TYPES.get(media_type)
    if allowed_extensions is None:
        raise UploadError(UploadErrorCode.invalid_type)
    extension = file_extension(filename)
    if extension not in allowed_extensions:
        raise UploadError(UploadErrorCode.extension_mismatch)
    return extension
