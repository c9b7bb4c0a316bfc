"""
tests.test_errors

Unit tests for error classification and rendering, run against raw exceptions.
"""

from __future__ import annotations

import json

import pytest
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException

from portfolio_api.api.errors import (
    EXPIRED_TOKEN_MESSAGE,
    GENERIC_MESSAGE,
    INVALID_TOKEN_MESSAGE,
    ErrorKind,
    classify,
    render,
    status_for,
)
from portfolio_api.auth.jwt import JwtValidationError, TokenExpiredError
from portfolio_api.db.errors import DuplicateKeyError, InvalidIdentifierError
from portfolio_api.errors import NotFoundError, RateLimitExceededError
from portfolio_api.uploads.validation import UploadError, UploadErrorCode


class _Payload(BaseModel):
    title: str = Field(min_length=3)


def _body(response) -> dict:
    return json.loads(response.body)


@pytest.mark.parametrize(("code", "expected"), [(400, "fail"), (404, "fail"), (499, "fail"), (500, "error"), (503, "error")])
def test_status_class(code: int, expected: str) -> None:
    assert status_for(code) == expected


def test_request_validation_lists_fields_without_location_prefix() -> None:
    exc = RequestValidationError(
        [
            {"loc": ("body", "title"), "msg": "Field required", "type": "missing"},
            {"loc": ("query", "page"), "msg": "Input should be greater than or equal to 1", "type": "greater_than_equal"},
        ]
    )

    error = classify(exc)

    assert error.kind is ErrorKind.validation
    assert error.status_code == 400
    assert error.status == "fail"
    assert error.message == "Validation error"
    assert [e.field for e in error.errors] == ["title", "page"]


def test_model_validation_error_is_a_validation_error() -> None:
    with pytest.raises(ValidationError) as exc_info:
        _Payload(title="x")

    error = classify(exc_info.value)

    assert error.kind is ErrorKind.validation
    assert error.errors[0].field == "title"


def test_duplicate_key_names_field_and_value() -> None:
    error = classify(DuplicateKeyError({"email": "me@example.com"}))

    assert error.status_code == 400
    assert error.field == "email"
    assert error.message == "Duplicate field value: email already exists with value me@example.com"


def test_raw_postgres_unique_violation_is_recognised() -> None:
    orig = Exception('duplicate key value violates unique constraint\nDETAIL:  Key (name)=(Python) already exists.')
    error = classify(IntegrityError("INSERT INTO skills ...", {}, orig))

    assert error.kind is ErrorKind.duplicate_key
    assert error.field == "name"
    assert "Python" in error.message


def test_raw_sqlite_unique_violation_is_recognised() -> None:
    error = classify(IntegrityError("INSERT INTO skills ...", {}, Exception("UNIQUE constraint failed: skills.name")))

    assert error.kind is ErrorKind.duplicate_key
    assert error.field == "name"


def test_other_integrity_errors_are_unclassified() -> None:
    error = classify(IntegrityError("INSERT ...", {}, Exception("NOT NULL constraint failed: skills.name")))

    assert error.kind is ErrorKind.unclassified
    assert error.status_code == 500
    assert error.operational is False


def test_invalid_identifier() -> None:
    error = classify(InvalidIdentifierError("id", "abc"))

    assert error.kind is ErrorKind.cast
    assert error.status_code == 400
    assert error.message == "Invalid id: abc"
    assert error.field == "id"


def test_expired_token_is_distinct_from_invalid_token() -> None:
    expired = classify(TokenExpiredError("Signature has expired"))
    invalid = classify(JwtValidationError("Signature verification failed"))

    assert (expired.status_code, expired.message) == (401, EXPIRED_TOKEN_MESSAGE)
    assert (invalid.status_code, invalid.message) == (401, INVALID_TOKEN_MESSAGE)


@pytest.mark.parametrize(
    ("code", "message"),
    [
        (UploadErrorCode.file_size, "File too large"),
        (UploadErrorCode.unexpected_file, "Unexpected file field"),
        (UploadErrorCode.file_count, "Too many files. Only one file is allowed."),
        (UploadErrorCode.extension_mismatch, "File extension does not match the declared file type."),
    ],
)
def test_upload_errors(code: UploadErrorCode, message: str) -> None:
    error = classify(UploadError(code))

    assert error.kind is ErrorKind.upload
    assert error.status_code == 400
    assert error.status == "error"
    assert error.message == message


def test_application_errors_keep_their_status() -> None:
    error = classify(NotFoundError("Project"))

    assert (error.status_code, error.status, error.message) == (404, "fail", "Project not found")


def test_rate_limit_error_carries_retry_after() -> None:
    error = classify(RateLimitExceededError("slow down", retry_after=42))

    assert error.status_code == 429
    assert error.headers == {"Retry-After": "42"}


def test_unmatched_route() -> None:
    error = classify(HTTPException(status_code=404))

    assert error.kind is ErrorKind.route_not_found
    assert (error.status, error.message) == ("error", "Route not found")


def test_unknown_exception_is_unclassified() -> None:
    error = classify(RuntimeError("boom"))

    assert error.kind is ErrorKind.unclassified
    assert error.status_code == 500
    assert error.status == "error"
    assert error.operational is False


def test_foreign_status_code_attribute_does_not_leak_into_unclassified_faults() -> None:
    exc = RuntimeError("teapot")
    exc.status_code = 418  # type: ignore[attr-defined]

    error = classify(exc)

    assert error.kind is ErrorKind.unclassified
    assert error.status_code == 500
    assert render(error, exc, verbose=False).status_code == 500


def test_terse_render_hides_unclassified_details() -> None:
    exc = RuntimeError("database password is hunter2")

    response = render(classify(exc), exc, verbose=False)

    assert response.status_code == 500
    assert _body(response) == {"status": "error", "message": GENERIC_MESSAGE}


def test_terse_render_of_operational_error() -> None:
    exc = DuplicateKeyError({"name": "Python"})

    response = render(classify(exc), exc, verbose=False)

    assert response.status_code == 400
    assert _body(response) == {
        "status": "fail",
        "message": "Duplicate field value: name already exists with value Python",
        "field": "name",
    }


def test_verbose_render_includes_error_and_stack() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError as e:
        exc = e

    body = _body(render(classify(exc), exc, verbose=True))

    assert body["status"] == "error"
    assert body["message"] == "boom"
    assert body["error"]["name"] == "RuntimeError"
    assert body["error"]["operational"] is False
    assert "RuntimeError: boom" in body["stack"]


def test_verbose_render_keeps_field_errors() -> None:
    exc = RequestValidationError([{"loc": ("body", "title"), "msg": "Field required", "type": "missing"}])

    body = _body(render(classify(exc), exc, verbose=True))

    assert body["errors"] == [{"field": "title", "message": "Field required"}]
