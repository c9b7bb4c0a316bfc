from __future__ import annotations

import json

from portfolio_api.observability.logging import REDACTED, redact
from portfolio_api.observability.middleware import MAX_CAPTURED_BYTES, _BodyBuffer, describe_body


def test_redact_masks_credentials_at_any_depth() -> None:
    value = {
        "email": "a@b.co",
        "Password": "hunter2",
        "nested": [{"token": "abc", "keep": 1}],
        "new_password": "x",
    }

    assert redact(value) == {
        "email": "a@b.co",
        "Password": REDACTED,
        "nested": [{"token": REDACTED, "keep": 1}],
        "new_password": REDACTED,
    }


def test_json_bodies_are_parsed_and_redacted() -> None:
    raw = json.dumps({"email": "a@b.co", "password": "hunter2"}).encode()

    assert describe_body(raw, "application/json") == {"email": "a@b.co", "password": REDACTED}


def test_form_bodies_are_redacted() -> None:
    assert describe_body(b"email=a%40b.co&password=hunter2", "application/x-www-form-urlencoded") == {
        "email": "a@b.co",
        "password": REDACTED,
    }


def test_multipart_bodies_are_summarised() -> None:
    assert describe_body(b"--boundary\r\n...", "multipart/form-data; boundary=boundary") == "<multipart 15 bytes>"


def test_empty_body() -> None:
    assert describe_body(b"", "application/json") is None


def test_long_text_is_previewed() -> None:
    described = describe_body(b"x" * 1000, "text/plain")

    assert described.endswith("...")
    assert len(described) < 1000


def test_body_buffer_is_capped() -> None:
    buffer = _BodyBuffer()
    buffer.add(b"a" * (MAX_CAPTURED_BYTES - 1))
    buffer.add(b"bb")
    buffer.add(b"c")

    assert len(buffer.data) == MAX_CAPTURED_BYTES
    assert buffer.truncated is True
