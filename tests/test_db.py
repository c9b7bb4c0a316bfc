from __future__ import annotations

from contextlib import asynccontextmanager

import pytest
from sqlalchemy.exc import IntegrityError

from portfolio_api.db import session as db_session
from portfolio_api.db.errors import InvalidIdentifierError, parse_id, unique_violation


class _FlakyConnection:
    async def execute(self, statement) -> None:
        return None


class _FlakyEngine:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    @asynccontextmanager
    async def connect(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionRefusedError("database is starting up")
        yield _FlakyConnection()


@pytest.mark.asyncio
async def test_connect_with_retry_waits_for_the_database(monkeypatch: pytest.MonkeyPatch) -> None:
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr(db_session.asyncio, "sleep", fake_sleep)
    engine = _FlakyEngine(failures=3)

    failed = await db_session.connect_with_retry(engine, delay_seconds=5.0)  # type: ignore[arg-type]

    assert failed == 3
    assert engine.calls == 4
    assert delays == [5.0, 5.0, 5.0]


def test_parse_id() -> None:
    assert str(parse_id("00000000-0000-4000-8000-000000000000")) == "00000000-0000-4000-8000-000000000000"
    with pytest.raises(InvalidIdentifierError) as exc_info:
        parse_id("42", field="project_id")
    assert (exc_info.value.field, exc_info.value.value) == ("project_id", "42")


def test_unique_violation_parsing() -> None:
    sqlite = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.email"))
    postgres = IntegrityError(
        "INSERT", {}, Exception("DETAIL:  Key (email)=(me@example.com) already exists.")
    )
    other = IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))

    assert unique_violation(sqlite) == {"email": None}
    assert unique_violation(postgres) == {"email": "me@example.com"}
    assert unique_violation(other) is None
