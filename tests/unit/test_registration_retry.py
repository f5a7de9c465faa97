"""Unit tests for transient-conflict retry around registration transactions."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError

from merit.errors import NotFound, Unavailable
from merit.registrations.service import run_with_retry


class _SerializationFailure(Exception):
    sqlstate = "40001"


class _SyntaxError(Exception):
    sqlstate = "42601"


def _db() -> AsyncMock:
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


def _conflict() -> DBAPIError:
    return DBAPIError("SELECT 1", {}, _SerializationFailure("could not serialize access"))


class TestRunWithRetry:
    async def test_success_commits_once(self):
        db = _db()
        operation = AsyncMock(return_value="ok")
        assert await run_with_retry(db, operation, name="test", attempts=2) == "ok"
        operation.assert_awaited_once()
        db.commit.assert_awaited_once()
        db.rollback.assert_not_awaited()

    async def test_retries_one_conflict_then_succeeds(self):
        db = _db()
        operation = AsyncMock(side_effect=[_conflict(), "ok"])
        assert await run_with_retry(db, operation, name="test", attempts=2) == "ok"
        assert operation.await_count == 2
        db.rollback.assert_awaited_once()

    async def test_persistent_conflict_becomes_unavailable(self):
        db = _db()
        operation = AsyncMock(side_effect=[_conflict(), _conflict()])
        with pytest.raises(Unavailable):
            await run_with_retry(db, operation, name="test", attempts=2)
        assert operation.await_count == 2
        db.commit.assert_not_awaited()

    async def test_sqlite_busy_is_retryable(self):
        db = _db()
        busy = DBAPIError("INSERT", {}, Exception("database is locked"))
        operation = AsyncMock(side_effect=[busy, "ok"])
        assert await run_with_retry(db, operation, name="test", attempts=2) == "ok"

    async def test_non_transient_store_error_propagates(self):
        db = _db()
        error = DBAPIError("SELEC 1", {}, _SyntaxError("syntax error"))
        operation = AsyncMock(side_effect=error)
        with pytest.raises(DBAPIError):
            await run_with_retry(db, operation, name="test", attempts=2)
        operation.assert_awaited_once()
        db.rollback.assert_awaited_once()

    async def test_integrity_error_is_not_retried(self):
        db = _db()
        operation = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")))
        with pytest.raises(IntegrityError):
            await run_with_retry(db, operation, name="test", attempts=2)
        operation.assert_awaited_once()

    async def test_domain_error_rolls_back_and_propagates(self):
        db = _db()
        operation = AsyncMock(side_effect=NotFound("Event not found"))
        with pytest.raises(NotFound):
            await run_with_retry(db, operation, name="test", attempts=2)
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()
