"""Commit and rollback behaviour of ``@transactional``."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.database import UNIQUE_VIOLATION, transactional
from app.core.exceptions import ConflictError, NotFoundError


class DriverError(Exception):
    def __init__(self, sqlstate: str, constraint_name: str | None = None) -> None:
        super().__init__(sqlstate)
        self.sqlstate = sqlstate
        if constraint_name:
            cause = Exception(constraint_name)
            cause.constraint_name = constraint_name
            self.__cause__ = cause


def integrity_error(sqlstate: str, constraint_name: str | None = None) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, DriverError(sqlstate, constraint_name))


class Worker:
    def __init__(self, db: AsyncMock) -> None:
        self.db = db

    @transactional
    async def run(self, error: Exception | None = None) -> str:
        if error is not None:
            raise error
        return "done"


@transactional
async def standalone(db: AsyncMock) -> str:
    return "standalone"


class TestTransactional:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_commits_on_success(self, mock_db: AsyncMock) -> None:
        assert await Worker(mock_db).run() == "done"

        mock_db.commit.assert_awaited_once()
        mock_db.rollback.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_session_as_argument(self, mock_db: AsyncMock) -> None:
        assert await standalone(mock_db) == "standalone"
        assert await standalone(db=mock_db) == "standalone"

        assert mock_db.commit.await_count == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_app_error_rolls_back_and_propagates(self, mock_db: AsyncMock) -> None:
        with pytest.raises(NotFoundError):
            await Worker(mock_db).run(NotFoundError("Page"))

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unique_violation_becomes_conflict(self, mock_db: AsyncMock) -> None:
        error = integrity_error(UNIQUE_VIOLATION, "uq_comment_votes_comment_user")

        with pytest.raises(ConflictError) as exc_info:
            await Worker(mock_db).run(error)

        assert exc_info.value.status_code == 409
        assert exc_info.value.detail["constraint"] == "uq_comment_votes_comment_user"
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unnamed_unique_violation(self, mock_db: AsyncMock) -> None:
        with pytest.raises(ConflictError) as exc_info:
            await Worker(mock_db).run(integrity_error(UNIQUE_VIOLATION))

        assert exc_info.value.detail["constraint"] == "unique"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_other_integrity_errors_pass_through(self, mock_db: AsyncMock) -> None:
        # 23503: foreign key violation
        with pytest.raises(IntegrityError):
            await Worker(mock_db).run(integrity_error("23503"))

        mock_db.rollback.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_requires_a_session(self) -> None:
        @transactional
        async def orphan(value: int) -> int:
            return value

        with pytest.raises(ValueError):
            await orphan(1)
