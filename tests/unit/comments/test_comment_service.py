"""Unit tests for CommentService with a mocked session."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from app.config import settings
from app.core.dependencies import ClientInfo
from app.core.exceptions import (
    AccountBlockedError,
    AccountFrozenError,
    CommentCooldownError,
    InvalidReplyTargetError,
    PermissionDeniedError,
)
from app.modules.auth.models import UserRole
from app.modules.comments.models import CommentVote
from app.modules.comments.schemas import CommentCreate
from app.modules.comments.service import CommentService
from tests.fixtures.factories import CommentFactory, PageFactory, ParagraphFactory
from tests.fixtures.helpers import build_profile, scalar_result, scalars_result

CLIENT = ClientInfo(ip_address="10.0.0.7", user_agent="pytest")


def lookup(*entities):
    """``db.get`` side effect returning entities by model and id."""
    index = {(type(e), e.id): e for e in entities}

    async def _get(model, entity_id, **kwargs):
        return index.get((model, entity_id))

    return _get


@pytest.fixture
def notifier():
    with patch("app.modules.comments.service.NotificationService") as notifier_cls:
        notifier_cls.return_value.notify_comment = AsyncMock(return_value=[])
        yield notifier_cls.return_value


class TestCreateChecks:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blocked_is_reported_before_frozen(self, mock_db: AsyncMock) -> None:
        author = build_profile(
            is_blocked=True,
            frozen_until=datetime.now(UTC) + timedelta(hours=1),
        )
        data = CommentCreate(content="Текст", page_id=uuid4())

        with pytest.raises(AccountBlockedError):
            await CommentService(mock_db).create(data, author, CLIENT)

        mock_db.add.assert_not_called()
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_frozen_is_reported_before_cooldown(self, mock_db: AsyncMock) -> None:
        now = datetime.now(UTC)
        author = build_profile(
            frozen_until=now + timedelta(minutes=5),
            last_comment_at=now,
        )
        data = CommentCreate(content="Текст", page_id=uuid4())

        with pytest.raises(AccountFrozenError):
            await CommentService(mock_db).create(data, author, CLIENT)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cooldown_for_viewer(self, mock_db: AsyncMock) -> None:
        author = build_profile(last_comment_at=datetime.now(UTC) - timedelta(seconds=5))
        data = CommentCreate(content="Текст", page_id=uuid4())

        with pytest.raises(CommentCooldownError) as exc_info:
            await CommentService(mock_db).create(data, author, CLIENT)

        assert exc_info.value.status_code == 429
        assert 0 < int(exc_info.value.headers["Retry-After"]) <= settings.comment_cooldown_seconds

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_editor_skips_cooldown(self, mock_db: AsyncMock, notifier) -> None:
        page = PageFactory()
        mock_db.get.side_effect = lookup(page)
        author = build_profile(UserRole.EDITOR, last_comment_at=datetime.now(UTC))
        data = CommentCreate(content="Текст", page_id=page.id)

        with patch.object(CommentService, "_freeze_ip_abusers", AsyncMock(return_value=[])):
            comment = await CommentService(mock_db).create(data, author, CLIENT)

        assert comment.page_id == page.id
        mock_db.commit.assert_awaited_once()


class TestCreate:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_page_comment_notifies_and_records_activity(
        self, mock_db: AsyncMock, notifier
    ) -> None:
        page = PageFactory()
        mock_db.get.side_effect = lookup(page)
        author = build_profile()
        data = CommentCreate(content="Хорошая мысль", page_id=page.id)

        with patch.object(
            CommentService, "_freeze_ip_abusers", AsyncMock(return_value=[])
        ) as freeze:
            comment = await CommentService(mock_db).create(data, author, CLIENT)

        added = mock_db.add.call_args.args[0]
        assert added is comment
        assert comment.user_id == author.id
        assert comment.ip_address == "10.0.0.7"
        assert comment.agree_count == 0
        assert author.last_comment_at is not None
        notifier.notify_comment.assert_awaited_once_with(
            comment, page.id, author, parent_author_id=None
        )
        freeze.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_paragraph_comment_bumps_counter(self, mock_db: AsyncMock, notifier) -> None:
        paragraph = ParagraphFactory()
        mock_db.get.side_effect = lookup(paragraph)
        data = CommentCreate(content="Уточнение", paragraph_id=paragraph.id)

        with patch.object(CommentService, "_freeze_ip_abusers", AsyncMock(return_value=[])):
            await CommentService(mock_db).create(data, build_profile(), CLIENT)

        # one UPDATE for the paragraph counter
        assert mock_db.execute.await_count == 1
        page_id = notifier.notify_comment.await_args.args[1]
        assert page_id == paragraph.page_id

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reply_must_share_target(self, mock_db: AsyncMock, notifier) -> None:
        page = PageFactory()
        parent = CommentFactory(page_id=uuid4())
        mock_db.get.side_effect = lookup(page, parent)
        data = CommentCreate(content="Ответ", page_id=page.id, parent_id=parent.id)

        with pytest.raises(InvalidReplyTargetError):
            await CommentService(mock_db).create(data, build_profile(), CLIENT)

        mock_db.add.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reply_to_deleted_parent_rejected(self, mock_db: AsyncMock, notifier) -> None:
        page = PageFactory()
        parent = CommentFactory(page_id=page.id, deleted_at=datetime.now(UTC))
        mock_db.get.side_effect = lookup(page, parent)
        data = CommentCreate(content="Ответ", page_id=page.id, parent_id=parent.id)

        with pytest.raises(InvalidReplyTargetError):
            await CommentService(mock_db).create(data, build_profile(), CLIENT)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reply_notifies_parent_author(self, mock_db: AsyncMock, notifier) -> None:
        page = PageFactory()
        parent = CommentFactory(page_id=page.id)
        mock_db.get.side_effect = lookup(page, parent)
        data = CommentCreate(content="Ответ", page_id=page.id, parent_id=parent.id)

        with patch.object(CommentService, "_freeze_ip_abusers", AsyncMock(return_value=[])):
            comment = await CommentService(mock_db).create(data, build_profile(), CLIENT)

        assert comment.parent_id == parent.id
        assert notifier.notify_comment.await_args.kwargs["parent_author_id"] == parent.user_id


class TestIpAbuseFreeze:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_freezes_regular_users_past_threshold(self, mock_db: AsyncMock) -> None:
        now = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)
        users = [build_profile() for _ in range(settings.ip_abuse_user_threshold)]
        editor = build_profile(UserRole.EDITOR)
        mock_db.execute.return_value = scalars_result([*users, editor])

        frozen = await CommentService(mock_db)._freeze_ip_abusers("10.0.0.7", now)

        assert frozen == [u.id for u in users]
        expected = now + timedelta(hours=settings.ip_abuse_freeze_hours)
        assert all(u.frozen_until == expected for u in users)
        assert editor.frozen_until is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_below_threshold_freezes_nobody(self, mock_db: AsyncMock) -> None:
        users = [build_profile() for _ in range(settings.ip_abuse_user_threshold - 1)]
        mock_db.execute.return_value = scalars_result(users)

        frozen = await CommentService(mock_db)._freeze_ip_abusers("10.0.0.7", datetime.now(UTC))

        assert frozen == []
        assert all(u.frozen_until is None for u in users)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_ip_is_ignored(self, mock_db: AsyncMock) -> None:
        assert await CommentService(mock_db)._freeze_ip_abusers(None, datetime.now(UTC)) == []
        mock_db.execute.assert_not_awaited()


class TestVote:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_first_vote_adds_row_and_count(self, mock_db: AsyncMock) -> None:
        comment = CommentFactory(agree_count=2, disagree_count=1)
        mock_db.execute.return_value = scalar_result(None)
        user = build_profile()

        with patch.object(CommentService, "_get_by_id", AsyncMock(return_value=comment)):
            result, user_vote = await CommentService(mock_db).vote(comment.id, "agree", user)

        assert result.agree_count == 3
        assert user_vote == "agree"
        assert isinstance(mock_db.add.call_args.args[0], CommentVote)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_same_vote_twice_removes_it(self, mock_db: AsyncMock) -> None:
        comment = CommentFactory(agree_count=1)
        user = build_profile()
        existing = CommentVote(comment_id=comment.id, user_id=user.id, vote_type="agree")
        mock_db.execute.return_value = scalar_result(existing)

        with patch.object(CommentService, "_get_by_id", AsyncMock(return_value=comment)):
            result, user_vote = await CommentService(mock_db).vote(comment.id, "agree", user)

        assert result.agree_count == 0
        assert user_vote is None
        mock_db.delete.assert_awaited_once_with(existing)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_switching_moves_count(self, mock_db: AsyncMock) -> None:
        comment = CommentFactory(agree_count=1, disagree_count=0)
        user = build_profile()
        existing = CommentVote(comment_id=comment.id, user_id=user.id, vote_type="agree")
        mock_db.execute.return_value = scalar_result(existing)

        with patch.object(CommentService, "_get_by_id", AsyncMock(return_value=comment)):
            result, user_vote = await CommentService(mock_db).vote(comment.id, "disagree", user)

        assert (result.agree_count, result.disagree_count) == (0, 1)
        assert existing.vote_type == "disagree"
        assert user_vote == "disagree"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blocked_user_cannot_vote(self, mock_db: AsyncMock) -> None:
        with pytest.raises(AccountBlockedError):
            await CommentService(mock_db).vote(uuid4(), "agree", build_profile(is_blocked=True))


class TestDelete:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, mock_db: AsyncMock) -> None:
        comment = CommentFactory()

        with patch.object(CommentService, "_get_by_id", AsyncMock(return_value=comment)):
            with pytest.raises(PermissionDeniedError):
                await CommentService(mock_db).delete(comment.id, build_profile())

        assert comment.deleted_at is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_admin_delete_of_paragraph_comment_decrements(self, mock_db: AsyncMock) -> None:
        comment = CommentFactory(page_id=None, paragraph_id=uuid4())

        with patch.object(CommentService, "_get_by_id", AsyncMock(return_value=comment)):
            await CommentService(mock_db).delete(comment.id, build_profile(UserRole.ADMIN))

        assert comment.is_deleted
        mock_db.execute.assert_awaited_once()
        mock_db.commit.assert_awaited_once()
