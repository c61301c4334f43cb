"""Unit tests for notification fan-out and inbox ownership."""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from app.core.exceptions import NotFoundError
from app.modules.auth.models import UserRole
from app.modules.notifications.models import Notification, NotificationSettings, PageFollow
from app.modules.notifications.service import FollowService, NotificationService, truncate_text
from tests.fixtures.factories import CommentFactory, PageFactory, SuggestionFactory
from tests.fixtures.helpers import build_profile, scalar_result, scalars_result


def added_notifications(mock_db: AsyncMock) -> list[Notification]:
    return [
        call.args[0]
        for call in mock_db.add.call_args_list
        if isinstance(call.args[0], Notification)
    ]


@pytest.mark.unit
def test_truncate_text() -> None:
    assert truncate_text("коротко") == "коротко"
    assert truncate_text("x" * 150) == "x" * 100 + "..."


class TestNotifyComment:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reply_and_followers_without_duplicates(self, mock_db: AsyncMock) -> None:
        author = build_profile(display_name="Алия")
        parent_author_id = uuid4()
        follower_id = uuid4()
        comment = CommentFactory(user_id=author.id, content="Согласна с автором")
        mock_db.execute.side_effect = [
            scalars_result([]),
            scalars_result([parent_author_id, follower_id, author.id]),
            scalars_result([]),
        ]

        created = await NotificationService(mock_db).notify_comment(
            comment, comment.page_id, author, parent_author_id=parent_author_id
        )

        assert [(n.user_id, n.type) for n in created] == [
            (parent_author_id, "comment_reply"),
            (follower_id, "new_comment"),
        ]
        assert created[0].message == "Алия replied: Согласна с автором"
        assert created[0].parameters == {"author": "Алия", "excerpt": "Согласна с автором"}
        assert created[1].title_key == "notifications.new_comment.title"
        assert added_notifications(mock_db) == created

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reply_to_own_comment_is_silent(self, mock_db: AsyncMock) -> None:
        author = build_profile()
        comment = CommentFactory(user_id=author.id)
        mock_db.execute.side_effect = [scalars_result([author.id])]

        created = await NotificationService(mock_db).notify_comment(
            comment, comment.page_id, author, parent_author_id=author.id
        )

        assert created == []
        mock_db.add.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_follower_opt_out_is_honoured(self, mock_db: AsyncMock) -> None:
        author = build_profile()
        muted_id, listening_id = uuid4(), uuid4()
        muted_prefs = NotificationSettings(
            user_id=muted_id, notify_on_followed_page_comment=False
        )
        comment = CommentFactory(user_id=author.id)
        mock_db.execute.side_effect = [
            scalars_result([muted_id, listening_id]),
            scalars_result([muted_prefs]),
        ]

        created = await NotificationService(mock_db).notify_comment(
            comment, comment.page_id, author
        )

        assert [n.user_id for n in created] == [listening_id]


class TestNotifySuggestion:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_status_goes_to_author(self, mock_db: AsyncMock) -> None:
        admin = build_profile(UserRole.ADMIN)
        suggestion = SuggestionFactory()
        mock_db.execute.return_value = scalars_result([])

        created = await NotificationService(mock_db).notify_suggestion_status(
            suggestion, uuid4(), admin, approved=False
        )

        assert len(created) == 1
        assert created[0].user_id == suggestion.user_id
        assert created[0].type == "suggestion_rejected"
        assert created[0].related_user_id == admin.id

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_self_moderation_is_silent(self, mock_db: AsyncMock) -> None:
        admin = build_profile(UserRole.ADMIN)
        suggestion = SuggestionFactory(user_id=admin.id)

        created = await NotificationService(mock_db).notify_suggestion_status(
            suggestion, uuid4(), admin, approved=True
        )

        assert created == []
        mock_db.execute.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_new_suggestion_skips_author(self, mock_db: AsyncMock) -> None:
        author = build_profile()
        follower_id = uuid4()
        suggestion = SuggestionFactory(user_id=author.id)
        mock_db.execute.side_effect = [
            scalars_result([author.id, follower_id]),
            scalars_result([]),
        ]

        created = await NotificationService(mock_db).notify_new_suggestion(
            suggestion, uuid4(), author
        )

        assert [(n.user_id, n.type) for n in created] == [(follower_id, "new_suggestion")]
        assert created[0].suggestion_id == suggestion.id


class TestInbox:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_mark_read_of_foreign_notification_is_not_found(
        self, mock_db: AsyncMock
    ) -> None:
        notification = Notification(id=uuid4(), user_id=uuid4(), is_read=False)

        with patch.object(
            NotificationService, "_get_by_id", AsyncMock(return_value=notification)
        ):
            with pytest.raises(NotFoundError):
                await NotificationService(mock_db).mark_read(uuid4(), notification.id)

        assert notification.is_read is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_mark_read_sets_timestamp(self, mock_db: AsyncMock) -> None:
        owner_id = uuid4()
        notification = Notification(id=uuid4(), user_id=owner_id, is_read=False)

        with patch.object(
            NotificationService, "_get_by_id", AsyncMock(return_value=notification)
        ):
            result = await NotificationService(mock_db).mark_read(owner_id, notification.id)

        assert result.is_read is True
        assert result.read_at is not None


class TestFollow:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_follow_unknown_page(self, mock_db: AsyncMock) -> None:
        mock_db.get.return_value = None

        with pytest.raises(NotFoundError):
            await FollowService(mock_db).follow(uuid4(), uuid4())

        mock_db.execute.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_follow_returns_existing_row(self, mock_db: AsyncMock) -> None:
        page = PageFactory()
        user_id = uuid4()
        follow = PageFollow(user_id=user_id, page_id=page.id)
        mock_db.get.return_value = page
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(follow)]

        result = await FollowService(mock_db).follow(user_id, page.id)

        assert result is follow
        mock_db.commit.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unfollow_without_follow(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(NotFoundError):
            await FollowService(mock_db).unfollow(uuid4(), uuid4())
