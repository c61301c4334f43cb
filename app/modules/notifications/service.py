"""Notification fan-out, inbox and page follow services."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Iterable
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert

from app.core.base_service import BaseService
from app.core.database import transactional
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.modules.auth.models import Profile
from app.modules.document.models import Page
from app.modules.notifications.models import (
    Notification,
    NotificationSettings,
    NotificationType,
    PageFollow,
)
from app.modules.notifications.schemas import NotificationSettingsUpdate

if TYPE_CHECKING:
    from app.modules.comments.models import Comment
    from app.modules.suggestions.models import ParagraphSuggestion

logger = get_logger(__name__)

EXCERPT_LENGTH = 100


def truncate_text(text: str, limit: int = EXCERPT_LENGTH) -> str:
    """Shorten text for notification messages."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def display_name_of(profile: Profile) -> str:
    return profile.display_name or profile.username


class NotificationService(BaseService[Notification]):
    """Inbox operations and event fan-out.

    The ``notify_*`` methods only add rows to the session. They are called
    from inside other services' transactions so notifications commit or
    roll back together with the triggering change.
    """

    model = Notification

    # ========================================================================
    # Fan-out
    # ========================================================================

    async def _follower_ids(self, page_id: UUID) -> list[UUID]:
        result = await self.db.execute(
            select(PageFollow.user_id).where(PageFollow.page_id == page_id)
        )
        return list(result.scalars().all())

    async def _preferences(self, user_ids: set[UUID]) -> dict[UUID, NotificationSettings]:
        if not user_ids:
            return {}
        result = await self.db.execute(
            select(NotificationSettings).where(NotificationSettings.user_id.in_(user_ids))
        )
        return {s.user_id: s for s in result.scalars().all()}

    async def _fan_out(
        self,
        recipients: Iterable[UUID],
        notification_type: NotificationType,
        *,
        title: str,
        message: str,
        parameters: dict[str, Any],
        page_id: UUID | None = None,
        comment_id: UUID | None = None,
        suggestion_id: UUID | None = None,
        related_user_id: UUID | None = None,
    ) -> list[Notification]:
        unique_recipients = list(dict.fromkeys(recipients))
        preferences = await self._preferences(set(unique_recipients))

        created: list[Notification] = []
        for user_id in unique_recipients:
            prefs = preferences.get(user_id)
            if prefs is not None and not prefs.allows(notification_type.value):
                continue

            notification = Notification(
                user_id=user_id,
                type=notification_type.value,
                title=title,
                message=message,
                title_key=f"notifications.{notification_type.value}.title",
                message_key=f"notifications.{notification_type.value}.message",
                parameters=parameters,
                page_id=page_id,
                comment_id=comment_id,
                suggestion_id=suggestion_id,
                related_user_id=related_user_id,
                is_read=False,
                email_sent=False,
            )
            self.db.add(notification)
            created.append(notification)

        if created:
            logger.info(
                "notifications_created",
                type=notification_type.value,
                count=len(created),
            )
        return created

    async def notify_comment(
        self,
        comment: "Comment",
        page_id: UUID | None,
        author: Profile,
        parent_author_id: UUID | None = None,
    ) -> list[Notification]:
        """Reply notification for the parent author, then page followers."""
        excerpt = truncate_text(comment.content)
        author_name = display_name_of(author)
        parameters = {"author": author_name, "excerpt": excerpt}
        created: list[Notification] = []

        notified = {author.id}
        if parent_author_id is not None and parent_author_id != author.id:
            created += await self._fan_out(
                [parent_author_id],
                NotificationType.COMMENT_REPLY,
                title="New reply to your comment",
                message=f"{author_name} replied: {excerpt}",
                parameters=parameters,
                page_id=page_id,
                comment_id=comment.id,
                related_user_id=author.id,
            )
            notified.add(parent_author_id)

        if page_id is not None:
            followers = [uid for uid in await self._follower_ids(page_id) if uid not in notified]
            created += await self._fan_out(
                followers,
                NotificationType.NEW_COMMENT,
                title="New comment on a page you follow",
                message=f"{author_name}: {excerpt}",
                parameters=parameters,
                page_id=page_id,
                comment_id=comment.id,
                related_user_id=author.id,
            )
        return created

    async def notify_new_suggestion(
        self,
        suggestion: "ParagraphSuggestion",
        page_id: UUID,
        author: Profile,
    ) -> list[Notification]:
        author_name = display_name_of(author)
        excerpt = truncate_text(suggestion.suggested_content)
        followers = [uid for uid in await self._follower_ids(page_id) if uid != author.id]
        return await self._fan_out(
            followers,
            NotificationType.NEW_SUGGESTION,
            title="New edit suggestion on a page you follow",
            message=f"{author_name} suggested: {excerpt}",
            parameters={"author": author_name, "excerpt": excerpt},
            page_id=page_id,
            suggestion_id=suggestion.id,
            related_user_id=author.id,
        )

    async def notify_suggestion_status(
        self,
        suggestion: "ParagraphSuggestion",
        page_id: UUID,
        moderator: Profile,
        approved: bool,
    ) -> list[Notification]:
        if suggestion.user_id == moderator.id:
            return []

        notification_type = (
            NotificationType.SUGGESTION_APPROVED if approved else NotificationType.SUGGESTION_REJECTED
        )
        verdict = "approved" if approved else "rejected"
        excerpt = truncate_text(suggestion.suggested_content)
        return await self._fan_out(
            [suggestion.user_id],
            notification_type,
            title=f"Your suggestion was {verdict}",
            message=excerpt,
            parameters={"moderator": display_name_of(moderator), "excerpt": excerpt},
            page_id=page_id,
            suggestion_id=suggestion.id,
            related_user_id=moderator.id,
        )

    async def notify_page_updated(self, page: Page, editor: Profile) -> list[Notification]:
        followers = [uid for uid in await self._follower_ids(page.id) if uid != editor.id]
        editor_name = display_name_of(editor)
        return await self._fan_out(
            followers,
            NotificationType.PAGE_UPDATE,
            title="A page you follow was updated",
            message=f"{editor_name} updated \"{truncate_text(page.title)}\"",
            parameters={"editor": editor_name, "page_title": page.title, "page_slug": page.slug},
            page_id=page.id,
            related_user_id=editor.id,
        )

    # ========================================================================
    # Inbox
    # ========================================================================

    async def list_notifications(
        self,
        user_id: UUID,
        page: int = 1,
        page_size: int = 20,
        unread_only: bool = False,
        notification_type: str | None = None,
    ) -> tuple[list[Notification], int]:
        base_query = select(Notification).where(Notification.user_id == user_id)

        if unread_only:
            base_query = base_query.where(Notification.is_read.is_(False))

        if notification_type:
            base_query = base_query.where(Notification.type == notification_type)

        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=[Notification.created_at.desc()],
        )

    async def unread_count(self, user_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id)
            .where(Notification.is_read.is_(False))
        )
        return (await self.db.execute(stmt)).scalar() or 0

    async def _get_owned(self, user_id: UUID, notification_id: UUID) -> Notification:
        notification = await self._get_by_id(notification_id)
        if notification.user_id != user_id:
            # Do not reveal other users' notifications
            raise NotFoundError("Notification", notification_id)
        return notification

    @transactional
    async def mark_read(self, user_id: UUID, notification_id: UUID) -> Notification:
        notification = await self._get_owned(user_id, notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(UTC)
        await self.db.flush()
        return notification

    @transactional
    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id)
            .where(Notification.is_read.is_(False))
            .values(is_read=True, read_at=datetime.now(UTC))
        )
        return result.rowcount or 0

    @transactional
    async def delete(self, user_id: UUID, notification_id: UUID) -> None:
        notification = await self._get_owned(user_id, notification_id)
        await self.db.delete(notification)

    @transactional
    async def clear_read(self, user_id: UUID) -> int:
        result = await self.db.execute(
            delete(Notification)
            .where(Notification.user_id == user_id)
            .where(Notification.is_read.is_(True))
        )
        return result.rowcount or 0

    # ========================================================================
    # Preferences
    # ========================================================================

    async def _get_or_create_settings(self, user_id: UUID) -> NotificationSettings:
        result = await self.db.execute(
            select(NotificationSettings).where(NotificationSettings.user_id == user_id)
        )
        prefs = result.scalar_one_or_none()
        if prefs is None:
            prefs = NotificationSettings(user_id=user_id)
            self.db.add(prefs)
            await self.db.flush()
            await self.db.refresh(prefs)
        return prefs

    @transactional
    async def get_settings(self, user_id: UUID) -> NotificationSettings:
        return await self._get_or_create_settings(user_id)

    @transactional
    async def update_settings(
        self, user_id: UUID, data: NotificationSettingsUpdate
    ) -> NotificationSettings:
        prefs = await self._get_or_create_settings(user_id)

        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            if hasattr(value, "value"):
                value = value.value
            setattr(prefs, field, value)

        await self.db.flush()
        await self.db.refresh(prefs)
        return prefs


class FollowService(BaseService[PageFollow]):
    """Page follow subscriptions."""

    model = PageFollow

    async def _ensure_page(self, page_id: UUID) -> Page:
        page = await self.db.get(Page, page_id)
        if page is None:
            raise NotFoundError("Page", page_id)
        return page

    async def _get_follow(self, user_id: UUID, page_id: UUID) -> PageFollow | None:
        result = await self.db.execute(
            select(PageFollow)
            .where(PageFollow.user_id == user_id)
            .where(PageFollow.page_id == page_id)
        )
        return result.scalar_one_or_none()

    @transactional
    async def follow(self, user_id: UUID, page_id: UUID) -> PageFollow:
        """Follow a page. Following twice returns the existing follow."""
        await self._ensure_page(page_id)

        await self.db.execute(
            insert(PageFollow)
            .values(user_id=user_id, page_id=page_id)
            .on_conflict_do_nothing(index_elements=["user_id", "page_id"])
        )
        follow = await self._get_follow(user_id, page_id)
        logger.info("page_followed", page_id=str(page_id))
        return follow

    @transactional
    async def unfollow(self, user_id: UUID, page_id: UUID) -> None:
        follow = await self._get_follow(user_id, page_id)
        if follow is None:
            raise NotFoundError("PageFollow", page_id)
        await self.db.delete(follow)

    async def get_status(self, user_id: UUID, page_id: UUID) -> PageFollow | None:
        return await self._get_follow(user_id, page_id)

    async def followed_pages(self, user_id: UUID) -> list[tuple[PageFollow, Page]]:
        result = await self.db.execute(
            select(PageFollow, Page)
            .join(Page, Page.id == PageFollow.page_id)
            .where(PageFollow.user_id == user_id)
            .order_by(PageFollow.followed_at.desc())
        )
        return [(row[0], row[1]) for row in result.all()]

    async def follower_count(self, page_id: UUID) -> int:
        await self._ensure_page(page_id)
        stmt = select(func.count()).select_from(PageFollow).where(PageFollow.page_id == page_id)
        return (await self.db.execute(stmt)).scalar() or 0

    async def followers(self, page_id: UUID) -> list[tuple[PageFollow, Profile]]:
        await self._ensure_page(page_id)
        result = await self.db.execute(
            select(PageFollow, Profile)
            .join(Profile, Profile.id == PageFollow.user_id)
            .where(PageFollow.page_id == page_id)
            .order_by(PageFollow.followed_at.desc())
        )
        return [(row[0], row[1]) for row in result.all()]
