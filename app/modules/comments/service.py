"""Comments module service layer."""

from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.base_service import BaseService
from app.core.database import transactional
from app.core.dependencies import ClientInfo
from app.core.exceptions import InvalidReplyTargetError, NotFoundError, PermissionDeniedError
from app.core.logging import get_logger
from app.core.voting import VoteAction, count_deltas, resolve_vote
from app.modules.auth.models import Profile
from app.modules.auth.policies import (
    ensure_can_contribute,
    ensure_comment_cooldown,
    ensure_not_blocked,
)
from app.modules.comments.models import Comment, CommentVote
from app.modules.comments.schemas import CommentCreate, CommentUpdate
from app.modules.document.models import Page, Paragraph
from app.modules.notifications.service import NotificationService
from app.modules.settings.cache import SettingsCache
from app.modules.settings.models import SettingKey
from app.modules.suggestions.models import ParagraphSuggestion

logger = get_logger(__name__)

COUNT_COLUMNS = {"agree": "agree_count", "disagree": "disagree_count"}


class CommentService(BaseService[Comment]):
    """Threaded comments with voting and anti-abuse checks."""

    model = Comment

    def __init__(self, db: AsyncSession, settings_cache: SettingsCache | None = None) -> None:
        super().__init__(db)
        self.settings_cache = settings_cache

    async def _cooldown_seconds(self) -> int:
        if self.settings_cache is None:
            return settings.comment_cooldown_seconds
        return await self.settings_cache.get_int(
            self.db,
            SettingKey.COMMENT_COOLDOWN_SECONDS,
            default=settings.comment_cooldown_seconds,
        )

    async def _resolve_page_id(self, field: str, target_id: UUID) -> UUID:
        """Check the target exists and return the page it belongs to."""
        if field == "page_id":
            page = await self.db.get(Page, target_id)
            if page is None:
                raise NotFoundError("Page", target_id)
            return page.id

        if field == "paragraph_id":
            paragraph = await self.db.get(Paragraph, target_id)
            if paragraph is None:
                raise NotFoundError("Paragraph", target_id)
            return paragraph.page_id

        result = await self.db.execute(
            select(Paragraph.page_id)
            .join(ParagraphSuggestion, ParagraphSuggestion.paragraph_id == Paragraph.id)
            .where(ParagraphSuggestion.id == target_id)
            .where(ParagraphSuggestion.deleted_at.is_(None))
        )
        page_id = result.scalar_one_or_none()
        if page_id is None:
            raise NotFoundError("ParagraphSuggestion", target_id)
        return page_id

    async def _adjust_paragraph_count(self, paragraph_id: UUID, delta: int) -> None:
        await self.db.execute(
            update(Paragraph)
            .where(Paragraph.id == paragraph_id)
            .values(
                comment_count=func.greatest(Paragraph.comment_count + delta, 0),
                updated_at=Paragraph.updated_at,
            )
        )

    async def _freeze_ip_abusers(self, ip_address: str | None, now: datetime) -> list[UUID]:
        """Freeze every regular user of an IP shared by too many recent commenters."""
        if not ip_address:
            return []

        since = now - timedelta(seconds=settings.ip_abuse_window_seconds)
        result = await self.db.execute(
            select(Profile)
            .where(
                Profile.id.in_(
                    select(Comment.user_id)
                    .where(Comment.ip_address == ip_address)
                    .where(Comment.created_at >= since)
                    .distinct()
                )
            )
        )
        users = [p for p in result.scalars().all() if not p.is_privileged]
        if len(users) < settings.ip_abuse_user_threshold:
            return []

        frozen_until = now + timedelta(hours=settings.ip_abuse_freeze_hours)
        for user in users:
            user.frozen_until = frozen_until

        logger.warning(
            "ip_abuse_freeze",
            ip_address=ip_address,
            user_count=len(users),
            frozen_until=frozen_until.isoformat(),
        )
        return [u.id for u in users]

    # ========================================================================
    # Reads
    # ========================================================================

    async def list_for_target(self, field: str, target_id: UUID) -> list[Comment]:
        """All comments of one target, deleted ones included, oldest first."""
        await self._resolve_page_id(field, target_id)
        result = await self.db.execute(
            select(Comment)
            .where(getattr(Comment, field) == target_id)
            .order_by(Comment.created_at, Comment.id)
        )
        return list(result.scalars().all())

    async def get_thread(self, comment_id: UUID) -> tuple[Comment, list[Comment]]:
        """A comment and every comment on the same target."""
        comment = await self._get_by_id(comment_id, include_deleted=True)
        field, target_id = comment.target
        return comment, await self.list_for_target(field, target_id)

    async def user_votes(self, comment_ids: list[UUID], user_id: UUID | None) -> dict[UUID, str]:
        if user_id is None or not comment_ids:
            return {}
        result = await self.db.execute(
            select(CommentVote.comment_id, CommentVote.vote_type)
            .where(CommentVote.comment_id.in_(comment_ids))
            .where(CommentVote.user_id == user_id)
        )
        return {comment_id: vote_type for comment_id, vote_type in result.all()}

    async def list_comments(
        self,
        page: int = 1,
        page_size: int = 20,
        page_id: UUID | None = None,
    ) -> tuple[list[Comment], int]:
        """Admin listing. The page filter covers the page's paragraph comments too."""
        base_query = select(Comment).where(Comment.deleted_at.is_(None))

        if page_id:
            base_query = base_query.where(
                or_(
                    Comment.page_id == page_id,
                    Comment.paragraph_id.in_(
                        select(Paragraph.id).where(Paragraph.page_id == page_id)
                    ),
                )
            )

        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=[Comment.created_at.desc()],
        )

    # ========================================================================
    # Writes
    # ========================================================================

    @transactional
    async def create(self, data: CommentCreate, author: Profile, client: ClientInfo) -> Comment:
        """Post a comment.

        Checks run in order: blocked, frozen, cooldown. Editors and admins
        skip only the cooldown.
        """
        now = datetime.now(UTC)
        ensure_can_contribute(author, now)
        ensure_comment_cooldown(author, now, await self._cooldown_seconds())

        field, target_id = data.target
        page_id = await self._resolve_page_id(field, target_id)

        parent: Comment | None = None
        if data.parent_id is not None:
            parent = await self.db.get(Comment, data.parent_id)
            if (
                parent is None
                or parent.is_deleted
                or getattr(parent, field) != target_id
            ):
                raise InvalidReplyTargetError(data.parent_id)

        comment = Comment(
            content=data.content,
            user_id=author.id,
            ip_address=client.ip_address,
            parent_id=data.parent_id,
            agree_count=0,
            disagree_count=0,
            **{field: target_id},
        )
        self.db.add(comment)
        author.last_comment_at = now

        if field == "paragraph_id":
            await self._adjust_paragraph_count(target_id, 1)

        await self.db.flush()

        await NotificationService(self.db).notify_comment(
            comment,
            page_id,
            author,
            parent_author_id=parent.user_id if parent else None,
        )
        await self._freeze_ip_abusers(client.ip_address, now)

        await self.db.flush()
        await self.db.refresh(comment)
        logger.info("comment_created", comment_id=str(comment.id), target=field)
        return comment

    @transactional
    async def update(self, comment_id: UUID, data: CommentUpdate, user: Profile) -> Comment:
        comment = await self._get_by_id(comment_id, for_update=True)
        if comment.user_id != user.id:
            raise PermissionDeniedError("Only the author can edit this comment")
        ensure_not_blocked(user)

        comment.content = data.content
        await self.db.flush()
        await self.db.refresh(comment)
        return comment

    @transactional
    async def delete(self, comment_id: UUID, user: Profile) -> None:
        """Soft delete by the author or an admin."""
        comment = await self._get_by_id(comment_id, for_update=True)
        if comment.user_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Only the author or an admin can delete this comment")

        comment.soft_delete()
        if comment.paragraph_id is not None:
            await self._adjust_paragraph_count(comment.paragraph_id, -1)

        await self.db.flush()
        logger.info("comment_deleted", comment_id=str(comment.id), by_admin=comment.user_id != user.id)

    @transactional
    async def vote(
        self, comment_id: UUID, vote_type: str, user: Profile
    ) -> tuple[Comment, str | None]:
        """Toggle the caller's vote and keep the denormalized counts in step.

        Returns the comment and the caller's resulting vote.
        """
        ensure_not_blocked(user)
        comment = await self._get_by_id(comment_id, for_update=True)

        result = await self.db.execute(
            select(CommentVote)
            .where(CommentVote.comment_id == comment_id)
            .where(CommentVote.user_id == user.id)
        )
        existing = result.scalar_one_or_none()
        previous = existing.vote_type if existing else None

        action = resolve_vote(previous, vote_type)
        if action is VoteAction.ADDED:
            self.db.add(CommentVote(comment_id=comment_id, user_id=user.id, vote_type=vote_type))
        elif action is VoteAction.REMOVED:
            await self.db.delete(existing)
        else:
            existing.vote_type = vote_type

        for kind, delta in count_deltas(previous, vote_type, action).items():
            column = COUNT_COLUMNS[kind]
            setattr(comment, column, max(getattr(comment, column) + delta, 0))

        await self.db.flush()
        await self.db.refresh(comment)
        return comment, None if action is VoteAction.REMOVED else vote_type
