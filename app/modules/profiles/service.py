"""Public profile reads, activity stats and owner updates."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import aliased

from app.core.base_service import BaseService
from app.core.database import transactional
from app.modules.auth.models import Profile
from app.modules.comments.models import Comment
from app.modules.document.models import Page, Paragraph
from app.modules.profiles.schemas import ProfileUpdate
from app.modules.suggestions.models import ParagraphSuggestion

RECENT_COMMENTS_LIMIT = 10
RECENT_DISCUSSIONS_LIMIT = 5
NON_NULLABLE_FIELDS = frozenset({"show_email", "email_notifications"})


class ProfileService(BaseService[Profile]):
    """Service for public profiles."""

    model = Profile

    async def get_profile(self, profile_id: UUID) -> Profile:
        return await self._get_by_id(profile_id)

    async def comment_totals(self, profile_id: UUID) -> tuple[int, int]:
        """Number of live comments and the sum of agree votes they received."""
        result = await self.db.execute(
            select(func.count(Comment.id), func.coalesce(func.sum(Comment.agree_count), 0))
            .where(Comment.user_id == profile_id)
            .where(Comment.deleted_at.is_(None))
        )
        total_comments, total_votes = result.one()
        return int(total_comments or 0), int(total_votes or 0)

    async def recent_comments(self, profile_id: UUID) -> list[Comment]:
        result = await self.db.execute(
            select(Comment)
            .where(Comment.user_id == profile_id)
            .where(Comment.deleted_at.is_(None))
            .order_by(Comment.created_at.desc())
            .limit(RECENT_COMMENTS_LIMIT)
        )
        return list(result.scalars().all())

    async def most_popular_comment(self, profile_id: UUID) -> Comment | None:
        score = Comment.agree_count - Comment.disagree_count
        result = await self.db.execute(
            select(Comment)
            .where(Comment.user_id == profile_id)
            .where(Comment.deleted_at.is_(None))
            .where(score > 0)
            .order_by(score.desc(), Comment.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def recent_discussions(self, profile_id: UUID) -> list[tuple[Page, datetime]]:
        """Pages the profile commented on, most recent activity first.

        Paragraph and suggestion comments count towards their page.
        """
        suggestion_paragraph = aliased(Paragraph)
        page_id = func.coalesce(
            Comment.page_id, Paragraph.page_id, suggestion_paragraph.page_id
        ).label("page_id")
        last_at = func.max(Comment.created_at).label("last_at")

        activity = (
            select(page_id, last_at)
            .select_from(Comment)
            .outerjoin(Paragraph, Paragraph.id == Comment.paragraph_id)
            .outerjoin(ParagraphSuggestion, ParagraphSuggestion.id == Comment.suggestion_id)
            .outerjoin(
                suggestion_paragraph,
                suggestion_paragraph.id == ParagraphSuggestion.paragraph_id,
            )
            .where(Comment.user_id == profile_id)
            .where(Comment.deleted_at.is_(None))
            .group_by(page_id)
            .subquery()
        )

        result = await self.db.execute(
            select(Page, activity.c.last_at)
            .join(activity, activity.c.page_id == Page.id)
            .where(Page.is_draft.is_(False))
            .order_by(activity.c.last_at.desc())
            .limit(RECENT_DISCUSSIONS_LIMIT)
        )
        return [(row[0], row[1]) for row in result.all()]

    @transactional
    async def update_profile(self, profile: Profile, data: ProfileUpdate) -> Profile:
        for field, value in data.model_dump(exclude_unset=True).items():
            # Text fields may be cleared with null, flags may not
            if value is None and field in NON_NULLABLE_FIELDS:
                continue
            setattr(profile, field, value)

        await self.db.flush()
        await self.db.refresh(profile)
        return profile
