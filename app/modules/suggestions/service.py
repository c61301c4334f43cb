"""Suggestions module service layer."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.base_service import BaseService
from app.core.database import transactional
from app.core.dependencies import ClientInfo
from app.core.exceptions import (
    InvalidStateTransitionError,
    NotFoundError,
    PermissionDeniedError,
    SuggestionOutdatedError,
)
from app.core.logging import get_logger
from app.core.voting import VoteAction, resolve_vote
from app.modules.auth.models import Profile
from app.modules.auth.policies import ensure_can_contribute, ensure_not_blocked
from app.modules.document.cache import DocumentCache
from app.modules.document.models import Paragraph
from app.modules.document.versioning import archive_paragraph
from app.modules.notifications.service import NotificationService
from app.modules.suggestions.models import (
    ParagraphSuggestion,
    SuggestionStatus,
    SuggestionVote,
)
from app.modules.suggestions.schemas import (
    SuggestionCreate,
    SuggestionUpdate,
    VoteSummary,
)

logger = get_logger(__name__)


class SuggestionService(BaseService[ParagraphSuggestion]):
    """Suggestion workflow: create, edit, vote, moderate, soft delete.

    Approval and rejection are the only status changes, both from
    ``pending``. Soft delete is independent of status.
    """

    model = ParagraphSuggestion

    def __init__(self, db: AsyncSession, cache: DocumentCache | None = None) -> None:
        super().__init__(db)
        self.cache = cache or DocumentCache(None)

    async def _get_paragraph(self, paragraph_id: UUID, *, for_update: bool = False) -> Paragraph:
        stmt = select(Paragraph).where(Paragraph.id == paragraph_id)
        if for_update:
            stmt = stmt.with_for_update()
        paragraph = (await self.db.execute(stmt)).scalar_one_or_none()
        if paragraph is None:
            raise NotFoundError("Paragraph", paragraph_id)
        return paragraph

    # ========================================================================
    # Reads
    # ========================================================================

    async def get_suggestion(self, suggestion_id: UUID) -> ParagraphSuggestion:
        return await self._get_by_id(suggestion_id)

    async def list_by_paragraph(self, paragraph_id: UUID) -> list[ParagraphSuggestion]:
        await self._get_paragraph(paragraph_id)
        result = await self.db.execute(
            select(ParagraphSuggestion)
            .where(ParagraphSuggestion.paragraph_id == paragraph_id)
            .where(ParagraphSuggestion.deleted_at.is_(None))
            .order_by(ParagraphSuggestion.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_pending(
        self, page: int = 1, page_size: int = 20
    ) -> tuple[list[ParagraphSuggestion], int]:
        """Moderation queue, oldest first."""
        base_query = (
            select(ParagraphSuggestion)
            .where(ParagraphSuggestion.status == SuggestionStatus.PENDING.value)
            .where(ParagraphSuggestion.deleted_at.is_(None))
        )
        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=[ParagraphSuggestion.created_at.asc()],
        )

    async def vote_summaries(
        self,
        suggestion_ids: list[UUID],
        user_id: UUID | None = None,
    ) -> dict[UUID, VoteSummary]:
        """Vote totals per suggestion plus the caller's own vote."""
        if not suggestion_ids:
            return {}

        summaries = {sid: VoteSummary() for sid in suggestion_ids}

        totals = await self.db.execute(
            select(SuggestionVote.suggestion_id, SuggestionVote.vote_type, func.count())
            .where(SuggestionVote.suggestion_id.in_(suggestion_ids))
            .group_by(SuggestionVote.suggestion_id, SuggestionVote.vote_type)
        )
        for suggestion_id, vote_type, count in totals.all():
            summary = summaries[suggestion_id]
            if vote_type == "upvote":
                summary.upvotes = count
            else:
                summary.downvotes = count

        if user_id is not None:
            own = await self.db.execute(
                select(SuggestionVote.suggestion_id, SuggestionVote.vote_type)
                .where(SuggestionVote.suggestion_id.in_(suggestion_ids))
                .where(SuggestionVote.user_id == user_id)
            )
            for suggestion_id, vote_type in own.all():
                summaries[suggestion_id].user_vote = vote_type

        return summaries

    # ========================================================================
    # Author actions
    # ========================================================================

    @transactional
    async def create(
        self,
        data: SuggestionCreate,
        author: Profile,
        client: ClientInfo,
    ) -> ParagraphSuggestion:
        ensure_can_contribute(author, datetime.now(UTC))
        paragraph = await self._get_paragraph(data.paragraph_id)

        suggestion = ParagraphSuggestion(
            paragraph_id=paragraph.id,
            user_id=author.id,
            suggested_content=data.suggested_content,
            comment=data.comment,
            status=SuggestionStatus.PENDING.value,
            base_paragraph_version=paragraph.version,
            created_ip_address=client.ip_address,
            created_user_agent=client.user_agent,
        )
        self.db.add(suggestion)
        await self.db.flush()

        await NotificationService(self.db).notify_new_suggestion(
            suggestion, paragraph.page_id, author
        )

        await self.db.flush()
        await self.db.refresh(suggestion)
        logger.info(
            "suggestion_created",
            suggestion_id=str(suggestion.id),
            paragraph_id=str(paragraph.id),
        )
        return suggestion

    @transactional
    async def update(
        self,
        suggestion_id: UUID,
        data: SuggestionUpdate,
        user: Profile,
        client: ClientInfo,
    ) -> ParagraphSuggestion:
        suggestion = await self._get_by_id(suggestion_id, for_update=True)

        if suggestion.user_id != user.id:
            raise PermissionDeniedError("Only the author can edit this suggestion")
        suggestion.ensure_pending("update")
        ensure_can_contribute(user, datetime.now(UTC))

        paragraph = await self._get_paragraph(suggestion.paragraph_id)

        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(suggestion, field, value)
        suggestion.base_paragraph_version = paragraph.version
        suggestion.updated_ip_address = client.ip_address
        suggestion.updated_user_agent = client.user_agent

        await self.db.flush()
        await self.db.refresh(suggestion)
        return suggestion

    @transactional
    async def vote(self, suggestion_id: UUID, vote_type: str, user: Profile) -> VoteAction:
        """Toggle the caller's vote. Same type twice removes it."""
        ensure_not_blocked(user)
        await self._get_by_id(suggestion_id)

        result = await self.db.execute(
            select(SuggestionVote)
            .where(SuggestionVote.suggestion_id == suggestion_id)
            .where(SuggestionVote.user_id == user.id)
            .with_for_update()
        )
        existing = result.scalar_one_or_none()

        action = resolve_vote(existing.vote_type if existing else None, vote_type)
        if action is VoteAction.ADDED:
            self.db.add(
                SuggestionVote(suggestion_id=suggestion_id, user_id=user.id, vote_type=vote_type)
            )
        elif action is VoteAction.REMOVED:
            await self.db.delete(existing)
        else:
            existing.vote_type = vote_type

        await self.db.flush()
        return action

    @transactional
    async def delete(self, suggestion_id: UUID, user: Profile) -> None:
        """Soft delete. Authors may delete while pending; admins any time."""
        suggestion = await self._get_by_id(suggestion_id, for_update=True)

        if not user.is_admin:
            if suggestion.user_id != user.id:
                raise PermissionDeniedError("Only the author or an admin can delete this suggestion")
            if not suggestion.is_pending:
                raise InvalidStateTransitionError("ParagraphSuggestion", suggestion.status, "delete")

        suggestion.mark_deleted(user.id)
        await self.db.flush()
        logger.info("suggestion_deleted", suggestion_id=str(suggestion.id))

    # ========================================================================
    # Moderation
    # ========================================================================

    @transactional
    async def _approve(
        self, suggestion_id: UUID, admin: Profile, force: bool
    ) -> ParagraphSuggestion:
        suggestion = await self._get_by_id(suggestion_id, for_update=True)
        suggestion.ensure_pending("approve")

        paragraph = await self._get_paragraph(suggestion.paragraph_id, for_update=True)
        if not force and paragraph.version != suggestion.base_paragraph_version:
            raise SuggestionOutdatedError(suggestion.base_paragraph_version, paragraph.version)

        await archive_paragraph(
            self.db,
            paragraph,
            admin.id,
            change_description="Approved suggestion",
            suggestion_id=suggestion.id,
        )

        paragraph.content = suggestion.suggested_content
        paragraph.version += 1
        paragraph.updated_by_profile_id = admin.id

        suggestion.approve(admin.id)

        await NotificationService(self.db).notify_suggestion_status(
            suggestion, paragraph.page_id, admin, approved=True
        )

        await self.db.flush()
        await self.db.refresh(suggestion)
        logger.info(
            "suggestion_approved",
            suggestion_id=str(suggestion.id),
            paragraph_id=str(paragraph.id),
            forced=force,
        )
        return suggestion

    async def approve(
        self, suggestion_id: UUID, admin: Profile, force: bool = False
    ) -> ParagraphSuggestion:
        """Apply the suggested content to its paragraph.

        The paragraph's previous state is archived first. Fails with
        SuggestionOutdatedError if the paragraph changed since the
        suggestion was written, unless ``force`` is set.
        """
        suggestion = await self._approve(suggestion_id, admin, force)
        paragraph = await self.db.get(Paragraph, suggestion.paragraph_id)
        if paragraph is not None:
            await self.cache.invalidate_paragraphs(paragraph.page_id)
        return suggestion

    @transactional
    async def reject(self, suggestion_id: UUID, admin: Profile) -> ParagraphSuggestion:
        suggestion = await self._get_by_id(suggestion_id, for_update=True)
        suggestion.reject(admin.id)

        paragraph = await self._get_paragraph(suggestion.paragraph_id)
        await NotificationService(self.db).notify_suggestion_status(
            suggestion, paragraph.page_id, admin, approved=False
        )

        await self.db.flush()
        await self.db.refresh(suggestion)
        logger.info("suggestion_rejected", suggestion_id=str(suggestion.id))
        return suggestion
