"""API routes for paragraph suggestions."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.dependencies import Client, DBSession, Pagination
from app.core.security import get_current_user, get_optional_user, require_admin
from app.modules.auth.models import Profile
from app.modules.document.cache import DocumentCacheDep
from app.modules.suggestions.mappers import map_suggestion, map_suggestions
from app.modules.suggestions.schemas import (
    SuggestionCreate,
    SuggestionListResponse,
    SuggestionResponse,
    SuggestionUpdate,
    SuggestionVoteRequest,
)
from app.modules.suggestions.service import SuggestionService

router = APIRouter()


async def _respond(
    service: SuggestionService, suggestion_id: UUID, user: Profile | None
) -> SuggestionResponse:
    suggestion = await service.get_suggestion(suggestion_id)
    votes = await service.vote_summaries([suggestion.id], user.id if user else None)
    return map_suggestion(suggestion, votes.get(suggestion.id))


# ============================================================================
# Public Routes
# ============================================================================


@router.get(
    "/paragraphsuggestions/paragraph/{paragraph_id}",
    response_model=list[SuggestionResponse],
    summary="List suggestions for a paragraph",
    tags=["Suggestions"],
)
async def list_for_paragraph(
    paragraph_id: UUID,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> list[SuggestionResponse]:
    service = SuggestionService(db)
    suggestions = await service.list_by_paragraph(paragraph_id)
    votes = await service.vote_summaries([s.id for s in suggestions], user.id if user else None)
    return map_suggestions(suggestions, votes)


@router.get(
    "/paragraphsuggestions/{suggestion_id}",
    response_model=SuggestionResponse,
    summary="Get suggestion",
    tags=["Suggestions"],
)
async def get_suggestion(
    suggestion_id: UUID,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> SuggestionResponse:
    return await _respond(SuggestionService(db), suggestion_id, user)


# ============================================================================
# Author Routes
# ============================================================================


@router.post(
    "/paragraphsuggestions",
    response_model=SuggestionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Suggest new paragraph content",
    tags=["Suggestions"],
)
async def create_suggestion(
    data: SuggestionCreate,
    db: DBSession,
    client: Client,
    user: Profile = Depends(get_current_user),
) -> SuggestionResponse:
    suggestion = await SuggestionService(db).create(data, user, client)
    return map_suggestion(suggestion)


@router.put(
    "/paragraphsuggestions/{suggestion_id}",
    response_model=SuggestionResponse,
    summary="Edit a pending suggestion",
    tags=["Suggestions"],
)
async def update_suggestion(
    suggestion_id: UUID,
    data: SuggestionUpdate,
    db: DBSession,
    client: Client,
    user: Profile = Depends(get_current_user),
) -> SuggestionResponse:
    service = SuggestionService(db)
    await service.update(suggestion_id, data, user, client)
    return await _respond(service, suggestion_id, user)


@router.post(
    "/paragraphsuggestions/{suggestion_id}/vote",
    response_model=SuggestionResponse,
    summary="Vote on a suggestion",
    tags=["Suggestions"],
)
async def vote_suggestion(
    suggestion_id: UUID,
    data: SuggestionVoteRequest,
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> SuggestionResponse:
    """Voting the same way twice removes the vote."""
    service = SuggestionService(db)
    await service.vote(suggestion_id, data.vote_type.value, user)
    return await _respond(service, suggestion_id, user)


@router.delete(
    "/paragraphsuggestions/{suggestion_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete suggestion",
    tags=["Suggestions"],
)
async def delete_suggestion(
    suggestion_id: UUID,
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> None:
    await SuggestionService(db).delete(suggestion_id, user)


# ============================================================================
# Moderation Routes
# ============================================================================


@router.post(
    "/paragraphsuggestions/{suggestion_id}/approve",
    response_model=SuggestionResponse,
    summary="Approve suggestion and apply it",
    tags=["Suggestions - Moderation"],
)
async def approve_suggestion(
    suggestion_id: UUID,
    db: DBSession,
    cache: DocumentCacheDep,
    force: bool = Query(default=False, description="Apply even if the paragraph changed since"),
    admin: Profile = Depends(require_admin),
) -> SuggestionResponse:
    service = SuggestionService(db, cache)
    await service.approve(suggestion_id, admin, force=force)
    return await _respond(service, suggestion_id, admin)


@router.post(
    "/paragraphsuggestions/{suggestion_id}/reject",
    response_model=SuggestionResponse,
    summary="Reject suggestion",
    tags=["Suggestions - Moderation"],
)
async def reject_suggestion(
    suggestion_id: UUID,
    db: DBSession,
    admin: Profile = Depends(require_admin),
) -> SuggestionResponse:
    service = SuggestionService(db)
    await service.reject(suggestion_id, admin)
    return await _respond(service, suggestion_id, admin)


@router.get(
    "/admin/suggestions/pending",
    response_model=SuggestionListResponse,
    summary="Moderation queue",
    tags=["Suggestions - Moderation"],
    dependencies=[Depends(require_admin)],
)
async def list_pending(pagination: Pagination, db: DBSession) -> SuggestionListResponse:
    service = SuggestionService(db)
    suggestions, total = await service.list_pending(pagination.page, pagination.page_size)
    votes = await service.vote_summaries([s.id for s in suggestions])
    return SuggestionListResponse(
        items=map_suggestions(suggestions, votes),
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )
