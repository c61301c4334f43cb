"""API routes for comments."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.core.dependencies import Client, DBSession
from app.core.exceptions import NotFoundError
from app.core.security import get_current_user, get_optional_user
from app.modules.auth.models import Profile
from app.modules.comments.mappers import build_comment_tree, find_in_tree, map_comment
from app.modules.comments.schemas import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    CommentVoteRequest,
)
from app.modules.comments.service import CommentService
from app.modules.settings.cache import SettingsCacheDep

router = APIRouter()


async def _tree(
    service: CommentService, field: str, target_id: UUID, user: Profile | None
) -> list[CommentResponse]:
    comments = await service.list_for_target(field, target_id)
    votes = await service.user_votes([c.id for c in comments], user.id if user else None)
    return build_comment_tree(comments, votes)


# ============================================================================
# Reads
# ============================================================================


@router.get(
    "/comments/page/{page_id}",
    response_model=list[CommentResponse],
    summary="Comment tree of a page",
    tags=["Comments"],
)
async def list_page_comments(
    page_id: UUID,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> list[CommentResponse]:
    return await _tree(CommentService(db), "page_id", page_id, user)


@router.get(
    "/comments/paragraph/{paragraph_id}",
    response_model=list[CommentResponse],
    summary="Comment tree of a paragraph",
    tags=["Comments"],
)
async def list_paragraph_comments(
    paragraph_id: UUID,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> list[CommentResponse]:
    return await _tree(CommentService(db), "paragraph_id", paragraph_id, user)


@router.get(
    "/comments/suggestion/{suggestion_id}",
    response_model=list[CommentResponse],
    summary="Comment tree of a suggestion",
    tags=["Comments"],
)
async def list_suggestion_comments(
    suggestion_id: UUID,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> list[CommentResponse]:
    return await _tree(CommentService(db), "suggestion_id", suggestion_id, user)


@router.get(
    "/comments/{comment_id}",
    response_model=CommentResponse,
    summary="Get comment with its replies",
    tags=["Comments"],
)
async def get_comment(
    comment_id: UUID,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> CommentResponse:
    service = CommentService(db)
    _, thread = await service.get_thread(comment_id)
    votes = await service.user_votes([c.id for c in thread], user.id if user else None)
    node = find_in_tree(build_comment_tree(thread, votes), comment_id)
    if node is None:
        raise NotFoundError("Comment", comment_id)
    return node


# ============================================================================
# Writes
# ============================================================================


@router.post(
    "/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post comment",
    tags=["Comments"],
)
async def create_comment(
    data: CommentCreate,
    db: DBSession,
    client: Client,
    settings_cache: SettingsCacheDep,
    user: Profile = Depends(get_current_user),
) -> CommentResponse:
    comment = await CommentService(db, settings_cache).create(data, user, client)
    return map_comment(comment)


@router.put(
    "/comments/{comment_id}",
    response_model=CommentResponse,
    summary="Edit comment",
    tags=["Comments"],
)
async def update_comment(
    comment_id: UUID,
    data: CommentUpdate,
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> CommentResponse:
    service = CommentService(db)
    comment = await service.update(comment_id, data, user)
    votes = await service.user_votes([comment.id], user.id)
    return map_comment(comment, votes.get(comment.id))


@router.delete(
    "/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete comment",
    tags=["Comments"],
)
async def delete_comment(
    comment_id: UUID,
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> None:
    await CommentService(db).delete(comment_id, user)


@router.post(
    "/comments/{comment_id}/vote",
    response_model=CommentResponse,
    summary="Agree or disagree with a comment",
    tags=["Comments"],
)
async def vote_comment(
    comment_id: UUID,
    data: CommentVoteRequest,
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> CommentResponse:
    """Voting the same way twice removes the vote."""
    comment, user_vote = await CommentService(db).vote(comment_id, data.vote_type.value, user)
    return map_comment(comment, user_vote)
