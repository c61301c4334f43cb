"""API routes for public profiles."""

from uuid import UUID

from fastapi import APIRouter, Depends

from app.core.dependencies import DBSession
from app.core.security import get_current_user, get_optional_user
from app.modules.auth.models import Profile
from app.modules.comments.models import Comment
from app.modules.profiles.schemas import (
    DiscussionItem,
    ProfileCommentItem,
    ProfileStatsResponse,
    ProfileUpdate,
    PublicProfileResponse,
)
from app.modules.profiles.service import ProfileService

router = APIRouter()


def _comment_item(comment: Comment) -> ProfileCommentItem:
    return ProfileCommentItem(
        id=comment.id,
        content=comment.content,
        score=comment.score,
        page_id=comment.page_id,
        paragraph_id=comment.paragraph_id,
        suggestion_id=comment.suggestion_id,
        created_at=comment.created_at,
    )


async def _public_view(
    service: ProfileService, profile: Profile, viewer: Profile | None
) -> PublicProfileResponse:
    total_comments, total_votes = await service.comment_totals(profile.id)
    is_owner = viewer is not None and viewer.id == profile.id
    return PublicProfileResponse(
        id=profile.id,
        username=profile.username,
        display_name=profile.display_name,
        bio=profile.bio,
        avatar_url=profile.avatar_url,
        email=profile.email if is_owner or profile.show_email else None,
        roles=profile.role_names,
        created_at=profile.created_at,
        last_seen_at=profile.last_seen_at,
        total_comments=total_comments,
        total_votes_received=total_votes,
    )


@router.put(
    "/profile",
    response_model=PublicProfileResponse,
    summary="Update my profile",
    tags=["Profiles"],
)
async def update_my_profile(
    data: ProfileUpdate,
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> PublicProfileResponse:
    service = ProfileService(db)
    profile = await service.update_profile(user, data)
    return await _public_view(service, profile, user)


@router.get(
    "/profile/{profile_id}",
    response_model=PublicProfileResponse,
    summary="Get profile",
    tags=["Profiles"],
)
async def get_profile(
    profile_id: UUID,
    db: DBSession,
    viewer: Profile | None = Depends(get_optional_user),
) -> PublicProfileResponse:
    service = ProfileService(db)
    profile = await service.get_profile(profile_id)
    return await _public_view(service, profile, viewer)


@router.get(
    "/profile/{profile_id}/stats",
    response_model=ProfileStatsResponse,
    summary="Profile activity",
    tags=["Profiles"],
)
async def get_profile_stats(profile_id: UUID, db: DBSession) -> ProfileStatsResponse:
    service = ProfileService(db)
    await service.get_profile(profile_id)

    popular = await service.most_popular_comment(profile_id)
    discussions = await service.recent_discussions(profile_id)
    return ProfileStatsResponse(
        recent_comments=[_comment_item(c) for c in await service.recent_comments(profile_id)],
        most_popular_comment=_comment_item(popular) if popular else None,
        recent_discussions=[
            DiscussionItem(
                page_id=page.id,
                title=page.title,
                slug=page.slug,
                last_commented_at=last_at,
            )
            for page, last_at in discussions
        ],
    )
