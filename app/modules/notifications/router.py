"""API routes for notifications and page follows."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.dependencies import DBSession, Pagination
from app.core.security import get_current_user, require_editor
from app.modules.auth.models import Profile
from app.modules.notifications.models import NotificationType
from app.modules.notifications.schemas import (
    AffectedResponse,
    FollowedPageResponse,
    FollowerCountResponse,
    FollowerResponse,
    FollowResponse,
    FollowStatusResponse,
    NotificationListResponse,
    NotificationResponse,
    NotificationSettingsResponse,
    NotificationSettingsUpdate,
    UnreadCountResponse,
)
from app.modules.notifications.service import FollowService, NotificationService

router = APIRouter()


# ============================================================================
# Inbox
# ============================================================================


@router.get(
    "/notifications",
    response_model=NotificationListResponse,
    summary="List my notifications",
    tags=["Notifications"],
)
async def list_notifications(
    pagination: Pagination,
    db: DBSession,
    unread_only: bool = Query(default=False),
    type: NotificationType | None = Query(default=None, description="Filter by type"),
    user: Profile = Depends(get_current_user),
) -> NotificationListResponse:
    service = NotificationService(db)
    items, total = await service.list_notifications(
        user.id,
        page=pagination.page,
        page_size=pagination.page_size,
        unread_only=unread_only,
        notification_type=type.value if type else None,
    )
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in items],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
        unread_count=await service.unread_count(user.id),
    )


@router.get(
    "/notifications/unread-count",
    response_model=UnreadCountResponse,
    summary="Count unread notifications",
    tags=["Notifications"],
)
async def unread_count(
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=await NotificationService(db).unread_count(user.id))


@router.post(
    "/notifications/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark notification as read",
    tags=["Notifications"],
)
async def mark_read(
    notification_id: UUID,
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> NotificationResponse:
    notification = await NotificationService(db).mark_read(user.id, notification_id)
    return NotificationResponse.model_validate(notification)


@router.post(
    "/notifications/read-all",
    response_model=AffectedResponse,
    summary="Mark all notifications as read",
    tags=["Notifications"],
)
async def mark_all_read(
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> AffectedResponse:
    return AffectedResponse(affected=await NotificationService(db).mark_all_read(user.id))


@router.delete(
    "/notifications/read",
    response_model=AffectedResponse,
    summary="Delete all read notifications",
    tags=["Notifications"],
)
async def clear_read(
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> AffectedResponse:
    return AffectedResponse(affected=await NotificationService(db).clear_read(user.id))


@router.delete(
    "/notifications/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete notification",
    tags=["Notifications"],
)
async def delete_notification(
    notification_id: UUID,
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> None:
    await NotificationService(db).delete(user.id, notification_id)


# ============================================================================
# Preferences
# ============================================================================


@router.get(
    "/notifications/settings",
    response_model=NotificationSettingsResponse,
    summary="Get notification settings",
    tags=["Notifications"],
)
async def get_notification_settings(
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> NotificationSettingsResponse:
    prefs = await NotificationService(db).get_settings(user.id)
    return NotificationSettingsResponse.model_validate(prefs)


@router.put(
    "/notifications/settings",
    response_model=NotificationSettingsResponse,
    summary="Update notification settings",
    tags=["Notifications"],
)
async def update_notification_settings(
    data: NotificationSettingsUpdate,
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> NotificationSettingsResponse:
    prefs = await NotificationService(db).update_settings(user.id, data)
    return NotificationSettingsResponse.model_validate(prefs)


# ============================================================================
# Follows
# ============================================================================


@router.post(
    "/pages/{page_id}/follow",
    response_model=FollowResponse,
    summary="Follow a page",
    tags=["Follows"],
)
async def follow_page(
    page_id: UUID,
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> FollowResponse:
    follow = await FollowService(db).follow(user.id, page_id)
    return FollowResponse.model_validate(follow)


@router.delete(
    "/pages/{page_id}/follow",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unfollow a page",
    tags=["Follows"],
)
async def unfollow_page(
    page_id: UUID,
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> None:
    await FollowService(db).unfollow(user.id, page_id)


@router.get(
    "/pages/{page_id}/follow",
    response_model=FollowStatusResponse,
    summary="Am I following this page",
    tags=["Follows"],
)
async def follow_status(
    page_id: UUID,
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> FollowStatusResponse:
    follow = await FollowService(db).get_status(user.id, page_id)
    if follow is None:
        return FollowStatusResponse(is_following=False)
    return FollowStatusResponse(is_following=True, followed_at=follow.followed_at)


@router.get(
    "/pages/{page_id}/followers/count",
    response_model=FollowerCountResponse,
    summary="Count page followers",
    tags=["Follows"],
)
async def follower_count(page_id: UUID, db: DBSession) -> FollowerCountResponse:
    count = await FollowService(db).follower_count(page_id)
    return FollowerCountResponse(page_id=page_id, count=count)


@router.get(
    "/pages/{page_id}/followers",
    response_model=list[FollowerResponse],
    summary="List page followers",
    tags=["Follows"],
    dependencies=[Depends(require_editor)],
)
async def list_followers(page_id: UUID, db: DBSession) -> list[FollowerResponse]:
    rows = await FollowService(db).followers(page_id)
    return [
        FollowerResponse(
            user_id=profile.id,
            username=profile.username,
            display_name=profile.display_name,
            followed_at=follow.followed_at,
        )
        for follow, profile in rows
    ]


@router.get(
    "/follows/pages",
    response_model=list[FollowedPageResponse],
    summary="List pages I follow",
    tags=["Follows"],
)
async def followed_pages(
    db: DBSession,
    user: Profile = Depends(get_current_user),
) -> list[FollowedPageResponse]:
    rows = await FollowService(db).followed_pages(user.id)
    return [
        FollowedPageResponse(
            page_id=page.id,
            title=page.title,
            slug=page.slug,
            chapter_id=page.chapter_id,
            followed_at=follow.followed_at,
        )
        for follow, page in rows
    ]
