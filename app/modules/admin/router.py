"""Admin routes for users and comment moderation."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.core.dependencies import DBSession, Pagination
from app.core.security import require_admin
from app.modules.admin.schemas import (
    AdminUserListResponse,
    AdminUserResponse,
    FreezeRequest,
    RolesUpdate,
)
from app.modules.admin.service import AdminUserService
from app.modules.auth.models import Profile
from app.modules.comments.mappers import map_comment
from app.modules.comments.schemas import CommentListResponse
from app.modules.comments.service import CommentService

router = APIRouter(dependencies=[Depends(require_admin)])


# ============================================================================
# Users
# ============================================================================


@router.get(
    "/admin/users",
    response_model=AdminUserListResponse,
    summary="List users",
    tags=["Admin - Users"],
)
async def list_users(
    pagination: Pagination,
    db: DBSession,
    email: str | None = Query(default=None, description="Filter by email substring"),
) -> AdminUserListResponse:
    users, total = await AdminUserService(db).list_users(
        page=pagination.page,
        page_size=pagination.page_size,
        email=email,
    )
    return AdminUserListResponse(
        items=[AdminUserResponse.model_validate(u) for u in users],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post(
    "/admin/users/{profile_id}/freeze",
    response_model=AdminUserResponse,
    summary="Freeze user until a moment",
    tags=["Admin - Users"],
)
async def freeze_user(
    profile_id: UUID,
    data: FreezeRequest,
    db: DBSession,
    admin: Profile = Depends(require_admin),
) -> AdminUserResponse:
    profile = await AdminUserService(db).freeze(profile_id, data.frozen_until, admin)
    return AdminUserResponse.model_validate(profile)


@router.post(
    "/admin/users/{profile_id}/unfreeze",
    response_model=AdminUserResponse,
    summary="Lift a freeze",
    tags=["Admin - Users"],
)
async def unfreeze_user(
    profile_id: UUID,
    db: DBSession,
    admin: Profile = Depends(require_admin),
) -> AdminUserResponse:
    profile = await AdminUserService(db).unfreeze(profile_id, admin)
    return AdminUserResponse.model_validate(profile)


@router.post(
    "/admin/users/{profile_id}/block",
    response_model=AdminUserResponse,
    summary="Block user",
    tags=["Admin - Users"],
)
async def block_user(
    profile_id: UUID,
    db: DBSession,
    admin: Profile = Depends(require_admin),
) -> AdminUserResponse:
    profile = await AdminUserService(db).set_blocked(profile_id, True, admin)
    return AdminUserResponse.model_validate(profile)


@router.post(
    "/admin/users/{profile_id}/unblock",
    response_model=AdminUserResponse,
    summary="Unblock user",
    tags=["Admin - Users"],
)
async def unblock_user(
    profile_id: UUID,
    db: DBSession,
    admin: Profile = Depends(require_admin),
) -> AdminUserResponse:
    profile = await AdminUserService(db).set_blocked(profile_id, False, admin)
    return AdminUserResponse.model_validate(profile)


@router.put(
    "/admin/users/{profile_id}/roles",
    response_model=AdminUserResponse,
    summary="Replace user roles",
    tags=["Admin - Users"],
)
async def set_user_roles(
    profile_id: UUID,
    data: RolesUpdate,
    db: DBSession,
    admin: Profile = Depends(require_admin),
) -> AdminUserResponse:
    profile = await AdminUserService(db).set_roles(profile_id, data.roles, admin)
    return AdminUserResponse.model_validate(profile)


# ============================================================================
# Comments
# ============================================================================


@router.get(
    "/admin/comments",
    response_model=CommentListResponse,
    summary="List comments",
    tags=["Admin - Comments"],
)
async def list_comments(
    pagination: Pagination,
    db: DBSession,
    page_id: UUID | None = Query(default=None, description="Page and its paragraphs"),
) -> CommentListResponse:
    comments, total = await CommentService(db).list_comments(
        page=pagination.page,
        page_size=pagination.page_size,
        page_id=page_id,
    )
    return CommentListResponse(
        items=[map_comment(c) for c in comments],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )
