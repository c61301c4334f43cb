"""User moderation for administrators."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select

from app.core.base_service import BaseService
from app.core.database import transactional
from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.modules.auth.models import Profile, ProfileRole, UserRole

logger = get_logger(__name__)


class AdminUserService(BaseService[Profile]):
    """List accounts, freeze, block and assign roles."""

    model = Profile

    async def list_users(
        self,
        page: int = 1,
        page_size: int = 20,
        email: str | None = None,
    ) -> tuple[list[Profile], int]:
        base_query = select(Profile)

        if email:
            base_query = base_query.where(Profile.email.icontains(email, autoescape=True))

        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=[Profile.created_at.desc()],
        )

    @transactional
    async def freeze(self, profile_id: UUID, frozen_until: datetime, admin: Profile) -> Profile:
        if frozen_until.tzinfo is None:
            frozen_until = frozen_until.replace(tzinfo=UTC)
        if frozen_until <= datetime.now(UTC):
            raise ValidationError(
                "Freeze end must be in the future",
                errors=[{"field": "frozen_until", "value": frozen_until.isoformat()}],
            )

        profile = await self._get_by_id(profile_id, for_update=True)
        profile.frozen_until = frozen_until
        await self.db.flush()

        logger.info(
            "user_frozen",
            profile_id=str(profile.id),
            frozen_until=frozen_until.isoformat(),
            admin_id=str(admin.id),
        )
        return profile

    @transactional
    async def unfreeze(self, profile_id: UUID, admin: Profile) -> Profile:
        profile = await self._get_by_id(profile_id, for_update=True)
        profile.frozen_until = None
        await self.db.flush()
        logger.info("user_unfrozen", profile_id=str(profile.id), admin_id=str(admin.id))
        return profile

    @transactional
    async def set_blocked(self, profile_id: UUID, blocked: bool, admin: Profile) -> Profile:
        profile = await self._get_by_id(profile_id, for_update=True)
        profile.is_blocked = blocked
        await self.db.flush()
        logger.info(
            "user_blocked" if blocked else "user_unblocked",
            profile_id=str(profile.id),
            admin_id=str(admin.id),
        )
        return profile

    @transactional
    async def set_roles(self, profile_id: UUID, roles: list[UserRole], admin: Profile) -> Profile:
        """Replace the role set. Viewer is always kept."""
        profile = await self._get_by_id(profile_id, for_update=True)

        wanted = {r.value for r in roles} | {UserRole.VIEWER.value}
        current = {r.role: r for r in profile.roles}

        for name, assignment in current.items():
            if name not in wanted:
                profile.roles.remove(assignment)
        for name in sorted(wanted - current.keys()):
            profile.roles.append(ProfileRole(role=name))

        await self.db.flush()
        await self.db.refresh(profile)
        logger.info(
            "user_roles_changed",
            profile_id=str(profile.id),
            roles=sorted(wanted),
            admin_id=str(admin.id),
        )
        return profile
