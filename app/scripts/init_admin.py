"""Initialize default settings and the first admin profile.

Usage:
    python -m app.scripts.init_admin [--email E] [--username U] [--password P]

Creates:
- Missing rows of the default platform settings
- An email-verified profile holding Viewer, Editor and Admin roles
"""

import argparse
import asyncio
import sys

from sqlalchemy import func, select

from app.config import settings
from app.core.database import get_db_context
from app.core.security import hash_password
from app.modules.auth.models import Profile, ProfileRole, UserRole
from app.modules.settings.cache import SettingsCache
from app.modules.settings.service import SettingsService


async def init_settings(db) -> None:
    """Insert default settings that are not stored yet."""
    print("⚙️  Initializing settings...")
    service = SettingsService(db, SettingsCache(settings.settings_cache_ttl_seconds))
    created = await service.ensure_defaults()
    if created:
        print(f"  ✅ Created {created} settings")
    else:
        print("  ⏭️  All default settings already exist")


async def create_admin_profile(db, email: str, username: str, password: str) -> Profile:
    """Create the admin profile or grant missing roles to an existing one."""
    print("👤 Creating admin profile...")

    result = await db.execute(select(Profile).where(func.lower(Profile.email) == email.lower()))
    profile = result.scalar_one_or_none()

    if profile is None:
        profile = Profile(
            username=username,
            email=email.lower(),
            password_hash=hash_password(password),
            display_name="Administrator",
            language=settings.default_language,
            email_verified=True,
        )
        db.add(profile)
        print(f"  ✅ Created admin profile: {email}")
        print(f"  🔑 Password: {password}")
        print("  ⚠️  IMPORTANT: Change password after first login!")
    else:
        print(f"  ⚠️  Profile already exists: {email}")

    existing_roles = set(profile.role_names)
    for role in UserRole:
        if role.value not in existing_roles:
            profile.roles.append(ProfileRole(role=role.value))
            print(f"  ✅ Granted role: {role.value}")

    await db.flush()
    await db.commit()
    return profile


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the first admin profile")
    parser.add_argument("--email", default="admin@example.com")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--password", default="admin12345")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv if argv is not None else sys.argv[1:])

    print("=" * 60)
    print("🚀 Initializing settings and admin profile")
    print("=" * 60)
    print()

    try:
        async with get_db_context() as db:
            await init_settings(db)
            profile = await create_admin_profile(db, args.email, args.username, args.password)

        print()
        print("=" * 60)
        print("✅ Initialization complete!")
        print("=" * 60)
        print()
        print("📝 Login credentials:")
        print(f"   Email:    {profile.email}")
        print(f"   Roles:    {', '.join(profile.role_names)}")
        print()
        print("📚 API Documentation:")
        print(f"   http://localhost:{settings.port}/docs")
        print()

    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
