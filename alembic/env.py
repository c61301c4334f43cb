"""Alembic environment running migrations through the async engine."""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from app.config import settings
from app.core.base_model import Base

# Registers every table on Base.metadata for autogenerate
from app.modules.auth.models import Profile, ProfileRole  # noqa: F401
from app.modules.comments.models import Comment, CommentVote  # noqa: F401
from app.modules.document.models import (  # noqa: F401
    Chapter, ChapterTranslation, Page, PageTranslation, PageVersion,
    Paragraph, ParagraphTranslation, ParagraphVersion,
)
from app.modules.notifications.models import (  # noqa: F401
    EmailLog, Notification, NotificationSettings, PageFollow,
)
from app.modules.settings.models import Setting  # noqa: F401
from app.modules.suggestions.models import ParagraphSuggestion, SuggestionVote  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

DATABASE_URL = str(settings.database_url)

COMPARE_OPTIONS = {
    "target_metadata": Base.metadata,
    "compare_type": True,
    "compare_server_default": True,
}


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **COMPARE_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)
    async with engine.connect() as connection:
        await connection.run_sync(_migrate)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
