"""Async engine, session factory and the transaction decorator."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from functools import wraps
from typing import Any, Callable, ParamSpec, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings
from app.core.exceptions import ConflictError
from app.core.logging import get_logger

logger = get_logger(__name__)

UNIQUE_VIOLATION = "23505"

engine = create_async_engine(
    str(settings.database_url),
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

# Services flush and refresh explicitly; nothing is expired on commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request."""
    async with async_session_factory() as session:
        yield session


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Session for code running outside a request, such as management scripts."""
    async with async_session_factory() as session:
        yield session


P = ParamSpec("P")
R = TypeVar("R")


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession:
    for arg in args:
        if isinstance(arg, AsyncSession):
            return arg

    candidate = kwargs.get("db")
    if isinstance(candidate, AsyncSession):
        return candidate

    owner_db = getattr(args[0], "db", None) if args else None
    if isinstance(owner_db, AsyncSession):
        return owner_db

    raise ValueError("No AsyncSession found in function arguments")


def _unique_violation(exc: IntegrityError) -> str | None:
    """Constraint name of a unique violation, or None for other integrity errors."""
    orig = exc.orig
    if getattr(orig, "sqlstate", None) != UNIQUE_VIOLATION:
        return None
    driver_error = getattr(orig, "__cause__", None)
    return getattr(driver_error, "constraint_name", None) or "unique"


def transactional(func: Callable[P, R]) -> Callable[P, R]:
    """Run a service method as one unit of work.

    Commits on success and rolls back on any exception. The session is
    the first AsyncSession positional argument, a ``db`` keyword, or
    ``self.db``. Nested calls share the outer transaction, so helpers
    called from a transactional method must not be decorated themselves.

    A unique violation raised by a concurrent writer (two votes from the
    same user, a slug taken between check and insert) becomes a 409
    ConflictError.
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        db = _find_session(args, kwargs)

        try:
            result = await func(*args, **kwargs)
            await db.commit()
            return result
        except IntegrityError as exc:
            await db.rollback()
            constraint = _unique_violation(exc)
            if constraint is None:
                raise
            logger.warning(
                "transaction_conflict",
                operation=func.__qualname__,
                constraint=constraint,
            )
            raise ConflictError(constraint) from exc
        except Exception:
            await db.rollback()
            raise

    return wrapper  # type: ignore


async def check_db_connection() -> bool:
    """Readiness check: can a session run ``SELECT 1``."""
    try:
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("database_unreachable", error=str(e))
        return False


async def close_db() -> None:
    await engine.dispose()
