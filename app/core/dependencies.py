"""Request-level dependencies shared by the routers."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.localization import normalize_language

DBSession = Annotated[AsyncSession, Depends(get_db)]


@dataclass(frozen=True)
class PaginationParams:
    page: int
    page_size: int


def get_pagination(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> PaginationParams:
    return PaginationParams(page=page, page_size=page_size)


Pagination = Annotated[PaginationParams, Depends(get_pagination)]


class LanguageParams:
    """Content language from ``?lang=``; falls back to the platform default."""

    def __init__(
        self,
        lang: str | None = Query(default=None, min_length=2, max_length=10),
    ) -> None:
        self.language = normalize_language(lang)


Language = Annotated[LanguageParams, Depends()]


@dataclass(frozen=True)
class ClientInfo:
    """Where a write came from; stored on suggestions and registrations."""

    ip_address: str | None
    user_agent: str | None


def get_client_ip(request: Request) -> str | None:
    # Behind the reverse proxy the left-most forwarded address is the caller
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if real_ip := request.headers.get("x-real-ip"):
        return real_ip
    return request.client.host if request.client else None


def get_client_info(request: Request) -> ClientInfo:
    user_agent = request.headers.get("user-agent")
    return ClientInfo(
        ip_address=get_client_ip(request),
        user_agent=user_agent[:500] if user_agent else None,
    )


Client = Annotated[ClientInfo, Depends(get_client_info)]
