"""Redis cache for public document read models."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends
from redis.exceptions import RedisError

from app.config import settings
from app.core.logging import get_logger
from app.core.redis import CacheClient, get_redis_client

logger = get_logger(__name__)


class DocumentCache:
    """Cached JSON of the public chapter tree and page paragraph lists.

    Only non-privileged views are cached. Without Redis every call is a
    miss and writes are no-ops.
    """

    def __init__(self, client: CacheClient | None, ttl: int | None = None) -> None:
        self.client = client
        self.ttl = ttl or settings.document_cache_ttl_seconds

    @classmethod
    def from_redis(cls) -> "DocumentCache":
        redis_client = get_redis_client()
        return cls(CacheClient(redis_client) if redis_client is not None else None)

    @staticmethod
    def chapters_key(language: str) -> str:
        return f"chapters:all:{language}"

    @staticmethod
    def paragraphs_key(page_id: UUID, language: str) -> str:
        return f"paragraphs:page:{page_id}:{language}"

    async def get(self, key: str) -> Any | None:
        if self.client is None:
            return None
        try:
            return await self.client.get_json(key)
        except RedisError as e:
            logger.warning("document_cache_read_failed", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any) -> None:
        if self.client is None:
            return
        try:
            await self.client.set_json(key, value, ttl=self.ttl)
        except RedisError as e:
            logger.warning("document_cache_write_failed", key=key, error=str(e))

    async def _drop(self, pattern: str) -> None:
        if self.client is None:
            return
        try:
            await self.client.delete_pattern(pattern)
        except RedisError as e:
            logger.warning("document_cache_invalidation_failed", pattern=pattern, error=str(e))

    async def invalidate_chapters(self) -> None:
        """Chapter tree embeds page summaries, so page writes call this too."""
        await self._drop("chapters:all:*")

    async def invalidate_paragraphs(self, page_id: UUID) -> None:
        await self._drop(f"paragraphs:page:{page_id}:*")


def get_document_cache() -> DocumentCache:
    return DocumentCache.from_redis()


DocumentCacheDep = Annotated[DocumentCache, Depends(get_document_cache)]
