"""
Serve the Instagram gallery from cache, refreshing from the Graph API when due.
"""

from __future__ import annotations

import logging
from typing import List, Protocol

from app.schemas import InstagramFeedResponse, Post
from app.services.post_cache import PostCache

logger = logging.getLogger(__name__)

STALE_ERROR_MESSAGE = "Using cached data due to API error"


class PostSource(Protocol):
    async def list_posts(self, limit: int = 12) -> List[Post]: ...


class FeedUnavailableError(RuntimeError):
    """Raised when a refresh failed and there is no cached listing to fall back on."""


class InstagramFeedService:
    """Decide between cached and fresh data and degrade to stale data on failure."""

    def __init__(self, *, source: PostSource, cache: PostCache, post_limit: int = 12) -> None:
        self._source = source
        self._cache = cache
        self._post_limit = post_limit

    async def get_posts(self, *, force_refresh: bool = False) -> InstagramFeedResponse:
        if not force_refresh and self._cache.is_fresh():
            entry = self._cache.get()
            logger.info("Serving cached Instagram data")
            return InstagramFeedResponse(
                data=entry.payload, count=len(entry.payload), cached=True
            )

        logger.info("Fetching fresh Instagram data...")
        try:
            posts = await self._source.list_posts(self._post_limit)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error(
                "Error fetching posts: %s", getattr(exc, "payload", None) or exc
            )
            return self._fallback()

        self._cache.put(posts)
        logger.info("Fetched %d posts", len(posts))
        return InstagramFeedResponse(data=posts, count=len(posts), cached=False)

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Cache cleared")

    def cache_status(self) -> str:
        return "valid" if self._cache.is_fresh() else "empty/expired"

    def _fallback(self) -> InstagramFeedResponse:
        entry = self._cache.get()
        if entry is None:
            raise FeedUnavailableError("Failed to fetch posts")

        logger.warning("Error occurred, serving stale cache")
        return InstagramFeedResponse(
            data=entry.payload,
            count=len(entry.payload),
            cached=True,
            stale=True,
            error=STALE_ERROR_MESSAGE,
        )


__all__ = ["FeedUnavailableError", "InstagramFeedService", "PostSource"]
