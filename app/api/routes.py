"""
FastAPI routes for the Instagram gallery proxy.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.dependencies import get_credential_store, get_instagram_feed_service
from app.schemas import InstagramFeedResponse
from app.services import CredentialStore, FeedUnavailableError, InstagramFeedService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    feed: Annotated[InstagramFeedService, Depends(get_instagram_feed_service)],
    credentials: Annotated[CredentialStore, Depends(get_credential_store)],
) -> dict:
    """Health endpoint reporting cache and token state."""
    return {
        "status": "ok",
        "message": "Server is running",
        "cacheStatus": feed.cache_status(),
        "tokenStatus": "loaded" if credentials.has_token else "missing",
    }


@router.get(
    "/instagram",
    status_code=HTTPStatus.OK,
    response_model=InstagramFeedResponse,
    response_model_exclude_none=True,
)
async def get_instagram_posts(
    feed: Annotated[InstagramFeedService, Depends(get_instagram_feed_service)],
    refresh: str | None = Query(
        default=None,
        description="Set to 'true' to bypass the cache and fetch from Instagram.",
    ),
):
    """
    Return recent Instagram posts, served from cache while it is fresh.

    When Instagram cannot be reached the last known listing is returned with
    ``stale`` set; without one the request fails with a 500.
    """
    try:
        return await feed.get_posts(force_refresh=refresh == "true")
    except FeedUnavailableError as exc:
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={"error": str(exc)},
        )


@router.post("/instagram/clear-cache", status_code=HTTPStatus.OK)
async def clear_instagram_cache(
    feed: Annotated[InstagramFeedService, Depends(get_instagram_feed_service)],
) -> dict:
    """Drop the cached listing so the next request goes to Instagram."""
    feed.clear_cache()
    return {"message": "Cache cleared successfully"}


__all__ = ["router"]
