"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_credential_store,
    get_instagram_client,
    get_instagram_feed_service,
    get_post_cache,
    get_token_refresh_scheduler,
    get_token_refresher,
)

__all__ = [
    "get_credential_store",
    "get_instagram_client",
    "get_instagram_feed_service",
    "get_post_cache",
    "get_token_refresh_scheduler",
    "get_token_refresher",
]
