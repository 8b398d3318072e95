"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from app.clients import InstagramGraphClient
from app.core.config import get_settings
from app.services import (
    CredentialStore,
    InstagramFeedService,
    PostCache,
    TokenRefreshScheduler,
    TokenRefresher,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_credential_store() -> CredentialStore:
    """Provide the process-wide access token store."""
    settings = _settings().instagram
    return CredentialStore(
        token_path=settings.token_path,
        fallback_token=settings.client_token,
    )


@lru_cache()
def get_instagram_client() -> InstagramGraphClient:
    """Provide Instagram Graph API client instance."""
    settings = _settings().instagram
    return InstagramGraphClient(
        get_credential_store(),
        base_url=settings.graph_base_url,
        timeout=settings.request_timeout_seconds,
    )


@lru_cache()
def get_post_cache() -> PostCache:
    """Provide the process-local listing cache."""
    return PostCache()


@lru_cache()
def get_token_refresher() -> TokenRefresher:
    """Provide helper for renewing the Instagram access token."""
    settings = _settings().instagram
    return TokenRefresher(
        get_credential_store(),
        get_instagram_client(),
        interval_days=settings.refresh_interval_days,
    )


@lru_cache()
def get_token_refresh_scheduler() -> TokenRefreshScheduler:
    """Provide the background token refresh loop."""
    refresher = get_token_refresher()
    return TokenRefreshScheduler(refresher, interval=refresher.interval)


def get_instagram_feed_service() -> InstagramFeedService:
    """Build a feed service over the shared client and cache."""
    return InstagramFeedService(
        source=get_instagram_client(),
        cache=get_post_cache(),
        post_limit=_settings().instagram.post_limit,
    )


__all__ = [
    "get_credential_store",
    "get_instagram_client",
    "get_instagram_feed_service",
    "get_post_cache",
    "get_token_refresh_scheduler",
    "get_token_refresher",
]
