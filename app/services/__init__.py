"""Service layer exports."""

from .credential_store import ConfigurationError, CredentialStore, PersistenceError
from .instagram_feed import FeedUnavailableError, InstagramFeedService
from .post_cache import CacheEntry, PostCache
from .token_refresher import TokenRefreshScheduler, TokenRefresher

__all__ = [
    "CacheEntry",
    "ConfigurationError",
    "CredentialStore",
    "FeedUnavailableError",
    "InstagramFeedService",
    "PersistenceError",
    "PostCache",
    "TokenRefreshScheduler",
    "TokenRefresher",
]
