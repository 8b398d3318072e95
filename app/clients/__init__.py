"""Expose constructed client wrappers."""

from .instagram import ExpansionError, InstagramGraphClient, UpstreamError

__all__ = [
    "ExpansionError",
    "InstagramGraphClient",
    "UpstreamError",
]
