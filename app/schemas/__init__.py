"""Public schema exports."""

from .instagram import (
    CAROUSEL_ALBUM,
    CarouselChild,
    InstagramFeedResponse,
    MediaType,
    Post,
)

__all__ = [
    "CAROUSEL_ALBUM",
    "CarouselChild",
    "InstagramFeedResponse",
    "MediaType",
    "Post",
]
