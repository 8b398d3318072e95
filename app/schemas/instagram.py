"""
Pydantic models for Instagram posts and the gallery proxy responses.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

MediaType = Literal["IMAGE", "VIDEO", "CAROUSEL_ALBUM"]

CAROUSEL_ALBUM = "CAROUSEL_ALBUM"


class CarouselChild(BaseModel):
    """One image or video inside a carousel album."""

    id: str
    media_type: str
    media_url: Optional[str] = None


class Post(BaseModel):
    """A single post as served to the gallery."""

    id: str = Field(..., description="Upstream media identifier.")
    caption: str = Field("", description="Post caption, empty when none was set.")
    media_type: MediaType
    media_url: Optional[str] = Field(
        None, description="Media location for single image or video posts."
    )
    permalink: Optional[str] = None
    timestamp: Optional[str] = None
    username: Optional[str] = None
    children: Optional[List[CarouselChild]] = Field(
        None, description="Ordered album slides for carousel posts."
    )

    @field_validator("caption", mode="before")
    @classmethod
    def _default_caption(cls, value: Optional[str]) -> str:
        return value or ""

    @model_validator(mode="after")
    def _check_media_shape(self) -> "Post":
        if self.media_type == CAROUSEL_ALBUM:
            if self.children is None or self.media_url is not None:
                raise ValueError("carousel posts carry children and no media_url")
        elif self.media_url is None or self.children is not None:
            raise ValueError(
                f"{self.media_type} posts carry a media_url and no children"
            )
        return self


class InstagramFeedResponse(BaseModel):
    """Payload returned by ``GET /api/instagram``."""

    data: List[Post] = Field(default_factory=list)
    count: int = 0
    cached: bool = False
    stale: Optional[bool] = None
    error: Optional[str] = None


__all__ = [
    "CAROUSEL_ALBUM",
    "CarouselChild",
    "InstagramFeedResponse",
    "MediaType",
    "Post",
]
