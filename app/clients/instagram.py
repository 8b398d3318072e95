"""
Instagram Graph API client.

Lists the account's recent media, expands carousel albums into their slides and
exchanges long-lived access tokens for fresh ones.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from app.schemas import CAROUSEL_ALBUM, CarouselChild, Post

if TYPE_CHECKING:
    from app.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """Raised when a call to the Graph API fails or returns an unusable body."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class ExpansionError(UpstreamError):
    """Raised when the children of a single carousel album cannot be fetched."""


class InstagramGraphClient:
    """Read posts and refresh tokens against the Instagram Graph API."""

    BASE_URL = "https://graph.instagram.com"
    MEDIA_FIELDS = "id,caption,media_type,media_url,permalink,timestamp,username"
    CHILD_FIELDS = "id,media_type,media_url"

    def __init__(
        self,
        credential_store: CredentialStore,
        *,
        base_url: str = BASE_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._credentials = credential_store
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def list_posts(self, limit: int = 12) -> List[Post]:
        """
        Return the ``limit`` most recent posts, carousel slides included.

        Carousel expansions run concurrently; one that fails leaves its post
        with an empty ``children`` list instead of failing the listing.
        """
        params = {
            "fields": self.MEDIA_FIELDS,
            "limit": limit,
            "access_token": self._credentials.current_token(),
        }

        async with self._client() as client:
            payload = await self._get_json(client, "/me/media", params=params)
            items = payload.get("data")
            if not isinstance(items, list):
                raise UpstreamError(
                    "Media listing response is missing a data list.",
                    payload=payload,
                )

            carousel_ids = [
                item.get("id")
                for item in items
                if isinstance(item, dict) and item.get("media_type") == CAROUSEL_ALBUM
            ]
            expanded = await asyncio.gather(
                *(self._children_or_empty(client, media_id) for media_id in carousel_ids)
            )

        children_by_id = dict(zip(carousel_ids, expanded))
        posts: List[Post] = []
        for item in items:
            post = self._build_post(item, children_by_id)
            if post is not None:
                posts.append(post)
        return posts

    async def fetch_children(
        self, client: httpx.AsyncClient, media_id: str
    ) -> List[CarouselChild]:
        """Fetch the slides of one carousel album."""
        params = {
            "fields": self.CHILD_FIELDS,
            "access_token": self._credentials.current_token(),
        }
        try:
            payload = await self._get_json(client, f"/{media_id}/children", params=params)
            return [CarouselChild(**child) for child in payload.get("data") or []]
        except (UpstreamError, ValidationError, TypeError) as exc:
            raise ExpansionError(
                f"Could not fetch children for {media_id}: {exc}"
            ) from exc

    async def refresh_access_token(self, token: str) -> str:
        """Exchange a long-lived token for a new one."""
        params = {"grant_type": "ig_refresh_token", "access_token": token}
        async with self._client() as client:
            payload = await self._get_json(client, "/refresh_access_token", params=params)

        new_token = payload.get("access_token")
        if not isinstance(new_token, str) or not new_token:
            raise UpstreamError(
                "Incomplete refresh payload returned from Instagram.", payload=payload
            )
        return new_token

    async def _children_or_empty(
        self, client: httpx.AsyncClient, media_id: str
    ) -> List[CarouselChild]:
        try:
            return await self.fetch_children(client, media_id)
        except ExpansionError as exc:
            logger.error("%s", exc)
            return []

    @staticmethod
    def _build_post(
        item: Any, children_by_id: Dict[str, List[CarouselChild]]
    ) -> Optional[Post]:
        if not isinstance(item, dict):
            logger.warning("Skipping malformed media item: %r", item)
            return None

        fields = {
            "id": item.get("id"),
            "caption": item.get("caption"),
            "media_type": item.get("media_type"),
            "permalink": item.get("permalink"),
            "timestamp": item.get("timestamp"),
            "username": item.get("username"),
        }
        if item.get("media_type") == CAROUSEL_ALBUM:
            fields["children"] = children_by_id.get(item.get("id"), [])
        else:
            fields["media_url"] = item.get("media_url")

        try:
            return Post(**fields)
        except ValidationError as exc:
            logger.warning("Skipping media item %s: %s", item.get("id"), exc)
            return None

    @staticmethod
    async def _get_json(
        client: httpx.AsyncClient, path: str, *, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        try:
            response = await client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Request to {path} failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            error = body.get("error", body) if isinstance(body, dict) else response.text
            raise UpstreamError(
                f"Instagram returned HTTP {response.status_code} for {path}",
                status_code=response.status_code,
                payload=error,
            )
        if not isinstance(body, dict):
            raise UpstreamError(
                f"Instagram returned a non-JSON body for {path}",
                status_code=response.status_code,
                payload=response.text,
            )
        return body


__all__ = ["ExpansionError", "InstagramGraphClient", "UpstreamError"]
