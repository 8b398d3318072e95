"""
Helpers for keeping the long-lived Instagram access token alive.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

from app.clients.instagram import UpstreamError
from app.models.credentials import CredentialRecord
from app.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

_DAY_MS = 86_400_000


class TokenExchanger(Protocol):
    async def refresh_access_token(self, token: str) -> str: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


# Renew this many days before the configured interval elapses.
SAFETY_MARGIN_DAYS = 5


def refresh_due(record: CredentialRecord, *, now_ms: int, interval_days: int) -> bool:
    """Whether the token is older than the interval minus the safety margin."""
    threshold_ms = (interval_days - SAFETY_MARGIN_DAYS) * _DAY_MS
    return now_ms - (record.last_refresh_at or 0) > threshold_ms


class TokenRefresher:
    """Renew the access token ahead of its expiry."""

    def __init__(
        self,
        store: CredentialStore,
        exchanger: TokenExchanger,
        *,
        interval_days: int = 30,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._exchanger = exchanger
        self._interval_days = interval_days
        self._clock = clock

    @property
    def interval(self) -> timedelta:
        return timedelta(days=self._interval_days)

    def needs_refresh(self, record: CredentialRecord, *, now_ms: int) -> bool:
        return refresh_due(record, now_ms=now_ms, interval_days=self._interval_days)

    async def refresh(self, force: bool = False) -> str:
        """
        Return a usable token, exchanging it upstream when it is due.

        A failed exchange is logged and the token that was current before the
        attempt is returned unchanged.
        """
        record = self._store.current_record()
        now_ms = _epoch_ms(self._clock())

        if not force and not self.needs_refresh(record, now_ms=now_ms):
            logger.debug("Access token is recent enough; skipping refresh")
            return record.token

        try:
            new_token = await self._exchanger.refresh_access_token(record.token)
        except UpstreamError as exc:
            logger.error(
                "Failed to refresh token: %s", exc.payload if exc.payload else exc
            )
            return record.token

        self._store.save(new_token, now_ms)
        logger.info("Token refreshed successfully")
        return new_token


class TokenRefreshScheduler:
    """Run a refresh pass at startup and then once per interval."""

    def __init__(self, refresher: TokenRefresher, *, interval: timedelta) -> None:
        self._refresher = refresher
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="instagram-token-refresh")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def run_once(self) -> None:
        try:
            await self._refresher.refresh()
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Scheduled token refresh failed: %s", exc)

    async def _run(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self._interval.total_seconds())


__all__ = [
    "SAFETY_MARGIN_DAYS",
    "TokenExchanger",
    "TokenRefreshScheduler",
    "TokenRefresher",
    "refresh_due",
]
