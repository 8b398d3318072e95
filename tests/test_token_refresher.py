try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest

from app.clients.instagram import InstagramGraphClient, UpstreamError
from app.services.credential_store import CredentialStore
from app.services.token_refresher import TokenRefreshScheduler, TokenRefresher

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
NOW_MS = int(NOW.timestamp() * 1000)


class DummyExchanger:
    def __init__(self, *, new_token: str = "refreshed-token", fail: bool = False) -> None:
        self.new_token = new_token
        self.fail = fail
        self.calls: list[str] = []

    async def refresh_access_token(self, token: str) -> str:
        self.calls.append(token)
        if self.fail:
            raise UpstreamError(
                "Instagram returned HTTP 400",
                status_code=400,
                payload={"message": "Error validating access token"},
            )
        return self.new_token


def _store_refreshed_days_ago(tmp_path: Path, days: float) -> CredentialStore:
    token_path = tmp_path / "token.json"
    refreshed_at = int((NOW - timedelta(days=days)).timestamp() * 1000)
    token_path.write_text(json.dumps({"token": "current-token", "lastRefreshAt": refreshed_at}))
    store = CredentialStore(token_path, fallback_token="env-token")
    store.load()
    return store


def _refresher(store: CredentialStore, exchanger: DummyExchanger) -> TokenRefresher:
    return TokenRefresher(store, exchanger, interval_days=30, clock=lambda: NOW)


@pytest.mark.parametrize(
    ("days_ago", "expected"),
    [(26, True), (25.5, True), (20, False), (0, False)],
)
def test_needs_refresh_applies_five_day_margin(
    tmp_path: Path, days_ago: float, expected: bool
) -> None:
    store = _store_refreshed_days_ago(tmp_path, days_ago)
    refresher = _refresher(store, DummyExchanger())

    assert refresher.needs_refresh(store.current_record(), now_ms=NOW_MS) is expected


@pytest.mark.anyio
async def test_refresh_skips_upstream_when_not_due(tmp_path: Path) -> None:
    store = _store_refreshed_days_ago(tmp_path, 20)
    exchanger = DummyExchanger()

    token = await _refresher(store, exchanger).refresh()

    assert token == "current-token"
    assert exchanger.calls == []


@pytest.mark.anyio
async def test_refresh_persists_new_token_when_due(tmp_path: Path) -> None:
    store = _store_refreshed_days_ago(tmp_path, 26)
    exchanger = DummyExchanger()

    token = await _refresher(store, exchanger).refresh()

    assert token == "refreshed-token"
    assert exchanger.calls == ["current-token"]
    assert store.current_token() == "refreshed-token"
    assert json.loads(store.path.read_text()) == {
        "token": "refreshed-token",
        "lastRefreshAt": NOW_MS,
    }


@pytest.mark.anyio
async def test_never_refreshed_token_is_due(tmp_path: Path) -> None:
    store = CredentialStore(tmp_path / "token.json", fallback_token="env-token")
    exchanger = DummyExchanger()

    token = await _refresher(store, exchanger).refresh()

    assert exchanger.calls == ["env-token"]
    assert token == "refreshed-token"


@pytest.mark.anyio
async def test_force_refresh_ignores_interval(tmp_path: Path) -> None:
    store = _store_refreshed_days_ago(tmp_path, 1)
    exchanger = DummyExchanger()

    token = await _refresher(store, exchanger).refresh(force=True)

    assert token == "refreshed-token"
    assert exchanger.calls == ["current-token"]


@pytest.mark.anyio
async def test_failed_refresh_returns_previous_token(tmp_path: Path) -> None:
    store = _store_refreshed_days_ago(tmp_path, 29)
    before = store.path.read_text()

    token = await _refresher(store, DummyExchanger(fail=True)).refresh()

    assert token == "current-token"
    assert store.current_token() == "current-token"
    assert store.path.read_text() == before


class ExplodingRefresher:
    def __init__(self) -> None:
        self.calls = 0

    async def refresh(self, force: bool = False) -> str:
        self.calls += 1
        raise RuntimeError("boom")


@pytest.mark.anyio
async def test_scheduler_survives_failed_passes() -> None:
    refresher = ExplodingRefresher()
    scheduler = TokenRefreshScheduler(refresher, interval=timedelta(milliseconds=10))

    scheduler.start()
    await asyncio.sleep(0.1)
    assert scheduler.running is True
    await scheduler.stop()

    assert refresher.calls >= 2
    assert scheduler.running is False


@pytest.mark.anyio
async def test_scheduler_runs_first_pass_immediately(tmp_path: Path) -> None:
    store = CredentialStore(tmp_path / "token.json", fallback_token="env-token")
    store.load()
    exchanger = DummyExchanger()
    scheduler = TokenRefreshScheduler(_refresher(store, exchanger), interval=timedelta(days=30))

    scheduler.start()
    await asyncio.sleep(0.01)
    await scheduler.stop()

    assert exchanger.calls == ["env-token"]
    assert store.current_token() == "refreshed-token"


@pytest.mark.anyio
async def test_refresh_keeps_token_when_payload_token_is_not_a_string(
    tmp_path: Path,
) -> None:
    store = _store_refreshed_days_ago(tmp_path, 26)
    before = store.path.read_text()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"access_token": 12345, "expires_in": 5184000})

    client = InstagramGraphClient(
        store,
        base_url="https://graph.instagram.test",
        transport=httpx.MockTransport(handler),
    )
    refresher = TokenRefresher(store, client, interval_days=30, clock=lambda: NOW)

    token = await refresher.refresh(force=True)

    assert token == "current-token"
    assert store.current_token() == "current-token"
    assert store.path.read_text() == before
