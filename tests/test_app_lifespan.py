try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio
from datetime import timedelta
from pathlib import Path

import httpx
import pytest

from app import dependencies, main
from app.main import app, lifespan
from app.services import ConfigurationError, CredentialStore, TokenRefreshScheduler


class CountingRefresher:
    def __init__(self) -> None:
        self.calls = 0

    async def refresh(self, force: bool = False) -> str:
        self.calls += 1
        return "graph-token"


def _install(
    monkeypatch: pytest.MonkeyPatch, store: CredentialStore
) -> tuple[TokenRefreshScheduler, CountingRefresher, list[int]]:
    refresher = CountingRefresher()
    scheduler = TokenRefreshScheduler(refresher, interval=timedelta(days=30))
    built: list[int] = []

    def scheduler_factory() -> TokenRefreshScheduler:
        built.append(1)
        return scheduler

    monkeypatch.setattr(main, "get_credential_store", lambda: store)
    monkeypatch.setattr(main, "get_token_refresh_scheduler", scheduler_factory)
    return scheduler, refresher, built


@pytest.mark.anyio
async def test_startup_fails_without_token(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = CredentialStore(tmp_path / "token.json", fallback_token=None)
    scheduler, refresher, built = _install(monkeypatch, store)

    with pytest.raises(ConfigurationError):
        async with lifespan(app):
            pass  # pragma: no cover - startup never yields

    assert built == []
    assert scheduler.running is False
    assert refresher.calls == 0


@pytest.mark.anyio
async def test_scheduler_runs_for_lifetime_of_app(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = CredentialStore(tmp_path / "token.json", fallback_token="graph-token")
    scheduler, refresher, _ = _install(monkeypatch, store)

    async with lifespan(app):
        await asyncio.sleep(0.01)
        assert scheduler.running is True
        assert store.current_token() == "graph-token"

    assert scheduler.running is False
    assert refresher.calls == 1


@pytest.mark.anyio
async def test_health_reports_loaded_token_while_running(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = CredentialStore(tmp_path / "token.json", fallback_token="graph-token")
    _install(monkeypatch, store)
    app.dependency_overrides[dependencies.get_credential_store] = lambda: store

    try:
        async with lifespan(app):
            async with httpx.AsyncClient(
                transport=httpx.ASGITransport(app=app),
                base_url="http://testserver",
            ) as client:
                response = await client.get("/api/health")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["tokenStatus"] == "loaded"
