"""Utility for verifying that the proxy's environment configuration is usable.

It instantiates ``AppSettings`` from the provided ``.env`` file and resolves
the Instagram access token the same way the server does at startup, so a
missing ``CLIENT_TOKEN`` is reported before the proxy refuses to start. It
also reports whether the token is due for renewal.

Example usage::

    python -m scripts.check_env --env-file /srv/instagram-proxy/.env
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from app.core.config import AppSettings, _load_env_file
from app.services.credential_store import ConfigurationError, CredentialStore
from app.services.token_refresher import refresh_due

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5


def _describe_token(settings: AppSettings) -> str:
    store = CredentialStore(
        token_path=settings.instagram.token_path,
        fallback_token=settings.instagram.client_token,
    )
    store.load()
    record = store.current_record()
    now_ms = int(datetime.now(timezone.utc).timestamp() * 1000)
    source = str(store.path) if store.read_persisted() else "CLIENT_TOKEN"
    if record.last_refresh_at:
        refreshed = datetime.fromtimestamp(record.last_refresh_at / 1000, tz=timezone.utc)
        source += f" (last refreshed {refreshed.isoformat()})"
    else:
        source += " (never refreshed)"
    interval_days = settings.instagram.refresh_interval_days
    due = "due" if refresh_due(record, now_ms=now_ms, interval_days=interval_days) else "not due"
    return f"Access token loaded from {source}; refresh {due}."


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate settings and the Instagram access token."
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the repo root).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    try:
        _load_env_file(str(env_file))
        settings = AppSettings()  # type: ignore[call-arg]
        summary = _describe_token(settings)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except ConfigurationError as exc:
        print(f"Access token check failed: {exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    print(summary)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
