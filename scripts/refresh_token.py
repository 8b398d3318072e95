#!/usr/bin/env python
"""Run a single Instagram token refresh pass outside the server.

Useful after rotating ``CLIENT_TOKEN`` or when the persisted token is close to
expiry and the server is not running::

    python -m scripts.refresh_token --force
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.dependencies import get_credential_store, get_token_refresher
from app.services.credential_store import ConfigurationError

EXIT_OK = 0
EXIT_UNCHANGED = 1
EXIT_CONFIG_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Refresh the Instagram access token.")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Refresh even when the token is not yet due.",
    )
    return parser


async def _refresh(force: bool) -> int:
    store = get_credential_store()
    store.load()
    refreshed_before = store.current_record().last_refresh_at
    await get_token_refresher().refresh(force=force)
    if store.current_record().last_refresh_at != refreshed_before:
        print(f"Token refreshed and saved to {store.path}.")
        return EXIT_OK
    if force:
        print("Token refresh failed; the previous token is still in use.", file=sys.stderr)
        return EXIT_UNCHANGED
    print("Token unchanged; see the log for whether a refresh was attempted.")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(get_settings().log_level)
    try:
        return asyncio.run(_refresh(args.force))
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
