"""
File-backed storage for the Instagram Graph API access token.

The persisted record is the only durable state of the service. The in-memory
record is authoritative for the lifetime of the process, so a failed write
never takes a freshly refreshed token out of circulation.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from app.models.credentials import CredentialRecord

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when no access token can be obtained from any source."""


class PersistenceError(RuntimeError):
    """Raised when the token record cannot be written to disk."""


def _ensure_directory(path: Path) -> None:
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)


class CredentialStore:
    """Resolve, hold and persist the bearer token used for upstream calls."""

    def __init__(self, token_path: str | Path, fallback_token: Optional[str] = None) -> None:
        self._path = Path(token_path)
        self._fallback = fallback_token
        self._record: Optional[CredentialRecord] = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def has_token(self) -> bool:
        return self._record is not None

    def read_persisted(self) -> Optional[CredentialRecord]:
        """Return the record on disk, or None when missing or unreadable."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Could not read token file %s: %s", self._path, exc)
            return None

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("token file must contain a JSON object")
            return CredentialRecord.from_stored(data)
        except (ValueError, ValidationError) as exc:
            logger.warning(
                "Ignoring malformed token file %s: %s", self._path, exc
            )
            return None

    def load(self) -> str:
        """
        Return the best-known token.

        The persisted record wins over the configured fallback. Raises
        ``ConfigurationError`` when neither yields a token.
        """
        record = self.read_persisted()
        if record is None:
            if not self._fallback:
                raise ConfigurationError(
                    "No Instagram access token found; set CLIENT_TOKEN or "
                    f"provide {self._path}."
                )
            record = CredentialRecord(token=self._fallback)
            logger.info("Using access token from environment")
        else:
            logger.info("Using access token from %s", self._path)

        self._record = record
        return record.token

    def current_record(self) -> CredentialRecord:
        if self._record is not None:
            return self._record
        persisted = self.read_persisted()
        if persisted is not None:
            self._record = persisted
            return persisted
        return CredentialRecord(token=self.load())

    def current_token(self) -> str:
        if self._record is None:
            return self.load()
        return self._record.token

    def save(self, token: str, refreshed_at: int) -> None:
        """Adopt ``token`` in memory and write it to disk on a best-effort basis."""
        record = CredentialRecord(token=token, last_refresh_at=refreshed_at)
        self._record = record
        try:
            self._write(record)
        except PersistenceError as exc:
            logger.warning("Couldn't save token to file: %s", exc)

    def _write(self, record: CredentialRecord) -> None:
        try:
            _ensure_directory(self._path)
            self._path.write_text(
                json.dumps(record.to_stored(), indent=2), encoding="utf-8"
            )
        except OSError as exc:
            raise PersistenceError(f"{self._path}: {exc}") from exc


__all__ = ["ConfigurationError", "CredentialStore", "PersistenceError"]
