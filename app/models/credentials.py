"""
Domain models for Instagram token persistence.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CredentialRecord(BaseModel):
    """Represents the token record stored on disk."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    token: str = Field(..., min_length=1)
    last_refresh_at: Optional[int] = Field(
        None,
        alias="lastRefreshAt",
        description="Epoch milliseconds of the last successful renewal.",
    )

    @classmethod
    def from_stored(cls, data: Dict[str, Any]) -> "CredentialRecord":
        """Build a record, accepting the legacy CLIENT_TOKEN/lastRefresh keys."""
        token = data.get("token") or data.get("CLIENT_TOKEN")
        last_refresh_at = data.get("lastRefreshAt", data.get("lastRefresh"))
        return cls(token=token, last_refresh_at=last_refresh_at or None)

    def to_stored(self) -> Dict[str, Any]:
        return {"token": self.token, "lastRefreshAt": self.last_refresh_at or 0}


__all__ = ["CredentialRecord"]
