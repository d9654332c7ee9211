"""Pydantic models for profile credentials and configuration.

On-disk records keep the key names the CLI has always written
(camelCase for profile fields, snake_case inside ``tokens``), so every
camelCase field carries an alias and records are dumped ``by_alias``.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Scopes every profile must hold
REQUIRED_SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/gmail.send",
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/drive.readonly",
]

CONFIG_VERSION = "1.0"


class TokenStatus(str, Enum):
    """State of a profile's stored token."""

    VALID = "valid"
    EXPIRED = "expired"
    MISSING = "missing"
    INVALID = "invalid"


class TokenSet(BaseModel):
    """OAuth token material for a profile.

    Attributes:
        access_token: Short-lived bearer token.
        refresh_token: Long-lived token; only issued on first consent.
        scope: Space-separated granted scopes.
        token_type: Token type, normally "Bearer".
        expiry_date: Access token expiry in epoch milliseconds, if known.
    """

    access_token: str = Field(..., description="OAuth access token")
    refresh_token: str = Field(..., min_length=1, description="OAuth refresh token")
    scope: str = Field(default="", description="Space-separated granted scopes")
    token_type: str = Field(default="Bearer", description="Token type")
    expiry_date: int | None = Field(default=None, description="Expiry in epoch milliseconds")

    @property
    def scopes(self) -> list[str]:
        """Granted scopes as a list."""
        return self.scope.split()

    def missing_scopes(self, required: list[str] | None = None) -> list[str]:
        """Return required scopes not covered by this token."""
        granted = set(self.scopes)
        return [s for s in (required or REQUIRED_SCOPES) if s not in granted]

    @property
    def expires_at(self) -> datetime | None:
        """Expiry as an aware UTC datetime, or None when unknown."""
        if self.expiry_date is None:
            return None
        return datetime.fromtimestamp(self.expiry_date / 1000, tz=timezone.utc)

    def is_expired(self, buffer_seconds: int = 60, now: datetime | None = None) -> bool:
        """Check whether the access token is expired or about to expire.

        Args:
            buffer_seconds: Treat tokens expiring within this window as expired.
            now: Reference time (defaults to the current UTC time).

        Returns:
            True if the expiry is known and falls before now + buffer.
            Unknown expiry is never considered expired.
        """
        if self.expiry_date is None:
            return False
        now = now or datetime.now(timezone.utc)
        now_ms = int(now.timestamp() * 1000)
        return self.expiry_date < now_ms + buffer_seconds * 1000


def merge_token_update(previous: TokenSet, update: Mapping[str, Any]) -> TokenSet:
    """Merge a refresh response over the previously stored tokens.

    Providers only emit a refresh token on first consent, so any field the
    update omits (or leaves empty) keeps its previous value. This is what
    keeps ``refresh_token`` from ever being blanked by a refresh.

    Args:
        previous: TokenSet currently stored for the profile.
        update: Fields returned by the refresh (same keys as TokenSet).

    Returns:
        New TokenSet with the merged values.
    """
    merged = previous.model_dump()
    for key in TokenSet.model_fields:
        value = update.get(key)
        if value:
            merged[key] = value
    return TokenSet.model_validate(merged)


class OAuthClientCredentials(BaseModel):
    """OAuth client id/secret pair from a Google client descriptor."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    client_id: str = Field(..., alias="clientId", min_length=1)
    client_secret: str = Field(..., alias="clientSecret", min_length=1)


class ProfileCredentials(BaseModel):
    """Everything needed to build an authenticated session for a profile."""

    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(..., alias="clientId")
    client_secret: str = Field(..., alias="clientSecret")
    tokens: TokenSet

    @property
    def client(self) -> OAuthClientCredentials:
        """The OAuth client half of the record."""
        return OAuthClientCredentials(client_id=self.client_id, client_secret=self.client_secret)


class ProfileConfig(BaseModel):
    """Non-secret per-profile settings."""

    model_config = ConfigDict(populate_by_name=True)

    email: str | None = Field(default=None, description="Account email, resolved lazily")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="createdAt",
        description="When the profile was created",
    )


class GlobalConfig(BaseModel):
    """Process-wide configuration record."""

    model_config = ConfigDict(populate_by_name=True)

    default_profile: str | None = Field(default=None, alias="defaultProfile")
    version: str = Field(default=CONFIG_VERSION)
