"""Authenticated sessions for stored gwcli profiles.

A Session wraps google-auth Credentials built from a profile's stored
tokens. Every refresh it performs is reported to a token observer, which
merges the new fields over the stored TokenSet and writes it back to the
profile store.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import timezone
from typing import Any

from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from gwcli.auth.models import ProfileCredentials, merge_token_update
from gwcli.auth.oauth_flow import GOOGLE_TOKEN_URI
from gwcli.auth.profile_store import ProfileStore
from gwcli.errors import MissingCredentialsError, TokenRefreshError

logger = logging.getLogger(__name__)

# Refresh tokens expiring within this window before handing out a session
DEFAULT_REFRESH_SKEW_SECONDS = 60

TokenObserver = Callable[[dict[str, Any]], None]


def credentials_from_profile(stored: ProfileCredentials) -> Credentials:
    """Convert stored profile credentials to google-auth Credentials.

    google-auth compares expiry against naive UTC datetimes, so the
    stored epoch-millisecond expiry is converted to one.
    """
    tokens = stored.tokens
    expires_at = tokens.expires_at
    return Credentials(  # nosec B106 - token_uri is public Google OAuth endpoint
        token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_uri=GOOGLE_TOKEN_URI,
        client_id=stored.client_id,
        client_secret=stored.client_secret,
        scopes=tokens.scopes or None,
        expiry=expires_at.replace(tzinfo=None) if expires_at else None,
    )


def token_update_from_credentials(credentials: Credentials) -> dict[str, Any]:
    """Extract the token fields a refresh produced.

    Fields the refresh did not return come back as None and are left
    for merge_token_update to fill from the previous TokenSet.
    """
    expiry_date = None
    if credentials.expiry:
        expiry = credentials.expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        expiry_date = int(expiry.timestamp() * 1000)

    granted = getattr(credentials, "granted_scopes", None)
    return {
        "access_token": credentials.token,
        "refresh_token": credentials.refresh_token,
        "scope": " ".join(granted) if granted else None,
        "expiry_date": expiry_date,
    }


class Session:
    """Authenticated, auto-refreshing credential handle for one profile.

    Attributes:
        profile_name: Profile the session belongs to.
        credentials: Underlying google-auth Credentials.
    """

    def __init__(
        self,
        profile_name: str,
        credentials: Credentials,
        on_tokens: TokenObserver | None = None,
    ) -> None:
        self.profile_name = profile_name
        self.credentials = credentials
        self._on_tokens = on_tokens

    @property
    def needs_refresh(self) -> bool:
        """True when there is no access token or it has expired."""
        return not self.credentials.token or self.credentials.expired

    def refresh(self) -> None:
        """Obtain a new access token and report it to the token observer.

        Raises:
            TokenRefreshError: If the refresh token is rejected or the call fails.
        """
        try:
            self.credentials.refresh(Request())
        except (RefreshError, TransportError) as e:
            raise TokenRefreshError(self.profile_name, str(e)) from e

        logger.info(f"Refreshed access token for profile {self.profile_name}")
        if self._on_tokens is not None:
            self._on_tokens(token_update_from_credentials(self.credentials))

    async def get_access_token(self, force_refresh: bool = False) -> str:
        """Get a valid access token, refreshing if necessary.

        Args:
            force_refresh: Refresh even if the current token looks valid
                (used after the API rejects it).

        Returns:
            Access token string.
        """
        if force_refresh or self.needs_refresh:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self.refresh)
        return str(self.credentials.token)


class SessionProvider:
    """Produces ready-to-use sessions for stored profiles.

    Example:
        ```python
        provider = SessionProvider(ProfileStore())
        session = await provider.get_session("work")
        token = await session.get_access_token()
        ```
    """

    def __init__(
        self,
        store: ProfileStore,
        refresh_skew_seconds: int = DEFAULT_REFRESH_SKEW_SECONDS,
    ) -> None:
        self.store = store
        self.refresh_skew_seconds = refresh_skew_seconds

    def _token_observer(self, profile_name: str, stored: ProfileCredentials) -> TokenObserver:
        """Build the observer that persists refreshed tokens for a profile."""
        current = stored

        def on_tokens(update: dict[str, Any]) -> None:
            nonlocal current
            merged = current.model_copy(
                update={"tokens": merge_token_update(current.tokens, update)}
            )
            self.store.save_credentials(profile_name, merged)
            current = merged

        return on_tokens

    async def get_session(self, profile_name: str) -> Session:
        """Get a session for a profile, refreshing its token if expired.

        Args:
            profile_name: Profile to authenticate as.

        Returns:
            Session with a current access token, or an unknown-expiry
            token that will refresh on demand.

        Raises:
            MissingCredentialsError: If the profile has no stored credentials.
            TokenRefreshError: If the proactive refresh fails.
        """
        stored = self.store.load_credentials(profile_name)
        if stored is None:
            raise MissingCredentialsError(profile_name)

        session = Session(
            profile_name,
            credentials_from_profile(stored),
            on_tokens=self._token_observer(profile_name, stored),
        )

        if stored.tokens.is_expired(buffer_seconds=self.refresh_skew_seconds):
            logger.info(f"Access token for profile {profile_name} expired, refreshing...")
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, session.refresh)

        return session
