"""OAuth profiles and sessions for gwcli.

This package stores per-profile OAuth credentials, runs the one-time
browser authorization for new profiles, and hands out auto-refreshing
sessions for API calls.

Quick Start:
    ```python
    from gwcli.auth import AuthorizationFlow, ProfileStore, SessionProvider

    store = ProfileStore()

    # Create a profile (opens a browser)
    await AuthorizationFlow(store).authorize(
        "work",
        client_id="your-client-id",
        client_secret="your-client-secret",  # pragma: allowlist secret
    )

    # Get a session for API use
    session = await SessionProvider(store).get_session("work")
    ```
"""

from gwcli.auth.models import (
    REQUIRED_SCOPES,
    GlobalConfig,
    OAuthClientCredentials,
    ProfileConfig,
    ProfileCredentials,
    TokenSet,
    TokenStatus,
    merge_token_update,
)
from gwcli.auth.oauth_flow import AuthorizationFlow, AuthorizationState, CallbackListener
from gwcli.auth.profile_store import (
    ProfileStore,
    parse_client_file,
    resolve_active_profile,
)
from gwcli.auth.session import Session, SessionProvider

__all__ = [
    "AuthorizationFlow",
    "AuthorizationState",
    "CallbackListener",
    "GlobalConfig",
    "OAuthClientCredentials",
    "ProfileConfig",
    "ProfileCredentials",
    "ProfileStore",
    "REQUIRED_SCOPES",
    "Session",
    "SessionProvider",
    "TokenSet",
    "TokenStatus",
    "merge_token_update",
    "parse_client_file",
    "resolve_active_profile",
]
