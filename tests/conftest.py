"""Shared pytest fixtures for gwcli tests.

This module provides reusable fixtures for profile storage, token sets,
fake sessions, and mocked Google REST endpoints.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest

from gwcli.auth.models import REQUIRED_SCOPES, ProfileConfig, ProfileCredentials, TokenSet
from gwcli.auth.profile_store import ProfileStore


def epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def valid_tokens() -> TokenSet:
    """Create a TokenSet that expires in an hour."""
    return TokenSet(
        access_token="test_access_token_abc123",
        refresh_token="test_refresh_token_xyz789",
        scope=" ".join(REQUIRED_SCOPES),
        token_type="Bearer",
        expiry_date=epoch_ms(datetime.now(timezone.utc) + timedelta(hours=1)),
    )


@pytest.fixture
def expired_tokens() -> TokenSet:
    """Create a TokenSet that expired an hour ago."""
    return TokenSet(
        access_token="expired_access_token",
        refresh_token="test_refresh_token",
        scope=" ".join(REQUIRED_SCOPES),
        expiry_date=epoch_ms(datetime.now(timezone.utc) - timedelta(hours=1)),
    )


@pytest.fixture
def profile_credentials(valid_tokens: TokenSet) -> ProfileCredentials:
    """Create stored credentials for a profile."""
    return ProfileCredentials(
        client_id="test-client-id.apps.googleusercontent.com",
        client_secret="test-client-secret",  # pragma: allowlist secret
        tokens=valid_tokens,
    )


# =============================================================================
# Profile Store Fixtures
# =============================================================================


@pytest.fixture
def store(tmp_path: Path) -> ProfileStore:
    """Create a ProfileStore rooted in a temporary directory."""
    return ProfileStore(config_dir=tmp_path / "gwcli")


@pytest.fixture
def saved_profile(store: ProfileStore, profile_credentials: ProfileCredentials) -> str:
    """Store a complete "work" profile and return its name."""
    store.save_credentials("work", profile_credentials)
    store.save_config("work", ProfileConfig(email="me@work.example"))
    return "work"


@pytest.fixture
def client_file(tmp_path: Path) -> Path:
    """Write a Google "installed" OAuth client descriptor."""
    path = tmp_path / "client_secret.json"
    path.write_text(
        '{"installed": {"client_id": "cid.apps.googleusercontent.com",'
        ' "client_secret": "csecret", "redirect_uris": ["http://localhost"]}}'
    )
    return path


# =============================================================================
# HTTP Fixtures
# =============================================================================


class FakeSession:
    """Token source that records forced refreshes."""

    def __init__(self, tokens: list[str] | None = None) -> None:
        self._tokens = tokens or ["token-1", "token-2"]
        self.calls: list[bool] = []

    async def get_access_token(self, force_refresh: bool = False) -> str:
        self.calls.append(force_refresh)
        index = min(sum(self.calls), len(self._tokens) - 1)
        return self._tokens[index]


@pytest.fixture
def fake_session() -> FakeSession:
    """Create a fake session handing out "token-1", then "token-2" after a refresh."""
    return FakeSession()


@pytest.fixture
def http_client_factory() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build httpx clients backed by a request handler instead of the network."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_env(monkeypatch: pytest.MonkeyPatch, store: ProfileStore) -> ProfileStore:
    """Point the CLI at the temporary store and clear profile overrides."""
    monkeypatch.setenv("GWCLI_CONFIG_DIR", str(store.config_dir))
    monkeypatch.delenv("GWCLI_PROFILE", raising=False)
    monkeypatch.delenv("GWCLI_LOG_LEVEL", raising=False)
    return store
