"""Interactive OAuth authorization for new gwcli profiles.

Binds a loopback listener on an OS-assigned port, sends the user's
browser to Google's consent screen with that port as the redirect, waits
for exactly one callback, exchanges the code for tokens, and stores the
result as a new profile.
"""

import asyncio
import concurrent.futures
import html
import logging
import os
import threading
import webbrowser
from collections.abc import Callable
from enum import Enum
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any
from urllib.parse import parse_qs, urlparse

from google_auth_oauthlib.flow import Flow

from gwcli.auth.models import (
    REQUIRED_SCOPES,
    ProfileConfig,
    ProfileCredentials,
    TokenSet,
)
from gwcli.auth.profile_store import ProfileStore, validate_profile_name
from gwcli.errors import (
    AuthorizationDeniedError,
    AuthorizationTimeoutError,
    DuplicateProfileError,
    PortBindError,
    TokenExchangeError,
)

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"  # nosec B105 - public endpoint

DEFAULT_OAUTH_HOST = "127.0.0.1"
DEFAULT_CALLBACK_TIMEOUT = 300.0  # 5 minutes

SUCCESS_PAGE = (
    b"<html><body><h1>Authentication Successful!</h1>"
    b"<p>You can close this window and return to the terminal.</p></body></html>"
)
FAILURE_PAGE = (
    "<html><body><h1>Authentication Failed</h1>"
    "<p>Error: {error}</p><p>You can close this window.</p></body></html>"
)


class AuthorizationState(str, Enum):
    """Progress of a single authorization attempt."""

    IDLE = "idle"
    PORT_BOUND = "port_bound"
    BROWSER_LAUNCHED = "browser_launched"
    WAITING_FOR_CALLBACK = "waiting_for_callback"
    CODE_RECEIVED = "code_received"
    ERROR_RECEIVED = "error_received"
    TOKEN_EXCHANGED = "token_exchanged"
    PERSISTED = "persisted"
    FAILED = "failed"


class _CallbackServer(HTTPServer):
    """HTTPServer carrying the single-result future its handler resolves."""

    result: "concurrent.futures.Future[str]"


class OAuthCallbackHandler(BaseHTTPRequestHandler):
    """HTTP handler for the OAuth redirect."""

    server: _CallbackServer

    def log_message(self, format: str, *args: Any) -> None:
        """Route HTTP server logs to the module logger."""
        logger.debug("callback listener: " + format, *args)

    def _respond(self, status: int, body: bytes, content_type: str = "text/html") -> None:
        self.send_response(status)
        self.send_header("Content-type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self) -> None:
        """Handle GET request from the OAuth redirect."""
        request_parsed = urlparse(self.path)
        result = self.server.result

        # Favicon and prefetch requests land here too
        if request_parsed.path != "/" or result.done():
            self._respond(404, b"Not Found", "text/plain")
            return

        query_params = parse_qs(request_parsed.query)

        if "error" in query_params:
            error = query_params["error"][0]
            page = FAILURE_PAGE.format(error=html.escape(error)).encode()
            self._respond(200, page)
            _resolve(result, error=AuthorizationDeniedError(error))
            return

        if "code" in query_params:
            self._respond(200, SUCCESS_PAGE)
            _resolve(result, code=query_params["code"][0])
            return

        self._respond(404, b"Not Found", "text/plain")


def _resolve(
    result: "concurrent.futures.Future[str]",
    code: str | None = None,
    error: BaseException | None = None,
) -> None:
    """Resolve the callback future once; later outcomes are ignored."""
    try:
        if error is not None:
            result.set_exception(error)
        else:
            result.set_result(code or "")
    except concurrent.futures.InvalidStateError:
        logger.debug("Ignoring callback after the flow was already resolved")


class CallbackListener:
    """One-shot loopback listener for the OAuth redirect.

    Use as a context manager: entering binds an ephemeral port and starts
    serving on a daemon thread; leaving always shuts the server down and
    closes its socket, whatever happened in between.

    Example:
        ```python
        with CallbackListener() as listener:
            open_browser(build_url(listener.redirect_uri))
            code = listener.wait()
        ```
    """

    def __init__(
        self,
        host: str = DEFAULT_OAUTH_HOST,
        timeout: float = DEFAULT_CALLBACK_TIMEOUT,
    ) -> None:
        self.host = host
        self.timeout = timeout
        self._server: _CallbackServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        """Port assigned by the OS."""
        if self._server is None:
            raise RuntimeError("Callback listener is not bound")
        return int(self._server.server_address[1])

    @property
    def redirect_uri(self) -> str:
        """Redirect URI pointing at this listener's root path."""
        return f"http://{self.host}:{self.port}/"

    @property
    def is_bound(self) -> bool:
        return self._server is not None

    def start(self) -> None:
        """Bind port 0 and start serving.

        Raises:
            PortBindError: If no local port could be bound.
        """
        try:
            server = _CallbackServer((self.host, 0), OAuthCallbackHandler)
        except OSError as e:
            raise PortBindError(f"Could not bind a local port for the OAuth callback: {e}") from e

        server.result = concurrent.futures.Future()
        self._server = server
        self._thread = threading.Thread(
            target=server.serve_forever,
            kwargs={"poll_interval": 0.1},
            name="gwcli-oauth-callback",
            daemon=True,
        )
        self._thread.start()
        logger.debug(f"OAuth callback listener bound on {self.host}:{self.port}")

    def wait(self) -> str:
        """Block until the callback delivers a code.

        Returns:
            The authorization code.

        Raises:
            AuthorizationDeniedError: If the provider redirected with an error.
            AuthorizationTimeoutError: If no callback arrived in time.
        """
        if self._server is None:
            raise RuntimeError("Callback listener is not bound")
        try:
            return self._server.result.result(timeout=self.timeout)
        except concurrent.futures.TimeoutError as e:
            raise AuthorizationTimeoutError(self.timeout) from e

    def cancel(self) -> None:
        """Abandon a pending wait(); it raises concurrent.futures.CancelledError."""
        if self._server is not None:
            self._server.result.cancel()

    def close(self) -> None:
        """Stop serving and release the port. Safe to call more than once."""
        server, thread = self._server, self._thread
        self._server = self._thread = None
        if server is None:
            return
        server.shutdown()
        server.server_close()
        if thread is not None:
            thread.join(timeout=5)
        logger.debug("OAuth callback listener closed")

    def __enter__(self) -> "CallbackListener":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class AuthorizationFlow:
    """Browser-based OAuth grant that creates a new profile.

    Attributes:
        store: Profile store receiving the new credentials.
        scopes: Scopes requested from Google.
        state: Current AuthorizationState of the last attempt.

    Example:
        ```python
        flow = AuthorizationFlow(ProfileStore())
        tokens = await flow.authorize("work", client_id, client_secret)
        ```
    """

    def __init__(
        self,
        store: ProfileStore,
        scopes: list[str] | None = None,
        open_browser: Callable[[str], Any] = webbrowser.open,
        notify: Callable[[str], None] | None = None,
        timeout: float = DEFAULT_CALLBACK_TIMEOUT,
        host: str = DEFAULT_OAUTH_HOST,
    ) -> None:
        """Initialize the flow.

        Args:
            store: Profile store to persist the new profile into.
            scopes: OAuth scopes to request. Uses REQUIRED_SCOPES if not specified.
            open_browser: Callable that opens a URL in the user's browser.
            notify: Callable receiving user-facing progress lines (the URL to
                open manually, for instance). Defaults to logging them.
            timeout: Seconds to wait for the browser callback.
            host: Loopback address for the callback listener.
        """
        self.store = store
        self.scopes = scopes or list(REQUIRED_SCOPES)
        self.open_browser = open_browser
        self.notify = notify or logger.info
        self.timeout = timeout
        self.host = host
        self.state = AuthorizationState.IDLE
        self._listener: CallbackListener | None = None

    def _transition(self, state: AuthorizationState) -> None:
        logger.debug(f"Authorization state: {self.state.value} -> {state.value}")
        self.state = state

    async def authorize(self, profile_name: str, client_id: str, client_secret: str) -> TokenSet:
        """Run the complete authorization flow for a new profile.

        Args:
            profile_name: Name of the profile to create.
            client_id: Google OAuth client ID.
            client_secret: Google OAuth client secret.

        Returns:
            The TokenSet stored for the new profile.

        Raises:
            InvalidProfileNameError: If the name is not filesystem-safe.
            DuplicateProfileError: If the profile already exists.
            ValueError: If client ID/secret not provided.
            PortBindError, AuthorizationDeniedError, AuthorizationTimeoutError,
            TokenExchangeError: If the flow fails.
        """
        validate_profile_name(profile_name)
        if self.store.profile_exists(profile_name):
            raise DuplicateProfileError(profile_name)

        if not client_id or not client_secret:
            raise ValueError("Client ID and secret required.")

        self.state = AuthorizationState.IDLE

        # Run the flow in an executor (it blocks on the browser)
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None, self._run_authorization, profile_name, client_id, client_secret
            )
        except asyncio.CancelledError:
            # Wake the executor thread so it can release the port
            if self._listener is not None:
                self._listener.cancel()
            raise

    def _create_flow(self, client_id: str, client_secret: str, redirect_uri: str) -> Flow:
        """Create the google-auth-oauthlib Flow for a loopback redirect."""
        client_config = {
            "installed": {
                "client_id": client_id,
                "client_secret": client_secret,
                "auth_uri": GOOGLE_AUTH_URI,
                "token_uri": GOOGLE_TOKEN_URI,
                "redirect_uris": [redirect_uri],
            }
        }
        return Flow.from_client_config(client_config, scopes=self.scopes, redirect_uri=redirect_uri)

    def _run_authorization(self, profile_name: str, client_id: str, client_secret: str) -> TokenSet:
        """Run the flow (blocking operation)."""
        try:
            with CallbackListener(host=self.host, timeout=self.timeout) as listener:
                self._listener = listener
                self._transition(AuthorizationState.PORT_BOUND)

                flow = self._create_flow(client_id, client_secret, listener.redirect_uri)
                auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent")

                self.notify("Opening browser for Google authorization...")
                self.notify(f"If the browser does not open, visit this URL:\n{auth_url}")
                self.open_browser(auth_url)
                self._transition(AuthorizationState.BROWSER_LAUNCHED)

                self._transition(AuthorizationState.WAITING_FOR_CALLBACK)
                try:
                    code = listener.wait()
                except AuthorizationDeniedError:
                    self._transition(AuthorizationState.ERROR_RECEIVED)
                    raise
                self._transition(AuthorizationState.CODE_RECEIVED)

            tokens = self._exchange_code(flow, code)
            self._transition(AuthorizationState.TOKEN_EXCHANGED)

            self._persist(profile_name, client_id, client_secret, tokens)
            self._transition(AuthorizationState.PERSISTED)
            logger.info(f"Authorized profile {profile_name}")
            return tokens
        except BaseException:
            self._transition(AuthorizationState.FAILED)
            raise

    def _exchange_code(self, flow: Flow, code: str) -> TokenSet:
        """Exchange the authorization code for tokens.

        Raises:
            TokenExchangeError: If the exchange fails or returns unusable tokens.
        """
        # Let a narrower grant through so the scope check below can name what is missing
        os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")
        try:
            token = flow.fetch_token(code=code)
        except Exception as e:
            raise TokenExchangeError(f"Failed to exchange authorization code: {e}") from e

        return token_set_from_response(token, self.scopes)

    def _persist(
        self, profile_name: str, client_id: str, client_secret: str, tokens: TokenSet
    ) -> None:
        """Write the new profile, making it the default if it is the only one."""
        self.store.save_credentials(
            profile_name,
            ProfileCredentials(client_id=client_id, client_secret=client_secret, tokens=tokens),
        )
        self.store.save_config(profile_name, ProfileConfig())

        if self.store.list_profiles() == {profile_name} and self.store.get_default() is None:
            self.store.set_default(profile_name)


def token_set_from_response(token: dict[str, Any], requested_scopes: list[str]) -> TokenSet:
    """Build a TokenSet from a token endpoint response.

    Args:
        token: Token dict as returned by OAuth2Session.fetch_token.
        requested_scopes: Scopes requested; used when the response omits them.

    Raises:
        TokenExchangeError: If the refresh token or a required scope is missing.
    """
    if not token.get("access_token"):
        raise TokenExchangeError("Token response did not include an access token")
    if not token.get("refresh_token"):
        raise TokenExchangeError(
            "Token response did not include a refresh token. "
            "Revoke gwcli's access in your Google account settings and try again."
        )

    scope = token.get("scope") or requested_scopes
    if not isinstance(scope, str):
        scope = " ".join(scope)

    expires_at = token.get("expires_at")
    tokens = TokenSet(
        access_token=token["access_token"],
        refresh_token=token["refresh_token"],
        scope=scope,
        token_type=token.get("token_type") or "Bearer",
        expiry_date=int(float(expires_at) * 1000) if expires_at else None,
    )

    missing = tokens.missing_scopes(requested_scopes)
    if missing:
        raise TokenExchangeError(f"Authorization did not grant required scopes: {', '.join(missing)}")
    return tokens
