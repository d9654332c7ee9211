"""Exception taxonomy for gwcli.

Every failure the core can raise derives from GwcliError so the command
layer can catch one type at the top level, print the message, and exit
non-zero. The core itself never prints or exits.
"""


class GwcliError(Exception):
    """Base class for all gwcli errors."""


class NoProfileError(GwcliError):
    """No profile could be resolved (no flag, no env var, no default)."""

    def __init__(self) -> None:
        super().__init__(
            "No profile specified. Use --profile, set GWCLI_PROFILE, "
            "or run: gwcli profiles set-default <name>"
        )


class UnknownProfileError(GwcliError):
    """The named profile does not exist on disk."""

    def __init__(self, profile_name: str) -> None:
        self.profile_name = profile_name
        super().__init__(
            f'Profile "{profile_name}" does not exist. '
            f"Run: gwcli profiles add {profile_name} --client <path>"
        )


class DuplicateProfileError(GwcliError):
    """A profile with the requested name already exists."""

    def __init__(self, profile_name: str) -> None:
        self.profile_name = profile_name
        super().__init__(
            f'Profile "{profile_name}" already exists. '
            "Use a different name or remove the existing profile first."
        )


class InvalidProfileNameError(GwcliError, ValueError):
    """Profile name is empty or not safe to use as a directory name."""

    def __init__(self, profile_name: str) -> None:
        self.profile_name = profile_name
        super().__init__(
            f'Invalid profile name "{profile_name}". Use letters, digits, '
            "'.', '_' or '-', starting with a letter or digit (max 64 characters)."
        )


class InvalidClientFileError(GwcliError):
    """The OAuth client descriptor is missing, unreadable, or malformed."""


class AuthorizationDeniedError(GwcliError):
    """The provider redirected back with an error instead of a code."""

    def __init__(self, error: str) -> None:
        self.error = error
        super().__init__(f"OAuth authorization failed: {error}")


class AuthorizationTimeoutError(GwcliError):
    """No authorization callback arrived before the listener timed out."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            f"Timed out after {timeout:.0f}s waiting for the browser to complete authorization"
        )


class PortBindError(GwcliError):
    """Could not bind a local port for the OAuth callback listener."""


class TokenExchangeError(GwcliError):
    """The authorization code could not be exchanged for tokens."""


class MissingCredentialsError(GwcliError):
    """A session was requested for a profile with no stored credentials."""

    def __init__(self, profile_name: str) -> None:
        self.profile_name = profile_name
        super().__init__(
            f'No credentials found for profile "{profile_name}". '
            f"Run: gwcli profiles add {profile_name} --client <path>"
        )


class TokenRefreshError(GwcliError):
    """The stored refresh token is invalid/revoked or the refresh call failed."""

    def __init__(self, profile_name: str, reason: str) -> None:
        self.profile_name = profile_name
        super().__init__(
            f'Failed to refresh access token for profile "{profile_name}". '
            f"You may need to re-authorize: gwcli profiles remove {profile_name} && "
            f"gwcli profiles add {profile_name} --client <path>\n"
            f"Error: {reason}"
        )


class UnparseableDateTimeError(GwcliError, ValueError):
    """Input matched none of the recognized date/time shapes."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Unable to parse date/time: {value}")


class UnsupportedExportFormatError(GwcliError, ValueError):
    """Requested Drive export format has no known MIME type."""

    def __init__(self, export_format: str) -> None:
        self.export_format = export_format
        super().__init__(f"Unsupported export format: {export_format}")
