"""JSON-based storage for gwcli profiles.

Storage Location: ~/.config/gwcli (override with GWCLI_CONFIG_DIR)

Layout:
    config.json                       global config (default profile, version)
    profiles/<name>/config.json       profile settings (email, createdAt)
    profiles/<name>/credentials.json  OAuth client + tokens

Tokens are stored without encryption. Directories are created 0700 and
files written 0600 so only the owning user can read them.
"""

import json
import logging
import os
import re
import shutil
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from gwcli.auth.models import (
    GlobalConfig,
    OAuthClientCredentials,
    ProfileConfig,
    ProfileCredentials,
    TokenStatus,
)
from gwcli.errors import (
    InvalidClientFileError,
    InvalidProfileNameError,
    NoProfileError,
    UnknownProfileError,
)

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV_VAR = "GWCLI_CONFIG_DIR"
PROFILE_ENV_VAR = "GWCLI_PROFILE"

CONFIG_FILENAME = "config.json"
CREDENTIALS_FILENAME = "credentials.json"
PROFILES_DIRNAME = "profiles"

_PROFILE_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,63}$")


def default_config_dir() -> Path:
    """Get the configuration root, honouring GWCLI_CONFIG_DIR.

    Returns:
        Path to the gwcli configuration directory.
    """
    override = os.environ.get(CONFIG_DIR_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "gwcli"


def validate_profile_name(name: str) -> str:
    """Ensure a profile name is safe to use as a directory name.

    Raises:
        InvalidProfileNameError: If the name is empty or contains unsafe characters.
    """
    if not name or not _PROFILE_NAME_RE.match(name):
        raise InvalidProfileNameError(name)
    return name


class ProfileStore:
    """Filesystem store for profile credentials and configuration.

    Each profile owns its own directory; the global config only holds the
    default profile's name.

    Attributes:
        config_dir: Root configuration directory.
        profiles_dir: Directory holding one sub-directory per profile.

    Example:
        ```python
        store = ProfileStore()

        store.save_credentials("work", credentials)
        store.set_default("work")

        creds = store.load_credentials("work")
        ```
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize the store.

        Args:
            config_dir: Custom root directory. Defaults to default_config_dir().
        """
        self.config_dir = config_dir or default_config_dir()
        self.profiles_dir = self.config_dir / PROFILES_DIRNAME
        self.config_path = self.config_dir / CONFIG_FILENAME

    def _ensure_dir(self, path: Path) -> None:
        """Create a directory with owner-only permissions if needed."""
        if not path.exists():
            path.mkdir(parents=True, mode=0o700)
        else:
            path.chmod(0o700)

    def _read_json(self, path: Path) -> dict[str, Any] | None:
        """Read a JSON record.

        Returns:
            Parsed record, or None if the file does not exist.

        Raises:
            OSError, ValueError: If the file exists but cannot be read or parsed.
        """
        if not path.exists():
            return None
        with open(path) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {path}")
        return data

    def _write_json(self, path: Path, model: BaseModel) -> None:
        """Write a model as JSON, replacing the file atomically.

        The temp file lives in the target directory so os.replace stays
        on one filesystem.
        """
        self._ensure_dir(path.parent)
        data = model.model_dump(mode="json", by_alias=True, exclude_none=True)

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def profile_dir(self, name: str) -> Path:
        """Get a profile's directory (the name is validated first)."""
        return self.profiles_dir / validate_profile_name(name)

    # ------------------------------------------------------------------
    # Global config
    # ------------------------------------------------------------------

    def load_global_config(self) -> GlobalConfig:
        """Load the global config, creating it with defaults if absent."""
        try:
            data = self._read_json(self.config_path)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable global config {self.config_path}: {e}")
            return GlobalConfig()

        if data is None:
            config = GlobalConfig()
            self.save_global_config(config)
            return config

        try:
            return GlobalConfig.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid global config {self.config_path}: {e}")
            return GlobalConfig()

    def save_global_config(self, config: GlobalConfig) -> None:
        """Persist the global config."""
        self._write_json(self.config_path, config)

    def get_default(self) -> str | None:
        """Get the default profile name, if one is set."""
        return self.load_global_config().default_profile

    def set_default(self, name: str) -> None:
        """Mark a profile as the default.

        Raises:
            UnknownProfileError: If the profile does not exist.
        """
        if not self.profile_exists(name):
            raise UnknownProfileError(name)

        config = self.load_global_config()
        config.default_profile = name
        self.save_global_config(config)
        logger.info(f"Default profile set to {name}")

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def list_profiles(self) -> set[str]:
        """List the names of all configured profiles.

        Returns:
            Set of profile names; empty if none are configured. Directories
            whose names are not valid profile names are skipped.
        """
        if not self.profiles_dir.is_dir():
            return set()

        names = set()
        for path in self.profiles_dir.iterdir():
            if not path.is_dir():
                continue
            if not _PROFILE_NAME_RE.match(path.name):
                logger.warning(f"Skipping profile directory with invalid name: {path.name!r}")
                continue
            names.add(path.name)
        return names

    def profile_exists(self, name: str) -> bool:
        """Check whether a profile namespace exists."""
        return self.profile_dir(name).is_dir()

    def load_credentials(self, name: str) -> ProfileCredentials | None:
        """Load a profile's OAuth client and tokens.

        Returns:
            ProfileCredentials if stored and valid, None otherwise.
        """
        path = self.profile_dir(name) / CREDENTIALS_FILENAME
        try:
            data = self._read_json(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable credentials for profile {name}: {e}")
            return None

        if data is None:
            return None

        try:
            return ProfileCredentials.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Invalid credentials for profile {name}: {e}")
            return None

    def save_credentials(self, name: str, credentials: ProfileCredentials) -> None:
        """Store a profile's OAuth client and tokens, creating the profile if needed."""
        self._write_json(self.profile_dir(name) / CREDENTIALS_FILENAME, credentials)

    def load_config(self, name: str) -> ProfileConfig | None:
        """Load a profile's settings, or None if absent or invalid."""
        path = self.profile_dir(name) / CONFIG_FILENAME
        try:
            data = self._read_json(path)
            return ProfileConfig.model_validate(data) if data is not None else None
        except (OSError, ValueError) as e:
            logger.warning(f"Invalid config for profile {name}: {e}")
            return None

    def save_config(self, name: str, config: ProfileConfig) -> None:
        """Store a profile's settings, creating the profile if needed."""
        self._write_json(self.profile_dir(name) / CONFIG_FILENAME, config)

    def remove_profile(self, name: str) -> bool:
        """Delete a profile and everything stored under it.

        Clears the default pointer if it referenced this profile.

        Returns:
            True if the profile was deleted, False if it didn't exist.
        """
        profile_dir = self.profile_dir(name)
        if not profile_dir.is_dir():
            return False

        shutil.rmtree(profile_dir)
        logger.info(f"Removed profile {name}")

        config = self.load_global_config()
        if config.default_profile == name:
            config.default_profile = None
            self.save_global_config(config)
        return True

    def get_status(self, name: str) -> TokenStatus:
        """Get the status of a profile's stored token."""
        stored = self.load_credentials(name)

        if stored is None:
            if (self.profile_dir(name) / CREDENTIALS_FILENAME).exists():
                return TokenStatus.INVALID
            return TokenStatus.MISSING

        if stored.tokens.is_expired():
            return TokenStatus.EXPIRED

        return TokenStatus.VALID


def resolve_active_profile(
    store: ProfileStore,
    explicit: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Resolve which profile a command should run under.

    Priority: explicit flag > GWCLI_PROFILE > stored default.

    Args:
        store: Profile store to consult.
        explicit: Profile passed on the command line, if any.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Name of an existing profile.

    Raises:
        NoProfileError: If nothing resolves.
        UnknownProfileError: If the resolved profile does not exist.
    """
    environ = os.environ if environ is None else environ
    name = explicit or environ.get(PROFILE_ENV_VAR) or store.get_default()

    if not name:
        raise NoProfileError()

    try:
        exists = store.profile_exists(name)
    except InvalidProfileNameError:
        exists = False
    if not exists:
        raise UnknownProfileError(name)

    return name


def parse_client_file(path: Path | str) -> OAuthClientCredentials:
    """Read OAuth client credentials from a Google client descriptor.

    Accepts both "installed" (desktop) and "web" client shapes.

    Raises:
        InvalidClientFileError: If the file is missing, unreadable, or malformed.
    """
    path = Path(path).expanduser()
    if not path.is_file():
        raise InvalidClientFileError(f"OAuth client file not found: {path}")

    try:
        with open(path) as f:
            content = json.load(f)
    except (OSError, ValueError) as e:
        raise InvalidClientFileError(f"Could not read OAuth client file {path}: {e}") from e

    creds = None
    if isinstance(content, dict):
        creds = content.get("installed") or content.get("web")
    if not isinstance(creds, dict):
        raise InvalidClientFileError(
            'Invalid OAuth client file. Expected "installed" or "web" credentials.'
        )

    try:
        return OAuthClientCredentials(
            client_id=creds.get("client_id", ""),
            client_secret=creds.get("client_secret", ""),
        )
    except ValidationError as e:
        raise InvalidClientFileError(
            "Invalid OAuth client file. client_id and client_secret are required."
        ) from e
