"""Persistent client settings for the command-line tool.

Settings live in ``settings.json`` under the per-user configuration
directory:

- ``$HOME/.config/mstdn/settings.json`` on POSIX systems
- ``%APPDATA%/mstdn/settings.json`` on Windows

Environment variables take precedence over the file:

- ``MSTDN_SERVER``: Base URL of the instance
- ``MSTDN_ACCESS_TOKEN``: Bearer credential for API calls
"""

from __future__ import annotations

import os
import sys
import typing as typ
from pathlib import Path

import msgspec

from .errors import ConfigError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_DEFAULT_SERVER = "https://mstdn.jp"
_SETTINGS_FILENAME = "settings.json"
_DIR_MODE = 0o700
_FILE_MODE = 0o600


class ClientSettings(msgspec.Struct, kw_only=True):
    """Instance location and credentials used by every subcommand.

    Attributes
    ----------
    server : str
        Base URL of the Mastodon instance.
    client_id : str
        OAuth application identifier.
    client_secret : str
        OAuth application secret.
    access_token : str
        Bearer token produced by the authentication handshake.

    """

    server: str = _DEFAULT_SERVER
    client_id: str = ""
    client_secret: str = ""
    access_token: str = ""

    def require_access_token(self) -> str:
        """Return the access token or raise when none is configured."""
        token = self.access_token.strip()
        if not token:
            raise ConfigError.missing_access_token()
        return token


def settings_dir(env: cabc.Mapping[str, str] | None = None) -> Path:
    """Return the per-user configuration directory for the client."""
    environ = os.environ if env is None else env
    if sys.platform == "win32":
        appdata = environ.get("APPDATA", "")
        if not appdata:
            appdata = str(
                Path(environ.get("USERPROFILE", "")) / "Application Data" / "mstdn"
            )
        return Path(appdata) / "mstdn"

    home = environ.get("HOME", "")
    if not home:
        raise ConfigError.missing_home()
    return Path(home) / ".config" / "mstdn"


def settings_path(env: cabc.Mapping[str, str] | None = None) -> Path:
    """Return the location of ``settings.json``."""
    return settings_dir(env) / _SETTINGS_FILENAME


def load_settings(path: Path) -> ClientSettings:
    """Load settings from ``path``, returning defaults when it does not exist.

    Raises
    ------
    ConfigError
        If the file exists but is not a valid settings document.

    """
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return ClientSettings()

    try:
        return msgspec.json.decode(raw, type=ClientSettings)
    except msgspec.DecodeError as exc:
        raise ConfigError.invalid_settings(path, str(exc)) from exc


def save_settings(settings: ClientSettings, path: Path) -> None:
    """Write settings as indented JSON readable only by the current user."""
    path.parent.mkdir(mode=_DIR_MODE, parents=True, exist_ok=True)
    payload = msgspec.json.format(msgspec.json.encode(settings), indent=2)
    path.write_bytes(payload)
    path.chmod(_FILE_MODE)


def apply_env_overrides(
    settings: ClientSettings, env: cabc.Mapping[str, str] | None = None
) -> ClientSettings:
    """Return settings with ``MSTDN_SERVER``/``MSTDN_ACCESS_TOKEN`` applied."""
    environ = os.environ if env is None else env
    server = environ.get("MSTDN_SERVER", "").strip()
    token = environ.get("MSTDN_ACCESS_TOKEN", "").strip()
    return msgspec.structs.replace(
        settings,
        server=server or settings.server,
        access_token=token or settings.access_token,
    )


def load_client_settings(env: cabc.Mapping[str, str] | None = None) -> ClientSettings:
    """Load the settings file and apply environment overrides."""
    return apply_env_overrides(load_settings(settings_path(env)), env)


__all__ = [
    "ClientSettings",
    "apply_env_overrides",
    "load_client_settings",
    "load_settings",
    "save_settings",
    "settings_dir",
    "settings_path",
]
