"""Client configuration errors."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class ConfigError(RuntimeError):
    """Raised when client settings cannot be loaded or are incomplete."""

    @classmethod
    def invalid_settings(cls, path: Path, detail: str) -> ConfigError:
        """Return an error for a settings file that fails to decode."""
        return cls(f"could not decode {path}: {detail}")

    @classmethod
    def missing_access_token(cls) -> ConfigError:
        """Return an error when no access token is available."""
        return cls(
            "no access token configured; set MSTDN_ACCESS_TOKEN or add "
            "access_token to settings.json"
        )

    @classmethod
    def missing_home(cls) -> ConfigError:
        """Return an error when no configuration directory can be resolved."""
        return cls("cannot locate a configuration directory (HOME is unset)")
