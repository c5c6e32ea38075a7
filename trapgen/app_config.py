"""Settings file handling using Dynaconf."""

import os
from pathlib import Path
from typing import Any, Mapping, Optional

from dynaconf import Dynaconf

DEFAULT_CONFIG_NAME = "trapgen.yaml"
ENVVAR_PREFIX = "TRAPGEN"


class AppConfig:
    """Optional YAML settings with ``TRAPGEN_`` environment overrides.

    With no path, ``trapgen.yaml`` (or ``data/trapgen.yaml``) is used when it
    exists; otherwise only environment variables apply. An explicit path that
    does not exist raises FileNotFoundError.
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        self.config_path = self._resolve_path(config_path)
        settings_files = [os.path.abspath(self.config_path)] if self.config_path else []
        self.settings = Dynaconf(
            settings_files=settings_files,
            envvar_prefix=ENVVAR_PREFIX,
            environments=False,
        )

    @staticmethod
    def _resolve_path(config_path: Optional[str]) -> Optional[str]:
        if config_path is not None:
            if not os.path.exists(config_path):
                raise FileNotFoundError(f"Config file {config_path} not found")
            return config_path

        for candidate in (Path(DEFAULT_CONFIG_NAME), Path("data") / DEFAULT_CONFIG_NAME):
            if candidate.exists():
                return str(candidate)
        return None

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by key."""
        return self.settings.get(key, default)

    def section(self, key: str) -> dict[str, Any]:
        """Return a top-level mapping as a plain dict, empty if missing."""
        value = self.get(key, {})
        if not isinstance(value, Mapping):
            return {}
        return {str(k).lower(): v for k, v in dict(value).items()}
