"""Layered settings: JSON files under config/ overridden by environment."""

import json
import os
from pathlib import Path
from typing import Any

from src.commons.settings.models import Settings

# Credential-like keys stay strings even when they look numeric
# (Cloudflare account ids and tokens can be all digits or hex).
_RAW_STRING_KEYS = frozenset(
    {
        "account_id",
        "api_key",
        "api_token",
        "password",
        "public_key",
        "secret_key",
        "username",
        "webhook_secret",
    }
)


class SettingsLoader:
    """Builds ``Settings`` from up to three layers.

    Later layers win, key by key:
    1. config/appsettings.json
    2. config/appsettings.{environment}.json
    3. VIDEO_PIPELINE__SECTION__KEY environment variables
    """

    ENV_PREFIX = "VIDEO_PIPELINE__"

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Resolve where configuration comes from.

        Args:
            config_dir: Directory containing configuration files.
                       Defaults to ./config.
            environment: Environment name (dev, staging, prod).
                        Defaults to VIDEO_PIPELINE__APP__ENVIRONMENT, then dev.
        """
        self.config_dir = config_dir or Path("config")
        self.environment = environment or os.getenv(
            f"{self.ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )

    def load(self) -> Settings:
        """Merge every layer and validate the result.

        Returns:
            Fully resolved Settings instance.
        """
        config = self._load_json("appsettings.json")
        config = self._deep_merge(
            config, self._load_json(f"appsettings.{self.environment}.json")
        )
        config = self._deep_merge(config, self._load_env_vars())
        return Settings(**config)

    def _load_env_vars(self) -> dict[str, Any]:
        """Collect VIDEO_PIPELINE__ environment variables as nested overrides.

        VIDEO_PIPELINE__STREAMING__ACCOUNT_ID=abc becomes
        {"streaming": {"account_id": "abc"}}.

        Returns:
            Nested dictionary of environment variable overrides.
        """
        result: dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(self.ENV_PREFIX):
                continue

            *parents, leaf = key[len(self.ENV_PREFIX) :].lower().split("__")
            current = result
            for part in parents:
                current = current.setdefault(part, {})

            if leaf in _RAW_STRING_KEYS:
                current[leaf] = value
            else:
                current[leaf] = self._coerce_value(value)

        return result

    def _coerce_value(self, value: str) -> Any:
        """Coerce a string environment variable to bool, number or JSON.

        Args:
            value: String value from environment.

        Returns:
            Coerced value, or the original string.
        """
        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        for cast in (int, float):
            try:
                return cast(value)
            except ValueError:
                continue

        # Lists such as CORS origins or the poll schedule
        if value.startswith(("[", "{")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _load_json(self, filename: str) -> dict[str, Any]:
        """Load a JSON config file, or an empty dict if it doesn't exist."""
        path = self.config_dir / filename
        if not path.exists():
            return {}
        with path.open(encoding="utf-8") as f:
            return dict(json.load(f))

    def _deep_merge(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Recursively merge ``override`` into a copy of ``base``."""
        result = base.copy()
        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result


_settings: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Process-wide settings, loaded on first use.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Discard the cached instance and load again.

    Returns:
        Settings instance.
    """
    global _settings  # noqa: PLW0603
    if _settings is None or reload:
        loader = SettingsLoader(config_dir=config_dir, environment=environment)
        _settings = loader.load()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance. Useful for testing."""
    global _settings  # noqa: PLW0603
    _settings = None
