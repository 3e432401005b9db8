"""Configuration loader for the token interceptor

Loads configuration from multiple sources with the following priority:
1. Environment variables, TOKEN_INTERCEPT_ prefixed names first (highest priority)
2. .env file
3. Hardcoded defaults (lowest priority)
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "TOKEN_INTERCEPT_"


class ConfigLoader:
    """Resolves settings from the environment, a .env file and defaults"""

    def __init__(self, env_path: Optional[str] = None, prefix: str = ENV_PREFIX):
        """Initialize the config loader

        Args:
            env_path: Optional path to .env file.
                     Defaults to '.env' in the current directory.
            prefix: Prefix checked before the bare variable name, so the
                    interceptor settings can be namespaced in shared environments
        """
        self.env_path = Path(env_path) if env_path else Path(".env")
        self.prefix = prefix
        self._load_env_file()

    def _load_env_file(self):
        if self.env_path.exists():
            load_dotenv(dotenv_path=self.env_path)
            logger.debug(f"Loaded environment variables from {self.env_path}")
        else:
            logger.debug(f".env file not found at {self.env_path}, using environment variables and defaults only")

    def _lookup(self, env_var: str) -> Optional[str]:
        if self.prefix:
            value = os.getenv(f"{self.prefix}{env_var}")
            if value is not None:
                return value
        return os.getenv(env_var)

    def get(self, env_var: str, default: Any) -> Any:
        """Get a configuration value, coerced to the type of the default

        Args:
            env_var: Setting name, looked up with and without the prefix
            default: Default value if not found in environment

        Returns:
            The configuration value from environment or default
        """
        env_value = self._lookup(env_var)
        if env_value is None:
            return default
        return self._coerce(env_var, env_value, default)

    @staticmethod
    def _coerce(env_var: str, env_value: str, default: Any) -> Any:
        # bool before int, bool is an int subclass
        if isinstance(default, bool):
            return env_value.strip().lower() in ('true', '1', 'yes', 'on')

        for kind in (int, float):
            if isinstance(default, kind):
                try:
                    return kind(env_value)
                except ValueError:
                    logger.warning(
                        f"Failed to parse {env_var}={env_value} as {kind.__name__}, using default: {default}"
                    )
                    return default

        return env_value


_config_loader = None

def get_config_loader() -> ConfigLoader:
    """Get or create the global ConfigLoader instance"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader
