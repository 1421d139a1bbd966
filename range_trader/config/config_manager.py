"""
Configuration management system.

Resolves configuration keys against an ordered chain of providers.
"""

import logging
import threading
from typing import Any, Optional

from .providers.base import ConfigProvider
from .providers.dotenv_provider import DotEnvProvider
from .providers.env_provider import EnvVarProvider

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true", "1", "yes", "on", "enabled")
_FALSE_VALUES = ("false", "0", "no", "off", "disabled")


class ConfigManager:
    """
    Manages configuration from multiple sources with fallback support.

    Default priority order:
    1. Environment variables
    2. .env file
    """

    def __init__(self, providers: Optional[list[ConfigProvider]] = None):
        """
        Initialize ConfigManager with providers.

        Args:
            providers: List of configuration providers in priority order.
                      If None, uses default providers.
        """
        if providers is None:
            self.providers: list[ConfigProvider] = [EnvVarProvider(), DotEnvProvider()]
        else:
            self.providers = list(providers)

        available_providers = [p.provider_name for p in self.providers if p.is_available()]
        if available_providers:
            logger.debug("Configuration providers available: %s", available_providers)
        else:
            logger.warning("No configuration providers available")

    def get(self, key: str, default: Optional[Any] = None) -> Optional[str]:
        """
        Get a configuration value from the first available provider.

        Args:
            key: Configuration key to retrieve
            default: Default value if key not found in any provider

        Returns:
            Configuration value or default
        """
        for provider in self.providers:
            if provider.is_available():
                value = provider.get(key)
                if value is not None:
                    return value

        return default

    def get_required(self, key: str) -> str:
        """
        Get a required configuration value. Raises exception if not found.

        Raises:
            ValueError: If configuration key is not found
        """
        value = self.get(key)
        if value is None:
            available = [p.provider_name for p in self.providers if p.is_available()]
            raise ValueError(
                f"Required configuration '{key}' not found. Checked providers: {available}"
            )
        return value

    def get_int(self, key: str, default: int = 0, strict: bool = False) -> int:
        """Get configuration value as integer.

        With ``strict`` an unparseable value raises ValueError instead of
        falling back to ``default``.
        """
        value = self.get(key, str(default))
        try:
            return int(value)
        except (TypeError, ValueError):
            if strict:
                raise ValueError(
                    f"Configuration '{key}' must be an integer, got {value!r}"
                ) from None
            return default

    def get_float(self, key: str, default: float = 0.0, strict: bool = False) -> float:
        """Get configuration value as float"""
        value = self.get(key, str(default))
        try:
            return float(value)
        except (TypeError, ValueError):
            if strict:
                raise ValueError(
                    f"Configuration '{key}' must be a number, got {value!r}"
                ) from None
            return default

    def get_bool(self, key: str, default: bool = False, strict: bool = False) -> bool:
        """Get configuration value as boolean"""
        value = self.get(key)
        if value is None:
            return default

        # Handle common boolean representations
        normalized = str(value).strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if strict and normalized not in _FALSE_VALUES:
            raise ValueError(f"Configuration '{key}' must be a boolean, got {value!r}")
        return False

    def get_list(
        self, key: str, delimiter: str = ",", default: Optional[list[str]] = None
    ) -> list[str]:
        """Get configuration value as list"""
        value = self.get(key)
        if value is None:
            return default or []

        return [item.strip() for item in value.split(delimiter) if item.strip()]

    def get_all(self) -> dict[str, Any]:
        """
        Get all configuration values from all providers.
        Higher priority providers override lower ones.
        """
        all_config: dict[str, Any] = {}
        for provider in reversed(self.providers):
            if provider.is_available():
                all_config.update(provider.get_all())
        return all_config

    def refresh(self) -> None:
        """Refresh all providers that support refreshing"""
        for provider in self.providers:
            if provider.is_available():
                provider.refresh()

    def add_provider(self, provider: ConfigProvider, priority: int = 0) -> None:
        """
        Add a new provider at the specified priority.

        Args:
            provider: Configuration provider to add
            priority: Position in provider list (0 = highest priority)
        """
        self.providers.insert(priority, provider)

    def get_config_sources(self) -> list[str]:
        """Get list of configuration sources."""
        return [provider.provider_name for provider in self.providers]


# Global configuration instance
_config_instance: Optional[ConfigManager] = None
_config_lock = threading.Lock()


def get_config() -> ConfigManager:
    """
    Get the global configuration instance.

    Returns:
        Global ConfigManager instance
    """
    global _config_instance

    if _config_instance is None:
        with _config_lock:
            # Double-check pattern to avoid race condition
            if _config_instance is None:
                _config_instance = ConfigManager()

    return _config_instance


def set_config(config: Optional[ConfigManager]) -> None:
    """
    Set the global configuration instance.

    Args:
        config: ConfigManager instance to use globally (None resets to default)
    """
    global _config_instance
    _config_instance = config
