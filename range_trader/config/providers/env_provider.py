"""
Environment variable configuration provider.
"""

import os
from typing import Any, Optional

from .base import ConfigProvider


class EnvVarProvider(ConfigProvider):
    """Provider that reads configuration from environment variables"""

    def __init__(self, prefix: str = ""):
        # Only keys starting with the prefix are reported by get_all()
        self._prefix = prefix

    def get(self, key: str, default: Optional[Any] = None) -> Optional[str]:
        """Get configuration value from environment variables."""
        return os.getenv(key, default)

    def get_all(self) -> dict[str, Any]:
        return {k: v for k, v in os.environ.items() if k.startswith(self._prefix)}

    def is_available(self) -> bool:
        """Environment variables are always available"""
        return True

    @property
    def provider_name(self) -> str:
        return "Environment Variables"
