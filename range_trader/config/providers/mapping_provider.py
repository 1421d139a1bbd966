"""
In-memory configuration provider.

Used for command-line overrides and for tests that need a fixed configuration.
"""

from collections.abc import Mapping
from typing import Any, Optional

from .base import ConfigProvider


class MappingProvider(ConfigProvider):
    """Provider backed by a plain dictionary of string values"""

    def __init__(self, values: Mapping[str, Any] | None = None, name: str = "overrides"):
        self._values: dict[str, str] = {
            k: str(v) for k, v in (values or {}).items() if v is not None
        }
        self._name = name

    def get(self, key: str, default: Optional[Any] = None) -> Optional[str]:
        return self._values.get(key, default)

    def get_all(self) -> dict[str, Any]:
        return dict(self._values)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = str(value)

    def is_available(self) -> bool:
        return bool(self._values)

    @property
    def provider_name(self) -> str:
        return self._name
