"""
Configuration providers package
"""

from .base import ConfigProvider
from .dotenv_provider import DotEnvProvider
from .env_provider import EnvVarProvider
from .mapping_provider import MappingProvider

__all__ = ["ConfigProvider", "EnvVarProvider", "DotEnvProvider", "MappingProvider"]
