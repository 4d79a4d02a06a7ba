"""Configuration loading and validation."""

from insight.config.loader import load_config
from insight.config.schema import (
    CompactionConfig,
    Config,
    ProviderConfig,
    ServerConfig,
    SessionConfig,
    TokenLimitConfig,
)

__all__ = [
    "Config",
    "ProviderConfig",
    "CompactionConfig",
    "TokenLimitConfig",
    "SessionConfig",
    "ServerConfig",
    "load_config",
]
