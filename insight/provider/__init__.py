"""Model provider implementations for insight.

Example:
    from insight.config.schema import ProviderConfig
    from insight.provider import create_provider

    provider = create_provider(ProviderConfig(model="claude-sonnet-4-20250514"))
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from insight.core.errors import ConfigError
from insight.provider.anthropic import AnthropicProvider
from insight.provider.base import BaseProvider, validate_base_url

if TYPE_CHECKING:
    import httpx

    from insight.config.schema import ProviderConfig


def create_provider(
    config: ProviderConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BaseProvider:
    """Create a provider instance based on config.type.

    Raises:
        ConfigError: If the provider type is not supported.
        ProviderError: If the API key is missing or base_url is rejected.
    """
    if config.type == "anthropic":
        return AnthropicProvider(config, transport=transport)
    raise ConfigError(f"Unknown provider type: {config.type}")


__all__ = [
    "AnthropicProvider",
    "BaseProvider",
    "create_provider",
    "validate_base_url",
]
