"""
Search providers module.

Available providers:
- GitHubProvider: GitHub Code Search with token rotation
"""

from typing import Dict, Optional, Type

from ..core.config import GitHubConfig
from ..core.errors import ConfigError
from ..core.http import HttpClient
from .base_provider import BaseSearchProvider
from .github import GitHubProvider


PROVIDERS: Dict[str, Type[BaseSearchProvider]] = {
    "github": GitHubProvider,
}


def get_provider(
    name: str,
    config: Optional[GitHubConfig] = None,
    http_client: Optional[HttpClient] = None,
) -> BaseSearchProvider:
    """
    Build a provider by name.

    Raises:
        ConfigError: If the provider is unknown
    """
    if name.lower() not in PROVIDERS:
        raise ConfigError(f"Unknown provider: {name}")

    config = config or GitHubConfig()
    return GitHubProvider(
        tokens=config.tokens,
        base_url=config.base_url,
        rate_limit_ms=config.rate_limit_delay_ms,
        per_page=config.per_page,
        rate_limit_backoff=config.rate_limit_backoff,
        http_client=http_client,
    )


__all__ = [
    "BaseSearchProvider",
    "GitHubProvider",
    "PROVIDERS",
    "get_provider",
]
