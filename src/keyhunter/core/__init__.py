"""
Core module - Data model, transport and shared infrastructure.

The pipeline coordinator lives in keyhunter.core.orchestrator; it is not
re-exported here because it depends on the detector, validator and provider
packages, which themselves build on this one.
"""

from .errors import (
    KeyHunterError,
    TransportError,
    HttpError,
    RateLimitError,
    NotFoundError,
    ValidationFailedError,
    ConfigError,
    SearchProviderError,
)
from .models import (
    SearchQuery,
    SearchResult,
    DetectedKey,
    ValidationResult,
    ValidatedKey,
    Statistics,
    HuntResults,
)
from .rate_limiter import RateLimiter, RateLimitConfig
from .http import HttpClient, HttpResponse
from .config import HunterConfig, load_config, load_github_tokens


__all__ = [
    # Errors
    "KeyHunterError",
    "TransportError",
    "HttpError",
    "RateLimitError",
    "NotFoundError",
    "ValidationFailedError",
    "ConfigError",
    "SearchProviderError",
    # Data model
    "SearchQuery",
    "SearchResult",
    "DetectedKey",
    "ValidationResult",
    "ValidatedKey",
    "Statistics",
    "HuntResults",
    # Rate limiting
    "RateLimiter",
    "RateLimitConfig",
    # Transport
    "HttpClient",
    "HttpResponse",
    # Configuration
    "HunterConfig",
    "load_config",
    "load_github_tokens",
]
