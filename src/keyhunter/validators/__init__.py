"""
Key validators module.

Each validator inherits from BaseValidator and confirms liveness against
one pinned endpoint of its service.

Available validators:
- shodan, openai, claude, gemini, xai, openrouter, github (alias:
  github_token), google, stripe, slack
"""

from typing import Dict, Optional, Type

from ..core.config import ValidatorsConfig
from ..core.http import HttpClient
from .base_validator import BaseValidator, VALID_NOTE
from .llm import OpenAIValidator, ClaudeValidator, GeminiValidator, XAIValidator, OpenRouterValidator
from .services import ShodanValidator, GitHubValidator, GoogleValidator, StripeValidator, SlackValidator


VALIDATORS: Dict[str, Type[BaseValidator]] = {
    "shodan": ShodanValidator,
    "openai": OpenAIValidator,
    "claude": ClaudeValidator,
    "gemini": GeminiValidator,
    "xai": XAIValidator,
    "openrouter": OpenRouterValidator,
    "github": GitHubValidator,
    "google": GoogleValidator,
    "stripe": StripeValidator,
    "slack": SlackValidator,
}

ALIASES = {
    "github_token": "github",
}


def _build(
    validator_cls: Type[BaseValidator],
    config: ValidatorsConfig,
    http_client: Optional[HttpClient],
) -> BaseValidator:
    rate_limit_ms = config.rate_limit_ms(validator_cls.key_type, validator_cls.DEFAULT_RATE_LIMIT_MS)
    return validator_cls(rate_limit_ms=rate_limit_ms, http_client=http_client)


def all_validators(
    config: Optional[ValidatorsConfig] = None,
    http_client: Optional[HttpClient] = None,
) -> Dict[str, BaseValidator]:
    """Instantiate every validator, keyed by the key type it checks"""
    config = config or ValidatorsConfig()
    return {
        key_type: _build(validator_cls, config, http_client)
        for key_type, validator_cls in VALIDATORS.items()
    }


def get_validator(
    key_type: str,
    config: Optional[ValidatorsConfig] = None,
    http_client: Optional[HttpClient] = None,
) -> Optional[BaseValidator]:
    """Instantiate the validator for a key type (case-insensitive), None if unknown"""
    key_type = key_type.lower()
    validator_cls = VALIDATORS.get(ALIASES.get(key_type, key_type))
    if validator_cls is None:
        return None
    return _build(validator_cls, config or ValidatorsConfig(), http_client)


__all__ = [
    # Base classes
    "BaseValidator",
    "VALID_NOTE",
    # Validators
    "ShodanValidator",
    "OpenAIValidator",
    "ClaudeValidator",
    "GeminiValidator",
    "XAIValidator",
    "OpenRouterValidator",
    "GitHubValidator",
    "GoogleValidator",
    "StripeValidator",
    "SlackValidator",
    # Registry
    "VALIDATORS",
    "all_validators",
    "get_validator",
]
