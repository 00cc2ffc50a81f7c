"""
Key detectors module.

Each detector inherits from BaseDetector and knows the regexes and search
queries for one family of credentials.

Available detectors:
- shodan, openai, claude, aws, stripe, slack, google, gemini, xai,
  openrouter, github (alias: github_token), misc
"""

from typing import Dict, List, Optional, Type

from .base_detector import BaseDetector
from .llm import OpenAIDetector, ClaudeDetector, GeminiDetector, XAIDetector, OpenRouterDetector
from .cloud import AWSDetector, GoogleDetector, GitHubKeysDetector
from .services import ShodanDetector, StripeDetector, SlackDetector
from .misc import MiscDetector


DETECTORS: Dict[str, Type[BaseDetector]] = {
    "shodan": ShodanDetector,
    "openai": OpenAIDetector,
    "claude": ClaudeDetector,
    "aws": AWSDetector,
    "stripe": StripeDetector,
    "slack": SlackDetector,
    "google": GoogleDetector,
    "gemini": GeminiDetector,
    "xai": XAIDetector,
    "openrouter": OpenRouterDetector,
    "github": GitHubKeysDetector,
    "misc": MiscDetector,
}

ALIASES = {
    "github_token": "github",
}


def all_detectors() -> List[BaseDetector]:
    """Instantiate every detector in registry order"""
    return [detector_cls() for detector_cls in DETECTORS.values()]


def get_detector(name: str) -> Optional[BaseDetector]:
    """Instantiate a detector by name (case-insensitive), None if unknown"""
    name = name.lower()
    detector_cls = DETECTORS.get(ALIASES.get(name, name))
    return detector_cls() if detector_cls else None


__all__ = [
    # Base classes
    "BaseDetector",
    # Detectors
    "ShodanDetector",
    "OpenAIDetector",
    "ClaudeDetector",
    "AWSDetector",
    "StripeDetector",
    "SlackDetector",
    "GoogleDetector",
    "GeminiDetector",
    "XAIDetector",
    "OpenRouterDetector",
    "GitHubKeysDetector",
    "MiscDetector",
    # Registry
    "DETECTORS",
    "all_detectors",
    "get_detector",
]
