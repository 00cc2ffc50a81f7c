"""
Configuration loading.

Settings come from an optional YAML file validated by pydantic models;
secrets (GitHub tokens) come from the environment, with a local `.env`
file loaded first.
"""

import os
from pathlib import Path
from typing import List, Optional, Union

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG_PATHS = (
    "config/default.yaml",
    "default.yaml",
    ".keyhunter.yaml",
)

MAX_SEARCH_TOKENS = 5


class GitHubConfig(BaseModel):
    """Code search settings"""

    base_url: str = "https://api.github.com"
    rate_limit_delay_ms: int = Field(default=2000, ge=0)
    per_page: int = Field(default=100, ge=1, le=100)
    rate_limit_backoff: float = Field(
        default=60.0, ge=0.0, description="Sleep before giving up on a rate-limited search"
    )
    tokens: List[str] = Field(default_factory=list)


class ValidatorsConfig(BaseModel):
    """Per-service spacing between validation calls, in milliseconds"""

    shodan_rate_limit_ms: int = Field(default=1000, ge=0)
    openai_rate_limit_ms: int = Field(default=1000, ge=0)
    claude_rate_limit_ms: int = Field(default=2000, ge=0)
    gemini_rate_limit_ms: int = Field(default=2000, ge=0)
    xai_rate_limit_ms: int = Field(default=1000, ge=0)
    openrouter_rate_limit_ms: int = Field(default=3000, ge=0)
    github_rate_limit_ms: int = Field(default=2000, ge=0)
    google_rate_limit_ms: int = Field(default=2000, ge=0)
    stripe_rate_limit_ms: int = Field(default=1500, ge=0)
    slack_rate_limit_ms: int = Field(default=1000, ge=0)

    def rate_limit_ms(self, key_type: str, default: int = 1000) -> int:
        return getattr(self, f"{key_type}_rate_limit_ms", default)


class SearchConfig(BaseModel):
    """Hunt pacing"""

    max_results: int = Field(default=1000, ge=1)
    query_delay: float = Field(default=5.0, ge=0.0)
    subquery_delay: float = Field(default=1.0, ge=0.0)
    auto_split: bool = True


class OutputConfig(BaseModel):
    directory: str = "results"


class HunterConfig(BaseModel):
    """Root configuration"""

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    validators: ValidatorsConfig = Field(default_factory=ValidatorsConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


def load_github_tokens() -> List[str]:
    """
    Read search tokens from GITHUB_TOKEN1..GITHUB_TOKEN5.

    Falls back to a single GITHUB_TOKEN when none of the numbered variables
    are set.
    """
    tokens = []
    for index in range(1, MAX_SEARCH_TOKENS + 1):
        value = os.environ.get(f"GITHUB_TOKEN{index}", "").strip()
        if value:
            tokens.append(value)

    if not tokens:
        value = os.environ.get("GITHUB_TOKEN", "").strip()
        if value:
            tokens.append(value)

    return tokens


def load_issues_token() -> str:
    token = os.environ.get("ISSUES_GITHUB_TOKEN", "").strip()
    if not token:
        raise ConfigError("ISSUES_GITHUB_TOKEN must be set to file disclosure issues")
    return token


def _find_config_file() -> Optional[Path]:
    for candidate in DEFAULT_CONFIG_PATHS:
        path = Path(candidate)
        if path.is_file():
            return path
    return None


def load_config(path: Optional[Union[str, Path]] = None, load_env: bool = True) -> HunterConfig:
    """
    Load configuration from YAML and the environment.

    Args:
        path: Explicit config file (must exist); searches the default
            locations when None
        load_env: Load a local .env file before reading tokens

    Returns:
        Validated HunterConfig

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    if load_env:
        load_dotenv()

    if path is not None:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = _find_config_file()

    data = {}
    if config_path is not None:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config {config_path} must be a mapping")

        logger.debug("config_loaded", path=str(config_path))

    try:
        config = HunterConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    if not config.github.tokens:
        config.github.tokens = load_github_tokens()

    return config
