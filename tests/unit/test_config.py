"""
Unit tests for configuration loading.

Run with: pytest tests/unit/test_config.py -v
"""

import pytest

from keyhunter.core.config import (
    HunterConfig,
    ValidatorsConfig,
    load_config,
    load_github_tokens,
    load_issues_token,
)
from keyhunter.core.errors import ConfigError


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No tokens in the environment and no config files in the working directory"""
    for name in ["GITHUB_TOKEN", "ISSUES_GITHUB_TOKEN"] + [f"GITHUB_TOKEN{i}" for i in range(1, 6)]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestTokens:
    """Test suite for token loading"""

    def test_numbered_tokens(self, clean_env, monkeypatch):
        """Test GITHUB_TOKEN1..5 are read in order, gaps skipped"""
        monkeypatch.setenv("GITHUB_TOKEN1", "t1")
        monkeypatch.setenv("GITHUB_TOKEN3", "t3")
        monkeypatch.setenv("GITHUB_TOKEN", "fallback")

        assert load_github_tokens() == ["t1", "t3"]

    def test_single_token_fallback(self, clean_env, monkeypatch):
        """Test GITHUB_TOKEN is used when no numbered tokens exist"""
        monkeypatch.setenv("GITHUB_TOKEN", "only")

        assert load_github_tokens() == ["only"]

    def test_no_tokens(self, clean_env):
        """Test an empty list when nothing is configured"""
        assert load_github_tokens() == []

    def test_issues_token_required(self, clean_env):
        """Test the issue token is mandatory"""
        with pytest.raises(ConfigError):
            load_issues_token()


class TestLoadConfig:
    """Test suite for load_config()"""

    def test_defaults_without_file(self, clean_env):
        """Test defaults apply when no config file exists"""
        config = load_config(load_env=False)

        assert isinstance(config, HunterConfig)
        assert config.github.rate_limit_delay_ms == 2000
        assert config.search.max_results == 1000
        assert config.search.auto_split is True
        assert config.output.directory == "results"

    def test_yaml_overrides(self, clean_env):
        """Test values from the default location override defaults"""
        (clean_env / ".keyhunter.yaml").write_text(
            "search:\n  query_delay: 0\nvalidators:\n  openai_rate_limit_ms: 50\n"
        )

        config = load_config(load_env=False)

        assert config.search.query_delay == 0
        assert config.validators.openai_rate_limit_ms == 50

    def test_tokens_from_environment(self, clean_env, monkeypatch):
        """Test tokens are filled from the environment when the file has none"""
        monkeypatch.setenv("GITHUB_TOKEN1", "abc")

        config = load_config(load_env=False)

        assert config.github.tokens == ["abc"]

    def test_missing_explicit_file(self, clean_env):
        """Test an explicit path that does not exist is an error"""
        with pytest.raises(ConfigError):
            load_config(clean_env / "nope.yaml", load_env=False)

    def test_invalid_yaml(self, clean_env):
        """Test malformed YAML is an error"""
        path = clean_env / "bad.yaml"
        path.write_text("search: [unclosed\n")

        with pytest.raises(ConfigError):
            load_config(path, load_env=False)

    def test_invalid_values(self, clean_env):
        """Test values failing validation are an error"""
        path = clean_env / "bad.yaml"
        path.write_text("github:\n  per_page: 500\n")

        with pytest.raises(ConfigError):
            load_config(path, load_env=False)

    def test_non_mapping(self, clean_env):
        """Test a YAML list at the top level is an error"""
        path = clean_env / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            load_config(path, load_env=False)


class TestValidatorsConfig:
    """Test suite for ValidatorsConfig"""

    def test_rate_limit_lookup(self):
        """Test per-service lookup with a default for unknown services"""
        config = ValidatorsConfig()

        assert config.rate_limit_ms("openrouter") == 3000
        assert config.rate_limit_ms("stripe") == 1500
        assert config.rate_limit_ms("unknown", default=42) == 42


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
