"""
Detectors for LLM provider API keys (OpenAI, Anthropic, Google Gemini, xAI,
OpenRouter).
"""

from .base_detector import BaseDetector

CONFIG_EXTENSIONS = [".env", ".py", ".js", ".json", ".yaml", ".yml", ".txt", ".config"]
SOURCE_EXTENSIONS = [".env", ".py", ".js", ".json", ".yml", ".yaml", ".sh", ".go", ".rs", ".ts", ".txt"]


class OpenAIDetector(BaseDetector):
    """Legacy sk- keys (51 characters)"""

    name = "openai"
    PATTERNS = [r"sk-[a-zA-Z0-9]{48}"]
    SEARCH_QUERIES = [
        "OPENAI_API_KEY",
        "sk- AND openai",
        "openai AND api_key extension:env",
        "openai AND api_key extension:py",
        "openai AND api_key extension:json",
        "openai AND api_key extension:js",
        "openai AND api_key extension:ts",
        "\"sk-\" extension:env",
        "OPENAI_KEY",
    ]
    FILE_EXTENSIONS = SOURCE_EXTENSIONS

    def filter_key(self, key: str) -> bool:
        return key.startswith("sk-") and len(key) == 51


class ClaudeDetector(BaseDetector):
    name = "claude"
    PATTERNS = [r"sk-ant-api03-[A-Za-z0-9_-]{95,110}"]
    SEARCH_QUERIES = [
        "ANTHROPIC_API_KEY",
        "CLAUDE_API_KEY",
    ]
    FILE_EXTENSIONS = CONFIG_EXTENSIONS


class GeminiDetector(BaseDetector):
    """Google AI Studio keys share the AIza prefix with other Google keys"""

    name = "gemini"
    PATTERNS = [r"AIza[0-9A-Za-z\-_]{35}"]
    SEARCH_QUERIES = [
        "GEMINI_API_KEY",
        "generativelanguage.googleapis.com",
        "AIza extension:env",
        "AIza extension:py",
        "AIza extension:js",
        "gemini-pro",
        "gemini-flash",
        "GenerativeModel",
    ]
    FILE_EXTENSIONS = CONFIG_EXTENSIONS + [".toml"]


class XAIDetector(BaseDetector):
    name = "xai"
    PATTERNS = [r"xai-[0-9A-Za-z]{70,85}"]
    SEARCH_QUERIES = [
        "XAI_API_KEY",
        "GROK_API_KEY",
    ]
    FILE_EXTENSIONS = CONFIG_EXTENSIONS + [".toml"]


class OpenRouterDetector(BaseDetector):
    name = "openrouter"
    PATTERNS = [r"sk-or-v1-[a-f0-9]{64}"]
    SEARCH_QUERIES = ["OPENROUTER_API_KEY"]
    FILE_EXTENSIONS = SOURCE_EXTENSIONS
