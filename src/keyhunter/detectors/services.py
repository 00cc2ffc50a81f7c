"""
Detectors for SaaS service keys (Shodan, Stripe, Slack).
"""

from .base_detector import BaseDetector
from .patterns import has_mixed_case, has_digits, looks_like_hash, has_min_entropy

CONFIG_EXTENSIONS = [".env", ".py", ".js", ".json", ".yaml", ".yml", ".txt", ".config"]

SHODAN_KEY_LENGTH = 32
SHODAN_MIN_ENTROPY = 4.0


class ShodanDetector(BaseDetector):
    """
    Shodan keys are bare 32-character alphanumeric tokens.

    The pattern alone matches any identifier of that length, so candidates
    must also look random: mixed case, at least one digit, not an MD5-style
    hex digest, and at least 4 bits of entropy per character.
    """

    name = "shodan"
    PATTERNS = [r"\b[A-Za-z0-9]{32}\b"]
    SEARCH_QUERIES = ["SHODAN_API_KEY"]
    FILE_EXTENSIONS = [".env", ".py", ".js", ".json", ".yml", ".yaml", ".sh", ".go", ".rs"]

    def filter_key(self, key: str) -> bool:
        if len(key) != SHODAN_KEY_LENGTH:
            return False
        if not has_mixed_case(key) or not has_digits(key):
            return False
        if looks_like_hash(key):
            return False
        return has_min_entropy(key, SHODAN_MIN_ENTROPY)


class StripeDetector(BaseDetector):
    name = "stripe"
    PATTERNS = [
        r"sk_live_[0-9a-zA-Z]{24}",
        r"rk_live_[0-9a-zA-Z]{24}",
    ]
    SEARCH_QUERIES = [
        "sk_live_",
        "rk_live_",
        "STRIPE_API_KEY",
        "stripe extension:env",
        "sk_live_ extension:py",
        "sk_live_ extension:js",
    ]
    FILE_EXTENSIONS = CONFIG_EXTENSIONS


class SlackDetector(BaseDetector):
    """Bot/user tokens and incoming webhook URLs"""

    name = "slack"
    PATTERNS = [
        r"(xox[pborsa]-[0-9]{12}-[0-9]{12}-[0-9]{12}-[a-z0-9]{32})",
        r"https://hooks\.slack\.com/services/T[a-zA-Z0-9_]{8}/B[a-zA-Z0-9_]{8}/[a-zA-Z0-9_]{24}",
    ]
    SEARCH_QUERIES = [
        "xoxp-",
        "xoxb-",
        "xoxa-",
        "SLACK_TOKEN",
        "hooks.slack.com/services",
        "slack extension:env",
        "xox extension:py",
    ]
    FILE_EXTENSIONS = CONFIG_EXTENSIONS
