"""
Detectors for cloud platform credentials (AWS, Google Cloud, GitHub).
"""

from .base_detector import BaseDetector

CONFIG_EXTENSIONS = [".env", ".py", ".js", ".json", ".yaml", ".yml", ".txt", ".config"]


class AWSDetector(BaseDetector):
    """Access key IDs and AppSync API keys"""

    name = "aws"
    PATTERNS = [
        r"((?:A3T[A-Z0-9]|AKIA|AGPA|AIDA|AROA|AIPA|ANPA|ANVA|ASIA)[A-Z0-9]{16})",
        r"da2-[a-z0-9]{26}",
    ]
    SEARCH_QUERIES = [
        "AKIA",
        "AWS_ACCESS_KEY_ID",
        "aws_access_key_id extension:env",
        "AKIA extension:py",
        "AKIA extension:js",
        "AKIA extension:json",
        "AWS_SECRET_ACCESS_KEY",
        "da2- AND appsync",
    ]
    FILE_EXTENSIONS = CONFIG_EXTENSIONS + [".ini"]


class GoogleDetector(BaseDetector):
    """API keys, OAuth client IDs, access tokens and service-account files"""

    name = "google"
    PATTERNS = [
        r"AIza[0-9A-Za-z\-_]{35}",
        r"[0-9]+-[0-9A-Za-z_]{32}\.apps\.googleusercontent\.com",
        r"ya29\.[0-9A-Za-z\-_]+",
        r"\"type\":\s*\"service_account\"",
    ]
    SEARCH_QUERIES = [
        "AIza",
        "GOOGLE_API_KEY",
        "GEMINI_API_KEY",
        "googleapis.com",
        "ya29.",
        "service_account",
        "AIza extension:env",
        "AIza extension:py",
        "AIza extension:js",
        "googleusercontent.com",
    ]
    FILE_EXTENSIONS = CONFIG_EXTENSIONS


class GitHubKeysDetector(BaseDetector):
    """Personal access, OAuth, app and refresh tokens"""

    name = "github"
    PATTERNS = [
        r"[gG][iI][tT][hH][uU][bB].*['|\"][0-9a-zA-Z]{35,40}['|\"]",
        r"ghp_[0-9a-zA-Z]{36}",
        r"gho_[0-9a-zA-Z]{36}",
        r"(ghu|ghs)_[0-9a-zA-Z]{36}",
        r"ghr_[0-9a-zA-Z]{36}",
    ]
    SEARCH_QUERIES = ["GITHUB_TOKEN"]
    FILE_EXTENSIONS = CONFIG_EXTENSIONS + [".sh"]
