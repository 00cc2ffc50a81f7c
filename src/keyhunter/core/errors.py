"""
Error taxonomy shared by every pipeline stage.

Only a genuine "invalid" verdict from a validator ends up in the report as
an invalid key. Everything raised from here is either retryable or
inconclusive, and the orchestrator counts it rather than turning it into a
verdict.
"""

from typing import Optional


class KeyHunterError(Exception):
    """Base exception for all key hunter errors"""
    pass


class TransportError(KeyHunterError):
    """Raised on connection, DNS, TLS or timeout failures"""
    pass


class HttpError(KeyHunterError):
    """Raised on an uncategorized non-2xx response"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(KeyHunterError):
    """Raised on 429 or a detected rate-limit condition (always retryable)"""
    pass


class NotFoundError(KeyHunterError):
    """Raised when a file disappeared since it was indexed"""
    pass


class ValidationFailedError(KeyHunterError):
    """Raised when a validator response is ambiguous or inconclusive"""
    pass


class ConfigError(KeyHunterError):
    """Raised on a bad or missing setting (fatal to the invoking command)"""
    pass


class SearchProviderError(KeyHunterError):
    """Raised on a malformed or unexpected search response"""
    pass
