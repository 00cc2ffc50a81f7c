"""
Base Validator - Abstract base class for all key validators.

A validator confirms liveness with one authenticated request to a narrow,
low-cost endpoint of the key's service and classifies the response:

- 2xx -> valid, metadata extracted opportunistically
- the service's "unauthorized" status -> invalid, with the provider message
- 429 or rate-limit text -> RateLimitError (retryable, never invalid)
- 403 -> invalid only when the body confirms a bad key, otherwise inconclusive
- 5xx or anything unmapped -> ValidationFailedError (inconclusive)
- network failure -> TransportError

Design Pattern: Template Method
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, Tuple

import structlog

from ..core.errors import RateLimitError, ValidationFailedError
from ..core.http import HttpClient, HttpResponse
from ..core.models import ValidationResult
from ..core.rate_limiter import RateLimiter

VALID_NOTE = "Valid key (200 OK)"

# Raised while walking a decoded body whose shape is not what we expected
MALFORMED_BODY_ERRORS: Tuple[type, ...] = (ValueError, KeyError, TypeError, AttributeError, IndexError)


class BaseValidator(ABC):
    """
    Abstract base class for all key validators.

    Subclasses implement send() and usually extract_metadata(); status
    handling beyond the common taxonomy goes in handle_status().

    Example:
        >>> validator = OpenAIValidator()
        >>> result = await validator.validate("sk-...")
        >>> result.valid
        False
    """

    key_type: str = "base"
    service_name: str = "Base"
    DEFAULT_RATE_LIMIT_MS = 1000
    UNAUTHORIZED_STATUSES: Tuple[int, ...] = (401,)
    INVALID_MESSAGE = "Unauthorized - key is invalid or revoked"

    def __init__(
        self,
        rate_limit_ms: Optional[int] = None,
        http_client: Optional[HttpClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """
        Initialize the validator.

        Args:
            rate_limit_ms: Delay between validation calls (service default if None)
            http_client: Shared HTTP client (a private one is created if None)
            rate_limiter: Limiter awaited before each validation
        """
        self.rate_limit_ms = (
            self.DEFAULT_RATE_LIMIT_MS if rate_limit_ms is None else rate_limit_ms
        )
        self.http_client = http_client or HttpClient()
        self._owns_client = http_client is None
        self.rate_limiter = rate_limiter or RateLimiter.with_delay(self.rate_limit())

        # Statistics
        self.validated_count = 0
        self.valid_count = 0

        self.logger = structlog.get_logger(__name__, validator=self.key_type)

    def rate_limit(self) -> float:
        """Spacing between validation calls, in seconds"""
        return self.rate_limit_ms / 1000.0

    @abstractmethod
    async def send(self, key: str) -> HttpResponse:
        """Issue the liveness request for a key"""
        pass

    def extract_metadata(self, data: Any) -> Dict[str, Any]:
        """Pull service details out of a decoded 2xx body"""
        return {}

    def on_success(self, data: Any) -> ValidationResult:
        return ValidationResult.for_valid(self.key_type, self.extract_metadata(data))

    def on_unparsable_success(self, response: HttpResponse) -> ValidationResult:
        return ValidationResult.for_valid(self.key_type, {"note": VALID_NOTE})

    def unauthorized_message(self, response: HttpResponse) -> str:
        return self.INVALID_MESSAGE

    def handle_status(self, response: HttpResponse) -> Optional[ValidationResult]:
        """Service-specific verdicts for statuses outside the common taxonomy"""
        return None

    async def validate(self, key: str) -> ValidationResult:
        """
        Check whether a key is live.

        Returns:
            ValidationResult (valid, or invalid with the provider's message)

        Raises:
            RateLimitError: The service throttled us
            ValidationFailedError: The response was inconclusive
            TransportError: The request never completed
        """
        response = await self.send(key)
        result = self.classify(response)

        self.validated_count += 1
        if result.valid:
            self.valid_count += 1

        self.logger.debug(
            "key_validated",
            status=response.status_code,
            valid=result.valid,
        )
        return result

    def classify(self, response: HttpResponse) -> ValidationResult:
        status = response.status_code

        if response.is_success:
            try:
                return self.on_success(response.json())
            except MALFORMED_BODY_ERRORS:
                return self.on_unparsable_success(response)

        if status == 429 or "rate limit" in response.text().lower():
            raise RateLimitError(f"{self.service_name} API rate limit exceeded")

        if status in self.UNAUTHORIZED_STATUSES:
            return ValidationResult.for_invalid(self.key_type, self.unauthorized_message(response))

        result = self.handle_status(response)
        if result is not None:
            return result

        if status >= 500:
            raise ValidationFailedError(f"{self.service_name} API server error: HTTP {status}")
        raise ValidationFailedError(f"{self.service_name} API returned HTTP {status}")

    @staticmethod
    def error_body(response: HttpResponse) -> Dict[str, Any]:
        """Decoded error body, empty when it is not a JSON object"""
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def error_message(self, response: HttpResponse) -> str:
        """Provider error message from a JSON or plain-text error body"""
        body = self.error_body(response)
        error = body.get("error", body.get("message"))
        if isinstance(error, dict):
            return str(error.get("message", ""))
        if isinstance(error, str):
            return error
        return response.text()

    def forbidden_verdict(self, response: HttpResponse) -> ValidationResult:
        """
        Verdict for a 403.

        A 403 also covers disabled APIs and restricted keys, so only a body
        that names the key as invalid counts as invalid.
        """
        message = self.error_message(response)
        lowered = message.lower()
        if "not enabled" in lowered or "disabled" in lowered:
            raise ValidationFailedError(f"{self.service_name} API disabled or restricted - cannot validate")
        if "invalid" in lowered or "not valid" in lowered:
            return ValidationResult.for_invalid(self.key_type, message)
        raise ValidationFailedError(f"{self.service_name} API returned 403 - cannot validate")

    def get_statistics(self) -> Dict[str, int]:
        return {
            "validated": self.validated_count,
            "valid": self.valid_count,
        }

    async def close(self):
        if self._owns_client:
            await self.http_client.close()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"key_type={self.key_type}, "
            f"rate_limit={self.rate_limit():.1f}s)"
        )
