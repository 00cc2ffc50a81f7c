"""
Validators for platform and SaaS keys (Shodan, GitHub, Google, Stripe, Slack).
"""

from typing import Dict, Any, Optional

from ..core.errors import RateLimitError, ValidationFailedError
from ..core.http import HttpResponse
from ..core.models import ValidationResult
from .base_validator import BaseValidator


class ShodanValidator(BaseValidator):
    """
    Shodan serves an HTML page when it throttles, so a 200 that does not
    decode is inconclusive rather than valid.
    """

    key_type = "shodan"
    service_name = "Shodan"
    DEFAULT_RATE_LIMIT_MS = 1000
    URL = "https://api.shodan.io/api-info"

    async def send(self, key: str) -> HttpResponse:
        return await self.http_client.get(self.URL, params={"key": key})

    def extract_metadata(self, data: Any) -> Dict[str, Any]:
        metadata = {}
        for field in ("plan", "query_credits", "scan_credits", "https"):
            if data.get(field) is not None:
                metadata[field] = data[field]
        return metadata

    def on_unparsable_success(self, response: HttpResponse) -> ValidationResult:
        raise ValidationFailedError("Failed to parse Shodan API response (possible rate limit)")


class GitHubValidator(BaseValidator):
    key_type = "github"
    service_name = "GitHub"
    DEFAULT_RATE_LIMIT_MS = 2000
    URL = "https://api.github.com/user"

    async def send(self, key: str) -> HttpResponse:
        return await self.http_client.get(
            self.URL,
            headers={
                "Authorization": f"Bearer {key}",
                "Accept": "application/vnd.github+json",
            },
        )

    def extract_metadata(self, data: Any) -> Dict[str, Any]:
        metadata = {
            "login": data["login"],
            "user_id": data["id"],
        }
        if data.get("type") is not None:
            metadata["type"] = data["type"]
        return metadata

    def handle_status(self, response: HttpResponse) -> Optional[ValidationResult]:
        if response.status_code == 403:
            raise ValidationFailedError("GitHub API returned 403 - token may lack required scopes")
        return None


class GoogleValidator(BaseValidator):
    """
    Probes the YouTube Data API. A key that exists but has the API disabled
    is reported as inconclusive, not invalid.
    """

    key_type = "google"
    service_name = "Google"
    DEFAULT_RATE_LIMIT_MS = 2000
    URL = "https://www.googleapis.com/youtube/v3/search"
    UNAUTHORIZED_STATUSES = ()

    async def send(self, key: str) -> HttpResponse:
        return await self.http_client.get(
            self.URL,
            params={"part": "snippet", "maxResults": "1", "q": "test", "key": key},
        )

    def on_success(self, data: Any) -> ValidationResult:
        return ValidationResult.for_valid(self.key_type, {"api_enabled": "youtube_data_v3"})

    def on_unparsable_success(self, response: HttpResponse) -> ValidationResult:
        return ValidationResult.for_valid(self.key_type, {"api_enabled": "youtube_data_v3"})

    def _error_details(self, response: HttpResponse):
        error = self.error_body(response).get("error")
        if not isinstance(error, dict):
            raise ValidationFailedError(
                f"Google API returned {response.status_code} with unknown error"
            )
        return error.get("code"), str(error.get("message", ""))

    def handle_status(self, response: HttpResponse) -> Optional[ValidationResult]:
        if response.status_code == 400:
            code, message = self._error_details(response)
            if code == 400 and "API key not valid" in message:
                return ValidationResult.for_invalid(self.key_type, "API key not valid")
            if code == 403 or "not enabled" in message:
                raise ValidationFailedError("YouTube API not enabled - cannot validate key")
            raise ValidationFailedError(f"Google API error: {message}")

        if response.status_code == 403:
            code, message = self._error_details(response)
            if "API key not valid" in message or "invalid" in message:
                return ValidationResult.for_invalid(self.key_type, "Invalid API key")
            raise ValidationFailedError("API disabled or restricted - cannot validate")

        return None


class StripeValidator(BaseValidator):
    key_type = "stripe"
    service_name = "Stripe"
    DEFAULT_RATE_LIMIT_MS = 1500
    URL = "https://api.stripe.com/v1/balance"

    async def send(self, key: str) -> HttpResponse:
        return await self.http_client.get(
            self.URL,
            headers={"Authorization": f"Bearer {key}"},
        )

    def extract_metadata(self, data: Any) -> Dict[str, Any]:
        metadata = {}
        if data.get("livemode") is not None:
            metadata["livemode"] = data["livemode"]
        available = data.get("available") or []
        if available:
            metadata["currency"] = available[0]["currency"]
        return metadata


class SlackValidator(BaseValidator):
    """auth.test always answers 200; the verdict is the "ok" field"""

    key_type = "slack"
    service_name = "Slack"
    DEFAULT_RATE_LIMIT_MS = 1000
    URL = "https://slack.com/api/auth.test"
    UNAUTHORIZED_STATUSES = ()

    async def send(self, key: str) -> HttpResponse:
        return await self.http_client.post(
            self.URL,
            headers={
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/x-www-form-urlencoded",
            },
        )

    def on_success(self, data: Any) -> ValidationResult:
        if data.get("error") == "ratelimited":
            raise RateLimitError("Slack API rate limit exceeded")
        if not data["ok"]:
            return ValidationResult.for_invalid(self.key_type, data.get("error") or "Invalid token")

        metadata = {}
        for field in ("team", "user", "team_id"):
            if data.get(field) is not None:
                metadata[field] = data[field]
        return ValidationResult.for_valid(self.key_type, metadata)

    def on_unparsable_success(self, response: HttpResponse) -> ValidationResult:
        raise ValidationFailedError("Failed to parse Slack API response")
