"""
Validators for LLM provider keys.

All of them list models or account details, which costs nothing and never
consumes tokens.
"""

from typing import Dict, Any, List, Optional

from ..core.http import HttpResponse
from ..core.models import ValidationResult
from .base_validator import BaseValidator

SAMPLE_MODEL_COUNT = 3


def _model_metadata(models: List[Dict[str, Any]], name_field: str, fallback: Optional[str] = None) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {"model_count": len(models)}
    names = []
    for model in models[:SAMPLE_MODEL_COUNT]:
        if fallback and not model.get(name_field):
            names.append(model[fallback])
        else:
            names.append(model[name_field])
    if names:
        metadata["sample_models"] = ", ".join(names)
    return metadata


class OpenAIValidator(BaseValidator):
    key_type = "openai"
    service_name = "OpenAI"
    DEFAULT_RATE_LIMIT_MS = 1000
    URL = "https://api.openai.com/v1/models"

    async def send(self, key: str) -> HttpResponse:
        return await self.http_client.get(
            self.URL,
            headers={
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
        )

    def extract_metadata(self, data: Any) -> Dict[str, Any]:
        return _model_metadata(data["data"], "id")


class ClaudeValidator(BaseValidator):
    key_type = "claude"
    service_name = "Claude"
    DEFAULT_RATE_LIMIT_MS = 2000
    URL = "https://api.anthropic.com/v1/models"
    API_VERSION = "2023-06-01"
    INVALID_MESSAGE = "Unauthorized - invalid API key"

    async def send(self, key: str) -> HttpResponse:
        return await self.http_client.get(
            self.URL,
            headers={
                "x-api-key": key,
                "anthropic-version": self.API_VERSION,
            },
        )

    def extract_metadata(self, data: Any) -> Dict[str, Any]:
        models = data.get("data")
        if models is None:
            return {}
        return _model_metadata(models, "display_name", fallback="id")

    def unauthorized_message(self, response: HttpResponse) -> str:
        error = self.error_body(response).get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        return self.INVALID_MESSAGE


class GeminiValidator(BaseValidator):
    """Gemini answers an unknown key with 400 and a restricted or disabled one with 403"""

    key_type = "gemini"
    service_name = "Gemini"
    DEFAULT_RATE_LIMIT_MS = 2000
    URL = "https://generativelanguage.googleapis.com/v1beta/models"
    UNAUTHORIZED_STATUSES = (400,)
    INVALID_MESSAGE = "Invalid API key"

    async def send(self, key: str) -> HttpResponse:
        return await self.http_client.get(self.URL, params={"key": key})

    def extract_metadata(self, data: Any) -> Dict[str, Any]:
        models = data.get("models")
        if models is None:
            return {}
        return _model_metadata(models, "name")

    def handle_status(self, response: HttpResponse) -> Optional[ValidationResult]:
        if response.status_code == 403:
            return self.forbidden_verdict(response)
        return None


class XAIValidator(BaseValidator):
    key_type = "xai"
    service_name = "xAI"
    DEFAULT_RATE_LIMIT_MS = 1000
    URL = "https://api.x.ai/v1/api-key"
    UNAUTHORIZED_STATUSES = (400, 401)
    INVALID_MESSAGE = "Invalid API key"

    async def send(self, key: str) -> HttpResponse:
        return await self.http_client.get(
            self.URL,
            headers={
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
        )

    def extract_metadata(self, data: Any) -> Dict[str, Any]:
        metadata = {}
        for source, target in (("user_id", "user_id"), ("team_id", "team_id"), ("name", "key_name")):
            if data.get(source) is not None:
                metadata[target] = data[source]
        return metadata

    def unauthorized_message(self, response: HttpResponse) -> str:
        error = self.error_body(response).get("error")
        return error if isinstance(error, str) and error else self.INVALID_MESSAGE

    def handle_status(self, response: HttpResponse) -> Optional[ValidationResult]:
        if response.status_code == 403:
            return self.forbidden_verdict(response)
        return None


class OpenRouterValidator(BaseValidator):
    key_type = "openrouter"
    service_name = "OpenRouter"
    DEFAULT_RATE_LIMIT_MS = 3000
    URL = "https://openrouter.ai/api/v1/credits"
    INVALID_MESSAGE = "Invalid API key"

    async def send(self, key: str) -> HttpResponse:
        return await self.http_client.get(
            self.URL,
            headers={"Authorization": f"Bearer {key}"},
        )

    def extract_metadata(self, data: Any) -> Dict[str, Any]:
        credits = data["data"]
        total_credits = float(credits["total_credits"])
        total_usage = float(credits["total_usage"])
        return {
            "total_credits": total_credits,
            "total_usage": total_usage,
            "remaining_credits": total_credits - total_usage,
        }

    def handle_status(self, response: HttpResponse) -> Optional[ValidationResult]:
        if response.status_code == 403:
            return self.forbidden_verdict(response)
        return None
