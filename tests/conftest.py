"""
Shared fixtures: an in-memory HTTP client and a sleep recorder.

No test touches the network or sleeps for real.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from keyhunter.core.http import HttpResponse
from keyhunter.core.rate_limiter import RateLimiter


def json_response(status_code: int, payload: Any = None, headers: Optional[Dict[str, str]] = None) -> HttpResponse:
    body = b"" if payload is None else json.dumps(payload).encode("utf-8")
    return HttpResponse(status_code=status_code, body=body, headers=headers or {})


def text_response(status_code: int, text: str = "") -> HttpResponse:
    return HttpResponse(status_code=status_code, body=text.encode("utf-8"))


class FakeHttpClient:
    """
    Stands in for HttpClient.

    Responses are served from per-URL routes first (a URL substring mapped to
    a list of responses, the last one repeating), then from a FIFO queue.
    An exception instance in place of a response is raised instead.
    """

    def __init__(self, responses: Optional[List[Any]] = None):
        self.queue: List[Any] = list(responses or [])
        self.routes: List[tuple] = []
        self.requests: List[Dict[str, Any]] = []
        self.closed = False

    def add(self, *responses):
        self.queue.extend(responses)
        return self

    def route(self, url_part: str, *responses):
        self.routes.append((url_part, list(responses)))
        return self

    def _next_response(self, url: str):
        for url_part, responses in self.routes:
            if url_part in url:
                return responses.pop(0) if len(responses) > 1 else responses[0]
        if not self.queue:
            raise AssertionError(f"Unexpected request to {url}")
        return self.queue.pop(0)

    async def request(self, method, url, headers=None, params=None, json=None, data=None):
        self.requests.append({
            "method": method,
            "url": url,
            "headers": dict(headers or {}),
            "params": dict(params or {}),
            "json": json,
            "data": data,
        })
        response = self._next_response(url)
        if isinstance(response, Exception):
            raise response
        return response

    async def get(self, url, headers=None, params=None):
        return await self.request("GET", url, headers=headers, params=params)

    async def post(self, url, headers=None, json=None, data=None):
        return await self.request("POST", url, headers=headers, json=json, data=data)

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


@pytest.fixture
def http_client():
    return FakeHttpClient()


@pytest.fixture
def fast_limiter():
    return RateLimiter(requests_per_second=1000)


@pytest.fixture
def sleeps(monkeypatch):
    """Replace asyncio.sleep with a recorder; yields the recorded delays"""
    recorded: List[float] = []

    async def fake_sleep(delay, result=None):
        recorded.append(delay)
        return result

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end tests across components")
