"""
HTTP transport shared by the search provider, validators and issue client.

A thin wrapper over aiohttp that buffers the whole response body and maps
network-level failures to TransportError. Status codes are never turned into
exceptions here; each caller owns its own status policy.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

import aiohttp
import structlog

from .errors import TransportError

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "KEYHUNTER-Security-Scanner"


@dataclass
class HttpResponse:
    """Buffered HTTP response"""
    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code in (403, 429)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON (raises ValueError when it is not JSON)"""
        return json.loads(self.body)


class HttpClient:
    """
    Async HTTP client with a lazily created session and a per-call timeout.

    Example:
        >>> async with HttpClient() as client:
        ...     response = await client.get("https://api.github.com/user")
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, user_agent: str = USER_AGENT):
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.user_agent = user_agent
        self._session: Optional[aiohttp.ClientSession] = None

        self.logger = structlog.get_logger(__name__)

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
            )
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        data: Optional[Any] = None,
    ) -> HttpResponse:
        """
        Perform a request and buffer the response.

        Raises:
            TransportError: On connection, DNS, TLS or timeout failure
        """
        session = self._get_session()
        try:
            async with session.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json,
                data=data,
                allow_redirects=True,
            ) as response:
                body = await response.read()
                self.logger.debug(
                    "http_request",
                    method=method,
                    url=str(response.url.with_query(None)),
                    status=response.status,
                )
                return HttpResponse(
                    status_code=response.status,
                    body=body,
                    headers=dict(response.headers),
                )
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request to {url} timed out") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request to {url} failed: {e}") from e

    async def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> HttpResponse:
        return await self.request("GET", url, headers=headers, params=params)

    async def post(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        json: Optional[Any] = None,
        data: Optional[Any] = None,
    ) -> HttpResponse:
        return await self.request("POST", url, headers=headers, json=json, data=data)

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
