"""
GitHub Code Search provider.

Key features:
1. Pagination - up to 10 pages of 100 results (GitHub's 1000 result ceiling)
2. Token rotation - a rate-limited page is retried once under the next token
3. Text matches - requests inline fragments so most hits need no download
"""

import asyncio
import math
from typing import List, Optional, Dict, Any, Tuple

import structlog

from ..core.errors import (
    HttpError,
    NotFoundError,
    RateLimitError,
    SearchProviderError,
    TransportError,
)
from ..core.http import HttpClient, HttpResponse
from ..core.models import SearchQuery, SearchResult
from ..core.rate_limiter import RateLimiter
from .base_provider import BaseSearchProvider

DEFAULT_BASE_URL = "https://api.github.com"
RAW_CONTENT_URL = "https://raw.githubusercontent.com"
TEXT_MATCH_MEDIA_TYPE = "application/vnd.github.text-match+json"
DEFAULT_BRANCH = "main"
MAX_PAGES = 10
PER_PAGE = 100

MALFORMED_PAGE_ERRORS = (ValueError, KeyError, TypeError, AttributeError)


class GitHubProvider(BaseSearchProvider):
    """
    Searches GitHub code with a pool of personal access tokens.

    The token cursor is shared by every search on this instance. It only
    moves forward when the token that was just rate-limited is still the
    current one, so concurrent callers never skip a token.

    Example:
        >>> provider = GitHubProvider(tokens=load_github_tokens())
        >>> results = await provider.search(SearchQuery("SHODAN_API_KEY extension:env"))
    """

    name = "github"

    def __init__(
        self,
        tokens: Optional[List[str]] = None,
        base_url: str = DEFAULT_BASE_URL,
        rate_limit_ms: int = 2000,
        per_page: int = PER_PAGE,
        rate_limit_backoff: float = 60.0,
        http_client: Optional[HttpClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """
        Initialize the provider.

        Args:
            tokens: GitHub tokens to rotate through (unauthenticated if empty)
            base_url: API root
            rate_limit_ms: Delay between page requests
            per_page: Results per page (max 100)
            rate_limit_backoff: Sleep before giving up when no token is left to rotate to
            http_client: Shared HTTP client (a private one is created if None)
            rate_limiter: Limiter awaited before every request
        """
        self.tokens = [t for t in (tokens or []) if t]
        self.base_url = base_url.rstrip("/")
        self.per_page = per_page
        self.rate_limit_backoff = rate_limit_backoff
        self.http_client = http_client or HttpClient()
        self._owns_client = http_client is None
        self.rate_limiter = rate_limiter or RateLimiter.with_delay(rate_limit_ms / 1000.0)

        self._cursor = 0
        self._token_lock = asyncio.Lock()

        # Statistics
        self.pages_fetched = 0
        self.rotations = 0

        self.logger = structlog.get_logger(__name__, provider=self.name)

        if self.tokens:
            self.logger.debug("github_tokens_loaded", count=len(self.tokens))
        else:
            self.logger.warning("github_unauthenticated", reason="no_tokens_configured")

    @property
    def max_results_per_query(self) -> int:
        return self.per_page

    async def _current_token(self) -> Tuple[int, Optional[str]]:
        async with self._token_lock:
            if not self.tokens:
                return self._cursor, None
            return self._cursor, self.tokens[self._cursor]

    async def _rotate_token(self, seen_index: int) -> bool:
        """
        Advance past a rate-limited token.

        Returns:
            True if the cursor moved (False if another caller already moved it)
        """
        async with self._token_lock:
            if self._cursor != seen_index:
                return False
            self._cursor = (self._cursor + 1) % len(self.tokens)
            self.rotations += 1
            self.logger.info(
                "github_token_rotated",
                token_index=self._cursor + 1,
                token_count=len(self.tokens),
            )
            return True

    def _headers(self, token: Optional[str]) -> Dict[str, str]:
        headers = {"Accept": TEXT_MATCH_MEDIA_TYPE}
        if token:
            headers["Authorization"] = f"token {token}"
        return headers

    async def _request_page(self, query: str, page: int) -> Tuple[int, HttpResponse]:
        index, token = await self._current_token()
        await self.rate_limiter.wait()
        response = await self.http_client.get(
            f"{self.base_url}/search/code",
            headers=self._headers(token),
            params={"q": query, "per_page": str(self.per_page), "page": str(page)},
        )
        self.pages_fetched += 1
        return index, response

    async def _fetch_page(self, query: str, page: int) -> HttpResponse:
        index, response = await self._request_page(query, page)
        if not response.is_rate_limited:
            return response

        if len(self.tokens) > 1:
            self.logger.warning("github_rate_limited", page=page, action="rotate_token")
            await self._rotate_token(index)
            _, response = await self._request_page(query, page)
            if response.is_rate_limited:
                raise RateLimitError("GitHub API rate limit exceeded on all retries")
            return response

        self.logger.warning(
            "github_rate_limited",
            page=page,
            action="backoff",
            delay=f"{self.rate_limit_backoff:.0f}s",
        )
        await asyncio.sleep(self.rate_limit_backoff)
        raise RateLimitError("GitHub API rate limit exceeded")

    @staticmethod
    def _parse_page(response: HttpResponse) -> Tuple[int, List[Dict[str, Any]]]:
        data = response.json()
        items = data["items"]
        if not isinstance(items, list):
            raise TypeError("items is not a list")
        return int(data.get("total_count", 0)), items

    @staticmethod
    def _to_result(item: Dict[str, Any]) -> SearchResult:
        repository = item["repository"]
        full_name = repository["full_name"]
        branch = repository.get("default_branch") or DEFAULT_BRANCH
        path = item["path"]

        download_url = item.get("download_url") or f"{RAW_CONTENT_URL}/{full_name}/{branch}/{path}"

        text_matches = None
        if item.get("text_matches") is not None:
            text_matches = [m["fragment"] for m in item["text_matches"]]

        return SearchResult(
            repository=full_name,
            file_path=path,
            file_url=item["html_url"],
            download_url=download_url,
            default_branch=branch,
            text_matches=text_matches,
        )

    def page_count(self, total_count: int, max_results: int) -> int:
        """Pages needed to cover min(total_count, max_results), between 1 and 10"""
        wanted = min(total_count, max_results)
        return max(1, min(MAX_PAGES, math.ceil(wanted / self.per_page)))

    async def search(self, query: SearchQuery) -> List[SearchResult]:
        self.logger.info("github_search_started", query=query.query)

        response = await self._fetch_page(query.query, 1)
        if not response.is_success:
            raise SearchProviderError(
                f"GitHub API returned {response.status_code}: {response.text()[:200]}"
            )

        try:
            total_count, items = self._parse_page(response)
            results = [self._to_result(item) for item in items]
        except MALFORMED_PAGE_ERRORS as e:
            raise SearchProviderError(f"Malformed GitHub search response: {e}") from e

        total_pages = self.page_count(total_count, query.max_results)
        self.logger.info("github_search_total", total_count=total_count, pages=total_pages)

        for page in range(2, total_pages + 1):
            if len(results) >= query.max_results:
                break

            try:
                response = await self._fetch_page(query.query, page)
            except (RateLimitError, TransportError) as e:
                self.logger.warning("github_page_failed", page=page, error=str(e))
                break

            if not response.is_success:
                self.logger.warning("github_page_failed", page=page, status=response.status_code)
                break

            try:
                _, items = self._parse_page(response)
                page_results = [self._to_result(item) for item in items]
            except MALFORMED_PAGE_ERRORS as e:
                self.logger.warning("github_page_malformed", page=page, error=str(e))
                break

            if not page_results:
                break

            results.extend(page_results)
            self.logger.debug("github_page_fetched", page=page, count=len(page_results), total=len(results))

        results = results[:query.max_results]
        self.logger.info("github_search_completed", query=query.query, results=len(results))
        return results

    async def get_file_content(self, result: SearchResult) -> str:
        self.logger.debug("github_download", file_path=result.file_path)

        await self.rate_limiter.wait()
        response = await self.http_client.get(result.download_url)

        if response.is_not_found:
            raise NotFoundError(f"File not found (likely deleted): {result.file_path}")
        if not response.is_success:
            raise HttpError(
                f"Failed to download file: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response.text()

    def get_statistics(self) -> Dict[str, int]:
        return {
            "pages_fetched": self.pages_fetched,
            "token_rotations": self.rotations,
            "tokens": len(self.tokens),
        }

    async def close(self):
        if self._owns_client:
            await self.http_client.close()
