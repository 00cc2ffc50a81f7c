"""
Unit tests for the GitHub code search provider.

Run with: pytest tests/unit/test_github_provider.py -v
"""

import pytest

from keyhunter.core.errors import (
    HttpError,
    NotFoundError,
    RateLimitError,
    SearchProviderError,
    TransportError,
)
from keyhunter.core.models import SearchQuery, SearchResult
from keyhunter.providers import GitHubProvider, get_provider
from keyhunter.core.config import GitHubConfig
from keyhunter.core.errors import ConfigError

from conftest import FakeHttpClient, json_response, text_response


def item(index: int, download_url=None, fragments=None, branch="master"):
    data = {
        "path": f"src/file_{index}.py",
        "html_url": f"https://github.com/octo/repo/blob/{branch}/src/file_{index}.py",
        "repository": {"full_name": "octo/repo", "default_branch": branch},
    }
    if download_url is not None:
        data["download_url"] = download_url
    if fragments is not None:
        data["text_matches"] = [{"fragment": f} for f in fragments]
    return data


def page(total_count: int, start: int, count: int):
    return json_response(200, {
        "total_count": total_count,
        "items": [item(i) for i in range(start, start + count)],
    })


def make_provider(http_client, fast_limiter, tokens=None, **kwargs):
    return GitHubProvider(
        tokens=tokens if tokens is not None else ["t1"],
        http_client=http_client,
        rate_limiter=fast_limiter,
        rate_limit_backoff=0,
        **kwargs,
    )


class TestPagination:
    """Test suite for search pagination"""

    def test_page_count(self, fast_limiter):
        """Test pages are clamped between 1 and 10"""
        provider = make_provider(FakeHttpClient(), fast_limiter)

        assert provider.page_count(0, 1000) == 1
        assert provider.page_count(250, 1000) == 3
        assert provider.page_count(5000, 1000) == 10
        assert provider.page_count(5000, 150) == 2

    @pytest.mark.asyncio
    async def test_fetches_all_pages(self, fast_limiter):
        """Test 250 results take three page requests"""
        http_client = FakeHttpClient([page(250, 0, 100), page(250, 100, 100), page(250, 200, 50)])
        provider = make_provider(http_client, fast_limiter)

        results = await provider.search(SearchQuery("OPENAI_API_KEY"))

        assert len(results) == 250
        assert [r["params"]["page"] for r in http_client.requests] == ["1", "2", "3"]
        assert http_client.requests[0]["params"]["q"] == "OPENAI_API_KEY"
        assert http_client.requests[0]["params"]["per_page"] == "100"

    @pytest.mark.asyncio
    async def test_truncates_to_max_results(self, fast_limiter):
        """Test results never exceed the requested maximum"""
        http_client = FakeHttpClient([page(5000, 0, 100), page(5000, 100, 100)])
        provider = make_provider(http_client, fast_limiter)

        results = await provider.search(SearchQuery("x", max_results=150))

        assert len(results) == 150
        assert len(http_client.requests) == 2

    @pytest.mark.asyncio
    async def test_stops_on_empty_page(self, fast_limiter):
        """Test an empty page ends pagination early"""
        http_client = FakeHttpClient([page(300, 0, 100), page(300, 100, 0)])
        provider = make_provider(http_client, fast_limiter)

        results = await provider.search(SearchQuery("x"))

        assert len(results) == 100
        assert len(http_client.requests) == 2

    @pytest.mark.asyncio
    async def test_first_page_error_raises(self, fast_limiter):
        """Test a failing first page fails the search"""
        provider = make_provider(FakeHttpClient([text_response(422, "Validation Failed")]), fast_limiter)

        with pytest.raises(SearchProviderError):
            await provider.search(SearchQuery("x"))

    @pytest.mark.asyncio
    async def test_malformed_first_page_raises(self, fast_limiter):
        """Test a first page without items is a provider error"""
        provider = make_provider(FakeHttpClient([json_response(200, {"total_count": 3})]), fast_limiter)

        with pytest.raises(SearchProviderError):
            await provider.search(SearchQuery("x"))

    @pytest.mark.asyncio
    async def test_later_page_error_keeps_partial_results(self, fast_limiter):
        """Test failures after page one return what was collected"""
        http_client = FakeHttpClient([
            page(300, 0, 100),
            text_response(500),
        ])
        provider = make_provider(http_client, fast_limiter)

        results = await provider.search(SearchQuery("x"))

        assert len(results) == 100

    @pytest.mark.asyncio
    async def test_later_page_transport_error_keeps_partial_results(self, fast_limiter):
        """Test a dropped connection mid-search keeps earlier pages"""
        http_client = FakeHttpClient([page(300, 0, 100), TransportError("reset")])
        provider = make_provider(http_client, fast_limiter)

        results = await provider.search(SearchQuery("x"))

        assert len(results) == 100


class TestTokenRotation:
    """Test suite for rate-limit handling"""

    @pytest.mark.asyncio
    async def test_rotates_to_next_token(self, fast_limiter):
        """Test a rate-limited page is retried once under the next token"""
        http_client = FakeHttpClient([text_response(403), page(1, 0, 1)])
        provider = make_provider(http_client, fast_limiter, tokens=["t1", "t2"])

        results = await provider.search(SearchQuery("x"))

        assert len(results) == 1
        assert http_client.requests[0]["headers"]["Authorization"] == "token t1"
        assert http_client.requests[1]["headers"]["Authorization"] == "token t2"
        assert provider.get_statistics()["token_rotations"] == 1

    @pytest.mark.asyncio
    async def test_rotation_wraps_around(self, fast_limiter):
        """Test the cursor returns to the first token after the last"""
        provider = make_provider(FakeHttpClient(), fast_limiter, tokens=["t1", "t2"])

        assert await provider._rotate_token(0) is True
        assert await provider._rotate_token(1) is True

        assert (await provider._current_token()) == (0, "t1")

    @pytest.mark.asyncio
    async def test_stale_rotation_is_ignored(self, fast_limiter):
        """Test a caller holding an old cursor does not skip a token"""
        provider = make_provider(FakeHttpClient(), fast_limiter, tokens=["t1", "t2", "t3"])

        assert await provider._rotate_token(0) is True
        assert await provider._rotate_token(0) is False

        assert (await provider._current_token()) == (1, "t2")

    @pytest.mark.asyncio
    async def test_all_tokens_limited(self, fast_limiter):
        """Test a second rate limit after rotating fails the search"""
        http_client = FakeHttpClient([text_response(429), text_response(429)])
        provider = make_provider(http_client, fast_limiter, tokens=["t1", "t2"])

        with pytest.raises(RateLimitError):
            await provider.search(SearchQuery("x"))

    @pytest.mark.asyncio
    async def test_single_token_backs_off(self, fast_limiter, sleeps):
        """Test one token sleeps the backoff and then gives up"""
        http_client = FakeHttpClient([text_response(403)])
        provider = GitHubProvider(
            tokens=["t1"],
            http_client=http_client,
            rate_limiter=fast_limiter,
            rate_limit_backoff=60.0,
        )

        with pytest.raises(RateLimitError):
            await provider.search(SearchQuery("x"))

        assert 60.0 in sleeps

    @pytest.mark.asyncio
    async def test_unauthenticated_has_no_authorization(self, fast_limiter):
        """Test no Authorization header is sent without tokens"""
        http_client = FakeHttpClient([page(0, 0, 0)])
        provider = make_provider(http_client, fast_limiter, tokens=[])

        await provider.search(SearchQuery("x"))

        assert "Authorization" not in http_client.requests[0]["headers"]
        assert http_client.requests[0]["headers"]["Accept"] == "application/vnd.github.text-match+json"


class TestResultMapping:
    """Test suite for search item conversion"""

    def test_download_url_fallback(self):
        """Test raw URLs are built from the default branch"""
        result = GitHubProvider._to_result(item(1, branch="develop"))

        assert result.download_url == "https://raw.githubusercontent.com/octo/repo/develop/src/file_1.py"
        assert result.default_branch == "develop"

    def test_missing_branch_defaults_to_main(self):
        """Test repositories without a default branch assume main"""
        data = item(1)
        del data["repository"]["default_branch"]

        result = GitHubProvider._to_result(data)

        assert result.download_url.endswith("/octo/repo/main/src/file_1.py")

    def test_explicit_download_url_and_fragments(self):
        """Test provided download URLs and text matches are kept"""
        result = GitHubProvider._to_result(item(1, download_url="https://example.com/raw", fragments=["KEY=1", "KEY=2"]))

        assert result.download_url == "https://example.com/raw"
        assert result.text_matches == ["KEY=1", "KEY=2"]
        assert result.has_snippets is True


class TestFileContent:
    """Test suite for file downloads"""

    def result(self):
        return SearchResult(
            repository="octo/repo",
            file_path=".env",
            file_url="https://github.com/octo/repo/blob/main/.env",
            download_url="https://raw.githubusercontent.com/octo/repo/main/.env",
        )

    @pytest.mark.asyncio
    async def test_download(self, fast_limiter):
        """Test content is returned as text"""
        http_client = FakeHttpClient([text_response(200, "KEY=value")])
        provider = make_provider(http_client, fast_limiter)

        content = await provider.get_file_content(self.result())

        assert content == "KEY=value"
        assert http_client.requests[0]["url"] == self.result().download_url

    @pytest.mark.asyncio
    async def test_not_found(self, fast_limiter):
        """Test deleted files raise NotFoundError"""
        provider = make_provider(FakeHttpClient([text_response(404)]), fast_limiter)

        with pytest.raises(NotFoundError):
            await provider.get_file_content(self.result())

    @pytest.mark.asyncio
    async def test_other_status(self, fast_limiter):
        """Test other failures raise HttpError with the status"""
        provider = make_provider(FakeHttpClient([text_response(500)]), fast_limiter)

        with pytest.raises(HttpError) as exc_info:
            await provider.get_file_content(self.result())

        assert exc_info.value.status_code == 500


class TestRegistry:
    """Test suite for the provider registry"""

    def test_get_provider_uses_config(self):
        """Test configuration flows into the provider"""
        provider = get_provider("GitHub", GitHubConfig(tokens=["a", "b"], per_page=50), http_client=FakeHttpClient())

        assert isinstance(provider, GitHubProvider)
        assert provider.tokens == ["a", "b"]
        assert provider.max_results_per_query == 50

    def test_unknown_provider(self):
        """Test unknown providers are a configuration error"""
        with pytest.raises(ConfigError):
            get_provider("gitlab")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
