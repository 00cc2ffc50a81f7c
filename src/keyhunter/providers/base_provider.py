"""
Base Search Provider - Abstract base class for code search backends.

A provider turns a SearchQuery into SearchResults and fetches the content
of a single hit when the search response carried no usable snippets.
"""

from abc import ABC, abstractmethod
from typing import List

from ..core.models import SearchQuery, SearchResult


class BaseSearchProvider(ABC):
    """
    Abstract base class for all search providers.

    Example:
        >>> provider = GitHubProvider(tokens=["ghp_..."])
        >>> results = await provider.search(SearchQuery("OPENAI_API_KEY"))
        >>> content = await provider.get_file_content(results[0])
    """

    name: str = "base"

    @abstractmethod
    async def search(self, query: SearchQuery) -> List[SearchResult]:
        """
        Run a paginated search.

        Raises:
            RateLimitError: The first page could not be fetched due to throttling
            SearchProviderError: The first page failed or was malformed
        """
        pass

    @abstractmethod
    async def get_file_content(self, result: SearchResult) -> str:
        """
        Download the full content of a hit.

        Raises:
            NotFoundError: The file no longer exists
            HttpError: Any other non-2xx response
        """
        pass

    @property
    def max_results_per_query(self) -> int:
        """Results returned per page"""
        return 100

    async def close(self):
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"
