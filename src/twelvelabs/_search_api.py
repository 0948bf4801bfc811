from typing import AsyncIterator, Optional

from ._api_client import ApiClient
from .types import SearchGroupBy, SearchRequest, SearchResponse, SearchResult, SearchThreshold


class SearchAPI:
    """Search within an index. Accessed via ``client.search``."""

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def query(
        self,
        index_id: str,
        query_text: Optional[str] = None,
        *,
        search_options: Optional[list[str]] = None,
        query_media_url: Optional[str] = None,
        query_media_file: Optional[str] = None,
        threshold: Optional[SearchThreshold] = None,
        group_by: Optional[SearchGroupBy] = None,
        page_limit: Optional[int] = None,
    ) -> SearchResponse:
        """Run a search and return the first page of results."""
        request = SearchRequest(
            index_id=index_id,
            query_text=query_text,
            query_media_type="image" if (query_media_url or query_media_file) else None,
            query_media_url=query_media_url,
            query_media_file=query_media_file,
            threshold=threshold,
            group_by=group_by,
            page_limit=page_limit,
            **({"search_options": search_options} if search_options else {}),
        )
        return await self._api.search(request)

    async def next_page(self, page_token: str) -> SearchResponse:
        return await self._api.search_page(page_token)

    async def iter_results(self, first: SearchResponse) -> AsyncIterator[SearchResult]:
        """Yield results from ``first`` and every following page."""
        page: Optional[SearchResponse] = first
        while page is not None:
            for result in page.data:
                yield result
            token = page.page_info.next_page_token if page.page_info else None
            page = await self._api.search_page(token) if token else None
