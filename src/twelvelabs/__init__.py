"""Twelve Labs Python SDK — async client for video understanding."""

from typing import Any, Optional

from ._version import __version__
from ._config import ClientConfig
from ._constants import DEFAULT_BASE_URL, TERMINAL_TASK_STATUSES
from ._http import HttpClient
from ._api_client import ApiClient
from ._analyze_api import AnalyzeAPI
from ._embed_api import EmbedAPI
from ._indexes_api import IndexesAPI, VideosAPI
from ._search_api import SearchAPI
from ._tasks_api import TasksAPI
from ._polling import wait_until_done
from ._stream import decode_stream

from .types import (
    # Tasks
    Task,
    TaskStatus,
    TaskCreateRequest,
    BulkItemResult,
    BulkCreateResult,
    # Indexes
    Index,
    IndexModel,
    Video,
    # Search
    SearchRequest,
    SearchResponse,
    SearchResult,
    SearchPool,
    PageInfo,
    # Embeddings
    EmbedRequest,
    EmbedResponse,
    EmbedTask,
    EmbeddingResult,
    EmbeddingSegment,
    # Analysis
    AnalyzeResponse,
    GistResponse,
    SummarizeResponse,
    Chapter,
    Highlight,
    Usage,
    StreamEvent,
    StreamEventMetadata,
)

from .errors import (
    TwelveLabsError,
    ValidationError,
    ApiError,
    BadRequestError,
    UnauthorizedError,
    NotFoundError,
    TooManyRequestsError,
    InternalServerError,
    NetworkError,
    PollTimeoutError,
    PollCancelledError,
    CallbackError,
    StreamDecodeError,
    EmbedTaskFailedError,
    classify_error,
)


class TwelveLabs:
    """Twelve Labs API client.

    High-level entry point. Namespaces group the API by resource and add
    helpers on top of the raw endpoints: ``tasks.create_bulk`` and
    ``tasks.wait_for_done`` for indexing, ``analyze.stream`` for
    incremental analysis, and ``embed.create`` which waits on video
    embedding tasks.

    Usage::

        import twelvelabs

        client = twelvelabs.TwelveLabs(api_key="tlk_...")

        task = await client.tasks.create(index_id, video_url="https://...")
        task = await client.tasks.wait_for_done(
            task.id, callback=lambda t: print(t.status)
        )

        await client.analyze.stream(
            task.video_id,
            "Summarize this video",
            on_event=lambda e: print(e.text or "", end=""),
        )

        await client.close()
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        **overrides: Any,
    ) -> None:
        self._api = ApiClient(api_key, config=config, **overrides)
        self.tasks = TasksAPI(self._api)
        self.analyze = AnalyzeAPI(self._api)
        self.embed = EmbedAPI(self._api)
        self.indexes = IndexesAPI(self._api)
        self.search = SearchAPI(self._api)

    @property
    def api(self) -> ApiClient:
        """The low-level client the namespaces share."""
        return self._api

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self._api.close()

    async def __aenter__(self) -> "TwelveLabs":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


__all__ = [
    # Version
    "__version__",
    # Clients
    "TwelveLabs",
    "ApiClient",
    "ClientConfig",
    "HttpClient",
    "DEFAULT_BASE_URL",
    "TERMINAL_TASK_STATUSES",
    # Namespaces
    "TasksAPI",
    "AnalyzeAPI",
    "EmbedAPI",
    "IndexesAPI",
    "VideosAPI",
    "SearchAPI",
    # Core helpers
    "wait_until_done",
    "decode_stream",
    # Tasks
    "Task",
    "TaskStatus",
    "TaskCreateRequest",
    "BulkItemResult",
    "BulkCreateResult",
    # Indexes
    "Index",
    "IndexModel",
    "Video",
    # Search
    "SearchRequest",
    "SearchResponse",
    "SearchResult",
    "SearchPool",
    "PageInfo",
    # Embeddings
    "EmbedRequest",
    "EmbedResponse",
    "EmbedTask",
    "EmbeddingResult",
    "EmbeddingSegment",
    # Analysis
    "AnalyzeResponse",
    "GistResponse",
    "SummarizeResponse",
    "Chapter",
    "Highlight",
    "Usage",
    "StreamEvent",
    "StreamEventMetadata",
    # Errors
    "TwelveLabsError",
    "ValidationError",
    "ApiError",
    "BadRequestError",
    "UnauthorizedError",
    "NotFoundError",
    "TooManyRequestsError",
    "InternalServerError",
    "NetworkError",
    "PollTimeoutError",
    "PollCancelledError",
    "CallbackError",
    "StreamDecodeError",
    "EmbedTaskFailedError",
    "classify_error",
]
