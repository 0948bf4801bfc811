import json
import logging
import os
from contextlib import ExitStack, contextmanager
from dataclasses import asdict
from typing import Any, Iterable, Iterator, Optional

import aiohttp

from ._config import ClientConfig
from ._http import HttpClient
from .errors import ApiError, ValidationError
from .types import (
    AnalyzeResponse,
    Chapter,
    EmbeddingResult,
    EmbeddingSegment,
    EmbedRequest,
    EmbedResponse,
    EmbedTask,
    GistResponse,
    GistType,
    Highlight,
    Index,
    IndexModel,
    PageInfo,
    SearchPool,
    SearchRequest,
    SearchResponse,
    SearchResult,
    SummarizeResponse,
    SummarizeType,
    Task,
    TaskCreateRequest,
    Usage,
    Video,
)

logger = logging.getLogger("twelvelabs")

_TASK_FIELDS = (
    "index_id",
    "video_id",
    "system_metadata",
    "hls",
    "created_at",
    "updated_at",
    "estimated_time",
)
_NON_VIDEO_EMBED_FIELDS = (
    "text",
    "text_truncate",
    "image_url",
    "image_file",
    "audio_url",
    "audio_file",
)


# ── Request building ─────────────────────────────────────────────────

def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


def _query_params(filters: dict[str, Any]) -> dict[str, str]:
    """Drop unset filters and render the rest as query-string values."""
    return {k: _form_value(v) for k, v in filters.items() if v is not None}


def _open_upload(stack: ExitStack, path: str) -> Any:
    try:
        return stack.enter_context(open(path, "rb"))
    except OSError as exc:
        raise ValidationError(f"Cannot open file {path!r}: {exc}") from exc


def _build_form(
    stack: ExitStack,
    fields: dict[str, Any],
    *,
    file_fields: Iterable[str] = (),
) -> aiohttp.FormData:
    """Build a multipart body from non-None fields.

    Lists become repeated fields. Names in ``file_fields`` are local paths
    and are attached as file parts; ``stack`` keeps them open until the
    request completes.
    """
    file_fields = set(file_fields)
    form = aiohttp.FormData()
    for name, value in fields.items():
        if value is None:
            continue
        if name in file_fields:
            form.add_field(
                name,
                _open_upload(stack, value),
                filename=os.path.basename(value),
                content_type="application/octet-stream",
            )
        elif isinstance(value, (list, tuple)):
            for item in value:
                form.add_field(name, _form_value(item))
        else:
            form.add_field(name, _form_value(value))
    return form


def _serialize_request(request: Any, *, exclude: Iterable[str] = ()) -> dict[str, Any]:
    """Convert a request dataclass to a payload dict, stripping None values."""
    skip = set(exclude)
    return {k: v for k, v in asdict(request).items() if v is not None and k not in skip}


def _validate_task_request(request: TaskCreateRequest) -> None:
    if not request.index_id:
        raise ValidationError("index_id is required")
    if bool(request.video_file) == bool(request.video_url):
        raise ValidationError("Exactly one of video_file or video_url must be provided")


def _validate_search_request(request: SearchRequest) -> None:
    if not request.index_id:
        raise ValidationError("index_id is required")
    if not (request.query_text or request.query_media_url or request.query_media_file):
        raise ValidationError("Provide query_text, query_media_url or query_media_file")
    if not request.search_options:
        raise ValidationError("search_options must not be empty")


def _validate_embed_request(request: EmbedRequest) -> None:
    if not request.model_name:
        raise ValidationError("model_name is required")
    inputs = (
        request.text,
        request.image_url,
        request.image_file,
        request.audio_url,
        request.audio_file,
        request.video_url,
        request.video_file,
    )
    if not any(inputs):
        raise ValidationError("EmbedRequest has no text, image, audio or video input")


# ── Response parsing ─────────────────────────────────────────────────

def _parse_task(data: dict[str, Any]) -> Task:
    """Parse the raw JSON dict into a Task, keeping unrecognised fields."""
    known = {"_id", "status", *_TASK_FIELDS}
    return Task(
        id=data["_id"],
        status=data["status"],
        index_id=data.get("index_id"),
        video_id=data.get("video_id"),
        system_metadata=data.get("system_metadata"),
        hls=data.get("hls"),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
        estimated_time=data.get("estimated_time"),
        extra={k: v for k, v in data.items() if k not in known},
        _present=frozenset(k for k in _TASK_FIELDS if k in data),
    )


def _parse_index(data: dict[str, Any]) -> Index:
    return Index(
        id=data["_id"],
        index_name=data["index_name"],
        models=[
            IndexModel(model_name=m["model_name"], model_options=m.get("model_options", []))
            for m in data.get("models") or []
        ],
        video_count=data.get("video_count"),
        total_duration=data.get("total_duration"),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


def _parse_video(data: dict[str, Any]) -> Video:
    return Video(
        id=data["_id"],
        index_id=data.get("index_id"),
        system_metadata=data.get("system_metadata"),
        user_metadata=data.get("user_metadata"),
        hls=data.get("hls"),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
        indexed_at=data.get("indexed_at"),
    )


def _parse_usage(data: Optional[dict[str, Any]]) -> Optional[Usage]:
    if not data:
        return None
    return Usage(output_tokens=data.get("output_tokens"))


def _parse_search_response(data: dict[str, Any]) -> SearchResponse:
    pool = None
    if data.get("search_pool"):
        pool = SearchPool(**data["search_pool"])

    page_info = None
    if data.get("page_info"):
        p = data["page_info"]
        page_info = PageInfo(
            limit_per_page=p.get("limit_per_page", 0),
            total_results=p.get("total_results", 0),
            page_expires_at=p.get("page_expires_at") or p.get("page_expired_at"),
            next_page_token=p.get("next_page_token"),
            prev_page_token=p.get("prev_page_token"),
        )

    return SearchResponse(
        data=[
            SearchResult(
                video_id=r["video_id"],
                score=r.get("score"),
                start=r.get("start"),
                end=r.get("end"),
                confidence=r.get("confidence"),
                rank=r.get("rank"),
                thumbnail_url=r.get("thumbnail_url"),
                transcription=r.get("transcription"),
            )
            for r in data.get("data") or []
        ],
        search_pool=pool,
        page_info=page_info,
    )


def _parse_embedding_result(data: Optional[dict[str, Any]]) -> Optional[EmbeddingResult]:
    if not data:
        return None
    return EmbeddingResult(
        segments=[
            EmbeddingSegment(
                float_=s.get("float", []),
                start_offset_sec=s.get("start_offset_sec"),
                end_offset_sec=s.get("end_offset_sec"),
                embedding_scope=s.get("embedding_scope"),
                embedding_option=s.get("embedding_option"),
            )
            for s in data.get("segments") or []
        ],
        metadata=data.get("metadata"),
    )


def _parse_embed_response(data: dict[str, Any]) -> EmbedResponse:
    return EmbedResponse(
        model_name=data.get("model_name"),
        text_embedding=_parse_embedding_result(data.get("text_embedding")),
        image_embedding=_parse_embedding_result(data.get("image_embedding")),
        video_embedding=_parse_embedding_result(data.get("video_embedding")),
        audio_embedding=_parse_embedding_result(data.get("audio_embedding")),
    )


def _parse_embed_task(data: dict[str, Any]) -> EmbedTask:
    return EmbedTask(
        id=data["_id"],
        status=data.get("status", "processing"),
        model_name=data.get("model_name"),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


def _parse_summarize_response(data: dict[str, Any]) -> SummarizeResponse:
    return SummarizeResponse(
        id=data["id"],
        summarize_type=data["summarize_type"],
        summary=data.get("summary"),
        chapters=[
            Chapter(
                chapter_number=c["chapter_number"],
                start_sec=c["start_sec"],
                end_sec=c["end_sec"],
                chapter_title=c["chapter_title"],
                chapter_summary=c["chapter_summary"],
            )
            for c in data.get("chapters") or []
        ],
        highlights=[
            Highlight(
                start_sec=h["start_sec"],
                end_sec=h["end_sec"],
                highlight=h["highlight"],
                highlight_summary=h.get("highlight_summary"),
            )
            for h in data.get("highlights") or []
        ],
        usage=_parse_usage(data.get("usage")),
    )


def _items(data: Any) -> list[dict[str, Any]]:
    """Unwrap a list endpoint's ``data`` array."""
    if isinstance(data, list):
        return data
    return data.get("data") or []


@contextmanager
def _parsing(method: str, path: str) -> Iterator[None]:
    """Report a 2xx body without the fields we rely on as :class:`ApiError`."""
    try:
        yield
    except (KeyError, TypeError, AttributeError) as exc:
        raise ApiError(f"Malformed response to {method} {path}: {exc!r}") from exc


class ApiClient:
    """Low-level async HTTP client for the Twelve Labs API.

    Maps 1:1 to API endpoints. Returns typed response dataclasses.
    No polling, no streaming, no callbacks.

    For bulk uploads, waiting on tasks and streaming analysis, use
    :class:`twelvelabs.TwelveLabs` instead.

    Usage::

        api = twelvelabs.ApiClient(api_key="tlk_...")
        task = await api.create_task(TaskCreateRequest(index_id=..., video_url=...))
        task = await api.retrieve_task(task.id)
        await api.close()
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        http: Optional[HttpClient] = None,
        **overrides: Any,
    ) -> None:
        if http is None:
            if config is None:
                config = ClientConfig(api_key or "", **overrides)
            http = HttpClient(config)
        self._http = http

    @property
    def http(self) -> HttpClient:
        return self._http

    # ── Tasks ────────────────────────────────────────────────────────

    async def list_tasks(self, **filters: Any) -> list[Task]:
        """GET /tasks — List video indexing tasks, optionally filtered."""
        data = await self._http.request("GET", "/tasks", params=_query_params(filters))
        with _parsing("GET", "/tasks"):
            return [_parse_task(t) for t in _items(data)]

    async def create_task(self, request: TaskCreateRequest) -> Task:
        """POST /tasks — Upload a video (multipart for local files, JSON for URLs).

        The API answers with the new task ID only; the returned Task reports
        status ``"pending"`` until it is retrieved again.
        """
        _validate_task_request(request)
        with ExitStack() as stack:
            if request.video_file:
                form = _build_form(
                    stack, _serialize_request(request), file_fields=("video_file",)
                )
                data = await self._http.request("POST", "/tasks", form=form)
            else:
                data = await self._http.request(
                    "POST", "/tasks", json_body=_serialize_request(request)
                )
        with _parsing("POST", "/tasks"):
            task = _parse_task({"status": "pending", "index_id": request.index_id, **data})
        logger.info("Task created: %s", task.id)
        return task

    async def retrieve_task(self, task_id: str) -> Task:
        """GET /tasks/{task_id} — Retrieve a task's current status."""
        path = f"/tasks/{task_id}"
        data = await self._http.request("GET", path)
        with _parsing("GET", path):
            return _parse_task(data)

    async def delete_task(self, task_id: str) -> None:
        """DELETE /tasks/{task_id} — Delete a task."""
        await self._http.request("DELETE", f"/tasks/{task_id}")

    # ── Indexes ──────────────────────────────────────────────────────

    async def list_indexes(self, **filters: Any) -> list[Index]:
        """GET /indexes — List indexes."""
        data = await self._http.request("GET", "/indexes", params=_query_params(filters))
        with _parsing("GET", "/indexes"):
            return [_parse_index(i) for i in _items(data)]

    async def create_index(
        self,
        index_name: str,
        models: list[IndexModel],
        *,
        addons: Optional[list[str]] = None,
    ) -> Index:
        """POST /indexes — Create an index. Returns it as stored by the API."""
        if not index_name:
            raise ValidationError("index_name is required")
        if not models:
            raise ValidationError("At least one model is required")
        body: dict[str, Any] = {
            "index_name": index_name,
            "models": [asdict(m) for m in models],
        }
        if addons:
            body["addons"] = addons
        data = await self._http.request("POST", "/indexes", json_body=body)
        with _parsing("POST", "/indexes"):
            index_id = data["_id"]
        return await self.retrieve_index(index_id)

    async def retrieve_index(self, index_id: str) -> Index:
        """GET /indexes/{index_id} — Retrieve an index."""
        path = f"/indexes/{index_id}"
        data = await self._http.request("GET", path)
        with _parsing("GET", path):
            return _parse_index(data)

    async def update_index(self, index_id: str, index_name: str) -> None:
        """PUT /indexes/{index_id} — Rename an index."""
        await self._http.request(
            "PUT", f"/indexes/{index_id}", json_body={"index_name": index_name}
        )

    async def delete_index(self, index_id: str) -> None:
        """DELETE /indexes/{index_id} — Delete an index and its videos."""
        await self._http.request("DELETE", f"/indexes/{index_id}")

    # ── Videos ───────────────────────────────────────────────────────

    async def list_videos(self, index_id: str, **filters: Any) -> list[Video]:
        """GET /indexes/{index_id}/videos — List the videos in an index."""
        path = f"/indexes/{index_id}/videos"
        data = await self._http.request("GET", path, params=_query_params(filters))
        with _parsing("GET", path):
            return [_parse_video(v) for v in _items(data)]

    async def retrieve_video(self, index_id: str, video_id: str) -> Video:
        """GET /indexes/{index_id}/videos/{video_id} — Retrieve a video."""
        path = f"/indexes/{index_id}/videos/{video_id}"
        data = await self._http.request("GET", path)
        with _parsing("GET", path):
            return _parse_video(data)

    async def update_video(
        self, index_id: str, video_id: str, user_metadata: dict[str, Any]
    ) -> None:
        """PUT /indexes/{index_id}/videos/{video_id} — Replace user metadata."""
        await self._http.request(
            "PUT",
            f"/indexes/{index_id}/videos/{video_id}",
            json_body={"user_metadata": user_metadata},
        )

    async def delete_video(self, index_id: str, video_id: str) -> None:
        """DELETE /indexes/{index_id}/videos/{video_id} — Delete a video."""
        await self._http.request("DELETE", f"/indexes/{index_id}/videos/{video_id}")

    # ── Search ───────────────────────────────────────────────────────

    async def search(self, request: SearchRequest) -> SearchResponse:
        """POST /search — Search an index by text or media (multipart)."""
        _validate_search_request(request)
        with ExitStack() as stack:
            form = _build_form(
                stack, _serialize_request(request), file_fields=("query_media_file",)
            )
            data = await self._http.request("POST", "/search", form=form)
        with _parsing("POST", "/search"):
            return _parse_search_response(data)

    async def search_page(self, page_token: str) -> SearchResponse:
        """GET /search/{page_token} — Fetch another page of search results."""
        path = f"/search/{page_token}"
        data = await self._http.request("GET", path)
        with _parsing("GET", path):
            return _parse_search_response(data)

    # ── Embeddings ───────────────────────────────────────────────────

    async def create_embedding(self, request: EmbedRequest) -> EmbedResponse:
        """POST /embed — Embed text, image or audio synchronously (multipart)."""
        _validate_embed_request(request)
        if request.has_video:
            raise ValidationError("Video embeddings are asynchronous; use create_embed_task")
        with ExitStack() as stack:
            form = _build_form(
                stack,
                _serialize_request(request),
                file_fields=("image_file", "audio_file"),
            )
            data = await self._http.request("POST", "/embed", form=form)
        with _parsing("POST", "/embed"):
            return _parse_embed_response(data)

    async def create_embed_task(self, request: EmbedRequest) -> EmbedTask:
        """POST /embed/tasks — Start a video embedding task (multipart)."""
        _validate_embed_request(request)
        if not request.has_video:
            raise ValidationError("Embedding tasks require video_url or video_file")
        fields = _serialize_request(request, exclude=_NON_VIDEO_EMBED_FIELDS)
        with ExitStack() as stack:
            form = _build_form(stack, fields, file_fields=("video_file",))
            data = await self._http.request("POST", "/embed/tasks", form=form)
        with _parsing("POST", "/embed/tasks"):
            return _parse_embed_task(
                {"status": "processing", "model_name": request.model_name, **data}
            )

    async def retrieve_embed_task_status(self, task_id: str) -> EmbedTask:
        """GET /embed/tasks/{task_id}/status — Poll a video embedding task."""
        path = f"/embed/tasks/{task_id}/status"
        data = await self._http.request("GET", path)
        with _parsing("GET", path):
            return _parse_embed_task(data)

    async def retrieve_embed_task(self, task_id: str) -> EmbedResponse:
        """GET /embed/tasks/{task_id} — Fetch the embeddings of a finished task."""
        path = f"/embed/tasks/{task_id}"
        data = await self._http.request("GET", path)
        with _parsing("GET", path):
            return _parse_embed_response(data)

    # ── Analysis ─────────────────────────────────────────────────────

    async def analyze(
        self,
        video_id: str,
        prompt: str,
        *,
        temperature: Optional[float] = None,
    ) -> AnalyzeResponse:
        """POST /analyze — Open-ended analysis of a video, non-streaming."""
        body = _analyze_body(video_id, prompt, temperature=temperature, stream=False)
        data = await self._http.request("POST", "/analyze", json_body=body)
        with _parsing("POST", "/analyze"):
            return AnalyzeResponse(
                id=data["id"],
                data=data["data"],
                usage=_parse_usage(data.get("usage")),
            )

    async def gist(self, video_id: str, types: list[GistType]) -> GistResponse:
        """POST /gist — Generate titles, topics and hashtags."""
        if not types:
            raise ValidationError("At least one gist type is required")
        data = await self._http.request(
            "POST", "/gist", json_body={"video_id": video_id, "types": list(types)}
        )
        with _parsing("POST", "/gist"):
            return GistResponse(
                id=data["id"],
                title=data.get("title"),
                topics=data.get("topics") or [],
                hashtags=data.get("hashtags") or [],
                usage=_parse_usage(data.get("usage")),
            )

    async def summarize(
        self,
        video_id: str,
        type: SummarizeType,
        *,
        prompt: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> SummarizeResponse:
        """POST /summarize — Summary, chapters or highlights of a video."""
        body: dict[str, Any] = {"video_id": video_id, "type": type}
        if prompt is not None:
            body["prompt"] = prompt
        if temperature is not None:
            body["temperature"] = temperature
        data = await self._http.request("POST", "/summarize", json_body=body)
        with _parsing("POST", "/summarize"):
            return _parse_summarize_response(data)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self._http.close()


def _analyze_body(
    video_id: str,
    prompt: str,
    *,
    temperature: Optional[float],
    stream: bool,
) -> dict[str, Any]:
    if not video_id:
        raise ValidationError("video_id is required")
    if not prompt:
        raise ValidationError("prompt is required")
    body: dict[str, Any] = {"video_id": video_id, "prompt": prompt, "stream": stream}
    if temperature is not None:
        body["temperature"] = temperature
    return body
