from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from ._constants import STREAM_END_EVENT, TERMINAL_TASK_STATUSES


# ── Vocabulary ───────────────────────────────────────────────────────

# Task statuses are an open set owned by the service. Anything outside
# TERMINAL_TASK_STATUSES is treated as still in progress.
TaskStatus = str
StreamEventType = str
SummarizeType = Literal["summary", "chapter", "highlight"]
GistType = Literal["title", "topic", "hashtag"]
EmbeddingScope = Literal["clip", "video"]
SearchThreshold = Literal["high", "medium", "low", "none"]
SearchGroupBy = Literal["clip", "video"]


# ── Tasks ────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Task:
    """A video indexing task, as last observed from the API."""

    id: str
    status: TaskStatus
    index_id: Optional[str] = None
    video_id: Optional[str] = None
    system_metadata: Optional[dict[str, Any]] = None
    hls: Optional[dict[str, Any]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    estimated_time: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)
    # Known keys the API sent, so explicit nulls survive to_dict().
    _present: frozenset[str] = field(default=frozenset(), repr=False, compare=False)

    @property
    def is_done(self) -> bool:
        """True if the status is one of the known terminal statuses."""
        return self.status in TERMINAL_TASK_STATUSES

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the API's JSON shape, including unknown fields.

        A parsed task reproduces its payload exactly, ``null`` values
        included. A task built by hand omits fields left as None.
        """
        data: dict[str, Any] = {"_id": self.id, "status": self.status}
        for key in (
            "index_id",
            "video_id",
            "system_metadata",
            "hls",
            "created_at",
            "updated_at",
            "estimated_time",
        ):
            value = getattr(self, key)
            if value is not None or key in self._present:
                data[key] = value
        data.update(self.extra)
        return data


@dataclass(frozen=True, slots=True)
class TaskCreateRequest:
    """Upload one video into an index, from a local file or a public URL."""

    index_id: str
    video_file: Optional[str] = None
    video_url: Optional[str] = None
    video_start_offset_sec: Optional[float] = None
    video_end_offset_sec: Optional[float] = None
    video_clip_length: Optional[float] = None
    video_embedding_scope: Optional[list[EmbeddingScope]] = None
    enable_video_stream: Optional[bool] = None
    user_metadata: Optional[dict[str, Any]] = None


@dataclass(frozen=True, slots=True)
class BulkItemResult:
    """Outcome of one source in a bulk task submission."""

    source: str
    task: Optional[Task] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class BulkCreateResult:
    """Per-source outcomes of :meth:`TasksAPI.create_bulk`, in submission order."""

    items: list[BulkItemResult]

    @property
    def tasks(self) -> list[Task]:
        return [item.task for item in self.items if item.task is not None]

    @property
    def failures(self) -> list[BulkItemResult]:
        return [item for item in self.items if not item.ok]

    @property
    def ok(self) -> bool:
        """True if every source produced a task."""
        return not self.failures


# ── Indexes and videos ───────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class IndexModel:
    """A video understanding model enabled on an index."""

    model_name: str
    model_options: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Index:
    id: str
    index_name: str
    models: list[IndexModel] = field(default_factory=list)
    video_count: Optional[int] = None
    total_duration: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Video:
    id: str
    index_id: Optional[str] = None
    system_metadata: Optional[dict[str, Any]] = None
    user_metadata: Optional[dict[str, Any]] = None
    hls: Optional[dict[str, Any]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    indexed_at: Optional[str] = None

    @property
    def filename(self) -> Optional[str]:
        if self.system_metadata:
            return self.system_metadata.get("filename")
        return None

    @property
    def duration(self) -> Optional[float]:
        if self.system_metadata:
            return self.system_metadata.get("duration")
        return None


# ── Search ───────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class SearchRequest:
    """Parameters for POST /search. Provide a text query or a media query."""

    index_id: str
    search_options: list[str] = field(default_factory=lambda: ["visual", "audio"])
    query_text: Optional[str] = None
    query_media_type: Optional[Literal["image"]] = None
    query_media_url: Optional[str] = None
    query_media_file: Optional[str] = None
    operator: Optional[Literal["or", "and"]] = None
    filter: Optional[str] = None
    threshold: Optional[SearchThreshold] = None
    sort_option: Optional[Literal["score", "clip_count"]] = None
    group_by: Optional[SearchGroupBy] = None
    adjust_confidence_level: Optional[float] = None
    page_limit: Optional[int] = None


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A matching clip."""

    video_id: str
    score: Optional[float] = None
    start: Optional[float] = None
    end: Optional[float] = None
    confidence: Optional[str] = None
    rank: Optional[int] = None
    thumbnail_url: Optional[str] = None
    transcription: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SearchPool:
    total_count: int
    total_duration: float
    index_id: str


@dataclass(frozen=True, slots=True)
class PageInfo:
    limit_per_page: int
    total_results: int
    page_expires_at: Optional[str] = None
    next_page_token: Optional[str] = None
    prev_page_token: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SearchResponse:
    data: list[SearchResult]
    search_pool: Optional[SearchPool] = None
    page_info: Optional[PageInfo] = None


# ── Embeddings ───────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class EmbedRequest:
    """Inputs for an embedding. Video inputs are processed as an async task."""

    model_name: str
    text: Optional[str] = None
    text_truncate: Optional[Literal["start", "end", "none"]] = None
    image_url: Optional[str] = None
    image_file: Optional[str] = None
    audio_url: Optional[str] = None
    audio_file: Optional[str] = None
    video_url: Optional[str] = None
    video_file: Optional[str] = None
    video_start_offset_sec: Optional[float] = None
    video_end_offset_sec: Optional[float] = None
    video_clip_length: Optional[float] = None
    video_embedding_scope: Optional[list[EmbeddingScope]] = None

    @property
    def has_video(self) -> bool:
        return bool(self.video_url or self.video_file)


@dataclass(frozen=True, slots=True)
class EmbeddingSegment:
    float_: list[float]
    start_offset_sec: Optional[float] = None
    end_offset_sec: Optional[float] = None
    embedding_scope: Optional[str] = None
    embedding_option: Optional[str] = None


@dataclass(frozen=True, slots=True)
class EmbeddingResult:
    segments: list[EmbeddingSegment]
    metadata: Optional[dict[str, Any]] = None


@dataclass(frozen=True, slots=True)
class EmbedResponse:
    model_name: Optional[str] = None
    text_embedding: Optional[EmbeddingResult] = None
    image_embedding: Optional[EmbeddingResult] = None
    video_embedding: Optional[EmbeddingResult] = None
    audio_embedding: Optional[EmbeddingResult] = None

    @property
    def embeddings(self) -> Optional[list[float]]:
        """The first segment's vector of whichever modality is present."""
        for result in (
            self.text_embedding,
            self.image_embedding,
            self.video_embedding,
            self.audio_embedding,
        ):
            if result is not None and result.segments:
                return result.segments[0].float_
        return None


@dataclass(frozen=True, slots=True)
class EmbedTask:
    """Status snapshot of an asynchronous video embedding task."""

    id: str
    status: TaskStatus
    model_name: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# ── Analysis ─────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Usage:
    output_tokens: Optional[int] = None


@dataclass(frozen=True, slots=True)
class AnalyzeResponse:
    id: str
    data: str
    usage: Optional[Usage] = None


@dataclass(frozen=True, slots=True)
class GistResponse:
    id: str
    title: Optional[str] = None
    topics: list[str] = field(default_factory=list)
    hashtags: list[str] = field(default_factory=list)
    usage: Optional[Usage] = None


@dataclass(frozen=True, slots=True)
class Chapter:
    chapter_number: int
    start_sec: float
    end_sec: float
    chapter_title: str
    chapter_summary: str


@dataclass(frozen=True, slots=True)
class Highlight:
    start_sec: float
    end_sec: float
    highlight: str
    highlight_summary: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SummarizeResponse:
    id: str
    summarize_type: str
    summary: Optional[str] = None
    chapters: list[Chapter] = field(default_factory=list)
    highlights: list[Highlight] = field(default_factory=list)
    usage: Optional[Usage] = None


@dataclass(frozen=True, slots=True)
class StreamEventMetadata:
    generation_id: Optional[str] = None
    usage: Optional[Usage] = None


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """One line of a streaming analysis response."""

    event_type: StreamEventType
    text: Optional[str] = None
    metadata: Optional[StreamEventMetadata] = None

    @property
    def is_end(self) -> bool:
        return self.event_type == STREAM_END_EVENT
