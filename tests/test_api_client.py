"""Tests for twelvelabs.ApiClient — HTTP client with mocked responses."""
import pytest

from twelvelabs import (
    ApiClient,
    ClientConfig,
    EmbedRequest,
    IndexModel,
    SearchRequest,
    TaskCreateRequest,
)
from twelvelabs.errors import ApiError, ValidationError


def _calls(mock_api, method):
    return [
        call
        for (call_method, _), calls in mock_api.requests.items()
        if call_method == method
        for call in calls
    ]


def test_config_defaults():
    config = ClientConfig("tlk_key")
    assert config.base_url == "https://api.twelvelabs.io/v1.3"
    assert config.timeout == 60.0
    assert config.user_agent.startswith("twelvelabs-python-async/")


def test_config_strips_trailing_slash():
    assert ClientConfig("k", base_url="https://example.com/v1.3/").base_url == (
        "https://example.com/v1.3"
    )


@pytest.mark.parametrize("kwargs", [{"api_key": ""}, {"api_key": "k", "timeout": 0}])
def test_config_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        ClientConfig(**kwargs)


def test_api_client_requires_key():
    with pytest.raises(ValueError):
        ApiClient()


@pytest.mark.asyncio
async def test_sends_api_key_header(mock_api, api_key, base_url):
    mock_api.get(f"{base_url}/tasks/task-1", payload={"_id": "task-1", "status": "queued"})

    api = ApiClient(api_key, base_url=base_url)
    try:
        await api.retrieve_task("task-1")
        session = await api.http._ensure_session()
        assert session.headers["x-api-key"] == api_key
        assert "Content-Type" not in session.headers
    finally:
        await api.close()


@pytest.mark.asyncio
async def test_retrieve_task(mock_api, api_key, base_url):
    mock_api.get(
        f"{base_url}/tasks/task-1",
        payload={
            "_id": "task-1",
            "status": "indexing",
            "index_id": "idx-1",
            "system_metadata": {"filename": "a.mp4", "duration": 12.5},
            "created_at": "2025-01-01T00:00:00Z",
            "updated_at": "2025-01-01T00:01:00Z",
            "video_embedding": None,
        },
    )

    api = ApiClient(api_key, base_url=base_url)
    try:
        task = await api.retrieve_task("task-1")
    finally:
        await api.close()

    assert task.id == "task-1"
    assert task.status == "indexing"
    assert task.is_done is False
    assert task.system_metadata == {"filename": "a.mp4", "duration": 12.5}
    assert task.extra == {"video_embedding": None}


@pytest.mark.asyncio
async def test_create_task_from_url_sends_json(mock_api, api_key, base_url):
    mock_api.post(f"{base_url}/tasks", payload={"_id": "task-9", "video_id": "vid-9"}, status=201)

    api = ApiClient(api_key, base_url=base_url)
    try:
        task = await api.create_task(
            TaskCreateRequest(
                index_id="idx-1",
                video_url="https://cdn.example.com/a.mp4",
                user_metadata={"team": "sports"},
            )
        )
    finally:
        await api.close()

    assert task.id == "task-9"
    assert task.status == "pending"
    assert task.index_id == "idx-1"
    (call,) = _calls(mock_api, "POST")
    assert call.kwargs["json"] == {
        "index_id": "idx-1",
        "video_url": "https://cdn.example.com/a.mp4",
        "user_metadata": {"team": "sports"},
    }


@pytest.mark.asyncio
async def test_create_task_from_file_sends_multipart(mock_api, api_key, base_url, tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"fake video")
    mock_api.post(f"{base_url}/tasks", payload={"_id": "task-10"}, status=201)

    api = ApiClient(api_key, base_url=base_url)
    try:
        task = await api.create_task(
            TaskCreateRequest(index_id="idx-1", video_file=str(video), enable_video_stream=False)
        )
    finally:
        await api.close()

    assert task.id == "task-10"
    (call,) = _calls(mock_api, "POST")
    assert call.kwargs["json"] is None
    assert call.kwargs["data"] is not None


@pytest.mark.asyncio
async def test_create_and_retrieve_index(mock_api, api_key, base_url):
    mock_api.post(f"{base_url}/indexes", payload={"_id": "idx-1"}, status=201)
    mock_api.get(
        f"{base_url}/indexes/idx-1",
        payload={
            "_id": "idx-1",
            "index_name": "sports",
            "models": [{"model_name": "marengo2.7", "model_options": ["visual", "audio"]}],
            "video_count": 0,
            "created_at": "2025-01-01T00:00:00Z",
        },
    )

    api = ApiClient(api_key, base_url=base_url)
    try:
        index = await api.create_index(
            "sports", [IndexModel(model_name="marengo2.7", model_options=["visual", "audio"])]
        )
    finally:
        await api.close()

    assert index.id == "idx-1"
    assert index.index_name == "sports"
    assert index.models[0].model_options == ["visual", "audio"]
    (call,) = _calls(mock_api, "POST")
    assert call.kwargs["json"] == {
        "index_name": "sports",
        "models": [{"model_name": "marengo2.7", "model_options": ["visual", "audio"]}],
    }


@pytest.mark.asyncio
async def test_list_videos(mock_api, api_key, base_url):
    mock_api.get(
        f"{base_url}/indexes/idx-1/videos?page=2",
        payload={
            "data": [
                {
                    "_id": "vid-1",
                    "system_metadata": {"filename": "a.mp4", "duration": 30.0},
                    "user_metadata": {"team": "sports"},
                }
            ]
        },
    )

    api = ApiClient(api_key, base_url=base_url)
    try:
        videos = await api.list_videos("idx-1", page=2, filename=None)
    finally:
        await api.close()

    assert len(videos) == 1
    assert videos[0].filename == "a.mp4"
    assert videos[0].duration == 30.0


@pytest.mark.asyncio
async def test_update_and_delete_video(mock_api, api_key, base_url):
    url = f"{base_url}/indexes/idx-1/videos/vid-1"
    mock_api.put(url, status=204)
    mock_api.delete(url, status=204)

    api = ApiClient(api_key, base_url=base_url)
    try:
        await api.update_video("idx-1", "vid-1", {"reviewed": True})
        await api.delete_video("idx-1", "vid-1")
    finally:
        await api.close()

    (call,) = _calls(mock_api, "PUT")
    assert call.kwargs["json"] == {"user_metadata": {"reviewed": True}}


@pytest.mark.asyncio
async def test_search_and_next_page(mock_api, api_key, base_url):
    mock_api.post(
        f"{base_url}/search",
        payload={
            "data": [
                {"video_id": "vid-1", "score": 88.1, "start": 1.0, "end": 4.5, "confidence": "high"}
            ],
            "search_pool": {"total_count": 3, "total_duration": 90.0, "index_id": "idx-1"},
            "page_info": {
                "limit_per_page": 1,
                "total_results": 2,
                "page_expires_at": "2025-01-01T00:00:00Z",
                "next_page_token": "tok-2",
            },
        },
    )
    mock_api.get(
        f"{base_url}/search/tok-2",
        payload={
            "data": [{"video_id": "vid-2", "score": 70.0, "start": 0.0, "end": 2.0}],
            "page_info": {"limit_per_page": 1, "total_results": 2},
        },
    )

    api = ApiClient(api_key, base_url=base_url)
    try:
        first = await api.search(SearchRequest(index_id="idx-1", query_text="a goal"))
        second = await api.search_page(first.page_info.next_page_token)
    finally:
        await api.close()

    assert first.data[0].video_id == "vid-1"
    assert first.search_pool is not None and first.search_pool.total_count == 3
    assert first.page_info.next_page_token == "tok-2"
    assert second.data[0].video_id == "vid-2"
    assert second.page_info.next_page_token is None


@pytest.mark.asyncio
async def test_search_requires_query(mock_api, api_key, base_url):
    api = ApiClient(api_key, base_url=base_url)
    try:
        with pytest.raises(ValidationError):
            await api.search(SearchRequest(index_id="idx-1"))
    finally:
        await api.close()

    assert not mock_api.requests


@pytest.mark.asyncio
async def test_create_text_embedding(mock_api, api_key, base_url):
    mock_api.post(
        f"{base_url}/embed",
        payload={
            "model_name": "Marengo-retrieval-2.7",
            "text_embedding": {"segments": [{"float": [0.1, 0.2, 0.3]}]},
        },
    )

    api = ApiClient(api_key, base_url=base_url)
    try:
        resp = await api.create_embedding(
            EmbedRequest(model_name="Marengo-retrieval-2.7", text="a red car")
        )
    finally:
        await api.close()

    assert resp.embeddings == [0.1, 0.2, 0.3]
    assert resp.video_embedding is None


@pytest.mark.asyncio
async def test_embedding_without_input_is_rejected(mock_api, api_key, base_url):
    api = ApiClient(api_key, base_url=base_url)
    try:
        with pytest.raises(ValidationError):
            await api.create_embedding(EmbedRequest(model_name="Marengo-retrieval-2.7"))
    finally:
        await api.close()

    assert not mock_api.requests


@pytest.mark.asyncio
async def test_analyze(mock_api, api_key, base_url):
    mock_api.post(
        f"{base_url}/analyze",
        payload={"id": "gen-1", "data": "Two teams play football.", "usage": {"output_tokens": 7}},
    )

    api = ApiClient(api_key, base_url=base_url)
    try:
        resp = await api.analyze("vid-1", "What happens?", temperature=0.2)
    finally:
        await api.close()

    assert resp.data == "Two teams play football."
    assert resp.usage is not None and resp.usage.output_tokens == 7
    (call,) = _calls(mock_api, "POST")
    assert call.kwargs["json"] == {
        "video_id": "vid-1",
        "prompt": "What happens?",
        "stream": False,
        "temperature": 0.2,
    }


@pytest.mark.asyncio
async def test_gist(mock_api, api_key, base_url):
    mock_api.post(
        f"{base_url}/gist",
        payload={"id": "gist-1", "title": "Cup final", "topics": ["football"], "hashtags": []},
    )

    api = ApiClient(api_key, base_url=base_url)
    try:
        resp = await api.gist("vid-1", ["title", "topic"])
    finally:
        await api.close()

    assert resp.title == "Cup final"
    assert resp.topics == ["football"]


@pytest.mark.asyncio
async def test_summarize_chapters(mock_api, api_key, base_url):
    mock_api.post(
        f"{base_url}/summarize",
        payload={
            "id": "sum-1",
            "summarize_type": "chapter",
            "chapters": [
                {
                    "chapter_number": 0,
                    "start_sec": 0.0,
                    "end_sec": 30.0,
                    "chapter_title": "Kick-off",
                    "chapter_summary": "The match starts.",
                }
            ],
        },
    )

    api = ApiClient(api_key, base_url=base_url)
    try:
        resp = await api.summarize("vid-1", "chapter")
    finally:
        await api.close()

    assert resp.summarize_type == "chapter"
    assert resp.chapters[0].chapter_title == "Kick-off"
    assert resp.highlights == []


@pytest.mark.asyncio
async def test_malformed_json_raises_api_error(mock_api, api_key, base_url):
    mock_api.get(f"{base_url}/indexes/idx-1", body=b"{not json", status=200)

    api = ApiClient(api_key, base_url=base_url)
    try:
        with pytest.raises(ApiError):
            await api.retrieve_index("idx-1")
    finally:
        await api.close()


@pytest.mark.asyncio
async def test_response_missing_required_field_raises_api_error(mock_api, api_key, base_url):
    mock_api.post(f"{base_url}/analyze", payload={"id": "gen-1"})

    api = ApiClient(api_key, base_url=base_url)
    try:
        with pytest.raises(ApiError) as exc_info:
            await api.analyze("vid-1", "What happens?")
    finally:
        await api.close()

    assert exc_info.value.message.startswith("Malformed response to POST /analyze")
