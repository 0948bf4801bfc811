"""Tests for twelvelabs.types — dataclass helpers and response parsing."""
import dataclasses

import pytest

from twelvelabs import (
    BulkCreateResult,
    BulkItemResult,
    EmbeddingResult,
    EmbeddingSegment,
    EmbedRequest,
    EmbedResponse,
    Task,
    Video,
)
from twelvelabs._api_client import _parse_task
from twelvelabs.errors import InternalServerError


def test_task_round_trips_terminal_payload():
    payload = {
        "_id": "task-1",
        "status": "ready",
        "index_id": "idx-1",
        "video_id": "vid-1",
        "system_metadata": {"filename": "a.mp4", "duration": 61.2, "fps": 30},
        "hls": {"status": "COMPLETE", "video_url": "https://cdn.example.com/a.m3u8"},
        "created_at": "2025-01-01T00:00:00Z",
        "updated_at": "2025-01-01T00:05:00Z",
        "estimated_time": "2025-01-01T00:05:00Z",
        "type": "index_task_info",
    }

    task = _parse_task(payload)

    assert task.to_dict() == payload
    assert task.extra == {"type": "index_task_info"}


def test_task_round_trip_keeps_explicit_nulls():
    payload = {"_id": "task-1", "status": "ready", "video_id": None, "hls": None}

    task = _parse_task(payload)

    assert task.video_id is None
    assert task.to_dict() == payload


def test_hand_built_task_omits_unset_fields():
    assert Task(id="task-1", status="pending").to_dict() == {"_id": "task-1", "status": "pending"}


def test_task_equality_ignores_which_keys_were_sent():
    assert _parse_task({"_id": "t", "status": "ready", "hls": None}) == Task(id="t", status="ready")


def test_task_is_immutable():
    task = Task(id="task-1", status="pending")
    with pytest.raises(dataclasses.FrozenInstanceError):
        task.status = "ready"  # type: ignore[misc]


@pytest.mark.parametrize(
    "status, done",
    [
        ("ready", True),
        ("failed", True),
        ("error", True),
        ("pending", False),
        ("indexing", False),
        ("some_future_status", False),
    ],
)
def test_task_is_done(status, done):
    assert Task(id="task-1", status=status).is_done is done


def test_bulk_result_partitions_outcomes():
    ok = BulkItemResult(source="a.mp4", task=Task(id="t-a", status="pending"))
    bad = BulkItemResult(source="b.mp4", error=InternalServerError("boom"))
    result = BulkCreateResult(items=[ok, bad])

    assert [t.id for t in result.tasks] == ["t-a"]
    assert result.failures == [bad]
    assert ok.ok and not bad.ok
    assert result.ok is False
    assert BulkCreateResult(items=[ok]).ok is True


def test_embed_response_prefers_first_present_modality():
    resp = EmbedResponse(
        video_embedding=EmbeddingResult(
            segments=[
                EmbeddingSegment(float_=[0.5, 0.6], start_offset_sec=0.0, end_offset_sec=6.0),
                EmbeddingSegment(float_=[0.7, 0.8], start_offset_sec=6.0, end_offset_sec=12.0),
            ]
        ),
        audio_embedding=EmbeddingResult(segments=[EmbeddingSegment(float_=[0.9])]),
    )

    assert resp.embeddings == [0.5, 0.6]
    assert EmbedResponse().embeddings is None
    assert EmbedResponse(text_embedding=EmbeddingResult(segments=[])).embeddings is None


def test_embed_request_has_video():
    assert EmbedRequest(model_name="m", video_url="https://cdn.example.com/a.mp4").has_video
    assert not EmbedRequest(model_name="m", text="hello").has_video


def test_video_metadata_accessors():
    video = Video(id="vid-1", system_metadata={"filename": "a.mp4", "duration": 12.0})
    assert video.filename == "a.mp4"
    assert video.duration == 12.0
    assert Video(id="vid-2").filename is None
