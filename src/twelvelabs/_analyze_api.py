import logging
from typing import Optional

from ._api_client import ApiClient, _analyze_body
from ._callbacks import Callback
from ._stream import decode_stream
from .types import (
    AnalyzeResponse,
    GistResponse,
    GistType,
    StreamEvent,
    SummarizeResponse,
    SummarizeType,
)

logger = logging.getLogger("twelvelabs")


class AnalyzeAPI:
    """Namespace for video analysis on the high-level client.

    Accessed via ``client.analyze``.
    """

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def generate(
        self,
        video_id: str,
        prompt: str,
        *,
        temperature: Optional[float] = None,
    ) -> AnalyzeResponse:
        """Analyze a video and return the complete answer at once."""
        return await self._api.analyze(video_id, prompt, temperature=temperature)

    async def stream(
        self,
        video_id: str,
        prompt: str,
        on_event: Callback[StreamEvent],
        *,
        temperature: Optional[float] = None,
    ) -> Optional[StreamEvent]:
        """Analyze a video, delivering the answer incrementally.

        ``on_event`` receives every ``stream_start``, ``text_generation`` and
        ``stream_end`` event in order. The response body is released when
        this returns or raises.

        Returns the ``stream_end`` event (which carries usage metadata), or
        None if the server closed the stream without one.

        Usage::

            parts = []
            await client.analyze.stream(
                video_id,
                "Describe this video",
                on_event=lambda e: parts.append(e.text or ""),
            )
        """
        body = _analyze_body(video_id, prompt, temperature=temperature, stream=True)
        async with self._api.http.stream("POST", "/analyze", json_body=body) as resp:
            end = await decode_stream(resp.content, on_event)
        if end is None:
            logger.warning("Analysis stream for video %s ended without stream_end", video_id)
        return end

    async def gist(self, video_id: str, types: list[GistType]) -> GistResponse:
        return await self._api.gist(video_id, types)

    async def summarize(
        self,
        video_id: str,
        type: SummarizeType = "summary",
        *,
        prompt: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> SummarizeResponse:
        return await self._api.summarize(
            video_id, type, prompt=prompt, temperature=temperature
        )
