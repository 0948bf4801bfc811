import asyncio
import logging
from typing import Optional

from ._api_client import ApiClient
from ._callbacks import Callback
from ._constants import (
    DEFAULT_EMBED_MODEL,
    DEFAULT_EMBED_POLL_INTERVAL,
    TERMINAL_EMBED_TASK_STATUSES,
)
from ._polling import wait_until_done
from .errors import EmbedTaskFailedError
from .types import EmbedRequest, EmbedResponse, EmbedTask, EmbeddingScope

logger = logging.getLogger("twelvelabs")


class EmbedAPI:
    """Namespace for embeddings on the high-level client.

    Accessed via ``client.embed``. Text, image and audio embeddings come
    back immediately; video embeddings run as a task that is polled until
    it finishes.
    """

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def create(
        self,
        *,
        model_name: str = DEFAULT_EMBED_MODEL,
        text: Optional[str] = None,
        image_url: Optional[str] = None,
        image_file: Optional[str] = None,
        audio_url: Optional[str] = None,
        audio_file: Optional[str] = None,
        video_url: Optional[str] = None,
        video_file: Optional[str] = None,
        video_clip_length: Optional[float] = None,
        video_embedding_scope: Optional[list[EmbeddingScope]] = None,
        interval: float = DEFAULT_EMBED_POLL_INTERVAL,
        timeout: Optional[float] = None,
        callback: Optional[Callback[EmbedTask]] = None,
    ) -> EmbedResponse:
        """Create an embedding, waiting for the task when the input is a video."""
        request = EmbedRequest(
            model_name=model_name,
            text=text,
            image_url=image_url,
            image_file=image_file,
            audio_url=audio_url,
            audio_file=audio_file,
            video_url=video_url,
            video_file=video_file,
            video_clip_length=video_clip_length,
            video_embedding_scope=video_embedding_scope,
        )
        if not request.has_video:
            return await self._api.create_embedding(request)

        task = await self._api.create_embed_task(request)
        logger.info("Embedding task created: %s", task.id)
        return await self.wait_for_task(
            task.id, interval=interval, timeout=timeout, callback=callback
        )

    async def wait_for_task(
        self,
        task_id: str,
        *,
        interval: float = DEFAULT_EMBED_POLL_INTERVAL,
        callback: Optional[Callback[EmbedTask]] = None,
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> EmbedResponse:
        """Poll a video embedding task, then fetch its embeddings.

        Raises :class:`EmbedTaskFailedError` if the task ends as ``failed``.
        """
        task = await wait_until_done(
            self._api.retrieve_embed_task_status,
            task_id,
            interval=interval,
            callback=callback,
            cancel_event=cancel_event,
            timeout=timeout,
            terminal_statuses=TERMINAL_EMBED_TASK_STATUSES,
        )
        if task.status != "ready":
            raise EmbedTaskFailedError(
                f"Embedding task {task_id} ended with status {task.status}",
                task_id=task_id,
                status=task.status,
            )
        return await self._api.retrieve_embed_task(task_id)

    async def retrieve_task(self, task_id: str) -> EmbedResponse:
        return await self._api.retrieve_embed_task(task_id)
