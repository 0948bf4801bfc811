import asyncio
import logging
from typing import Any, Iterable, Optional, Sequence

from ._api_client import ApiClient
from ._callbacks import Callback
from ._constants import TERMINAL_TASK_STATUSES
from ._polling import wait_until_done
from .errors import TwelveLabsError, ValidationError
from .types import (
    BulkCreateResult,
    BulkItemResult,
    EmbeddingScope,
    Task,
    TaskCreateRequest,
)

logger = logging.getLogger("twelvelabs")


class TasksAPI:
    """Namespace for video indexing tasks on the high-level client.

    Accessed via ``client.tasks``.
    """

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def create(
        self,
        index_id: str,
        *,
        video_file: Optional[str] = None,
        video_url: Optional[str] = None,
        video_start_offset_sec: Optional[float] = None,
        video_end_offset_sec: Optional[float] = None,
        video_clip_length: Optional[float] = None,
        video_embedding_scope: Optional[list[EmbeddingScope]] = None,
        enable_video_stream: Optional[bool] = None,
        user_metadata: Optional[dict[str, Any]] = None,
    ) -> Task:
        """Upload one video, from a local file or a public URL."""
        return await self._api.create_task(
            TaskCreateRequest(
                index_id=index_id,
                video_file=video_file,
                video_url=video_url,
                video_start_offset_sec=video_start_offset_sec,
                video_end_offset_sec=video_end_offset_sec,
                video_clip_length=video_clip_length,
                video_embedding_scope=video_embedding_scope,
                enable_video_stream=enable_video_stream,
                user_metadata=user_metadata,
            )
        )

    async def retrieve(self, task_id: str) -> Task:
        return await self._api.retrieve_task(task_id)

    async def list(self, **filters: Any) -> list[Task]:
        return await self._api.list_tasks(**filters)

    async def delete(self, task_id: str) -> None:
        await self._api.delete_task(task_id)

    async def create_bulk(
        self,
        index_id: str,
        *,
        video_files: Sequence[str] = (),
        video_urls: Sequence[str] = (),
        enable_video_stream: Optional[bool] = None,
        user_metadata: Optional[dict[str, Any]] = None,
    ) -> BulkCreateResult:
        """Create one task per source: all files first, then all URLs.

        Submissions run one after another in input order. A source that
        fails is logged and recorded in the result, and the batch carries
        on with the next one. Check ``result.failures`` (or ``result.ok``)
        to detect partial failure.

        Raises :class:`ValidationError` before sending anything if both
        source lists are empty.
        """
        if not video_files and not video_urls:
            raise ValidationError("Either video_files or video_urls must be provided")

        sources = [("video_file", f) for f in video_files]
        sources += [("video_url", u) for u in video_urls]

        items: list[BulkItemResult] = []
        for kind, source in sources:
            try:
                task = await self.create(
                    index_id,
                    enable_video_stream=enable_video_stream,
                    user_metadata=user_metadata,
                    **{kind: source},
                )
            except TwelveLabsError as exc:
                logger.warning("Creating task for %s failed: %s", source, exc)
                items.append(BulkItemResult(source=source, error=exc))
            else:
                items.append(BulkItemResult(source=source, task=task))

        result = BulkCreateResult(items=items)
        logger.info(
            "Bulk upload to index %s: %d created, %d failed",
            index_id,
            len(result.tasks),
            len(result.failures),
        )
        return result

    async def wait_for_done(
        self,
        task_id: str,
        *,
        interval: Optional[float] = None,
        callback: Optional[Callback[Task]] = None,
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
        terminal_statuses: Iterable[str] = TERMINAL_TASK_STATUSES,
        retry_errors: bool = True,
    ) -> Task:
        """Poll a task until it is ``ready``, ``failed`` or ``error``.

        Returns the final task whatever its terminal status; inspect
        ``task.status`` to tell success from failure. See
        :func:`twelvelabs._polling.wait_until_done` for the cancellation,
        timeout and retry semantics.

        Usage::

            task = await client.tasks.wait_for_done(
                task.id,
                interval=10,
                callback=lambda t: print(t.status),
                timeout=30 * 60,
            )
        """
        return await wait_until_done(
            self._api.retrieve_task,
            task_id,
            interval=interval,
            callback=callback,
            cancel_event=cancel_event,
            timeout=timeout,
            terminal_statuses=terminal_statuses,
            retry_errors=retry_errors,
        )
