from typing import Any, Optional

from ._api_client import ApiClient
from .types import Index, IndexModel, Video


class VideosAPI:
    """Videos stored in an index. Accessed via ``client.indexes.videos``."""

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def list(self, index_id: str, **filters: Any) -> list[Video]:
        return await self._api.list_videos(index_id, **filters)

    async def retrieve(self, index_id: str, video_id: str) -> Video:
        return await self._api.retrieve_video(index_id, video_id)

    async def update(self, index_id: str, video_id: str, user_metadata: dict[str, Any]) -> None:
        await self._api.update_video(index_id, video_id, user_metadata)

    async def delete(self, index_id: str, video_id: str) -> None:
        await self._api.delete_video(index_id, video_id)


class IndexesAPI:
    """Indexes. Accessed via ``client.indexes``."""

    def __init__(self, api: ApiClient) -> None:
        self._api = api
        self.videos = VideosAPI(api)

    async def create(
        self,
        index_name: str,
        models: list[IndexModel],
        *,
        addons: Optional[list[str]] = None,
    ) -> Index:
        return await self._api.create_index(index_name, models, addons=addons)

    async def list(self, **filters: Any) -> list[Index]:
        return await self._api.list_indexes(**filters)

    async def retrieve(self, index_id: str) -> Index:
        return await self._api.retrieve_index(index_id)

    async def update(self, index_id: str, index_name: str) -> None:
        await self._api.update_index(index_id, index_name)

    async def delete(self, index_id: str) -> None:
        await self._api.delete_index(index_id)
