import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import aiohttp

from ._config import ClientConfig
from .errors import ApiError, NetworkError, classify_error

logger = logging.getLogger("twelvelabs")


class HttpClient:
    """Internal HTTP helper shared by TwelveLabs and ApiClient.

    Manages an aiohttp session, adds the API key header, and maps HTTP
    status codes to SDK exceptions.
    """

    def __init__(self, config: ClientConfig) -> None:
        self._config = config
        self._timeout = aiohttp.ClientTimeout(total=config.timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    async def _ensure_session(self) -> aiohttp.ClientSession:
        # No session-wide Content-Type: aiohttp picks JSON or multipart per request.
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={
                    "x-api-key": self._config.api_key,
                    "User-Agent": self._config.user_agent,
                },
            )
        return self._session

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
        form: Optional[aiohttp.FormData] = None,
    ) -> Any:
        """Make an HTTP request and return the parsed JSON response.

        Raises SDK-specific exceptions for error status codes.
        """
        session = await self._ensure_session()
        url = f"{self.base_url}{path}"

        try:
            async with session.request(
                method, url, json=json_body, params=params, data=form
            ) as resp:
                body = await resp.read()
                logger.debug("%s %s -> %d", method, path, resp.status)
                if not resp.ok:
                    raise classify_error(resp.status, body, resp.reason)

                if resp.status == 204 or not body.strip():
                    return {}
                try:
                    return await resp.json(content_type=None)
                except ValueError as exc:
                    raise ApiError(
                        f"Malformed JSON in response to {method} {path}",
                        status_code=resp.status,
                    ) from exc

        except aiohttp.ClientError as exc:
            raise NetworkError(f"Network error: {exc}", cause=exc) from exc
        except asyncio.TimeoutError as exc:
            raise NetworkError("Request timed out", cause=exc) from exc

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[dict[str, Any]] = None,
    ) -> AsyncIterator[aiohttp.ClientResponse]:
        """Open a request whose body is consumed incrementally.

        Error responses are read and raised before anything is yielded.
        The response is released when the block exits, on success or error.
        """
        session = await self._ensure_session()
        url = f"{self.base_url}{path}"

        try:
            resp = await session.request(method, url, json=json_body)
        except aiohttp.ClientError as exc:
            raise NetworkError(f"Network error: {exc}", cause=exc) from exc
        except asyncio.TimeoutError as exc:
            raise NetworkError("Request timed out", cause=exc) from exc

        try:
            if not resp.ok:
                try:
                    body = await resp.read()
                except (aiohttp.ClientError, asyncio.TimeoutError):
                    body = b""
                raise classify_error(resp.status, body, resp.reason)
            yield resp
        finally:
            # A body abandoned mid-stream cannot go back to the pool.
            if resp.content.at_eof():
                resp.release()
            else:
                resp.close()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
