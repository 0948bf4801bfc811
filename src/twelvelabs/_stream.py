import asyncio
import json
import logging
from typing import Any, AsyncIterable, Optional, Union

import aiohttp

from ._callbacks import Callback, invoke_callback
from .errors import StreamDecodeError
from .types import StreamEvent, StreamEventMetadata, Usage

logger = logging.getLogger("twelvelabs")


def _parse_stream_event(line: Union[bytes, str]) -> Optional[StreamEvent]:
    """Parse one NDJSON line, or return None if it is not an event."""
    try:
        data = json.loads(line)
    except ValueError:
        return None
    if not isinstance(data, dict) or not isinstance(data.get("event_type"), str):
        return None

    text = data.get("text")
    metadata = None
    raw_meta = data.get("metadata")
    if isinstance(raw_meta, dict):
        raw_usage = raw_meta.get("usage")
        usage = None
        if isinstance(raw_usage, dict):
            usage = Usage(output_tokens=raw_usage.get("output_tokens"))
        metadata = StreamEventMetadata(
            generation_id=raw_meta.get("generation_id"),
            usage=usage,
        )

    return StreamEvent(
        event_type=data["event_type"],
        text=text if isinstance(text, str) else None,
        metadata=metadata,
    )


async def decode_stream(
    lines: AsyncIterable[Any],
    on_event: Callback[StreamEvent],
) -> Optional[StreamEvent]:
    """Deliver each event of a newline-delimited JSON stream to ``on_event``.

    Blank lines and lines that are not JSON event objects are skipped; the
    service interleaves keep-alives with events. Reading stops as soon as a
    ``stream_end`` event has been delivered, whatever follows it.

    Returns the ``stream_end`` event, or None if the stream hit EOF first.
    Raises :class:`CallbackError` if ``on_event`` raises, and
    :class:`StreamDecodeError` if reading the stream fails.
    """
    delivered = 0
    iterator = lines.__aiter__()

    while True:
        try:
            line = await iterator.__anext__()
        except StopAsyncIteration:
            return None
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as exc:
            raise StreamDecodeError(
                f"Reading stream failed after {delivered} events: {exc}",
                events_received=delivered,
            ) from exc

        if not line.strip():
            continue

        event = _parse_stream_event(line)
        if event is None:
            logger.debug("Skipping non-event stream line: %.80r", line)
            continue

        await invoke_callback(on_event, event)
        delivered += 1

        if event.is_end:
            return event
