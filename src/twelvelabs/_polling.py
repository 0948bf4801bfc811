"""Wait for a remote task to reach a terminal status.

The poller is a single coroutine with no shared state: run as many as you
like concurrently, one per task ID.
"""
import asyncio
import logging
from operator import attrgetter
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

from ._callbacks import Callback, invoke_callback
from ._constants import DEFAULT_POLL_INTERVAL, TERMINAL_TASK_STATUSES
from .errors import ApiError, NetworkError, PollCancelledError, PollTimeoutError

logger = logging.getLogger("twelvelabs")

T = TypeVar("T")


class _Deadline:
    """Optional wall-clock bound on the event loop's monotonic clock."""

    def __init__(self, timeout: Optional[float]) -> None:
        self._loop = asyncio.get_running_loop()
        self._at = None if timeout is None else self._loop.time() + max(timeout, 0.0)

    def remaining(self) -> Optional[float]:
        if self._at is None:
            return None
        return self._at - self._loop.time()

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0


async def wait_until_done(
    retrieve: Callable[[str], Awaitable[T]],
    task_id: str,
    *,
    interval: Optional[float] = None,
    callback: Optional[Callback[T]] = None,
    cancel_event: Optional[asyncio.Event] = None,
    timeout: Optional[float] = None,
    terminal_statuses: Iterable[str] = TERMINAL_TASK_STATUSES,
    retry_errors: bool = True,
    status_of: Callable[[T], str] = attrgetter("status"),
) -> T:
    """Poll ``retrieve(task_id)`` until the status is terminal.

    Parameters
    ----------
    retrieve:
        Coroutine function returning a fresh snapshot of the task.
    interval:
        Seconds between retrievals. ``None`` or ``<= 0`` uses the default.
    callback:
        Called with every snapshot, including the final one. If it raises,
        polling stops with :class:`CallbackError`.
    cancel_event:
        Setting this event stops polling with :class:`PollCancelledError`,
        even in the middle of a sleep. Cancelling the asyncio task that runs
        the poller works too and raises ``asyncio.CancelledError``.
    timeout:
        Overall bound in seconds, ``None`` for no bound. Once it elapses,
        :class:`PollTimeoutError` is raised instead of retrieving again.
        Individual retrievals are bounded by the HTTP client's own timeout.
    terminal_statuses:
        Statuses that end the wait. Anything else means "still running".
    retry_errors:
        The first retrieval always propagates its error. When True, later
        :class:`ApiError` / :class:`NetworkError` failures are logged and
        retried after ``interval``. When False they propagate.
    """
    if interval is None or interval <= 0:
        interval = DEFAULT_POLL_INTERVAL
    terminal = frozenset(terminal_statuses)
    deadline = _Deadline(timeout)

    task = await retrieve(task_id)

    while True:
        status = status_of(task)
        logger.debug("Task %s status: %s", task_id, status)
        if callback is not None:
            await invoke_callback(callback, task)
        if status in terminal:
            logger.info("Task %s finished with status %s", task_id, status)
            return task

        task = await _next_snapshot(
            retrieve,
            task_id,
            interval=interval,
            deadline=deadline,
            cancel_event=cancel_event,
            retry_errors=retry_errors,
            last_status=status,
        )


async def _next_snapshot(
    retrieve: Callable[[str], Awaitable[T]],
    task_id: str,
    *,
    interval: float,
    deadline: _Deadline,
    cancel_event: Optional[asyncio.Event],
    retry_errors: bool,
    last_status: str,
) -> T:
    while True:
        await _pause(
            task_id,
            interval=interval,
            deadline=deadline,
            cancel_event=cancel_event,
            last_status=last_status,
        )
        try:
            return await retrieve(task_id)
        except (ApiError, NetworkError) as exc:
            if not retry_errors:
                raise
            logger.warning(
                "Retrieving task %s failed: %s. Retrying in %.1fs", task_id, exc, interval
            )


async def _pause(
    task_id: str,
    *,
    interval: float,
    deadline: _Deadline,
    cancel_event: Optional[asyncio.Event],
    last_status: str,
) -> None:
    """Sleep between retrievals; raise if cancelled or out of time."""
    _check(task_id, deadline, cancel_event, last_status)

    delay = interval
    remaining = deadline.remaining()
    if remaining is not None:
        delay = min(delay, remaining)

    if cancel_event is None:
        await asyncio.sleep(delay)
    else:
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    _check(task_id, deadline, cancel_event, last_status)


def _check(
    task_id: str,
    deadline: _Deadline,
    cancel_event: Optional[asyncio.Event],
    last_status: str,
) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise PollCancelledError(f"Waiting for task {task_id} was cancelled", task_id=task_id)
    if deadline.expired():
        raise PollTimeoutError(
            f"Task {task_id} did not finish in time (last status: {last_status})",
            task_id=task_id,
            last_status=last_status,
        )
