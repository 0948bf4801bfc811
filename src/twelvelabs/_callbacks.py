import inspect
from typing import Any, Awaitable, Callable, TypeVar, Union

from .errors import CallbackError

T = TypeVar("T")

# Observers may be plain functions or coroutine functions.
Callback = Callable[[T], Union[Any, Awaitable[Any]]]


async def invoke_callback(callback: Callback[T], value: T) -> None:
    """Call an observer, awaiting it if needed.

    Any exception it raises is re-raised as :class:`CallbackError` so the
    caller's loop stops with a typed error.
    """
    try:
        result = callback(value)
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        raise CallbackError(f"Callback raised {type(exc).__name__}: {exc}") from exc
