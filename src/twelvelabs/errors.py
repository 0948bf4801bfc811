import json
from http import HTTPStatus
from typing import Any, Optional, Union


class TwelveLabsError(Exception):
    """Base exception for all Twelve Labs SDK errors."""


class ValidationError(TwelveLabsError):
    """Invalid caller input, detected before any request is sent."""


class ApiError(TwelveLabsError):
    """HTTP API error with status code and optional server details."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.details = details

    @property
    def message(self) -> str:
        return str(self.args[0])

    def __repr__(self) -> str:
        parts = [f"{type(self).__name__}({self.args[0]!r}"]
        if self.status_code is not None:
            parts.append(f", status_code={self.status_code}")
        if self.code is not None:
            parts.append(f", code={self.code!r}")
        parts.append(")")
        return "".join(parts)


class BadRequestError(ApiError):
    """400 — the API rejected the request parameters."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, status_code=400, **kwargs)


class UnauthorizedError(ApiError):
    """401 — missing, invalid or revoked API key."""

    def __init__(self, message: str = "Invalid or revoked API key", **kwargs: Any) -> None:
        super().__init__(message, status_code=401, **kwargs)


class NotFoundError(ApiError):
    """404 — task, index, video or other resource not found."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, status_code=404, **kwargs)


class TooManyRequestsError(ApiError):
    """429 — rate limit exceeded."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, status_code=429, **kwargs)


class InternalServerError(ApiError):
    """500 — server-side error."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, status_code=500, **kwargs)


class NetworkError(TwelveLabsError):
    """Connection or transport-level failure (DNS, timeout, socket reset)."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class PollTimeoutError(TwelveLabsError):
    """The overall deadline elapsed before the task reached a terminal status."""

    def __init__(self, message: str, *, task_id: str, last_status: Optional[str] = None) -> None:
        super().__init__(message)
        self.task_id = task_id
        self.last_status = last_status


class PollCancelledError(TwelveLabsError):
    """Waiting for a task was cancelled by the caller."""

    def __init__(self, message: str, *, task_id: str) -> None:
        super().__init__(message)
        self.task_id = task_id


class CallbackError(TwelveLabsError):
    """A user-supplied callback raised; the original exception is ``__cause__``."""


class StreamDecodeError(TwelveLabsError):
    """Reading a streaming response failed part-way through."""

    def __init__(self, message: str, *, events_received: int = 0) -> None:
        super().__init__(message)
        self.events_received = events_received


class EmbedTaskFailedError(TwelveLabsError):
    """An embedding task finished with a failed status."""

    def __init__(self, message: str, *, task_id: str, status: str) -> None:
        super().__init__(message)
        self.task_id = task_id
        self.status = status


_ERRORS_BY_STATUS: dict[int, type[ApiError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    404: NotFoundError,
    429: TooManyRequestsError,
    500: InternalServerError,
}


def _fallback_message(status_code: int, reason: Optional[str]) -> str:
    if not reason:
        try:
            reason = HTTPStatus(status_code).phrase
        except ValueError:
            reason = None
    if reason:
        return f"HTTP {status_code} {reason}"
    return f"HTTP {status_code}"


def classify_error(
    status_code: int,
    body: Union[bytes, str, dict[str, Any], None],
    reason: Optional[str] = None,
) -> ApiError:
    """Map a non-2xx response to exactly one :class:`ApiError` type.

    The message comes from the body's ``message`` field when the body is a
    JSON object carrying one; otherwise it is derived from the status line.
    Unmapped status codes produce a plain :class:`ApiError`.
    """
    data: Any = body
    if isinstance(body, (bytes, str)):
        try:
            data = json.loads(body)
        except ValueError:
            data = None

    message = None
    code = None
    details = None
    if isinstance(data, dict):
        if isinstance(data.get("message"), str) and data["message"]:
            message = data["message"]
        code = data.get("code")
        details = data.get("details")

    if message is None:
        message = _fallback_message(status_code, reason)

    error_cls = _ERRORS_BY_STATUS.get(status_code)
    if error_cls is None:
        return ApiError(message, status_code=status_code, code=code, details=details)
    return error_cls(message, code=code, details=details)
