from dataclasses import dataclass

from ._constants import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Connection settings shared by :class:`ApiClient` and :class:`TwelveLabs`.

    ``timeout`` bounds a single HTTP request. Waiting helpers such as
    ``tasks.wait_for_done`` take their own overall timeout on top of it.
    """

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("api_key is required")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
