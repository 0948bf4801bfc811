from ._version import __version__

DEFAULT_BASE_URL = "https://api.twelvelabs.io/v1.3"
DEFAULT_TIMEOUT = 60.0
DEFAULT_USER_AGENT = f"twelvelabs-python-async/{__version__}"

# Polling
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_EMBED_POLL_INTERVAL = 10.0
TERMINAL_TASK_STATUSES = frozenset({"ready", "failed", "error"})
TERMINAL_EMBED_TASK_STATUSES = frozenset({"ready", "failed"})

# Streaming analysis
STREAM_START_EVENT = "stream_start"
TEXT_GENERATION_EVENT = "text_generation"
STREAM_END_EVENT = "stream_end"

DEFAULT_EMBED_MODEL = "Marengo-retrieval-2.7"
