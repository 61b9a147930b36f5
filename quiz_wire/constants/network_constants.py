"""Network configuration constants for the quiz server."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8080
DEFAULT_TLS_PORT: int = 8443
DEFAULT_API_HOST: str = "127.0.0.1"
DEFAULT_API_PORT: int = 8000
LISTEN_BACKLOG: int = 50
REMOTE_FETCH_TIMEOUT_SECONDS: float = 5.0
SHUTDOWN_GRACE_SECONDS: float = 1.0
CLIENT_CONNECT_TIMEOUT_SECONDS: float = 10.0
OUTBOX_MAX_MESSAGES: int = 256
WRITER_JOIN_TIMEOUT_SECONDS: float = 1.0
