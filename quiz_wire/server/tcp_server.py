"""Accept loop: one thread and one ``PlayerSession`` per connection."""

from __future__ import annotations

from collections.abc import Callable
import logging
import socket
import ssl
from threading import Event, Lock, Thread
import time

from quiz_wire.core.name_assigner import NameAssigner
from quiz_wire.core.services.player_registry import PlayerRegistry
from quiz_wire.server.player_session import PlayerSession
from quiz_wire.server.transport import open_listener, wrap_accepted

logger = logging.getLogger(__name__)


class QuizTcpServer:
    """Listens for players and hands each accepted connection to its own session thread."""

    def __init__(
        self,
        registry: PlayerRegistry,
        host: str,
        port: int,
        tls_context: ssl.SSLContext | None = None,
        name_assigner: NameAssigner | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._registry = registry
        self._host = host
        self._port = port
        self._tls_context = tls_context
        self._name_assigner = name_assigner or NameAssigner()
        self._clock = clock
        self._listener: socket.socket | None = None
        self._stopping = Event()
        self._sessions_lock = Lock()
        self._sessions: set[PlayerSession] = set()

    @property
    def address(self) -> tuple[str, int]:
        if self._listener is None:
            raise RuntimeError("Server is not listening.")
        return self._listener.getsockname()[:2]

    def listen(self) -> None:
        self._listener = open_listener(self._host, self._port)
        host, port = self.address
        logger.info("Listening on %s:%d (%s)", host, port, "TLS" if self._tls_context else "plaintext")

    def serve_forever(self) -> None:
        if self._listener is None:
            self.listen()
        while not self._stopping.is_set():
            try:
                conn, address = self._listener.accept()
            except OSError as exc:
                if self._stopping.is_set():
                    break
                logger.warning("Accept failed: %s", exc)
                continue
            Thread(
                target=self._serve_connection,
                args=(conn, address),
                name=f"QuizSession-{address[0]}:{address[1]}",
                daemon=True,
            ).start()
        logger.info("Stopped accepting connections")

    def _serve_connection(self, conn: socket.socket, address: tuple[str, int]) -> None:
        try:
            conn = wrap_accepted(conn, self._tls_context)
        except (ssl.SSLError, OSError) as exc:
            logger.warning("TLS handshake with %s failed: %s", address, exc)
            conn.close()
            return
        session = PlayerSession(conn, address, self._registry, self._name_assigner, clock=self._clock)
        with self._sessions_lock:
            self._sessions.add(session)
        try:
            session.run()
        finally:
            with self._sessions_lock:
                self._sessions.discard(session)

    def open_session_count(self) -> int:
        with self._sessions_lock:
            return len(self._sessions)

    def shutdown(self) -> None:
        """Stop accepting and disconnect every open session."""
        self._stopping.set()
        if self._listener is not None:
            try:
                # shutdown wakes a thread blocked in accept() on Linux; close alone may not
                self._listener.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            try:
                self._listener.close()
            except OSError as exc:
                logger.debug("Closing listener failed: %s", exc)
        with self._sessions_lock:
            sessions = list(self._sessions)
        for session in sessions:
            session.disconnect()
        logger.info("Disconnected %d open sessions", len(sessions))


def start_tcp_server(server: QuizTcpServer) -> Thread:
    """Bind the listener now and run the accept loop in a background daemon thread."""
    server.listen()
    thread = Thread(target=server.serve_forever, name="QuizTcpServer", daemon=True)
    thread.start()
    return thread
