"""Console player client for the quiz server."""

from __future__ import annotations

from collections.abc import Callable
import logging
import socket
import ssl
from threading import Event, Lock, Thread
from typing import BinaryIO

from quiz_wire.constants.network_constants import CLIENT_CONNECT_TIMEOUT_SECONDS
from quiz_wire.constants.protocol_constants import (
    METHOD_POST,
    PATH_ANSWER,
    PATH_JOIN,
    TYPE_END,
    TYPE_NEXT,
    TYPE_QUESTION,
    TYPE_RANKING,
    TYPE_RESULT,
)
from quiz_wire.constants.quiz_constants import OPTION_LETTERS
from quiz_wire.server.protocol import (
    Message,
    decode,
    encode_request,
    parse_question_body,
    parse_ranking_body,
)
from quiz_wire.server.transport import connect

logger = logging.getLogger(__name__)


class QuizClient:
    """Blocking client for one player connection."""

    def __init__(self, conn: socket.socket) -> None:
        self._conn = conn
        self._reader: BinaryIO = conn.makefile("rb")
        self._send_lock = Lock()

    @classmethod
    def connect(cls, host: str, port: int, tls_context: ssl.SSLContext | None = None) -> "QuizClient":
        return cls(connect(host, port, context=tls_context, timeout=CLIENT_CONNECT_TIMEOUT_SECONDS))

    def __enter__(self) -> "QuizClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def join(self, name: str) -> None:
        self._send(PATH_JOIN, name.strip())

    def answer(self, letter: str) -> None:
        self._send(PATH_ANSWER, letter.strip().upper())

    def receive(self) -> Message | None:
        """Next server message, or None once the server closed the connection."""
        return decode(self._reader)

    def close(self) -> None:
        try:
            self._reader.close()
        finally:
            self._conn.close()

    def _send(self, path: str, body: str) -> None:
        with self._send_lock:
            self._conn.sendall(encode_request(METHOD_POST, path, body))


def is_valid_answer(text: str) -> bool:
    letter = text.strip().upper()
    return len(letter) == 1 and letter in OPTION_LETTERS


def render_message(message: Message) -> list[str]:
    """Human-readable lines for one server message."""
    tag, body = message.type_tag, message.body
    if tag == TYPE_QUESTION:
        prompt, options = parse_question_body(body)
        lines = ["", "=" * 40, f"  {prompt}", "=" * 40]
        lines.extend(f"  {letter}) {text}" for letter, text in options.items())
        lines.extend(["-" * 40, "Your answer (A/B/C/D):"])
        return lines
    if tag == TYPE_RESULT:
        return ["", f">> Correct answer: {body}"]
    if tag in (TYPE_RANKING, TYPE_END):
        title = "--- RANKING ---" if tag == TYPE_RANKING else "=== FINAL RANKING ==="
        rows = [f"  {entry.label()}" for entry in parse_ranking_body(body)]
        return ["", title, *rows]
    if tag == TYPE_NEXT:
        return ["", body]
    return [body]


def run_console_client(
    client: QuizClient,
    name: str,
    read_line: Callable[[], str] = input,
    write_line: Callable[[str], None] = print,
) -> None:
    """Join as ``name``, print server messages, and forward typed answers until the game ends."""
    finished = Event()

    def listen() -> None:
        try:
            while True:
                message = client.receive()
                if message is None:
                    break
                for line in render_message(message):
                    write_line(line)
                if message.type_tag == TYPE_END:
                    break
        except (OSError, ValueError) as exc:
            logger.warning("Connection to the server lost: %s", exc)
        finally:
            finished.set()

    welcome = client.receive()
    if welcome is not None:
        write_line(welcome.body)
    client.join(name)
    Thread(target=listen, name="QuizClientListener", daemon=True).start()

    while not finished.is_set():
        try:
            text = read_line()
        except EOFError:
            break
        if finished.is_set():
            break
        if not text.strip():
            continue
        if is_valid_answer(text):
            try:
                client.answer(text)
            except OSError as exc:
                logger.warning("Could not send the answer: %s", exc)
                break
        else:
            write_line("[!] Invalid answer. Only A, B, C or D.")
    write_line("Disconnected from the server.")
