"""Connection handler for one player: join handshake, answer capture, teardown."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
import logging
from queue import Full, Queue
import socket
from threading import Lock, Thread
import time
from typing import BinaryIO

from quiz_wire.constants.network_constants import OUTBOX_MAX_MESSAGES, WRITER_JOIN_TIMEOUT_SECONDS
from quiz_wire.constants.protocol_constants import (
    ALREADY_ANSWERED_TEXT,
    ALREADY_JOINED_TEXT,
    ANSWER_RECEIVED_TEXT,
    PATH_ANSWER,
    PATH_JOIN,
    TYPE_WAIT,
    TYPE_WELCOME,
    WAITING_FOR_START_TEXT,
    WELCOME_TEXT,
)
from quiz_wire.constants.quiz_constants import OPTION_LETTERS
from quiz_wire.core.name_assigner import NameAssigner
from quiz_wire.core.services.player_registry import PlayerRegistry
from quiz_wire.server.protocol import Message, ProtocolError, decode, encode_response

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    CONNECTING = "connecting"
    AWAITING_JOIN = "awaiting_join"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"


class PlayerSession:
    """Owns one player's connection and per-round answer state.

    ``run`` is meant to be the whole body of the connection's thread. Only
    that thread records answers; the round orchestrator reads them through
    the accessor methods and clears them with ``reset_for_new_round``.

    Outgoing messages go through a bounded outbox drained by a writer
    thread, so ``send_typed`` never blocks its caller on a slow peer.
    """

    def __init__(
        self,
        conn: socket.socket,
        address: object,
        registry: PlayerRegistry,
        name_assigner: NameAssigner,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.display_name = ""
        self._conn = conn
        self._address = address
        self._registry = registry
        self._name_assigner = name_assigner
        self._clock = clock
        self._reader: BinaryIO | None = None

        self._state = SessionState.CONNECTING
        self._outbox: Queue[bytes | None] = Queue(maxsize=OUTBOX_MAX_MESSAGES)
        self._writer: Thread | None = None
        self._send_failed = False
        self._answer_lock = Lock()
        self._teardown_lock = Lock()
        self._closed = False

        self._has_answered = False
        self._chosen_option: str | None = None
        self._answered_at: float | None = None
        self._total_score = 0

    def __repr__(self) -> str:
        return f"PlayerSession(name={self.display_name!r}, address={self._address!r}, state={self._state.value})"

    @property
    def state(self) -> SessionState:
        return self._state

    def run(self) -> None:
        logger.info("Connection from %s", self._address)
        try:
            self._reader = self._conn.makefile("rb")
            self._start_writer()
            if not self.send_typed(TYPE_WELCOME, WELCOME_TEXT):
                return
            self._state = SessionState.AWAITING_JOIN
            request = decode(self._reader)
            if request is None:
                logger.info("%s closed the connection before joining", self._address)
                return
            self.display_name = self._resolve_name(request)
            self.send_typed(TYPE_WELCOME, self.display_name)
            self.send_typed(TYPE_WAIT, WAITING_FOR_START_TEXT)
            self._registry.add(self, joined_at=self._clock())
            self._state = SessionState.ACTIVE
            self._receive_loop()
        except ProtocolError as exc:
            logger.warning("Protocol error from %s (%s): %s", self.display_name or "?", self._address, exc)
        except OSError as exc:
            logger.warning("Connection error with %s (%s): %s", self.display_name or "?", self._address, exc)
        finally:
            self._teardown()

    def _resolve_name(self, request: Message) -> str:
        if request.is_request and request.path == PATH_JOIN:
            name = request.body.strip()
            if name:
                return name
        fallback = self._name_assigner.next_name()
        logger.info("%s sent no usable join request; assigned name %s", self._address, fallback)
        return fallback

    def _receive_loop(self) -> None:
        while True:
            message = decode(self._reader)
            if message is None:
                return
            if not message.is_request:
                logger.debug("Ignoring response-shaped message from %s", self.display_name)
            elif message.path == PATH_ANSWER:
                self.submit_answer(message.body)
            elif message.path == PATH_JOIN:
                logger.info("Ignoring repeated join from %s", self.display_name)
                self.send_typed(TYPE_WAIT, ALREADY_JOINED_TEXT)
            else:
                logger.debug("Ignoring %s %s from %s", message.method, message.path, self.display_name)

    def submit_answer(self, payload: str) -> bool:
        """Record ``payload`` as this round's answer if it is the first valid one.

        Anything other than a single letter A-D is ignored without a reply.
        A second valid answer in the same round is acknowledged but dropped.
        """
        letter = payload.strip().upper()
        if len(letter) != 1 or letter not in OPTION_LETTERS:
            logger.debug("Invalid answer %r from %s", payload, self.display_name)
            return False
        with self._answer_lock:
            if self._has_answered:
                accepted = False
            else:
                self._chosen_option = letter
                self._answered_at = self._clock()
                self._has_answered = True
                accepted = True
        if accepted:
            logger.debug("%s answered %s", self.display_name, letter)
            self.send_typed(TYPE_WAIT, ANSWER_RECEIVED_TEXT)
        else:
            self.send_typed(TYPE_WAIT, ALREADY_ANSWERED_TEXT)
        return accepted

    def send_typed(self, type_tag: str, body: str) -> bool:
        """Queue one typed response for the writer thread.

        Never blocks and never raises. Returns False once the session is
        closed or its writer has failed. A full outbox means the peer stopped
        reading: the session is disconnected and False is returned.
        """
        if self._closed or self._send_failed:
            return False
        data = encode_response(type_tag, body)
        try:
            self._outbox.put_nowait(data)
        except Full:
            logger.warning(
                "%s stopped reading; dropping %s and disconnecting", self.display_name or self._address, type_tag
            )
            self._send_failed = True
            self.disconnect()
            return False
        return True

    def _start_writer(self) -> None:
        self._writer = Thread(target=self._write_loop, name=f"QuizWriter-{self._address}", daemon=True)
        self._writer.start()

    def _write_loop(self) -> None:
        while True:
            data = self._outbox.get()
            if data is None:
                return
            try:
                self._conn.sendall(data)
            except OSError as exc:
                logger.warning("Send to %s failed: %s", self.display_name or self._address, exc)
                self._send_failed = True
                self.disconnect()
                return

    def _stop_writer(self) -> None:
        if self._writer is None:
            return
        try:
            self._outbox.put_nowait(None)
        except Full:
            pass  # the shutdown below wakes a writer stuck in sendall
        self.disconnect()
        self._writer.join(timeout=WRITER_JOIN_TIMEOUT_SECONDS)

    def reset_for_new_round(self) -> None:
        with self._answer_lock:
            self._has_answered = False
            self._chosen_option = None
            self._answered_at = None

    def has_answered(self) -> bool:
        return self._has_answered

    def chosen_option(self) -> str | None:
        return self._chosen_option

    def answered_at(self) -> float | None:
        return self._answered_at

    def add_score(self, points: int) -> None:
        if points < 0:
            raise ValueError("Scores only ever increase.")
        self._total_score += points

    def total_score(self) -> int:
        return self._total_score

    def is_connected(self) -> bool:
        return not self._closed

    def disconnect(self) -> None:
        """Shut the socket down so the handler's blocking read returns and it tears down."""
        try:
            self._conn.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # already disconnected

    def _teardown(self) -> None:
        with self._teardown_lock:
            if self._state is SessionState.DISCONNECTED:
                return
            self._state = SessionState.DISCONNECTED
        self._registry.remove(self)
        self._closed = True
        self._stop_writer()
        if self._reader is not None:
            try:
                self._reader.close()
            except OSError:
                pass
        try:
            self._conn.close()
        except OSError as exc:
            logger.debug("Closing %s failed: %s", self._address, exc)
        logger.info("%s disconnected", self.display_name or self._address)
