"""HTTP-shaped message envelope used over long-lived quiz connections.

Wire shape (CRLF line endings)::

    POST /answer HTTP/1.1          HTTP/1.1 200 OK
    Content-Length: 1              X-Type: RESULT
                                   Content-Length: 1
    B
                                   B

Every message carries exactly ``Content-Length`` bytes of UTF-8 body; there
are no chunked bodies. Server-to-client messages name their meaning in the
``X-Type`` header.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
import re
from typing import BinaryIO

from quiz_wire.constants.protocol_constants import (
    ENCODING,
    HEADER_CONTENT_LENGTH,
    HEADER_TYPE,
    HTTP_VERSION,
    MAX_BODY_BYTES,
    MAX_LINE_BYTES,
    STATUS_CODE,
    STATUS_REASON,
)
from quiz_wire.constants.quiz_constants import OPTION_LETTERS
from quiz_wire.core.models import RankingEntry

logger = logging.getLogger(__name__)

_CRLF = "\r\n"
_RANKING_ENTRY = re.compile(r"^(\d+)\.(.*)\((-?\d+)pts\)$")


class ProtocolError(ValueError):
    """The peer sent bytes that do not form a valid message."""


class MessageKind(str, Enum):
    REQUEST = "request"
    RESPONSE = "response"


@dataclass(slots=True)
class Message:
    """One decoded request or response."""

    kind: MessageKind
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    version: str = HTTP_VERSION
    method: str | None = None
    path: str | None = None
    status_code: int | None = None
    reason: str | None = None
    type_tag: str | None = None
    truncated: bool = False  # fewer body bytes than Content-Length arrived before EOF

    @property
    def is_request(self) -> bool:
        return self.kind is MessageKind.REQUEST

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        return next((value for key, value in self.headers.items() if key.lower() == wanted), None)


def encode_request(method: str, path: str, body: str = "") -> bytes:
    _check_token(method, "method")
    _check_token(path, "path")
    payload = body.encode(ENCODING)
    head = f"{method} {path} {HTTP_VERSION}{_CRLF}{HEADER_CONTENT_LENGTH}: {len(payload)}{_CRLF}{_CRLF}"
    return head.encode(ENCODING) + payload


def encode_response(type_tag: str, body: str = "") -> bytes:
    _check_token(type_tag, "type tag")
    payload = body.encode(ENCODING)
    head = (
        f"{HTTP_VERSION} {STATUS_CODE} {STATUS_REASON}{_CRLF}"
        f"{HEADER_TYPE}: {type_tag}{_CRLF}"
        f"{HEADER_CONTENT_LENGTH}: {len(payload)}{_CRLF}{_CRLF}"
    )
    return head.encode(ENCODING) + payload


def decode(stream: BinaryIO) -> Message | None:
    """Read one message from ``stream``.

    Returns None when the stream ends before a first line (the peer closed
    the connection cleanly). Raises ``ProtocolError`` for a malformed first
    line or header, a missing or invalid ``Content-Length``, or oversized
    input. A body cut short by EOF is returned as read, with ``truncated``
    set, so that callers validate the content rather than the framing.
    """
    first_line = _read_line(stream)
    if first_line is None:
        return None
    message = _parse_first_line(first_line)

    while True:
        line = _read_line(stream)
        if line is None:
            raise ProtocolError("connection closed inside the header block")
        if not line:
            break
        name, separator, value = line.partition(": ")
        if not separator or not name.strip():
            raise ProtocolError(f"malformed header line: {line!r}")
        message.headers[name.strip()] = value.strip()

    length = _content_length(message)
    payload = stream.read(length) if length else b""
    if len(payload) < length:
        logger.warning("Body truncated: expected %d bytes, received %d", length, len(payload))
        message.truncated = True
    message.body = payload.decode(ENCODING, errors="replace")

    if not message.is_request:
        message.type_tag = message.header(HEADER_TYPE)
        if message.type_tag is None:
            logger.warning("Response without %s header: %r", HEADER_TYPE, first_line)
    return message


def parse_question_body(body: str) -> tuple[str, dict[str, str]]:
    """Split a QUESTION body into its prompt and ``{letter: option text}``."""
    prompt, *option_lines = body.split("\n")
    options: dict[str, str] = {}
    for line in option_lines:
        letter, separator, text = line.partition(":")
        if separator and letter.strip().upper() in OPTION_LETTERS:
            options[letter.strip().upper()] = text
    return prompt, options


def parse_ranking_body(body: str) -> list[RankingEntry]:
    """Parse a RANKING or END body; entries that do not match are skipped."""
    entries: list[RankingEntry] = []
    for chunk in body.split(","):
        match = _RANKING_ENTRY.match(chunk.strip())
        if match:
            entries.append(
                RankingEntry(position=int(match.group(1)), display_name=match.group(2), total_score=int(match.group(3)))
            )
    return entries


def _read_line(stream: BinaryIO) -> str | None:
    raw = stream.readline(MAX_LINE_BYTES + 1)
    if not raw:
        return None
    if len(raw) > MAX_LINE_BYTES and not raw.endswith(b"\n"):
        raise ProtocolError(f"line longer than {MAX_LINE_BYTES} bytes")
    return raw.decode(ENCODING, errors="replace").rstrip("\r\n")


def _parse_first_line(line: str) -> Message:
    if line.startswith("HTTP/"):
        parts = line.split(" ", 2)
        if len(parts) < 2 or not parts[1].isdigit():
            raise ProtocolError(f"malformed status line: {line!r}")
        return Message(
            kind=MessageKind.RESPONSE,
            version=parts[0],
            status_code=int(parts[1]),
            reason=parts[2] if len(parts) > 2 else "",
        )
    parts = line.split(" ")
    if len(parts) != 3 or not all(parts) or not parts[2].startswith("HTTP/"):
        raise ProtocolError(f"malformed request line: {line!r}")
    method, path, version = parts
    return Message(kind=MessageKind.REQUEST, method=method, path=path, version=version)


def _content_length(message: Message) -> int:
    raw = message.header(HEADER_CONTENT_LENGTH)
    if raw is None:
        raise ProtocolError(f"missing {HEADER_CONTENT_LENGTH} header")
    try:
        length = int(raw)
    except ValueError as exc:
        raise ProtocolError(f"invalid {HEADER_CONTENT_LENGTH}: {raw!r}") from exc
    if length < 0:
        raise ProtocolError(f"negative {HEADER_CONTENT_LENGTH}: {length}")
    if length > MAX_BODY_BYTES:
        raise ProtocolError(f"body of {length} bytes exceeds the {MAX_BODY_BYTES} byte limit")
    return length


def _check_token(value: str, what: str) -> None:
    if not value or any(char in value for char in " \r\n"):
        raise ValueError(f"invalid {what}: {value!r}")
