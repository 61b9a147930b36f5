from __future__ import annotations

import io

import pytest

from quiz_wire.server.protocol import (
    MessageKind,
    ProtocolError,
    decode,
    encode_request,
    encode_response,
    parse_question_body,
    parse_ranking_body,
)


def _stream(data: bytes) -> io.BufferedReader:
    return io.BufferedReader(io.BytesIO(data))


def test_request_wire_shape():
    assert encode_request("POST", "/answer", "A") == b"POST /answer HTTP/1.1\r\nContent-Length: 1\r\n\r\nA"


def test_response_wire_shape():
    assert encode_response("RESULT", "B") == (
        b"HTTP/1.1 200 OK\r\nX-Type: RESULT\r\nContent-Length: 1\r\n\r\nB"
    )


@pytest.mark.parametrize("body", ["", "Alice", "What is 2 + 2?\nA:3\nB:4\nC:5\nD:22"])
def test_request_round_trip(body):
    message = decode(_stream(encode_request("POST", "/join", body)))

    assert message.kind is MessageKind.REQUEST
    assert (message.method, message.path, message.body) == ("POST", "/join", body)
    assert not message.truncated


def test_response_round_trip_keeps_type_tag():
    message = decode(_stream(encode_response("RANKING", "1.a(800pts),2.b(0pts)")))

    assert message.kind is MessageKind.RESPONSE
    assert message.status_code == 200
    assert message.reason == "OK"
    assert message.type_tag == "RANKING"
    assert message.body == "1.a(800pts),2.b(0pts)"


def test_content_length_counts_encoded_bytes():
    data = encode_response("WELCOME", "José")

    assert b"Content-Length: 5\r\n" in data
    assert decode(_stream(data)).body == "José"


def test_consecutive_messages_are_read_one_at_a_time():
    stream = _stream(encode_request("POST", "/join", "Ann") + encode_request("POST", "/answer", "c"))

    assert decode(stream).path == "/join"
    assert decode(stream).body == "c"
    assert decode(stream) is None


def test_clean_eof_is_end_of_stream_not_error():
    assert decode(_stream(b"")) is None


def test_bare_newlines_are_accepted():
    message = decode(_stream(b"POST /answer HTTP/1.1\nContent-Length: 1\n\nD"))

    assert message.body == "D"


def test_header_names_are_case_insensitive():
    message = decode(_stream(b"POST /answer HTTP/1.1\r\ncontent-length: 1\r\n\r\nB"))

    assert message.body == "B"
    assert message.header("CONTENT-LENGTH") == "1"


def test_header_without_separator_is_a_protocol_error():
    with pytest.raises(ProtocolError):
        decode(_stream(b"POST /answer HTTP/1.1\r\nContent-Length 1\r\n\r\nA"))


@pytest.mark.parametrize(
    "head",
    [
        b"POST /answer HTTP/1.1\r\n\r\n",
        b"POST /answer HTTP/1.1\r\nContent-Length: one\r\n\r\n",
        b"POST /answer HTTP/1.1\r\nContent-Length: -1\r\n\r\n",
        b"POST /answer HTTP/1.1\r\nContent-Length: 999999999\r\n\r\n",
    ],
)
def test_missing_or_invalid_content_length_is_a_protocol_error(head):
    with pytest.raises(ProtocolError):
        decode(_stream(head))


@pytest.mark.parametrize("first_line", [b"garbage", b"POST /answer", b"HTTP/1.1 OK", b""])
def test_malformed_first_line_is_a_protocol_error(first_line):
    with pytest.raises(ProtocolError):
        decode(_stream(first_line + b"\r\nContent-Length: 0\r\n\r\n"))


def test_eof_inside_headers_is_a_protocol_error():
    with pytest.raises(ProtocolError):
        decode(_stream(b"POST /answer HTTP/1.1\r\nContent-Length: 1\r\n"))


def test_short_body_is_truncated_not_fatal():
    message = decode(_stream(b"POST /join HTTP/1.1\r\nContent-Length: 10\r\n\r\nBob"))

    assert message.body == "Bob"
    assert message.truncated


def test_overlong_line_is_a_protocol_error():
    with pytest.raises(ProtocolError):
        decode(_stream(b"POST /" + b"x" * 10_000 + b" HTTP/1.1\r\n"))


def test_response_without_type_header_is_returned_best_effort():
    message = decode(_stream(b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\n\r\nhi"))

    assert message.type_tag is None
    assert message.body == "hi"


@pytest.mark.parametrize("path", ["", "/has space", "/line\r\nbreak"])
def test_encoding_rejects_values_that_would_break_the_first_line(path):
    with pytest.raises(ValueError):
        encode_request("POST", path, "x")


def test_parse_question_body():
    prompt, options = parse_question_body("Capital of France?\nA:Madrid\nB:Paris\nC:Rome\nD:Berlin")

    assert prompt == "Capital of France?"
    assert options == {"A": "Madrid", "B": "Paris", "C": "Rome", "D": "Berlin"}


def test_parse_ranking_body():
    entries = parse_ranking_body("1.session1(800pts),2.session2(0pts)")

    assert [(e.position, e.display_name, e.total_score) for e in entries] == [
        (1, "session1", 800),
        (2, "session2", 0),
    ]
    assert parse_ranking_body("") == []
