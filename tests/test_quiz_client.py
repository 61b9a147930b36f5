from __future__ import annotations

from threading import Event

import pytest

from quiz_wire.client.quiz_client import is_valid_answer, render_message, run_console_client
from quiz_wire.constants.protocol_constants import (
    TYPE_END,
    TYPE_NEXT,
    TYPE_QUESTION,
    TYPE_RANKING,
    TYPE_RESULT,
    TYPE_WELCOME,
)
from quiz_wire.server.protocol import Message, MessageKind


def _response(type_tag: str, body: str) -> Message:
    return Message(kind=MessageKind.RESPONSE, body=body, status_code=200, reason="OK", type_tag=type_tag)


@pytest.mark.parametrize("text", ["A", "b", " c ", "D\n"])
def test_valid_answers(text):
    assert is_valid_answer(text)


@pytest.mark.parametrize("text", ["", "E", "AB", "1", "a b"])
def test_invalid_answers(text):
    assert not is_valid_answer(text)


def test_question_is_framed_with_lettered_options(capital_question):
    lines = render_message(_response(TYPE_QUESTION, capital_question.to_message_body()))

    assert "  What is the capital of France?" in lines
    assert "  B) Paris" in lines
    assert lines[-1] == "Your answer (A/B/C/D):"


def test_result_names_the_correct_letter():
    assert render_message(_response(TYPE_RESULT, "B")) == ["", ">> Correct answer: B"]


def test_rankings_list_one_row_per_player():
    body = "1.alice(950pts),2.bob(0pts)"

    assert render_message(_response(TYPE_RANKING, body)) == ["", "--- RANKING ---", "  1.alice(950pts)", "  2.bob(0pts)"]
    assert render_message(_response(TYPE_END, body))[1] == "=== FINAL RANKING ==="


def test_other_messages_echo_their_body():
    assert render_message(_response(TYPE_NEXT, "Next question!")) == ["", "Next question!"]
    assert render_message(_response("WAIT", "Answer received.")) == ["Answer received."]


class _ServerGoneClient:
    """Greets, then fails every send as if the server had closed the socket."""

    def __init__(self) -> None:
        self.released = Event()
        self._pending = [_response(TYPE_WELCOME, "Welcome to the quiz!")]

    def receive(self):
        if self._pending:
            return self._pending.pop(0)
        self.released.wait(timeout=5)
        return None

    def join(self, name: str) -> None:
        pass

    def answer(self, letter: str) -> None:
        raise BrokenPipeError(32, "Broken pipe")


def test_console_client_stops_when_an_answer_cannot_be_sent():
    client = _ServerGoneClient()
    typed = iter(["B"])
    output: list[str] = []

    def read_line() -> str:
        return next(typed)

    try:
        run_console_client(client, "alice", read_line=read_line, write_line=output.append)
    finally:
        client.released.set()

    assert output[0] == "Welcome to the quiz!"
    assert output[-1] == "Disconnected from the server."
