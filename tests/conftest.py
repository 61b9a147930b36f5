from __future__ import annotations

import heapq
from itertools import count
import time

import pytest

from quiz_wire.constants.protocol_constants import TYPE_QUESTION
from quiz_wire.core.models import Question
from quiz_wire.core.services.player_registry import PlayerRegistry
from quiz_wire.core.settings import GameSettings


class FakeClock:
    """Manual monotonic clock; ``sleep`` advances time and fires due callbacks."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self._timers: list[tuple[float, int, object]] = []
        self._order = count()

    def __call__(self) -> float:
        return self.now

    def call_at(self, when: float, callback) -> None:
        heapq.heappush(self._timers, (when, next(self._order), callback))

    def sleep(self, seconds: float) -> None:
        self.now += seconds
        while self._timers and self._timers[0][0] <= self.now:
            when, _, callback = heapq.heappop(self._timers)
            callback(when)


class FakePlayer:
    """In-memory stand-in for a connected player session."""

    def __init__(self, name: str, clock: FakeClock, answers=None, connected: bool = True) -> None:
        self.display_name = name
        self.clock = clock
        self.answers = list(answers or [])  # one (letter, offset_seconds) or None per question
        self.connected = connected
        self.sent: list[tuple[str, str, float]] = []
        self.questions_seen = 0
        self._score = 0
        self.reset_for_new_round()

    def send_typed(self, type_tag: str, body: str) -> bool:
        if not self.connected:
            return False
        self.sent.append((type_tag, body, self.clock.now))
        if type_tag == TYPE_QUESTION:
            planned = self.answers[self.questions_seen] if self.questions_seen < len(self.answers) else None
            self.questions_seen += 1
            if planned is not None:
                letter, offset = planned
                self.clock.call_at(self.clock.now + offset, lambda when, letter=letter: self.answer(letter, when))
        return True

    def answer(self, letter: str, when: float) -> None:
        if not self._answered:
            self._answered = True
            self._choice = letter
            self._answered_at = when

    def reset_for_new_round(self) -> None:
        self._answered = False
        self._choice = None
        self._answered_at = None

    def has_answered(self) -> bool:
        return self._answered

    def chosen_option(self):
        return self._choice

    def answered_at(self):
        return self._answered_at

    def add_score(self, points: int) -> None:
        self._score += points

    def total_score(self) -> int:
        return self._score

    def is_connected(self) -> bool:
        return self.connected

    def bodies(self, type_tag: str) -> list[str]:
        return [body for tag, body, _ in self.sent if tag == type_tag]

    def times(self, type_tag: str) -> list[float]:
        return [at for tag, _, at in self.sent if tag == type_tag]


def wait_until(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry() -> PlayerRegistry:
    return PlayerRegistry()


@pytest.fixture
def settings() -> GameSettings:
    return GameSettings(
        answer_deadline_seconds=15,
        poll_interval_seconds=0.5,
        inter_round_pause_seconds=3,
    )


@pytest.fixture
def capital_question() -> Question:
    return Question(
        prompt="What is the capital of France?",
        options=("Madrid", "Paris", "Rome", "Berlin"),
        correct_option="b",
    )


@pytest.fixture
def make_question():
    def factory(index: int, correct: str = "A", time_limit: float | None = None) -> Question:
        return Question(
            prompt=f"Question {index}?",
            options=(f"a{index}", f"b{index}", f"c{index}", f"d{index}"),
            correct_option=correct,
            time_limit_seconds=time_limit,
        )

    return factory
