"""Game loop that turns the question list into timed, scored rounds.

Timing contract: both the start gate and the wait for answers are polling
loops that sleep ``poll_interval_seconds`` between checks. "Everyone has
answered" is therefore noticed at most one poll interval late, and the
answer deadline is enforced with the same slack. The orchestrator never
performs socket I/O itself beyond calling ``send_typed`` on each player,
which must neither block nor raise.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
import logging
from threading import Event, Lock
import time

from quiz_wire.constants.protocol_constants import (
    NEXT_QUESTION_TEXT,
    TYPE_END,
    TYPE_NEXT,
    TYPE_QUESTION,
    TYPE_RANKING,
    TYPE_RESULT,
)
from quiz_wire.core.models import (
    GamePhase,
    GameStatus,
    PlayerAward,
    PlayerHandle,
    Question,
    RankingEntry,
    RoundResult,
)
from quiz_wire.core.services.player_registry import PlayerRegistry
from quiz_wire.core.services.question_source import EmptyQuestionSet
from quiz_wire.core.services.scoreboard import build_ranking, format_ranking, points_for_answer
from quiz_wire.core.services.start_gate import StartGate
from quiz_wire.core.settings import GameSettings

logger = logging.getLogger(__name__)


class RoundOrchestrator:
    """Runs one game over a fixed question list.

    ``clock`` must be the same monotonic clock the players use to stamp
    their answers. ``sleep`` is injectable so tests can drive time.
    """

    def __init__(
        self,
        questions: Sequence[Question],
        registry: PlayerRegistry,
        settings: GameSettings | None = None,
        start_gate: StartGate | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not questions:
            raise EmptyQuestionSet("A game needs at least one question.")
        self._questions = tuple(questions)
        self._registry = registry
        self._settings = settings or GameSettings()
        self._start_gate = start_gate or StartGate(self._settings)
        self._clock = clock
        self._sleep = sleep

        self._lock = Lock()
        self._stop_requested = Event()
        self._phase = GamePhase.WAITING
        self._round_number = 0
        self._current_question: Question | None = None
        self._history: list[RoundResult] = []

    @property
    def start_gate(self) -> StartGate:
        return self._start_gate

    @property
    def total_rounds(self) -> int:
        return len(self._questions)

    def phase(self) -> GamePhase:
        with self._lock:
            return self._phase

    def history(self) -> list[RoundResult]:
        with self._lock:
            return list(self._history)

    def stop(self) -> None:
        """Ask the polling loops to finish; used on process shutdown."""
        self._stop_requested.set()

    def is_stopped(self) -> bool:
        return self._stop_requested.is_set()

    def current_ranking(self) -> list[RankingEntry]:
        return build_ranking(self._registry.snapshot())

    def status(self) -> GameStatus:
        with self._lock:
            phase = self._phase
            round_number = self._round_number
            question = self._current_question
        return GameStatus(
            phase=phase,
            round_number=round_number,
            total_rounds=self.total_rounds,
            player_count=self._registry.count(),
            current_question=question,
            ranking=self.current_ranking(),
        )

    def run(self) -> list[RankingEntry]:
        """Wait for the start gate, play every round, announce the final ranking.

        Returns the final ranking. A game can be run only once.
        """
        with self._lock:
            if self._phase is not GamePhase.WAITING:
                raise RuntimeError("This game has already been played.")

        if not self.wait_for_start():
            self._set_phase(GamePhase.STOPPED)
            return self.current_ranking()

        logger.info("Game started with %d players", self._registry.count())
        for number, question in enumerate(self._questions, start=1):
            if self.is_stopped():
                break
            self.play_round(number, question)
            if number < self.total_rounds and not self.is_stopped():
                self._set_phase(GamePhase.BETWEEN_ROUNDS)
                self.broadcast(TYPE_NEXT, NEXT_QUESTION_TEXT)
                self._pause(self._settings.inter_round_pause_seconds)

        final_ranking = self.current_ranking()
        if self.is_stopped():
            logger.info("Game stopped before the last question")
            self._set_phase(GamePhase.STOPPED)
            return final_ranking

        self.broadcast(TYPE_END, format_ranking(final_ranking))
        self._set_phase(GamePhase.FINISHED)
        logger.info("Game over. Final ranking: %s", format_ranking(final_ranking) or "(no players)")
        return final_ranking

    def wait_for_start(self) -> bool:
        """Poll the start gate; returns False if stopped before it opened."""
        while not self.is_stopped():
            if self._start_gate.should_start(
                self._registry.count(), self._clock(), self._registry.first_joined_at()
            ):
                self._start_gate.consume()
                return True
            self._sleep(self._settings.poll_interval_seconds)
        return False

    def play_round(self, number: int, question: Question) -> RoundResult:
        for player in self._registry.snapshot():
            player.reset_for_new_round()

        with self._lock:
            self._phase = GamePhase.QUESTION_OPEN
            self._round_number = number
            self._current_question = question

        logger.info("--- Question %d/%d --- %s", number, self.total_rounds, question.prompt)
        self.broadcast(TYPE_QUESTION, question.to_message_body())
        round_start = self._clock()
        deadline = question.time_limit_seconds or self._settings.answer_deadline_seconds

        ended_early = self._wait_for_answers(round_start, deadline)
        result = self._score_round(number, question, round_start, ended_early)
        with self._lock:
            self._history.append(result)

        self.broadcast(TYPE_RESULT, question.correct_option)
        ranking_body = format_ranking(self.current_ranking())
        self.broadcast(TYPE_RANKING, ranking_body)
        logger.info("Ranking: %s", ranking_body or "(no players)")
        return result

    def broadcast(self, type_tag: str, body: str) -> int:
        """Send to every registered player; returns how many sends succeeded."""
        players = self._registry.snapshot()
        delivered = sum(1 for player in players if player.send_typed(type_tag, body))
        logger.debug("Broadcast %s to %d/%d players", type_tag, delivered, len(players))
        return delivered

    def _wait_for_answers(self, round_start: float, deadline: float) -> bool:
        """Poll until every connected player answered (True) or the deadline passed (False)."""
        while True:
            if self._all_connected_answered():
                return True
            if self._clock() - round_start >= deadline or self.is_stopped():
                return False
            self._sleep(self._settings.poll_interval_seconds)

    def _all_connected_answered(self) -> bool:
        return all(player.has_answered() for player in self._registry.snapshot() if player.is_connected())

    def _score_round(self, number: int, question: Question, round_start: float, ended_early: bool) -> RoundResult:
        result = RoundResult(round_number=number, question=question, ended_early=ended_early)
        for player in self._registry.snapshot():
            if not player.is_connected():
                continue
            result.awards.append(self._score_player(player, question, round_start))
        return result

    def _score_player(self, player: PlayerHandle, question: Question, round_start: float) -> PlayerAward:
        if not player.has_answered():
            logger.info("  %s: NO ANSWER", player.display_name)
            return _award(player, None, None, 0)

        choice = player.chosen_option()
        answered_at = player.answered_at()
        elapsed_ms = round((answered_at - round_start) * 1000) if answered_at is not None else 0
        if not question.is_correct(choice):
            logger.info("  %s: WRONG (answered %s)", player.display_name, choice)
            return _award(player, choice, elapsed_ms, 0)

        points = points_for_answer(elapsed_ms, self._settings)
        player.add_score(points)
        logger.info("  %s: CORRECT (%dms) -> +%dpts", player.display_name, elapsed_ms, points)
        return _award(player, choice, elapsed_ms, points)

    def _pause(self, seconds: float) -> None:
        started = self._clock()
        while not self.is_stopped():
            remaining = seconds - (self._clock() - started)
            if remaining <= 0:
                return
            self._sleep(min(remaining, self._settings.poll_interval_seconds))

    def _set_phase(self, phase: GamePhase) -> None:
        with self._lock:
            self._phase = phase
            if phase in (GamePhase.FINISHED, GamePhase.STOPPED):
                self._current_question = None


def _award(player: PlayerHandle, choice: str | None, elapsed_ms: int | None, points: int) -> PlayerAward:
    return PlayerAward(
        player=player,
        display_name=player.display_name,
        chosen_option=choice,
        elapsed_ms=elapsed_ms,
        points=points,
    )
