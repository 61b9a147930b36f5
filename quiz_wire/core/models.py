"""Domain models for the quiz server."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from quiz_wire.constants.quiz_constants import OPTION_LETTERS


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question with exactly four options labelled A-D."""

    prompt: str
    options: tuple[str, str, str, str]
    correct_option: str
    time_limit_seconds: float | None = None  # overrides the default answer deadline

    def __post_init__(self) -> None:
        if len(self.options) != len(OPTION_LETTERS):
            raise ValueError("Each question must have exactly four options.")
        if not self.prompt.strip():
            raise ValueError("Question prompt must not be empty.")
        for text in (self.prompt, *self.options):
            if "\n" in text or "\r" in text:
                raise ValueError("Question text must fit on a single line.")
        letter = self.correct_option.strip().upper()
        if letter not in OPTION_LETTERS:
            raise ValueError("Correct option must be one of A, B, C, or D.")
        if self.time_limit_seconds is not None and self.time_limit_seconds <= 0:
            raise ValueError("Time limit must be positive.")
        object.__setattr__(self, "options", tuple(self.options))
        object.__setattr__(self, "correct_option", letter)

    def is_correct(self, letter: str | None) -> bool:
        return letter is not None and letter.upper() == self.correct_option

    def option_lines(self) -> list[str]:
        return [f"{letter}:{text}" for letter, text in zip(OPTION_LETTERS, self.options)]

    def to_message_body(self) -> str:
        """Layout used by QUESTION messages: the prompt, then one ``Letter:text`` line per option."""
        return "\n".join([self.prompt, *self.option_lines()])


@dataclass(frozen=True, slots=True)
class RankingEntry:
    """One row of a ranking, recomputed every round."""

    position: int
    display_name: str
    total_score: int

    def label(self) -> str:
        return f"{self.position}.{self.display_name}({self.total_score}pts)"


@dataclass(frozen=True, slots=True)
class PlayerAward:
    """Outcome of a single round for a single player.

    ``player`` is the handle that earned the award; display names need not be unique.
    """

    player: PlayerHandle = field(repr=False, compare=False)
    display_name: str
    chosen_option: str | None
    elapsed_ms: int | None
    points: int


@dataclass(slots=True)
class RoundResult:
    """History entry describing one finished round."""

    round_number: int
    question: Question
    awards: list[PlayerAward] = field(default_factory=list)
    ended_early: bool = False

    def points_for(self, player: PlayerHandle) -> int:
        return sum(award.points for award in self.awards if award.player is player)


class GamePhase(str, Enum):
    WAITING = "waiting"
    QUESTION_OPEN = "question_open"
    BETWEEN_ROUNDS = "between_rounds"
    FINISHED = "finished"
    STOPPED = "stopped"


@dataclass(frozen=True, slots=True)
class GameStatus:
    """Point-in-time view of the game for the operator surfaces."""

    phase: GamePhase
    round_number: int
    total_rounds: int
    player_count: int
    current_question: Question | None
    ranking: list[RankingEntry]


class PlayerHandle(Protocol):
    """What the round orchestrator may do with a registered player.

    Answer state is written by the player's own connection handler; the
    orchestrator only reads it and clears it through ``reset_for_new_round``.
    """

    display_name: str

    def send_typed(self, type_tag: str, body: str) -> bool: ...

    def reset_for_new_round(self) -> None: ...

    def has_answered(self) -> bool: ...

    def chosen_option(self) -> str | None: ...

    def answered_at(self) -> float | None: ...

    def add_score(self, points: int) -> None: ...

    def total_score(self) -> int: ...

    def is_connected(self) -> bool: ...
