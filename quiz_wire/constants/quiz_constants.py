"""Quiz timing and scoring constants shared by the core and server layers."""

from pathlib import Path

OPTION_LETTERS: tuple[str, ...] = ("A", "B", "C", "D")

DEFAULT_ANSWER_DEADLINE_SECONDS: float = 15.0
DEFAULT_POLL_INTERVAL_SECONDS: float = 0.5
DEFAULT_INTER_ROUND_PAUSE_SECONDS: float = 3.0

DEFAULT_BASE_POINTS: int = 1000
DEFAULT_MINIMUM_POINTS: int = 100
# A correct answer loses elapsed_ms // DEFAULT_DECAY_DIVISOR points.
DEFAULT_DECAY_DIVISOR: int = 10

DEFAULT_QUESTIONS_PATH: Path = Path(__file__).resolve().parent.parent / "data" / "sample_quiz.txt"
