"""Parsers that turn question files into ``Question`` values.

Two formats are understood.

Plain-text blocks, separated by blank lines or '---':

    Q: Question text. Additional lines until the next marker are folded
       into the prompt.
    A: First option text
    B: Second option text
    C: Third option text
    D: Fourth option text
    CORRECT: A|B|C|D
    TIMELIMIT: seconds (optional)

Blooket CSV exports: a title line, a header line, then one row per question:

    number,question,answer 1,answer 2,answer 3,answer 4,time limit,correct (1-4)

The QUESTION message carries the prompt and every option on a single line
each, so embedded line breaks are folded into spaces here.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path

from quiz_wire.constants.quiz_constants import OPTION_LETTERS
from quiz_wire.core.models import Question

logger = logging.getLogger(__name__)

_BLOOKET_SKIPPED_LINES = 2
_BLOOKET_MIN_COLUMNS = 8


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


def load_questions_from_file(file_path: Path) -> list[Question]:
    text = file_path.read_text(encoding="utf-8-sig")
    if file_path.suffix.lower() == ".csv":
        return parse_blooket_csv(text)
    return parse_quiz_text(text)


def parse_document(text: str, name_hint: str = "") -> list[Question]:
    """Parse text whose format is guessed from a file name or URL."""
    if name_hint.lower().split("?", 1)[0].endswith(".csv"):
        return parse_blooket_csv(text)
    return parse_quiz_text(text)


def parse_quiz_text(text: str) -> list[Question]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    return [_parse_block(block) for block in blocks if block]


def _parse_block(block: str) -> Question:
    question_lines: list[str] = []
    options: dict[str, list[str]] = {}
    correct_letter: str | None = None
    time_limit_seconds: int | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("TIMELIMIT:"):
            raw_value = line.split(":", 1)[1].strip()
            try:
                time_limit_seconds = int(raw_value)
            except ValueError as exc:
                raise QuizImportError("TIMELIMIT must be an integer number of seconds.") from exc
            if time_limit_seconds <= 0:
                raise QuizImportError("TIMELIMIT must be a positive integer.")
            current_section = None
            continue

        if len(line) > 2 and line[0].upper() in OPTION_LETTERS and line[1] == ":":
            letter = line[0].upper()
            options[letter] = [line[2:].strip()]
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in OPTION_LETTERS:
            options[current_section].append(line)
        else:
            raise QuizImportError(f"Encountered text outside of a known section: '{line}'.")

    prompt = _fold(question_lines)
    if not prompt:
        raise QuizImportError("Question text missing (Q: ...)")
    if len(options) != len(OPTION_LETTERS):
        raise QuizImportError("Each question must define exactly four options (A-D).")
    option_texts = [_fold(options[letter]) for letter in OPTION_LETTERS]
    if any(not text for text in option_texts):
        raise QuizImportError("Option text cannot be empty.")
    if correct_letter is None:
        raise QuizImportError("CORRECT is required (A, B, C, or D).")
    if correct_letter not in OPTION_LETTERS:
        raise QuizImportError("CORRECT must be one of A, B, C, or D.")

    return Question(
        prompt=prompt,
        options=tuple(option_texts),
        correct_option=correct_letter,
        time_limit_seconds=time_limit_seconds,
    )


def parse_blooket_csv(text: str) -> list[Question]:
    """Parse a Blooket export; malformed rows are logged and skipped."""
    questions: list[Question] = []
    reader = csv.reader(io.StringIO(text))
    for row in reader:
        line_number = reader.line_num
        if line_number <= _BLOOKET_SKIPPED_LINES or not any(cell.strip() for cell in row):
            continue
        try:
            questions.append(_parse_blooket_row(row))
        except (QuizImportError, ValueError) as exc:
            logger.warning("Skipping CSV line %d: %s", line_number, exc)
    return questions


def _parse_blooket_row(row: list[str]) -> Question:
    if len(row) < _BLOOKET_MIN_COLUMNS:
        raise QuizImportError(f"expected {_BLOOKET_MIN_COLUMNS} columns, got {len(row)}")
    answer_number = int(row[7].strip())
    if not 1 <= answer_number <= len(OPTION_LETTERS):
        raise QuizImportError(f"correct answer must be 1-4, got {answer_number}")
    raw_limit = row[6].strip()
    time_limit = int(raw_limit) if raw_limit else None
    return Question(
        prompt=_fold([row[1]]),
        options=tuple(_fold([cell]) for cell in row[2:6]),
        correct_option=OPTION_LETTERS[answer_number - 1],
        time_limit_seconds=time_limit if time_limit and time_limit > 0 else None,
    )


def _fold(lines: list[str]) -> str:
    return " ".join(" ".join(lines).split())
