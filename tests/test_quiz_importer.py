from __future__ import annotations

import pytest

from quiz_wire.core.quiz_importer import (
    QuizImportError,
    load_questions_from_file,
    parse_blooket_csv,
    parse_quiz_text,
)

TEXT_QUIZ = """
Q: What is the capital
   of France?
A: Madrid
B: Paris
C: Rome
D: Berlin
CORRECT: b

---

Q: 2 + 2?
A: 3
B: 4
C: 5
D: 22
CORRECT: B
TIMELIMIT: 20
"""

BLOOKET_CSV = """Blooket Import Template,,,,,,,
Question #,Question Text,Answer 1,Answer 2,Answer 3,Answer 4,Time Limit (sec),Correct Answer(s)
1,Capital of France?,Madrid,Paris,Rome,Berlin,20,2
2,"Largest planet, by mass?",Mars,Venus,Jupiter,Earth,,3
3,broken row,only,three
4,Bad answer index,a,b,c,d,20,7
"""


def test_text_blocks_are_parsed_and_folded_to_single_lines():
    questions = parse_quiz_text(TEXT_QUIZ)

    assert len(questions) == 2
    assert questions[0].prompt == "What is the capital of France?"
    assert questions[0].options == ("Madrid", "Paris", "Rome", "Berlin")
    assert questions[0].correct_option == "B"
    assert questions[0].time_limit_seconds is None
    assert questions[1].time_limit_seconds == 20


def test_correct_answer_is_required():
    with pytest.raises(QuizImportError):
        parse_quiz_text("Q: x\nA: 1\nB: 2\nC: 3\nD: 4")


@pytest.mark.parametrize(
    "block",
    [
        "A: 1\nB: 2\nC: 3\nD: 4\nCORRECT: A",
        "Q: x\nA: 1\nB: 2\nC: 3\nCORRECT: A",
        "Q: x\nA: 1\nB: 2\nC: 3\nD: 4\nCORRECT: E",
        "Q: x\nA: 1\nB: 2\nC: 3\nD: 4\nCORRECT: A\nTIMELIMIT: soon",
        "stray text\nQ: x",
    ],
)
def test_malformed_blocks_are_rejected(block):
    with pytest.raises(QuizImportError):
        parse_quiz_text(block)


def test_blooket_rows_are_parsed_and_bad_rows_skipped():
    questions = parse_blooket_csv(BLOOKET_CSV)

    assert [q.prompt for q in questions] == ["Capital of France?", "Largest planet, by mass?"]
    assert questions[0].correct_option == "B"
    assert questions[0].time_limit_seconds == 20
    assert questions[1].correct_option == "C"
    assert questions[1].time_limit_seconds is None


def test_file_format_follows_extension(tmp_path):
    csv_file = tmp_path / "quiz.csv"
    csv_file.write_text(BLOOKET_CSV, encoding="utf-8")
    text_file = tmp_path / "quiz.txt"
    text_file.write_text(TEXT_QUIZ, encoding="utf-8")

    assert len(load_questions_from_file(csv_file)) == 2
    assert load_questions_from_file(text_file)[1].prompt == "2 + 2?"
