"""Loading the question set: remote document first, local file as fallback."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from quiz_wire.constants.network_constants import REMOTE_FETCH_TIMEOUT_SECONDS
from quiz_wire.core.models import Question
from quiz_wire.core.quiz_importer import QuizImportError, load_questions_from_file, parse_document

logger = logging.getLogger(__name__)


class QuestionSourceError(Exception):
    """Raised when a single source cannot supply questions."""


class EmptyQuestionSet(RuntimeError):
    """No source produced any question; the game cannot run."""


def fetch_remote_questions(
    url: str,
    timeout: float = REMOTE_FETCH_TIMEOUT_SECONDS,
    client: httpx.Client | None = None,
) -> list[Question]:
    owns_client = client is None
    http = client or httpx.Client(timeout=timeout, follow_redirects=True)
    try:
        response = http.get(url)
        response.raise_for_status()
        return parse_document(response.text, name_hint=url)
    except (httpx.HTTPError, QuizImportError) as exc:
        raise QuestionSourceError(f"remote questions unavailable from {url}: {exc}") from exc
    finally:
        if owns_client:
            http.close()


def read_local_questions(path: Path) -> list[Question]:
    try:
        return load_questions_from_file(path)
    except (OSError, UnicodeDecodeError, QuizImportError) as exc:
        raise QuestionSourceError(f"cannot read questions from {path}: {exc}") from exc


def load_questions(
    path: Path | None = None,
    url: str | None = None,
    timeout: float = REMOTE_FETCH_TIMEOUT_SECONDS,
    client: httpx.Client | None = None,
) -> list[Question]:
    """Return the first non-empty question list from ``url`` then ``path``.

    Raises ``EmptyQuestionSet`` when neither source yields a question.
    """
    if url:
        logger.info("Fetching questions from %s", url)
        try:
            questions = fetch_remote_questions(url, timeout=timeout, client=client)
        except QuestionSourceError as exc:
            logger.warning("%s; falling back to the local file", exc)
        else:
            if questions:
                logger.info("Loaded %d questions from %s", len(questions), url)
                return questions
            logger.warning("Remote source %s contained no questions; falling back to the local file", url)

    if path is not None:
        logger.info("Loading questions from %s", path)
        try:
            questions = read_local_questions(path)
        except QuestionSourceError as exc:
            logger.error("%s", exc)
        else:
            if questions:
                logger.info("Loaded %d questions from %s", len(questions), path)
                return questions

    raise EmptyQuestionSet("No questions could be loaded from any configured source.")
