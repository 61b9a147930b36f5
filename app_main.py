"""Server entry point: load questions, accept players, run one game."""

from __future__ import annotations

import logging
import sys
import time

from pydantic import ValidationError

from quiz_wire.constants.network_constants import DEFAULT_TLS_PORT
from quiz_wire.core.models import Question, RankingEntry
from quiz_wire.core.services.player_registry import PlayerRegistry
from quiz_wire.core.services.question_source import EmptyQuestionSet, load_questions
from quiz_wire.core.services.round_orchestrator import RoundOrchestrator
from quiz_wire.core.settings import ServerSettings
from quiz_wire.server.api_server import start_api_server
from quiz_wire.server.operator_console import start_console
from quiz_wire.server.tcp_server import QuizTcpServer, start_tcp_server
from quiz_wire.server.transport import create_server_context
from quiz_wire.utils.logging_config import configure_logging

logger = logging.getLogger("quiz_wire.app")


def run_game(settings: ServerSettings, questions: list[Question]) -> list[RankingEntry]:
    """Serve players until the game ends, then disconnect everyone and return the final ranking."""
    registry = PlayerRegistry()
    orchestrator = RoundOrchestrator(questions, registry, settings.game)

    tls_context = None
    port = settings.port
    if settings.tls_enabled:
        tls_context = create_server_context(settings.tls_certfile, settings.tls_keyfile)
        if "port" not in settings.model_fields_set:
            port = DEFAULT_TLS_PORT
    server = QuizTcpServer(registry, settings.host, port, tls_context=tls_context)
    start_tcp_server(server)

    if settings.api_enabled:
        start_api_server(orchestrator, host=settings.api_host, port=settings.api_port)
        logger.info("Operator dashboard at http://%s:%d/", settings.api_host, settings.api_port)
    if settings.console_enabled:
        start_console(orchestrator)

    try:
        ranking = orchestrator.run()
        time.sleep(settings.shutdown_grace_seconds)
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
        orchestrator.stop()
        ranking = orchestrator.current_ranking()
    finally:
        server.shutdown()
    return ranking


def main() -> None:
    """Load configuration and questions, then run the game. Exits 1 without questions."""
    configure_logging()
    try:
        settings = ServerSettings.from_environ()
    except ValidationError as exc:
        logger.error("Invalid configuration:\n%s", exc)
        sys.exit(2)

    try:
        questions = load_questions(
            path=settings.questions_path,
            url=settings.questions_url,
            timeout=settings.remote_timeout_seconds,
        )
    except EmptyQuestionSet as exc:
        logger.error("%s Exiting.", exc)
        sys.exit(1)

    logger.info("Loaded %d questions", len(questions))
    run_game(settings, questions)


if __name__ == "__main__":
    main()
