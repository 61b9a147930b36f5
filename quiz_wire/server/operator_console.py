"""Line-based operator console: type START to begin the game."""

from __future__ import annotations

from collections.abc import Callable
import logging
from threading import Thread

from quiz_wire.core.models import GamePhase
from quiz_wire.core.services.round_orchestrator import RoundOrchestrator

logger = logging.getLogger(__name__)

_START = "START"
_STATUS = "STATUS"


def handle_command(line: str, orchestrator: RoundOrchestrator) -> bool:
    """Apply one console line; returns True when a start request was accepted."""
    command = line.strip().upper()
    if not command:
        return False
    status = orchestrator.status()
    if command == _STATUS:
        logger.info(
            "Phase=%s round=%d/%d players=%d",
            status.phase.value,
            status.round_number,
            status.total_rounds,
            status.player_count,
        )
        return False
    if command != _START:
        logger.info("Unknown command %r. Type START when every player has joined.", line.strip())
        return False
    if status.phase is not GamePhase.WAITING:
        logger.info("The game has already started.")
        return False
    if status.player_count == 0:
        logger.info("No players connected yet.")
        return False
    return orchestrator.start_gate.request_start()


def run_console(orchestrator: RoundOrchestrator, read_line: Callable[[], str] = input) -> None:
    """Read commands until the game leaves the waiting phase or input ends."""
    logger.info("Type START when every player has joined (STATUS shows the lobby).")
    while orchestrator.phase() is GamePhase.WAITING and not orchestrator.is_stopped():
        try:
            line = read_line()
        except EOFError:
            logger.info("Console input closed")
            return
        if handle_command(line, orchestrator):
            return


def start_console(orchestrator: RoundOrchestrator) -> Thread:
    thread = Thread(target=run_console, args=(orchestrator,), name="QuizOperatorConsole", daemon=True)
    thread.start()
    return thread
