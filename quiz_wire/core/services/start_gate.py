"""Start condition for a game, evaluated by polling."""

from __future__ import annotations

import logging
from threading import Lock

from quiz_wire.core.settings import GameSettings

logger = logging.getLogger(__name__)


class StartGate:
    """Decides when the first round may begin.

    The gate opens when at least one player is registered and any configured
    trigger holds: an operator request, ``min_players`` reached, or
    ``max_wait_seconds`` elapsed since the first join. Once the game has
    started the gate is closed for good and later requests are ignored.
    """

    def __init__(self, settings: GameSettings) -> None:
        self._settings = settings
        self._lock = Lock()
        self._start_requested = False
        self._consumed = False

    def request_start(self) -> bool:
        """Operator signal; returns False once the game has already started."""
        if not self._settings.operator_start_enabled:
            logger.info("Start request ignored: operator start is disabled")
            return False
        with self._lock:
            if self._consumed:
                logger.info("Start request ignored: the game has already started")
                return False
            self._start_requested = True
        logger.info("Start requested by operator")
        return True

    def is_start_requested(self) -> bool:
        with self._lock:
            return self._start_requested

    def is_consumed(self) -> bool:
        with self._lock:
            return self._consumed

    def should_start(self, player_count: int, now: float, first_joined_at: float | None) -> bool:
        if player_count < 1:
            return False
        settings = self._settings
        if settings.operator_start_enabled and self.is_start_requested():
            return True
        if settings.min_players is not None and player_count >= settings.min_players:
            return True
        if (
            settings.max_wait_seconds is not None
            and first_joined_at is not None
            and now - first_joined_at >= settings.max_wait_seconds
        ):
            return True
        return False

    def consume(self) -> None:
        with self._lock:
            self._consumed = True
