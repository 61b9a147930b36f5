"""Thread-safe membership of the players taking part in a game."""

from __future__ import annotations

from itertools import count
import logging
from threading import Lock

from quiz_wire.core.models import PlayerHandle

logger = logging.getLogger(__name__)


class PlayerRegistry:
    """Set of joined players, kept in join order.

    Connection handlers add and remove themselves; the round orchestrator
    only reads point-in-time snapshots. The lock is held just long enough
    to copy or update the membership map.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._members: dict[int, PlayerHandle] = {}
        self._join_sequence = count(1)
        self._first_joined_at: float | None = None

    def add(self, player: PlayerHandle, joined_at: float | None = None) -> bool:
        """Register ``player``; returns False if it was already registered."""
        with self._lock:
            if any(member is player for member in self._members.values()):
                return False
            self._members[next(self._join_sequence)] = player
            if self._first_joined_at is None and joined_at is not None:
                self._first_joined_at = joined_at
            total = len(self._members)
        logger.info("Player joined: %s (connected=%d)", player.display_name, total)
        return True

    def remove(self, player: PlayerHandle) -> bool:
        """Deregister ``player``; returns False if it was not registered."""
        with self._lock:
            key = next((k for k, member in self._members.items() if member is player), None)
            if key is None:
                return False
            del self._members[key]
            total = len(self._members)
        logger.info("Player left: %s (connected=%d)", player.display_name, total)
        return True

    def snapshot(self) -> list[PlayerHandle]:
        """Return the current members ordered by join sequence."""
        with self._lock:
            return [self._members[key] for key in sorted(self._members)]

    def count(self) -> int:
        with self._lock:
            return len(self._members)

    def first_joined_at(self) -> float | None:
        """Clock reading of the first successful join, if any player ever joined."""
        with self._lock:
            return self._first_joined_at
