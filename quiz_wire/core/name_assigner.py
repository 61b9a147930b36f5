"""Fallback display names for players who join without one."""

from __future__ import annotations

from collections import Counter, deque
import random
from threading import Lock

_DEFAULT_ALIASES = [
    "Ada",
    "Babbage",
    "Curie",
    "Darwin",
    "Euler",
    "Faraday",
    "Gauss",
    "Hopper",
    "Hypatia",
    "Kepler",
    "Lovelace",
    "Maxwell",
    "Noether",
    "Pascal",
    "Ramanujan",
    "Tesla",
    "Turing",
    "Volta",
]


class NameAssigner:
    """Hands out shuffled aliases; once the pool is exhausted names repeat with a numeric suffix."""

    def __init__(self, names: list[str] | None = None, seed: int | None = None):
        cleaned = [name.strip() for name in (names or _DEFAULT_ALIASES) if name.strip()]
        if not cleaned:
            raise ValueError("Name list cannot be empty.")
        self._names = cleaned
        self._pool: deque[str] = deque()
        self._issued: Counter[str] = Counter()
        self._lock = Lock()
        self._rng = random.Random(seed)
        self._refill_pool()

    def next_name(self) -> str:
        with self._lock:
            if not self._pool:
                self._refill_pool()
            base = self._pool.popleft()
            self._issued[base] += 1
            count = self._issued[base]
            return base if count == 1 else f"{base}_{count}"

    def _refill_pool(self) -> None:
        shuffled = list(self._names)
        self._rng.shuffle(shuffled)
        self._pool.extend(shuffled)
