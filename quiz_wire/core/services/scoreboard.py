"""Scoring formula and ranking construction."""

from __future__ import annotations

from collections.abc import Iterable

from quiz_wire.core.models import PlayerHandle, RankingEntry
from quiz_wire.core.settings import GameSettings


def points_for_answer(elapsed_ms: int, settings: GameSettings) -> int:
    """Points for a correct answer given ``elapsed_ms`` after the question went out.

    ``max(minimum, base - elapsed_ms // divisor)``; negative elapsed times
    (clock skew between threads) count as zero.
    """
    elapsed_ms = max(0, int(elapsed_ms))
    return max(settings.minimum_points, settings.base_points - elapsed_ms // settings.decay_divisor)


def build_ranking(players: Iterable[PlayerHandle]) -> list[RankingEntry]:
    """Rank by descending total score.

    ``players`` must arrive in join order: the sort is stable, so equal
    scores keep that order.
    """
    ordered = sorted(players, key=lambda player: -player.total_score())
    return [
        RankingEntry(position=index, display_name=player.display_name, total_score=player.total_score())
        for index, player in enumerate(ordered, start=1)
    ]


def format_ranking(entries: Iterable[RankingEntry]) -> str:
    """Wire layout of RANKING/END bodies: ``1.name(800pts),2.other(0pts)``."""
    return ",".join(entry.label() for entry in entries)
