from __future__ import annotations

from conftest import FakePlayer
from quiz_wire.core.models import RankingEntry
from quiz_wire.core.services.scoreboard import build_ranking, format_ranking, points_for_answer
from quiz_wire.core.settings import GameSettings


def test_points_follow_speed_formula(settings):
    assert points_for_answer(0, settings) == 1000
    assert points_for_answer(2000, settings) == 800
    assert points_for_answer(2009, settings) == 800
    assert points_for_answer(9000, settings) == 100


def test_points_never_drop_below_floor_and_never_increase_with_time(settings):
    previous = points_for_answer(0, settings)
    for elapsed in range(0, 30_000, 7):
        points = points_for_answer(elapsed, settings)
        assert points >= settings.minimum_points
        assert points <= previous
        previous = points
    assert previous == settings.minimum_points


def test_negative_elapsed_counts_as_instant(settings):
    assert points_for_answer(-50, settings) == settings.base_points


def test_custom_scoring_settings():
    settings = GameSettings(base_points=500, minimum_points=50, decay_divisor=20)

    assert points_for_answer(2000, settings) == 400
    assert points_for_answer(60_000, settings) == 50


def test_ranking_sorts_descending_and_keeps_input_order_on_ties(clock):
    players = [FakePlayer(name, clock) for name in ("ann", "bob", "cid", "dee")]
    for player, score in zip(players, (100, 900, 100, 0)):
        player.add_score(score)

    ranking = build_ranking(players)

    assert ranking == [
        RankingEntry(1, "bob", 900),
        RankingEntry(2, "ann", 100),
        RankingEntry(3, "cid", 100),
        RankingEntry(4, "dee", 0),
    ]
    assert format_ranking(ranking) == "1.bob(900pts),2.ann(100pts),3.cid(100pts),4.dee(0pts)"


def test_empty_ranking_formats_as_empty_body():
    assert format_ranking(build_ranking([])) == ""
