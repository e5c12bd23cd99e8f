import pytest

from scorekeeper.services.tournaments.scoring import (
    elimination_points,
    place_points,
    round_total,
    score_round,
    self_elimination_points,
)

EXPECTED_PLACES = [30, 25, 22, 20, 18, 16, 14, 12, 10, 8, 7, 6, 5, 4, 3, 2, 2, 2, 2, 2, 1, 1, 1, 1, 1]


def test_place_points_table():
    assert [place_points(p) for p in range(1, 26)] == EXPECTED_PLACES


@pytest.mark.parametrize('place', [26, 50, 99, 100])
def test_place_points_below_25th_score_nothing(place):
    assert place_points(place) == 0


@pytest.mark.parametrize('place', [0, -3, 101, 1000, None, '1', 2.0, True])
def test_place_points_invalid_inputs_score_nothing(place):
    assert place_points(place) == 0


def test_elimination_points_breakpoints():
    assert elimination_points(0) == 0
    assert elimination_points(10) == 10
    assert elimination_points(11) == 12
    assert elimination_points(100) == 190


def test_elimination_points_monotonic():
    values = [elimination_points(n) for n in range(0, 101)]
    assert all(b >= a for a, b in zip(values, values[1:]))


@pytest.mark.parametrize('count', [-1, 101, None, 'ten', True])
def test_elimination_points_invalid_inputs_score_nothing(count):
    assert elimination_points(count) == 0


def test_self_elimination_penalty():
    assert self_elimination_points(True) == -5
    assert self_elimination_points(False) == 0


def test_round_total_examples():
    assert round_total(1, 10, False) == 40
    assert round_total(50, 0, True) == -5


def test_self_elimination_keeps_place_points():
    rs = score_round(1, 0, True)
    assert rs.place_points == 30
    assert rs.total == 25


def test_score_round_breakdown():
    rs = score_round(3, 12, False)
    assert rs.to_dict() == {
        'place': 3,
        'eliminations': 12,
        'selfEliminated': False,
        'placePoints': 22,
        'eliminationPoints': 14,
        'selfEliminationPoints': 0,
        'total': 36,
    }
