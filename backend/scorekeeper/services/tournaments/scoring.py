from dataclasses import dataclass

# Points for finishing positions 1..25; anything below 25th scores nothing
PLACE_POINTS = {
    1: 30, 2: 25, 3: 22, 4: 20, 5: 18, 6: 16, 7: 14, 8: 12, 9: 10, 10: 8,
    11: 7, 12: 6, 13: 5, 14: 4, 15: 3, 16: 2, 17: 2, 18: 2, 19: 2, 20: 2,
    21: 1, 22: 1, 23: 1, 24: 1, 25: 1,
}
MIN_PLACE, MAX_PLACE = 1, 100
MIN_ELIMINATIONS, MAX_ELIMINATIONS = 0, 100
# Eliminations past this count are worth double
ELIMINATION_BONUS_THRESHOLD = 10
SELF_ELIMINATION_PENALTY = -5


@dataclass(frozen=True)
class RoundScore:
    """One player's result for one round, with the points frozen at creation."""

    place: int
    eliminations: int
    self_eliminated: bool
    place_points: int
    elimination_points: int
    self_elimination_points: int
    total: int

    def to_dict(self):
        return {
            'place': self.place,
            'eliminations': self.eliminations,
            'selfEliminated': self.self_eliminated,
            'placePoints': self.place_points,
            'eliminationPoints': self.elimination_points,
            'selfEliminationPoints': self.self_elimination_points,
            'total': self.total,
        }

    @classmethod
    def from_dict(cls, data):
        # Stored points are trusted as-is so old rounds survive table changes
        return cls(
            place=int(data['place']),
            eliminations=int(data['eliminations']),
            self_eliminated=bool(data['selfEliminated']),
            place_points=int(data['placePoints']),
            elimination_points=int(data['eliminationPoints']),
            self_elimination_points=int(data['selfEliminationPoints']),
            total=int(data['total']),
        )


def _in_range(value, low, high) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and low <= value <= high


def place_points(place) -> int:
    if not _in_range(place, MIN_PLACE, MAX_PLACE):
        return 0
    return PLACE_POINTS.get(place, 0)


def elimination_points(count) -> int:
    if not _in_range(count, MIN_ELIMINATIONS, MAX_ELIMINATIONS):
        return 0
    if count <= ELIMINATION_BONUS_THRESHOLD:
        return count
    return ELIMINATION_BONUS_THRESHOLD + (count - ELIMINATION_BONUS_THRESHOLD) * 2


def self_elimination_points(self_eliminated) -> int:
    return SELF_ELIMINATION_PENALTY if self_eliminated else 0


def round_total(place, eliminations, self_eliminated) -> int:
    """Total for one round. Not floored at zero."""
    return place_points(place) + elimination_points(eliminations) + self_elimination_points(self_eliminated)


def score_round(place: int, eliminations: int, self_eliminated: bool) -> RoundScore:
    """Build the frozen breakdown for a round.

    Out-of-range values score 0 here; callers validate before scoring.
    Self-elimination only adds the flat penalty, place points are unaffected.
    """
    pp = place_points(place)
    ep = elimination_points(eliminations)
    sp = self_elimination_points(self_eliminated)
    return RoundScore(
        place=place,
        eliminations=eliminations,
        self_eliminated=bool(self_eliminated),
        place_points=pp,
        elimination_points=ep,
        self_elimination_points=sp,
        total=pp + ep + sp,
    )
