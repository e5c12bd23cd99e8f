"""Tournament state machine.

A tournament is an immutable ``TournamentState`` value. Every operation here
validates first and then returns a new state, so a rejected call never leaves
a half-applied change behind. Persisting the returned value is the caller's
job (see ``service.TournamentService``).

Lifecycle: ``create`` -> active (rounds 1..total_rounds) -> complete. Nothing
leaves the complete state.
"""
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from scorekeeper.exceptions import (
    DuplicateSubmission,
    InvalidConfiguration,
    InvalidInput,
    RoundIncomplete,
    TournamentComplete,
    UnknownPlayer,
)
from .scoring import (
    MAX_ELIMINATIONS,
    MAX_PLACE,
    MIN_ELIMINATIONS,
    MIN_PLACE,
    RoundScore,
    score_round,
)

MIN_PLAYERS = 1
MAX_PLAYERS = 4
DOCUMENT_KEYS = ('totalRounds', 'playerNames', 'currentRound', 'scores', 'active', 'complete')


@dataclass(frozen=True)
class TournamentState:
    total_rounds: int
    player_names: tuple
    current_round: int
    # player name -> round number -> RoundScore; a missing round means not submitted
    scores: Dict[str, Dict[int, RoundScore]]
    active: bool = True
    complete: bool = False


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _coerce_int(value):
    """Whole numbers sent as ints, integral floats or digit strings; anything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _name_key(name: str) -> str:
    return name.strip().casefold()


def _normalize_names(player_names) -> tuple:
    if isinstance(player_names, str) or not isinstance(player_names, (list, tuple)):
        raise InvalidConfiguration('player_names must be a list of names')
    if not MIN_PLAYERS <= len(player_names) <= MAX_PLAYERS:
        raise InvalidConfiguration(f'A tournament needs {MIN_PLAYERS} to {MAX_PLAYERS} players')
    names = []
    for raw in player_names:
        if not isinstance(raw, str) or not raw.strip():
            raise InvalidConfiguration('Please enter all player names')
        names.append(raw.strip())
    if len({_name_key(n) for n in names}) != len(names):
        raise InvalidConfiguration('Player names must be unique')
    return tuple(names)


def create(total_rounds, player_names, max_rounds: Optional[int] = None) -> TournamentState:
    if not _is_int(total_rounds) or total_rounds < 1:
        raise InvalidConfiguration('total_rounds must be a whole number of at least 1')
    if max_rounds is not None and total_rounds > max_rounds:
        raise InvalidConfiguration(f'total_rounds may not exceed {max_rounds}')
    names = _normalize_names(player_names)
    return TournamentState(
        total_rounds=total_rounds,
        player_names=names,
        current_round=1,
        scores={name: {} for name in names},
    )


def has_submitted(state: TournamentState, player: str, round_number: int) -> bool:
    return round_number in state.scores.get(player, {})


def pending_players(state: TournamentState) -> List[str]:
    """Players still missing a score for the current round, in roster order."""
    return [p for p in state.player_names if not has_submitted(state, p, state.current_round)]


def all_submitted(state: TournamentState) -> bool:
    return not pending_players(state)


def submit_score(state: TournamentState, player, place, eliminations, self_eliminated=False) -> TournamentState:
    if state.complete:
        raise TournamentComplete()
    if player not in state.player_names:
        raise UnknownPlayer(f'Unknown player: {player}')
    place = _coerce_int(place)
    eliminations = _coerce_int(eliminations)
    if place is None or not MIN_PLACE <= place <= MAX_PLACE:
        raise InvalidInput(f'Place must be between {MIN_PLACE} and {MAX_PLACE}')
    if eliminations is None or not MIN_ELIMINATIONS <= eliminations <= MAX_ELIMINATIONS:
        raise InvalidInput(f'Eliminations must be between {MIN_ELIMINATIONS} and {MAX_ELIMINATIONS}')
    if not isinstance(self_eliminated, bool):
        raise InvalidInput('self_eliminated must be true or false')
    if has_submitted(state, player, state.current_round):
        raise DuplicateSubmission(f'{player} already submitted a score for round {state.current_round}')

    round_score = score_round(place, eliminations, self_eliminated)
    scores = dict(state.scores)
    scores[player] = {**state.scores.get(player, {}), state.current_round: round_score}
    return replace(state, scores=scores)


def advance_round(state: TournamentState) -> TournamentState:
    if state.complete:
        raise TournamentComplete()
    missing = pending_players(state)
    if missing:
        raise RoundIncomplete(f'All players must submit scores before advancing (waiting on {", ".join(missing)})')
    if state.current_round < state.total_rounds:
        return replace(state, current_round=state.current_round + 1)
    # Final round: complete without moving past total_rounds
    return replace(state, complete=True)


def player_total(state: TournamentState, player: str) -> int:
    return sum(rs.total for rs in state.scores.get(player, {}).values())


def leaderboard(state: TournamentState) -> List[dict]:
    """Standings over every recorded round, highest total first.

    ``sorted`` is stable, so tied players keep their roster order. Totals are
    recomputed on every call.
    """
    rows = []
    for name in state.player_names:
        rounds = state.scores.get(name, {})
        rows.append({
            'name': name,
            'total': player_total(state, name),
            'roundsPlayed': len(rounds),
            'rounds': {str(r): rounds[r].total for r in sorted(rounds)},
        })
    return sorted(rows, key=lambda row: row['total'], reverse=True)


def to_document(state: TournamentState) -> dict:
    return {
        'totalRounds': state.total_rounds,
        'playerNames': list(state.player_names),
        'currentRound': state.current_round,
        'scores': {
            name: {str(r): rs.to_dict() for r, rs in sorted(rounds.items())}
            for name, rounds in state.scores.items()
        },
        'active': state.active,
        'complete': state.complete,
    }


def from_document(document: dict) -> TournamentState:
    """Rebuild a state from its stored document, checking the invariants."""
    if not isinstance(document, dict) or any(k not in document for k in DOCUMENT_KEYS):
        raise InvalidConfiguration('Stored tournament document is malformed')
    total_rounds = document['totalRounds']
    current_round = document['currentRound']
    complete = bool(document['complete'])
    if not _is_int(total_rounds) or total_rounds < 1:
        raise InvalidConfiguration('Stored totalRounds is invalid')
    if not _is_int(current_round) or not 1 <= current_round <= total_rounds:
        raise InvalidConfiguration('Stored currentRound is out of range')
    names = _normalize_names(document['playerNames'])

    raw_scores = document['scores'] or {}
    if not isinstance(raw_scores, dict) or any(p not in names for p in raw_scores):
        raise InvalidConfiguration('Stored scores reference unknown players')
    scores = {}
    try:
        for name in names:
            rounds = {}
            player_rounds = raw_scores.get(name) or {}
            if not isinstance(player_rounds, dict):
                raise InvalidConfiguration(f'Stored scores for {name} are malformed')
            for key, value in player_rounds.items():
                round_number = int(key)
                if not 1 <= round_number <= current_round:
                    raise InvalidConfiguration(f'Stored score for {name} has round {round_number} out of range')
                rounds[round_number] = RoundScore.from_dict(value)
            scores[name] = rounds
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidConfiguration(f'Stored scores are malformed: {exc}') from exc

    state = TournamentState(
        total_rounds=total_rounds,
        player_names=names,
        current_round=current_round,
        scores=scores,
        active=bool(document['active']),
        complete=complete,
    )
    if complete:
        full = all(has_submitted(state, p, r) for p in names for r in range(1, total_rounds + 1))
        if current_round != total_rounds or not full:
            raise InvalidConfiguration('Stored tournament is marked complete but is missing rounds')
    return state
