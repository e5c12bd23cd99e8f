from flask import Blueprint, jsonify, request, current_app
from scorekeeper import get_service
from scorekeeper.exceptions import InvalidConfiguration, InvalidInput, ScorekeeperError
from scorekeeper.services.tournaments.passcodes import normalize_passcode
from scorekeeper.services.tournaments.state import leaderboard, pending_players, to_document


tournaments = Blueprint('tournaments', __name__)


@tournaments.errorhandler(ScorekeeperError)
def handle_scorekeeper_error(exc):
    current_app.logger.info(f"[rejected] path={request.path} code={exc.code} message={exc.message}")
    return jsonify(exc.to_dict()), exc.status_code


def _parse_int(value, field):
    """Accept JSON integers and integer strings; reject bools, floats and blanks."""
    if isinstance(value, bool):
        raise InvalidInput(f'{field} must be a whole number')
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidInput(f'{field} must be a whole number')


def _state_payload(passcode, state):
    return {
        'passcode': passcode,
        'state': to_document(state),
        'leaderboard': leaderboard(state),
        'pending_players': pending_players(state),
    }


@tournaments.route('/create', methods=['POST'])
def create_tournament():
    data = request.get_json(silent=True) or {}
    try:
        total_rounds = _parse_int(data.get('total_rounds'), 'total_rounds')
    except InvalidInput as exc:
        raise InvalidConfiguration(exc.message) from exc
    passcode, state = get_service().create(total_rounds, data.get('player_names'))
    return jsonify(_state_payload(passcode, state)), 201


@tournaments.route('/join', methods=['POST'])
def join_tournament():
    data = request.get_json(silent=True) or {}
    passcode = normalize_passcode(data.get('passcode'))
    state = get_service().join(passcode)
    return jsonify(_state_payload(passcode, state))


@tournaments.route('/<string:passcode>/state', methods=['GET'])
def get_tournament_state(passcode):
    passcode = normalize_passcode(passcode)
    return jsonify(_state_payload(passcode, get_service().load(passcode)))


@tournaments.route('/<string:passcode>/leaderboard', methods=['GET'])
def get_leaderboard(passcode):
    passcode = normalize_passcode(passcode)
    return jsonify({'passcode': passcode, 'leaderboard': get_service().leaderboard(passcode)})


@tournaments.route('/<string:passcode>/scores', methods=['POST'])
def submit_score(passcode):
    data = request.get_json(silent=True) or {}
    passcode = normalize_passcode(passcode)
    # Raw values go straight through so the state machine decides the rejection order
    state, round_score = get_service().submit_score(
        passcode,
        data.get('player'),
        data.get('place'),
        data.get('eliminations'),
        data.get('self_eliminated', False),
    )
    payload = _state_payload(passcode, state)
    payload['round_score'] = round_score.to_dict()
    return jsonify(payload), 201


@tournaments.route('/<string:passcode>/advance', methods=['POST'])
def advance_round(passcode):
    passcode = normalize_passcode(passcode)
    state = get_service().advance_round(passcode)
    return jsonify(_state_payload(passcode, state))


@tournaments.route('/<string:passcode>', methods=['DELETE'])
def end_tournament(passcode):
    passcode = normalize_passcode(passcode)
    get_service().terminate(passcode)
    return jsonify({'message': f'Tournament {passcode} has ended.'})


@tournaments.route('/<string:passcode>/share', methods=['GET'])
def share_text(passcode):
    passcode = normalize_passcode(passcode)
    # Only share codes that resolve to a live tournament
    get_service().load(passcode)
    text = (
        f"Join my tournament!\n\n"
        f"Passcode: {passcode}\n\n"
        f"Go to: {request.host_url.rstrip('/')}\n"
        f"Click \"Join Existing Tournament\""
    )
    return jsonify({'passcode': passcode, 'text': text})
