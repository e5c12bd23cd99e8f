from flask_socketio import emit
from flask import current_app, request
from scorekeeper import socketio, get_service
from scorekeeper.exceptions import ScorekeeperError
from scorekeeper.services.tournaments.passcodes import normalize_passcode
from scorekeeper.services.tournaments.state import from_document, leaderboard, pending_players, to_document
from typing import Dict, Any
import threading


# sid -> {'passcode', 'unsubscribe'}; at most one watched tournament per socket
_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_ctx_lock = threading.Lock()


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(passcode: str, state) -> Dict[str, Any]:
    return {
        'passcode': passcode,
        'state': to_document(state),
        'leaderboard': leaderboard(state),
        'pending_players': pending_players(state),
    }


def _release(sid: str, logger) -> None:
    """Drop the store subscription held by ``sid``, if any."""
    with _ctx_lock:
        ctx = _sid_to_ctx.pop(sid, None)
    if not ctx:
        return
    ctx['unsubscribe']()
    logger.info(f"[ws-release] sid={sid} passcode={ctx['passcode']}")


def _make_listener(sid: str, passcode: str, namespace: str, logger):
    def on_change(document):
        if document is None:
            socketio.emit('tournament_ended', {'passcode': passcode}, to=sid, namespace=namespace)
            _release(sid, logger)
            return
        try:
            payload = _payload(passcode, from_document(document))
        except ScorekeeperError as exc:
            logger.warning(f"[ws-push-skip] sid={sid} passcode={passcode} error={exc.message}")
            return
        socketio.emit('state_update', payload, to=sid, namespace=namespace)

    return on_change


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    _release(_get_sid(), current_app.logger)


def handle_join_tournament(data):
    sid = _get_sid()
    service = get_service()
    try:
        passcode = normalize_passcode((data or {}).get('passcode'))
        state = service.join(passcode)
    except ScorekeeperError as exc:
        # Unknown or malformed passcodes leave any existing subscription alone
        emit('error', exc.to_dict())
        return

    # Switching tournaments releases the previous subscription first
    _release(sid, current_app.logger)
    listener = _make_listener(sid, passcode, request.namespace, current_app.logger)
    unsubscribe = service.store.subscribe(passcode, listener)
    with _ctx_lock:
        _sid_to_ctx[sid] = {'passcode': passcode, 'unsubscribe': unsubscribe}
    current_app.logger.info(f"[ws-join] sid={sid} passcode={passcode}")
    emit('joined', _payload(passcode, state))


def handle_leave_tournament(data=None):
    sid = _get_sid()
    with _ctx_lock:
        ctx = _sid_to_ctx.get(sid)
    if not ctx:
        emit('error', {'error': 'Not watching a tournament', 'code': 'not_watching'})
        return
    _release(sid, current_app.logger)
    emit('left', {'passcode': ctx['passcode']})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for ns in namespaces:
        socketio.on_event('connect', handle_connect, namespace=ns)
        socketio.on_event('disconnect', handle_disconnect, namespace=ns)
        socketio.on_event('join_tournament', handle_join_tournament, namespace=ns)
        socketio.on_event('leave_tournament', handle_leave_tournament, namespace=ns)
        socketio.on_event('ping', handle_ping, namespace=ns)
