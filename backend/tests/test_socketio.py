def _events(sio_client, name):
    return [pkt for pkt in sio_client.get_received('/ws') if pkt['name'] == name]


def _join(sio_client, code):
    sio_client.emit('join_tournament', {'passcode': code}, namespace='/ws')
    return sio_client.get_received('/ws')


def test_socket_connect_and_ping(sio_client):
    assert sio_client.is_connected('/ws')
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'pong' and pkt['args'][0] == {'n': 1} for pkt in received)


def test_join_sends_snapshot(sio_client, make_tournament):
    code = make_tournament()
    received = _join(sio_client, code.lower())
    joined = [pkt for pkt in received if pkt['name'] == 'joined']
    assert joined
    payload = joined[0]['args'][0]
    assert payload['passcode'] == code
    assert payload['state']['playerNames'] == ['Ana', 'Ben']


def test_join_unknown_passcode_reports_not_found(sio_client, service):
    received = _join(sio_client, 'ZZZZ')
    errors = [pkt for pkt in received if pkt['name'] == 'error']
    assert errors and errors[0]['args'][0]['code'] == 'not_found'
    assert service.store.subscriber_count('ZZZZ') == 0


def test_score_submission_pushes_state_update(sio_client, client, make_tournament):
    code = make_tournament()
    _join(sio_client, code)
    client.post(f'/api/tournaments/{code}/scores', json={'player': 'Ana', 'place': 1, 'eliminations': 10})
    updates = _events(sio_client, 'state_update')
    assert len(updates) == 1
    payload = updates[0]['args'][0]
    assert payload['state']['scores']['Ana']['1']['total'] == 40
    assert payload['leaderboard'][0] == {'name': 'Ana', 'total': 40, 'roundsPlayed': 1, 'rounds': {'1': 40}}
    assert payload['pending_players'] == ['Ben']


def test_leave_releases_subscription(sio_client, client, service, make_tournament):
    code = make_tournament()
    _join(sio_client, code)
    assert service.store.subscriber_count(code) == 1

    sio_client.emit('leave_tournament', {}, namespace='/ws')
    assert _events(sio_client, 'left')
    assert service.store.subscriber_count(code) == 0

    client.post(f'/api/tournaments/{code}/scores', json={'player': 'Ana', 'place': 1, 'eliminations': 0})
    assert not _events(sio_client, 'state_update')


def test_switching_tournaments_releases_previous(sio_client, service, make_tournament):
    first = make_tournament()
    second = make_tournament(names=('Cara',), rounds=1)
    _join(sio_client, first)
    _join(sio_client, second)
    assert service.store.subscriber_count(first) == 0
    assert service.store.subscriber_count(second) == 1


def test_disconnect_releases_subscription(flask_app, service, make_tournament):
    from scorekeeper import socketio
    code = make_tournament()
    other = socketio.test_client(flask_app, namespace='/ws')
    other.emit('join_tournament', {'passcode': code}, namespace='/ws')
    assert service.store.subscriber_count(code) == 1
    other.disconnect(namespace='/ws')
    assert service.store.subscriber_count(code) == 0


def test_end_tournament_notifies_watchers(sio_client, client, service, make_tournament):
    code = make_tournament()
    _join(sio_client, code)
    client.delete(f'/api/tournaments/{code}')
    ended = _events(sio_client, 'tournament_ended')
    assert ended and ended[0]['args'][0] == {'passcode': code}
    assert service.store.subscriber_count(code) == 0


def test_release_from_store_callback_outside_app_context(flask_app, caplog):
    import logging
    import threading
    from scorekeeper.socketio_events import _make_listener, _sid_to_ctx

    released = []
    _sid_to_ctx['sid-offline'] = {'passcode': 'ABCD', 'unsubscribe': lambda: released.append(True)}
    logger = logging.getLogger('scorekeeper.ws-test')
    listener = _make_listener('sid-offline', 'ABCD', '/ws', logger)

    # Store callbacks can fire from worker threads with no Flask context
    with caplog.at_level(logging.INFO, logger='scorekeeper.ws-test'):
        worker = threading.Thread(target=listener, args=(None,))
        worker.start()
        worker.join()

    assert released == [True]
    assert 'sid-offline' not in _sid_to_ctx
    assert any('[ws-release]' in r.getMessage() for r in caplog.records)
