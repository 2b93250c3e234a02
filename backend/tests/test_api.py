from tictactoe import db
from tictactoe.models import MatchHistory, PlayerStats
from tictactoe.runtime import registry


def play_top_row(match_id, now=2_000):
    for user_id, position in [('alice', 0), ('bob', 4), ('alice', 1), ('bob', 5), ('alice', 2)]:
        registry.queue_move(match_id, user_id, {'position': position})
    registry.tick(match_id, now)


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_find_match_creates_short_code(client):
    res = client.post('/api/matches/find', json={'mode': 'timed', 'skill_level': 30})
    assert res.status_code == 201
    data = res.get_json()
    assert data['mode'] == 'timed'
    assert len(data['shortCode']) == 6 and data['shortCode'].isdigit()

    lookup = client.get(f"/api/matches/code/{data['shortCode']}").get_json()
    assert lookup['matchId'] == data['matchId']

    state = client.get(f"/api/matches/{data['matchId']}/state").get_json()
    assert state['mode'] == 'timed'
    assert state['turn_timeout_secs'] == 30
    assert state['metadata']['skill_level'] == 30


def test_find_match_defaults(client):
    data = client.post('/api/matches/find', json={'mode': 'speed', 'skill_level': 500}).get_json()
    assert data['mode'] == 'classic'
    state = client.get(f"/api/matches/{data['matchId']}/state").get_json()
    assert state['metadata']['skill_level'] == 50


def test_quick_match(client):
    res = client.post('/api/matches/quick', json={'mode': 'timed'})
    assert res.status_code == 201
    data = res.get_json()
    assert data['mode'] == 'timed'
    assert registry.get(data['matchId']) is not None


def test_unknown_code_and_match(client):
    assert client.get('/api/matches/code/000000').status_code == 404
    assert client.get('/api/matches/code/000000/info').status_code == 404
    assert client.get('/api/matches/nope/state').status_code == 404


def test_match_info_tracks_live_matches(client):
    data = client.post('/api/matches/find', json={}).get_json()
    info = client.get(f"/api/matches/code/{data['shortCode']}/info")
    assert info.status_code == 200
    assert info.get_json()['exists'] is True

    registry.terminate(data['matchId'])
    assert client.get(f"/api/matches/code/{data['shortCode']}/info").status_code == 404


def test_signal_endpoint(client):
    match_id = client.post('/api/matches/quick', json={}).get_json()['matchId']
    registry.join(match_id, 'alice', 'Alice')
    registry.join(match_id, 'bob', 'Bob')

    assert client.post(f'/api/matches/{match_id}/signal', json={'type': 'chat_message'}).status_code == 400
    assert client.post('/api/matches/nope/signal', json={'userId': 'a', 'type': 'x'}).status_code == 404

    res = client.post(f'/api/matches/{match_id}/signal', json={'userId': 'alice', 'type': 'rematch_request'})
    assert res.status_code == 400
    assert res.get_json()['result'] == 'error: game is still in progress'

    res = client.post(f'/api/matches/{match_id}/signal',
                      json={'userId': 'alice', 'type': 'chat_message', 'message': 'hi'})
    assert res.status_code == 200
    assert res.get_json()['result'] == 'message_sent'


def test_banned_player_cannot_join(client):
    assert client.post('/api/admin/ban', json={}).status_code == 400
    res = client.post('/api/admin/ban', json={'target_user_id': 'mallory', 'reason': 'spam'})
    assert res.get_json()['success'] is True

    match_id = client.post('/api/matches/quick', json={}).get_json()['matchId']
    assert registry.join(match_id, 'mallory', 'Mallory') == (False, 'player is banned')

    client.post('/api/admin/unban', json={'target_user_id': 'mallory'})
    assert registry.join(match_id, 'mallory', 'Mallory') == (True, '')


def test_completed_game_is_recorded(client):
    match_id = client.post('/api/matches/quick', json={}).get_json()['matchId']
    registry.join(match_id, 'alice', 'Alice')
    registry.join(match_id, 'bob', 'Bob')
    play_top_row(match_id)

    state = client.get(f'/api/matches/{match_id}/state').get_json()
    assert state['game_over'] is True
    assert state['winner'] == 'alice'

    row = db.session.get(MatchHistory, match_id)
    assert row.winner_id == 'alice'
    assert row.loser_id == 'bob'
    assert db.session.get(PlayerStats, 'bob').total_losses == 1

    board = client.get('/api/leaderboard').get_json()
    assert board['global_wins'][0]['user_id'] == 'alice'
    assert board['global_wins'][0]['score'] == 1
    assert board['win_streaks'][0]['score'] == 1


def test_timed_match_times_out_through_registry(client):
    match_id = client.post('/api/matches/quick', json={'mode': 'timed'}).get_json()['matchId']
    registry.join(match_id, 'alice', 'Alice')
    registry.join(match_id, 'bob', 'Bob')
    started = registry.get(match_id).state.turn_start_time

    registry.tick(match_id, started + 30)
    assert registry.snapshot(match_id)['move_count'] == 0
    registry.tick(match_id, started + 31)
    snapshot = registry.snapshot(match_id)
    assert snapshot['board'][0] == 'X'
    assert snapshot['current_turn_id'] == 'bob'


def test_match_ends_when_everyone_leaves(client):
    match_id = client.post('/api/matches/quick', json={}).get_json()['matchId']
    registry.join(match_id, 'alice', 'Alice')
    registry.join(match_id, 'bob', 'Bob')
    registry.leave(match_id, 'bob')
    assert registry.snapshot(match_id)['winner'] == 'alice'
    registry.leave(match_id, 'alice')
    assert registry.get(match_id) is None
