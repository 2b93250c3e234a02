import os
import sys
import pytest

# Ensure the backend root (containing the `tictactoe` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from tictactoe import create_app, db, socketio
from tictactoe.services.match import GameService, MatchController
from tictactoe.services.match.collaborators import MatchRecord


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = 'DEBUG'
    TICK_INTERVAL_SEC = 1
    TURN_TIMEOUT_SEC = 30
    MAX_SKILL_DIFF = 20
    CHAT_MAX_LENGTH = 500
    BAN_CHECK_FAIL_OPEN = True
    LEADERBOARD_LIMIT = 10


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import tictactoe.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


# ---- In-memory collaborators for the match services ----

class FakeBroadcaster:
    def __init__(self):
        self.messages = []

    def broadcast(self, op_code, payload):
        self.messages.append((op_code, payload))

    def op_codes(self):
        return [op for op, _ in self.messages]

    @property
    def last(self):
        return self.messages[-1] if self.messages else None


class FakeBans:
    def __init__(self, banned=(), error=None):
        self.banned = set(banned)
        self.error = error

    def is_banned(self, user_id):
        if self.error is not None:
            raise self.error
        return user_id in self.banned


class FakeLeaderboard:
    def __init__(self, fail=False):
        self.scores = {}
        self.calls = []
        self.fail = fail

    def increment(self, leaderboard_id, owner_id, username, amount):
        self.calls.append(('increment', leaderboard_id, owner_id, amount))
        if self.fail:
            raise RuntimeError('leaderboard unavailable')
        key = (leaderboard_id, owner_id)
        self.scores[key] = self.scores.get(key, 0) + amount
        return self.scores[key]

    def set_score(self, leaderboard_id, owner_id, username, score):
        self.calls.append(('set', leaderboard_id, owner_id, score))
        if self.fail:
            raise RuntimeError('leaderboard unavailable')
        self.scores[(leaderboard_id, owner_id)] = score
        return score


class FakeHistory:
    def __init__(self, fail=False):
        self.matches = {}
        self.results = []
        self.chats = []
        self.fail = fail

    def record_match(self, record: MatchRecord):
        if self.fail:
            raise RuntimeError('history unavailable')
        if record.match_id in self.matches:
            return False
        self.matches[record.match_id] = record
        return True

    def record_player_result(self, user_id, username, result):
        if self.fail:
            raise RuntimeError('history unavailable')
        self.results.append((user_id, result))

    def record_chat(self, user_id, username, message, timestamp):
        if self.fail:
            raise RuntimeError('history unavailable')
        self.chats.append((user_id, username, message, timestamp))


class FakeClock:
    def __init__(self, now=1_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return self.now


@pytest.fixture()
def broadcaster():
    return FakeBroadcaster()


@pytest.fixture()
def bans():
    return FakeBans()


@pytest.fixture()
def leaderboard():
    return FakeLeaderboard()


@pytest.fixture()
def history():
    return FakeHistory()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def service(broadcaster, bans, leaderboard, history):
    return GameService(broadcaster, bans, leaderboard, history)


@pytest.fixture()
def controller(service, clock):
    return MatchController(service, turn_timeout_secs=30, clock=clock)
