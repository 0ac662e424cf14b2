import os
import sys
import pytest

# Ensure the backend root (containing the `app` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from app import create_app, db, socketio
from app.services.games.controller import MatchController
from app.services.games.turn import DiceRoller


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MIN_PLAYERS = 2
    MAX_PLAYERS = 7
    DICE_COUNT = 8
    DICE_SEED = 1234
    HISTORY_LIMIT = 50


class ScriptedRoller(DiceRoller):
    """Hands out pre-arranged rolls in order."""

    def __init__(self, *rolls):
        super().__init__(seed=0)
        self.rolls = [list(r) for r in rolls]

    def queue(self, *rolls):
        self.rolls.extend(list(r) for r in rolls)

    def roll(self, count):
        assert self.rolls, 'no scripted roll left'
        faces = self.rolls.pop(0)
        assert len(faces) == count, f'scripted roll has {len(faces)} dice, turn has {count}'
        return faces


@pytest.fixture()
def roller():
    return ScriptedRoller()


@pytest.fixture()
def make_match():
    def _make(players=('ann', 'bob'), rolls=()):
        match = MatchController('m1', roller=ScriptedRoller(*rolls), names=str.title)
        result = match.start_match(list(players))
        assert result.ok
        return match
    return _make


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import app.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def directory(flask_app):
    return flask_app.extensions['session_directory']


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
