import os
import random
import sys
import pytest

# Ensure the backend root (containing the `acrophobia` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from acrophobia import create_app, socketio
from acrophobia.services.games import GameOptions, ManualScheduler
from acrophobia.services.games.messaging import Messenger


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    LOG_LEVEL = 'DEBUG'
    START_DELAY_SEC = 15
    # Single-letter pool so every acronym is all E's
    ACRO_CHAR_POOL = 'E'


class RecordingSink:
    """MessageSink that keeps everything it is asked to say."""

    def __init__(self):
        self.public = []
        self.private = []

    def say_public(self, text):
        self.public.append(text)

    def say_private(self, name, text):
        self.private.append((name, text))

    def private_for(self, name):
        return [text for who, text in self.private if who == name]

    def said(self, fragment):
        return any(fragment in text for text in self.public)


def phrase(letters):
    """A phrase whose acronym is `letters` E's."""
    words = ['Every', 'evening', 'everyone', 'eats', 'eggs', 'eagerly', 'everywhere', 'endlessly']
    return ' '.join(words[:letters])


def advance_until(scheduler, predicate, step=0.5, limit=2000):
    for _ in range(limit):
        if predicate():
            return
        scheduler.advance(step)
    raise AssertionError('condition never became true')


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application
        application.extensions['arenas'].stop_all()


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


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def sink():
    return RecordingSink()


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def options():
    return GameOptions(
        char_pool='E',
        min_letters=3,
        max_letters=4,
        point_cap=30,
        face_off_rounds=2,
        face_off_min_letters=3,
        secs_per_acro_round=60,
        secs_per_vote_round=30,
        secs_per_face_off_round=10,
        secs_between_face_off_rounds=2,
        secs_between_messages=1,
        secs_after_results=3,
        secs_between_rounds=7,
    )


@pytest.fixture()
def messenger(sink):
    return Messenger(sink, ['alice', 'bob', 'carol', 'dave'])
