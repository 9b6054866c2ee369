import logging
import os
import sys
import threading
import pytest

# Ensure the backend root (containing the `bossbattle` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from bossbattle import create_app, socketio
from bossbattle.services.combat import Boss, CombatEngine, Hero
from bossbattle.services.session import BattleSession


class TestConfig:
    TESTING = True
    SECRET_KEY = 'test-secret'
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACE = '/'
    LOG_LEVEL = 'DEBUG'
    BOSS_NAME = 'Magma Slime'
    BOSS_MAX_HP = 10000
    HERO_BASE_ATTACK = 100
    HERO_POWER_MULTIPLIER = 1.0
    COMBO_WINDOW_MS = 3000
    ATTACK_COOLDOWN_MS = 500
    DEFEAT_BROADCAST_DELAY_MS = 50
    ATTACK_LOG_CAPACITY = 100
    RECENT_ATTACKERS_LIMIT = 10
    CANCEL_DEFEAT_ON_RESET = True
    TERMINATE_ON_INTERNAL_ERROR = False


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start=1_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms
        return self.now


class RecordingTransport:
    """Stands in for the SocketIO object: records emits and defers background tasks."""

    def __init__(self):
        self.emitted = []
        self.tasks = []
        self.slept = []
        self._lock = threading.Lock()

    def emit(self, event, payload, to=None, namespace=None):
        with self._lock:
            self.emitted.append({'name': event, 'payload': payload, 'to': to, 'namespace': namespace})

    def start_background_task(self, target, *args, **kwargs):
        self.tasks.append((target, args, kwargs))

    def sleep(self, seconds):
        self.slept.append(seconds)

    def run_tasks(self):
        tasks, self.tasks = self.tasks, []
        for target, args, kwargs in tasks:
            target(*args, **kwargs)

    def events(self, name=None, to=None):
        return [
            e for e in self.emitted
            if (name is None or e['name'] == name) and (to is None or e['to'] == to)
        ]

    def clear(self):
        self.emitted = []


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def engine(clock):
    return CombatEngine(Boss('Magma Slime', 10000), Hero(100, 1.0), clock=clock)


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def session(engine, transport, clock):
    return BattleSession(
        engine,
        transport,
        logging.getLogger('bossbattle.tests'),
        cooldown_ms=500,
        defeat_delay_ms=500,
        clock=clock,
    )


@pytest.fixture()
def make_app(clock):
    def _make(**overrides):
        config_class = type('OverrideConfig', (TestConfig,), overrides)
        return create_app(config_class, clock=clock)
    return _make


@pytest.fixture()
def flask_app(make_app):
    application = make_app()
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
    )
    yield test_client
    try:
        test_client.disconnect()
    except Exception:
        pass
