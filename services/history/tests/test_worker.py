import pytest

from shared.core.events import TOPICS
from services.history.app import worker
from services.history.app.core_settings import get_settings


@pytest.fixture
def settings_env(monkeypatch):
    def _apply(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, str(value))
        get_settings.cache_clear()
    yield _apply
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def quiet_process(monkeypatch):
    """Keep the worker from reconfiguring logging or signal handlers of the test run."""
    handlers = {}
    monkeypatch.setattr(worker, "setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(worker.signal, "signal", lambda signum, handler: handlers.setdefault(signum, handler))
    return handlers


def test_worker_refuses_to_start_without_a_broker(settings_env, monkeypatch):
    settings_env(REDIS_URL="redis://127.0.0.1:1/0", BROKER_WAIT_ATTEMPTS=1, BROKER_WAIT_DELAY_SECONDS=0)

    def no_tables():
        raise AssertionError("tables must not be created without a broker")

    monkeypatch.setattr(worker, "init_models", no_tables)

    assert worker.main() == 1


class FakeEngine:
    def __init__(self, disposed):
        self.disposed = disposed

    def dispose(self):
        self.disposed.append(True)


class FakeBus:
    instances = []

    def __init__(self, url, channel_prefix, reconnect_delay=1.0):
        self.url = url
        self.channel_prefix = channel_prefix
        self.topics = []
        self.closed = False
        FakeBus.instances.append(self)

    def connect(self, required=False):
        return True

    def subscribe(self, topic, handler):
        self.topics.append(topic)

    def listen(self, stop_event, poll_timeout=1.0):
        self.stop_event = stop_event

    def close(self):
        self.closed = True


def test_worker_subscribes_to_every_topic_and_closes_on_exit(settings_env, monkeypatch, quiet_process):
    settings_env(REDIS_URL="redis://broker.test:6379/0", EVENT_CHANNEL_PREFIX="ops")
    FakeBus.instances.clear()
    monkeypatch.setattr(worker, "RedisEventBus", FakeBus)
    monkeypatch.setattr(worker, "init_models", lambda: None)
    monkeypatch.setattr(worker, "get_session_factory", lambda: None)
    disposed = []
    monkeypatch.setattr(worker, "get_engine", lambda: FakeEngine(disposed))

    assert worker.main() == 0

    [bus] = FakeBus.instances
    assert bus.url == "redis://broker.test:6379/0"
    assert bus.channel_prefix == "ops"
    assert bus.topics == list(TOPICS)
    assert bus.closed is True
    assert disposed == [True]

    # SIGINT/SIGTERM handlers stop the consume loop
    assert len(quiet_process) == 2
    next(iter(quiet_process.values()))(2, None)
    assert bus.stop_event.is_set()
