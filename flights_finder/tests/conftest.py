import pytest

from flights_finder.config import reset_config
from flights_finder.fake_server import read_sample


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    """Isolate every test from FLIGHTS_FINDER_* variables and the cached config."""
    import os

    for key in list(os.environ):
        if key.startswith("FLIGHTS_FINDER_"):
            monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def sample():
    return read_sample


@pytest.fixture
def no_sleep():
    calls = []

    def sleep(seconds):
        calls.append(seconds)

    sleep.calls = calls
    return sleep
