import os
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid database dependencies
os.environ["PERSISTENCE_BACKEND"] = "memory"
os.environ.setdefault("BROADCAST_UPDATES", "false")

from todo_stopwatch.main import create_app  # noqa: E402
from todo_stopwatch.repositories import InMemoryRepository  # noqa: E402
from todo_stopwatch.service import TodoService  # noqa: E402
from todo_stopwatch.settings import get_settings  # noqa: E402


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float = 0, ms: int = 0) -> None:
        self.now += int(seconds * 1000) + ms


def make_settings(**overrides):
    fields = {"persistence_backend": "memory", "broadcast_updates": False, "static_dir": None}
    fields.update(overrides)
    return replace(get_settings(), **fields)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def service(repo, clock):
    return TodoService(repo, clock=clock)


@pytest.fixture
def app(repo, clock):
    return create_app(make_settings(), repository=repo, clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
