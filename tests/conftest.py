"""Shared pytest fixtures for Supportly tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402

from helpers import FakeStore  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_worker_singletons():
    """Reset module-level workers and queue so tests never share state.

    Route modules build their orchestrator/resolver lazily from the
    environment and keep it for the process lifetime.
    """
    from supportly.api.routes import events, tasks_bots, tasks_contacts

    tasks_bots._set_orchestrator(None)
    tasks_contacts._set_resolver(None)
    events._tasks_client.clear()
    yield
    tasks_bots._set_orchestrator(None)
    tasks_contacts._set_resolver(None)
    events._tasks_client.clear()


@pytest.fixture
def store():
    """Empty in-memory store; tests seed what they need."""
    return FakeStore()
