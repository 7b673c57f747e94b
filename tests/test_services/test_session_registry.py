from unittest.mock import MagicMock

import pytest

from lms.domain.errors import SessionNotFoundError
from lms.services import session_events as ev
from lms.services.quiz_session import QuizSession
from lms.services.session_registry import SessionRegistry


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _session(session_id):
    session = MagicMock(spec=QuizSession)
    session.id = session_id
    session.events = ev.SessionEvents()
    return session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return SessionRegistry(idle_ttl=60, clock=clock)


def test_get_unknown_session(registry):
    with pytest.raises(SessionNotFoundError):
        registry.get("nope")


def test_saved_result_removes_session(registry):
    session = registry.add(_session("s1"))
    assert len(registry) == 1

    session.events.publish(ev.RESULT_SAVED, {"session_id": "s1", "result_id": "r1"})

    assert len(registry) == 0
    with pytest.raises(SessionNotFoundError):
        registry.get("s1")


def test_idle_sessions_are_cancelled_and_evicted(registry, clock):
    idle = registry.add(_session("idle"))
    busy = registry.add(_session("busy"))

    clock.now += 45
    registry.get("busy")
    clock.now += 30

    assert registry.evict_idle() == 1
    idle.cancel.assert_called_once()
    busy.cancel.assert_not_called()
    assert registry.get("busy") is busy
    with pytest.raises(SessionNotFoundError):
        registry.get("idle")


def test_add_evicts_expired_sessions(registry, clock):
    registry.add(_session("old"))
    clock.now += 61
    registry.add(_session("new"))
    assert len(registry) == 1
