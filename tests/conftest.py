import os

# kivy parses sys.argv on import unless told not to
os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_NO_CONSOLELOG", "1")

import pytest
from unittest.mock import Mock

from sightline.voice.commands import default_catalog
from sightline.voice.engine import VoiceEngine


class FakeSession:
    """Recognition session driven by the test instead of a microphone."""

    def __init__(self, event_sink):
        self.event_sink = event_sink
        self.started = 0
        self.stopped = 0
        self.closed = False

    def start(self):
        self.started += 1
        return self.started

    def stop(self):
        self.stopped += 1

    def close(self):
        self.closed = True

    def emit(self, event, run=None):
        """Deliver an event from the current run, or from `run` when given."""
        event.session = self.started if run is None else run
        self.event_sink(event)


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def speech():
    return Mock()


@pytest.fixture
def collaborators():
    return {
        'navigate': Mock(),
        'notify': Mock(),
        'on_signal': Mock(),
        'history': Mock(),
    }


@pytest.fixture
def make_engine(speech, collaborators):
    """Build a VoiceEngine wired to mocks; returns (engine, session)."""
    def _make(with_session=True, **overrides):
        sessions = []

        def factory(event_sink):
            session = FakeSession(event_sink)
            sessions.append(session)
            return session

        kwargs = dict(collaborators)
        kwargs.update(overrides)
        engine = VoiceEngine(speech, session_factory=factory if with_session else None, **kwargs)
        return engine, (sessions[0] if sessions else None)

    return _make
