"""
Events a recognition session delivers to the voice engine.

Every event carries the number of the session run (one per start()) that
produced it, so events from a cancelled run can be told apart.
"""

from dataclasses import dataclass
from enum import Enum


class SessionErrorKind(Enum):
    PERMISSION_DENIED = "permission_denied"
    NO_SPEECH = "no_speech"
    AUDIO_DEVICE = "audio_device"
    RECOGNIZER = "recognizer"


class SessionEvent:
    """Base class for all session events."""
    session: int = 0


@dataclass
class SessionStarted(SessionEvent):
    session: int = 0


@dataclass
class TranscriptReceived(SessionEvent):
    text: str
    session: int = 0


@dataclass
class SessionEnded(SessionEvent):
    session: int = 0


@dataclass
class SessionFailed(SessionEvent):
    kind: SessionErrorKind
    detail: str = ""
    session: int = 0
