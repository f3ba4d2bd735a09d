import logging
from enum import Enum
from typing import Callable, Optional

from .command_parser import match, normalize
from .commands import CommandCatalog, CommandDefinition, default_catalog
from .dispatcher import (
    EXECUTED_TITLE,
    NO_MATCH_DESCRIPTION,
    NO_MATCH_FEEDBACK,
    NO_MATCH_TITLE,
    DispatchOutcome,
    Signal,
    dispatch,
)
from .events import (
    SessionEnded,
    SessionErrorKind,
    SessionEvent,
    SessionFailed,
    SessionStarted,
    TranscriptReceived,
)

logger = logging.getLogger(__name__)


class Phase(Enum):
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"


class Severity(Enum):
    INFO = "info"
    ERROR = "error"


class ErrorKind(Enum):
    CAPABILITY_UNAVAILABLE = "capability_unavailable"
    SESSION_ERROR = "session_error"
    NO_MATCH = "no_match"
    UNHANDLED_OPERAND = "unhandled_operand"


CAPABILITY_TITLE = "Voice Recognition Not Available"
CAPABILITY_DESCRIPTION = "Speech recognition is not available on this device."
SESSION_ERROR_TITLE = "Voice Recognition Error"
SESSION_ERROR_DESCRIPTIONS = {
    SessionErrorKind.PERMISSION_DENIED: "Microphone access was denied.",
    SessionErrorKind.NO_SPEECH: "No speech was detected. Please try again.",
    SessionErrorKind.AUDIO_DEVICE: "The microphone could not be used.",
    SessionErrorKind.RECOGNIZER: "Could not process voice command. Please try again.",
}

EventSink = Callable[[SessionEvent], None]
Notifier = Callable[[str, str, Severity], None]


class VoiceEngine:
    """
    Turns recognized speech into application actions.

    The engine owns one recognition session for its whole lifetime and a
    three-phase state machine:

        IDLE --toggle--> LISTENING --transcript--> PROCESSING --> IDLE
                         LISTENING --toggle / error / end--> IDLE

    Matching, dispatch and feedback for a transcript run synchronously, so
    the engine is always back in IDLE when handle_event() returns. Side
    effects go through the collaborators given at construction:

    - speech: object with speak(text, options=None)
    - session_factory: callable(event_sink) -> session with start/stop/close;
      start() returns a run number that the session stamps on its events,
      and events from any other run are dropped
    - navigate: callable(route)
    - notify: callable(title, description, severity)
    - on_signal: callable(Signal)
    - history: object with record(transcript, command, category)
    """

    def __init__(self, speech, session_factory: Optional[Callable[[EventSink], object]] = None,
                 catalog: Optional[CommandCatalog] = None,
                 navigate: Optional[Callable[[str], None]] = None,
                 notify: Optional[Notifier] = None,
                 on_signal: Optional[Callable[[Signal], None]] = None,
                 history=None):
        self.speech = speech
        self.catalog = catalog if catalog is not None else default_catalog()
        self._navigate = navigate
        self._notify = notify
        self._on_signal = on_signal
        self.history = history

        self.phase = Phase.IDLE
        self.last_transcript = ""
        self.last_error: Optional[ErrorKind] = None
        self.session_run = None
        self.session = self._acquire_session(session_factory)

    # ---------- Session lifetime ----------
    def _acquire_session(self, factory):
        if factory is None:
            logger.warning("No speech recognition available; voice commands disabled")
            return None
        try:
            return factory(self.handle_event)
        except (FileNotFoundError, ImportError, OSError, RuntimeError) as e:
            logger.error(f"Speech recognition unavailable: {e}")
            return None

    def close(self):
        """Stop and release the recognition session. Safe to call twice."""
        session, self.session = self.session, None
        try:
            if session is not None:
                session.stop()
                session.close()
        except Exception as e:
            logger.error(f"Error releasing recognition session: {e}")
        finally:
            self._set_phase(Phase.IDLE)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
        return False

    # ---------- Public surface ----------
    @property
    def is_listening(self) -> bool:
        return self.phase is Phase.LISTENING

    @property
    def is_processing(self) -> bool:
        return self.phase is Phase.PROCESSING

    @property
    def has_capability(self) -> bool:
        return self.session is not None

    @property
    def commands(self) -> CommandCatalog:
        return self.catalog

    def toggle_listening(self):
        """Start listening when idle; cancel when listening."""
        if self.session is None:
            self._report(ErrorKind.CAPABILITY_UNAVAILABLE, CAPABILITY_TITLE, CAPABILITY_DESCRIPTION)
            return

        if self.phase is Phase.LISTENING:
            logger.info("Listening cancelled")
            self._stop_session()
            self._set_phase(Phase.IDLE)
            return

        if self.phase is Phase.PROCESSING:
            logger.warning("Still processing a command, ignoring toggle")
            return

        self._set_phase(Phase.LISTENING)
        try:
            self.session_run = self.session.start()
        except Exception as e:
            logger.error(f"Could not start recognition session: {e}")
            self._set_phase(Phase.IDLE)
            self._report(ErrorKind.SESSION_ERROR, SESSION_ERROR_TITLE,
                         SESSION_ERROR_DESCRIPTIONS[SessionErrorKind.AUDIO_DEVICE])

    def speak(self, text: str, options=None):
        """Pass text straight to the speech port."""
        if self.speech is None:
            logger.warning("No speech output available")
            return
        try:
            self.speech.speak(text, options)
        except Exception as e:
            logger.error(f"Error speaking feedback: {e}")

    # ---------- Transition function ----------
    def handle_event(self, event: SessionEvent):
        """Apply one recognition session event to the state machine."""
        if event.session != self.session_run:
            logger.debug(f"Ignoring {type(event).__name__} from an earlier session run")
            return

        if isinstance(event, SessionStarted):
            logger.debug("Recognition session started")
            return

        if self.phase is not Phase.LISTENING:
            logger.debug(f"Ignoring {type(event).__name__} while {self.phase.value}")
            return

        if isinstance(event, TranscriptReceived):
            self.process_transcript(event.text)
        elif isinstance(event, SessionFailed):
            logger.warning(f"Recognition session failed: {event.kind.value}")
            self._set_phase(Phase.IDLE)
            self._report(ErrorKind.SESSION_ERROR, SESSION_ERROR_TITLE,
                         SESSION_ERROR_DESCRIPTIONS.get(event.kind, SESSION_ERROR_DESCRIPTIONS[SessionErrorKind.RECOGNIZER]))
        elif isinstance(event, SessionEnded):
            logger.debug("Recognition session ended without a transcript")
            self._set_phase(Phase.IDLE)
        else:
            logger.warning(f"Unknown session event: {event!r}")

    def process_transcript(self, raw: str) -> Optional[DispatchOutcome]:
        """
        Normalize, match, dispatch and give feedback for one utterance.

        Also used for typed input. Returns the dispatch outcome, or None
        when nothing matched.
        """
        if self.phase is Phase.PROCESSING:
            logger.warning("Already processing a command, ignoring transcript")
            return None

        if self.phase is Phase.LISTENING:
            self._stop_session()

        self._set_phase(Phase.PROCESSING)
        try:
            text = normalize(raw)
            self.last_transcript = text
            logger.debug(f"Processing utterance: '{text}'")

            result = match(text, self.catalog)
            if not result:
                self._handle_no_match(text)
                return None

            outcome = dispatch(result.command)
            self._apply(text, result.command, outcome)
            return outcome
        finally:
            self._set_phase(Phase.IDLE)

    # ---------- Helpers ----------
    def _handle_no_match(self, text: str):
        logger.info("Voice command not recognized")
        self.speak(NO_MATCH_FEEDBACK)
        self._report(ErrorKind.NO_MATCH, NO_MATCH_TITLE, NO_MATCH_DESCRIPTION)
        self._record(text, None)

    def _apply(self, text: str, definition: CommandDefinition, outcome: DispatchOutcome):
        logger.info(f"Executing voice command: {definition.description}")
        if not outcome.handled:
            self.last_error = ErrorKind.UNHANDLED_OPERAND
        else:
            self.last_error = None

        if outcome.navigate_to:
            self._call(self._navigate, outcome.navigate_to)
        self.speak(outcome.feedback)
        for signal in outcome.signals:
            self._call(self._on_signal, signal)

        self._call(self._notify, EXECUTED_TITLE, definition.description, Severity.INFO)
        self._record(text, definition)

    def _record(self, text: str, definition: Optional[CommandDefinition]):
        if self.history is None:
            return
        if definition is None:
            self._call(self.history.record, text, None, None)
        else:
            self._call(self.history.record, text, definition.description, definition.category.value)

    def _report(self, kind: ErrorKind, title: str, description: str):
        self.last_error = kind
        self._call(self._notify, title, description, Severity.ERROR)

    def _stop_session(self):
        try:
            self.session.stop()
        except Exception as e:
            logger.error(f"Error stopping recognition session: {e}")

    def _set_phase(self, phase: Phase):
        if phase is not self.phase:
            logger.debug(f"Voice engine: {self.phase.value} -> {phase.value}")
            self.phase = phase

    @staticmethod
    def _call(fn, *args):
        """Invoke an optional collaborator; its failures never break the state machine."""
        if fn is None:
            return
        try:
            fn(*args)
        except Exception as e:
            logger.error(f"Voice engine collaborator failed: {e}")
