import audioop
import json
import logging
import os
import threading
from typing import Callable, Optional

import pyaudio
import vosk
from kivy.clock import Clock

from .events import (
    SessionEnded,
    SessionErrorKind,
    SessionEvent,
    SessionFailed,
    SessionStarted,
    TranscriptReceived,
)

logger = logging.getLogger(__name__)

FRAMES_PER_BUFFER = 4096

# --- Tuning parameters for home environments ---
RMS_THRESHOLD = 700       # Ignore frames quieter than this at start
GAIN_FACTOR = 1.5         # Gentle microphone gain
MAX_SILENCE_FRAMES = 25   # End-of-speech after this many quiet frames
MIN_SPEECH_FRAMES = 5     # Require some speech before we accept silence
MAX_WAIT_FRAMES = 60      # ~15 s at 16 kHz without any speech -> no_speech
RESET_AFTER_FRAMES = 10000

# One buffer read is ~0.25 s, so a cancelled run finishes well within this
JOIN_TIMEOUT_SECONDS = 1.0


class SpeechToTextEngine:
    """
    Recognition session over the microphone using Vosk.

    One utterance per start(): the session reports SessionStarted, at most
    one TranscriptReceived, then SessionEnded (or SessionFailed). Each run
    has its own number, returned by start() and stamped on its events, and
    a new run only begins once the previous worker thread has exited.
    """

    def __init__(self, model_path: str, event_sink: Callable[[SessionEvent], None],
                 sample_rate: int = 16000):
        self.model_path = model_path
        self.event_sink = event_sink
        self.sample_rate = sample_rate
        self.model = None
        self.recognizer = None
        self.run_id = 0
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._load_model()

    def _load_model(self):
        """
        Load Vosk model; raises when the model is missing so callers can
        treat recognition as unavailable.
        """
        if not os.path.exists(self.model_path):
            logger.error(f"Vosk model not found at: {self.model_path}")
            raise FileNotFoundError(f"Vosk model not found at: {self.model_path}")

        logger.info(f"Loading Vosk model from: {self.model_path}")
        try:
            self.model = vosk.Model(self.model_path)
            self.recognizer = self._new_recognizer()
        except Exception as e:
            logger.error(f"Error loading Vosk model: {e}")
            raise RuntimeError(f"Could not load Vosk model: {e}") from e
        logger.info("Vosk model loaded successfully")

    def _new_recognizer(self):
        recognizer = vosk.KaldiRecognizer(self.model, self.sample_rate)
        recognizer.SetWords(True)
        recognizer.SetPartialWords(True)
        return recognizer

    @property
    def is_listening(self) -> bool:
        return self._stop_event is not None and not self._stop_event.is_set()

    def _emit(self, event: SessionEvent):
        """Deliver an event on the main (UI) thread."""
        if threading.current_thread() is not threading.main_thread():
            Clock.schedule_once(lambda dt: self.event_sink(event), 0)
        else:
            self.event_sink(event)

    def start(self) -> int:
        """
        Start listening on a background thread and return the run number.

        Waits for a cancelled run to finish; raises RuntimeError when it
        does not, or when the model is not loaded.
        """
        if self.is_listening:
            logger.warning("Already listening, ignoring start request")
            return self.run_id

        if not self.model:
            raise RuntimeError("Cannot start listening: model not loaded")

        self._join_worker()
        if self._thread is not None:
            raise RuntimeError("Previous listening session is still running")

        self.run_id += 1
        self._stop_event = threading.Event()
        self.recognizer.Reset()
        self._thread = threading.Thread(
            target=self._listen, args=(self.run_id, self._stop_event), daemon=True
        )
        self._thread.start()
        return self.run_id

    def _join_worker(self):
        """Wait for the previous worker; keeps _thread set if it is stuck."""
        if self._thread is None:
            return
        if self._thread.is_alive():
            self._thread.join(timeout=JOIN_TIMEOUT_SECONDS)
        if self._thread.is_alive():
            logger.error("Listening thread did not stop in time")
            return
        self._thread = None

    def _listen(self, run_id: int, stop_event: threading.Event):
        audio = None
        stream = None
        failure = None
        try:
            audio = pyaudio.PyAudio()
            stream = audio.open(
                format=pyaudio.paInt16,
                channels=1,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=FRAMES_PER_BUFFER,
                input_device_index=None
            )
        except OSError as e:
            logger.error(f"Could not open microphone: {e}")
            failure = SessionFailed(SessionErrorKind.AUDIO_DEVICE, str(e), session=run_id)
        else:
            logger.info("Listening for commands")
            self._emit(SessionStarted(session=run_id))
            failure = self._read_utterance(stream, stop_event, run_id)
        finally:
            self._cleanup_audio(audio, stream)
            stop_event.set()
            self._emit(failure or SessionEnded(session=run_id))
            logger.info("Stopped listening")

    def _read_utterance(self, stream, stop_event: threading.Event, run_id: int) -> Optional[SessionFailed]:
        silence_count = 0
        speech_frames = 0
        waited_frames = 0
        processed_frames = 0

        while not stop_event.is_set():
            try:
                data = stream.read(FRAMES_PER_BUFFER, exception_on_overflow=False)
            except OSError as e:
                logger.error(f"Error reading microphone: {e}")
                return SessionFailed(SessionErrorKind.AUDIO_DEVICE, str(e), session=run_id)
            if not data or stop_event.is_set():
                continue

            rms = audioop.rms(data, 2)

            if rms < RMS_THRESHOLD and speech_frames == 0:
                # Initial quiet noise: skip until we hear something meaningful
                waited_frames += 1
                if waited_frames > MAX_WAIT_FRAMES:
                    logger.info("No speech detected")
                    return SessionFailed(SessionErrorKind.NO_SPEECH, "No speech detected", session=run_id)
                continue

            if rms < RMS_THRESHOLD:
                silence_count += 1
            else:
                silence_count = 0
                speech_frames += 1

            boosted = audioop.mul(data, 2, GAIN_FACTOR)

            processed_frames += 1
            if processed_frames > RESET_AFTER_FRAMES:
                logger.info("Resetting Vosk recognizer to prevent state corruption")
                self.recognizer = self._new_recognizer()
                processed_frames = 0

            try:
                if self.recognizer.AcceptWaveform(boosted):
                    text = self._accept(self.recognizer.Result())
                    if text:
                        self._emit(TranscriptReceived(text, session=run_id))
                        return None
                elif speech_frames > MIN_SPEECH_FRAMES and silence_count > MAX_SILENCE_FRAMES:
                    # End of utterance without a final result yet
                    text = self._accept(self.recognizer.FinalResult())
                    if text:
                        self._emit(TranscriptReceived(text, session=run_id))
                        return None
                    return SessionFailed(SessionErrorKind.NO_SPEECH, "Speech was not understood", session=run_id)
            except Exception as e:
                logger.error(f"Error in speech recognition loop: {e}")
                self.recognizer = self._new_recognizer()
                return SessionFailed(SessionErrorKind.RECOGNIZER, str(e), session=run_id)

        return None

    @staticmethod
    def _accept(raw_result: str) -> str:
        """
        Pull text from a Vosk result; very short outputs (one word of
        three characters or fewer) are treated as noise.
        """
        text = json.loads(raw_result).get('text', '').strip()
        if not text or (len(text.split()) <= 1 and len(text) <= 3):
            logger.debug("Ignoring short/uncertain utterance")
            return ""
        logger.debug(f"Recognized: {text}")
        return text

    @staticmethod
    def _cleanup_audio(audio, stream):
        """
        Clean up audio resources safely.
        """
        if stream is not None:
            try:
                stream.stop_stream()
                stream.close()
            except OSError as e:
                logger.warning(f"Error closing audio stream: {e}")
        if audio is not None:
            audio.terminate()

    def stop(self):
        """Stop listening; the worker thread cleans up and reports SessionEnded."""
        if self._stop_event is not None:
            self._stop_event.set()

    def close(self):
        """Release the recognizer; the session cannot be restarted afterwards."""
        self.stop()
        self._join_worker()
        self.recognizer = None
        self.model = None
