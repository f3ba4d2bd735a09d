import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

import pyttsx3

logger = logging.getLogger(__name__)

# Voice ID fragments tried in order for each gender (macOS, Windows, eSpeak)
PREFERRED_VOICES = {
    'female': [
        'com.apple.voice.compact.en-US.Samantha',
        'com.apple.voice.compact.en-AU.Karen',
        'TTS_MS_EN-US_ZIRA',
        'english+f3',
    ],
    'male': [
        'com.apple.voice.compact.en-GB.Daniel',
        'com.apple.eloquence.en-GB.Eddy',
        'TTS_MS_EN-US_DAVID',
        'english+m3',
    ],
}

# Short pause before speaking; avoids clipped audio on some CoreAudio setups
SPEAK_SETTLE_SECONDS = 0.1


@dataclass(frozen=True)
class SpeechOptions:
    """
    Per-utterance speech settings.

    rate is a factor of the engine's base words-per-minute, volume is 0..1.
    """
    rate: float = 0.9
    pitch: float = 1.0
    volume: float = 0.8


class TextToSpeechEngine:
    """
    Handles text-to-speech using pyttsx3.
    - Uses a threading.Lock to avoid concurrent runAndWait() calls; new
      speech waits for the current utterance.
    - stop() interrupts in-flight speech from any thread without waiting
      for that lock.
    """

    def __init__(self, base_rate: int = 200, defaults: Optional[SpeechOptions] = None):
        self.engine = None
        self.base_rate = base_rate
        self.defaults = defaults or SpeechOptions()
        self.voice_ids: Dict[str, str] = {}
        self.current_gender: Optional[str] = None
        self._speak_lock = threading.Lock()
        self._init_engine()

    def _init_engine(self):
        """Initialize TTS engine and map preferred voices to genders."""
        try:
            self.engine = pyttsx3.init()
            voices = self.engine.getProperty('voices') or []

            self.voice_ids = {}
            for gender, fragments in PREFERRED_VOICES.items():
                found = self._find_voice(voices, gender, fragments)
                if found:
                    self.voice_ids[gender] = found

            if not self.voice_ids and voices:
                self.voice_ids['default'] = voices[0].id

            gender = self.current_gender or next(iter(self.voice_ids), None)
            if gender:
                self.engine.setProperty('voice', self.voice_ids[gender])
                self.current_gender = gender
            else:
                logger.warning("No TTS voices available")

            self._apply_options(self.defaults)

            logger.info(f"TTS init: voices available for {sorted(self.voice_ids)}")

        except Exception as e:
            logger.error(f"Error initializing TTS engine: {e}")
            self.engine = None

    @staticmethod
    def _find_voice(voices, gender: str, fragments: List[str]) -> Optional[str]:
        for pref in fragments:
            match = next((v.id for v in voices if pref.lower() in str(v.id).lower()), None)
            if match:
                return match

        # Fall back to whatever gender the driver reports
        for v in voices:
            reported = str(getattr(v, 'gender', '') or '').lower()
            if reported == gender:
                return v.id
        return None

    def _apply_options(self, options: SpeechOptions):
        self.engine.setProperty('rate', int(self.base_rate * options.rate))
        self.engine.setProperty('volume', max(0.0, min(1.0, options.volume)))
        try:
            # Only some drivers (eSpeak) understand pitch
            self.engine.setProperty('pitch', options.pitch)
        except Exception:
            logger.debug("TTS driver does not support pitch")

    def set_voice_gender(self, gender: str) -> bool:
        """
        Switch to the preferred voice for 'male' or 'female'.
        """
        gender = gender.lower()
        try:
            if not self.engine:
                logger.warning("TTS engine not initialized")
                return False

            voice_id = self.voice_ids.get(gender)
            if not voice_id:
                logger.warning(f"No {gender} voice available. Available: {sorted(self.voice_ids)}")
                return False

            with self._speak_lock:
                self.engine.setProperty('voice', voice_id)
                self.current_gender = gender
            logger.info(f"TTS voice changed to: {gender}")
            return True

        except Exception as e:
            logger.error(f"Error setting voice: {e}")
            return False

    @property
    def volume(self) -> float:
        return self.defaults.volume

    def adjust_volume(self, delta: float) -> float:
        """Change the default volume by delta, clamped to 0..1."""
        volume = round(max(0.0, min(1.0, self.defaults.volume + delta)), 2)
        self.defaults = replace(self.defaults, volume=volume)
        try:
            if self.engine:
                self.engine.setProperty('volume', volume)
        except Exception as e:
            logger.error(f"Error setting volume: {e}")
        logger.info(f"TTS volume set to: {volume}")
        return volume

    def speak(self, text: str, options: Optional[SpeechOptions] = None):
        """Speak on a background thread; returns immediately."""
        if not text or not text.strip():
            return
        thread = threading.Thread(target=self.speak_now, args=(text, options), daemon=True)
        thread.start()

    def speak_now(self, text: str, options: Optional[SpeechOptions] = None):
        """
        Convert text to speech, blocking until done.

        - Uses a lock to serialize access to runAndWait().
        - On error, tries a one-time engine re-init and retry.
        """
        try:
            if not self.engine:
                logger.warning("TTS engine not available")
                return

            if not text or not text.strip():
                return

            with self._speak_lock:
                self._stop_safe()
                time.sleep(SPEAK_SETTLE_SECONDS)

                try:
                    self._say(text, options)
                except Exception as e:
                    logger.warning(f"TTS run error, attempting one-time recovery: {e}")
                    self._recover_engine()
                    try:
                        self._say(text, options)
                    except Exception as e2:
                        logger.error(f"TTS speak failed after recovery: {e2}")

        except Exception as e:
            logger.error(f"Error in TTS speak: {e}")

    def _say(self, text: str, options: Optional[SpeechOptions]):
        if options is not None:
            self._apply_options(options)
        try:
            self.engine.say(text)
            self.engine.runAndWait()
        finally:
            if options is not None and self.engine:
                self._apply_options(self.defaults)

    def _recover_engine(self):
        """
        One-time soft recovery for engine glitches, including macOS
        PaMacCore (-50) audio errors.
        """
        try:
            self._stop_safe()
            self._init_engine()
        except Exception as e:
            logger.error(f"Error recovering TTS engine: {e}")

    def _stop_safe(self):
        """Stop speech, logging driver errors instead of raising."""
        try:
            if self.engine and hasattr(self.engine, "stop"):
                self.engine.stop()
        except Exception as e:
            logger.error(f"Error stopping TTS: {e}")

    def stop(self):
        """Public method: interrupt ongoing speech; never blocks on the speak lock."""
        self._stop_safe()

    def get_voice_count(self) -> int:
        """Get number of mapped voices (for diagnostics/UI)."""
        return len(self.voice_ids)
