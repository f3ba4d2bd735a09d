import logging

from .voice.dispatcher import Signal

logger = logging.getLogger(__name__)


class SignalRouter:
    """
    Acts on the requests a dispatched voice command carries.

    Voice and volume changes go to the speech engine. Location sharing and
    detection have no backend in this app; they are only logged.
    """

    def __init__(self, tts_engine, volume_step: float = 0.1):
        self.tts_engine = tts_engine
        self.volume_step = volume_step

    def __call__(self, signal: Signal):
        if signal is Signal.VOICE_MALE:
            self.tts_engine.set_voice_gender('male')
        elif signal is Signal.VOICE_FEMALE:
            self.tts_engine.set_voice_gender('female')
        elif signal is Signal.VOLUME_UP:
            self.tts_engine.adjust_volume(self.volume_step)
        elif signal is Signal.VOLUME_DOWN:
            self.tts_engine.adjust_volume(-self.volume_step)
        elif signal is Signal.SHARE_LOCATION:
            logger.info("Location sharing requested")
        else:
            logger.info(f"Detection requested: {signal.value}")
