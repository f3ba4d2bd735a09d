import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

import appdirs

from .voice.tts_engine import SpeechOptions

logger = logging.getLogger(__name__)

APP_NAME = "Sightline"
APP_AUTHOR = "Sightline"
DEFAULT_MODEL_NAME = "vosk-model-small-en-us-0.15"


def default_model_path() -> str:
    return os.path.join(appdirs.user_data_dir(APP_NAME, APP_AUTHOR), "models", DEFAULT_MODEL_NAME)


def default_log_path() -> str:
    return os.path.join(appdirs.user_log_dir(APP_NAME, APP_AUTHOR), "sightline.log")


@dataclass
class AssistantConfig:
    model_path: str = field(default_factory=default_model_path)
    sample_rate: int = 16000
    base_speech_rate: int = 200          # words per minute at rate 1.0
    speech: SpeechOptions = field(default_factory=SpeechOptions)
    volume_step: float = 0.1
    log_level: str = "INFO"
    log_file: Optional[str] = field(default_factory=default_log_path)
    notification_seconds: float = 3.0
    welcome_message: str = (
        "Welcome to Sightline. Your voice-controlled assistant for visual accessibility. "
        "Say 'voice commands' to learn what I can do."
    )


def _float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {key}={raw!r}")
        return default


def load_config(environ: Optional[Mapping[str, str]] = None) -> AssistantConfig:
    """
    Build the configuration, taking overrides from SIGHTLINE_* variables.
    """
    environ = os.environ if environ is None else environ
    config = AssistantConfig()

    if environ.get("SIGHTLINE_MODEL_PATH"):
        config.model_path = os.path.expanduser(environ["SIGHTLINE_MODEL_PATH"])
    if environ.get("SIGHTLINE_LOG_LEVEL"):
        config.log_level = environ["SIGHTLINE_LOG_LEVEL"].strip().upper()
    if "SIGHTLINE_LOG_FILE" in environ:
        # empty value disables the log file
        config.log_file = environ["SIGHTLINE_LOG_FILE"].strip() or None

    config.speech = SpeechOptions(
        rate=_float(environ, "SIGHTLINE_SPEECH_RATE", config.speech.rate),
        pitch=_float(environ, "SIGHTLINE_SPEECH_PITCH", config.speech.pitch),
        volume=min(1.0, max(0.0, _float(environ, "SIGHTLINE_SPEECH_VOLUME", config.speech.volume))),
    )
    config.volume_step = _float(environ, "SIGHTLINE_VOLUME_STEP", config.volume_step)
    return config
