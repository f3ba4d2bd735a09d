import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .. import routes
from .commands import Category, CommandDefinition, DetectMode, EmergencyAction, SettingsChange

logger = logging.getLogger(__name__)


NOT_IMPLEMENTED_FEEDBACK = "Command recognized but not implemented yet."
NO_MATCH_FEEDBACK = (
    "Sorry, I didn't understand that command. "
    "Try saying 'voice commands' to see what I can do."
)

# Notification texts (shown, not spoken)
EXECUTED_TITLE = "Voice Command Executed"
NO_MATCH_TITLE = "Command Not Recognized"
NO_MATCH_DESCRIPTION = "Try saying 'voice commands' to see available options."


class Signal(Enum):
    """Requests for collaborators outside the voice engine."""
    SHARE_LOCATION = "share_location"
    DETECT_SCENE = "detect_scene"
    DETECT_OBJECTS = "detect_objects"
    DETECT_TEXT = "detect_text"
    DETECT_DEPTH = "detect_depth"
    VOICE_MALE = "voice_male"
    VOICE_FEMALE = "voice_female"
    VOLUME_UP = "volume_up"
    VOLUME_DOWN = "volume_down"


@dataclass(frozen=True)
class DispatchOutcome:
    feedback: str
    navigate_to: Optional[str] = None
    signals: Tuple[Signal, ...] = ()
    handled: bool = True


UNHANDLED = DispatchOutcome(NOT_IMPLEMENTED_FEEDBACK, handled=False)


EMERGENCY_FEEDBACK = {
    EmergencyAction.CALL: "Opening emergency calling interface",
    EmergencyAction.MESSAGE: "Opening emergency messaging interface",
    EmergencyAction.LOCATION: "Sharing your current location",
}

DETECT_FEEDBACK = {
    DetectMode.SCENE: ("Analyzing the scene in front of you", Signal.DETECT_SCENE),
    DetectMode.OBJECTS: ("Identifying objects in your view", Signal.DETECT_OBJECTS),
    DetectMode.TEXT: ("Reading text in the view", Signal.DETECT_TEXT),
    DetectMode.DEPTH: ("Measuring distances to objects", Signal.DETECT_DEPTH),
}

SETTINGS_SIGNALS = {
    ('voice', 'male'): Signal.VOICE_MALE,
    ('voice', 'female'): Signal.VOICE_FEMALE,
    ('volume', 'up'): Signal.VOLUME_UP,
    ('volume', 'down'): Signal.VOLUME_DOWN,
}


def dispatch(definition: CommandDefinition) -> DispatchOutcome:
    """
    Decide what a matched command does.

    Returns the feedback to speak and the side effects to request; nothing
    is performed here.
    """
    action = definition.action
    handler = _HANDLERS.get(action.category)
    if handler is None or not action.is_known:
        logger.warning(f"No handler for action '{action}'")
        return UNHANDLED

    outcome = handler(definition)
    logger.debug(f"Dispatched '{action}' -> navigate={outcome.navigate_to} signals={outcome.signals}")
    return outcome


def _navigate(definition: CommandDefinition) -> DispatchOutcome:
    return DispatchOutcome(
        feedback=f"Opening {definition.description.lower()}",
        navigate_to=definition.action.operand,
    )


def _emergency(definition: CommandDefinition) -> DispatchOutcome:
    operand = definition.action.operand
    feedback = EMERGENCY_FEEDBACK[operand]

    if operand is EmergencyAction.LOCATION:
        return DispatchOutcome(feedback, signals=(Signal.SHARE_LOCATION,))
    return DispatchOutcome(feedback, navigate_to=routes.EMERGENCY)


def _detect(definition: CommandDefinition) -> DispatchOutcome:
    feedback, signal = DETECT_FEEDBACK[definition.action.operand]
    return DispatchOutcome(feedback, navigate_to=routes.LIVE_VISION, signals=(signal,))


def _settings(definition: CommandDefinition) -> DispatchOutcome:
    change: SettingsChange = definition.action.operand
    signal = SETTINGS_SIGNALS[(change.setting, change.value)]

    if change.setting == 'voice':
        feedback = f"Changing voice to {change.value}"
    elif change.value == 'up':
        feedback = "Increasing volume"
    else:
        feedback = "Decreasing volume"

    return DispatchOutcome(feedback, navigate_to=routes.SETTINGS, signals=(signal,))


_HANDLERS = {
    Category.NAVIGATE: _navigate,
    Category.EMERGENCY: _emergency,
    Category.DETECT: _detect,
    Category.SETTINGS: _settings,
}
