import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Sequence, Tuple, Union

from .command_parser import normalize

logger = logging.getLogger(__name__)


class Category(Enum):
    NAVIGATE = "navigate"
    EMERGENCY = "emergency"
    DETECT = "detect"
    SETTINGS = "settings"
    GENERAL = "general"


# Older catalog data uses the UI group names for the action type
CATEGORY_ALIASES = {
    "navigation": Category.NAVIGATE,
    "detection": Category.DETECT,
}


class EmergencyAction(Enum):
    CALL = "call"
    MESSAGE = "message"
    LOCATION = "location"


class DetectMode(Enum):
    SCENE = "scene"
    OBJECTS = "objects"
    TEXT = "text"
    DEPTH = "depth"


SETTING_VALUES = {
    "voice": ("male", "female"),
    "volume": ("up", "down"),
}


@dataclass(frozen=True)
class SettingsChange:
    setting: str
    value: str

    def __str__(self):
        return f"{self.setting}:{self.value}"


Operand = Union[str, EmergencyAction, DetectMode, SettingsChange, None]


@dataclass(frozen=True)
class Action:
    """
    Tagged action: a category plus the operand it needs.

    Operands are converted to their typed form when the catalog is built.
    An operand that names no known sub-action stays a plain string so the
    dispatcher can fall back to the generic response.
    """
    category: Category
    operand: Operand = None

    @classmethod
    def parse(cls, text: str) -> "Action":
        """
        Build an action from 'category:operand' text, e.g.
        'navigate:/settings' or 'settings:volume:up'.
        """
        if not text or not text.strip():
            raise ValueError("Empty action")

        kind, _, rest = text.strip().partition(':')
        kind = kind.lower()
        category = CATEGORY_ALIASES.get(kind)
        if category is None:
            try:
                category = Category(kind)
            except ValueError:
                raise ValueError(f"Unknown action category: {kind!r}") from None

        return cls(category, _typed_operand(category, rest))

    @property
    def is_known(self) -> bool:
        """True when the operand maps to a concrete sub-action."""
        if self.category is Category.NAVIGATE:
            return isinstance(self.operand, str) and self.operand.startswith('/')
        if self.category is Category.EMERGENCY:
            return isinstance(self.operand, EmergencyAction)
        if self.category is Category.DETECT:
            return isinstance(self.operand, DetectMode)
        if self.category is Category.SETTINGS:
            return isinstance(self.operand, SettingsChange)
        return False

    def __str__(self):
        if self.operand is None:
            return self.category.value
        value = self.operand.value if isinstance(self.operand, Enum) else self.operand
        return f"{self.category.value}:{value}"


def _typed_operand(category: Category, raw: str) -> Operand:
    raw = raw.strip()

    if category is Category.NAVIGATE:
        return raw or None

    if category is Category.EMERGENCY:
        try:
            return EmergencyAction(raw.lower())
        except ValueError:
            logger.warning(f"Unknown emergency operand: {raw!r}")
            return raw

    if category is Category.DETECT:
        try:
            return DetectMode(raw.lower())
        except ValueError:
            logger.warning(f"Unknown detect operand: {raw!r}")
            return raw

    if category is Category.SETTINGS:
        setting, _, value = raw.lower().partition(':')
        if value in SETTING_VALUES.get(setting, ()):
            return SettingsChange(setting, value)
        logger.warning(f"Unknown settings operand: {raw!r}")
        return raw

    return raw or None


@dataclass(frozen=True)
class CommandDefinition:
    patterns: Tuple[str, ...]
    action: Action
    description: str

    def __post_init__(self):
        cleaned = tuple(p for p in (normalize(p) for p in self.patterns) if p)
        if not cleaned:
            raise ValueError(f"Command '{self.description}' has no patterns")
        object.__setattr__(self, 'patterns', cleaned)

    @property
    def category(self) -> Category:
        return self.action.category


def command(patterns: Sequence[str], action: Union[str, Action], description: str) -> CommandDefinition:
    """Shorthand used for literal catalogs."""
    if isinstance(action, str):
        action = Action.parse(action)
    return CommandDefinition(tuple(patterns), action, description)


@dataclass(frozen=True)
class CommandCatalog:
    """
    Ordered, read-only list of command definitions.

    Position in the catalog is the match priority.
    """
    commands: Tuple[CommandDefinition, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, 'commands', tuple(self.commands))

    def list_commands(self) -> Tuple[CommandDefinition, ...]:
        return self.commands

    def by_category(self) -> Dict[Category, List[CommandDefinition]]:
        """Group commands for the help surface, keeping catalog order."""
        groups: Dict[Category, List[CommandDefinition]] = {}
        for definition in self.commands:
            groups.setdefault(definition.category, []).append(definition)
        return groups

    @staticmethod
    def describe(definition: CommandDefinition) -> str:
        """Spoken help line for one command."""
        return f"{definition.patterns[0].capitalize()}. {definition.description}."

    def __iter__(self) -> Iterator[CommandDefinition]:
        return iter(self.commands)

    def __len__(self):
        return len(self.commands)


DEFAULT_COMMANDS = (
    # Navigation
    command(["go home", "open home", "home page"], "navigate:/", "Go to home page"),
    command(["open live vision", "start camera", "live vision"], "navigate:/live-vision", "Open live vision camera"),
    command(["what's around me", "describe surroundings", "scan area"], "navigate:/whats-around", "Scan surrounding area"),
    command(["open navigation", "navigate", "directions"], "navigate:/navigation", "Open navigation"),
    command(["open contacts", "show contacts", "my contacts"], "navigate:/contacts", "Open contacts list"),
    command(["open settings", "change settings", "preferences"], "navigate:/settings", "Open settings"),
    command(["voice commands", "help commands", "what can you do"], "navigate:/voice-commands", "Show voice commands list"),
    command(["show history", "previous interactions", "history"], "navigate:/history", "Show interaction history"),
    command(["start tutorial", "how to use", "tutorial"], "navigate:/tutorial", "Start tutorial mode"),

    # Emergency; specific actions come before the generic "emergency"/"help" entry
    command(["call emergency", "emergency call", "call 911"], "emergency:call", "Make emergency call"),
    command(["send emergency message", "text for help", "emergency text"], "emergency:message", "Send emergency message"),
    command(["share my location", "send location", "where am i"], "emergency:location", "Share current location"),
    command(["emergency", "help", "call for help"], "navigate:/emergency", "Open emergency options"),

    # Detection
    command(["what do you see", "describe this", "tell me what's there"], "detect:scene", "Describe current scene"),
    command(["find objects", "what objects", "identify items"], "detect:objects", "Identify objects in view"),
    command(["read text", "what does it say", "read this"], "detect:text", "Read text in view"),
    command(["how far", "distance", "depth"], "detect:depth", "Measure distance to objects"),

    # Settings; "male" is contained in "female", so female goes first
    command(["change voice to female", "female voice"], "settings:voice:female", "Change to female voice"),
    command(["change voice to male", "male voice"], "settings:voice:male", "Change to male voice"),
    command(["increase volume", "louder", "volume up"], "settings:volume:up", "Increase volume"),
    command(["decrease volume", "quieter", "volume down"], "settings:volume:down", "Decrease volume"),
)


def default_catalog() -> CommandCatalog:
    return CommandCatalog(DEFAULT_COMMANDS)
