"""
Voice processing components for the assistant
"""

from .command_parser import NO_MATCH, MatchResult, match, normalize
from .commands import Action, Category, CommandCatalog, CommandDefinition, default_catalog
from .dispatcher import DispatchOutcome, Signal, dispatch
from .engine import ErrorKind, Phase, Severity, VoiceEngine

__all__ = [
    'Action',
    'Category',
    'CommandCatalog',
    'CommandDefinition',
    'default_catalog',
    'normalize',
    'match',
    'MatchResult',
    'NO_MATCH',
    'dispatch',
    'DispatchOutcome',
    'Signal',
    'VoiceEngine',
    'Phase',
    'Severity',
    'ErrorKind',
]
