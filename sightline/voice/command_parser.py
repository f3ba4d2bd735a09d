import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from .commands import CommandDefinition

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of matching one utterance.

    Holds the matched definition and the pattern that satisfied it, or
    neither (see NO_MATCH).
    """
    command: Optional["CommandDefinition"] = None
    pattern: Optional[str] = None

    def __post_init__(self):
        if (self.command is None) != (self.pattern is None):
            raise ValueError("MatchResult needs both a command and a pattern, or neither")

    @property
    def matched(self) -> bool:
        return self.command is not None

    def __bool__(self):
        return self.matched


NO_MATCH = MatchResult()


def normalize(raw: Optional[str]) -> str:
    """
    Lowercase, trim and collapse internal whitespace.
    Never fails; empty or missing input gives ''.
    """
    if not raw:
        return ""
    return _WHITESPACE.sub(" ", raw).strip().lower()


def pattern_satisfies(pattern: str, utterance: str) -> bool:
    """
    A pattern satisfies an utterance when the utterance contains it as a
    substring, or when every token of the pattern appears somewhere in the
    utterance (any order, overlaps allowed).
    """
    if not utterance or not pattern:
        return False

    if pattern in utterance:
        return True

    tokens = pattern.split()
    if not tokens:
        return False
    return all(token in utterance for token in tokens)


def match(utterance: str, catalog: Iterable["CommandDefinition"]) -> MatchResult:
    """
    Return the first definition, in catalog order, with a satisfying pattern.

    `utterance` is expected to be normalized already.
    """
    if not utterance:
        return NO_MATCH

    for definition in catalog:
        for pattern in definition.patterns:
            if pattern_satisfies(pattern, utterance):
                logger.debug(f"Utterance matched '{definition.description}' via '{pattern}'")
                return MatchResult(definition, pattern)

    logger.debug("No command matched the utterance")
    return NO_MATCH
