"""Rules shared by the S.K.A.T.E. game variants."""

from .base import GameVariant
from .rules import (
    AttemptOutcome,
    add_letter,
    count_of,
    letters_for,
    score_attempt,
    score_setter_bail,
)

__all__ = [
    "AttemptOutcome",
    "GameVariant",
    "add_letter",
    "count_of",
    "letters_for",
    "score_attempt",
    "score_setter_bail",
]
