"""Letter accumulation and win detection shared by every game variant."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from skatehubba.core.constants import MAX_LETTERS, SKATE_LETTERS


def letters_for(count: int) -> str:
    """Spell out a letter count, e.g. 3 -> "SKA"."""
    return SKATE_LETTERS[: max(0, min(count, MAX_LETTERS))]


def count_of(letters: Optional[str]) -> int:
    """Count the letters in a spelled-out string."""
    return min(len(letters or ""), MAX_LETTERS)


def add_letter(count: int) -> tuple[int, bool]:
    """Give one letter and report whether that eliminates the player."""
    new_count = min(count + 1, MAX_LETTERS)
    return new_count, new_count >= MAX_LETTERS


@dataclass(frozen=True)
class AttemptOutcome:
    """The result of scoring one set/attempt exchange."""

    setter: str
    defender: str
    letters: dict[str, int]
    winner: Optional[str] = None

    @property
    def is_over(self) -> bool:
        return self.winner is not None


def score_attempt(
    setter: str,
    defender: str,
    letters: dict[str, int],
    landed: bool,
    swap_on_land: bool = False,
) -> AttemptOutcome:
    """Score the defender's attempt at the setter's trick.

    A miss gives the defender a letter and the setter keeps control; the
    letter that completes S.K.A.T.E. ends the game in the same step with the
    setter as winner. A make costs nothing; the setter keeps control unless
    ``swap_on_land`` is set.
    """
    new_letters = dict(letters)
    if landed:
        if swap_on_land:
            return AttemptOutcome(setter=defender, defender=setter, letters=new_letters)
        return AttemptOutcome(setter=setter, defender=defender, letters=new_letters)

    new_count, eliminated = add_letter(new_letters.get(defender, 0))
    new_letters[defender] = new_count
    return AttemptOutcome(
        setter=setter,
        defender=defender,
        letters=new_letters,
        winner=setter if eliminated else None,
    )


def score_setter_bail(
    setter: str, defender: str, letters: dict[str, int]
) -> AttemptOutcome:
    """Score a setter who bails their own trick.

    The setter takes the letter and the roles swap. If that letter completes
    S.K.A.T.E. the defender wins.
    """
    new_letters = dict(letters)
    new_count, eliminated = add_letter(new_letters.get(setter, 0))
    new_letters[setter] = new_count
    return AttemptOutcome(
        setter=defender,
        defender=setter,
        letters=new_letters,
        winner=defender if eliminated else None,
    )
