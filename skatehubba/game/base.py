"""Common interface for the in-person and remote S.K.A.T.E. state machines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

S = TypeVar("S")


class GameVariant(ABC, Generic[S]):
    """A pure state machine over one variant's document shape.

    ``transition`` never mutates its input. It either returns the next state
    or raises an AppError, which lets callers run it inside a Firestore
    transaction and abort with nothing written.
    """

    name: str = ""

    def __init__(self, swap_on_land: bool = False) -> None:
        self.swap_on_land = swap_on_land

    @abstractmethod
    def phase(self, state: S) -> str:
        """The sub-state that decides which actions are legal next."""

    @abstractmethod
    def is_terminal(self, state: S) -> bool:
        """Whether no further transitions are accepted."""

    @abstractmethod
    def transition(self, state: S, actor: str, action: Any, **payload: Any) -> Any:
        """Apply ``action`` by ``actor`` and return the resulting state."""
