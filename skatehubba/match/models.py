"""Data models for the match blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional


class MatchStatus(str, Enum):
    """Lifecycle status of an in-person match."""

    MATCHMAKING = "MATCHMAKING"
    PENDING_ACCEPT = "PENDING_ACCEPT"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (MatchStatus.COMPLETED, MatchStatus.CANCELLED)


class MatchPhase(str, Enum):
    """Where the current round stands."""

    SETTER_RECORDING = "SETTER_RECORDING"
    DEFENDER_ATTEMPTING = "DEFENDER_ATTEMPTING"
    VERIFICATION = "VERIFICATION"


class MatchAction(str, Enum):
    """Player actions accepted by the turn state machine."""

    SET = "SET"
    LAND = "LAND"
    BAIL = "BAIL"
    FORFEIT = "FORFEIT"


class Stance(str, Enum):
    """A skater's stance."""

    REGULAR = "regular"
    GOOFY = "goofy"


@dataclass(frozen=True)
class Trick:
    """The trick a setter has put down for the defender to match."""

    name: str
    setter_id: str
    set_at: Any
    description: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "setterId": self.setter_id,
            "setAt": self.set_at,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional[Trick]:
        if not data:
            return None
        return cls(
            name=data["name"],
            setter_id=data["setterId"],
            set_at=data.get("setAt"),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class PlayerData:
    """Denormalized display data for one participant."""

    display_name: str
    stance: Stance = Stance.REGULAR
    photo_url: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "displayName": self.display_name,
            "photoURL": self.photo_url,
            "stance": self.stance.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlayerData:
        return cls(
            display_name=data.get("displayName") or "",
            stance=Stance(data.get("stance") or Stance.REGULAR.value),
            photo_url=data.get("photoURL"),
        )


@dataclass(frozen=True)
class MatchState:
    """The mutable part of a match, stored under ``state``."""

    status: MatchStatus
    turn_player_id: str
    phase: MatchPhase = MatchPhase.SETTER_RECORDING
    p1_letters: int = 0
    p2_letters: int = 0
    current_trick: Optional[Trick] = None
    round_number: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "turnPlayerId": self.turn_player_id,
            "phase": self.phase.value,
            "p1Letters": self.p1_letters,
            "p2Letters": self.p2_letters,
            "currentTrick": self.current_trick.to_dict() if self.current_trick else None,
            "roundNumber": self.round_number,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MatchState:
        return cls(
            status=MatchStatus(data["status"]),
            turn_player_id=data["turnPlayerId"],
            phase=MatchPhase(data.get("phase") or MatchPhase.SETTER_RECORDING.value),
            p1_letters=int(data.get("p1Letters", 0)),
            p2_letters=int(data.get("p2Letters", 0)),
            current_trick=Trick.from_dict(data.get("currentTrick")),
            round_number=int(data.get("roundNumber", 1)),
        )


@dataclass(frozen=True)
class Match:
    """A match document in Firestore."""

    id: str
    players: tuple[str, str]
    state: MatchState
    player_data: dict[str, PlayerData] = field(default_factory=dict)
    winner_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Any = None
    updated_at: Any = None

    def __post_init__(self) -> None:
        players = tuple(self.players)
        if len(players) != 2 or players[0] == players[1]:  # noqa: PLR2004
            raise ValueError("A match needs exactly two distinct players.")
        object.__setattr__(self, "players", players)
        if self.state.turn_player_id not in players:
            raise ValueError("The turn must belong to one of the players.")

    def has_player(self, uid: str) -> bool:
        return uid in self.players

    def opponent_of(self, uid: str) -> str:
        return self.players[1] if self.players[0] == uid else self.players[0]

    def letters(self) -> dict[str, int]:
        """Letter counts keyed by uid."""
        return {
            self.players[0]: self.state.p1_letters,
            self.players[1]: self.state.p2_letters,
        }

    def with_state(self, **changes: Any) -> Match:
        return replace(self, state=replace(self.state, **changes))

    def to_dict(self) -> dict[str, Any]:
        return {
            "players": list(self.players),
            "playerData": {uid: pd.to_dict() for uid, pd in self.player_data.items()},
            "state": self.state.to_dict(),
            "winnerId": self.winner_id,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, match_id: str, data: dict[str, Any]) -> Match:
        return cls(
            id=match_id,
            players=tuple(data["players"]),
            state=MatchState.from_dict(data["state"]),
            player_data={
                uid: PlayerData.from_dict(pd)
                for uid, pd in (data.get("playerData") or {}).items()
            },
            winner_id=data.get("winnerId"),
            created_by=data.get("createdBy"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )
