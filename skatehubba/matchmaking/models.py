"""Data models for the matchmaking blueprint."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from skatehubba.match.models import Stance


class QueueStatus(str, Enum):
    """Status of a quick-match ticket."""

    WAITING = "WAITING"
    MATCHED = "MATCHED"


@dataclass(frozen=True)
class QueueEntry:
    """A quick-match ticket waiting for an opponent."""

    id: str
    created_by: str
    creator_name: str
    stance: Stance = Stance.REGULAR
    creator_photo: Optional[str] = None
    status: QueueStatus = QueueStatus.WAITING
    created_at: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "createdBy": self.created_by,
            "creatorName": self.creator_name,
            "creatorPhoto": self.creator_photo,
            "stance": self.stance.value,
            "status": self.status.value,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, entry_id: str, data: dict[str, Any]) -> QueueEntry:
        return cls(
            id=entry_id,
            created_by=data["createdBy"],
            creator_name=data.get("creatorName") or "",
            stance=Stance(data.get("stance") or Stance.REGULAR.value),
            creator_photo=data.get("creatorPhoto"),
            status=QueueStatus(data.get("status") or QueueStatus.WAITING.value),
            created_at=data.get("createdAt"),
        )


@dataclass(frozen=True)
class QuickMatchResult:
    """Outcome of a quick-match request.

    ``match_id`` is the new match when paired, otherwise the caller's queue
    entry, which is what ``subscribe_to_queue`` watches.
    """

    match_id: str
    is_waiting: bool


@dataclass(frozen=True)
class OpponentMatch:
    """A random opponent who was sent a quick-match challenge."""

    opponent_id: str
    opponent_name: str
    challenge_id: str

    def to_dict(self) -> dict[str, str]:
        return {
            "opponentId": self.opponent_id,
            "opponentName": self.opponent_name,
            "challengeId": self.challenge_id,
        }
