"""Data models for the remote (video-verified) S.K.A.T.E. variant."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from skatehubba.game.rules import count_of


class GameStatus(str, Enum):
    """Lifecycle status of a remote game."""

    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETE = "complete"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (GameStatus.COMPLETE, GameStatus.CANCELLED)


class RoundStatus(str, Enum):
    """Where a round stands in the set -> reply -> confirm cycle."""

    AWAITING_SET = "awaiting_set"
    AWAITING_REPLY = "awaiting_reply"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    DISPUTED = "disputed"
    RESOLVED = "resolved"

    @property
    def step(self) -> int:
        """Position in the cycle; DISPUTED and RESOLVED share the last step."""
        return {
            RoundStatus.AWAITING_SET: 0,
            RoundStatus.AWAITING_REPLY: 1,
            RoundStatus.AWAITING_CONFIRMATION: 2,
            RoundStatus.DISPUTED: 3,
            RoundStatus.RESOLVED: 3,
        }[self]


class RoundResult(str, Enum):
    """Whether the defense landed the offense's trick."""

    LANDED = "landed"
    MISSED = "missed"


class RemoteAction(str, Enum):
    """Transitions accepted by the remote state machine."""

    JOIN = "join"
    CANCEL = "cancel"
    SET_COMPLETE = "set_complete"
    REPLY_COMPLETE = "reply_complete"
    RESOLVE = "resolve"
    CONFIRM = "confirm"
    ADJUDICATE = "adjudicate"


class VideoRole(str, Enum):
    SET = "set"
    REPLY = "reply"


class VideoStatus(str, Enum):
    UPLOADING = "uploading"
    READY = "ready"
    FAILED = "failed"


def _enum_or_none(enum_cls: type[Enum], value: Any) -> Any:
    return enum_cls(value) if value else None


@dataclass(frozen=True)
class RemoteGame:
    """A game document in ``remote_games``."""

    id: str
    created_by_uid: str
    player_a_uid: str
    player_b_uid: Optional[str] = None
    letters: dict[str, str] = field(default_factory=dict)
    status: GameStatus = GameStatus.WAITING
    current_turn_uid: Optional[str] = None
    current_round_id: Optional[str] = None
    round_count: int = 0
    winner_uid: Optional[str] = None
    created_at: Any = None
    last_move_at: Any = None

    @property
    def players(self) -> tuple[str, ...]:
        if self.player_b_uid:
            return (self.player_a_uid, self.player_b_uid)
        return (self.player_a_uid,)

    def has_player(self, uid: str) -> bool:
        return uid in self.players

    def letter_counts(self) -> dict[str, int]:
        return {uid: count_of(self.letters.get(uid)) for uid in self.players}

    def to_dict(self) -> dict[str, Any]:
        return {
            "createdByUid": self.created_by_uid,
            "playerAUid": self.player_a_uid,
            "playerBUid": self.player_b_uid,
            "letters": dict(self.letters),
            "status": self.status.value,
            "currentTurnUid": self.current_turn_uid,
            "currentRoundId": self.current_round_id,
            "roundCount": self.round_count,
            "winnerUid": self.winner_uid,
            "createdAt": self.created_at,
            "lastMoveAt": self.last_move_at,
        }

    @classmethod
    def from_dict(cls, game_id: str, data: dict[str, Any]) -> RemoteGame:
        return cls(
            id=game_id,
            created_by_uid=data["createdByUid"],
            player_a_uid=data["playerAUid"],
            player_b_uid=data.get("playerBUid"),
            letters=dict(data.get("letters") or {}),
            status=GameStatus(data.get("status") or GameStatus.WAITING.value),
            current_turn_uid=data.get("currentTurnUid"),
            current_round_id=data.get("currentRoundId"),
            round_count=int(data.get("roundCount", 0)),
            winner_uid=data.get("winnerUid"),
            created_at=data.get("createdAt"),
            last_move_at=data.get("lastMoveAt"),
        )


@dataclass(frozen=True)
class RemoteRound:
    """One set/reply exchange, stored under ``remote_games/{id}/rounds``."""

    id: str
    round_number: int
    offense_uid: str
    defense_uid: str
    status: RoundStatus = RoundStatus.AWAITING_SET
    set_video_id: Optional[str] = None
    reply_video_id: Optional[str] = None
    result: Optional[RoundResult] = None
    offense_claim: Optional[RoundResult] = None
    defense_claim: Optional[RoundResult] = None
    adjudicated_by: Optional[str] = None
    created_at: Any = None

    def role_of(self, uid: str) -> Optional[VideoRole]:
        """The upload role ``uid`` plays in this round, if any."""
        if uid == self.offense_uid:
            return VideoRole.SET
        if uid == self.defense_uid:
            return VideoRole.REPLY
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "roundNumber": self.round_number,
            "offenseUid": self.offense_uid,
            "defenseUid": self.defense_uid,
            "status": self.status.value,
            "setVideoId": self.set_video_id,
            "replyVideoId": self.reply_video_id,
            "result": self.result.value if self.result else None,
            "offenseClaim": self.offense_claim.value if self.offense_claim else None,
            "defenseClaim": self.defense_claim.value if self.defense_claim else None,
            "adjudicatedBy": self.adjudicated_by,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, round_id: str, data: dict[str, Any]) -> RemoteRound:
        return cls(
            id=round_id,
            round_number=int(data.get("roundNumber", 1)),
            offense_uid=data["offenseUid"],
            defense_uid=data["defenseUid"],
            status=RoundStatus(data.get("status") or RoundStatus.AWAITING_SET.value),
            set_video_id=data.get("setVideoId"),
            reply_video_id=data.get("replyVideoId"),
            result=_enum_or_none(RoundResult, data.get("result")),
            offense_claim=_enum_or_none(RoundResult, data.get("offenseClaim")),
            defense_claim=_enum_or_none(RoundResult, data.get("defenseClaim")),
            adjudicated_by=data.get("adjudicatedBy"),
            created_at=data.get("createdAt"),
        )


@dataclass(frozen=True)
class RemoteVideo:
    """Metadata for one uploaded clip in ``remote_videos``."""

    id: str
    uid: str
    game_id: str
    round_id: str
    role: VideoRole
    storage_path: str
    content_type: str
    size_bytes: int
    duration_ms: int
    status: VideoStatus = VideoStatus.UPLOADING
    download_url: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "uid": self.uid,
            "gameId": self.game_id,
            "roundId": self.round_id,
            "role": self.role.value,
            "storagePath": self.storage_path,
            "downloadURL": self.download_url,
            "contentType": self.content_type,
            "sizeBytes": self.size_bytes,
            "durationMs": self.duration_ms,
            "status": self.status.value,
            "errorCode": self.error_code,
            "errorMessage": self.error_message,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, video_id: str, data: dict[str, Any]) -> RemoteVideo:
        return cls(
            id=video_id,
            uid=data["uid"],
            game_id=data["gameId"],
            round_id=data["roundId"],
            role=VideoRole(data["role"]),
            storage_path=data["storagePath"],
            content_type=data.get("contentType") or "",
            size_bytes=int(data.get("sizeBytes", 0)),
            duration_ms=int(data.get("durationMs", 0)),
            status=VideoStatus(data.get("status") or VideoStatus.UPLOADING.value),
            download_url=data.get("downloadURL"),
            error_code=data.get("errorCode"),
            error_message=data.get("errorMessage"),
            created_at=data.get("createdAt"),
        )


@dataclass(frozen=True)
class RemoteTransition:
    """The documents produced by one remote engine step.

    ``next_round`` is a round to create; ``disputed`` flags a disagreement.
    """

    game: RemoteGame
    round: Optional[RemoteRound] = None
    next_round: Optional[RemoteRound] = None
    disputed: bool = False


@dataclass(frozen=True)
class ConfirmOutcome:
    """Result of a defense confirmation."""

    disputed: bool
    result: Optional[RoundResult] = None
    game: Optional[RemoteGame] = None


@dataclass(frozen=True)
class FindOrCreateResult:
    game_id: str
    matched: bool
    round_id: Optional[str] = None
