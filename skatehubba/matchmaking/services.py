"""Service layer for matchmaking: the quick-match queue and direct challenges."""

from __future__ import annotations

import logging
import random
import secrets
import uuid
from typing import TYPE_CHECKING, Any, Callable, Optional, cast

from firebase_admin import firestore

from skatehubba.core.constants import (
    COIN_FLIP_THRESHOLD,
    DEFAULT_PLAYER_NAME,
    MATCHES_COLLECTION,
    QUEUE_COLLECTION,
    QUEUE_SCAN_LIMIT,
    QUICK_MATCH_CANDIDATE_LIMIT,
    USERS_COLLECTION,
)
from skatehubba.core.subscriptions import Subscription, first_snapshot
from skatehubba.core.transactions import run_transaction
from skatehubba.errors import (
    IllegalTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from skatehubba.match.models import Match, MatchState, MatchStatus, PlayerData, Stance
from skatehubba.notifications import NotificationService

from .models import OpponentMatch, QueueEntry, QueueStatus, QuickMatchResult

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

    from skatehubba.core.types import UserSession

logger = logging.getLogger(__name__)

RandomSource = Callable[[], int]


def secure_random_u32() -> int:
    """Draw a uniformly distributed 32-bit integer from the OS CSPRNG."""
    return secrets.randbits(32)


def coin_flip(value: int) -> int:
    """Map a 32-bit random value onto player slot 0 or 1."""
    return 0 if value < COIN_FLIP_THRESHOLD else 1


def display_name(user: UserSession | dict[str, Any]) -> str:
    """Return a user's display name with the default fallback."""
    return user.get("name") or user.get("displayName") or DEFAULT_PLAYER_NAME


def _new_match(  # noqa: PLR0913
    match_ref: DocumentReference,
    players: tuple[str, str],
    player_data: dict[str, PlayerData],
    status: MatchStatus,
    turn_player_id: str,
    created_by: str,
) -> Match:
    return Match(
        id=match_ref.id,
        players=players,
        state=MatchState(status=status, turn_player_id=turn_player_id),
        player_data=player_data,
        created_by=created_by,
    )


def _created_key(data: dict[str, Any]) -> float:
    created = data.get("createdAt")
    return created.timestamp() if hasattr(created, "timestamp") else 0.0


def _match_write(match: Match) -> dict[str, Any]:
    return {
        **match.to_dict(),
        "createdAt": firestore.SERVER_TIMESTAMP,
        "updatedAt": firestore.SERVER_TIMESTAMP,
    }


def _find_quick_match_transaction(  # noqa: PLR0913
    transaction: Transaction,
    db: Client,
    user: UserSession,
    stance: Stance,
    scan_limit: int,
    random_source: RandomSource,
) -> QuickMatchResult:
    """Pair with the first waiting ticket from someone else, or queue up."""
    uid = user["uid"]
    queue_ref = db.collection(QUEUE_COLLECTION)
    waiting = firestore.FieldFilter("status", "==", QueueStatus.WAITING.value)
    own_query = queue_ref.where(filter=waiting).where(
        filter=firestore.FieldFilter("createdBy", "==", uid)
    )
    own_entries = [
        QueueEntry.from_dict(snap.id, snap.to_dict() or {})
        for snap in own_query.stream(transaction=transaction)
    ]

    # Own tickets do not use up the scan window.
    waiting_query = queue_ref.where(filter=waiting).limit(scan_limit + len(own_entries))
    candidate: Optional[QueueEntry] = None
    for snap in waiting_query.stream(transaction=transaction):
        entry = QueueEntry.from_dict(snap.id, snap.to_dict() or {})
        if entry.created_by != uid:
            candidate = entry
            break

    if candidate is None:
        if own_entries:
            return QuickMatchResult(match_id=own_entries[0].id, is_waiting=True)
        entry_ref = queue_ref.document()
        entry = QueueEntry(
            id=entry_ref.id,
            created_by=uid,
            creator_name=display_name(user),
            creator_photo=user.get("picture"),
            stance=stance,
        )
        transaction.set(
            entry_ref, {**entry.to_dict(), "createdAt": firestore.SERVER_TIMESTAMP}
        )
        return QuickMatchResult(match_id=entry_ref.id, is_waiting=True)

    players = (candidate.created_by, uid)
    starter = players[coin_flip(random_source())]
    match_ref = db.collection(MATCHES_COLLECTION).document()
    match = _new_match(
        match_ref,
        players,
        {
            candidate.created_by: PlayerData(
                display_name=candidate.creator_name or DEFAULT_PLAYER_NAME,
                stance=candidate.stance,
                photo_url=candidate.creator_photo,
            ),
            uid: PlayerData(
                display_name=display_name(user),
                stance=stance,
                photo_url=user.get("picture"),
            ),
        },
        MatchStatus.ACTIVE,
        starter,
        uid,
    )

    transaction.delete(queue_ref.document(candidate.id))
    for entry in own_entries:
        transaction.delete(queue_ref.document(entry.id))
    transaction.set(match_ref, _match_write(match))
    return QuickMatchResult(match_id=match_ref.id, is_waiting=False)


def _cancel_matchmaking_transaction(
    transaction: Transaction, entry_ref: DocumentReference, user_id: str
) -> bool:
    snapshot = cast("DocumentSnapshot", entry_ref.get(transaction=transaction))
    if not snapshot.exists:
        return False
    if (snapshot.to_dict() or {}).get("createdBy") != user_id:
        raise PermissionDeniedError("You can only cancel your own matchmaking request.")
    transaction.delete(entry_ref)
    return True


def _accept_challenge_transaction(  # noqa: PLR0913
    transaction: Transaction,
    match_ref: DocumentReference,
    user_id: str,
    stance: Optional[Stance],
    random_source: RandomSource,
) -> Match:
    snapshot = cast("DocumentSnapshot", match_ref.get(transaction=transaction))
    if not snapshot.exists:
        raise NotFoundError("Challenge not found.")
    match = Match.from_dict(match_ref.id, snapshot.to_dict() or {})

    if match.players[1] != user_id:
        raise PermissionDeniedError("Only the challenged player can accept.")
    if match.state.status != MatchStatus.PENDING_ACCEPT:
        raise IllegalTransitionError("This challenge is no longer open.")

    starter = match.players[coin_flip(random_source())]
    accepted = match.with_state(status=MatchStatus.ACTIVE, turn_player_id=starter)
    updates: dict[str, Any] = {
        "state": accepted.state.to_dict(),
        "updatedAt": firestore.SERVER_TIMESTAMP,
    }
    if stance is not None and user_id in match.player_data:
        player_data = dict(match.player_data)
        current = player_data[user_id]
        player_data[user_id] = PlayerData(current.display_name, stance, current.photo_url)
        updates["playerData"] = {uid: pd.to_dict() for uid, pd in player_data.items()}
    transaction.update(match_ref, updates)
    return accepted


def _decline_challenge_transaction(
    transaction: Transaction, match_ref: DocumentReference, user_id: str
) -> Match:
    snapshot = cast("DocumentSnapshot", match_ref.get(transaction=transaction))
    if not snapshot.exists:
        raise NotFoundError("Challenge not found.")
    match = Match.from_dict(match_ref.id, snapshot.to_dict() or {})

    if not match.has_player(user_id):
        raise PermissionDeniedError("You are not in this game.")
    if match.state.status != MatchStatus.PENDING_ACCEPT:
        raise IllegalTransitionError("This challenge is no longer open.")

    declined = match.with_state(status=MatchStatus.CANCELLED)
    transaction.update(
        match_ref,
        {"state": declined.state.to_dict(), "updatedAt": firestore.SERVER_TIMESTAMP},
    )
    return declined


class MatchmakingService:
    """Handles queueing, pairing and match creation/cancellation."""

    @staticmethod
    def find_quick_match(
        db: Client,
        user: UserSession,
        stance: Stance | str = Stance.REGULAR,
        scan_limit: int = QUEUE_SCAN_LIMIT,
        random_source: RandomSource = secure_random_u32,
    ) -> QuickMatchResult:
        """Join a waiting player or enqueue, atomically."""
        result = run_transaction(
            db,
            _find_quick_match_transaction,
            db,
            user,
            Stance(stance),
            scan_limit,
            random_source,
        )
        if result.is_waiting:
            logger.info(f"User {user['uid']} waiting in queue entry {result.match_id}")
        else:
            logger.info(f"Quick match {result.match_id} created for {user['uid']}")
        return result

    @staticmethod
    def cancel_matchmaking(db: Client, user_id: str, entry_id: str) -> bool:
        """Remove the caller's queue entry. Returns False if it was already gone."""
        entry_ref = db.collection(QUEUE_COLLECTION).document(entry_id)
        removed = run_transaction(db, _cancel_matchmaking_transaction, entry_ref, user_id)
        if removed:
            logger.info(f"Queue entry {entry_id} cancelled by {user_id}")
        return removed

    @staticmethod
    def find_active_match(db: Client, user_id: str) -> Optional[str]:
        """Return the id of the newest ACTIVE match the user plays in, if any."""
        matches = (
            db.collection(MATCHES_COLLECTION)
            .where(filter=firestore.FieldFilter("players", "array_contains", user_id))
            .stream()
        )
        active = [
            doc
            for doc in matches
            if ((doc.to_dict() or {}).get("state") or {}).get("status")
            == MatchStatus.ACTIVE.value
        ]
        if not active:
            return None
        newest = max(active, key=lambda doc: _created_key(doc.to_dict() or {}))
        return str(newest.id)

    @staticmethod
    def subscribe_to_queue(db: Client, user_id: str, entry_id: str) -> Subscription[str]:
        """Yield a match id once the user's queue entry disappears.

        Best-effort: the entry also disappears on cancellation, in which case
        no active match is found and nothing is yielded.
        """
        entry_ref = db.collection(QUEUE_COLLECTION).document(entry_id)

        def on_entry(snapshots: list[Any]) -> Optional[str]:
            if first_snapshot(snapshots) is not None:
                return None
            match_id = MatchmakingService.find_active_match(db, user_id)
            if match_id:
                logger.info(f"Queue entry {entry_id} matched into {match_id}")
            return match_id

        return Subscription(entry_ref, on_entry)

    @staticmethod
    def create_challenge(
        db: Client,
        challenger: UserSession,
        opponent_id: str,
        stance: Stance | str = Stance.REGULAR,
    ) -> Match:
        """Challenge a specific user; the match waits for their acceptance."""
        uid = challenger["uid"]
        if opponent_id == uid:
            raise ValidationError("You can't challenge yourself.")

        opponent_doc = cast(
            "DocumentSnapshot", db.collection(USERS_COLLECTION).document(opponent_id).get()
        )
        if not opponent_doc.exists:
            raise NotFoundError("Opponent not found.")
        opponent = opponent_doc.to_dict() or {}

        match_ref = db.collection(MATCHES_COLLECTION).document()
        match = _new_match(
            match_ref,
            (uid, opponent_id),
            {
                uid: PlayerData(display_name(challenger), Stance(stance), challenger.get("picture")),
                opponent_id: PlayerData(
                    display_name(opponent),
                    Stance(opponent.get("stance") or Stance.REGULAR.value),
                    opponent.get("photoURL"),
                ),
            },
            MatchStatus.PENDING_ACCEPT,
            uid,
            uid,
        )
        match_ref.set(_match_write(match))
        logger.info(f"Challenge {match_ref.id} created by {uid} against {opponent_id}")
        return match

    @staticmethod
    def accept_challenge(
        db: Client,
        user_id: str,
        match_id: str,
        stance: Stance | str | None = None,
        random_source: RandomSource = secure_random_u32,
    ) -> Match:
        """Accept a pending challenge; the starting setter is a coin flip."""
        match_ref = db.collection(MATCHES_COLLECTION).document(match_id)
        return run_transaction(
            db,
            _accept_challenge_transaction,
            match_ref,
            user_id,
            Stance(stance) if stance else None,
            random_source,
        )

    @staticmethod
    def decline_challenge(db: Client, user_id: str, match_id: str) -> Match:
        """Decline (or withdraw) a pending challenge."""
        match_ref = db.collection(MATCHES_COLLECTION).document(match_id)
        return run_transaction(db, _decline_challenge_transaction, match_ref, user_id)

    @staticmethod
    def notify_random_opponent(
        db: Client, user: UserSession, game_id: Optional[str] = None
    ) -> OpponentMatch:
        """Push a quick-match challenge to a random eligible user.

        Raises:
            NotFoundError: if nobody else can be reached right now.
        """
        uid = user["uid"]
        users = (
            db.collection(USERS_COLLECTION).limit(QUICK_MATCH_CANDIDATE_LIMIT).stream()
        )
        eligible = []
        for doc in users:
            data = doc.to_dict() or {}
            if doc.id == uid or data.get("isActive") is False:
                continue
            if data.get("fcmToken"):
                eligible.append((doc.id, data))

        if not eligible:
            raise NotFoundError("No opponents available right now. Try again later.")

        opponent_id, opponent = random.choice(eligible)  # nosec B311
        challenge_id = game_id or f"qm-{uuid.uuid4().hex[:12]}"
        NotificationService.send_quick_match(
            opponent["fcmToken"], display_name(user), challenge_id
        )
        logger.info(f"Quick-match challenge {challenge_id} sent to {opponent_id}")
        return OpponentMatch(
            opponent_id=opponent_id,
            opponent_name=display_name(opponent),
            challenge_id=challenge_id,
        )
