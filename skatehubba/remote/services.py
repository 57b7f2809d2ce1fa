"""Service layer for remote S.K.A.T.E. games."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from skatehubba.core.constants import (
    QUEUE_SCAN_LIMIT,
    REMOTE_GAMES_COLLECTION,
    ROUNDS_SUBCOLLECTION,
    VIDEOS_COLLECTION,
)
from skatehubba.core.subscriptions import Subscription, first_snapshot
from skatehubba.core.transactions import run_transaction
from skatehubba.errors import NotFoundError

from .engine import RemoteStateMachine
from .models import (
    ConfirmOutcome,
    FindOrCreateResult,
    GameStatus,
    RemoteAction,
    RemoteGame,
    RemoteRound,
    RemoteTransition,
    RemoteVideo,
    RoundResult,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


def _game_ref(db: Client, game_id: str) -> DocumentReference:
    return db.collection(REMOTE_GAMES_COLLECTION).document(game_id)


def _read_game(transaction: Transaction, game_ref: DocumentReference) -> RemoteGame:
    snapshot = cast("DocumentSnapshot", game_ref.get(transaction=transaction))
    if not snapshot.exists:
        raise NotFoundError("Game not found.")
    return RemoteGame.from_dict(game_ref.id, snapshot.to_dict() or {})


def _read_round(
    transaction: Transaction, game_ref: DocumentReference, round_id: str
) -> Optional[RemoteRound]:
    round_ref = game_ref.collection(ROUNDS_SUBCOLLECTION).document(round_id)
    snapshot = cast("DocumentSnapshot", round_ref.get(transaction=transaction))
    if not snapshot.exists:
        return None
    return RemoteRound.from_dict(round_id, snapshot.to_dict() or {})


def _write_step(
    transaction: Transaction,
    game_ref: DocumentReference,
    before: RemoteGame,
    step: RemoteTransition,
) -> None:
    """Persist whatever an engine step changed. All reads must be done."""
    rounds = game_ref.collection(ROUNDS_SUBCOLLECTION)
    if step.game != before:
        transaction.update(
            game_ref, {**step.game.to_dict(), "lastMoveAt": firestore.SERVER_TIMESTAMP}
        )
    if step.round is not None:
        transaction.set(rounds.document(step.round.id), step.round.to_dict())
    if step.next_round is not None:
        transaction.set(
            rounds.document(step.next_round.id),
            {**step.next_round.to_dict(), "createdAt": firestore.SERVER_TIMESTAMP},
        )


def _new_game_write(game: RemoteGame) -> dict[str, Any]:
    return {
        **game.to_dict(),
        "createdAt": firestore.SERVER_TIMESTAMP,
        "lastMoveAt": firestore.SERVER_TIMESTAMP,
    }


def _join_game_transaction(
    transaction: Transaction,
    game_ref: DocumentReference,
    engine: RemoteStateMachine,
    uid: str,
) -> RemoteTransition:
    game = _read_game(transaction, game_ref)
    round_id = game_ref.collection(ROUNDS_SUBCOLLECTION).document().id
    step = engine.transition(game, uid, RemoteAction.JOIN, new_round_id=round_id)
    _write_step(transaction, game_ref, game, step)
    return step


def _cancel_game_transaction(
    transaction: Transaction,
    game_ref: DocumentReference,
    engine: RemoteStateMachine,
    uid: str,
) -> RemoteTransition:
    game = _read_game(transaction, game_ref)
    step = engine.transition(game, uid, RemoteAction.CANCEL)
    _write_step(transaction, game_ref, game, step)
    return step


def _find_or_create_transaction(
    transaction: Transaction,
    db: Client,
    engine: RemoteStateMachine,
    uid: str,
    scan_limit: int,
) -> FindOrCreateResult:
    games = db.collection(REMOTE_GAMES_COLLECTION)
    waiting_query = games.where(
        filter=firestore.FieldFilter("status", "==", GameStatus.WAITING.value)
    ).limit(scan_limit)

    own_game: Optional[RemoteGame] = None
    for snap in waiting_query.stream(transaction=transaction):
        game = RemoteGame.from_dict(snap.id, snap.to_dict() or {})
        if game.created_by_uid == uid:
            own_game = own_game or game
            continue
        if game.player_b_uid:
            continue
        game_ref = games.document(game.id)
        round_id = game_ref.collection(ROUNDS_SUBCOLLECTION).document().id
        step = engine.transition(game, uid, RemoteAction.JOIN, new_round_id=round_id)
        _write_step(transaction, game_ref, game, step)
        return FindOrCreateResult(game_id=game.id, matched=True, round_id=round_id)

    if own_game is not None:
        return FindOrCreateResult(game_id=own_game.id, matched=False)

    game_ref = games.document()
    transaction.set(game_ref, _new_game_write(engine.new_game(game_ref.id, uid)))
    return FindOrCreateResult(game_id=game_ref.id, matched=False)


def _round_action_transaction(  # noqa: PLR0913
    transaction: Transaction,
    game_ref: DocumentReference,
    round_id: str,
    engine: RemoteStateMachine,
    uid: str,
    action: RemoteAction,
    result: Optional[RoundResult | str] = None,
    video_id: Optional[str] = None,
) -> RemoteTransition:
    """Read the game and round, run one engine step and write it back."""
    game = _read_game(transaction, game_ref)
    game_round = _read_round(transaction, game_ref, round_id)
    next_round_id = game_ref.collection(ROUNDS_SUBCOLLECTION).document().id

    step = engine.transition(
        game,
        uid,
        action,
        game_round=game_round,
        result=result,
        new_round_id=next_round_id,
        video_id=video_id,
    )
    _write_step(transaction, game_ref, game, step)
    return step


class RemoteSkateService:
    """Service class for remote game operations."""

    @staticmethod
    def create_game(db: Client, uid: str) -> str:
        """Open a waiting game and return its id."""
        game_ref = db.collection(REMOTE_GAMES_COLLECTION).document()
        game_ref.set(_new_game_write(RemoteStateMachine.new_game(game_ref.id, uid)))
        logger.info(f"Remote game {game_ref.id} created by {uid}")
        return str(game_ref.id)

    @staticmethod
    def join_game(db: Client, game_id: str, uid: str) -> str:
        """Join a waiting game as player B and return the first round id."""
        step = run_transaction(
            db, _join_game_transaction, _game_ref(db, game_id), RemoteStateMachine(), uid
        )
        round_id = step.game.current_round_id or ""
        logger.info(f"User {uid} joined remote game {game_id}, round {round_id}")
        return round_id

    @staticmethod
    def cancel_game(db: Client, game_id: str, uid: str) -> RemoteGame:
        """Cancel a waiting game. Started or finished games are left alone."""
        step = run_transaction(
            db,
            _cancel_game_transaction,
            _game_ref(db, game_id),
            RemoteStateMachine(),
            uid,
        )
        if step.game.status == GameStatus.CANCELLED:
            logger.info(f"Remote game {game_id} cancelled by {uid}")
        return step.game

    @staticmethod
    def find_or_create(
        db: Client,
        uid: str,
        scan_limit: int = QUEUE_SCAN_LIMIT,
        swap_on_land: bool = False,
    ) -> FindOrCreateResult:
        """Join someone else's waiting game, else reuse or open one of our own."""
        result = run_transaction(
            db,
            _find_or_create_transaction,
            db,
            RemoteStateMachine(swap_on_land=swap_on_land),
            uid,
            scan_limit,
        )
        if result.matched:
            logger.info(f"User {uid} matched into remote game {result.game_id}")
        return result

    @staticmethod
    def _round_action(  # noqa: PLR0913
        db: Client,
        game_id: str,
        round_id: str,
        uid: str,
        action: RemoteAction,
        result: Optional[RoundResult | str] = None,
        video_id: Optional[str] = None,
        swap_on_land: bool = False,
    ) -> RemoteTransition:
        return run_transaction(
            db,
            _round_action_transaction,
            _game_ref(db, game_id),
            round_id,
            RemoteStateMachine(swap_on_land=swap_on_land),
            uid,
            action,
            result,
            video_id,
        )

    @staticmethod
    def mark_set_complete(
        db: Client, game_id: str, round_id: str, uid: str, video_id: Optional[str] = None
    ) -> RemoteGame:
        """Offense finished the set clip; the defense is up."""
        step = RemoteSkateService._round_action(
            db, game_id, round_id, uid, RemoteAction.SET_COMPLETE, video_id=video_id
        )
        return step.game

    @staticmethod
    def mark_reply_complete(
        db: Client, game_id: str, round_id: str, uid: str, video_id: Optional[str] = None
    ) -> RemoteGame:
        """Defense finished the reply clip; the offense judges next."""
        step = RemoteSkateService._round_action(
            db, game_id, round_id, uid, RemoteAction.REPLY_COMPLETE, video_id=video_id
        )
        return step.game

    @staticmethod
    def resolve_round(
        db: Client, game_id: str, round_id: str, uid: str, result: RoundResult | str
    ) -> RemoteRound:
        """Record the offense's claim about the defense's attempt."""
        step = RemoteSkateService._round_action(
            db, game_id, round_id, uid, RemoteAction.RESOLVE, result=result
        )
        return cast(RemoteRound, step.round)

    @staticmethod
    def confirm_round(  # noqa: PLR0913
        db: Client,
        game_id: str,
        round_id: str,
        uid: str,
        result: RoundResult | str,
        swap_on_land: bool = False,
    ) -> ConfirmOutcome:
        """Defense agrees or disagrees with the offense's claim."""
        step = RemoteSkateService._round_action(
            db,
            game_id,
            round_id,
            uid,
            RemoteAction.CONFIRM,
            result=result,
            swap_on_land=swap_on_land,
        )
        if step.disputed:
            logger.info(f"Round {round_id} of remote game {game_id} is disputed")
            return ConfirmOutcome(disputed=True, game=step.game)

        RemoteSkateService._log_resolved(game_id, round_id, step)
        return ConfirmOutcome(
            disputed=False, result=step.round.result if step.round else None, game=step.game
        )

    @staticmethod
    def adjudicate_dispute(  # noqa: PLR0913
        db: Client,
        game_id: str,
        round_id: str,
        admin_uid: str,
        result: RoundResult | str,
        swap_on_land: bool = False,
    ) -> RemoteGame:
        """Settle a disputed round. Callers must check admin rights first."""
        step = RemoteSkateService._round_action(
            db,
            game_id,
            round_id,
            admin_uid,
            RemoteAction.ADJUDICATE,
            result=result,
            swap_on_land=swap_on_land,
        )
        logger.info(f"Admin {admin_uid} adjudicated round {round_id} of {game_id}")
        RemoteSkateService._log_resolved(game_id, round_id, step)
        return step.game

    @staticmethod
    def _log_resolved(game_id: str, round_id: str, step: RemoteTransition) -> None:
        result = step.round.result.value if step.round and step.round.result else None
        logger.info(f"Round {round_id} of remote game {game_id} resolved: {result}")
        if step.game.status == GameStatus.COMPLETE:
            logger.info(f"Remote game {game_id} won by {step.game.winner_uid}")

    @staticmethod
    def get_game(db: Client, game_id: str) -> RemoteGame:
        snapshot = cast("DocumentSnapshot", _game_ref(db, game_id).get())
        if not snapshot.exists:
            raise NotFoundError("Game not found.")
        return RemoteGame.from_dict(game_id, snapshot.to_dict() or {})

    @staticmethod
    def get_round(db: Client, game_id: str, round_id: str) -> RemoteRound:
        round_ref = (
            _game_ref(db, game_id).collection(ROUNDS_SUBCOLLECTION).document(round_id)
        )
        snapshot = cast("DocumentSnapshot", round_ref.get())
        if not snapshot.exists:
            raise NotFoundError("Round not found.")
        return RemoteRound.from_dict(round_id, snapshot.to_dict() or {})

    @staticmethod
    def subscribe_to_game(
        db: Client, game_id: str
    ) -> Subscription[Optional[RemoteGame]]:
        """Stream the game document; yields None once it is deleted."""

        def to_game(snapshots: list[Any]) -> Optional[RemoteGame]:
            snapshot = first_snapshot(snapshots)
            if snapshot is None:
                return None
            return RemoteGame.from_dict(game_id, snapshot.to_dict() or {})

        return Subscription(_game_ref(db, game_id), to_game, skip_none=False)

    @staticmethod
    def subscribe_to_rounds(
        db: Client, game_id: str
    ) -> Subscription[tuple[RemoteRound, ...]]:
        """Stream every round of the game, oldest first."""
        query = (
            _game_ref(db, game_id)
            .collection(ROUNDS_SUBCOLLECTION)
            .order_by("roundNumber")
        )

        def to_rounds(snapshots: list[Any]) -> tuple[RemoteRound, ...]:
            rounds = [
                RemoteRound.from_dict(snap.id, snap.to_dict() or {})
                for snap in snapshots
                if snap.exists
            ]
            return tuple(sorted(rounds, key=lambda r: r.round_number))

        return Subscription(query, to_rounds)

    @staticmethod
    def subscribe_to_video(
        db: Client, video_id: str
    ) -> Subscription[Optional[RemoteVideo]]:
        """Stream a video's upload status."""
        video_ref = db.collection(VIDEOS_COLLECTION).document(video_id)

        def to_video(snapshots: list[Any]) -> Optional[RemoteVideo]:
            snapshot = first_snapshot(snapshots)
            if snapshot is None:
                return None
            return RemoteVideo.from_dict(video_id, snapshot.to_dict() or {})

        return Subscription(video_ref, to_video, skip_none=False)
