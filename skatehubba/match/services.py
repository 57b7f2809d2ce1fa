"""Service layer for in-person match data access and turn transitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from skatehubba.core.constants import MATCHES_COLLECTION
from skatehubba.core.subscriptions import Subscription, first_snapshot
from skatehubba.core.transactions import run_transaction
from skatehubba.errors import NotFoundError

from .engine import TurnStateMachine
from .models import Match, MatchAction

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


def _apply_action_transaction(  # noqa: PLR0913
    transaction: Transaction,
    match_ref: DocumentReference,
    engine: TurnStateMachine,
    user_id: str,
    action: MatchAction | str,
    trick_name: Optional[str],
    trick_description: Optional[str],
) -> Match:
    """Read, validate and write one action inside a transaction."""
    snapshot = cast("DocumentSnapshot", match_ref.get(transaction=transaction))
    if not snapshot.exists:
        raise NotFoundError("Game not found.")

    current = Match.from_dict(match_ref.id, snapshot.to_dict() or {})
    updated = engine.transition(
        current,
        user_id,
        action,
        trick_name=trick_name,
        trick_description=trick_description,
    )

    transaction.update(
        match_ref,
        {
            "state": updated.state.to_dict(),
            "winnerId": updated.winner_id,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        },
    )
    return updated


class MatchService:
    """Service class for in-person match operations."""

    @staticmethod
    def submit_action(  # noqa: PLR0913
        db: Client,
        user_id: str,
        match_id: str,
        action: MatchAction | str,
        trick_name: Optional[str] = None,
        trick_description: Optional[str] = None,
        swap_on_land: bool = False,
    ) -> Match:
        """Apply SET, LAND, BAIL or FORFEIT atomically."""
        match_ref = db.collection(MATCHES_COLLECTION).document(match_id)
        engine = TurnStateMachine(swap_on_land=swap_on_land)
        updated = run_transaction(
            db,
            _apply_action_transaction,
            match_ref,
            engine,
            user_id,
            action,
            trick_name,
            trick_description,
        )

        if updated.state.status.is_terminal:
            logger.info(
                f"Match {match_id} ended with status {updated.state.status.value}, "
                f"winner {updated.winner_id}"
            )
        return updated

    @staticmethod
    def get_match(db: Client, match_id: str) -> Match:
        """Fetch a single match by its ID."""
        snapshot = cast(
            "DocumentSnapshot", db.collection(MATCHES_COLLECTION).document(match_id).get()
        )
        if not snapshot.exists:
            raise NotFoundError("Game not found.")
        return Match.from_dict(match_id, snapshot.to_dict() or {})

    @staticmethod
    def subscribe_to_match(db: Client, match_id: str) -> Subscription[Optional[Match]]:
        """Stream the match on every change; yields None once it is deleted."""
        match_ref = db.collection(MATCHES_COLLECTION).document(match_id)

        def to_match(snapshots: list[Any]) -> Optional[Match]:
            snapshot = first_snapshot(snapshots)
            if snapshot is None:
                return None
            return Match.from_dict(match_id, snapshot.to_dict() or {})

        return Subscription(match_ref, to_match, skip_none=False)
