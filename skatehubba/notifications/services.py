"""Push notifications over Firebase Cloud Messaging."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, cast

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging
from google.api_core import exceptions as gcp_exceptions

from skatehubba.core.constants import USERS_COLLECTION

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

YOUR_TURN = "your_turn"
QUICK_MATCH = "quick_match"

_MESSAGES = {
    YOUR_TURN: ("Your turn!", "Your opponent is waiting on you in S.K.A.T.E."),
    QUICK_MATCH: ("Quick match challenge", "{challenger} wants to play S.K.A.T.E."),
}


class NotificationService:
    """Sends FCM pushes to users' registered devices."""

    @staticmethod
    def get_push_token(db: Client, uid: str) -> Optional[str]:
        """Return the user's FCM registration token, if any."""
        snapshot = cast(
            "DocumentSnapshot", db.collection(USERS_COLLECTION).document(uid).get()
        )
        if not snapshot.exists:
            return None
        return (snapshot.to_dict() or {}).get("fcmToken") or None

    @staticmethod
    def send(token: str, kind: str, data: dict[str, str], **fmt: str) -> str:
        """Send one push and return the FCM message id.

        Raises:
            firebase_admin.exceptions.FirebaseError: if FCM rejects the send.
        """
        title, body = _MESSAGES[kind]
        message = messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body.format(**fmt)),
            data={"type": kind, **data},
        )
        return messaging.send(message)

    @staticmethod
    def send_quick_match(token: str, challenger_name: str, challenge_id: str) -> str:
        """Challenge a user to a quick match."""
        return NotificationService.send(
            token,
            QUICK_MATCH,
            {"challengeId": challenge_id},
            challenger=challenger_name,
        )

    @staticmethod
    def notify_turn(db: Client, uid: Optional[str], game_id: str) -> bool:
        """Tell a player it is their move. Failures are logged and swallowed."""
        if not uid:
            return False
        try:
            token = NotificationService.get_push_token(db, uid)
            if not token:
                return False
            NotificationService.send(token, YOUR_TURN, {"gameId": game_id})
            return True
        except (
            firebase_exceptions.FirebaseError,
            gcp_exceptions.GoogleAPICallError,
            ValueError,
        ) as e:
            logger.warning(f"Turn notification to {uid} for game {game_id} failed: {e}")
            return False
