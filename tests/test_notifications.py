"""Tests for push notifications."""

from __future__ import annotations

import unittest
from unittest.mock import patch

from firebase_admin import exceptions as firebase_exceptions

from skatehubba.notifications import NotificationService
from tests.mock_utils import MockFirestoreBuilder


class NotificationServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MockFirestoreBuilder.build_db()
        self.db.collection("users").document("u1").set({"fcmToken": "tok-1"})
        self.db.collection("users").document("u2").set({"displayName": "No Phone"})
        patcher = patch("skatehubba.notifications.services.messaging.send")
        self.send = patcher.start()
        self.send.return_value = "projects/p/messages/1"
        self.addCleanup(patcher.stop)

    def test_get_push_token(self) -> None:
        self.assertEqual(NotificationService.get_push_token(self.db, "u1"), "tok-1")
        self.assertIsNone(NotificationService.get_push_token(self.db, "u2"))
        self.assertIsNone(NotificationService.get_push_token(self.db, "ghost"))

    def test_quick_match_message(self) -> None:
        NotificationService.send_quick_match("tok-1", "Alice", "qm-123")
        message = self.send.call_args.args[0]
        self.assertEqual(message.token, "tok-1")
        self.assertEqual(message.data, {"type": "quick_match", "challengeId": "qm-123"})
        self.assertEqual(message.notification.body, "Alice wants to play S.K.A.T.E.")

    def test_notify_turn(self) -> None:
        self.assertTrue(NotificationService.notify_turn(self.db, "u1", "g1"))
        message = self.send.call_args.args[0]
        self.assertEqual(message.data, {"type": "your_turn", "gameId": "g1"})

    def test_notify_turn_without_token_or_uid(self) -> None:
        self.assertFalse(NotificationService.notify_turn(self.db, "u2", "g1"))
        self.assertFalse(NotificationService.notify_turn(self.db, None, "g1"))
        self.send.assert_not_called()

    def test_notify_turn_swallows_send_failures(self) -> None:
        self.send.side_effect = firebase_exceptions.UnavailableError("fcm down")
        with self.assertLogs("skatehubba.notifications.services", level="WARNING"):
            self.assertFalse(NotificationService.notify_turn(self.db, "u1", "g1"))


if __name__ == "__main__":
    unittest.main()
