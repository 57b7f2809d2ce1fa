"""Tests for snapshot subscriptions."""

from __future__ import annotations

import queue
import unittest

from skatehubba.core.subscriptions import Subscription, first_snapshot
from tests.mock_utils import FakeWatchTarget, snapshot


def _name(snapshots):
    snap = first_snapshot(snapshots)
    return snap.to_dict()["name"] if snap else None


class SubscriptionTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.target = FakeWatchTarget()

    def test_delivers_transformed_values_in_order(self) -> None:
        subscription = Subscription(self.target, _name)
        self.target.push(snapshot("d", {"name": "first"}))
        self.target.push(snapshot("d", {"name": "second"}))
        self.assertEqual(subscription.get(timeout=1), "first")
        self.assertEqual(next(subscription), "second")

    def test_skip_none(self) -> None:
        """None results are dropped unless skip_none is off."""
        skipping = Subscription(self.target, _name)
        self.target.push(snapshot("d", None))
        with self.assertRaises(queue.Empty):
            skipping.get(timeout=0.01)

        other = FakeWatchTarget()
        keeping = Subscription(other, _name, skip_none=False)
        other.push(snapshot("d", None))
        self.assertIsNone(keeping.get(timeout=1))

    def test_unsubscribe_ends_iteration(self) -> None:
        subscription = Subscription(self.target, _name)
        self.target.push(snapshot("d", {"name": "only"}))
        subscription.unsubscribe()
        subscription.unsubscribe()

        self.assertTrue(subscription.closed)
        self.target.watch.unsubscribe.assert_called_once()
        self.assertEqual(list(subscription), ["only"])

        self.target.push(snapshot("d", {"name": "late"}))
        with self.assertRaises(StopIteration):
            subscription.get(timeout=1)

    def test_transform_errors_surface_to_consumer(self) -> None:
        def broken(snapshots):
            raise KeyError("name")

        subscription = Subscription(self.target, broken)
        self.target.push(snapshot("d", {}))
        with self.assertRaises(KeyError):
            subscription.get(timeout=1)

    def test_first_snapshot(self) -> None:
        self.assertIsNone(first_snapshot([]))
        self.assertIsNone(first_snapshot([snapshot("d", None)]))
        live = snapshot("d", {"name": "x"})
        self.assertIs(first_snapshot([live]), live)


if __name__ == "__main__":
    unittest.main()
