"""Tests for the transaction runner."""

from __future__ import annotations

import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from google.api_core import exceptions as gcp_exceptions

from skatehubba.core.transactions import run_transaction
from skatehubba.errors import (
    ConflictError,
    NotFoundError,
    TransientInfrastructureError,
)


def _raising(error: Exception) -> Any:
    def decorator(func: Any) -> Any:
        def wrapper(transaction: Any, *args: Any, **kwargs: Any) -> Any:
            raise error

        return wrapper

    return decorator


class RunTransactionTestCase(unittest.TestCase):
    """Errors from Firestore map onto application errors."""

    def setUp(self) -> None:
        self.db = MagicMock()

    def test_returns_function_result(self) -> None:
        def work(transaction: Any, value: int, scale: int = 1) -> int:
            return value * scale

        with patch(
            "skatehubba.core.transactions.firestore.transactional",
            side_effect=lambda func: func,
        ):
            self.assertEqual(run_transaction(self.db, work, 3, scale=2), 6)
        self.db.transaction.assert_called_once_with()

    def test_contention_becomes_conflict(self) -> None:
        for error in (gcp_exceptions.Aborted("busy"), gcp_exceptions.Conflict("busy")):
            with self.subTest(error=type(error).__name__):
                with patch(
                    "skatehubba.core.transactions.firestore.transactional",
                    side_effect=_raising(error),
                ):
                    with self.assertRaises(ConflictError) as ctx:
                        run_transaction(self.db, lambda transaction: None)
                self.assertEqual(ctx.exception.status_code, 409)

    def test_outage_becomes_transient(self) -> None:
        for error in (
            gcp_exceptions.ServiceUnavailable("down"),
            gcp_exceptions.DeadlineExceeded("slow"),
        ):
            with self.subTest(error=type(error).__name__):
                with patch(
                    "skatehubba.core.transactions.firestore.transactional",
                    side_effect=_raising(error),
                ):
                    with self.assertRaises(TransientInfrastructureError) as ctx:
                        run_transaction(self.db, lambda transaction: None)
                self.assertEqual(ctx.exception.status_code, 503)

    def test_app_errors_pass_through(self) -> None:
        with patch(
            "skatehubba.core.transactions.firestore.transactional",
            side_effect=_raising(NotFoundError("gone")),
        ):
            with self.assertRaises(NotFoundError):
                run_transaction(self.db, lambda transaction: None)


if __name__ == "__main__":
    unittest.main()
