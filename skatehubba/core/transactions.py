"""Firestore transaction runner with application error mapping."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions

from skatehubba.errors import ConflictError, TransientInfrastructureError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS = (
    gcp_exceptions.ServiceUnavailable,
    gcp_exceptions.DeadlineExceeded,
    gcp_exceptions.InternalServerError,
)
CONTENTION_ERRORS = (gcp_exceptions.Aborted, gcp_exceptions.Conflict)


def run_transaction(
    db: Client, func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run ``func(transaction, *args, **kwargs)`` inside a Firestore transaction.

    The function must perform all reads through the transaction before any
    write. Firestore retries the whole function on contention; once those
    retries are exhausted the failure surfaces as a ConflictError. Errors
    raised by ``func`` itself abort the transaction with no writes applied.
    """
    transaction: Transaction = db.transaction()
    try:
        return firestore.transactional(func)(transaction, *args, **kwargs)
    except CONTENTION_ERRORS as e:
        logger.warning(f"Transaction {func.__name__} gave up after contention: {e}")
        raise ConflictError(
            "The game was updated by someone else. Please refresh and retry."
        ) from e
    except TRANSIENT_ERRORS as e:
        logger.error(f"Transaction {func.__name__} failed: {e}")
        raise TransientInfrastructureError() from e
