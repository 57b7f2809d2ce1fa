"""Core module for the skatehubba application."""

from .subscriptions import Subscription
from .transactions import run_transaction
from .types import UserSession

__all__ = ["Subscription", "UserSession", "run_transaction"]
