"""Core data types for the skatehubba application."""

from typing import Optional, TypedDict


class UserSession(TypedDict, total=False):
    """The caller identity resolved from a Firebase ID token."""

    uid: str
    name: str
    picture: Optional[str]
    fcmToken: Optional[str]
    isAdmin: bool
