"""Decorators for authenticating API requests."""

from __future__ import annotations

from functools import wraps
from typing import cast

from firebase_admin import auth, firestore
from flask import current_app, g, request

from skatehubba.core.constants import DEFAULT_PLAYER_NAME, USERS_COLLECTION
from skatehubba.core.types import UserSession
from skatehubba.errors import (
    AuthenticationError,
    PermissionDeniedError,
    TransientInfrastructureError,
)


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Missing bearer token.")
    return token.strip()


def load_user() -> UserSession:
    """Verify the request's Firebase ID token and load the caller's profile."""
    token = _bearer_token()
    try:
        decoded = auth.verify_id_token(token, check_revoked=True)
    except auth.CertificateFetchError as e:
        current_app.logger.error(f"Could not fetch token certificates: {e}")
        raise TransientInfrastructureError("Authentication is unavailable.") from e
    except (auth.InvalidIdTokenError, auth.UserDisabledError, ValueError) as e:
        current_app.logger.warning(f"Rejected ID token: {e}")
        raise AuthenticationError("Invalid or expired token.") from e

    uid = decoded["uid"]
    db = firestore.client()
    user_doc = db.collection(USERS_COLLECTION).document(uid).get()
    profile = (user_doc.to_dict() or {}) if user_doc.exists else {}

    return cast(
        UserSession,
        {
            "uid": uid,
            "name": profile.get("displayName")
            or decoded.get("name")
            or DEFAULT_PLAYER_NAME,
            "picture": profile.get("photoURL") or decoded.get("picture"),
            "fcmToken": profile.get("fcmToken"),
            "isAdmin": bool(profile.get("isAdmin", False)),
        },
    )


def login_required(f=None, admin_required=False):
    """Reject the request unless it carries a valid Firebase ID token.

    The verified user is stored in ``g.user``.

    Usage:
    @login_required
    def protected_view():
        ...

    @login_required(admin_required=True)
    def admin_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            g.user = load_user()
            if admin_required and not g.user.get("isAdmin"):
                raise PermissionDeniedError("Admin access required.")
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
