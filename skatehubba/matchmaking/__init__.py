"""The matchmaking blueprint."""

from flask import Blueprint

bp = Blueprint("matchmaking", __name__, url_prefix="/api/matchmaking")

from . import routes  # noqa: E402

__all__ = ["routes"]
