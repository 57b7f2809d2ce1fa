"""The remote S.K.A.T.E. blueprint."""

from flask import Blueprint

bp = Blueprint("remote", __name__, url_prefix="/api/remote-skate")

from . import routes  # noqa: E402

__all__ = ["routes"]
