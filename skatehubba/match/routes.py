"""Routes for the match blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify

from skatehubba.auth.decorators import login_required

from . import bp
from .forms import ActionForm
from .services import MatchService


@bp.route("/<string:match_id>/actions", methods=["POST"])
@login_required
def submit_action(match_id: str) -> Any:
    """Apply one turn action to an in-person match."""
    form = ActionForm().validate_or_raise()
    db = firestore.client()
    match = MatchService.submit_action(
        db,
        g.user["uid"],
        match_id,
        form.action.data,
        trick_name=(form.trickName.data or "").strip() or None,
        trick_description=(form.trickDescription.data or "").strip() or None,
        swap_on_land=current_app.config["SKATE_ROLE_SWAP_ON_LAND"],
    )
    current_app.logger.info(
        f"User {g.user['uid']} played {form.action.data} in match {match_id}"
    )
    return jsonify(
        {
            "success": True,
            "matchId": match.id,
            "state": match.state.to_dict(),
            "winnerId": match.winner_id,
        }
    )
