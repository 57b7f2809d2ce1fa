"""Routes for the matchmaking blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify

from skatehubba.auth.decorators import login_required

from . import bp
from .forms import AcceptChallengeForm, ChallengeForm, QueueForm, QuickMatchForm
from .services import MatchmakingService


@bp.route("/queue", methods=["POST"])
@login_required
def join_queue() -> Any:
    """Pair with a waiting skater or wait in the quick-match queue."""
    form = QueueForm().validate_or_raise()
    db = firestore.client()
    result = MatchmakingService.find_quick_match(
        db,
        g.user,
        form.stance.data,
        scan_limit=current_app.config["SKATE_QUEUE_SCAN_LIMIT"],
    )
    return jsonify(
        {"success": True, "matchId": result.match_id, "isWaiting": result.is_waiting}
    )


@bp.route("/queue/<string:entry_id>/cancel", methods=["POST"])
@login_required
def cancel_queue(entry_id: str) -> Any:
    """Leave the quick-match queue."""
    db = firestore.client()
    removed = MatchmakingService.cancel_matchmaking(db, g.user["uid"], entry_id)
    return jsonify({"success": True, "removed": removed})


@bp.route("/quick-match", methods=["POST"])
@login_required
def quick_match() -> Any:
    """Send a quick-match challenge to a random skater."""
    form = QuickMatchForm().validate_or_raise()
    db = firestore.client()
    opponent = MatchmakingService.notify_random_opponent(
        db, g.user, form.gameId.data or None
    )
    current_app.logger.info(
        f"User {g.user['uid']} challenged {opponent.opponent_id} to a quick match"
    )
    return jsonify({"success": True, "match": opponent.to_dict()})


@bp.route("/challenges", methods=["POST"])
@login_required
def create_challenge() -> Any:
    """Challenge a specific skater."""
    form = ChallengeForm().validate_or_raise()
    db = firestore.client()
    match = MatchmakingService.create_challenge(
        db, g.user, form.opponentId.data.strip(), form.stance.data
    )
    return jsonify(
        {"success": True, "matchId": match.id, "state": match.state.to_dict()}
    ), 201


@bp.route("/challenges/<string:match_id>/accept", methods=["POST"])
@login_required
def accept_challenge(match_id: str) -> Any:
    """Accept a challenge; a coin flip picks the first setter."""
    form = AcceptChallengeForm().validate_or_raise()
    db = firestore.client()
    match = MatchmakingService.accept_challenge(
        db, g.user["uid"], match_id, form.stance.data or None
    )
    return jsonify({"success": True, "matchId": match.id, "state": match.state.to_dict()})


@bp.route("/challenges/<string:match_id>/decline", methods=["POST"])
@login_required
def decline_challenge(match_id: str) -> Any:
    """Decline a challenge, or withdraw one you sent."""
    db = firestore.client()
    match = MatchmakingService.decline_challenge(db, g.user["uid"], match_id)
    return jsonify({"success": True, "matchId": match.id, "state": match.state.to_dict()})
