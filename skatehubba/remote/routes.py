"""Routes for the remote S.K.A.T.E. blueprint."""

from __future__ import annotations

import os
from typing import Any

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import firestore, storage
from flask import current_app, g, jsonify
from google.api_core import exceptions as gcp_exceptions

from skatehubba.auth.decorators import login_required
from skatehubba.errors import AppError
from skatehubba.matchmaking.services import MatchmakingService
from skatehubba.notifications import NotificationService

from . import bp
from .forms import ResultForm, VideoUploadForm
from .models import GameStatus, RemoteGame
from .services import RemoteSkateService
from .uploads import VideoUploadService


def _notify_turn(db: Any, game: RemoteGame) -> None:
    """Best-effort push to whoever holds the turn now."""
    if game.status == GameStatus.ACTIVE:
        NotificationService.notify_turn(db, game.current_turn_uid, game.id)


def _game_body(game: RemoteGame) -> dict[str, Any]:
    return {
        "gameId": game.id,
        "status": game.status.value,
        "currentTurnUid": game.current_turn_uid,
        "currentRoundId": game.current_round_id,
        "letters": game.letters,
        "winnerUid": game.winner_uid,
    }


@bp.route("/create", methods=["POST"])
@login_required
def create_game() -> Any:
    """Open a waiting game."""
    db = firestore.client()
    game_id = RemoteSkateService.create_game(db, g.user["uid"])
    return jsonify({"success": True, "gameId": game_id}), 201


@bp.route("/find-or-create", methods=["POST"])
@login_required
def find_or_create() -> Any:
    """Join a waiting game, or open one and ping a random opponent."""
    db = firestore.client()
    result = RemoteSkateService.find_or_create(
        db,
        g.user["uid"],
        scan_limit=current_app.config["SKATE_QUEUE_SCAN_LIMIT"],
        swap_on_land=current_app.config["SKATE_ROLE_SWAP_ON_LAND"],
    )

    if result.matched:
        _notify_turn(db, RemoteSkateService.get_game(db, result.game_id))
    else:
        try:
            MatchmakingService.notify_random_opponent(db, g.user, result.game_id)
        except (
            AppError,
            firebase_exceptions.FirebaseError,
            gcp_exceptions.GoogleAPICallError,
            ValueError,
        ) as e:
            current_app.logger.warning(
                f"Could not notify an opponent for game {result.game_id}: {e}"
            )

    return jsonify(
        {
            "success": True,
            "gameId": result.game_id,
            "matched": result.matched,
            "roundId": result.round_id,
        }
    )


@bp.route("/<string:game_id>/join", methods=["POST"])
@login_required
def join_game(game_id: str) -> Any:
    """Join a waiting game as player B."""
    db = firestore.client()
    round_id = RemoteSkateService.join_game(db, game_id, g.user["uid"])
    _notify_turn(db, RemoteSkateService.get_game(db, game_id))
    return jsonify({"success": True, "gameId": game_id, "roundId": round_id})


@bp.route("/<string:game_id>/cancel", methods=["POST"])
@login_required
def cancel_game(game_id: str) -> Any:
    """Cancel a game nobody has joined yet."""
    db = firestore.client()
    game = RemoteSkateService.cancel_game(db, game_id, g.user["uid"])
    return jsonify({"success": True, **_game_body(game)})


@bp.route("/<string:game_id>/rounds/<string:round_id>/resolve", methods=["POST"])
@login_required
def resolve_round(game_id: str, round_id: str) -> Any:
    """Offense claims whether the defense landed the trick."""
    form = ResultForm().validate_or_raise()
    db = firestore.client()
    game_round = RemoteSkateService.resolve_round(
        db, game_id, round_id, g.user["uid"], form.result.data
    )
    return jsonify(
        {
            "success": True,
            "roundId": game_round.id,
            "status": game_round.status.value,
            "offenseClaim": game_round.offense_claim.value
            if game_round.offense_claim
            else None,
        }
    )


@bp.route("/<string:game_id>/rounds/<string:round_id>/confirm", methods=["POST"])
@login_required
def confirm_round(game_id: str, round_id: str) -> Any:
    """Defense agrees or disagrees with the offense's claim."""
    form = ResultForm().validate_or_raise()
    db = firestore.client()
    outcome = RemoteSkateService.confirm_round(
        db,
        game_id,
        round_id,
        g.user["uid"],
        form.result.data,
        swap_on_land=current_app.config["SKATE_ROLE_SWAP_ON_LAND"],
    )
    body: dict[str, Any] = {
        "success": True,
        "disputed": outcome.disputed,
        "result": outcome.result.value if outcome.result else None,
    }
    if outcome.game is not None:
        if not outcome.disputed:
            _notify_turn(db, outcome.game)
        body.update(_game_body(outcome.game))
    return jsonify(body)


@bp.route("/<string:game_id>/rounds/<string:round_id>/adjudicate", methods=["POST"])
@login_required(admin_required=True)
def adjudicate(game_id: str, round_id: str) -> Any:
    """Settle a disputed round (admins only)."""
    form = ResultForm().validate_or_raise()
    db = firestore.client()
    game = RemoteSkateService.adjudicate_dispute(
        db,
        game_id,
        round_id,
        g.user["uid"],
        form.result.data,
        swap_on_land=current_app.config["SKATE_ROLE_SWAP_ON_LAND"],
    )
    current_app.logger.info(
        f"Dispute on round {round_id} of {game_id} settled as {form.result.data}"
    )
    _notify_turn(db, game)
    return jsonify({"success": True, "result": form.result.data, **_game_body(game)})


@bp.route("/<string:game_id>/rounds/<string:round_id>/videos", methods=["POST"])
@login_required
def upload_video(game_id: str, round_id: str) -> Any:
    """Upload the set or reply clip for a round."""
    form = VideoUploadForm().validate_or_raise()
    video = form.file.data
    video.stream.seek(0, os.SEEK_END)
    size_bytes = video.stream.tell()
    video.stream.seek(0)

    db = firestore.client()
    video_id = VideoUploadService.upload_video(
        db,
        storage.bucket(),
        g.user["uid"],
        game_id,
        round_id,
        form.role.data,
        video.stream,
        video.mimetype,
        size_bytes,
        form.durationMs.data,
        chunk_size=current_app.config["SKATE_UPLOAD_CHUNK_SIZE"],
        max_bytes=current_app.config["SKATE_MAX_VIDEO_BYTES"],
        max_duration_ms=current_app.config["SKATE_MAX_VIDEO_DURATION_MS"],
    )
    _notify_turn(db, RemoteSkateService.get_game(db, game_id))
    return jsonify({"success": True, "videoId": video_id}), 201
