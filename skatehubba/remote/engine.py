"""State machine for the remote, video-verified S.K.A.T.E. variant.

A round moves ``awaiting_set -> awaiting_reply -> awaiting_confirmation`` as
the offense and defense upload their clips. The offense then claims a result
and the defense confirms it. Agreement resolves the round and scores it with
the same rules as the in-person game; disagreement parks the round in
``disputed`` until an admin adjudicates.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from skatehubba.errors import (
    ConflictError,
    IllegalTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from skatehubba.game.base import GameVariant
from skatehubba.game.rules import letters_for, score_attempt

from .models import (
    GameStatus,
    RemoteAction,
    RemoteGame,
    RemoteRound,
    RemoteTransition,
    RoundResult,
    RoundStatus,
    VideoRole,
)


def _require_step(game_round: RemoteRound, expected: RoundStatus) -> None:
    if game_round.status == expected:
        return
    if game_round.status.step > expected.step:
        raise ConflictError("This step of the round is already done.")
    raise IllegalTransitionError(
        f"Round is {game_round.status.value}, not {expected.value}."
    )


def _parse_result(result: RoundResult | str | None) -> RoundResult:
    try:
        return RoundResult(result)
    except ValueError as e:
        raise ValidationError("Result must be 'landed' or 'missed'.") from e


class RemoteStateMachine(GameVariant[RemoteGame]):
    """Pure transitions over a remote game and its current round."""

    name = "remote"

    def phase(self, state: RemoteGame) -> str:
        return state.status.value

    def is_terminal(self, state: RemoteGame) -> bool:
        return state.status.is_terminal

    @staticmethod
    def new_game(game_id: str, uid: str) -> RemoteGame:
        """A waiting game with only player A."""
        return RemoteGame(
            id=game_id,
            created_by_uid=uid,
            player_a_uid=uid,
            letters={uid: ""},
            status=GameStatus.WAITING,
            current_turn_uid=uid,
        )

    def transition(  # type: ignore[override]  # noqa: PLR0911
        self,
        state: RemoteGame,
        actor: str,
        action: RemoteAction | str,
        game_round: Optional[RemoteRound] = None,
        result: RoundResult | str | None = None,
        new_round_id: Optional[str] = None,
        video_id: Optional[str] = None,
    ) -> RemoteTransition:
        """Apply one action.

        ``new_round_id`` names the round created by a join or by a resolved
        round that does not end the game. ``video_id`` attaches a clip on
        set/reply completion.
        """
        try:
            action = RemoteAction(action)
        except ValueError as e:
            raise ValidationError(f"Unknown action: {action}") from e

        if action == RemoteAction.JOIN:
            return self._join(state, actor, new_round_id)
        if action == RemoteAction.CANCEL:
            return self._cancel(state, actor)

        if action == RemoteAction.ADJUDICATE:
            return self._adjudicate(
                state,
                self._current_round(state, game_round),
                actor,
                _parse_result(result),
                new_round_id,
            )

        if not state.has_player(actor):
            raise PermissionDeniedError("You are not in this game.")
        game_round = self._current_round(state, game_round)
        if action == RemoteAction.SET_COMPLETE:
            return self._set_complete(state, game_round, actor, video_id)
        if action == RemoteAction.REPLY_COMPLETE:
            return self._reply_complete(state, game_round, actor, video_id)
        if action == RemoteAction.RESOLVE:
            return self._resolve(state, game_round, actor, _parse_result(result))
        return self._confirm(
            state, game_round, actor, _parse_result(result), new_round_id
        )

    def check_upload(
        self, game: RemoteGame, game_round: RemoteRound, uid: str, role: VideoRole | str
    ) -> None:
        """Raise unless ``uid`` may upload a ``role`` clip for this round now."""
        role = VideoRole(role)
        if not game.has_player(uid):
            raise PermissionDeniedError("You are not in this game.")
        game_round = self._current_round(game, game_round)
        if game_round.role_of(uid) != role:
            raise IllegalTransitionError(f"You can't upload the {role.value} video.")
        expected = (
            RoundStatus.AWAITING_SET if role == VideoRole.SET else RoundStatus.AWAITING_REPLY
        )
        _require_step(game_round, expected)

    @staticmethod
    def _current_round(
        game: RemoteGame, game_round: Optional[RemoteRound]
    ) -> RemoteRound:
        if game_round is None:
            raise NotFoundError("Round not found.")
        if game.status != GameStatus.ACTIVE:
            raise IllegalTransitionError("Game is not active.")
        if game_round.id != game.current_round_id:
            raise ConflictError("This round is already over.")
        return game_round

    def _join(
        self, game: RemoteGame, uid: str, round_id: Optional[str]
    ) -> RemoteTransition:
        if game.player_a_uid == uid:
            raise IllegalTransitionError("You can't join your own game.")
        if game.status != GameStatus.WAITING or game.player_b_uid:
            raise ConflictError("This game is no longer open.")
        if not round_id:
            raise ValueError("Joining needs an id for the first round.")

        first_round = RemoteRound(
            id=round_id,
            round_number=1,
            offense_uid=game.player_a_uid,
            defense_uid=uid,
        )
        joined = replace(
            game,
            player_b_uid=uid,
            letters={**game.letters, game.player_a_uid: "", uid: ""},
            status=GameStatus.ACTIVE,
            current_turn_uid=game.player_a_uid,
            current_round_id=round_id,
            round_count=1,
        )
        return RemoteTransition(game=joined, next_round=first_round)

    def _cancel(self, game: RemoteGame, uid: str) -> RemoteTransition:
        if game.created_by_uid != uid:
            raise PermissionDeniedError("Only the creator can cancel this game.")
        if game.status != GameStatus.WAITING:
            return RemoteTransition(game=game)
        return RemoteTransition(game=replace(game, status=GameStatus.CANCELLED))

    def _set_complete(
        self,
        game: RemoteGame,
        game_round: RemoteRound,
        uid: str,
        video_id: Optional[str],
    ) -> RemoteTransition:
        if uid != game_round.offense_uid:
            raise IllegalTransitionError("Only the offense can complete the set.")
        _require_step(game_round, RoundStatus.AWAITING_SET)
        if not video_id:
            raise IllegalTransitionError("Upload the set video first.")
        updated_round = replace(
            game_round,
            status=RoundStatus.AWAITING_REPLY,
            set_video_id=video_id,
        )
        return RemoteTransition(
            game=replace(game, current_turn_uid=game_round.defense_uid),
            round=updated_round,
        )

    def _reply_complete(
        self,
        game: RemoteGame,
        game_round: RemoteRound,
        uid: str,
        video_id: Optional[str],
    ) -> RemoteTransition:
        if uid != game_round.defense_uid:
            raise IllegalTransitionError("Only the defense can complete the reply.")
        _require_step(game_round, RoundStatus.AWAITING_REPLY)
        if not video_id:
            raise IllegalTransitionError("Upload the reply video first.")
        updated_round = replace(
            game_round,
            status=RoundStatus.AWAITING_CONFIRMATION,
            reply_video_id=video_id,
        )
        return RemoteTransition(
            game=replace(game, current_turn_uid=game_round.offense_uid),
            round=updated_round,
        )

    def _resolve(
        self,
        game: RemoteGame,
        game_round: RemoteRound,
        uid: str,
        result: RoundResult,
    ) -> RemoteTransition:
        if uid != game_round.offense_uid:
            raise IllegalTransitionError("Only the offense can claim a result.")
        _require_step(game_round, RoundStatus.AWAITING_CONFIRMATION)
        if game_round.offense_claim is not None:
            raise ConflictError("A result was already claimed for this round.")
        if not (game_round.set_video_id and game_round.reply_video_id):
            raise IllegalTransitionError("Both videos must be uploaded first.")
        return RemoteTransition(
            game=game, round=replace(game_round, offense_claim=result)
        )

    def _confirm(
        self,
        game: RemoteGame,
        game_round: RemoteRound,
        uid: str,
        result: RoundResult,
        new_round_id: Optional[str],
    ) -> RemoteTransition:
        if uid != game_round.defense_uid:
            raise IllegalTransitionError("Only the defense can confirm a result.")
        _require_step(game_round, RoundStatus.AWAITING_CONFIRMATION)
        if game_round.offense_claim is None:
            raise IllegalTransitionError("The offense has not claimed a result yet.")

        claimed = replace(game_round, defense_claim=result)
        if result != game_round.offense_claim:
            return RemoteTransition(
                game=game,
                round=replace(claimed, status=RoundStatus.DISPUTED),
                disputed=True,
            )
        return self._settle(game, claimed, result, new_round_id)

    def _adjudicate(
        self,
        game: RemoteGame,
        game_round: RemoteRound,
        admin_uid: str,
        result: RoundResult,
        new_round_id: Optional[str],
    ) -> RemoteTransition:
        if game_round.status != RoundStatus.DISPUTED:
            raise ConflictError("This round is not disputed.")
        return self._settle(
            game, replace(game_round, adjudicated_by=admin_uid), result, new_round_id
        )

    def _settle(
        self,
        game: RemoteGame,
        game_round: RemoteRound,
        result: RoundResult,
        new_round_id: Optional[str],
    ) -> RemoteTransition:
        outcome = score_attempt(
            game_round.offense_uid,
            game_round.defense_uid,
            game.letter_counts(),
            landed=result == RoundResult.LANDED,
            swap_on_land=self.swap_on_land,
        )
        resolved = replace(game_round, status=RoundStatus.RESOLVED, result=result)
        letters = {uid: letters_for(count) for uid, count in outcome.letters.items()}

        if outcome.is_over:
            finished = replace(
                game,
                letters=letters,
                status=GameStatus.COMPLETE,
                winner_uid=outcome.winner,
                current_turn_uid=None,
            )
            return RemoteTransition(game=finished, round=resolved)

        if not new_round_id:
            raise ValueError("Continuing the game needs an id for the next round.")
        next_round = RemoteRound(
            id=new_round_id,
            round_number=game_round.round_number + 1,
            offense_uid=outcome.setter,
            defense_uid=outcome.defender,
        )
        continued = replace(
            game,
            letters=letters,
            current_turn_uid=outcome.setter,
            current_round_id=new_round_id,
            round_count=game.round_count + 1,
        )
        return RemoteTransition(game=continued, round=resolved, next_round=next_round)
