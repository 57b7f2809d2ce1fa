"""Turn state machine for in-person S.K.A.T.E. matches."""

from __future__ import annotations

import datetime
from dataclasses import replace
from typing import Any, Optional

from skatehubba.errors import (
    IllegalTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from skatehubba.game.base import GameVariant
from skatehubba.game.rules import AttemptOutcome, score_attempt, score_setter_bail

from .models import Match, MatchAction, MatchPhase, MatchStatus, Trick


class TurnStateMachine(GameVariant[Match]):
    """SET -> LAND/BAIL -> SET ... until someone spells S.K.A.T.E.

    ``turn_player_id`` is always the setter. During DEFENDER_ATTEMPTING the
    defender acts without owning the turn slot.
    """

    name = "in_person"

    def phase(self, state: Match) -> str:
        return state.state.phase.value

    def is_terminal(self, state: Match) -> bool:
        return state.state.status.is_terminal

    def transition(  # type: ignore[override]
        self,
        state: Match,
        actor: str,
        action: MatchAction | str,
        trick_name: Optional[str] = None,
        trick_description: Optional[str] = None,
        now: Any = None,
    ) -> Match:
        """Apply one action and return the new match."""
        try:
            action = MatchAction(action)
        except ValueError as e:
            raise ValidationError(f"Unknown action: {action}") from e

        if not state.has_player(actor):
            raise PermissionDeniedError("You are not in this game.")
        if state.state.status != MatchStatus.ACTIVE:
            raise IllegalTransitionError("Game is not active.")

        if action == MatchAction.FORFEIT:
            return self._forfeit(state, actor)
        if action == MatchAction.SET:
            return self._set(state, actor, trick_name, trick_description, now)

        if state.state.phase != MatchPhase.DEFENDER_ATTEMPTING:
            raise IllegalTransitionError("Not in defending phase.")

        setter = state.state.turn_player_id
        defender = state.opponent_of(setter)
        if actor == setter:
            if action != MatchAction.BAIL:
                raise IllegalTransitionError("The defender must attempt, not the setter.")
            outcome = score_setter_bail(setter, defender, state.letters())
            return self._apply(state, outcome)
        outcome = score_attempt(
            setter,
            defender,
            state.letters(),
            landed=action == MatchAction.LAND,
            swap_on_land=self.swap_on_land,
        )
        return self._apply(state, outcome)

    def _set(
        self,
        match: Match,
        actor: str,
        trick_name: Optional[str],
        trick_description: Optional[str],
        now: Any,
    ) -> Match:
        if match.state.phase != MatchPhase.SETTER_RECORDING:
            raise IllegalTransitionError("Not in setting phase.")
        if match.state.turn_player_id != actor:
            raise IllegalTransitionError("Not your turn to set.")
        name = (trick_name or "").strip()
        if not name:
            raise ValidationError("Trick name required.")

        trick = Trick(
            name=name,
            setter_id=actor,
            set_at=now or datetime.datetime.now(datetime.timezone.utc),
            description=(trick_description or "").strip() or None,
        )
        return match.with_state(
            phase=MatchPhase.DEFENDER_ATTEMPTING, current_trick=trick
        )

    def _apply(self, match: Match, outcome: AttemptOutcome) -> Match:
        p1, p2 = match.players
        letter_changes = {
            "p1_letters": outcome.letters[p1],
            "p2_letters": outcome.letters[p2],
            "current_trick": None,
        }

        if outcome.is_over:
            finished = match.with_state(
                status=MatchStatus.COMPLETED,
                phase=MatchPhase.VERIFICATION,
                **letter_changes,
            )
            return replace(finished, winner_id=outcome.winner)

        return match.with_state(
            turn_player_id=outcome.setter,
            phase=MatchPhase.SETTER_RECORDING,
            round_number=match.state.round_number + 1,
            **letter_changes,
        )

    def _forfeit(self, match: Match, actor: str) -> Match:
        forfeited = match.with_state(status=MatchStatus.CANCELLED, current_trick=None)
        return replace(forfeited, winner_id=match.opponent_of(actor))
