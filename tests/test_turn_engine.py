"""Tests for the in-person turn state machine."""

from __future__ import annotations

import unittest
from dataclasses import replace

from skatehubba.errors import (
    IllegalTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from skatehubba.match.engine import TurnStateMachine
from skatehubba.match.models import (
    Match,
    MatchAction,
    MatchPhase,
    MatchState,
    MatchStatus,
)

A = "skater_a"
B = "skater_b"


def new_match(turn: str = A, **state: object) -> Match:
    return Match(
        id="m1",
        players=(A, B),
        state=MatchState(status=MatchStatus.ACTIVE, turn_player_id=turn, **state),
    )


class TurnStateMachineTestCase(unittest.TestCase):
    """Tests for SET, LAND, BAIL and FORFEIT."""

    def setUp(self) -> None:
        self.engine = TurnStateMachine()

    def _set(self, match: Match, actor: str = A, name: str = "kickflip") -> Match:
        return self.engine.transition(match, actor, MatchAction.SET, trick_name=name)

    def test_example_game_to_five_bails(self) -> None:
        """A sets, B bails five times, A wins on the fifth letter."""
        match = new_match()
        for expected in range(1, 6):
            match = self._set(match)
            self.assertEqual(match.state.phase, MatchPhase.DEFENDER_ATTEMPTING)
            self.assertEqual(match.state.turn_player_id, A)

            match = self.engine.transition(match, B, MatchAction.BAIL)
            self.assertEqual(match.state.p2_letters, expected)
            self.assertEqual(match.state.turn_player_id, A)
            self.assertIsNone(match.state.current_trick)
            if expected < 5:
                self.assertEqual(match.state.status, MatchStatus.ACTIVE)
                self.assertEqual(match.state.phase, MatchPhase.SETTER_RECORDING)

        self.assertEqual(match.state.status, MatchStatus.COMPLETED)
        self.assertEqual(match.state.phase, MatchPhase.VERIFICATION)
        self.assertEqual(match.winner_id, A)
        self.assertEqual(match.state.p1_letters, 0)
        self.assertTrue(self.engine.is_terminal(match))

    def test_letters_never_decrease_or_exceed_five(self) -> None:
        """Letter counts only grow and stop at five."""
        match = new_match()
        previous = 0
        while match.state.status == MatchStatus.ACTIVE:
            match = self.engine.transition(self._set(match), B, MatchAction.BAIL)
            self.assertGreaterEqual(match.state.p2_letters, previous)
            self.assertLessEqual(match.state.p2_letters, 5)
            previous = match.state.p2_letters

    def test_no_active_state_with_five_letters(self) -> None:
        """Reaching five letters and completing happen together."""
        match = self._set(new_match(p2_letters=4))
        match = self.engine.transition(match, B, MatchAction.BAIL)
        self.assertEqual(match.state.p2_letters, 5)
        self.assertEqual(match.state.status, MatchStatus.COMPLETED)

    def test_set_records_trick(self) -> None:
        """SET stores the trick and hands the attempt to the defender."""
        match = self.engine.transition(
            new_match(),
            A,
            MatchAction.SET,
            trick_name="  heelflip ",
            trick_description="off the ledge",
            now="2024-01-01T00:00:00Z",
        )
        trick = match.state.current_trick
        assert trick is not None
        self.assertEqual(trick.name, "heelflip")
        self.assertEqual(trick.description, "off the ledge")
        self.assertEqual(trick.setter_id, A)
        self.assertEqual(trick.set_at, "2024-01-01T00:00:00Z")

    def test_set_rejected_out_of_turn_without_changes(self) -> None:
        """Illegal SETs raise and leave the match as it was."""
        match = new_match()
        with self.assertRaises(IllegalTransitionError):
            self._set(match, actor=B)
        attempting = self._set(match)
        for _ in range(3):
            with self.assertRaises(IllegalTransitionError):
                self._set(attempting)
        self.assertEqual(attempting.state.phase, MatchPhase.DEFENDER_ATTEMPTING)

    def test_set_requires_trick_name(self) -> None:
        """Blank trick names are validation errors."""
        with self.assertRaises(ValidationError):
            self._set(new_match(), name="   ")

    def test_land_and_bail_need_an_attempt_in_progress(self) -> None:
        """LAND and BAIL are rejected while the setter is recording."""
        match = new_match()
        for action in (MatchAction.LAND, MatchAction.BAIL):
            with self.assertRaises(IllegalTransitionError):
                self.engine.transition(match, B, action)

    def test_land_keeps_setter_and_counts_round(self) -> None:
        """A landed attempt keeps the setter by default."""
        match = self.engine.transition(self._set(new_match()), B, MatchAction.LAND)
        self.assertEqual(match.state.turn_player_id, A)
        self.assertEqual(match.state.phase, MatchPhase.SETTER_RECORDING)
        self.assertEqual(match.state.round_number, 2)
        self.assertEqual((match.state.p1_letters, match.state.p2_letters), (0, 0))

    def test_land_swaps_turn_when_configured(self) -> None:
        """The role swap house rule passes the set after a make."""
        engine = TurnStateMachine(swap_on_land=True)
        match = engine.transition(new_match(), A, MatchAction.SET, trick_name="kickflip")
        match = engine.transition(match, B, MatchAction.LAND)
        self.assertEqual(match.state.turn_player_id, B)

    def test_setter_cannot_land_own_trick(self) -> None:
        """Only the defender attempts."""
        with self.assertRaises(IllegalTransitionError):
            self.engine.transition(self._set(new_match()), A, MatchAction.LAND)

    def test_setter_bail_takes_letter_and_passes_turn(self) -> None:
        """A setter who bails their own trick takes the letter and the roles swap."""
        match = self.engine.transition(self._set(new_match()), A, MatchAction.BAIL)
        self.assertEqual((match.state.p1_letters, match.state.p2_letters), (1, 0))
        self.assertEqual(match.state.turn_player_id, B)
        self.assertEqual(match.state.phase, MatchPhase.SETTER_RECORDING)
        self.assertEqual(match.state.round_number, 2)
        self.assertIsNone(match.state.current_trick)
        self.assertEqual(match.state.status, MatchStatus.ACTIVE)

    def test_setter_bail_on_fifth_letter_ends_match(self) -> None:
        """The setter spelling S.K.A.T.E. on their own trick loses to the defender."""
        match = self._set(new_match(p1_letters=4))
        match = self.engine.transition(match, A, MatchAction.BAIL)
        self.assertEqual(match.state.status, MatchStatus.COMPLETED)
        self.assertEqual(match.state.p1_letters, 5)
        self.assertEqual(match.winner_id, B)
        self.assertTrue(self.engine.is_terminal(match))

    def test_forfeit_in_any_phase(self) -> None:
        """FORFEIT cancels and names the opponent winner."""
        for match in (new_match(), self._set(new_match())):
            for actor, winner in ((A, B), (B, A)):
                result = self.engine.transition(match, actor, MatchAction.FORFEIT)
                self.assertEqual(result.state.status, MatchStatus.CANCELLED)
                self.assertEqual(result.winner_id, winner)
                self.assertIsNone(result.state.current_trick)

    def test_inactive_match_rejects_everything(self) -> None:
        """Finished and pending matches accept no actions, forfeit included."""
        for status in (
            MatchStatus.COMPLETED,
            MatchStatus.CANCELLED,
            MatchStatus.PENDING_ACCEPT,
        ):
            match = new_match()
            match = replace(match, state=replace(match.state, status=status))
            for action in MatchAction:
                with self.assertRaises(IllegalTransitionError):
                    self.engine.transition(match, A, action, trick_name="kickflip")

    def test_outsider_is_denied(self) -> None:
        """Only the two players may act."""
        with self.assertRaises(PermissionDeniedError):
            self.engine.transition(new_match(), "stranger", MatchAction.FORFEIT)

    def test_unknown_action(self) -> None:
        """Unknown actions are validation errors."""
        with self.assertRaises(ValidationError):
            self.engine.transition(new_match(), A, "OLLIE")

    def test_phase_reports_current_phase(self) -> None:
        """The shared variant interface exposes the phase."""
        self.assertEqual(self.engine.phase(new_match()), "SETTER_RECORDING")
        self.assertFalse(self.engine.is_terminal(new_match()))


if __name__ == "__main__":
    unittest.main()
