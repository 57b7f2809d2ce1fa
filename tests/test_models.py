"""Tests for document models."""

from __future__ import annotations

import datetime
import unittest

from skatehubba.match.models import (
    Match,
    MatchPhase,
    MatchState,
    MatchStatus,
    PlayerData,
    Stance,
    Trick,
)
from skatehubba.matchmaking.models import QueueEntry
from skatehubba.remote.models import (
    GameStatus,
    RemoteGame,
    RemoteRound,
    RemoteVideo,
    RoundResult,
    RoundStatus,
    VideoRole,
    VideoStatus,
)

NOW = datetime.datetime(2024, 5, 1, 12, 30, tzinfo=datetime.timezone.utc)


class MatchModelTestCase(unittest.TestCase):
    """Tests for the in-person match document."""

    def test_round_trip(self) -> None:
        """A match survives to_dict/from_dict field for field."""
        match = Match(
            id="m1",
            players=("a", "b"),
            state=MatchState(
                status=MatchStatus.ACTIVE,
                turn_player_id="a",
                phase=MatchPhase.DEFENDER_ATTEMPTING,
                p1_letters=1,
                p2_letters=3,
                current_trick=Trick("tre flip", "a", NOW, "down the stairs"),
                round_number=7,
            ),
            player_data={
                "a": PlayerData("Ari", Stance.GOOFY, "https://example.com/a.png"),
                "b": PlayerData("Bo"),
            },
            created_by="b",
            created_at=NOW,
            updated_at=NOW,
        )
        self.assertEqual(Match.from_dict("m1", match.to_dict()), match)

    def test_round_trip_completed(self) -> None:
        """Winners and empty tricks round-trip too."""
        match = Match(
            id="m2",
            players=("a", "b"),
            state=MatchState(
                status=MatchStatus.COMPLETED,
                turn_player_id="a",
                phase=MatchPhase.VERIFICATION,
                p2_letters=5,
            ),
            winner_id="a",
        )
        data = match.to_dict()
        self.assertIsNone(data["state"]["currentTrick"])
        self.assertEqual(data["state"]["status"], "COMPLETED")
        self.assertEqual(Match.from_dict("m2", data), match)

    def test_requires_two_distinct_players(self) -> None:
        """A match cannot pit a player against themselves."""
        with self.assertRaises(ValueError):
            Match(
                id="m",
                players=("a", "a"),
                state=MatchState(status=MatchStatus.ACTIVE, turn_player_id="a"),
            )

    def test_turn_must_belong_to_a_player(self) -> None:
        """The turn cannot point outside the match."""
        with self.assertRaises(ValueError):
            Match(
                id="m",
                players=("a", "b"),
                state=MatchState(status=MatchStatus.ACTIVE, turn_player_id="c"),
            )

    def test_opponent_and_letters(self) -> None:
        """Helpers resolve the other player and letter counts."""
        match = Match(
            id="m",
            players=("a", "b"),
            state=MatchState(
                status=MatchStatus.ACTIVE, turn_player_id="a", p1_letters=2
            ),
        )
        self.assertEqual(match.opponent_of("a"), "b")
        self.assertEqual(match.opponent_of("b"), "a")
        self.assertEqual(match.letters(), {"a": 2, "b": 0})


class QueueEntryTestCase(unittest.TestCase):
    def test_round_trip(self) -> None:
        """Queue entries round-trip."""
        entry = QueueEntry(
            id="q1",
            created_by="a",
            creator_name="Ari",
            stance=Stance.GOOFY,
            creator_photo=None,
            created_at=NOW,
        )
        self.assertEqual(QueueEntry.from_dict("q1", entry.to_dict()), entry)


class RemoteModelTestCase(unittest.TestCase):
    """Tests for remote game, round and video documents."""

    def test_game_round_trip(self) -> None:
        game = RemoteGame(
            id="g1",
            created_by_uid="a",
            player_a_uid="a",
            player_b_uid="b",
            letters={"a": "S", "b": "SKA"},
            status=GameStatus.ACTIVE,
            current_turn_uid="b",
            current_round_id="r4",
            round_count=4,
            created_at=NOW,
            last_move_at=NOW,
        )
        self.assertEqual(RemoteGame.from_dict("g1", game.to_dict()), game)
        self.assertEqual(game.letter_counts(), {"a": 1, "b": 3})

    def test_round_round_trip(self) -> None:
        game_round = RemoteRound(
            id="r1",
            round_number=2,
            offense_uid="a",
            defense_uid="b",
            status=RoundStatus.DISPUTED,
            set_video_id="v1",
            reply_video_id="v2",
            offense_claim=RoundResult.MISSED,
            defense_claim=RoundResult.LANDED,
            created_at=NOW,
        )
        self.assertEqual(RemoteRound.from_dict("r1", game_round.to_dict()), game_round)
        self.assertEqual(game_round.role_of("a"), VideoRole.SET)
        self.assertEqual(game_round.role_of("b"), VideoRole.REPLY)
        self.assertIsNone(game_round.role_of("c"))

    def test_video_round_trip(self) -> None:
        video = RemoteVideo(
            id="v1",
            uid="a",
            game_id="g1",
            round_id="r1",
            role=VideoRole.SET,
            storage_path="remote_videos/a/g1/r1/v1.mp4",
            content_type="video/mp4",
            size_bytes=2048,
            duration_ms=9000,
            status=VideoStatus.FAILED,
            error_code="network_error",
            error_message="reset by peer",
            created_at=NOW,
        )
        self.assertEqual(RemoteVideo.from_dict("v1", video.to_dict()), video)


if __name__ == "__main__":
    unittest.main()
