from __future__ import annotations

from dataclasses import replace

import pytest

from memgrid.core.engine import transitions
from memgrid.core.engine.state import GameState


def _awaiting(sequence: tuple[int, ...], *, score: int = 0, high_score: int = 0) -> GameState:
    return GameState(
        sequence=sequence,
        level=len(sequence),
        score=score,
        high_score=high_score,
        round_state="awaiting_input",
        session_id=1,
    )


def test_start_game_resets_everything_but_high_score() -> None:
    old = replace(_awaiting((1, 2, 3), score=60, high_score=90), player_input=(1,))

    s = transitions.start_game(old, session_id=2)

    assert s.sequence == ()
    assert s.player_input == ()
    assert s.level == 1
    assert s.score == 0
    assert s.round_state == "displaying"
    assert s.high_score == 90
    assert s.session_id == 2


def test_append_tile_allows_repeats_and_clears_input() -> None:
    s = replace(_awaiting((5,)), player_input=(5,), round_state="round_complete", level=2)

    s = transitions.append_tile(s, 5)

    assert s.sequence == (5, 5)
    assert s.player_input == ()
    assert s.round_state == "displaying"
    assert len(s.sequence) == s.level


def test_append_tile_rejects_out_of_range() -> None:
    with pytest.raises(ValueError):
        transitions.append_tile(GameState(), 9)


def test_full_correct_input_completes_round_and_scores_40() -> None:
    s = _awaiting((2, 5, 5, 1), score=60)

    outcomes = []
    for tap in (2, 5, 5, 1):
        r = transitions.apply_tap(s, tap)
        outcomes.append(r.outcome)
        s = r.state

    assert outcomes == ["accepted", "accepted", "accepted", "round_complete"]
    assert r.points == 40
    assert s.score == 100
    assert s.level == 5
    assert s.round_state == "round_complete"


def test_wrong_third_tap_ends_game_with_prior_score_only() -> None:
    s = _awaiting((2, 5, 5, 1), score=60, high_score=30)

    for tap in (2, 5):
        s = transitions.apply_tap(s, tap).state
    r = transitions.apply_tap(s, 4)

    assert r.outcome == "mismatch"
    assert r.state.round_state == "game_over"
    assert r.state.wrong_index == 2
    assert r.state.expected_tile == 5
    assert r.state.tapped_tile == 4
    assert r.state.score == 60
    assert r.state.high_score == 60


def test_high_score_not_lowered_by_worse_game() -> None:
    s = _awaiting((3,), score=10, high_score=200)
    r = transitions.apply_tap(s, 4)
    assert r.state.high_score == 200


def test_first_tap_failure_points_at_first_tile() -> None:
    r = transitions.apply_tap(_awaiting((7, 1)), 0)

    assert r.state.wrong_index == 0
    assert r.state.expected_tile == 7
    assert r.state.highlighted_tile == 7


@pytest.mark.parametrize("round_state", ["idle", "displaying", "round_complete", "game_over"])
def test_tap_is_noop_outside_awaiting_input(round_state: str) -> None:
    s = replace(_awaiting((1, 2)), round_state=round_state)

    r = transitions.apply_tap(s, 1)

    assert r.outcome == "ignored"
    assert r.state is s


@pytest.mark.parametrize("index", [-1, 9, 42, True])
def test_invalid_index_is_ignored(index: int) -> None:
    s = _awaiting((1, 2))
    r = transitions.apply_tap(s, index)
    assert r.outcome == "ignored"
    assert r.state is s


def test_finish_playback_only_from_displaying() -> None:
    s = GameState(sequence=(1,), round_state="displaying", highlighted_tile=1)
    done = transitions.finish_playback(s)
    assert done.round_state == "awaiting_input"
    assert done.highlighted_tile is None

    over = replace(s, round_state="game_over")
    assert transitions.finish_playback(over) is over
