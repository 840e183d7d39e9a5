"""Tests for the match state machine."""

import random

import pytest

from salvo.battleship.game import Fleet, Ship
from salvo.battleship.match import (
    Echo,
    MatchState,
    Phase,
    Status,
    apply_shot,
    new_match,
    opponent_of,
    start,
)


def placed(length: int, horizontal: bool, row: int, col: int) -> Ship:
    return Ship(length=length, horizontal=horizontal, health=length).placed_at(row, col)


@pytest.fixture
def state() -> MatchState:
    # D=2: lengths 2, 1, 1 on each side
    first = Fleet(owner=1, ships=(placed(2, True, 1, 1), placed(1, True, 3, 3), placed(1, True, 4, 4)))
    second = Fleet(owner=2, ships=(placed(2, False, 1, 4), placed(1, True, 4, 1), placed(1, True, 3, 2)))
    return start(MatchState(dimension=2, fleets=(first, second)))


def test_new_match_places_both_fleets(rng: random.Random) -> None:
    match = new_match(3, rng)
    assert match.phase is Phase.AWAITING_PLAYERS
    assert match.max_ship_count == 6
    assert [f.owner for f in match.fleets] == [1, 2]
    assert all(ship.placed for fleet in match.fleets for ship in fleet.ships)
    assert match.health(1) == match.health(2) == 100


def test_start_targets_player_two_first(state: MatchState) -> None:
    assert state.phase is Phase.IN_PROGRESS
    assert state.current_target == 2
    with pytest.raises(RuntimeError):
        start(state)


def test_out_of_turn_shot_is_rejected_without_change(state: MatchState) -> None:
    after, outcome = apply_shot(state, 1, "A1")
    assert outcome.status is Status.INVALID_SHOT
    assert not outcome.valid
    assert after is state


def test_miss_flips_turn_and_keeps_health(state: MatchState) -> None:
    after, outcome = apply_shot(state, 2, "A1")
    assert outcome.status is Status.MISSED
    assert outcome.ship is None
    assert (outcome.target_health, outcome.shooter_health) == (100, 100)
    assert after.current_target == 1
    assert after.fleets == state.fleets
    assert after.pending_echo == Echo("A1", False)


def test_target_alternates_only_on_valid_shots(state: MatchState) -> None:
    targets = [state.current_target]
    for target_id, coordinate in [(2, "A3"), (2, "B3"), (1, "D1"), (1, "D2"), (2, "C4")]:
        state, outcome = apply_shot(state, target_id, coordinate)
        if outcome.valid:
            targets.append(state.current_target)
    assert targets == [2, 1, 2, 1]


def test_echo_carries_the_previous_valid_shot(state: MatchState) -> None:
    state, first = apply_shot(state, 2, "D1")
    assert first.status is Status.HIT
    assert first.echo == Echo()
    state, rejected = apply_shot(state, 2, "A4")
    assert not rejected.valid
    state, second = apply_shot(state, 1, "C1")
    assert second.echo == Echo("D1", True)
    state, third = apply_shot(state, 2, "D2")
    assert third.echo == Echo("C1", False)


def test_log_lists_shots_newest_first(state: MatchState) -> None:
    state, _ = apply_shot(state, 2, "D1")
    state, outcome = apply_shot(state, 1, "C1")
    assert outcome.log == "SECOND PLAYER: C1 (MISSED)\nFIRST PLAYER: D1 (HIT)"
    assert state.log_text() == outcome.log


def test_ship_count_drops_only_when_a_ship_sinks(state: MatchState) -> None:
    state, outcome = apply_shot(state, 2, "D1")
    assert outcome.ship.health == 1
    assert state.remaining(2) == 3
    assert outcome.target_health == 100
    state, _ = apply_shot(state, 1, "C1")
    state, outcome = apply_shot(state, 2, "D2")
    assert outcome.ship.destroyed
    assert state.remaining(2) == 2
    assert outcome.target_health == 66


def test_sinking_the_last_ship_ends_the_match(state: MatchState) -> None:
    shots = [(2, "D1"), (1, "C1"), (2, "D2"), (1, "C2"), (2, "A4"), (1, "D3"), (2, "B3")]
    outcome = None
    for target_id, coordinate in shots:
        state, outcome = apply_shot(state, target_id, coordinate)
    assert outcome.status is Status.HIT
    assert outcome.target_health == 0
    assert outcome.shooter_health == 100
    assert state.phase is Phase.GAME_OVER
    assert state.winner == 1
    with pytest.raises(RuntimeError):
        apply_shot(state, state.current_target, "A1")


def test_second_player_wins_by_sinking_the_first_board(state: MatchState) -> None:
    shots = [(2, "C1"), (1, "A1"), (2, "C2"), (1, "B1"), (2, "C4"), (1, "C3"), (2, "A1"), (1, "D4")]
    outcome = None
    for target_id, coordinate in shots:
        state, outcome = apply_shot(state, target_id, coordinate)
    assert outcome.target_health == 0
    assert outcome.shooter_health == 100
    assert state.winner == 2
    assert state.phase is Phase.GAME_OVER


def test_opponent_of() -> None:
    assert opponent_of(1) == 2
    assert opponent_of(2) == 1
