from __future__ import annotations

import enum
import random
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .game import (
    DEFAULT_PLACEMENT_ATTEMPTS,
    Fleet,
    Ship,
    board_health_percent,
    generate_fleet,
    place_fleet,
    resolve_shot,
)

PLAYER_IDS = (1, 2)
PLAYER_NAMES = {1: "FIRST PLAYER", 2: "SECOND PLAYER"}


class Phase(enum.Enum):
    AWAITING_PLAYERS = "awaiting_players"
    IN_PROGRESS = "in_progress"
    GAME_OVER = "game_over"


class Status(enum.IntEnum):
    INVALID_SHOT = 0
    HIT = 1
    MISSED = 2


def opponent_of(player_id: int) -> int:
    return 2 if player_id == 1 else 1


@dataclass(frozen=True)
class Echo:
    """Last valid shot, replayed to the next requester."""
    coordinate: Optional[str] = None
    hit: bool = False


@dataclass(frozen=True)
class LogEntry:
    shooter: int
    coordinate: str
    hit: bool

    def __str__(self) -> str:
        return f"{PLAYER_NAMES[self.shooter]}: {self.coordinate} ({'HIT' if self.hit else 'MISSED'})"


@dataclass(frozen=True)
class TurnOutcome:
    status: Status
    ship: Optional[Ship] = None
    echo: Echo = Echo()
    target_health: int = 0
    shooter_health: int = 0
    log: str = ""

    @property
    def valid(self) -> bool:
        return self.status is not Status.INVALID_SHOT


@dataclass(frozen=True)
class MatchState:
    dimension: int
    fleets: Tuple[Fleet, Fleet]
    phase: Phase = Phase.AWAITING_PLAYERS
    current_target: int = 2
    pending_echo: Echo = Echo()
    log: Tuple[LogEntry, ...] = ()
    winner: Optional[int] = None

    def fleet(self, board_id: int) -> Fleet:
        return self.fleets[board_id - 1]

    def with_fleet(self, board_id: int, fleet: Fleet) -> "MatchState":
        fleets = list(self.fleets)
        fleets[board_id - 1] = fleet
        return replace(self, fleets=(fleets[0], fleets[1]))

    @property
    def max_ship_count(self) -> int:
        return len(self.fleets[0])

    def remaining(self, board_id: int) -> int:
        return self.fleet(board_id).remaining

    def health(self, board_id: int) -> int:
        return board_health_percent(self.fleet(board_id))

    def log_text(self) -> str:
        # Newest shot first
        return "\n".join(str(entry) for entry in reversed(self.log))


def new_match(dimension: int, rng: Optional[random.Random] = None,
              max_attempts: int = DEFAULT_PLACEMENT_ATTEMPTS) -> MatchState:
    """Generate and place both fleets; the match still waits for its players."""
    rng = rng or random.Random()
    fleets = tuple(
        place_fleet(generate_fleet(dimension, board_id, rng), dimension, rng, max_attempts)
        for board_id in PLAYER_IDS
    )
    return MatchState(dimension=dimension, fleets=(fleets[0], fleets[1]))


def start(state: MatchState) -> MatchState:
    if state.phase is not Phase.AWAITING_PLAYERS:
        raise RuntimeError(f"cannot start a match that is {state.phase.value}")
    # Player 1 fires first, so board 2 is the first target
    return replace(state, phase=Phase.IN_PROGRESS, current_target=2)


def apply_shot(state: MatchState, target_id: int, coordinate: str) -> Tuple[MatchState, TurnOutcome]:
    """Resolve one turn request against ``state``.

    Returns the next state and the outcome to send back. An out-of-turn
    request yields ``INVALID_SHOT`` and the state unchanged. The outcome
    carries the echo of the *previous* valid shot; this shot becomes the
    pending echo for the next exchange.
    """
    if state.phase is not Phase.IN_PROGRESS:
        raise RuntimeError(f"cannot fire in a match that is {state.phase.value}")
    if target_id != state.current_target:
        return state, TurnOutcome(Status.INVALID_SHOT)

    shooter = opponent_of(target_id)
    fleet, shot = resolve_shot(state.fleet(target_id), coordinate)
    resolved = state.with_fleet(target_id, fleet)
    resolved = replace(resolved, log=state.log + (LogEntry(shooter, coordinate, shot.hit),))

    target_health = resolved.health(target_id)
    shooter_health = resolved.health(shooter)
    outcome = TurnOutcome(
        status=Status.HIT if shot.hit else Status.MISSED,
        ship=shot.ship,
        echo=state.pending_echo,
        target_health=target_health,
        shooter_health=shooter_health,
        log=resolved.log_text(),
    )

    # A shot only damages the target board, so only the shooter can win
    winner = shooter if target_health == 0 else None
    resolved = replace(
        resolved,
        current_target=shooter,
        pending_echo=Echo(coordinate, shot.hit),
        phase=Phase.GAME_OVER if winner else Phase.IN_PROGRESS,
        winner=winner,
    )
    return resolved, outcome
