from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

from ..errors import PlacementError

# Column letters; index 0 is never used so columns stay 1-based
ALPHABET = "|ABCDEFGHIJKLMNOPQRSTUVWXYZ"
MAX_DIMENSION = (len(ALPHABET) - 1) // 2
DEFAULT_PLACEMENT_ATTEMPTS = 1000

Grid = List[List[int]]


def board_side(dimension: int) -> int:
    return 2 * dimension


def format_coordinate(row: int, col: int) -> str:
    return f"{ALPHABET[col]}{row}"


def parse_coordinate(text: str, dimension: int) -> Optional[Tuple[int, int]]:
    """Turn user input like ``c5`` into ``(row, col)``; ``None`` when off the board."""
    t = text.strip().upper()
    if len(t) < 2:
        return None
    letter = t[0]
    if letter == ALPHABET[0] or letter not in ALPHABET:
        return None
    digits = t[1:]
    if not digits.isdigit() or digits.startswith("0"):
        return None
    row = int(digits)
    col = ALPHABET.index(letter)
    side = board_side(dimension)
    if row > side or col > side:
        return None
    return row, col


def ship_cells(length: int, horizontal: bool, row: int, col: int) -> List[Tuple[int, int]]:
    if horizontal:
        return [(row, c) for c in range(col, col + length)]
    return [(r, col) for r in range(row, row + length)]


@dataclass(frozen=True)
class Ship:
    length: int
    horizontal: bool
    row: int = 0
    col: int = 0
    coordinates: Tuple[str, ...] = ()
    health: int = 0

    @property
    def destroyed(self) -> bool:
        return self.health == 0

    @property
    def placed(self) -> bool:
        return bool(self.coordinates)

    def placed_at(self, row: int, col: int) -> "Ship":
        cells = ship_cells(self.length, self.horizontal, row, col)
        return replace(
            self,
            row=row,
            col=col,
            coordinates=tuple(format_coordinate(r, c) for r, c in cells),
            health=self.length,
        )

    def take_hit(self) -> "Ship":
        return replace(self, health=max(self.health - 1, 0))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "length": self.length,
            "horizontal": self.horizontal,
            "row": self.row,
            "col": self.col,
            "coordinates": list(self.coordinates),
            "health": self.health,
            "destroyed": self.destroyed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Ship":
        coordinates = data["coordinates"]
        if not isinstance(coordinates, list) or not all(isinstance(c, str) for c in coordinates):
            raise TypeError("ship coordinates must be a list of strings")
        ship = cls(
            length=_as_int(data["length"]),
            horizontal=bool(data["horizontal"]),
            row=_as_int(data["row"]),
            col=_as_int(data["col"]),
            coordinates=tuple(coordinates),
            health=_as_int(data["health"]),
        )
        if bool(data["destroyed"]) != ship.destroyed:
            raise ValueError("ship destroyed flag disagrees with its health")
        return ship


def _as_int(value: Any) -> int:
    # bool is an int subclass but never a valid count here
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {value!r}")
    return value


@dataclass(frozen=True)
class Fleet:
    owner: int
    ships: Tuple[Ship, ...]

    def __len__(self) -> int:
        return len(self.ships)

    @property
    def remaining(self) -> int:
        return sum(1 for ship in self.ships if not ship.destroyed)

    def with_ship(self, index: int, ship: Ship) -> "Fleet":
        ships = list(self.ships)
        ships[index] = ship
        return replace(self, ships=tuple(ships))


@dataclass(frozen=True)
class ShotResult:
    coordinate: str
    hit: bool
    ship: Optional[Ship] = None

    @property
    def sunk(self) -> bool:
        return self.ship is not None and self.ship.destroyed


def generate_fleet(dimension: int, owner: int, rng: Optional[random.Random] = None) -> Fleet:
    """Build the unplaced fleet for one board.

    Lengths run from ``dimension`` down to 1, with ``dimension - i + 1`` ships
    of length ``i``; each ship gets a coin-flip orientation.
    """
    rng = rng or random.Random()
    ships: List[Ship] = []
    for length in range(dimension, 0, -1):
        for _ in range(dimension - length + 1):
            ships.append(Ship(length=length, horizontal=rng.random() < 0.5, health=length))
    return Fleet(owner=owner, ships=tuple(ships))


def new_placement_grid(dimension: int) -> Grid:
    size = board_side(dimension) + 1
    return [[0 for _ in range(size)] for _ in range(size)]


def is_suitable(grid: Grid, ship: Ship, row: int, col: int, horizontal: Optional[bool] = None) -> bool:
    if horizontal is None:
        horizontal = ship.horizontal
    if row < 1 or col < 1 or row >= len(grid) or col >= len(grid[row]):
        return False
    if horizontal:
        if col + ship.length > len(grid[row]):
            return False
    elif row + ship.length > len(grid):
        return False
    return all(grid[r][c] == 0 for r, c in ship_cells(ship.length, horizontal, row, col))


def mark_ship(grid: Grid, ship: Ship) -> None:
    for r, c in ship_cells(ship.length, ship.horizontal, ship.row, ship.col):
        grid[r][c] = ship.length


def _sample_anchor(grid: Grid, ship: Ship, side: int, rng: random.Random,
                   max_attempts: int) -> Optional[Tuple[int, int, bool]]:
    for _ in range(max_attempts):
        row = rng.randint(1, side)
        col = rng.randint(1, side)
        if is_suitable(grid, ship, row, col):
            return row, col, ship.horizontal
    return None


def _scan_anchor(grid: Grid, ship: Ship, side: int, rng: random.Random) -> Tuple[int, int, bool]:
    # Keep the generated orientation when any free run allows it
    for horizontal in (ship.horizontal, not ship.horizontal):
        candidates = [
            (row, col, horizontal)
            for row in range(1, side + 1)
            for col in range(1, side + 1)
            if is_suitable(grid, ship, row, col, horizontal)
        ]
        if candidates:
            return rng.choice(candidates)
    raise PlacementError(f"no room left for a ship of length {ship.length}")


def place_fleet(fleet: Fleet, dimension: int, rng: Optional[random.Random] = None,
                max_attempts: int = DEFAULT_PLACEMENT_ATTEMPTS) -> Fleet:
    """Give every ship an anchor on the ``2D x 2D`` board without overlaps.

    Anchors are drawn uniformly at random; after ``max_attempts`` rejections a
    ship falls back to a random pick among all anchors that still fit.
    """
    rng = rng or random.Random()
    side = board_side(dimension)
    grid = new_placement_grid(dimension)
    placed: List[Ship] = []
    for ship in fleet.ships:
        anchor = _sample_anchor(grid, ship, side, rng, max_attempts)
        if anchor is None:
            anchor = _scan_anchor(grid, ship, side, rng)
        row, col, horizontal = anchor
        ship = replace(ship, horizontal=horizontal).placed_at(row, col)
        mark_ship(grid, ship)
        placed.append(ship)
    return replace(fleet, ships=tuple(placed))


def resolve_shot(fleet: Fleet, coordinate: str) -> Tuple[Fleet, ShotResult]:
    # A cell belongs to at most one ship, so the first match is the only one
    for index, ship in enumerate(fleet.ships):
        if coordinate in ship.coordinates:
            damaged = ship.take_hit()
            return fleet.with_ship(index, damaged), ShotResult(coordinate, True, damaged)
    return fleet, ShotResult(coordinate, False)


def board_health_percent(fleet: Fleet) -> int:
    if not fleet.ships:
        return 0
    return 100 * fleet.remaining // len(fleet.ships)
