from __future__ import annotations

import os
import sys
from typing import Iterable, List, Optional, Tuple

from .battleship.game import ALPHABET, Ship, board_side, parse_coordinate, ship_cells

RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"


class Cell:
    EMPTY = 0
    SHIP = 1
    MISS = 2
    HIT = 3


Grid = List[List[int]]


def new_grid(dimension: int) -> Grid:
    # 1-based like the coordinates; row/col 0 stay unused
    size = board_side(dimension) + 1
    return [[Cell.EMPTY for _ in range(size)] for _ in range(size)]


def grid_with_ships(dimension: int, ships: Iterable[Ship]) -> Grid:
    grid = new_grid(dimension)
    for ship in ships:
        for r, c in ship_cells(ship.length, ship.horizontal, ship.row, ship.col):
            grid[r][c] = Cell.SHIP
    return grid


def mark_shot(grid: Grid, coordinate: str, hit: bool, dimension: int) -> None:
    cell = parse_coordinate(coordinate, dimension)
    if cell is None:
        return
    r, c = cell
    grid[r][c] = Cell.HIT if hit else Cell.MISS


def clear_screen() -> None:
    if os.name == "nt":
        os.system("cls")
    else:
        sys.stdout.write("\033[2J\033[H")
        sys.stdout.flush()


def draw_board(grid: Grid, reveal: bool = True) -> str:
    side = len(grid) - 1
    lines: List[str] = ["    " + " ".join(ALPHABET[c] for c in range(1, side + 1))]
    for r in range(1, side + 1):
        row_cells: List[str] = [f"{r:>2} "]
        for c in range(1, side + 1):
            cell = grid[r][c]
            if cell == Cell.SHIP and reveal:
                ch = BLUE + "■" + RESET
            elif cell == Cell.MISS:
                ch = YELLOW + "×" + RESET
            elif cell == Cell.HIT:
                ch = RED + "✹" + RESET
            else:
                ch = DIM + "." + RESET
            row_cells.append(ch)
        lines.append(" ".join(row_cells))
    return "\n".join(lines)


def draw_dual(my_grid: Grid, opp_grid: Grid) -> str:
    my = draw_board(my_grid, reveal=True).splitlines()
    opp = draw_board(opp_grid, reveal=False).splitlines()
    # Every board line is 2 * side + 3 visible chars; ANSI codes inflate len()
    width = 2 * (len(my_grid) - 1) + 3
    lines = [BOLD + "Your Board".ljust(width) + "    Their Board" + RESET]
    for left, right in zip(my, opp):
        lines.append(f"{left}    {right}")
    return "\n".join(lines)


def prompt(text: str) -> str:
    sys.stdout.write(BOLD + text + RESET + " ")
    sys.stdout.flush()
    return sys.stdin.readline().strip()


def announce(text: str) -> None:
    print(BOLD + text + RESET)


def draw_turn(my_grid: Grid, opp_grid: Grid, status: str) -> None:
    clear_screen()
    announce(status)
    print(draw_dual(my_grid, opp_grid))


def read_target(dimension: int) -> Optional[Tuple[int, int]]:
    while True:
        ans = prompt("Fire at (e.g., B3) or 'q' to quit:")
        if ans.lower() == "q":
            return None
        coord = parse_coordinate(ans, dimension)
        if coord is None:
            print(RED + "Invalid coordinate." + RESET)
            continue
        return coord


def health_line(own: int, theirs: int) -> str:
    return f"{GREEN}You {own}%{RESET}  {RED}Them {theirs}%{RESET}"
