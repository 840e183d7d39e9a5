from __future__ import annotations

import logging
from typing import Optional

from .battleship.game import format_coordinate
from .battleship.match import Status, TurnOutcome, opponent_of
from .net.net import open_client
from .net.protocol import Handshake, read_handshake, read_turn_response, write_turn_request
from .ui import announce, clear_screen, draw_turn, grid_with_ships, health_line, mark_shot, new_grid, read_target

logger = logging.getLogger(__name__)


def request_handshake(host: str, port: int, timeout: Optional[float] = None) -> Handshake:
    with open_client(host, port, timeout) as sock:
        return read_handshake(sock)


def fire(host: str, port: int, target_id: int, coordinate: str,
         timeout: Optional[float] = None) -> TurnOutcome:
    with open_client(host, port, timeout) as sock:
        write_turn_request(sock, target_id, coordinate)
        return read_turn_response(sock)


def run_client(host: str, port: int) -> None:
    clear_screen()
    print(f"Connecting to {host}:{port} ...")
    hs = request_handshake(host, port)
    target_id = opponent_of(hs.player_id)
    my_grid = grid_with_ships(hs.dimension, hs.own_fleet)
    opp_grid = new_grid(hs.dimension)
    status = f"You are player {hs.player_id}." + (" You fire first." if hs.player_id == 1 else "")

    while True:
        draw_turn(my_grid, opp_grid, status)
        target = read_target(hs.dimension)
        if target is None:
            print("You left the match.")
            return
        coordinate = format_coordinate(*target)
        try:
            res = fire(host, port, target_id, coordinate)
        except ConnectionRefusedError:
            announce("The host is no longer accepting shots; the match is over.")
            return
        if res.status is Status.INVALID_SHOT:
            status = "Not your turn yet. Try again once your opponent has fired."
            continue
        mark_shot(opp_grid, coordinate, res.status is Status.HIT, hs.dimension)
        # The echo is the previous valid shot, i.e. the opponent's last move on us
        if res.echo.coordinate is not None:
            mark_shot(my_grid, res.echo.coordinate, res.echo.hit, hs.dimension)
        status = f"{coordinate}: {res.status.name}  " + health_line(res.shooter_health, res.target_health)
        if res.ship is not None and res.ship.destroyed:
            status += f"  You sank a ship of length {res.ship.length}!"
        if res.target_health == 0:
            draw_turn(my_grid, opp_grid, status)
            announce("You win! 🎉")
            return
        if res.shooter_health == 0:
            draw_turn(my_grid, opp_grid, status)
            announce("You lose.")
            return
        logger.debug("Shot log:\n%s", res.log)
