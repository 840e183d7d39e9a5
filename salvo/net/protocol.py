from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from ..battleship.game import Ship
from ..battleship.match import Echo, Status, TurnOutcome
from ..errors import ProtocolError
from .net import pack_bool, pack_int, pack_obj, recv_bool, recv_int, recv_obj, send_int, send_obj

# Every connection carries exactly one exchange and is then closed.
# int = 4-byte big-endian, bool = 1 byte, obj = 4-byte length + JSON
# Handshake (server -> client, players 1 then 2 by arrival order):
# - obj own fleet [ship, ...], obj opponent fleet [ship, ...], int dimension, int player id
# - ship: { length, horizontal, row, col, coordinates: [str], health, destroyed }
# Turn request (client -> server):
# - int target player id, obj coordinate str e.g. "C5"
# Turn response (server -> client):
# - int status: 0 invalid shot (nothing follows), 1 hit, 2 missed
# - obj ship hit | null, obj previous coordinate | null, bool previous hit,
#   int target health %, int shooter health %, obj log str

__all__ = [
    "Handshake",
    "Status",
    "TurnRequest",
    "read_handshake",
    "read_turn_request",
    "read_turn_response",
    "write_handshake",
    "write_turn_request",
    "write_turn_response",
]


@dataclass(frozen=True)
class Handshake:
    own_fleet: Tuple[Ship, ...]
    opponent_fleet: Tuple[Ship, ...]
    dimension: int
    player_id: int


@dataclass(frozen=True)
class TurnRequest:
    target_id: int
    coordinate: str


def _encode_fleet(ships: Tuple[Ship, ...]) -> List[dict]:
    return [ship.to_dict() for ship in ships]


def _decode_ship(data: Any) -> Ship:
    if not isinstance(data, dict):
        raise ProtocolError(f"expected a ship object, got {type(data).__name__}")
    try:
        return Ship.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise ProtocolError(f"malformed ship object: {exc!r}") from exc


def _decode_fleet(data: Any) -> Tuple[Ship, ...]:
    if not isinstance(data, list):
        raise ProtocolError(f"expected a fleet array, got {type(data).__name__}")
    return tuple(_decode_ship(item) for item in data)


def _expect_str(data: Any, what: str, nullable: bool = False) -> Optional[str]:
    if data is None and nullable:
        return None
    if not isinstance(data, str):
        raise ProtocolError(f"expected {what} string, got {type(data).__name__}")
    return data


def write_handshake(sock: socket.socket, handshake: Handshake) -> None:
    sock.sendall(
        pack_obj(_encode_fleet(handshake.own_fleet))
        + pack_obj(_encode_fleet(handshake.opponent_fleet))
        + pack_int(handshake.dimension)
        + pack_int(handshake.player_id)
    )


def read_handshake(sock: socket.socket) -> Handshake:
    own = _decode_fleet(recv_obj(sock))
    opponent = _decode_fleet(recv_obj(sock))
    dimension = recv_int(sock)
    player_id = recv_int(sock)
    return Handshake(own, opponent, dimension, player_id)


def write_turn_request(sock: socket.socket, target_id: int, coordinate: str) -> None:
    send_int(sock, target_id)
    send_obj(sock, coordinate)


def read_turn_request(sock: socket.socket) -> TurnRequest:
    target_id = recv_int(sock)
    coordinate = _expect_str(recv_obj(sock), "coordinate")
    return TurnRequest(target_id, coordinate)


def write_turn_response(sock: socket.socket, outcome: TurnOutcome) -> None:
    if not outcome.valid:
        sock.sendall(pack_int(Status.INVALID_SHOT))
        return
    sock.sendall(
        pack_int(outcome.status)
        + pack_obj(outcome.ship.to_dict() if outcome.ship is not None else None)
        + pack_obj(outcome.echo.coordinate)
        + pack_bool(outcome.echo.hit)
        + pack_int(outcome.target_health)
        + pack_int(outcome.shooter_health)
        + pack_obj(outcome.log)
    )


def read_turn_response(sock: socket.socket) -> TurnOutcome:
    code = recv_int(sock)
    try:
        status = Status(code)
    except ValueError as exc:
        raise ProtocolError(f"unknown status code {code}") from exc
    if status is Status.INVALID_SHOT:
        return TurnOutcome(status)
    raw_ship = recv_obj(sock)
    ship = _decode_ship(raw_ship) if raw_ship is not None else None
    echo_coordinate = _expect_str(recv_obj(sock), "previous coordinate", nullable=True)
    echo_hit = recv_bool(sock)
    target_health = recv_int(sock)
    shooter_health = recv_int(sock)
    log = _expect_str(recv_obj(sock), "log")
    return TurnOutcome(
        status=status,
        ship=ship,
        echo=Echo(echo_coordinate, echo_hit),
        target_health=target_health,
        shooter_health=shooter_health,
        log=log,
    )
