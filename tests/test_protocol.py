"""Tests for the wire framing and message codecs."""

import socket
import struct
import threading

import pytest

from salvo.battleship.game import Ship
from salvo.battleship.match import Echo, Status, TurnOutcome
from salvo.errors import ProtocolError
from salvo.net.net import pack_obj, recv_obj
from salvo.net.protocol import (
    Handshake,
    read_handshake,
    read_turn_request,
    read_turn_response,
    write_handshake,
    write_turn_request,
    write_turn_response,
)


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    left.settimeout(5)
    right.settimeout(5)
    yield left, right
    left.close()
    right.close()


def placed(length: int, horizontal: bool, row: int, col: int) -> Ship:
    return Ship(length=length, horizontal=horizontal, health=length).placed_at(row, col)


def test_handshake_field_order(pair) -> None:
    server, client = pair
    own = (placed(2, True, 1, 1), placed(1, False, 3, 3))
    theirs = (placed(2, False, 2, 4), placed(1, True, 4, 1))
    write_handshake(server, Handshake(own, theirs, 2, 1))
    # Own fleet, opponent fleet, then two raw ints
    first = recv_obj(client)
    assert first[0]["coordinates"] == ["A1", "B1"]
    second = recv_obj(client)
    assert second[1]["coordinates"] == ["A4"]
    assert struct.unpack("!ii", client.recv(8)) == (2, 1)


def test_handshake_decodes_ships(pair) -> None:
    server, client = pair
    own = (placed(1, True, 1, 2),)
    theirs = (placed(1, True, 2, 1),)
    write_handshake(server, Handshake(own, theirs, 1, 2))
    assert read_handshake(client) == Handshake(own, theirs, 1, 2)


def test_turn_request_is_int_then_coordinate(pair) -> None:
    client, server = pair
    write_turn_request(client, 2, "C5")
    request = read_turn_request(server)
    assert (request.target_id, request.coordinate) == (2, "C5")


def test_turn_request_rejects_non_string_coordinate(pair) -> None:
    client, server = pair
    client.sendall(struct.pack("!i", 2) + pack_obj(["C", 5]))
    with pytest.raises(ProtocolError):
        read_turn_request(server)


def test_invalid_shot_response_is_status_only(pair) -> None:
    server, client = pair
    write_turn_response(server, TurnOutcome(Status.INVALID_SHOT))
    server.close()
    data = b""
    chunk = client.recv(64)
    while chunk:
        data += chunk
        chunk = client.recv(64)
    assert data == struct.pack("!i", 0)


def test_valid_response_round_trip(pair) -> None:
    server, client = pair
    ship = placed(2, True, 1, 1).take_hit()
    outcome = TurnOutcome(
        status=Status.HIT,
        ship=ship,
        echo=Echo("B2", False),
        target_health=66,
        shooter_health=100,
        log="FIRST PLAYER: A1 (HIT)",
    )
    write_turn_response(server, outcome)
    assert read_turn_response(client) == outcome


def test_miss_before_any_echo_sends_nulls(pair) -> None:
    server, client = pair
    write_turn_response(server, TurnOutcome(Status.MISSED, target_health=100, shooter_health=100,
                                            log="FIRST PLAYER: A1 (MISSED)"))
    assert struct.unpack("!i", client.recv(4)) == (2,)
    assert recv_obj(client) is None
    assert recv_obj(client) is None
    assert client.recv(1) == b"\x00"


def test_unknown_status_code_is_a_protocol_error(pair) -> None:
    server, client = pair
    server.sendall(struct.pack("!i", 7))
    with pytest.raises(ProtocolError):
        read_turn_response(client)


def test_malformed_json_frame(pair) -> None:
    server, client = pair
    body = b"{not json"
    server.sendall(struct.pack("!I", len(body)) + body)
    with pytest.raises(ProtocolError):
        recv_obj(client)


def test_oversized_frame_is_refused(pair) -> None:
    server, client = pair
    server.sendall(struct.pack("!I", 1 << 30))
    with pytest.raises(ProtocolError):
        recv_obj(client)


def test_closed_mid_frame_raises_connection_error(pair) -> None:
    server, client = pair
    server.sendall(struct.pack("!I", 10) + b"abc")
    server.close()
    with pytest.raises(ConnectionError):
        recv_obj(client)


def test_bad_ship_object_in_handshake(pair) -> None:
    server, client = pair
    server.sendall(pack_obj([{"length": 1}]) + pack_obj([]))
    with pytest.raises(ProtocolError):
        read_handshake(client)


def test_deeply_nested_json_frame(pair) -> None:
    server, client = pair
    body = b"[" * 200_000 + b"]" * 200_000
    writer = threading.Thread(target=server.sendall, args=(struct.pack("!I", len(body)) + body,))
    writer.start()
    with pytest.raises(ProtocolError):
        recv_obj(client)
    writer.join(5)
