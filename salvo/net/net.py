from __future__ import annotations

import json
import socket
import struct
from typing import Any, Optional

from ..errors import ProtocolError

# Fixed-width fields plus length-prefixed JSON objects over TCP

INT = struct.Struct("!i")
BOOL = struct.Struct("!?")
HEADER = struct.Struct("!I")
MAX_OBJECT_BYTES = 1 << 20


def pack_int(value: int) -> bytes:
    return INT.pack(value)


def pack_bool(value: bool) -> bytes:
    return BOOL.pack(value)


def pack_obj(payload: Any) -> bytes:
    data = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return HEADER.pack(len(data)) + data


def send_int(sock: socket.socket, value: int) -> None:
    sock.sendall(pack_int(value))


def send_obj(sock: socket.socket, payload: Any) -> None:
    sock.sendall(pack_obj(payload))


def recv_exact(sock: socket.socket, num_bytes: int) -> bytes:
    chunks = []
    remaining = num_bytes
    while remaining > 0:
        chunk = sock.recv(remaining)
        if not chunk:
            raise ConnectionError("socket closed")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def recv_int(sock: socket.socket) -> int:
    (value,) = INT.unpack(recv_exact(sock, INT.size))
    return value


def recv_bool(sock: socket.socket) -> bool:
    (value,) = BOOL.unpack(recv_exact(sock, BOOL.size))
    return value


def recv_obj(sock: socket.socket) -> Any:
    (length,) = HEADER.unpack(recv_exact(sock, HEADER.size))
    if length > MAX_OBJECT_BYTES:
        raise ProtocolError(f"object frame of {length} bytes exceeds {MAX_OBJECT_BYTES}")
    body = recv_exact(sock, length)
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError) as exc:
        raise ProtocolError(f"object frame is not JSON: {exc}") from exc


def open_server(bind: str, port: int, backlog: int = 2) -> socket.socket:
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        srv.bind((bind, port))
        srv.listen(backlog)
    except OSError:
        srv.close()
        raise
    return srv


def open_client(host: str, port: int, timeout: Optional[float] = None) -> socket.socket:
    return socket.create_connection((host, port), timeout=timeout)
