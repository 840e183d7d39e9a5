from __future__ import annotations

import logging
import random
import socket
import threading
from typing import Optional, Tuple

from .battleship.game import DEFAULT_PLACEMENT_ATTEMPTS
from .battleship.match import (
    PLAYER_IDS,
    PLAYER_NAMES,
    MatchState,
    Phase,
    apply_shot,
    new_match,
    opponent_of,
    start,
)
from .config import HostConfig
from .errors import PlacementError, ProtocolError, SessionFault, SetupError
from .net.net import open_server
from .net.protocol import Handshake, read_turn_request, write_handshake, write_turn_response
from .reporting import BOTH_CONNECTED, LogReporter, Reporter

logger = logging.getLogger(__name__)


class MatchCoordinator:
    """Runs one match: two handshakes, then one connection per shot.

    Connections are served strictly one at a time; ``serve`` blocks until
    the match ends and returns the winning player id.
    """

    def __init__(self, config: HostConfig, reporter: Optional[Reporter] = None,
                 rng: Optional[random.Random] = None,
                 max_attempts: int = DEFAULT_PLACEMENT_ATTEMPTS) -> None:
        self.config = config
        self.reporter: Reporter = reporter or LogReporter()
        self.rng = rng or random.Random()
        self.max_attempts = max_attempts
        self.state: Optional[MatchState] = None
        self.address: Optional[Tuple[str, int]] = None
        self.ready = threading.Event()
        self.turns = 0
        self._session_guard = threading.BoundedSemaphore(1)
        self._match_guard = threading.Lock()

    def serve(self) -> int:
        if not self._match_guard.acquire(blocking=False):
            raise SetupError("a match is already running")
        try:
            self.turns = 0
            self.state = self._new_match()
            srv = self._listen()
            try:
                self._handshake(srv)
                self.reporter.status(BOTH_CONNECTED)
                return self._play(srv)
            finally:
                srv.close()
                self.ready.clear()
                logger.info("Released listening socket on port %d", self.config.port)
        finally:
            self._match_guard.release()

    def _fail_setup(self, message: str, exc: Exception) -> SetupError:
        self.state = None
        logger.error("%s: %s", message, exc)
        self.reporter.error(message)
        return SetupError(f"{message}: {exc}")

    def _new_match(self) -> MatchState:
        # Both fleets are placed before any socket is opened
        try:
            state = new_match(self.config.dimension, self.rng, self.max_attempts)
        except PlacementError as exc:
            raise self._fail_setup("Could not place the fleets", exc) from exc
        logger.info("Placed %d ships per side on a %dx%d board",
                    state.max_ship_count, 2 * state.dimension, 2 * state.dimension)
        return state

    def _listen(self) -> socket.socket:
        try:
            srv = open_server(self.config.bind, self.config.port)
        except OSError as exc:
            raise self._fail_setup(f"Cannot open socket on port {self.config.port}", exc) from exc
        host, port = srv.getsockname()[:2]
        self.address = (host, port)
        self.ready.set()
        logger.info("Listening on %s:%d for two players", host, port)
        return srv

    def _accept(self, srv: socket.socket) -> socket.socket:
        conn, addr = srv.accept()
        conn.settimeout(self.config.timeout)
        logger.debug("Connection from %s:%d", addr[0], addr[1])
        return conn

    def _handshake(self, srv: socket.socket) -> None:
        assert self.state is not None
        for player_id in PLAYER_IDS:
            payload = Handshake(
                own_fleet=self.state.fleet(player_id).ships,
                opponent_fleet=self.state.fleet(opponent_of(player_id)).ships,
                dimension=self.state.dimension,
                player_id=player_id,
            )
            try:
                with self._session_guard:
                    conn = self._accept(srv)
                    with conn:
                        write_handshake(conn, payload)
            except OSError as exc:
                raise self._fail_setup(f"Handshake with {PLAYER_NAMES[player_id]} failed", exc) from exc
            # Opponent layout goes out in full, there is no fog of war on the wire
            logger.warning("%s received both fleet layouts", PLAYER_NAMES[player_id])
            logger.info("%s connected", PLAYER_NAMES[player_id])
        self.state = start(self.state)

    def _play(self, srv: socket.socket) -> int:
        assert self.state is not None
        while self.state.phase is Phase.IN_PROGRESS:
            self.turns += 1
            try:
                with self._session_guard:
                    self._exchange(srv)
            except (OSError, ProtocolError) as exc:
                logger.error("Turn %d failed while waiting on %s: %s",
                             self.turns, PLAYER_NAMES[opponent_of(self.state.current_target)], exc)
                self.reporter.error(f"Connection lost on turn {self.turns}, the match is over")
                raise SessionFault(f"turn {self.turns} failed: {exc}", turn=self.turns) from exc

        winner = self.state.winner
        assert winner is not None
        logger.info("%s wins after %d turn requests", PLAYER_NAMES[winner], self.turns)
        self.reporter.game_over(winner)
        return winner

    def _exchange(self, srv: socket.socket) -> None:
        assert self.state is not None
        conn = self._accept(srv)
        with conn:
            request = read_turn_request(conn)
            state, outcome = apply_shot(self.state, request.target_id, request.coordinate)
            self.state = state
            write_turn_response(conn, outcome)
        if not outcome.valid:
            logger.warning("Rejected out-of-turn shot at %s aimed at %s",
                           request.coordinate, PLAYER_NAMES.get(request.target_id, request.target_id))
            return
        entry = state.log[-1]
        logger.info("%s (target %d%%, shooter %d%%)", entry, outcome.target_health, outcome.shooter_health)
        self.reporter.status(str(entry))


def run_host(config: HostConfig, reporter: Optional[Reporter] = None) -> int:
    return MatchCoordinator(config, reporter=reporter).serve()
