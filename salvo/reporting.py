from __future__ import annotations

import logging
import queue
from typing import Any, Optional, Protocol, Tuple

from .battleship.match import PLAYER_NAMES

BOTH_CONNECTED = "Both players have connected. Let the battle begin!"

Event = Tuple[str, Any]


def winner_text(winner: int) -> str:
    return f"WINNER IS {PLAYER_NAMES[winner]}"


class Reporter(Protocol):
    """Where the host sends human-readable match events."""

    def status(self, text: str) -> None: ...

    def error(self, text: str) -> None: ...

    def game_over(self, winner: int) -> None: ...


class LogReporter:
    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("salvo.match")

    def status(self, text: str) -> None:
        self.logger.info(text)

    def error(self, text: str) -> None:
        self.logger.error(text)

    def game_over(self, winner: int) -> None:
        self.logger.info("Game over: %s", winner_text(winner))


class QueueReporter:
    """Hands events to another thread, e.g. the pygame loop."""

    def __init__(self, events: "Optional[queue.Queue[Event]]" = None) -> None:
        self.events: "queue.Queue[Event]" = events if events is not None else queue.Queue()

    def status(self, text: str) -> None:
        self.events.put(("status", text))

    def error(self, text: str) -> None:
        self.events.put(("error", text))

    def game_over(self, winner: int) -> None:
        self.events.put(("game_over", winner))

    def try_get(self, timeout: float = 0.0) -> Optional[Event]:
        try:
            return self.events.get(timeout=timeout)
        except queue.Empty:
            return None
