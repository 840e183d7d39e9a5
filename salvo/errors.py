from __future__ import annotations


class SalvoError(Exception):
    """Base class for every error raised by salvo."""


class ConfigError(SalvoError):
    """Port or dimension could not be turned into a usable host config."""


class PlacementError(SalvoError):
    """No suitable anchor is left for a ship on the placement grid."""


class ProtocolError(SalvoError):
    """A frame on the wire was truncated, not JSON, or of the wrong type."""


class SetupError(SalvoError):
    """Match setup failed before both handshakes completed."""


class SessionFault(SalvoError):
    """A turn-exchange failed mid-match; the match cannot continue."""

    def __init__(self, message: str, turn: int = 0) -> None:
        super().__init__(message)
        self.turn = turn
