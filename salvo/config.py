from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .battleship.game import MAX_DIMENSION
from .errors import ConfigError

DEFAULT_DIMENSION = 1
DEFAULT_PORT = 5000
DEFAULT_BIND = "0.0.0.0"


@dataclass(frozen=True)
class HostConfig:
    dimension: int = DEFAULT_DIMENSION
    port: int = DEFAULT_PORT
    bind: str = DEFAULT_BIND
    timeout: Optional[float] = None


def parse_dimension(text: Optional[str]) -> int:
    """Blank, non-numeric or non-positive input falls back to the default."""
    try:
        dimension = int(str(text).strip())
    except ValueError:
        return DEFAULT_DIMENSION
    if dimension < 1:
        return DEFAULT_DIMENSION
    if dimension > MAX_DIMENSION:
        raise ConfigError(f"Board dimension {dimension} is too large (max {MAX_DIMENSION})")
    return dimension


def parse_port(text: Optional[str]) -> int:
    try:
        port = int(str(text).strip())
    except ValueError:
        raise ConfigError("Cannot open socket, check your port!") from None
    if not 0 <= port <= 65535:
        raise ConfigError(f"Cannot open socket, port {port} is out of range")
    return port


def parse_host_config(dimension_text: Optional[str], port_text: Optional[str],
                      bind: str = DEFAULT_BIND, timeout: Optional[float] = None) -> HostConfig:
    if timeout is not None and timeout <= 0:
        raise ConfigError(f"Timeout must be positive, got {timeout}")
    return HostConfig(
        dimension=parse_dimension(dimension_text),
        port=parse_port(port_text),
        bind=bind,
        timeout=timeout,
    )
