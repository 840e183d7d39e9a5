import argparse
import logging
from typing import List, Optional

from .config import DEFAULT_BIND, DEFAULT_PORT, parse_host_config
from .errors import ConfigError, SalvoError
from .reporting import LogReporter

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Salvo - two-player LAN naval combat")
    parser.add_argument("--log-level", type=str.upper, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity")
    subparsers = parser.add_subparsers(dest="mode", required=True)

    host_p = subparsers.add_parser("host", help="Host a match in the terminal")
    host_p.add_argument("--dimension", type=str, default="1", help="Board dimension D (board is 2D x 2D)")
    host_p.add_argument("--port", type=str, default=str(DEFAULT_PORT), help="TCP port to listen on")
    host_p.add_argument("--bind", type=str, default=DEFAULT_BIND, help="Bind address")
    host_p.add_argument("--timeout", type=float, default=None, help="Seconds to wait on a player before giving up")

    gui_p = subparsers.add_parser("host-gui", help="Host a match with the pygame window")
    gui_p.add_argument("--dimension", type=str, default="1", help="Initial board dimension")
    gui_p.add_argument("--port", type=str, default=str(DEFAULT_PORT), help="Initial TCP port")
    gui_p.add_argument("--bind", type=str, default=DEFAULT_BIND, help="Bind address")
    gui_p.add_argument("--timeout", type=float, default=None, help="Seconds to wait on a player before giving up")

    join_p = subparsers.add_parser("join", help="Play against a host from the terminal")
    join_p.add_argument("--address", type=str, required=True, help="Host IP or address")
    join_p.add_argument("--port", type=int, default=DEFAULT_PORT, help="TCP port to connect")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    if args.mode == "join":
        from .client import run_client
        run_client(host=args.address, port=args.port)
        return 0

    reporter = LogReporter()
    try:
        config = parse_host_config(args.dimension, args.port, bind=args.bind, timeout=args.timeout)
    except ConfigError as exc:
        reporter.error(str(exc))
        return 2

    if args.mode == "host-gui":
        from .gui import run_host_gui
        run_host_gui(config)
        return 0

    from .host import run_host
    try:
        run_host(config, reporter=reporter)
    except SalvoError:
        # The coordinator has already logged and reported the failure
        return 1
    return 0
