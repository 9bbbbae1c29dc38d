"""Entry point for Recording Relay.

Usage:
    python -m rec_relay [run] [--config PATH]    Watch, convert, upload and serve
    python -m rec_relay auth [--local-server]    Authorise Google Drive uploads
"""

import argparse
import sys
from pathlib import Path

from rec_relay import __app_name__, __version__


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="rec-relay", description=__app_name__)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "command", nargs="?", default="run", choices=("run", "auth"),
        help="run the service (default) or authorise Google Drive",
    )
    parser.add_argument("--config", type=Path, default=None, help="path to config.json")
    parser.add_argument(
        "--local-server", action="store_true",
        help="auth: finish the consent flow through a local browser redirect",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Run the service or the Drive authorisation flow."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    from rec_relay.config import Config

    cfg = Config(args.config)
    if args.command == "auth":
        from rec_relay.auth import main as auth_main

        auth_main(cfg, local_server=args.local_server)
    else:
        from rec_relay.service import run, setup_logging

        setup_logging(cfg)
        run(cfg)


if __name__ == "__main__":
    main()
