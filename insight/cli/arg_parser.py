"""Argument parsing for the insight CLI."""

import argparse
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def _package_version() -> str:
    try:
        return version("insight-agent")
    except PackageNotFoundError:
        return "unknown"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="insight",
        description="Conversational analysis agent served over websockets",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the websocket server",
        description="Serve agent sessions to UI clients over a websocket.",
    )
    serve_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Config file (default: ~/.insight/config.json merged with ./.insight/config.json)",
    )
    serve_parser.add_argument("--host", help="Interface to bind (overrides config)")
    serve_parser.add_argument(
        "--port", "-p",
        type=int,
        help="Server port (overrides config, default: 6007)",
    )
    serve_parser.add_argument(
        "--log-dir",
        type=Path,
        help="Directory for server.log (default: ~/.insight/logs)",
    )
    serve_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug output on the console",
    )

    return parser.parse_args(argv)
