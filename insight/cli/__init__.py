"""Command-line interface."""

import sys

from insight.cli.arg_parser import parse_args
from insight.cli.serve import run_serve


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    if args.command == "serve":
        sys.exit(run_serve(args))


__all__ = ["main", "parse_args", "run_serve"]
