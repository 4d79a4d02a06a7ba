"""`insight serve`: run the websocket server."""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from insight.config.loader import load_config
from insight.core.constants import get_log_dir
from insight.core.errors import InsightError
from insight.server.bootstrap import build_registry, configure_server_logging
from insight.server.websocket import run_server

logger = logging.getLogger(__name__)


def run_serve(args: argparse.Namespace) -> int:
    """Load config, set up logging and serve until interrupted.

    Returns:
        Process exit code.
    """
    # API keys may live in a project .env file
    load_dotenv()

    try:
        config = load_config(args.config)
    except InsightError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 1

    server_config = config.server.model_copy(
        update={
            k: v for k, v in (("host", args.host), ("port", args.port)) if v is not None
        }
    )

    log_file = configure_server_logging(
        args.log_dir or get_log_dir(),
        level=logging.getLevelName(server_config.log_level),
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    try:
        registry = build_registry(config)
    except InsightError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(
        f"insight listening on ws://{server_config.host}:{server_config.port}{server_config.path}"
        f" (log: {log_file})",
        file=sys.stderr,
    )
    try:
        asyncio.run(run_server(server_config, registry))
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    return 0
