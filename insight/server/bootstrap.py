"""Server bootstrap: logging setup and session wiring."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from insight.agent.runner import ToolLoopBackend
from insight.config.schema import Config
from insight.core.interfaces import ChatProvider, ClientChannel
from insight.provider import create_provider
from insight.session.registry import SessionRegistry
from insight.session.session import AgentSession

logger = logging.getLogger(__name__)

ROOT_LOGGER_NAME = "insight"


def configure_server_logging(
    log_dir: Path,
    level: int = logging.INFO,
    console_level: int = logging.WARNING,
) -> Path:
    """Configure logging for the insight namespace.

    Logs are written to `{log_dir}/server.log` with automatic rotation
    (max 5MB per file, 3 backup files), and to stderr at console_level.

    Args:
        log_dir: Directory for server.log file. Created if doesn't exist.
        level: Logging level for file output (default INFO).
        console_level: Logging level for console output (default WARNING).

    Returns:
        Path to the server.log file.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "server.log"

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    ))

    insight_logger = logging.getLogger(ROOT_LOGGER_NAME)
    insight_logger.setLevel(min(level, console_level))

    # Reconfiguring must not stack handlers
    insight_logger.handlers.clear()
    insight_logger.addHandler(file_handler)
    insight_logger.addHandler(console_handler)
    insight_logger.propagate = False

    logger.info("Server logging configured: %s", log_file)
    return log_file


def build_registry(config: Config, provider: ChatProvider | None = None) -> SessionRegistry:
    """Wire config into a SessionRegistry whose sessions share one backend.

    Args:
        config: Loaded configuration.
        provider: Provider to use; created from config.provider when omitted.
            The registry's close() closes it.

    Raises:
        ProviderError: If the provider cannot be created (e.g. no API key).
    """
    if provider is None:
        provider = create_provider(config.provider)
    backend = ToolLoopBackend(
        provider,
        system_prompt=config.system_prompt,
        skill_timeout=config.session.skill_timeout,
    )
    compaction = config.compaction.to_options()
    classifier = config.token_limit.to_classifier()

    def factory(session_id: str, send: ClientChannel) -> AgentSession:
        return AgentSession(
            session_id,
            backend,
            send,
            max_steps=config.session.max_steps,
            compaction=compaction,
            classifier=classifier,
        )

    return SessionRegistry(factory, on_close=provider.aclose)
