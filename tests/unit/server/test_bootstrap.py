"""Tests for server logging setup and registry wiring."""

import logging
from pathlib import Path

import pytest

from insight.config.schema import CompactionConfig, Config, SessionConfig
from insight.core.errors import ProviderError
from insight.server.bootstrap import ROOT_LOGGER_NAME, build_registry, configure_server_logging


@pytest.fixture
def restore_insight_logger():
    """Undo configure_server_logging() so later tests can capture logs."""
    insight_logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(insight_logger.handlers)
    level = insight_logger.level
    propagate = insight_logger.propagate
    yield
    for handler in insight_logger.handlers:
        if handler not in handlers:
            handler.close()
    insight_logger.handlers[:] = handlers
    insight_logger.setLevel(level)
    insight_logger.propagate = propagate


class TestConfigureServerLogging:
    """Tests for configure_server_logging()."""

    def test_writes_log_file(self, tmp_path: Path, restore_insight_logger) -> None:
        log_file = configure_server_logging(tmp_path / "logs")
        logging.getLogger("insight.session").info("session started")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()

        assert log_file == tmp_path / "logs" / "server.log"
        assert "session started" in log_file.read_text(encoding="utf-8")

    def test_reconfigure_does_not_stack_handlers(self, tmp_path: Path, restore_insight_logger) -> None:
        configure_server_logging(tmp_path)
        configure_server_logging(tmp_path)
        insight_logger = logging.getLogger(ROOT_LOGGER_NAME)
        assert len(insight_logger.handlers) == 2
        assert insight_logger.propagate is False


class TestBuildRegistry:
    """Tests for build_registry()."""

    def test_sessions_use_config(self, scripted_provider) -> None:
        config = Config(
            compaction=CompactionConfig(keep_first_n=1, keep_last_n=3),
            session=SessionConfig(max_steps=4),
        )
        registry = build_registry(config, provider=scripted_provider([]))

        async def send(notice) -> None:
            pass

        session = registry.get_or_create("conn", send, session_id="abc")
        assert session.id == "abc"
        assert session._max_steps == 4
        assert session._compaction.keep_last_n == 3

    @pytest.mark.asyncio
    async def test_close_releases_provider(self, scripted_provider) -> None:
        provider = scripted_provider([])
        registry = build_registry(Config(), provider=provider)

        async def send(notice) -> None:
            pass

        registry.get_or_create("conn", send)
        await registry.close()

        assert len(registry) == 0
        assert provider.closed is True

    def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ProviderError):
            build_registry(Config())
