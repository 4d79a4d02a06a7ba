"""Registry of live sessions, keyed by client connection.

One registry is created per process and handed to whatever owns connection
lifecycles (the websocket server). Each connection gets at most one session.
It is created lazily on the first query, and its teardown runs exactly once
when the connection goes away.

Example:
    registry = SessionRegistry(factory)

    session = registry.get_or_create(connection, send, session_id="abc")
    await session.execute_query("What failed yesterday?")

    # On disconnect:
    await registry.remove(connection)
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Hashable
from uuid import uuid4

from insight.core.interfaces import ClientChannel
from insight.session.session import AgentSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[[str, ClientChannel], AgentSession]


class SessionRegistry:
    """Maps connection identity to its AgentSession."""

    def __init__(
        self,
        factory: SessionFactory,
        on_close: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            factory: Builds a session from (session_id, send).
            on_close: Releases what the sessions share (the provider's HTTP
                client). Awaited once by close(), after every session is gone.
        """
        self._factory = factory
        self._on_close = on_close
        self._sessions: dict[Hashable, AgentSession] = {}

    def get_or_create(
        self,
        key: Hashable,
        send: ClientChannel,
        session_id: str | None = None,
    ) -> AgentSession:
        """Return the connection's session, creating it on first use.

        Creation does not suspend, so two callers for the same key can never
        both create a session.

        Args:
            key: Connection identity.
            send: Channel for the session's notices (used only on creation).
            session_id: Client-chosen id (used only on creation). A random id
                is generated when omitted.
        """
        session = self._sessions.get(key)
        if session is not None:
            return session

        session = self._factory(session_id or uuid4().hex, send)
        self._sessions[key] = session
        logger.info("Created session %s (%d active)", session.id, len(self._sessions))
        return session

    def get(self, key: Hashable) -> AgentSession | None:
        return self._sessions.get(key)

    def get_by_session_id(self, session_id: str) -> AgentSession | None:
        for session in self._sessions.values():
            if session.id == session_id:
                return session
        return None

    async def remove(self, key: Hashable) -> bool:
        """Tear down the connection's session.

        The session leaves the registry before cleanup is awaited, so a second
        remove() for the same key finds nothing and does nothing.

        Returns:
            True if a session was removed.
        """
        session = self._sessions.pop(key, None)
        if session is None:
            return False
        await session.cleanup()
        logger.info("Removed session %s (%d active)", session.id, len(self._sessions))
        return True

    async def cleanup(self) -> None:
        """Tear down every session (server shutdown)."""
        for key in list(self._sessions):
            await self.remove(key)

    async def close(self) -> None:
        """Tear down every session, then release shared resources."""
        await self.cleanup()
        on_close, self._on_close = self._on_close, None
        if on_close is not None:
            await on_close()

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, key: object) -> bool:
        return key in self._sessions
