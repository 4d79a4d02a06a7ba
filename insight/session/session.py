"""Agent session: one conversation with one client.

A session runs at most one query at a time. While a query runs it relays the
backend's events to the client in order, and it keeps the conversation
history between queries. When the model rejects a query because the prompt
no longer fits, the history is compacted and the query is retried once.

State machine::

    IDLE -> EXECUTING -> IDLE
                 \\-> RETRYING -> EXECUTING -> IDLE

Every query that is not rejected up front ends with exactly one ``done`` or
one ``error`` notice.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import aclosing
from enum import Enum
from typing import TYPE_CHECKING

from insight.agent.events import (
    BackendEvent,
    TextDelta,
    TextEnd,
    ToolCallEvent,
    ToolResultEvent,
)
from insight.context.client_history import parse_client_history
from insight.context.compaction import CompactionOptions, compact_conversation
from insight.context.extraction import extract_messages_from_response
from insight.context.token_errors import TokenLimitClassifier
from insight.context.truncation import truncate_heavy_tool_calls
from insight.context.wire import to_wire_messages
from insight.core.cancel import CancellationToken
from insight.core.errors import ToolInitError, describe_error
from insight.core.types import ConversationMessage, JSONValue, UserMessage
from insight.session.events import (
    ClientNotice,
    ContextCompactedNotice,
    DoneNotice,
    ErrorNotice,
    ReportNotice,
    TextChunk,
    ToolCallNotice,
    ToolResultNotice,
)
from insight.skill.builtin.report import register_report_skill
from insight.skill.registry import SkillRegistry

if TYPE_CHECKING:
    from insight.core.interfaces import ClientChannel, ModelBackend

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 25
STEP_SEPARATOR = "\n\n"
ALREADY_EXECUTING_MESSAGE = "A query is already being executed"

ToolFactory = Callable[["AgentSession"], SkillRegistry]


class SessionState(Enum):
    """Where a session is in its query lifecycle."""

    IDLE = "idle"
    EXECUTING = "executing"
    RETRYING = "retrying"


def default_tool_factory(session: AgentSession) -> SkillRegistry:
    """Tools every session gets: report generation bound to the session."""
    registry = SkillRegistry()
    register_report_skill(registry, session.send_report)
    return registry


class AgentSession:
    """A conversation between one client and the model backend.

    Attributes:
        id: Session identifier, echoed on every notice.
    """

    def __init__(
        self,
        session_id: str,
        backend: ModelBackend,
        send: ClientChannel,
        tool_factory: ToolFactory = default_tool_factory,
        max_steps: int = DEFAULT_MAX_STEPS,
        compaction: CompactionOptions | None = None,
        classifier: TokenLimitClassifier | None = None,
    ) -> None:
        self.id = session_id
        self._backend = backend
        self._send = send
        self._tool_factory = tool_factory
        self._max_steps = max_steps
        self._compaction = compaction or CompactionOptions()
        self._classifier = classifier or TokenLimitClassifier()

        self._history: list[ConversationMessage] = []
        self._tools: SkillRegistry | None = None
        self._state = SessionState.IDLE
        self._cancel_token: CancellationToken | None = None

    # --- properties ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def executing(self) -> bool:
        return self._state is not SessionState.IDLE

    @property
    def history(self) -> list[ConversationMessage]:
        """A copy of the session-owned history."""
        return list(self._history)

    # --- public operations ---

    async def execute_query(self, query: str, history: object = None) -> None:
        """Run a query and stream its progress to the client.

        Args:
            query: The user's message.
            history: Optional client-supplied history (untyped JSON). When it
                is a non-empty list it replaces the session's own history for
                this query, and the session's history is left untouched.
        """
        # Guard runs before the first suspension point
        if self._state is not SessionState.IDLE:
            logger.info("Session %s rejected query: already executing", self.id)
            await self._emit(ErrorNotice(session_id=self.id, message=ALREADY_EXECUTING_MESSAGE))
            return

        self._state = SessionState.EXECUTING
        token = CancellationToken()
        self._cancel_token = token

        try:
            client_owned = isinstance(history, list) and len(history) > 0
            conversation = parse_client_history(history) if client_owned else list(self._history)

            logger.info(
                "Session %s executing query (%d prior messages, %s history)",
                self.id,
                len(conversation),
                "client" if client_owned else "session",
            )

            error = await self._attempt(query, conversation, client_owned, token)
            if error is None:
                await self._finish(token)
                return

            if token.is_cancelled:
                logger.debug("Session %s suppressed error after cancel: %s", self.id, error)
                return

            if isinstance(error, ToolInitError) or not self._classifier.is_token_limit_error(error):
                await self._fail(token, f"Query failed: {describe_error(error)}", error)
                return

            # One compaction, one retry
            self._state = SessionState.RETRYING
            compacted = compact_conversation(conversation, self._compaction)
            if not client_owned:
                self._history = compacted

            reason = self._classifier.describe(error) or (
                f"Conversation compacted from {len(conversation)} to "
                f"{len(compacted)} messages to fit model limits."
            )
            logger.info("Session %s hit token limit; retrying after compaction", self.id)
            await self._emit(ContextCompactedNotice(session_id=self.id, reason=reason))

            if token.is_cancelled:
                return

            self._state = SessionState.EXECUTING
            retry_error = await self._attempt(query, compacted, client_owned, token)
            if retry_error is None:
                await self._finish(token)
            else:
                await self._fail(
                    token, f"Query failed after compaction: {describe_error(retry_error)}", retry_error
                )
        finally:
            self._state = SessionState.IDLE
            self._cancel_token = None

    async def cancel(self) -> None:
        """Stop the running query, if any, and tell the client it is done.

        The relay loop stops at the next event boundary. The query does not
        send a second terminal notice.
        """
        if not self.executing or self._cancel_token is None:
            return
        if self._cancel_token.is_cancelled:
            return
        logger.info("Session %s query cancelled", self.id)
        self._cancel_token.cancel()
        await self._emit(DoneNotice(session_id=self.id))

    async def send_report(self, content: JSONValue, title: str | None = None) -> None:
        """Forward a report from the report tool to the client."""
        await self._emit(ReportNotice(session_id=self.id, content=content, title=title))

    def clear_history(self) -> None:
        self._history = []

    async def cleanup(self) -> None:
        """Release the session: stop any query silently and drop state."""
        if self._cancel_token is not None:
            self._cancel_token.cancel()
        self._tools = None
        self._history = []
        logger.debug("Session %s cleaned up", self.id)

    # --- internals ---

    async def _emit(self, notice: ClientNotice) -> None:
        await self._send(notice)

    async def _finish(self, token: CancellationToken) -> None:
        # cancel() has already sent done for a cancelled query
        if token.is_cancelled:
            return
        logger.info("Session %s query completed", self.id)
        await self._emit(DoneNotice(session_id=self.id))

    async def _fail(self, token: CancellationToken, message: str, error: BaseException) -> None:
        if token.is_cancelled:
            logger.debug("Session %s suppressed error after cancel: %s", self.id, error)
            return
        logger.warning("Session %s: %s", self.id, message)
        await self._emit(ErrorNotice(session_id=self.id, message=message))

    def _get_tools(self) -> SkillRegistry:
        if self._tools is None:
            try:
                self._tools = self._tool_factory(self)
            except Exception as e:
                raise ToolInitError(str(e) or type(e).__name__) from e
        return self._tools

    async def _attempt(
        self,
        query: str,
        conversation: list[ConversationMessage],
        client_owned: bool,
        token: CancellationToken,
    ) -> Exception | None:
        """Run the backend once. Returns the failure instead of raising it."""
        try:
            tools = self._get_tools()

            if conversation:
                wire = truncate_heavy_tool_calls(to_wire_messages(conversation))
                wire.append({"role": "user", "content": query})
                result = await self._backend.invoke(wire, None, tools, self._max_steps)
            else:
                result = await self._backend.invoke(None, query, tools, self._max_steps)

            after_text = False
            async with aclosing(result.full_stream) as stream:
                async for event in stream:
                    if token.is_cancelled:
                        break
                    after_text = await self._relay(event, after_text)

            if token.is_cancelled:
                return None

            await result.response
            if not client_owned:
                generated = await extract_messages_from_response(result)
                self._history = [*conversation, UserMessage(content=query), *generated]
            return None
        except Exception as e:
            logger.debug("Session %s attempt failed", self.id, exc_info=True)
            return e

    async def _relay(self, event: BackendEvent, after_text: bool) -> bool:
        """Forward one backend event. Returns the updated "last step ended in text" flag."""
        if isinstance(event, TextDelta):
            if after_text and event.text.strip():
                await self._emit(TextChunk(session_id=self.id, content=STEP_SEPARATOR))
                after_text = False
            await self._emit(TextChunk(session_id=self.id, content=event.text))
        elif isinstance(event, ToolCallEvent):
            await self._emit(
                ToolCallNotice(
                    session_id=self.id,
                    call_id=event.call_id,
                    tool_name=event.tool_name,
                    args=event.input,
                )
            )
        elif isinstance(event, ToolResultEvent):
            await self._emit(
                ToolResultNotice(
                    session_id=self.id,
                    call_id=event.call_id,
                    tool_name=event.tool_name,
                    result=event.output,
                )
            )
        elif isinstance(event, TextEnd):
            after_text = True
        else:
            logger.debug("Session %s ignoring backend event %s", self.id, type(event).__name__)
        return after_text
