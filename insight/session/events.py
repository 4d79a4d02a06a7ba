"""Notices a session sends to its client.

Each notice is a frozen dataclass carrying the session id. to_dict()
produces the frame the UI expects: ``{"type": ..., "payload": {...}}`` with
camelCase payload keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from insight.core.types import JSONValue


@dataclass(frozen=True)
class ClientNotice:
    """Base class for all client notices."""

    session_id: str | None

    type_name = "notice"

    def payload(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        body = self.payload()
        if self.session_id is not None:
            body["sessionId"] = self.session_id
        return {"type": self.type_name, "payload": body}


@dataclass(frozen=True)
class TextChunk(ClientNotice):
    """A piece of assistant text to append to the transcript."""

    content: str

    type_name = "text"

    def payload(self) -> dict[str, Any]:
        return {"content": self.content}


@dataclass(frozen=True)
class ToolCallNotice(ClientNotice):
    """The agent is about to run a tool."""

    call_id: str
    tool_name: str
    args: JSONValue

    type_name = "tool_call"

    def payload(self) -> dict[str, Any]:
        return {"toolCallId": self.call_id, "toolName": self.tool_name, "args": self.args}


@dataclass(frozen=True)
class ToolResultNotice(ClientNotice):
    """A tool finished; ``result`` is its raw output."""

    call_id: str
    tool_name: str
    result: JSONValue

    type_name = "tool_result"

    def payload(self) -> dict[str, Any]:
        return {"toolCallId": self.call_id, "toolName": self.tool_name, "result": self.result}


@dataclass(frozen=True)
class ReportNotice(ClientNotice):
    """A validated report for the report panel."""

    content: JSONValue
    title: str | None = None

    type_name = "report"

    def payload(self) -> dict[str, Any]:
        body: dict[str, Any] = {"content": self.content}
        if self.title:
            body["title"] = self.title
        return body


@dataclass(frozen=True)
class ErrorNotice(ClientNotice):
    """A query (or a client message) failed."""

    message: str

    type_name = "error"

    def payload(self) -> dict[str, Any]:
        return {"message": self.message}


@dataclass(frozen=True)
class DoneNotice(ClientNotice):
    """The query finished or was cancelled."""

    type_name = "done"


@dataclass(frozen=True)
class ContextCompactedNotice(ClientNotice):
    """History was compacted before a retry."""

    reason: str

    type_name = "context_compacted"

    def payload(self) -> dict[str, Any]:
        return {"reason": self.reason}
