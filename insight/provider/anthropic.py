"""Anthropic Messages API provider.

Wire messages map onto the Messages API as follows:

- system messages are lifted into the top-level ``system`` field
- assistant text and tool-call parts become ``text`` and ``tool_use`` blocks
- tool messages become ``tool_result`` blocks in a user turn, with
  ``is_error`` set for error outputs
- reasoning parts are not resent
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from insight.core.errors import ProviderError
from insight.core.types import (
    ContentDelta,
    ProviderMessage,
    ReasoningDelta,
    StreamComplete,
    StreamEvent,
    ToolCall,
    ToolCallStarted,
    WireMessage,
)
from insight.provider.base import BaseProvider

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
INTERRUPTED_TOOL_RESULT = "[Tool execution was interrupted]"


def _text_of(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text"
        )
    return ""


def _tool_result_block(part: dict[str, Any]) -> dict[str, Any]:
    output = part.get("output")
    is_error = False
    value: Any = output
    if isinstance(output, dict) and "value" in output:
        value = output["value"]
        is_error = output.get("type") in ("error-json", "error-text")

    block: dict[str, Any] = {
        "type": "tool_result",
        "tool_use_id": part.get("tool_call_id", ""),
        "content": value if isinstance(value, str) else json.dumps(value, ensure_ascii=False),
    }
    if is_error:
        block["is_error"] = True
    return block


class AnthropicProvider(BaseProvider):
    """Provider for the native Anthropic Messages API."""

    def _build_headers(self) -> dict[str, str]:
        headers = super()._build_headers()
        headers["x-api-key"] = self._api_key
        headers["anthropic-version"] = ANTHROPIC_VERSION
        return headers

    def _build_endpoint(self) -> str:
        return f"{self._base_url}/v1/messages"

    def _build_request_body(
        self,
        messages: list[WireMessage],
        tools: list[dict[str, Any]] | None,
    ) -> dict[str, Any]:
        system_parts = [
            _text_of(m.get("content")) for m in messages if m.get("role") == "system"
        ]
        conversation = [m for m in messages if m.get("role") != "system"]

        body: dict[str, Any] = {
            "model": self._model,
            "messages": self._convert_messages(conversation),
            "max_tokens": self._config.max_tokens,
            "stream": True,
        }
        system = "\n\n".join(p for p in system_parts if p)
        if system:
            body["system"] = system
        if tools:
            body["tools"] = self._convert_tools(tools)
        return body

    def _convert_messages(self, messages: list[WireMessage]) -> list[dict[str, Any]]:
        """Convert wire messages to Anthropic format.

        Tool results are held until the next user turn (or the end) so they
        share one user message. Every tool_use gets a tool_result: calls whose
        results were lost (for example pruned by compaction) get a synthetic
        one.
        """
        call_ids: list[str] = []
        result_ids: set[str] = set()
        for msg in messages:
            content = msg.get("content")
            if not isinstance(content, list):
                continue
            for part in content:
                if not isinstance(part, dict):
                    continue
                if part.get("type") == "tool-call":
                    call_ids.append(part.get("tool_call_id", ""))
                elif part.get("type") == "tool-result":
                    result_ids.add(part.get("tool_call_id", ""))

        orphaned = [cid for cid in call_ids if cid not in result_ids]
        orphaned_ids = set(orphaned)
        if orphaned:
            logger.warning(
                "Synthesizing %d missing tool_result(s) for tool_use blocks: %s",
                len(orphaned),
                orphaned,
            )

        result: list[dict[str, Any]] = []
        pending: list[dict[str, Any]] = []

        def flush_with(extra: list[dict[str, Any]]) -> None:
            nonlocal pending
            content = pending + extra
            pending = []
            if content:
                result.append({"role": "user", "content": content})

        for msg in messages:
            role = msg.get("role")
            content = msg.get("content")

            if role == "tool":
                for part in content if isinstance(content, list) else []:
                    if isinstance(part, dict) and part.get("type") == "tool-result":
                        pending.append(_tool_result_block(part))

            elif role == "user":
                text = _text_of(content)
                flush_with([{"type": "text", "text": text}] if text else [])

            elif role == "assistant":
                blocks: list[dict[str, Any]] = []
                if isinstance(content, str):
                    if content:
                        blocks.append({"type": "text", "text": content})
                elif isinstance(content, list):
                    for part in content:
                        if not isinstance(part, dict):
                            continue
                        if part.get("type") == "text" and part.get("text"):
                            blocks.append({"type": "text", "text": part["text"]})
                        elif part.get("type") == "tool-call":
                            blocks.append({
                                "type": "tool_use",
                                "id": part.get("tool_call_id", ""),
                                "name": part.get("tool_name", ""),
                                "input": part.get("input") or {},
                            })
                if not blocks:
                    continue
                flush_with([])
                result.append({"role": "assistant", "content": blocks})
                for block in blocks:
                    if block["type"] == "tool_use" and block["id"] in orphaned_ids:
                        pending.append({
                            "type": "tool_result",
                            "tool_use_id": block["id"],
                            "content": INTERRUPTED_TOOL_RESULT,
                        })

        flush_with([])
        return result

    def _convert_tools(self, openai_tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Convert OpenAI function format to Anthropic tool format."""
        converted: list[dict[str, Any]] = []
        for tool in openai_tools:
            func = tool.get("function", {})
            converted.append({
                "name": func.get("name", ""),
                "description": func.get("description", ""),
                "input_schema": func.get("parameters") or {"type": "object", "properties": {}},
            })
        return converted

    async def _parse_stream(self, response: httpx.Response) -> AsyncIterator[StreamEvent]:
        """Parse the Anthropic SSE stream.

        Event types handled: content_block_start, content_block_delta
        (text_delta, thinking_delta, input_json_delta), content_block_stop,
        message_stop and error. Anything else is ignored.
        """
        text_parts: list[str] = []
        reasoning_parts: list[str] = []
        current_tool: dict[str, Any] | None = None
        tool_calls: list[ToolCall] = []

        def complete() -> StreamComplete:
            return StreamComplete(
                message=ProviderMessage(
                    text="".join(text_parts),
                    tool_calls=tuple(tool_calls),
                    reasoning="".join(reasoning_parts),
                )
            )

        async for line in response.aiter_lines():
            line = line.strip()
            if not line.startswith("data:"):
                continue
            try:
                data = json.loads(line[5:].strip())
            except json.JSONDecodeError:
                logger.debug("Skipping undecodable SSE line: %.200s", line)
                continue

            event_type = data.get("type", "")

            if event_type == "content_block_start":
                block = data.get("content_block", {})
                if block.get("type") == "tool_use":
                    current_tool = {"id": block.get("id", ""), "name": block.get("name", ""), "input": ""}
                    yield ToolCallStarted(
                        index=len(tool_calls), id=current_tool["id"], name=current_tool["name"]
                    )

            elif event_type == "content_block_delta":
                delta = data.get("delta", {})
                delta_type = delta.get("type")
                if delta_type == "text_delta":
                    text = delta.get("text", "")
                    if text:
                        text_parts.append(text)
                        yield ContentDelta(text=text)
                elif delta_type == "thinking_delta":
                    thinking = delta.get("thinking", "")
                    if thinking:
                        reasoning_parts.append(thinking)
                        yield ReasoningDelta(text=thinking)
                elif delta_type == "input_json_delta" and current_tool is not None:
                    current_tool["input"] += delta.get("partial_json", "")

            elif event_type == "content_block_stop":
                if current_tool is not None:
                    try:
                        arguments = json.loads(current_tool["input"]) if current_tool["input"] else {}
                    except json.JSONDecodeError:
                        logger.warning("Invalid JSON arguments for tool %s", current_tool["name"])
                        arguments = {}
                    tool_calls.append(
                        ToolCall(
                            call_id=current_tool["id"],
                            tool_name=current_tool["name"],
                            input=arguments,
                        )
                    )
                    current_tool = None

            elif event_type == "error":
                error = data.get("error", {})
                raise ProviderError(
                    f"Stream error ({error.get('type', 'unknown')}): {error.get('message', '')}"
                )

            elif event_type == "message_stop":
                yield complete()
                return

        # Stream ended without message_stop; yield what we have
        yield complete()
