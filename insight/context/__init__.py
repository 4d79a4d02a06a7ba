"""Conversation context handling for insight.

This package converts history between the session's message model, the
backend wire format and the client's JSON. It also keeps the history
within the model's context window: heavy report payloads are truncated
before resending, long conversations are compacted, and token-limit
failures are recognised.
"""

from insight.context.client_history import (
    parse_client_history,
    serialize_message,
    serialize_messages,
)
from insight.context.compaction import (
    CompactionOptions,
    compact_conversation,
    prune_wire_messages,
)
from insight.context.extraction import extract_messages_from_response
from insight.context.token_errors import (
    TokenLimitClassifier,
    get_token_limit_error_description,
    is_token_limit_error,
)
from insight.context.truncation import (
    REPORT_TOOL_NAME,
    TRUNCATED_REPORT_PLACEHOLDER,
    truncate_heavy_tool_calls,
)
from insight.context.wire import (
    from_wire_message,
    from_wire_messages,
    to_wire_message,
    to_wire_messages,
)

__all__ = [
    # Wire conversion
    "to_wire_message",
    "to_wire_messages",
    "from_wire_message",
    "from_wire_messages",
    # Client history
    "parse_client_history",
    "serialize_message",
    "serialize_messages",
    # Response extraction
    "extract_messages_from_response",
    # Truncation
    "REPORT_TOOL_NAME",
    "TRUNCATED_REPORT_PLACEHOLDER",
    "truncate_heavy_tool_calls",
    # Compaction
    "CompactionOptions",
    "compact_conversation",
    "prune_wire_messages",
    # Token limits
    "TokenLimitClassifier",
    "is_token_limit_error",
    "get_token_limit_error_description",
]
