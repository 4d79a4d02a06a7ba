"""Websocket server exposing sessions to UI clients."""

from insight.server.bootstrap import build_registry, configure_server_logging
from insight.server.protocol import (
    CancelRequest,
    ClientRequest,
    QueryRequest,
    parse_client_message,
    serialize_notice,
)
from insight.server.websocket import ConnectionHandler, run_server, start_server

__all__ = [
    "CancelRequest",
    "ClientRequest",
    "ConnectionHandler",
    "QueryRequest",
    "build_registry",
    "configure_server_logging",
    "parse_client_message",
    "run_server",
    "serialize_notice",
    "start_server",
]
