"""Websocket transport between UI clients and their sessions.

Each connection maps to one session in the registry. Queries run as tasks so
that the connection keeps reading frames, and a ``cancel`` sent while a
query streams is seen right away.
"""

from __future__ import annotations

import asyncio
import logging
from http import HTTPStatus
from typing import Any

import websockets
from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.http11 import Request, Response

from insight.config.schema import ServerConfig
from insight.core.errors import ProtocolError
from insight.server.protocol import CancelRequest, QueryRequest, parse_client_message, serialize_notice
from insight.session.events import ClientNotice, ErrorNotice
from insight.session.registry import SessionRegistry

logger = logging.getLogger(__name__)


class ConnectionHandler:
    """Serves one websocket connection at a time per handle() call.

    ``connection`` only needs async iteration over incoming frames and an
    async ``send(str)``, which keeps the handler testable without sockets.
    """

    def __init__(self, registry: SessionRegistry) -> None:
        self._registry = registry

    @staticmethod
    def _make_sender(connection: Any):
        async def send(notice: ClientNotice) -> None:
            try:
                await connection.send(serialize_notice(notice))
            except websockets.exceptions.ConnectionClosed:
                logger.debug("Dropping %s notice: connection closed", notice.type_name)

        return send

    async def handle(self, connection: Any) -> None:
        send = self._make_sender(connection)
        tasks: set[asyncio.Task[None]] = set()
        logger.info("Client connected")

        try:
            async for raw in connection:
                try:
                    request = parse_client_message(raw)
                except ProtocolError as e:
                    logger.debug("Rejected client message: %s", e.message)
                    await send(ErrorNotice(session_id=None, message=e.message))
                    continue

                if isinstance(request, QueryRequest):
                    session = self._registry.get_or_create(connection, send, request.session_id)
                    task = asyncio.create_task(
                        session.execute_query(request.content, request.history)
                    )
                    tasks.add(task)
                    task.add_done_callback(tasks.discard)
                elif isinstance(request, CancelRequest):
                    session = self._registry.get(connection)
                    if session is not None:
                        await session.cancel()
        except websockets.exceptions.ConnectionClosed:
            logger.debug("Connection closed while reading")
        finally:
            await self._registry.remove(connection)
            for task in tasks:
                task.cancel()
            if tasks:
                await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Client disconnected")


def _path_filter(path: str):
    def process_request(connection: ServerConnection, request: Request) -> Response | None:
        if request.path.split("?", 1)[0] != path:
            return connection.respond(HTTPStatus.NOT_FOUND, "Not found\n")
        return None

    return process_request


async def start_server(config: ServerConfig, registry: SessionRegistry) -> Server:
    """Start listening. The caller owns the returned server."""
    handler = ConnectionHandler(registry)
    server = await serve(
        handler.handle,
        config.host,
        config.port,
        process_request=_path_filter(config.path),
    )
    logger.info("Listening on ws://%s:%d%s", config.host, config.port, config.path)
    return server


async def run_server(config: ServerConfig, registry: SessionRegistry) -> None:
    """Serve until cancelled, then tear down every session and the provider."""
    server = await start_server(config, registry)
    try:
        await server.serve_forever()
    finally:
        server.close()
        await server.wait_closed()
        await registry.close()
