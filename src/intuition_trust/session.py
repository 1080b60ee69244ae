"""
intuition_trust.session — Persistent agent session over line-delimited JSON-RPC.

Speaks the Model Context Protocol tool subset on stdin/stdout:

    initialize   — server info and capabilities
    ping         — liveness
    tools/list   — name, description, inputSchema for each tool
    tools/call   — {"name": ..., "arguments": {...}} -> text content + isError

Tool calls go through the same Dispatcher as the HTTP endpoint. Notifications
(messages without an ``id``) are never answered. Logging goes to stderr so
stdout carries protocol messages only.

Usage:
    intuition-trust mcp
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Optional, TextIO

from . import __version__
from .dispatch import TOOLS, Dispatcher

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "intuition-mcp-server"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def _error(msg_id: Any, code: int, message: str) -> dict:
    return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": code, "message": message}}


class AgentSession:
    """One agent connection. Stateless apart from the initialized flag."""

    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher
        self.initialized = False
        self._methods = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    # -- methods --

    async def _initialize(self, _params: dict) -> dict:
        self.initialized = True
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }

    async def _ping(self, _params: dict) -> dict:
        return {}

    async def _list_tools(self, _params: dict) -> dict:
        return {
            "tools": [
                {"name": t.name, "description": t.description, "inputSchema": t.input_schema}
                for t in TOOLS
            ]
        }

    async def _call_tool(self, params: dict) -> dict:
        name = params.get("name")
        arguments = params.get("arguments")
        _, envelope = await self.dispatcher.call(name, arguments if arguments is not None else {})
        if envelope["success"]:
            payload, is_error = envelope["data"], False
        else:
            payload = {k: v for k, v in envelope.items() if k != "success"}
            payload["tool"] = name
            is_error = True
        return {
            "content": [{"type": "text", "text": json.dumps(payload, indent=2)}],
            "isError": is_error,
        }

    # -- protocol --

    async def handle(self, message: Any) -> Optional[dict]:
        """Handle one decoded message. Returns the response, or None for notifications."""
        if not isinstance(message, dict) or message.get("jsonrpc") != "2.0":
            return _error(None, INVALID_REQUEST, "Invalid Request")

        msg_id = message.get("id")
        notification = "id" not in message
        method = message.get("method")
        params = message.get("params")
        if params is None:
            params = {}

        handler = self._methods.get(method) if isinstance(method, str) else None
        if handler is None:
            if notification:
                return None
            return _error(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")
        if not isinstance(params, dict):
            return None if notification else _error(msg_id, INVALID_PARAMS, "params must be an object")

        try:
            result = await handler(params)
        except Exception:
            logger.exception("Session method %s failed", method)
            return None if notification else _error(msg_id, INTERNAL_ERROR, "Internal error")

        if notification:
            return None
        return {"jsonrpc": "2.0", "id": msg_id, "result": result}

    async def handle_line(self, line: str) -> Optional[dict]:
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            return _error(None, PARSE_ERROR, "Parse error")
        return await self.handle(message)

    async def serve(self, reader: TextIO = sys.stdin, writer: TextIO = sys.stdout) -> None:
        """Read messages until EOF, one JSON document per line."""
        logger.info("Agent session started (%d tools)", len(TOOLS))
        while True:
            line = await asyncio.to_thread(reader.readline)
            if not line:
                break
            if not line.strip():
                continue
            response = await self.handle_line(line)
            if response is not None:
                writer.write(json.dumps(response) + "\n")
                writer.flush()
        logger.info("Agent session closed")
