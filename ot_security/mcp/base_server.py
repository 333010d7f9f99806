#!/usr/bin/env python3
# CUI // SP-CTI
"""Base MCP (Model Context Protocol) server implementing JSON-RPC 2.0 over stdio.

Uses Content-Length framing (LSP-style):
    Content-Length: N\r\n\r\n{json_payload}

Bare JSON lines without a header are also accepted. Reads requests from
stdin, dispatches to registered tools and resources, writes responses to
stdout. Notifications (no ``id``) receive no response.

Logging must go to stderr; stdout carries the protocol.
"""

import json
import logging
import sys
import traceback
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("ot_security.mcp.base")

PROTOCOL_VERSION = "2024-11-05"


class MethodNotFound(Exception):
    """Raised when a JSON-RPC method, tool or resource is not registered."""


class MCPServer:
    """MCP server with JSON-RPC 2.0 dispatch over stdio."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    def __init__(self, name: str = "ot-security-mcp", version: str = "0.1.0",
                 stdin=None, stdout=None):
        self.name = name
        self.version = version
        self._stdin = stdin
        self._stdout = stdout

        # name -> {description, input_schema, handler}
        self._tools: Dict[str, dict] = {}
        # uri -> {name, description, mime_type, handler}
        self._resources: Dict[str, dict] = {}

        self._initialized = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_tool(
        self,
        name: str,
        description: str,
        input_schema: dict,
        handler: Callable[[dict], Any],
    ) -> None:
        """Register a tool that clients can invoke via tools/call.

        Args:
            name: Unique tool name (e.g. "search_ot_requirements").
            description: Human-readable description of the tool.
            input_schema: JSON Schema object describing the tool's arguments.
            handler: Callable that receives the arguments dict and returns a result.
        """
        self._tools[name] = {
            "description": description,
            "input_schema": input_schema,
            "handler": handler,
        }
        logger.debug("Registered tool: %s", name)

    def register_resource(
        self,
        uri: str,
        name: str,
        description: str,
        handler: Callable[[str], Any],
        mime_type: str = "application/json",
    ) -> None:
        """Register a resource that clients can read via resources/read."""
        self._resources[uri] = {
            "name": name,
            "description": description,
            "mime_type": mime_type,
            "handler": handler,
        }
        logger.debug("Registered resource: %s", uri)

    @property
    def tool_names(self):
        return list(self._tools)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    @property
    def _in(self):
        return self._stdin if self._stdin is not None else sys.stdin.buffer

    @property
    def _out(self):
        return self._stdout if self._stdout is not None else sys.stdout.buffer

    def _read_message(self) -> Optional[dict]:
        """Read one framed JSON-RPC message. Returns None on EOF."""
        content_length = None
        while True:
            line = self._in.readline()
            if not line:
                return None
            line_str = line.decode("utf-8", errors="replace").strip()
            if line_str == "":
                if content_length is not None:
                    break
                continue
            if line_str.lower().startswith("content-length:"):
                try:
                    content_length = int(line_str.split(":", 1)[1].strip())
                except ValueError:
                    logger.warning("Invalid Content-Length header: %s", line_str)
                    return None
            elif line_str.startswith("{"):
                try:
                    return json.loads(line_str)
                except json.JSONDecodeError:
                    logger.warning("Malformed JSON line: %s", line_str[:200])
                    return {}

        body = self._in.read(content_length)
        if not body:
            return None
        try:
            return json.loads(body.decode("utf-8"))
        except json.JSONDecodeError as exc:
            logger.error("JSON decode error: %s", exc)
            return {}

    def _write_message(self, obj: dict) -> None:
        body_bytes = json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        self._out.write(f"Content-Length: {len(body_bytes)}\r\n\r\n".encode("utf-8"))
        self._out.write(body_bytes)
        self._out.flush()

    # ------------------------------------------------------------------
    # JSON-RPC helpers
    # ------------------------------------------------------------------

    def _make_response(self, request_id: Any, result: Any) -> dict:
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    def _make_error(self, request_id: Any, code: int, message: str, data: Any = None) -> dict:
        err: Dict[str, Any] = {"code": code, "message": message}
        if data is not None:
            err["data"] = data
        return {"jsonrpc": "2.0", "id": request_id, "error": err}

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, msg: dict) -> Optional[dict]:
        """Dispatch a request or notification and return the response dict.

        Returns None for notifications.
        """
        if not isinstance(msg, dict) or "method" not in msg:
            request_id = msg.get("id") if isinstance(msg, dict) else None
            return self._make_error(request_id, self.INVALID_REQUEST, "Missing 'method' field")

        method = msg.get("method", "")
        params = msg.get("params") or {}
        request_id = msg.get("id")
        is_notification = "id" not in msg

        logger.debug("Dispatch: method=%s, id=%s", method, request_id)

        try:
            result = self._handle_method(method, params)
        except MethodNotFound as exc:
            if is_notification:
                return None
            return self._make_error(request_id, self.METHOD_NOT_FOUND, str(exc))
        except Exception as exc:
            logger.error("Error handling %s: %s\n%s", method, exc, traceback.format_exc())
            if is_notification:
                return None
            return self._make_error(request_id, self.INTERNAL_ERROR, str(exc))

        if is_notification:
            return None
        return self._make_response(request_id, result)

    def _handle_method(self, method: str, params: dict) -> Any:
        if method == "initialize":
            return self._handle_initialize(params)
        if method == "notifications/initialized":
            self._initialized = True
            return None
        if method == "tools/list":
            return self._handle_tools_list(params)
        if method == "tools/call":
            return self._handle_tools_call(params)
        if method == "resources/list":
            return self._handle_resources_list(params)
        if method == "resources/read":
            return self._handle_resources_read(params)
        if method == "ping":
            return {}
        raise MethodNotFound(f"Unknown method: {method}")

    # ------------------------------------------------------------------
    # MCP handlers
    # ------------------------------------------------------------------

    def _handle_initialize(self, params: dict) -> dict:
        capabilities: Dict[str, Any] = {}
        if self._tools:
            capabilities["tools"] = {"listChanged": False}
        if self._resources:
            capabilities["resources"] = {"subscribe": False, "listChanged": False}
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": capabilities,
            "serverInfo": {"name": self.name, "version": self.version},
        }

    def _handle_tools_list(self, params: dict) -> dict:
        return {
            "tools": [
                {
                    "name": name,
                    "description": info["description"],
                    "inputSchema": info["input_schema"],
                }
                for name, info in self._tools.items()
            ]
        }

    def _handle_tools_call(self, params: dict) -> dict:
        """Run a tool handler and wrap its result as MCP text content.

        A handler exception becomes an ``isError`` result carrying the
        message; it is not a JSON-RPC error.
        """
        tool_name = params.get("name", "")
        arguments = params.get("arguments") or {}

        if tool_name not in self._tools:
            raise MethodNotFound(f"Unknown tool: {tool_name}")

        handler = self._tools[tool_name]["handler"]
        try:
            result = handler(arguments)
        except Exception as exc:
            logger.warning("Tool %s raised: %s", tool_name, exc)
            return {
                "content": [
                    {
                        "type": "text",
                        "text": json.dumps({"error": str(exc), "tool": tool_name}, indent=2),
                    }
                ],
                "isError": True,
            }

        if isinstance(result, str):
            text = result
        else:
            text = json.dumps(result, indent=2, default=str)

        return {
            "content": [{"type": "text", "text": text}],
            "isError": False,
        }

    def _handle_resources_list(self, params: dict) -> dict:
        return {
            "resources": [
                {
                    "uri": uri,
                    "name": info["name"],
                    "description": info["description"],
                    "mimeType": info["mime_type"],
                }
                for uri, info in self._resources.items()
            ]
        }

    def _handle_resources_read(self, params: dict) -> dict:
        uri = params.get("uri", "")
        if uri not in self._resources:
            raise MethodNotFound(f"Unknown resource URI: {uri}")

        info = self._resources[uri]
        content = info["handler"](uri)
        if isinstance(content, (dict, list)):
            content = json.dumps(content, indent=2, default=str)
        return {"contents": [{"uri": uri, "mimeType": info["mime_type"], "text": str(content)}]}

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Read and dispatch messages until EOF or keyboard interrupt."""
        logger.info("MCP server '%s' v%s starting (protocol %s)", self.name, self.version, PROTOCOL_VERSION)

        try:
            while True:
                msg = self._read_message()
                if msg is None:
                    logger.info("EOF on stdin, shutting down.")
                    break
                response = self.dispatch(msg)
                if response is not None:
                    self._write_message(response)
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down.")
