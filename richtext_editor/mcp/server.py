# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
MCP Server for the Rich Text Editor

This module exposes editing sessions as MCP (Model Context Protocol) tools,
so that an agent or a webmail host can drive the editor out of process.

KEY FEATURES:
============

Document Operations:
- get_document / set_document: Read or replace a session's HTML
- execute_command: Run a formatting command over a selection
- undo / redo: Walk the session history
- paste: Insert sanitized clipboard HTML or plain text
- convert_to_text / convert_to_html: Source view conversions
- get_format_state: Toolbar state for a selection
- export_document: "Download as HTML" payload

Tables:
- insert_table, select_cell, table_edit (add/delete row/column)

Drafts:
- save_draft / load_draft: Persist a session under the drafts path

Transports:
- MCP over stdio
- JSON-RPC 2.0 over HTTP with CORS support, plus GET /tools/list

Every tool returns a dict with ``success`` and ``doc_id``; failures are
reported as ``success: False`` with an ``error`` and never raised.
"""

import asyncio
import json
import logging
import socketserver
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import click
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from ..constants import DEFAULT_DOC_ID, DEFAULT_DRAFTS_PATH, DEFAULT_HOST, DEFAULT_MAX_SESSIONS, DEFAULT_PORT
from ..model.editor_session import RichTextSession
from ..model.results import EditResult
from ..model.selection import CellRef, TextRange
from ..model.session_manager import SessionManager

logger = logging.getLogger(__name__)

###############################################################################
# Global session manager instance
session_manager: Optional[SessionManager] = None

# Tool calls from concurrent HTTP requests run one at a time
_dispatch_lock = threading.Lock()

# Create MCP server instance
server = Server("richtext-editor")

###############################################################################
# HTTP Handler for MCP JSON-RPC requests

class MCPHandler(BaseHTTPRequestHandler):
    def do_OPTIONS(self):
        """Handle CORS preflight requests"""
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')
        self.end_headers()

    def do_GET(self):
        """Handle GET requests for tools listing"""
        parsed_path = urlparse(self.path)

        if parsed_path.path == '/tools/list':
            tools = [{"name": tool.name, "description": tool.description} for tool in TOOLS]
            self._send_json(200, {"tools": tools})
        else:
            self.send_error(404)

    def do_POST(self):
        """Handle JSON-RPC requests"""
        try:
            content_length = int(self.headers['Content-Length'])
            post_data = self.rfile.read(content_length)

            request = json.loads(post_data.decode())
            logger.info(f"Received JSON-RPC request: {request.get('method')}")
            with _dispatch_lock:
                response = asyncio.run(self.handle_json_rpc(request))
            self._send_json(200, response)
        except Exception as e:
            logger.error(f"Error handling request: {e}")
            self._send_json(500, {"error": str(e)})

    async def handle_json_rpc(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Handle JSON-RPC 2.0 requests"""
        method = request.get('method')
        params = request.get('params') or {}
        request_id = request.get('id')

        try:
            if method == 'tools/list':
                result = {"tools": [_tool_to_dict(tool) for tool in TOOLS]}
            elif method == 'tools/call':
                result = await dispatch_tool(params.get('name'), params.get('arguments') or {})
            elif method in TOOL_HANDLERS:
                result = await dispatch_tool(method, params)
            else:
                return {
                    "jsonrpc": "2.0",
                    "error": {"code": -32601, "message": "Method not found"},
                    "id": request_id
                }

            return {
                "jsonrpc": "2.0",
                "result": result,
                "id": request_id
            }
        except Exception as e:
            logger.error(f"Error executing method {method}: {e}")
            return {
                "jsonrpc": "2.0",
                "error": {"code": -32603, "message": str(e)},
                "id": request_id
            }

    def _send_json(self, status: int, payload: Dict[str, Any]) -> None:
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Access-Control-Allow-Origin', '*')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode())

    def log_message(self, format, *args):
        logger.debug(format % args)

###############################################################################
# Initialization

def get_or_create_session_manager() -> SessionManager:
    """Get or create the global session manager instance"""
    global session_manager

    if session_manager is None:
        logger.info("Creating SessionManager...")
        session_manager = SessionManager(
            base_path=DEFAULT_DRAFTS_PATH,
            max_sessions=DEFAULT_MAX_SESSIONS
        )

    return session_manager


def _session(doc_id: str) -> RichTextSession:
    return get_or_create_session_manager().get_or_create_session(doc_id)


def _select(session: RichTextSession, start: Optional[int], end: Optional[int]) -> None:
    if start is not None:
        session.set_selection(TextRange(start, start if end is None else end))


def _edit_response(session: RichTextSession, result: EditResult) -> Dict[str, Any]:
    return {
        "success": True,
        "doc_id": session.doc_id,
        **result.to_dict(),
        "html": session.html,
        "can_undo": session.can_undo,
        "can_redo": session.can_redo,
    }


def _error_response(doc_id: str, action: str, error: Exception) -> Dict[str, Any]:
    logger.error(f"Error in {action} for {doc_id}: {error}")
    return {
        "success": False,
        "error": str(error),
        "doc_id": doc_id
    }

###############################################################################
# MCP Tool Implementations

async def get_document(doc_id: str = DEFAULT_DOC_ID) -> Dict[str, Any]:
    """Get a session's document and editing state.

    Args:
        doc_id: The unique identifier for the document

    Returns:
        Dict containing:
            - success: Boolean indicating operation success
            - doc_id: The document identifier
            - html: Document content
            - state: Selection, selected cell, format state and history flags
    """
    try:
        session = _session(doc_id)
        return {
            "success": True,
            "doc_id": doc_id,
            "html": session.html,
            "state": session.to_dict()
        }
    except Exception as e:
        return _error_response(doc_id, "get_document", e)


async def set_document(doc_id: str = DEFAULT_DOC_ID, html: str = "") -> Dict[str, Any]:
    """Replace a session's document; history restarts from it."""
    try:
        session = _session(doc_id)
        session.set_document(html)
        return {
            "success": True,
            "doc_id": doc_id,
            "html": session.html
        }
    except Exception as e:
        return _error_response(doc_id, "set_document", e)


async def execute_command(doc_id: str = DEFAULT_DOC_ID, command: str = "", value: Optional[str] = None,
                          start: Optional[int] = None, end: Optional[int] = None) -> Dict[str, Any]:
    """Run a formatting command over the selection [start, end).

    Args:
        doc_id: The unique identifier for the document
        command: Command name (bold, italic, createLink, formatBlock, insertHTML, ...)
        value: Optional command argument
        start: Selection start; omitted keeps the session's selection
        end: Selection end; defaults to start

    Returns:
        Dict containing success, applied, reason, message and the new html
    """
    try:
        session = _session(doc_id)
        _select(session, start, end)
        result = session.execute(command, value)
        return _edit_response(session, result)
    except Exception as e:
        return _error_response(doc_id, "execute_command", e)


async def undo(doc_id: str = DEFAULT_DOC_ID) -> Dict[str, Any]:
    try:
        session = _session(doc_id)
        return _edit_response(session, session.undo())
    except Exception as e:
        return _error_response(doc_id, "undo", e)


async def redo(doc_id: str = DEFAULT_DOC_ID) -> Dict[str, Any]:
    try:
        session = _session(doc_id)
        return _edit_response(session, session.redo())
    except Exception as e:
        return _error_response(doc_id, "redo", e)


async def insert_table(doc_id: str = DEFAULT_DOC_ID, rows: int = 2, cols: int = 2,
                       border_color: Optional[str] = None, cell_color: Optional[str] = None,
                       start: Optional[int] = None) -> Dict[str, Any]:
    """Insert a table at the caret (or at the end of the document without one)."""
    try:
        session = _session(doc_id)
        _select(session, start, None)
        result = session.insert_table(rows, cols, border_color, cell_color)
        return _edit_response(session, result)
    except Exception as e:
        return _error_response(doc_id, "insert_table", e)


async def select_cell(doc_id: str = DEFAULT_DOC_ID, table: int = 0, row: int = 0, column: int = 0) -> Dict[str, Any]:
    """Select the table cell that table_edit operations apply to."""
    try:
        session = _session(doc_id)
        result = session.select_cell(CellRef(table, row, column))
        return _edit_response(session, result)
    except Exception as e:
        return _error_response(doc_id, "select_cell", e)


TABLE_ACTIONS = ("add_row", "add_column", "delete_row", "delete_column")


async def table_edit(doc_id: str = DEFAULT_DOC_ID, action: str = "", position: Optional[str] = None,
                     table: Optional[int] = None, row: Optional[int] = None,
                     column: Optional[int] = None) -> Dict[str, Any]:
    """Add or delete a row or column around the selected cell.

    Args:
        doc_id: The unique identifier for the document
        action: One of add_row, add_column, delete_row, delete_column
        position: above/below for add_row, left/right for add_column
        table, row, column: Optional cell to select first

    Returns:
        Dict containing success, applied, reason, message and the new html
    """
    try:
        if action not in TABLE_ACTIONS:
            raise ValueError(f"Unknown table action: {action}")
        session = _session(doc_id)
        if table is not None and row is not None and column is not None:
            session.select_cell(CellRef(table, row, column))

        if action == "add_row":
            result = session.add_row(position or "below")
        elif action == "add_column":
            result = session.add_column(position or "right")
        elif action == "delete_row":
            result = session.delete_row()
        else:
            result = session.delete_column()
        return _edit_response(session, result)
    except Exception as e:
        return _error_response(doc_id, "table_edit", e)


async def paste(doc_id: str = DEFAULT_DOC_ID, html: Optional[str] = None, text: Optional[str] = None,
                start: Optional[int] = None, end: Optional[int] = None) -> Dict[str, Any]:
    """Paste clipboard content: sanitized HTML when given, else plain text."""
    try:
        session = _session(doc_id)
        _select(session, start, end)
        return _edit_response(session, session.paste(html=html, text=text))
    except Exception as e:
        return _error_response(doc_id, "paste", e)


async def convert_to_text(doc_id: str = DEFAULT_DOC_ID) -> Dict[str, Any]:
    try:
        session = _session(doc_id)
        response = _edit_response(session, session.convert_to_text())
        response["show_source"] = session.show_source
        return response
    except Exception as e:
        return _error_response(doc_id, "convert_to_text", e)


async def convert_to_html(doc_id: str = DEFAULT_DOC_ID) -> Dict[str, Any]:
    try:
        session = _session(doc_id)
        response = _edit_response(session, session.convert_to_html())
        response["show_source"] = session.show_source
        return response
    except Exception as e:
        return _error_response(doc_id, "convert_to_html", e)


async def get_format_state(doc_id: str = DEFAULT_DOC_ID, start: Optional[int] = None,
                           end: Optional[int] = None) -> Dict[str, Any]:
    """Active format state (toolbar flags) for the selection."""
    try:
        session = _session(doc_id)
        _select(session, start, end)
        return {
            "success": True,
            "doc_id": doc_id,
            "format_state": session.format_state.to_dict()
        }
    except Exception as e:
        return _error_response(doc_id, "get_format_state", e)


async def export_document(doc_id: str = DEFAULT_DOC_ID, directory: Optional[str] = None) -> Dict[str, Any]:
    """Build the "download as HTML" file, optionally writing it to a directory."""
    try:
        exported = _session(doc_id).export()
        response = {
            "success": True,
            "doc_id": doc_id,
            **exported.to_dict()
        }
        if directory:
            response["path"] = exported.save(directory)
        return response
    except Exception as e:
        return _error_response(doc_id, "export_document", e)


async def save_draft(doc_id: str = DEFAULT_DOC_ID) -> Dict[str, Any]:
    try:
        manager = get_or_create_session_manager()
        manager.get_or_create_session(doc_id)
        path = manager.save_draft(doc_id)
        return {
            "success": True,
            "doc_id": doc_id,
            "path": path
        }
    except Exception as e:
        return _error_response(doc_id, "save_draft", e)


async def load_draft(doc_id: str = DEFAULT_DOC_ID) -> Dict[str, Any]:
    try:
        session = get_or_create_session_manager().load_draft(doc_id)
        return {
            "success": True,
            "doc_id": doc_id,
            "html": session.html
        }
    except Exception as e:
        return _error_response(doc_id, "load_draft", e)

###############################################################################
# Tool registry

TOOL_HANDLERS = {
    "get_document": get_document,
    "set_document": set_document,
    "execute_command": execute_command,
    "undo": undo,
    "redo": redo,
    "insert_table": insert_table,
    "select_cell": select_cell,
    "table_edit": table_edit,
    "paste": paste,
    "convert_to_text": convert_to_text,
    "convert_to_html": convert_to_html,
    "get_format_state": get_format_state,
    "export_document": export_document,
    "save_draft": save_draft,
    "load_draft": load_draft,
}

_DOC_ID_SCHEMA = {"type": "string", "description": "The unique identifier for the document"}
_SELECTION_SCHEMA = {
    "start": {"type": "integer", "description": "Selection start (text offset)"},
    "end": {"type": "integer", "description": "Selection end (text offset)"},
}


def _schema(properties: Optional[Dict[str, Any]] = None, required: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {"doc_id": _DOC_ID_SCHEMA, **(properties or {})},
        "required": required or [],
    }


TOOLS = [
    Tool(name="get_document", description="Get the document HTML and editing state",
         inputSchema=_schema()),
    Tool(name="set_document", description="Replace the document HTML and reset its history",
         inputSchema=_schema({"html": {"type": "string"}}, ["html"])),
    Tool(name="execute_command", description="Run a formatting command (bold, createLink, formatBlock, ...) over a selection",
         inputSchema=_schema({"command": {"type": "string"}, "value": {"type": "string"}, **_SELECTION_SCHEMA},
                             ["command"])),
    Tool(name="undo", description="Undo the last committed change", inputSchema=_schema()),
    Tool(name="redo", description="Redo the last undone change", inputSchema=_schema()),
    Tool(name="insert_table", description="Insert a table (1-9 rows and columns) at the caret",
         inputSchema=_schema({
             "rows": {"type": "integer", "minimum": 1, "maximum": 9},
             "cols": {"type": "integer", "minimum": 1, "maximum": 9},
             "border_color": {"type": "string"},
             "cell_color": {"type": "string"},
             "start": {"type": "integer", "description": "Caret position; omitted appends the table"},
         })),
    Tool(name="select_cell", description="Select the table cell targeted by table_edit",
         inputSchema=_schema({
             "table": {"type": "integer"}, "row": {"type": "integer"}, "column": {"type": "integer"}
         }, ["table", "row", "column"])),
    Tool(name="table_edit", description="Add or delete a row or column around the selected cell",
         inputSchema=_schema({
             "action": {"type": "string", "enum": list(TABLE_ACTIONS)},
             "position": {"type": "string", "enum": ["above", "below", "left", "right"]},
             "table": {"type": "integer"}, "row": {"type": "integer"}, "column": {"type": "integer"},
         }, ["action"])),
    Tool(name="paste", description="Paste clipboard HTML (sanitized) or plain text at the selection",
         inputSchema=_schema({"html": {"type": "string"}, "text": {"type": "string"}, **_SELECTION_SCHEMA})),
    Tool(name="convert_to_text", description="Replace the document with its plain text, shown as source",
         inputSchema=_schema()),
    Tool(name="convert_to_html", description="Convert the source text back into paragraph HTML",
         inputSchema=_schema()),
    Tool(name="get_format_state", description="Get the active format state for a selection",
         inputSchema=_schema(dict(_SELECTION_SCHEMA))),
    Tool(name="export_document", description="Export the document as a standalone HTML file",
         inputSchema=_schema({"directory": {"type": "string"}})),
    Tool(name="save_draft", description="Save the document as a draft", inputSchema=_schema()),
    Tool(name="load_draft", description="Load a saved draft into the session", inputSchema=_schema()),
]


def _tool_to_dict(tool: Tool) -> Dict[str, Any]:
    return {"name": tool.name, "description": tool.description, "inputSchema": tool.inputSchema}


async def dispatch_tool(name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Call the tool ``name`` with keyword ``arguments``"""
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        raise ValueError(f"Unknown tool: {name}")
    return await handler(**arguments)


@server.list_tools()
async def list_tools() -> List[Tool]:
    return TOOLS


@server.call_tool()
async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    result = await dispatch_tool(name, arguments or {})
    return [TextContent(type="text", text=json.dumps(result))]

###############################################################################
# HTTP Server

class ThreadedHTTPServer(socketserver.ThreadingMixIn, HTTPServer):
    """Multi-threaded HTTP server for handling concurrent requests"""
    pass


async def run_stdio() -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())

###############################################################################
# CLI Interface

@click.command()
@click.option("--host", default=DEFAULT_HOST, help="Host to bind the server to")
@click.option("--port", default=DEFAULT_PORT, help="Port to bind the server to")
@click.option("--drafts-path", default=DEFAULT_DRAFTS_PATH, help="Path to store drafts")
@click.option("--max-sessions", default=DEFAULT_MAX_SESSIONS, help="Maximum number of cached sessions")
@click.option("--transport", type=click.Choice(["http", "stdio"]), default="http", help="MCP transport")
@click.option("--log-level", default="INFO", help="Logging level")
def main(host: str, port: int, drafts_path: str, max_sessions: int, transport: str, log_level: str):
    """Run the Rich Text Editor MCP server"""

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Initialize global session manager with custom path
    global session_manager
    session_manager = SessionManager(
        base_path=drafts_path,
        max_sessions=max_sessions
    )
    logger.info(f"Drafts path: {drafts_path}")

    if transport == "stdio":
        logger.info("Starting Rich Text Editor MCP server on stdio")
        asyncio.run(run_stdio())
        return

    logger.info(f"Starting Rich Text Editor MCP server on {host}:{port}")

    # Create and run HTTP server
    http_server = ThreadedHTTPServer((host, port), MCPHandler)

    logger.info(f"MCP server started. Available at http://{host}:{port}")
    logger.info("Available tools:")
    logger.info("  - GET /tools/list - List available tools")
    logger.info("  - POST / - JSON-RPC 2.0 endpoint")
    for tool in TOOLS:
        logger.info(f"    - {tool.name}: {tool.description}")

    try:
        http_server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down MCP server...")
        http_server.shutdown()


if __name__ == "__main__":
    main()
