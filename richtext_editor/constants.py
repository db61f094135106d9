# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""Defaults shared by the editing session, the MCP server and the CLI."""

# History
MAX_HISTORY_SIZE = 50

# Tables
MIN_TABLE_SIZE = 1
MAX_TABLE_SIZE = 9
DEFAULT_TABLE_ROWS = 2
DEFAULT_TABLE_COLS = 2
DEFAULT_BORDER_COLOR = "#000000"
DEFAULT_CELL_COLOR = "#ffffff"
CELL_PLACEHOLDER = "\xa0"

# Formatting
DEFAULT_FORE_COLOR = "#000000"
DEFAULT_BLOCK_TAG = "p"
FORMAT_BLOCK_TAGS = ("p", "h1", "h2", "h3", "h4", "h5", "h6", "pre", "blockquote", "div", "address")
FONT_SIZES = ("1", "2", "3", "4", "5", "6", "7")
FONTS = {
    "Arial": "Arial, sans-serif",
    "Times New Roman": "Times New Roman, Times, serif",
    "Courier New": "Courier New, Courier, monospace",
    "Georgia": "Georgia, serif",
    "Verdana": "Verdana, Geneva, sans-serif",
    "Trebuchet MS": "Trebuchet MS, sans-serif",
    "Comic Sans MS": "Comic Sans MS, cursive",
}

# Export
EXPORT_FILENAME = "document.html"
EXPORT_MIME_TYPE = "text/html"

# Sessions and server
DEFAULT_DOC_ID = "default"
DEFAULT_MAX_SESSIONS = 50
DEFAULT_DRAFTS_PATH = "./drafts"
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 3001
