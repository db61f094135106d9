# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

from .commands import FormatCommandExecutor
from .editor_session import RichTextSession, SessionEventType
from .export import ExportedFile, export_as_file
from .format_state import ActiveFormatState, derive_state
from .history import HistoryManager
from .results import EditResult, IgnoredReason
from .sanitizer import PasteSanitizer, sanitize
from .selection import CellRef, TextRange
from .session_manager import SessionManager
from .tables import TableSpec, TableStructureEditor
from .text_convert import html_to_text, text_to_html

__all__ = [
    'ActiveFormatState', 'CellRef', 'EditResult', 'ExportedFile', 'FormatCommandExecutor',
    'HistoryManager', 'IgnoredReason', 'PasteSanitizer', 'RichTextSession', 'SessionEventType',
    'SessionManager', 'TableSpec', 'TableStructureEditor', 'TextRange', 'derive_state',
    'export_as_file', 'html_to_text', 'sanitize', 'text_to_html',
]
