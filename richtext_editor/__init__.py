# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Rich Text Editor - Python package for editing HTML email bodies without a browser
"""

from .config import EditorConfig
from .model.editor_session import RichTextSession, SessionEventType
from .model.session_manager import SessionManager

__version__ = "0.1.0"

__all__ = ["EditorConfig", "RichTextSession", "SessionEventType", "SessionManager"]
