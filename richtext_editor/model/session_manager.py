# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
SessionManager: named editing sessions with draft persistence

Holds at most ``max_sessions`` sessions, evicting the least recently used
one. Drafts are stored as ``<base_path>/<doc_id>.html``; an evicted session
whose document differs from its last saved or loaded content is written to
its draft first.
"""

import logging
import os
import re
from typing import Any, Callable, Dict, List, Optional, OrderedDict

from ..config import EditorConfig
from ..constants import DEFAULT_DRAFTS_PATH, DEFAULT_MAX_SESSIONS
from .editor_session import RichTextSession

logger = logging.getLogger(__name__)

_DOC_ID = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")


def validate_doc_id(doc_id: str) -> str:
    """Document ids double as draft file names: letters, digits, '_', '-', '.' and no leading dot"""
    if not isinstance(doc_id, str) or not _DOC_ID.match(doc_id):
        raise ValueError(f"Invalid document id: {doc_id!r}")
    return doc_id


class SessionManager:
    """
    Manages multiple RichTextSession instances

    Args:
        base_path: Directory for draft files
        max_sessions: Number of sessions kept before the least recently used is dropped
        config: Settings passed to every new session
        event_handler: Receives the events of every managed session
    """

    def __init__(
        self,
        base_path: str = DEFAULT_DRAFTS_PATH,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        config: Optional[EditorConfig] = None,
        event_handler: Optional[Callable[[str, Dict[str, Any]], None]] = None,
    ):
        if max_sessions < 1:
            raise ValueError(f"max_sessions must be at least 1, got {max_sessions}")
        self.base_path = base_path
        self.max_sessions = max_sessions
        self.config = config or EditorConfig()
        self.event_handler = event_handler
        self.sessions: OrderedDict[str, RichTextSession] = OrderedDict()
        # Last content written to or read from each draft
        self._saved: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self.sessions)

    def __contains__(self, doc_id: str) -> bool:
        return doc_id in self.sessions

    def get_session(self, doc_id: str) -> Optional[RichTextSession]:
        session = self.sessions.get(doc_id)
        if session is not None:
            self.sessions.move_to_end(doc_id)
        return session

    def create_session(self, doc_id: str, html: str = "") -> RichTextSession:
        """
        Create a new session

        Raises:
            ValueError: If the id is invalid or already in use
        """
        validate_doc_id(doc_id)
        if doc_id in self.sessions:
            raise ValueError(f"Session already exists: {doc_id}")

        session = RichTextSession(
            doc_id=doc_id,
            html=html,
            config=self.config,
            event_handler=self.event_handler,
        )
        self.sessions[doc_id] = session
        self._saved[doc_id] = session.html
        self._evict()
        return session

    def get_or_create_session(self, doc_id: str, html: str = "") -> RichTextSession:
        session = self.get_session(doc_id)
        if session is None:
            session = self.create_session(doc_id, html)
        return session

    def close_session(self, doc_id: str) -> bool:
        if self.sessions.pop(doc_id, None) is None:
            return False
        self._saved.pop(doc_id, None)
        logger.info(f"Closed session '{doc_id}'")
        return True

    def list_sessions(self) -> List[str]:
        return list(self.sessions)

    def draft_path(self, doc_id: str) -> str:
        return os.path.join(self.base_path, f"{validate_doc_id(doc_id)}.html")

    def save_draft(self, doc_id: str) -> str:
        """
        Write a session's document to its draft file

        Returns:
            Path of the draft

        Raises:
            KeyError: If there is no such session
        """
        session = self.get_session(doc_id)
        if session is None:
            raise KeyError(f"No session: {doc_id}")

        path = self._write_draft(doc_id, session.html)
        logger.info(f"Saved draft '{doc_id}' to {path}")
        return path

    def load_draft(self, doc_id: str) -> RichTextSession:
        """
        Load a draft into its session, creating the session if needed

        Raises:
            FileNotFoundError: If no draft was saved for ``doc_id``
        """
        path = self.draft_path(doc_id)
        with open(path, "r", encoding="utf-8") as f:
            html = f.read()

        session = self.get_or_create_session(doc_id)
        session.set_document(html)
        self._saved[doc_id] = session.html
        logger.info(f"Loaded draft '{doc_id}' from {path}")
        return session

    def _write_draft(self, doc_id: str, html: str) -> str:
        path = self.draft_path(doc_id)
        os.makedirs(self.base_path, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(html)
        self._saved[doc_id] = html
        return path

    def _evict(self) -> None:
        while len(self.sessions) > self.max_sessions:
            doc_id, session = self.sessions.popitem(last=False)
            if session.html != self._saved.get(doc_id, ""):
                try:
                    path = self._write_draft(doc_id, session.html)
                    logger.info(f"Saved unsaved changes of evicted session '{doc_id}' to {path}")
                except OSError as e:
                    logger.warning(f"Evicted session '{doc_id}' discarded unsaved changes: {e}")
            self._saved.pop(doc_id, None)
            logger.info(f"Evicted least recently used session '{doc_id}'")
