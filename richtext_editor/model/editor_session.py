# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
RichTextSession: one editing session over an HTML document

SESSION STATE:
==============

- ``html``: the document, always in the editor's canonical serialization
- ``history``: bounded linear undo/redo of committed documents
- ``selection``: flat text offsets of the caret/selection, None when the
  caret is outside the editing surface
- ``selected_cell``: CellRef of the table cell targeted by structural
  table edits, resolved against the document on every use
- ``format_state``: toolbar flags, recomputed with ``derive_state`` after
  every mutation and selection change
- ``show_source`` / ``focused``: view flags of the host surface

COMMIT FLOW:
============

Every operation computes the new document from the current one, then
``_commit`` pushes it to history, refreshes the format state and emits
DOCUMENT_CHANGED. Operations that cannot apply return an EditResult
carrying the reason and leave the document untouched.

```python
session = RichTextSession(html="<p>A</p>")
session.set_selection(TextRange(0, 1))
session.execute("bold")      # <p><b>A</b></p>
session.undo()               # <p>A</p>
```
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..config import EditorConfig
from ..constants import DEFAULT_DOC_ID, DEFAULT_TABLE_COLS, DEFAULT_TABLE_ROWS
from .commands import FormatCommandExecutor
from .dom import canonicalize, parse_html, text_length
from .export import ExportedFile, export_as_file
from .format_state import ActiveFormatState, derive_state
from .history import HistoryManager
from .results import SELECT_CELL_NOTICE, EditOutcome, EditResult, IgnoredReason
from .sanitizer import PasteSanitizer, SanitizationError
from .selection import CellRef, TextRange
from .tables import TableSpec, TableStructureEditor, cell_at, cell_ref_for, resolve_cell
from .text_convert import escape_html, html_to_text, text_to_html, unescape_html

logger = logging.getLogger(__name__)


class SessionEventType(Enum):
    """Events a session reports to its host"""
    DOCUMENT_CHANGED = "document_changed"
    STATE_CHANGED = "state_changed"


class RichTextSession:
    """
    Stateful editing session over one HTML document

    Args:
        doc_id: Identifier reported with every event
        html: Initial document
        config: Session settings (history cap, table colours, export filename)
        event_handler: Called as ``event_handler(event_type, data)`` for every event
        on_document_changed: Called with the new HTML after every committed change
    """

    def __init__(
        self,
        doc_id: str = DEFAULT_DOC_ID,
        html: str = "",
        config: Optional[EditorConfig] = None,
        event_handler: Optional[Callable[[str, Dict[str, Any]], None]] = None,
        on_document_changed: Optional[Callable[[str], None]] = None,
    ):
        self.doc_id = doc_id
        self.config = config or EditorConfig()
        self._event_handler = event_handler
        self._on_document_changed = on_document_changed

        self._executor = FormatCommandExecutor()
        self._tables = TableStructureEditor(self._executor)
        self._sanitizer = PasteSanitizer()

        self._html = canonicalize(html)
        self._history = HistoryManager(self._html, self.config.max_history)
        self._selection: Optional[TextRange] = None
        self._selected_cell: Optional[CellRef] = None
        self._format_state = ActiveFormatState()
        self.show_source = False
        self.focused = False

        logger.info(f"Created editing session '{doc_id}'")

    ###########################################################################
    # State

    @property
    def html(self) -> str:
        return self._html

    @property
    def history(self) -> HistoryManager:
        return self._history

    @property
    def selection(self) -> Optional[TextRange]:
        return self._selection

    @property
    def selected_cell(self) -> Optional[CellRef]:
        """The selected cell, or None when nothing is selected or the cell is gone"""
        if self._selected_cell is None:
            return None
        if resolve_cell(parse_html(self._html), self._selected_cell) is None:
            return None
        return self._selected_cell

    @property
    def format_state(self) -> ActiveFormatState:
        return self._format_state

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    def to_dict(self) -> Dict[str, Any]:
        selected_cell = self.selected_cell
        return {
            "doc_id": self.doc_id,
            "html": self._html,
            "selection": self._selection.to_dict() if self._selection else None,
            "selected_cell": selected_cell.to_dict() if selected_cell else None,
            "format_state": self._format_state.to_dict(),
            "show_source": self.show_source,
            "focused": self.focused,
            "can_undo": self.can_undo,
            "can_redo": self.can_redo,
            "history_length": len(self._history),
        }

    ###########################################################################
    # Document and selection

    def set_document(self, html: Optional[str]) -> None:
        """
        Replace the document from the host

        History restarts from the new content and the selected cell is
        cleared. Nothing is emitted, the host already has the content.
        """
        self._html = canonicalize(html)
        self._history.reset(self._html)
        self._selected_cell = None
        self._selection = self._clamp(self._selection)
        self._refresh_state()
        logger.info(f"Session '{self.doc_id}' document replaced ({len(self._html)} chars)")

    def apply_input(self, html: Optional[str], selection: Optional[TextRange] = None) -> EditResult:
        """Commit content the host read back from the surface after typing"""
        if selection is not None:
            self._selection = selection
        return self._commit(canonicalize(html), "input")

    def set_selection(self, selection: Optional[TextRange]) -> ActiveFormatState:
        """Move the caret/selection; None means the caret left the editing surface"""
        self._selection = self._clamp(selection)
        self._refresh_state()
        self._emit_event(SessionEventType.STATE_CHANGED, {"format_state": self._format_state.to_dict()})
        return self._format_state

    def select(self, start: int, end: Optional[int] = None) -> ActiveFormatState:
        return self.set_selection(TextRange(start, start if end is None else end))

    def select_all(self) -> ActiveFormatState:
        return self.set_selection(TextRange(0, self._text_length()))

    def focus(self) -> None:
        self.focused = True

    def blur(self) -> None:
        self.focused = False
        self._selected_cell = None

    ###########################################################################
    # Formatting commands

    def execute(self, command: str, value: Optional[str] = None) -> EditResult:
        """
        Run a formatting command over the current selection

        Args:
            command: Command name (bold, createLink, formatBlock, insertHTML, ...)
            value: Command argument

        Returns:
            EditResult; ignored commands leave the document untouched

        Raises:
            ValueError: If the command is unknown or its value is malformed
        """
        outcome = self._executor.execute(self._html, command, value, self._selection)
        if self._selection is not None:
            self.focused = True
        return self._apply_outcome(outcome, command)

    def create_link(self, url: str) -> EditResult:
        return self.execute("createLink", url)

    def unlink(self) -> EditResult:
        return self.execute("unlink")

    def set_font_family(self, font_family: Optional[str]) -> EditResult:
        # An empty family resets to the default font
        return self.execute("fontName", font_family or "")

    def set_font_size(self, size: Optional[str]) -> EditResult:
        if not size:
            return EditResult.ignored(IgnoredReason.NO_CHANGE)
        return self.execute("fontSize", str(size))

    def set_text_color(self, color: str) -> EditResult:
        return self.execute("foreColor", color)

    def format_block(self, tag: str) -> EditResult:
        return self.execute("formatBlock", tag)

    def set_cell_color(self, color: str) -> EditResult:
        return self.execute("setCellColor", color)

    ###########################################################################
    # History

    def undo(self) -> EditResult:
        snapshot = self._history.undo()
        if snapshot is None:
            return EditResult.ignored(IgnoredReason.NOTHING_TO_UNDO)
        self._restore(snapshot, "undo")
        return EditResult.ok()

    def redo(self) -> EditResult:
        snapshot = self._history.redo()
        if snapshot is None:
            return EditResult.ignored(IgnoredReason.NOTHING_TO_REDO)
        self._restore(snapshot, "redo")
        return EditResult.ok()

    def handle_key(self, key: str, ctrl: bool = False, shift: bool = False) -> Optional[EditResult]:
        """
        Keyboard shortcuts: Ctrl+Z undoes, Ctrl+Y, Ctrl+Shift+Z and Ctrl+R redo

        Any other key dismisses the selected cell, as typing does.

        Returns:
            The undo/redo result, or None when the key is not a shortcut
        """
        if ctrl:
            lowered = key.lower()
            if lowered == "z" and not shift:
                return self.undo()
            if lowered == "z" or lowered in ("y", "r"):
                return self.redo()
        self._selected_cell = None
        return None

    ###########################################################################
    # Tables

    def insert_table(
        self,
        rows: int = DEFAULT_TABLE_ROWS,
        cols: int = DEFAULT_TABLE_COLS,
        border_color: Optional[str] = None,
        cell_color: Optional[str] = None,
    ) -> EditResult:
        """Insert a table at the caret, or at the end when the caret is outside the editor"""
        spec = TableSpec(
            rows=rows,
            cols=cols,
            border_color=border_color or self.config.border_color,
            cell_color=cell_color or self.config.cell_color,
        )
        outcome = self._tables.insert_table(self._html, spec, self._selection)
        return self._apply_outcome(outcome, "insert_table")

    def select_cell(self, ref: CellRef) -> EditResult:
        soup = parse_html(self._html)
        cell = resolve_cell(soup, ref)
        if cell is None:
            self._selected_cell = None
            return EditResult.ignored(IgnoredReason.STALE_SELECTION, SELECT_CELL_NOTICE)
        self._selected_cell = cell_ref_for(soup, cell)
        logger.debug(f"Selected cell {ref}")
        return EditResult.ok()

    def select_cell_at(self, offset: int) -> EditResult:
        """Select the cell holding the caret position ``offset`` (a click in a cell)"""
        ref = cell_at(self._html, offset)
        if ref is None:
            self._selected_cell = None
            return EditResult.ignored(IgnoredReason.NOT_IN_CELL, SELECT_CELL_NOTICE)
        self._selected_cell = ref
        return EditResult.ok()

    def clear_cell_selection(self) -> None:
        self._selected_cell = None

    def add_row(self, position: str = "below") -> EditResult:
        return self._table_edit(lambda ref: self._tables.add_row(self._html, ref, position), "add_row")

    def add_column(self, position: str = "right") -> EditResult:
        return self._table_edit(lambda ref: self._tables.add_column(self._html, ref, position), "add_column")

    def delete_row(self) -> EditResult:
        return self._table_edit(lambda ref: self._tables.delete_row(self._html, ref), "delete_row")

    def delete_column(self) -> EditResult:
        return self._table_edit(lambda ref: self._tables.delete_column(self._html, ref), "delete_column")

    def _table_edit(self, operation: Callable[[CellRef], EditOutcome], action: str) -> EditResult:
        ref = self._selected_cell
        if ref is None:
            logger.warning(f"{action} ignored: no table cell selected")
            return EditResult.ignored(IgnoredReason.NO_SELECTION, SELECT_CELL_NOTICE)

        outcome = operation(ref)
        self._selected_cell = None
        if not outcome.result.applied:
            logger.warning(f"{action} ignored: {outcome.result.reason.value}")
            return outcome.result
        return self._commit(outcome.html, action)

    ###########################################################################
    # Paste, source view, export

    def paste(self, html: Optional[str] = None, text: Optional[str] = None) -> EditResult:
        """
        Insert clipboard content at the selection

        HTML payloads are sanitized; without one (or when it cannot be
        parsed) the plain text is converted to paragraphs.
        """
        fragment = None
        if html:
            try:
                fragment = self._sanitizer.sanitize(html)
            except SanitizationError as e:
                logger.warning(f"Falling back to plain text paste: {e}")
        if fragment is None:
            fragment = text_to_html(text)
        if not fragment:
            return EditResult.ignored(IgnoredReason.NO_CHANGE)
        return self.execute("insertHTML", fragment)

    def clear(self) -> EditResult:
        self._selection = TextRange(0, 0) if self._selection is not None else None
        return self._commit("", "clear")

    def toggle_source(self) -> bool:
        self.show_source = not self.show_source
        self._emit_event(SessionEventType.STATE_CHANGED, {"show_source": self.show_source})
        return self.show_source

    def edit_source(self, html: Optional[str]) -> EditResult:
        """Commit an edit made in the source view"""
        return self._commit(canonicalize(html), "edit_source")

    def convert_to_text(self) -> EditResult:
        """Replace the document with its escaped plain-text projection, shown as source"""
        text = html_to_text(self._html)
        self.show_source = True
        return self._commit(canonicalize(escape_html(text)), "convert_to_text")

    def convert_to_html(self) -> EditResult:
        """Turn the (source or rendered) text back into paragraph markup"""
        raw = self._html if self.show_source else html_to_text(self._html)
        self.show_source = False
        return self._commit(canonicalize(text_to_html(unescape_html(raw))), "convert_to_html")

    def export(self) -> ExportedFile:
        return export_as_file(self._html, self.config.export_filename)

    ###########################################################################
    # Internals

    def _apply_outcome(self, outcome: EditOutcome, action: str) -> EditResult:
        if not outcome.result.applied:
            if outcome.result.reason is not IgnoredReason.NO_CHANGE:
                logger.warning(f"{action} ignored: {outcome.result.reason.value}")
            return outcome.result
        if outcome.selection is not None:
            self._selection = outcome.selection
        return self._commit(outcome.html, action)

    def _commit(self, html: str, action: str) -> EditResult:
        if html == self._html:
            return EditResult.ignored(IgnoredReason.NO_CHANGE)

        self._html = html
        self._history.push(html)
        self._selection = self._clamp(self._selection)
        self._refresh_state()
        logger.debug(f"Session '{self.doc_id}' committed {action}")
        self._document_changed(action)
        return EditResult.ok()

    def _restore(self, html: str, action: str) -> None:
        self._html = html
        self._selection = self._clamp(self._selection)
        self._refresh_state()
        logger.debug(f"Session '{self.doc_id}' {action} to history entry {self._history.index}")
        self._document_changed(action)

    def _document_changed(self, action: str) -> None:
        self._emit_event(SessionEventType.DOCUMENT_CHANGED, {"html": self._html, "action": action})
        if self._on_document_changed:
            try:
                self._on_document_changed(self._html)
            except Exception as e:
                logger.error(f"Error in document change callback: {e}")

    def _emit_event(self, event_type: SessionEventType, event_data: Dict[str, Any]) -> None:
        if self._event_handler:
            try:
                self._event_handler(event_type.value, {"doc_id": self.doc_id, **event_data})
            except Exception as e:
                logger.error(f"Error in event handler: {e}")

    def _refresh_state(self) -> None:
        self._format_state = derive_state(self._html, self._selection)

    def _text_length(self) -> int:
        return text_length(parse_html(self._html))

    def _clamp(self, selection: Optional[TextRange]) -> Optional[TextRange]:
        if selection is None:
            return None
        return selection.clamp(self._text_length())
