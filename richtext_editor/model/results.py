# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Explicit outcomes for editing operations.

Operations that cannot apply (no selected cell, last row of a table, empty
link URL, ...) leave the document untouched and report why, instead of
returning silently.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .selection import TextRange

SELECT_CELL_NOTICE = "Please select a table cell first"


class IgnoredReason(Enum):
    """Why an operation left the document unchanged"""
    NO_SELECTION = "no_selection"
    STALE_SELECTION = "stale_selection"
    COLLAPSED_SELECTION = "collapsed_selection"
    NOT_IN_CELL = "not_in_cell"
    LAST_ROW = "last_row"
    LAST_COLUMN = "last_column"
    EMPTY_URL = "empty_url"
    NO_CHANGE = "no_change"
    NOTHING_TO_UNDO = "nothing_to_undo"
    NOTHING_TO_REDO = "nothing_to_redo"


@dataclass(frozen=True)
class EditResult:
    applied: bool
    reason: Optional[IgnoredReason] = None
    message: str = ""

    @classmethod
    def ok(cls) -> "EditResult":
        return cls(applied=True)

    @classmethod
    def ignored(cls, reason: IgnoredReason, message: str = "") -> "EditResult":
        return cls(applied=False, reason=reason, message=message)

    def __bool__(self) -> bool:
        return self.applied

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applied": self.applied,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
        }


@dataclass
class EditOutcome:
    """Result of a pure document transformation: new HTML, caret and result"""
    html: str
    selection: Optional[TextRange]
    result: EditResult


class OperationIgnored(Exception):
    """Raised inside an operation to abandon it without touching the document"""

    def __init__(self, reason: IgnoredReason, message: str = ""):
        super().__init__(message or reason.value)
        self.reason = reason
        self.message = message

    def to_result(self) -> EditResult:
        return EditResult.ignored(self.reason, self.message)
