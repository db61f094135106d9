# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Selection and selected-cell references.

A TextRange addresses the document through its flat text projection: the
concatenation of every text node in document order. Offsets therefore stay
valid across re-parsing and across edits that only change markup.

A CellRef names a table cell by position (table ordinal, row, column) and
is resolved against the live document on every use. A reference taken from
the document also carries the fingerprint of its table; once the table is
edited, moved or replaced the reference resolves to "no selection" even if
another cell now sits at the same position.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TextRange:
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < 0:
            raise ValueError(f"Selection offsets must be non-negative: ({self.start}, {self.end})")
        # Backwards selections (focus before anchor) are normalised
        if self.start > self.end:
            start, end = self.end, self.start
            object.__setattr__(self, "start", start)
            object.__setattr__(self, "end", end)

    @classmethod
    def caret(cls, offset: int) -> "TextRange":
        return cls(offset, offset)

    @property
    def collapsed(self) -> bool:
        return self.start == self.end

    def clamp(self, length: int) -> "TextRange":
        """Restrict the range to a document whose text has ``length`` characters"""
        return TextRange(min(self.start, length), min(self.end, length))

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end, "collapsed": self.collapsed}


@dataclass(frozen=True)
class CellRef:
    table: int
    row: int
    column: int
    # Fingerprint of the owning table when the cell was selected
    key: Optional[str] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if min(self.table, self.row, self.column) < 0:
            raise ValueError(f"Cell reference indices must be non-negative: {self}")

    def to_dict(self) -> Dict[str, int]:
        return {"table": self.table, "row": self.row, "column": self.column}
