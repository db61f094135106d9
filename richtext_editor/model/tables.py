# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Table insertion and structural table edits

Structural edits (add/delete row, add/delete column) are anchored to a
CellRef. The reference is resolved against the parsed document on every
call; when it no longer names a cell, or its table no longer matches the
fingerprint taken at selection time, the edit is ignored with
STALE_SELECTION.

Rows and cells are counted per table: rows of nested tables belong to the
nested table, not to the one holding it.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from ..constants import (
    CELL_PLACEHOLDER,
    DEFAULT_BORDER_COLOR,
    DEFAULT_CELL_COLOR,
    DEFAULT_TABLE_COLS,
    DEFAULT_TABLE_ROWS,
    MAX_TABLE_SIZE,
    MIN_TABLE_SIZE,
)
from .commands import FormatCommandExecutor
from .dom import CELL_TAGS, clone_shell, index_of, is_text, nearest, node_at, parse_html, serialize
from .results import (
    SELECT_CELL_NOTICE,
    EditOutcome,
    EditResult,
    IgnoredReason,
    OperationIgnored,
)
from .selection import CellRef, TextRange

logger = logging.getLogger(__name__)

ROW_POSITIONS = ("above", "below")
COLUMN_POSITIONS = ("left", "right")
SECTION_TAGS = ("thead", "tbody", "tfoot")


def clamp_table_size(value: int) -> int:
    return max(MIN_TABLE_SIZE, min(MAX_TABLE_SIZE, int(value)))


@dataclass
class TableSpec:
    """Dimensions and colours of a table to insert; sizes are clamped to 1-9"""
    rows: int = DEFAULT_TABLE_ROWS
    cols: int = DEFAULT_TABLE_COLS
    border_color: str = DEFAULT_BORDER_COLOR
    cell_color: str = DEFAULT_CELL_COLOR

    def __post_init__(self):
        self.rows = clamp_table_size(self.rows)
        self.cols = clamp_table_size(self.cols)

    def to_html(self) -> str:
        """Markup for the table followed by an empty paragraph to keep typing in"""
        cell_style = f"padding:6px; border:1px solid {self.border_color}; background:{self.cell_color};"
        parts = [f'<table style="width: 100%; border-spacing:0; border: 1px solid {self.border_color};">']

        parts.append("<thead><tr>")
        for col in range(self.cols):
            parts.append(f'<th style="{cell_style}">Header {col + 1}</th>')
        parts.append("</tr></thead>")

        parts.append("<tbody>")
        for _ in range(1, self.rows):
            parts.append("<tr>")
            parts.extend(f'<td style="{cell_style}">&nbsp;</td>' for _ in range(self.cols))
            parts.append("</tr>")
        parts.append("</tbody></table><p></p>")
        return "".join(parts)


###############################################################################
# Table lookup

def table_rows(table: Tag) -> List[Tag]:
    """Rows owned by ``table`` (rows of nested tables excluded)"""
    return [row for row in table.find_all("tr") if row.find_parent("table") is table]


def row_cells(row: Tag) -> List[Tag]:
    return row.find_all(sorted(CELL_TAGS), recursive=False)


def table_fingerprint(table: Tag) -> str:
    """Text offset and markup of ``table``; any edit to the table or to the text before it changes it"""
    offset = sum(len(node) for node in table.find_all_previous(string=True) if is_text(node))
    return f"{offset}:{serialize(table)}"


def resolve_cell(soup: BeautifulSoup, ref: CellRef) -> Optional[Tag]:
    """Find the cell named by ``ref``, or None when it no longer exists or its table changed"""
    tables = soup.find_all("table")
    if ref.table >= len(tables):
        return None
    table = tables[ref.table]
    if ref.key is not None and table_fingerprint(table) != ref.key:
        return None
    rows = table_rows(table)
    if ref.row >= len(rows):
        return None
    cells = row_cells(rows[ref.row])
    if ref.column >= len(cells):
        return None
    return cells[ref.column]


def cell_ref_for(soup: BeautifulSoup, cell: Tag) -> CellRef:
    table = cell.find_parent("table")
    row = cell.parent
    return CellRef(
        table=index_of(soup.find_all("table"), table),
        row=index_of(table_rows(table), row),
        column=index_of(row_cells(row), cell),
        key=table_fingerprint(table),
    )


def cell_at(document: str, offset: int) -> Optional[CellRef]:
    """CellRef of the cell holding the caret at ``offset``, if any"""
    soup = parse_html(document)
    node = node_at(soup, offset, forward=True)
    if node is None:
        return None
    cell = nearest(node, lambda tag: tag.name in CELL_TAGS)
    if cell is None or cell.find_parent("table") is None:
        return None
    return cell_ref_for(soup, cell)


###############################################################################
# Editor

class TableStructureEditor:
    """
    Inserts tables and edits their structure around a selected cell

    Every method takes the current document string and returns an
    EditOutcome; nothing is mutated in place.
    """

    def __init__(self, executor: Optional[FormatCommandExecutor] = None):
        self._executor = executor or FormatCommandExecutor()

    def insert_table(self, document: str, spec: TableSpec, selection: Optional[TextRange]) -> EditOutcome:
        """
        Insert a table at the caret, or at the end of the document without one

        Args:
            document: Current document HTML
            spec: Table dimensions and colours
            selection: Current selection; None appends the table

        Returns:
            EditOutcome with the new HTML
        """
        markup = spec.to_html()
        if selection is not None:
            logger.debug(f"Inserting {spec.rows}x{spec.cols} table at {selection.start}")
            return self._executor.execute(document, "insertHTML", markup, selection)

        logger.debug(f"Appending {spec.rows}x{spec.cols} table")
        return EditOutcome(serialize(parse_html(document + markup)), None, EditResult.ok())

    def add_row(self, document: str, ref: CellRef, position: str = "below") -> EditOutcome:
        self._check_position(position, ROW_POSITIONS)

        def operation(soup: BeautifulSoup, cell: Tag) -> None:
            row = cell.parent
            new_row = soup.new_tag("tr")
            for original in row_cells(row):
                new_cell = clone_shell(soup, original)
                new_cell.string = CELL_PLACEHOLDER
                new_row.append(new_cell)
            if position == "above":
                row.insert_before(new_row)
            else:
                row.insert_after(new_row)

        return self._edit(document, ref, operation, f"add_row({position})")

    def add_column(self, document: str, ref: CellRef, position: str = "right") -> EditOutcome:
        self._check_position(position, COLUMN_POSITIONS)

        def operation(soup: BeautifulSoup, cell: Tag) -> None:
            table = cell.find_parent("table")
            index = index_of(row_cells(cell.parent), cell)
            target = index if position == "left" else index + 1

            for row in table_rows(table):
                cells = row_cells(row)
                reference = cells[index] if index < len(cells) else (cells[-1] if cells else None)
                if reference is not None:
                    new_cell = clone_shell(soup, reference)
                else:
                    new_cell = soup.new_tag("td")
                new_cell.string = CELL_PLACEHOLDER
                if target >= len(cells):
                    row.append(new_cell)
                else:
                    cells[target].insert_before(new_cell)

        return self._edit(document, ref, operation, f"add_column({position})")

    def delete_row(self, document: str, ref: CellRef) -> EditOutcome:
        def operation(soup: BeautifulSoup, cell: Tag) -> None:
            row = cell.parent
            table = cell.find_parent("table")
            if len(table_rows(table)) <= 1:
                raise OperationIgnored(IgnoredReason.LAST_ROW, "Cannot delete the only row in the table")
            section = row.parent
            row.extract()
            if section is not None and section.name in SECTION_TAGS and section.find("tr") is None:
                section.extract()

        return self._edit(document, ref, operation, "delete_row")

    def delete_column(self, document: str, ref: CellRef) -> EditOutcome:
        def operation(soup: BeautifulSoup, cell: Tag) -> None:
            table = cell.find_parent("table")
            index = index_of(row_cells(cell.parent), cell)
            rows = table_rows(table)
            if rows and len(row_cells(rows[0])) <= 1:
                raise OperationIgnored(IgnoredReason.LAST_COLUMN, "Cannot delete the only column in the table")
            for row in rows:
                cells = row_cells(row)
                if index < len(cells):
                    cells[index].extract()

        return self._edit(document, ref, operation, "delete_column")

    def _edit(self, document: str, ref: CellRef, operation, name: str) -> EditOutcome:
        soup = parse_html(document)
        cell = resolve_cell(soup, ref)
        if cell is None:
            logger.warning(f"{name}: selected cell {ref} is no longer in the document")
            return EditOutcome(document, None, EditResult.ignored(IgnoredReason.STALE_SELECTION, SELECT_CELL_NOTICE))

        try:
            operation(soup, cell)
        except OperationIgnored as e:
            logger.info(f"{name} refused: {e.message}")
            return EditOutcome(document, None, e.to_result())

        logger.debug(f"{name} applied at {ref}")
        return EditOutcome(serialize(soup), None, EditResult.ok())

    @staticmethod
    def _check_position(position: str, allowed: tuple) -> None:
        if position not in allowed:
            raise ValueError(f"Position must be one of {', '.join(allowed)}, got {position!r}")
