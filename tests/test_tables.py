# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

import pytest

from richtext_editor.model.dom import parse_html
from richtext_editor.model.results import IgnoredReason
from richtext_editor.model.selection import CellRef, TextRange
from richtext_editor.model.tables import (
    TableSpec,
    TableStructureEditor,
    cell_at,
    cell_ref_for,
    resolve_cell,
    row_cells,
    table_rows,
)


@pytest.fixture
def editor():
    return TableStructureEditor()


def table_shape(html, index=0):
    table = parse_html(html).find_all("table")[index]
    return [[cell.name for cell in row_cells(row)] for row in table_rows(table)]


class TestTableSpec:

    @pytest.mark.parametrize("rows,cols,expected", [
        (0, 0, (1, 1)),
        (12, 3, (9, 3)),
        (-4, 20, (1, 9)),
        (5, 5, (5, 5)),
    ])
    def test_sizes_are_clamped(self, rows, cols, expected):
        spec = TableSpec(rows=rows, cols=cols)
        assert (spec.rows, spec.cols) == expected

    def test_markup(self):
        html = TableSpec(rows=2, cols=1, border_color="#333333", cell_color="#eeeeee").to_html()
        assert html == (
            '<table style="width: 100%; border-spacing:0; border: 1px solid #333333;">'
            '<thead><tr><th style="padding:6px; border:1px solid #333333; background:#eeeeee;">Header 1</th></tr></thead>'
            '<tbody><tr><td style="padding:6px; border:1px solid #333333; background:#eeeeee;">&nbsp;</td></tr></tbody>'
            '</table><p></p>'
        )


class TestInsertTable:

    def test_two_by_three(self, editor):
        outcome = editor.insert_table("", TableSpec(rows=2, cols=3), None)
        assert outcome.result.applied
        assert table_shape(outcome.html) == [["th", "th", "th"], ["td", "td", "td"]]
        assert outcome.html.endswith("</table><p></p>")

    def test_appends_without_selection(self, editor):
        outcome = editor.insert_table("<p>A</p>", TableSpec(), None)
        assert outcome.html.startswith("<p>A</p><table")

    def test_inserts_at_caret(self, editor):
        outcome = editor.insert_table("<p>AB</p>", TableSpec(rows=1, cols=1), TextRange(1, 1))
        assert outcome.html.startswith("<p>A</p><table")
        assert outcome.html.endswith("</table><p></p><p>B</p>")


class TestStructureEdits:

    @pytest.fixture
    def html(self):
        return TableSpec(rows=2, cols=3).to_html()

    def test_add_row_below(self, editor, html):
        outcome = editor.add_row(html, CellRef(0, 1, 0), "below")
        assert table_shape(outcome.html) == [["th"] * 3, ["td"] * 3, ["td"] * 3]

    def test_add_row_above_header_copies_header_cells(self, editor, html):
        outcome = editor.add_row(html, CellRef(0, 0, 2), "above")
        assert table_shape(outcome.html) == [["th"] * 3, ["th"] * 3, ["td"] * 3]
        first = table_rows(parse_html(outcome.html).table)[0]
        assert [cell.get_text() for cell in row_cells(first)] == ["\xa0"] * 3

    def test_add_column_right(self, editor, html):
        outcome = editor.add_column(html, CellRef(0, 1, 1), "right")
        table = parse_html(outcome.html).table
        for row in table_rows(table):
            cells = row_cells(row)
            assert len(cells) == 4
            assert cells[2].get_text() == "\xa0"
        assert row_cells(table_rows(table)[0])[1].get_text() == "Header 2"
        assert row_cells(table_rows(table)[0])[3].get_text() == "Header 3"

    def test_add_column_left(self, editor, html):
        outcome = editor.add_column(html, CellRef(0, 0, 0), "left")
        header = row_cells(table_rows(parse_html(outcome.html).table)[0])
        assert [cell.get_text() for cell in header] == ["\xa0", "Header 1", "Header 2", "Header 3"]

    def test_add_column_appends_to_short_rows(self, editor):
        html = "<table><tr><td>a</td><td>b</td></tr><tr><td>c</td></tr></table>"
        outcome = editor.add_column(html, CellRef(0, 0, 1), "right")
        assert table_shape(outcome.html) == [["td"] * 3, ["td"] * 2]

    def test_delete_row(self, editor, html):
        outcome = editor.delete_row(html, CellRef(0, 1, 0))
        assert table_shape(outcome.html) == [["th"] * 3]
        assert "<tbody>" not in outcome.html

    def test_delete_only_row_is_refused(self, editor):
        html = TableSpec(rows=1, cols=2).to_html()
        outcome = editor.delete_row(html, CellRef(0, 0, 0))
        assert outcome.result.reason is IgnoredReason.LAST_ROW
        assert outcome.html == html

    def test_delete_column(self, editor, html):
        outcome = editor.delete_column(html, CellRef(0, 0, 1))
        assert table_shape(outcome.html) == [["th"] * 2, ["td"] * 2]
        assert "Header 2" not in outcome.html

    def test_delete_only_column_is_refused(self, editor):
        html = TableSpec(rows=2, cols=1).to_html()
        outcome = editor.delete_column(html, CellRef(0, 1, 0))
        assert outcome.result.reason is IgnoredReason.LAST_COLUMN
        assert outcome.html == html

    def test_stale_cell(self, editor, html):
        outcome = editor.add_row(html, CellRef(0, 5, 0))
        assert outcome.result.reason is IgnoredReason.STALE_SELECTION
        assert outcome.result.message == "Please select a table cell first"
        assert outcome.html == html

    def test_invalid_position(self, editor, html):
        with pytest.raises(ValueError):
            editor.add_row(html, CellRef(0, 0, 0), "left")
        with pytest.raises(ValueError):
            editor.add_column(html, CellRef(0, 0, 0), "below")


class TestCellLookup:

    def test_nested_tables_are_counted_separately(self):
        html = (
            "<table><tr><td>a<table><tr><td>inner</td></tr></table></td></tr>"
            "<tr><td>b</td></tr></table>"
        )
        soup = parse_html(html)
        assert len(table_rows(soup.table)) == 2
        assert resolve_cell(soup, CellRef(1, 0, 0)).get_text() == "inner"
        assert resolve_cell(soup, CellRef(0, 1, 0)).get_text() == "b"
        assert resolve_cell(soup, CellRef(2, 0, 0)) is None

    def test_cell_at(self):
        html = "<p>x</p><table><tr><td>ab</td><td>cd</td></tr></table>"
        assert cell_at(html, 3) == CellRef(0, 0, 1)
        assert cell_at(html, 0) is None

    def test_reference_follows_its_table(self, editor):
        html = "<table><tr><td>a</td></tr><tr><td>b</td></tr></table>"
        soup = parse_html(html)
        ref = cell_ref_for(soup, soup.find_all("td")[1])
        assert ref == CellRef(0, 1, 0)
        assert resolve_cell(parse_html(html), ref).get_text() == "b"

        # Another cell at the same position
        replaced = "<table><tr><td>a</td></tr><tr><td>c</td></tr></table>"
        assert resolve_cell(parse_html(replaced), ref) is None
        # An identical table inserted ahead
        assert resolve_cell(parse_html("<p>z</p>" + html), ref) is None
        assert resolve_cell(parse_html(html + html), ref).get_text() == "b"

        outcome = editor.delete_row(replaced, ref)
        assert outcome.result.reason is IgnoredReason.STALE_SELECTION
        assert outcome.html == replaced
