# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

import pytest

from richtext_editor.model.commands import FormatCommandExecutor, normalize_link_url
from richtext_editor.model.results import IgnoredReason
from richtext_editor.model.selection import TextRange


@pytest.fixture
def executor():
    return FormatCommandExecutor()


def run(executor, html, command, start, end, value=None):
    return executor.execute(html, command, value, TextRange(start, end))


class TestInlineToggles:

    def test_bold_wraps_selection(self, executor):
        outcome = run(executor, "<p>A</p>", "bold", 0, 1)
        assert outcome.result.applied
        assert outcome.html == "<p><b>A</b></p>"

    def test_bold_partial(self, executor):
        outcome = run(executor, "<p>Hello</p>", "bold", 0, 2)
        assert outcome.html == "<p><b>He</b>llo</p>"

    def test_bold_toggles_off(self, executor):
        outcome = run(executor, "<p><b>A</b></p>", "bold", 0, 1)
        assert outcome.html == "<p>A</p>"

    def test_strong_counts_as_bold(self, executor):
        outcome = run(executor, "<p><strong>A</strong></p>", "bold", 0, 1)
        assert outcome.html == "<p>A</p>"

    @pytest.mark.parametrize("command,tag", [
        ("italic", "i"),
        ("underline", "u"),
        ("strikeThrough", "strike"),
    ])
    def test_other_toggles(self, executor, command, tag):
        outcome = run(executor, "<p>text</p>", command, 0, 4)
        assert outcome.html == f"<p><{tag}>text</{tag}></p>"

    def test_collapsed_selection_is_ignored(self, executor):
        outcome = run(executor, "<p>A</p>", "bold", 1, 1)
        assert not outcome.result.applied
        assert outcome.result.reason is IgnoredReason.COLLAPSED_SELECTION
        assert outcome.html == "<p>A</p>"


class TestCommandErrors:

    def test_unknown_command(self, executor):
        with pytest.raises(ValueError):
            run(executor, "<p>A</p>", "explode", 0, 1)

    def test_no_selection(self, executor):
        outcome = executor.execute("<p>A</p>", "bold", None, None)
        assert outcome.result.reason is IgnoredReason.NO_SELECTION

    def test_unsupported_block(self, executor):
        with pytest.raises(ValueError):
            run(executor, "<p>A</p>", "formatBlock", 0, 1, "table")

    def test_commands_listed(self, executor):
        assert "bold" in executor.commands
        assert executor.supports("insertHTML")
        assert not executor.supports("explode")


class TestLinks:

    @pytest.mark.parametrize("url,expected", [
        ("example.com", "http://example.com"),
        ("https://example.com", "https://example.com"),
        ("  http://a.b  ", "http://a.b"),
        ("mailto:me@example.com", "mailto:me@example.com"),
        ("", ""),
    ])
    def test_normalize_link_url(self, url, expected):
        assert normalize_link_url(url) == expected

    def test_create_link(self, executor):
        outcome = run(executor, "<p>example</p>", "createLink", 0, 7, "example.com")
        assert outcome.html == '<p><a href="http://example.com">example</a></p>'

    def test_empty_url_rejected(self, executor):
        outcome = run(executor, "<p>example</p>", "createLink", 0, 7, "   ")
        assert outcome.result.reason is IgnoredReason.EMPTY_URL
        assert outcome.html == "<p>example</p>"

    def test_link_at_caret_inserts_url(self, executor):
        outcome = run(executor, "<p>Go </p>", "createLink", 3, 3, "https://x.org")
        assert outcome.html == '<p>Go <a href="https://x.org">https://x.org</a></p>'

    def test_unlink(self, executor):
        outcome = run(executor, '<p><a href="http://x">link</a></p>', "unlink", 0, 4)
        assert outcome.html == "<p>link</p>"


class TestBlocks:

    @pytest.mark.parametrize("value", ["h1", "<H1>", "H1"])
    def test_format_block(self, executor, value):
        outcome = run(executor, "<p>Title</p>", "formatBlock", 2, 2, value)
        assert outcome.html == "<h1>Title</h1>"

    def test_justify(self, executor):
        outcome = run(executor, "<p>x</p>", "justifyCenter", 0, 1)
        assert outcome.html == '<p style="text-align: center;">x</p>'
        outcome = run(executor, outcome.html, "justifyLeft", 0, 1)
        assert outcome.html == "<p>x</p>"

    def test_list_toggle(self, executor):
        outcome = run(executor, "<p>a</p><p>b</p>", "insertUnorderedList", 0, 2)
        assert outcome.html == "<ul><li>a</li><li>b</li></ul>"
        outcome = run(executor, outcome.html, "insertUnorderedList", 0, 2)
        assert outcome.html == "<p>a</p><p>b</p>"

    def test_list_type_switch(self, executor):
        outcome = run(executor, "<ul><li>a</li></ul>", "insertOrderedList", 0, 1)
        assert outcome.html == "<ol><li>a</li></ol>"


class TestFonts:

    def test_font_name(self, executor):
        outcome = run(executor, "<p>abc</p>", "fontName", 0, 3, "Arial")
        assert outcome.html == '<p><font face="Arial">abc</font></p>'

    def test_font_size_clamped(self, executor):
        outcome = run(executor, "<p>abc</p>", "fontSize", 0, 3, "12")
        assert outcome.html == '<p><font size="7">abc</font></p>'

    def test_font_size_must_be_numeric(self, executor):
        with pytest.raises(ValueError):
            run(executor, "<p>abc</p>", "fontSize", 0, 3, "large")

    def test_fore_color_rgb_normalised(self, executor):
        outcome = run(executor, "<p>abc</p>", "foreColor", 0, 3, "rgb(255, 0, 0)")
        assert outcome.html == '<p><font color="#ff0000">abc</font></p>'

    def test_remove_format(self, executor):
        outcome = run(executor, "<p><b><i>abc</i></b></p>", "removeFormat", 0, 3)
        assert outcome.html == "<p>abc</p>"


class TestInsertion:

    def test_insert_text_at_caret(self, executor):
        outcome = run(executor, "<p>ab</p>", "insertText", 1, 1, "X")
        assert outcome.html == "<p>aXb</p>"
        assert outcome.selection == TextRange(2, 2)

    def test_insert_html_replaces_selection(self, executor):
        outcome = run(executor, "<p>abc</p>", "insertHTML", 1, 2, "<i>Z</i>")
        assert outcome.html == "<p>a<i>Z</i>c</p>"

    def test_insert_block_splits_paragraph(self, executor):
        outcome = run(executor, "<p>A</p>", "insertHTML", 1, 1, "<div>B</div>")
        assert outcome.html == "<p>A</p><div>B</div>"

    def test_insert_into_empty_document(self, executor):
        outcome = executor.execute("", "insertHTML", "<p>x</p>", TextRange(0, 0))
        assert outcome.html == "<p>x</p>"


class TestCellColor:

    def test_set_cell_color(self, executor):
        html = "<table><tr><td>a</td><td>b</td></tr></table>"
        outcome = run(executor, html, "setCellColor", 1, 1, "#ff0000")
        assert outcome.html == '<table><tr><td>a</td><td style="background-color: #ff0000;">b</td></tr></table>'

    def test_outside_cell(self, executor):
        outcome = run(executor, "<p>a</p>", "setCellColor", 0, 0, "#ff0000")
        assert outcome.result.reason is IgnoredReason.NOT_IN_CELL
        assert outcome.result.message == "Please select a table cell first"
