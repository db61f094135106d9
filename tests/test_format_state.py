# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

import pytest

from richtext_editor.model.format_state import ActiveFormatState, derive_state, rgb_to_hex
from richtext_editor.model.selection import TextRange


class TestRgbToHex:

    @pytest.mark.parametrize("value,expected", [
        ("rgb(255, 0, 0)", "#ff0000"),
        ("rgba(0, 128, 255, 0.5)", "#0080ff"),
        ("#ABC", "#aabbcc"),
        ("#123456", "#123456"),
        ("red", "#000000"),
        (None, "#000000"),
    ])
    def test_conversion(self, value, expected):
        assert rgb_to_hex(value) == expected


class TestDeriveState:

    def test_no_selection_gives_defaults(self):
        assert derive_state("<p><b>A</b></p>", None) == ActiveFormatState()

    def test_bold_requires_every_node(self):
        html = "<p><b>A</b>B</p>"
        assert derive_state(html, TextRange(0, 1)).bold
        assert not derive_state(html, TextRange(0, 2)).bold

    def test_caret_uses_preceding_text(self):
        html = "<p><i>ab</i>cd</p>"
        assert derive_state(html, TextRange(2, 2)).italic
        assert not derive_state(html, TextRange(3, 3)).italic

    def test_style_based_formats(self):
        html = '<p><span style="font-weight: 700; text-decoration: underline line-through">x</span></p>'
        state = derive_state(html, TextRange(0, 1))
        assert state.bold
        assert state.underline
        assert state.strikethrough

    def test_lists_and_blocks(self):
        html = "<ol><li>one</li></ol><h2>two</h2>"
        assert derive_state(html, TextRange(1, 1)).ordered_list
        state = derive_state(html, TextRange(4, 4))
        assert state.block_tag == "h2"
        assert not state.ordered_list

    def test_alignment(self):
        html = '<p style="text-align: center;">x</p>'
        assert derive_state(html, TextRange(0, 1)).alignment == "center"

    def test_font_values(self):
        html = '<p><font face="\'Times New Roman\'" size="5" color="rgb(0, 0, 255)">x</font></p>'
        state = derive_state(html, TextRange(0, 1))
        assert state.font_name == "Times New Roman"
        assert state.font_size == "5"
        assert state.fore_color == "#0000ff"

    def test_to_dict(self):
        data = derive_state("<p>x</p>", TextRange(0, 1)).to_dict()
        assert data["block_tag"] == "p"
        assert data["fore_color"] == "#000000"
        assert data["alignment"] == "left"
