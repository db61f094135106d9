# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

import pytest

from richtext_editor.model.dom import (
    canonicalize,
    index_of,
    isolate,
    isolate_range,
    node_at,
    parse_html,
    parse_style,
    serialize,
    set_style_property,
    text_length,
    text_nodes,
)


class TestSerialization:

    def test_nbsp_and_markup_characters_are_escaped(self):
        assert canonicalize("<p>a&nbsp;&amp;&lt;b</p>") == "<p>a&nbsp;&amp;&lt;b</p>"

    def test_other_characters_stay_literal(self):
        assert canonicalize("<p>caf&eacute; &quot;x&quot;</p>") == '<p>café "x"</p>'

    def test_void_elements(self):
        assert canonicalize("<p>a<br>b</p>") == "<p>a<br/>b</p>"

    def test_empty(self):
        assert canonicalize(None) == ""
        assert canonicalize("") == ""


class TestTextOffsets:

    def test_text_length_ignores_comments_and_styles(self):
        soup = parse_html("<style>p{}</style><!-- note --><p>He<b>llo</b></p>")
        assert text_length(soup) == 5
        assert [str(node) for node in text_nodes(soup)] == ["He", "llo"]

    def test_isolate_range_splits_boundaries(self):
        soup = parse_html("<p>Hello world</p>")
        nodes = isolate_range(soup, 2, 7)
        assert [str(node) for node in nodes] == ["llo w"]
        assert serialize(soup) == "<p>Hello world</p>"

    def test_node_at_prefers_preceding_node(self):
        soup = parse_html("<p>ab<b>cd</b></p>")
        assert str(node_at(soup, 2)) == "ab"
        assert str(node_at(soup, 2, forward=True)) == "cd"
        assert str(node_at(soup, 0)) == "ab"
        assert node_at(parse_html(""), 0) is None


class TestTreeSurgery:

    def test_isolate_splits_ancestor(self):
        soup = parse_html("<p><b>abc</b></p>")
        middle = isolate_range(soup, 1, 2)[0]
        bold = soup.find("b")
        isolate(soup, middle, bold)
        assert serialize(soup) == "<p><b>a</b><b>b</b><b>c</b></p>"

    def test_index_of_uses_identity(self):
        soup = parse_html("<td>x</td><td>x</td>")
        cells = soup.find_all("td")
        assert index_of(cells, cells[1]) == 1
        with pytest.raises(ValueError):
            index_of(cells[:1], cells[1])


class TestStyles:

    def test_parse_style(self):
        assert parse_style("color: red; FONT-WEIGHT:bold;;") == {"color": "red", "font-weight": "bold"}

    def test_set_and_remove_property(self):
        tag = parse_html('<p style="color: red">x</p>').p
        set_style_property(tag, "text-align", "center")
        assert tag["style"] == "color: red; text-align: center;"
        set_style_property(tag, "color", None)
        set_style_property(tag, "text-align", None)
        assert "style" not in tag.attrs
