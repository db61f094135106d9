# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Active format state: the toolbar flags for the current selection.

``derive_state`` is a pure function of the document and the selection; the
session calls it after every mutation and selection change.
"""

import re
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional

from bs4 import NavigableString, Tag

from ..constants import DEFAULT_BLOCK_TAG, DEFAULT_FORE_COLOR
from .dom import (
    PARAGRAPH_TAGS,
    TEXT_BLOCK_TAGS,
    ancestors,
    get_style_property,
    nearest,
    parse_html,
    selected_text_nodes,
)
from .selection import TextRange

# Inline formats and the elements that carry them
FORMAT_TAGS: Dict[str, tuple] = {
    "bold": ("b", "strong"),
    "italic": ("i", "em"),
    "underline": ("u",),
    "strikeThrough": ("s", "strike", "del"),
}

_RGB = re.compile(r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")
_SHORT_HEX = re.compile(r"^#([0-9a-f])([0-9a-f])([0-9a-f])$")


def rgb_to_hex(color: Optional[str]) -> str:
    """Normalise a CSS colour to ``#rrggbb``; unknown forms fall back to black"""
    value = (color or "").strip().lower()
    if value.startswith("#"):
        short = _SHORT_HEX.match(value)
        if short:
            return "#" + "".join(channel * 2 for channel in short.groups())
        return value
    match = _RGB.match(value)
    if not match:
        return DEFAULT_FORE_COLOR
    red, green, blue = (min(255, int(channel)) for channel in match.groups())
    return f"#{red:02x}{green:02x}{blue:02x}"


def _style_carries(tag: Tag, fmt: str) -> bool:
    if fmt == "bold":
        weight = (get_style_property(tag, "font-weight") or "").lower()
        return weight in ("bold", "bolder") or (weight.isdigit() and int(weight) >= 600)
    if fmt == "italic":
        return (get_style_property(tag, "font-style") or "").lower() in ("italic", "oblique")
    decoration = " ".join(
        get_style_property(tag, prop) or "" for prop in ("text-decoration", "text-decoration-line")
    ).lower()
    if fmt == "underline":
        return "underline" in decoration
    if fmt == "strikeThrough":
        return "line-through" in decoration
    return False


def carries_format(tag: Tag, fmt: str) -> bool:
    """Does this element apply the inline format ``fmt`` to its content"""
    return tag.name in FORMAT_TAGS[fmt] or _style_carries(tag, fmt)


def has_format(node: NavigableString, fmt: str) -> bool:
    return any(carries_format(ancestor, fmt) for ancestor in ancestors(node))


def format_carriers(node: NavigableString, fmt: str) -> List[Tag]:
    """Ancestors applying ``fmt`` to ``node``, nearest first"""
    return [ancestor for ancestor in ancestors(node) if carries_format(ancestor, fmt)]


def _nearest_value(node: NavigableString, lookup: Callable[[Tag], Optional[str]]) -> Optional[str]:
    for ancestor in ancestors(node):
        value = lookup(ancestor)
        if value:
            return value
    return None


def _font_name(tag: Tag) -> Optional[str]:
    if tag.name == "font" and tag.get("face"):
        return tag["face"]
    return get_style_property(tag, "font-family")


def _font_size(tag: Tag) -> Optional[str]:
    if tag.name == "font" and tag.get("size"):
        return tag["size"]
    return None


def _fore_color(tag: Tag) -> Optional[str]:
    if tag.name == "font" and tag.get("color"):
        return tag["color"]
    return get_style_property(tag, "color")


def _alignment(tag: Tag) -> Optional[str]:
    if tag.name not in TEXT_BLOCK_TAGS:
        return None
    value = get_style_property(tag, "text-align") or tag.get("align")
    return value.lower() if value else None


def _list_type(node: NavigableString) -> Optional[str]:
    item = nearest(node, lambda tag: tag.name == "li")
    if item is None or item.parent is None:
        return None
    return item.parent.name if item.parent.name in ("ul", "ol") else None


@dataclass
class ActiveFormatState:
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    unordered_list: bool = False
    ordered_list: bool = False
    alignment: str = "left"
    block_tag: str = DEFAULT_BLOCK_TAG
    font_name: str = ""
    font_size: str = ""
    fore_color: str = DEFAULT_FORE_COLOR

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def derive_state(document: str, selection: Optional[TextRange]) -> ActiveFormatState:
    """
    Compute the active format state for a selection

    Toggle flags are set only when every selected text node carries the
    format; value fields (block, font, colour, alignment) come from the
    first selected node.

    Args:
        document: Document HTML
        selection: Current selection, or None when the caret is outside the editor

    Returns:
        ActiveFormatState, all defaults when nothing is selected
    """
    state = ActiveFormatState()
    if selection is None:
        return state

    soup = parse_html(document)
    nodes = selected_text_nodes(soup, selection.start, selection.end)
    if not nodes:
        return state

    state.bold = all(has_format(node, "bold") for node in nodes)
    state.italic = all(has_format(node, "italic") for node in nodes)
    state.underline = all(has_format(node, "underline") for node in nodes)
    state.strikethrough = all(has_format(node, "strikeThrough") for node in nodes)

    list_types = {_list_type(node) for node in nodes}
    state.unordered_list = list_types == {"ul"}
    state.ordered_list = list_types == {"ol"}

    first = nodes[0]
    alignment = _nearest_value(first, _alignment)
    if alignment in ("center", "right", "justify"):
        state.alignment = alignment

    block = nearest(first, lambda tag: tag.name in PARAGRAPH_TAGS)
    if block is not None:
        state.block_tag = block.name

    font_name = _nearest_value(first, _font_name)
    if font_name:
        state.font_name = font_name.replace('"', "").replace("'", "")
    state.font_size = _nearest_value(first, _font_size) or ""
    fore_color = _nearest_value(first, _fore_color)
    if fore_color:
        state.fore_color = rgb_to_hex(fore_color)

    return state
