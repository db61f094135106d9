# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
FormatCommandExecutor: named formatting commands over a text selection

The executor takes a document string and a selection, applies one command
to a freshly parsed tree and returns the new document string together with
the caret to use afterwards. Command names follow the browser's rich-text
command set so a toolbar can forward its buttons unchanged.

COMMANDS:
=========

Inline toggles     bold, italic, underline, strikeThrough
Inline values      fontName, fontSize, foreColor
Links              createLink, unlink
Clearing           removeFormat
Blocks             formatBlock, insertUnorderedList, insertOrderedList,
                   justifyLeft, justifyCenter, justifyRight, justifyFull
Insertion          insertHTML, insertText
Tables             setCellColor

Inline toggles remove the format when every selected text node already
carries it and apply it otherwise. Removal splits the carrying elements
around the selection (see ``dom.isolate``) and unwraps the middle part.
"""

import logging
import re
from typing import Callable, Dict, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from ..constants import FONT_SIZES, FORMAT_BLOCK_TAGS
from .dom import (
    BLOCK_TAGS,
    CELL_TAGS,
    INLINE_FORMAT_TAGS,
    LIST_TAGS,
    TABLE_STRUCTURE_TAGS,
    TEXT_BLOCK_TAGS,
    ancestors,
    contains_block,
    ensure_block,
    has_text,
    is_blank,
    is_layout_whitespace,
    isolate,
    isolate_range,
    lift_to_container,
    merge_adjacent,
    nearest,
    node_at,
    nodes_in_range,
    parse_html,
    remove_empty_inline,
    serialize,
    set_style_property,
    split_text_at,
    text_length,
    text_spans,
    unique,
)
from .format_state import FORMAT_TAGS, format_carriers, has_format, rgb_to_hex
from .results import (
    SELECT_CELL_NOTICE,
    EditOutcome,
    EditResult,
    IgnoredReason,
    OperationIgnored,
)
from .selection import TextRange

logger = logging.getLogger(__name__)

TOGGLE_TAGS = {
    "bold": "b",
    "italic": "i",
    "underline": "u",
    "strikeThrough": "strike",
}
STYLE_PROPERTIES = {
    "bold": ("font-weight",),
    "italic": ("font-style",),
    "underline": ("text-decoration", "text-decoration-line"),
    "strikeThrough": ("text-decoration", "text-decoration-line"),
}
FONT_ATTRIBUTES = {
    "fontName": "face",
    "fontSize": "size",
    "foreColor": "color",
}
LIST_COMMANDS = {
    "insertUnorderedList": "ul",
    "insertOrderedList": "ol",
}
JUSTIFY_COMMANDS = {
    "justifyLeft": None,
    "justifyCenter": "center",
    "justifyRight": "right",
    "justifyFull": "justify",
}
REMOVABLE_TAGS = INLINE_FORMAT_TAGS - {"a"}
EMBEDDED_TAGS = ["img", "hr", "table", "iframe", "video", "audio", "input"]

MARKER_ATTRIBUTE = "data-editor-caret"

_URL_SCHEME = re.compile(r"^(https?://|mailto:|tel:|ftp://)", re.IGNORECASE)


def normalize_link_url(url: Optional[str]) -> str:
    """Strip the URL and prefix ``http://`` when it has no scheme; empty stays empty"""
    url = (url or "").strip()
    if url and not _URL_SCHEME.match(url):
        url = "http://" + url
    return url


class FormatCommandExecutor:
    """
    Applies formatting commands to a document

    The executor is stateless: every call parses the given document and
    returns an EditOutcome with the serialized result.
    """

    def __init__(self):
        handlers: Dict[str, Callable] = {}
        for command in TOGGLE_TAGS:
            handlers[command] = self._toggle_inline
        for command in FONT_ATTRIBUTES:
            handlers[command] = self._apply_font
        for command in LIST_COMMANDS:
            handlers[command] = self._toggle_list
        for command in JUSTIFY_COMMANDS:
            handlers[command] = self._justify
        handlers["formatBlock"] = self._format_block
        handlers["createLink"] = self._create_link
        handlers["unlink"] = self._unlink
        handlers["removeFormat"] = self._remove_all_formats
        handlers["insertHTML"] = self._insert_html
        handlers["insertText"] = self._insert_text
        handlers["setCellColor"] = self._set_cell_color
        self._handlers = handlers

    @property
    def commands(self) -> List[str]:
        return sorted(self._handlers)

    def supports(self, command: str) -> bool:
        return command in self._handlers

    def execute(
        self,
        document: str,
        command: str,
        value: Optional[str] = None,
        selection: Optional[TextRange] = None,
    ) -> EditOutcome:
        """
        Apply ``command`` to ``document`` at ``selection``

        Args:
            document: Current document HTML
            command: Command name, e.g. "bold" or "formatBlock"
            value: Command argument (URL, colour, block tag, HTML, ...)
            selection: Current selection; None when the caret is outside the editor

        Returns:
            EditOutcome with the new HTML, the caret after the command and
            whether the command applied

        Raises:
            ValueError: If the command is unknown or its value is malformed
        """
        handler = self._handlers.get(command)
        if handler is None:
            raise ValueError(f"Unknown command: {command}")

        try:
            if command == "createLink" and not normalize_link_url(value):
                raise OperationIgnored(IgnoredReason.EMPTY_URL, "A link needs a URL")
            if selection is None:
                raise OperationIgnored(IgnoredReason.NO_SELECTION, "Place the caret in the editor first")

            soup = parse_html(document)
            selection = selection.clamp(text_length(soup))
            new_selection = handler(soup, selection, command, value)
        except OperationIgnored as e:
            logger.debug(f"Command {command} ignored: {e.reason.value}")
            return EditOutcome(document, selection, e.to_result())

        html = serialize(soup)
        if html == document:
            return EditOutcome(document, new_selection, EditResult.ignored(IgnoredReason.NO_CHANGE))

        logger.debug(f"Executed {command} over {selection.start}-{selection.end}")
        return EditOutcome(html, new_selection, EditResult.ok())

    ###########################################################################
    # Inline formatting

    def _toggle_inline(self, soup: BeautifulSoup, selection: TextRange, command: str, value) -> TextRange:
        nodes = self._isolate_selection(soup, selection)
        targets = [node for node in nodes if not is_layout_whitespace(node)]
        significant = [node for node in targets if not is_blank(node)] or targets
        if not significant:
            raise OperationIgnored(IgnoredReason.NO_CHANGE)

        if all(has_format(node, command) for node in significant):
            for node in targets:
                self._remove_format(soup, node, command)
        else:
            tag_name = TOGGLE_TAGS[command]
            for node in targets:
                if not has_format(node, command):
                    node.wrap(soup.new_tag(tag_name))

        merge_adjacent(soup, INLINE_FORMAT_TAGS)
        return selection

    def _remove_format(self, soup: BeautifulSoup, node: NavigableString, fmt: str) -> None:
        carriers = format_carriers(node, fmt)
        inline = [tag for tag in carriers if tag.name not in BLOCK_TAGS]
        if inline:
            isolate(soup, node, inline[-1])
        for carrier in carriers:
            if carrier.name in FORMAT_TAGS[fmt]:
                carrier.unwrap()
                continue
            for prop in STYLE_PROPERTIES[fmt]:
                set_style_property(carrier, prop, None)
            self._unwrap_if_bare(carrier)

    def _apply_font(self, soup: BeautifulSoup, selection: TextRange, command: str, value) -> TextRange:
        attribute = FONT_ATTRIBUTES[command]
        value = self._font_value(command, value)
        nodes = self._isolate_selection(soup, selection)

        for node in nodes:
            if is_layout_whitespace(node):
                continue
            if not value:
                self._clear_font_attribute(soup, node, attribute)
                continue
            parent = node.parent
            if isinstance(parent, Tag) and parent.name == "font" and len(parent.contents) == 1:
                font = parent
            else:
                font = soup.new_tag("font")
                node.wrap(font)
            font[attribute] = value

        merge_adjacent(soup, INLINE_FORMAT_TAGS)
        return selection

    def _font_value(self, command: str, value) -> str:
        value = str(value).strip() if value is not None else ""
        if not value:
            return ""
        if command == "fontSize":
            if not value.isdigit():
                raise ValueError(f"Font size must be one of {', '.join(FONT_SIZES)}, got {value!r}")
            return str(max(1, min(7, int(value))))
        if command == "foreColor" and value.lower().startswith("rgb"):
            return rgb_to_hex(value)
        return value

    def _clear_font_attribute(self, soup: BeautifulSoup, node: NavigableString, attribute: str) -> None:
        fonts = [tag for tag in ancestors(node) if tag.name == "font" and tag.get(attribute)]
        if not fonts:
            return
        isolate(soup, node, fonts[-1])
        for font in fonts:
            del font[attribute]
            self._unwrap_if_bare(font)

    def _remove_all_formats(self, soup: BeautifulSoup, selection: TextRange, command: str, value) -> TextRange:
        for node in self._isolate_selection(soup, selection):
            carriers = [tag for tag in ancestors(node) if tag.name in REMOVABLE_TAGS]
            if not carriers:
                continue
            isolate(soup, node, carriers[-1])
            for carrier in carriers:
                carrier.unwrap()
        return selection

    @staticmethod
    def _unwrap_if_bare(tag: Tag) -> None:
        if tag.name in ("span", "font") and not tag.attrs:
            tag.unwrap()

    @staticmethod
    def _isolate_selection(soup: BeautifulSoup, selection: TextRange) -> List[NavigableString]:
        if selection.collapsed:
            raise OperationIgnored(IgnoredReason.COLLAPSED_SELECTION, "Select some text first")
        return isolate_range(soup, selection.start, selection.end)

    ###########################################################################
    # Links

    def _create_link(self, soup: BeautifulSoup, selection: TextRange, command: str, value) -> TextRange:
        url = normalize_link_url(value)
        if selection.collapsed:
            anchor = soup.new_tag("a", attrs={"href": url})
            anchor.string = url
            return self._replace_range(soup, selection, [anchor], len(url))

        nodes = isolate_range(soup, selection.start, selection.end)
        for node in nodes:
            self._remove_anchors(soup, node)
        for node in nodes:
            if not is_layout_whitespace(node):
                node.wrap(soup.new_tag("a", attrs={"href": url}))
        merge_adjacent(soup, INLINE_FORMAT_TAGS)
        return selection

    def _unlink(self, soup: BeautifulSoup, selection: TextRange, command: str, value) -> TextRange:
        if selection.collapsed:
            node = node_at(soup, selection.start)
            anchor = nearest(node, lambda tag: tag.name == "a") if node is not None else None
            if anchor is None:
                raise OperationIgnored(IgnoredReason.NO_CHANGE)
            anchor.unwrap()
            return selection

        for node in isolate_range(soup, selection.start, selection.end):
            self._remove_anchors(soup, node)
        return selection

    @staticmethod
    def _remove_anchors(soup: BeautifulSoup, node: NavigableString) -> None:
        anchors = [tag for tag in ancestors(node) if tag.name == "a"]
        if not anchors:
            return
        isolate(soup, node, anchors[-1])
        for anchor in anchors:
            anchor.unwrap()

    ###########################################################################
    # Blocks

    def _blocks(self, soup: BeautifulSoup, selection: TextRange) -> List[Tag]:
        if selection.collapsed:
            node = node_at(soup, selection.start)
            nodes = [node] if node is not None else []
        else:
            nodes = [node for node in nodes_in_range(soup, selection.start, selection.end)
                     if not is_layout_whitespace(node)]
        if not nodes:
            raise OperationIgnored(IgnoredReason.NO_CHANGE, "No text to format")
        return unique(ensure_block(soup, node) for node in nodes)

    def _format_block(self, soup: BeautifulSoup, selection: TextRange, command: str, value) -> TextRange:
        tag_name = (value or "").strip().strip("<>").strip().lower()
        if tag_name not in FORMAT_BLOCK_TAGS:
            raise ValueError(f"Unsupported block format: {value!r}")

        for block in self._blocks(soup, selection):
            if block.name in CELL_TAGS or block.name == "li":
                wrapper = soup.new_tag(tag_name)
                for child in list(block.contents):
                    wrapper.append(child.extract())
                block.append(wrapper)
            else:
                block.name = tag_name
        return selection

    def _toggle_list(self, soup: BeautifulSoup, selection: TextRange, command: str, value) -> TextRange:
        list_tag = LIST_COMMANDS[command]
        blocks = self._blocks(soup, selection)
        items = [block if block.name == "li" else nearest(block, lambda tag: tag.name == "li")
                 for block in blocks]

        if all(item is not None and item.parent is not None and item.parent.name == list_tag
               for item in items):
            for item in unique(items):
                self._unlist(soup, item)
            return selection

        for block, item in zip(blocks, items):
            if item is None:
                self._listify(soup, block, list_tag)
            elif item.parent is not None and item.parent.name in LIST_TAGS:
                item.parent.name = list_tag
        merge_adjacent(soup, LIST_TAGS, skip_whitespace=True)
        return selection

    @staticmethod
    def _unlist(soup: BeautifulSoup, item: Tag) -> None:
        parent_list = item.parent
        isolate(soup, item, parent_list)
        if contains_block(item.contents):
            item.unwrap()
        else:
            item.name = "p"
        parent_list.unwrap()

    @staticmethod
    def _listify(soup: BeautifulSoup, block: Tag, list_tag: str) -> None:
        if block.name in CELL_TAGS:
            item = soup.new_tag("li")
            for child in list(block.contents):
                item.append(child.extract())
            new_list = soup.new_tag(list_tag)
            new_list.append(item)
            block.append(new_list)
            return
        if block.name in ("p", "div"):
            block.name = "li"
            item = block
        else:
            item = soup.new_tag("li")
            block.wrap(item)
        item.wrap(soup.new_tag(list_tag))

    def _justify(self, soup: BeautifulSoup, selection: TextRange, command: str, value) -> TextRange:
        alignment = JUSTIFY_COMMANDS[command]
        for block in self._blocks(soup, selection):
            set_style_property(block, "text-align", alignment)
            if "align" in block.attrs:
                del block["align"]
        return selection

    ###########################################################################
    # Insertion

    def _insert_html(self, soup: BeautifulSoup, selection: TextRange, command: str, value) -> TextRange:
        fragment = parse_html(value or "")
        nodes = list(fragment.contents)
        if not nodes and selection.collapsed:
            raise OperationIgnored(IgnoredReason.NO_CHANGE)
        return self._replace_range(soup, selection, nodes, text_length(fragment))

    def _insert_text(self, soup: BeautifulSoup, selection: TextRange, command: str, value) -> TextRange:
        text = value or ""
        if not text and selection.collapsed:
            raise OperationIgnored(IgnoredReason.NO_CHANGE)
        nodes = [NavigableString(text)] if text else []
        return self._replace_range(soup, selection, nodes, len(text))

    def _replace_range(self, soup: BeautifulSoup, selection: TextRange, nodes: list, inserted_length: int) -> TextRange:
        """Replace the selected text with ``nodes`` and return the caret after them"""
        marker = self._place_marker(soup, selection)
        if not selection.collapsed:
            self._delete_range(soup, selection, marker)
        if contains_block(nodes):
            lift_to_container(soup, marker)

        for node in nodes:
            if node.parent is not None:
                node.extract()
            marker.insert_before(node)

        holder = marker.parent
        marker.extract()
        remove_empty_inline(holder)
        return TextRange.caret(selection.start + inserted_length)

    @staticmethod
    def _place_marker(soup: BeautifulSoup, selection: TextRange) -> Tag:
        split_text_at(soup, selection.end)
        split_text_at(soup, selection.start)
        marker = soup.new_tag("span", attrs={MARKER_ATTRIBUTE: ""})
        spans = [span for span in text_spans(soup) if span[2] > span[1]]

        if selection.collapsed:
            for node, start, end in reversed(spans):
                if end == selection.start:
                    node.insert_after(marker)
                    return marker
        for node, start, end in spans:
            if start == selection.start:
                node.insert_before(marker)
                return marker

        # No text at the caret: use the first empty text block, else the end of the document
        holder = next((tag for tag in soup.find_all(sorted(TEXT_BLOCK_TAGS)) if not has_text(tag)), soup)
        holder.append(marker)
        return marker

    @staticmethod
    def _delete_range(soup: BeautifulSoup, selection: TextRange, marker: Tag) -> None:
        nodes = isolate_range(soup, selection.start, selection.end)
        touched = unique(tag for node in nodes for tag in ancestors(node))
        depth = {id(tag): sum(1 for _ in ancestors(tag)) for tag in touched}
        for node in nodes:
            node.extract()

        # Drop elements emptied by the deletion, innermost first; table structure stays
        for tag in sorted(touched, key=lambda tag: depth[id(tag)], reverse=True):
            if tag.parent is None or tag.name in TABLE_STRUCTURE_TAGS or tag.name in CELL_TAGS:
                continue
            if any(descendant is marker for descendant in tag.descendants):
                continue
            if not has_text(tag) and tag.find(EMBEDDED_TAGS) is None:
                tag.extract()

    ###########################################################################
    # Tables

    def _set_cell_color(self, soup: BeautifulSoup, selection: TextRange, command: str, value) -> TextRange:
        color = (value or "").strip()
        if not color:
            raise ValueError("A cell colour is required")
        node = node_at(soup, selection.start, forward=True)
        cell = nearest(node, lambda tag: tag.name in CELL_TAGS) if node is not None else None
        if cell is None:
            raise OperationIgnored(IgnoredReason.NOT_IN_CELL, SELECT_CELL_NOTICE)
        set_style_property(cell, "background-color", color)
        return selection
