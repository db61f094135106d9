# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Plain text <-> HTML conversion for the source view toggle

The two directions are inverses only up to whitespace normalization:
``html_to_text`` renders the way a browser's innerText does (blocks on their
own lines, collapsed whitespace), and ``text_to_html`` turns blank-line
separated chunks into paragraphs.
"""

import re
from typing import List, Optional

from bs4 import Tag

from .dom import BLOCK_TAGS, CELL_TAGS, HEADING_TAGS, RAW_TEXT_TAGS, is_text, parse_html

_PARAGRAPH_SPLIT = re.compile(r"\n\n+")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_COLLAPSIBLE = re.compile(r"[ \t\n\r\f]+")

_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#039;"),
)

# Elements rendered with a blank line above and below
SPACED_BLOCK_TAGS = {"p"} | HEADING_TAGS
PREFORMATTED_TAGS = {"pre", "textarea", "listing", "plaintext"}
HIDDEN_TAGS = RAW_TEXT_TAGS | {"head", "title", "noscript"}


def escape_html(text: str) -> str:
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def unescape_html(text: str) -> str:
    # &amp; last so that "&amp;lt;" comes back as "&lt;"
    for char, entity in reversed(_ESCAPES):
        text = text.replace(entity, char)
    return text


def text_to_html(text: Optional[str]) -> str:
    """
    Convert plain text into paragraph markup

    Chunks separated by blank lines become ``<p>`` elements and single
    newlines inside a chunk become ``<br/>``. Special characters are escaped,
    so markup typed as text stays text.

    Args:
        text: Plain text

    Returns:
        HTML, "" for empty input
    """
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    paragraphs = []
    for chunk in _PARAGRAPH_SPLIT.split(text):
        lines = [escape_html(line) for line in chunk.split("\n")]
        paragraphs.append(f"<p>{'<br/>'.join(lines)}</p>")
    return "".join(paragraphs)


class _TextRenderer:
    """Accumulates rendered text; block boundaries are requested as pending line breaks"""

    def __init__(self):
        self.parts: List[str] = []
        self.pending = 0

    def text(self, value: str, preformatted: bool = False) -> None:
        if not preformatted:
            value = _COLLAPSIBLE.sub(" ", value)
            if self._at_line_start():
                value = value.lstrip(" ")
        if not value:
            return
        self._flush()
        self.parts.append(value)

    def line_break(self) -> None:
        self._flush()
        self._trim()
        self.parts.append("\n")

    def tab(self) -> None:
        self._flush()
        self._trim()
        self.parts.append("\t")

    def require(self, count: int) -> None:
        if count and self.parts:
            self.pending = max(self.pending, count)

    def result(self) -> str:
        return "".join(self.parts)

    def _at_line_start(self) -> bool:
        return bool(self.pending) or not self.parts or self.parts[-1].endswith(("\n", "\t", " "))

    def _flush(self) -> None:
        if self.pending and self.parts:
            self._trim()
            self.parts.append("\n" * self.pending)
        self.pending = 0

    def _trim(self) -> None:
        if self.parts:
            self.parts[-1] = self.parts[-1].rstrip(" ")


def _render(node: Tag, renderer: _TextRenderer, preformatted: bool) -> None:
    for child in node.children:
        if isinstance(child, Tag):
            name = child.name
            if name in HIDDEN_TAGS:
                continue
            if name == "br":
                renderer.line_break()
                continue
            if name in SPACED_BLOCK_TAGS:
                breaks = 2
            elif name in BLOCK_TAGS and name not in CELL_TAGS:
                breaks = 1
            else:
                breaks = 0
            renderer.require(breaks)
            _render(child, renderer, preformatted or name in PREFORMATTED_TAGS)
            renderer.require(breaks)
            if name in CELL_TAGS and child.find_next_sibling(sorted(CELL_TAGS)) is not None:
                renderer.tab()
        elif is_text(child):
            renderer.text(str(child), preformatted)


def html_to_text(html: Optional[str]) -> str:
    """
    Render HTML to plain text the way innerText does

    Paragraphs and headings are separated by a blank line, other blocks
    start on a new line, ``<br>`` is a newline and table cells are
    tab-separated. Runs of three or more newlines collapse to one blank line.

    Args:
        html: HTML fragment

    Returns:
        Stripped plain text
    """
    renderer = _TextRenderer()
    _render(parse_html(html), renderer, False)
    text = renderer.result().replace("\xa0", " ")
    return _EXCESS_NEWLINES.sub("\n\n", text).strip()
