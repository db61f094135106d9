# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
HTML tree helpers for the editing session

Documents are kept as HTML strings and parsed into a BeautifulSoup tree for
every structural edit, then serialized back at commit time. This module owns
that round trip and the low-level tree surgery shared by the command
executor, the table editor and the paste sanitizer.

TEXT OFFSETS:
=============

Selections address the document through its flat text projection: every
text node (comments and script/style contents excluded) concatenated in
document order. ``text_spans`` maps each node to its ``[start, end)``
interval in that projection; ``split_text_at`` cuts the node straddling an
offset so that a range boundary always falls between two nodes.

    <p>He<b>llo</b> world</p>
       |  |    |       |
       0  2    5      11

TREE SURGERY:
=============

- ``isolate(node, ancestor)`` splits every element between ``node`` and
  ``ancestor`` so that ``ancestor`` contains only the path down to ``node``.
  Formatting is removed from part of a run by isolating then unwrapping.
- ``lift_to_container(node)`` splits paragraph-level ancestors so that
  block content (tables, paragraphs) can be inserted at a caret.
"""

import logging
import re
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.dammit import EntitySubstitution
from bs4.element import PreformattedString
from bs4.formatter import HTMLFormatter

logger = logging.getLogger(__name__)

PARSER = "html.parser"

RAW_TEXT_TAGS = {"script", "style", "template"}

HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
PARAGRAPH_TAGS = {"p", "pre", "blockquote", "div", "address"} | HEADING_TAGS
CELL_TAGS = {"td", "th"}
TEXT_BLOCK_TAGS = PARAGRAPH_TAGS | CELL_TAGS | {"li"}
LIST_TAGS = {"ul", "ol"}
TABLE_STRUCTURE_TAGS = {"table", "thead", "tbody", "tfoot", "tr", "caption", "colgroup", "col"}
BLOCK_TAGS = (
    TEXT_BLOCK_TAGS | LIST_TAGS | TABLE_STRUCTURE_TAGS
    | {"hr", "dl", "dt", "dd", "section", "article", "header", "footer", "nav", "aside", "figure", "body", "html"}
)
# Elements that hold blocks and are never split when block content is inserted
CONTAINER_TAGS = {"li", "td", "th", "blockquote", "div", "body", "html"}
INLINE_FORMAT_TAGS = {"b", "strong", "i", "em", "u", "s", "strike", "del", "font", "span", "sub", "sup", "a"}

ASCII_WHITESPACE = " \t\n\r\f"

Node = Union[Tag, NavigableString]


def _substitute_entities(value: str) -> str:
    # Serialize like innerHTML: escape markup characters and non-breaking spaces only
    return EntitySubstitution.substitute_xml(value).replace("\xa0", "&nbsp;")


EDITOR_FORMATTER = HTMLFormatter(entity_substitution=_substitute_entities)


###############################################################################
# Parse / serialize

def parse_html(html: Optional[str]) -> BeautifulSoup:
    """Parse an HTML fragment; attribute values are kept as plain strings"""
    return BeautifulSoup(html or "", PARSER, multi_valued_attributes=None)


def serialize(soup: Tag) -> str:
    return soup.decode(formatter=EDITOR_FORMATTER)


def serialize_contents(tag: Tag) -> str:
    return tag.decode_contents(formatter=EDITOR_FORMATTER)


def canonicalize(html: Optional[str]) -> str:
    """Return the editor's canonical serialization of ``html``"""
    return serialize(parse_html(html))


def clone_shell(soup: BeautifulSoup, tag: Tag) -> Tag:
    """Create an empty element with the same name and attributes as ``tag``"""
    return soup.new_tag(tag.name, attrs=dict(tag.attrs))


###############################################################################
# Node classification

def is_text(node) -> bool:
    if not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
        return False
    parent = node.parent
    return parent is None or parent.name not in RAW_TEXT_TAGS


def is_blank(text: str) -> bool:
    """True for ASCII-whitespace-only text; non-breaking spaces count as content"""
    return not text.strip(ASCII_WHITESPACE)


def is_inline(node) -> bool:
    if isinstance(node, NavigableString):
        return not isinstance(node, PreformattedString)
    return isinstance(node, Tag) and node.name not in BLOCK_TAGS and node.name != "br"


def is_container(tag: Tag) -> bool:
    return isinstance(tag, BeautifulSoup) or tag.name in CONTAINER_TAGS


def is_layout_whitespace(node) -> bool:
    """Blank text sitting between blocks rather than inside a line of text"""
    if not is_text(node) or not is_blank(node):
        return False
    parent = node.parent
    return (
        parent is None or isinstance(parent, BeautifulSoup)
        or parent.name in LIST_TAGS or parent.name in TABLE_STRUCTURE_TAGS or parent.name in ("body", "html")
    )


def contains_block(nodes: Iterable[Node]) -> bool:
    for node in nodes:
        if not isinstance(node, Tag):
            continue
        if node.name in BLOCK_TAGS or node.find(sorted(BLOCK_TAGS)) is not None:
            return True
    return False


def ancestors(node: Node, root: Optional[Tag] = None) -> Iterator[Tag]:
    """Yield the ancestors of ``node`` from nearest to farthest, stopping before ``root``"""
    parent = node.parent
    while parent is not None and parent is not root and not isinstance(parent, BeautifulSoup):
        yield parent
        parent = parent.parent


def nearest(node: Node, predicate: Callable[[Tag], bool]) -> Optional[Tag]:
    for ancestor in ancestors(node):
        if predicate(ancestor):
            return ancestor
    return None


def index_of(items: Iterable, item) -> int:
    """Position of ``item`` in ``items`` by identity (bs4 compares nodes by value)"""
    for position, candidate in enumerate(items):
        if candidate is item:
            return position
    raise ValueError("Item not found")


def unique(items: Iterable) -> List:
    seen = set()
    result = []
    for item in items:
        if id(item) not in seen:
            seen.add(id(item))
            result.append(item)
    return result


def has_text(tag: Tag) -> bool:
    return any(is_text(node) and len(node) for node in tag.descendants)


###############################################################################
# Text offsets

def text_nodes(root: Tag) -> List[NavigableString]:
    return [node for node in root.descendants if is_text(node)]


def text_spans(root: Tag) -> List[Tuple[NavigableString, int, int]]:
    spans = []
    position = 0
    for node in text_nodes(root):
        end = position + len(node)
        spans.append((node, position, end))
        position = end
    return spans


def text_length(root: Tag) -> int:
    return sum(len(node) for node in text_nodes(root))


def split_text_at(root: Tag, offset: int) -> None:
    """Split the text node straddling ``offset`` so the offset falls between nodes"""
    for node, start, end in text_spans(root):
        if start < offset < end:
            cut = offset - start
            left = NavigableString(str(node)[:cut])
            right = NavigableString(str(node)[cut:])
            node.replace_with(left)
            left.insert_after(right)
            return


def isolate_range(root: Tag, start: int, end: int) -> List[NavigableString]:
    """Split boundary text nodes and return the nodes covering ``[start, end)``"""
    split_text_at(root, end)
    split_text_at(root, start)
    return [node for node, node_start, node_end in text_spans(root)
            if node_start >= start and node_end <= end and node_end > node_start]


def nodes_in_range(root: Tag, start: int, end: int) -> List[NavigableString]:
    """Text nodes intersecting ``[start, end)`` without modifying the tree"""
    return [node for node, node_start, node_end in text_spans(root)
            if node_start < end and node_end > start]


def node_at(root: Tag, offset: int, forward: bool = False) -> Optional[NavigableString]:
    """
    Text node holding the caret at ``offset``

    At a boundary between two nodes the caret belongs to the preceding node,
    as typing continues its formatting; ``forward`` picks the following one.
    """
    spans = [span for span in text_spans(root) if span[2] > span[1]]
    if forward:
        for node, start, end in spans:
            if start <= offset < end:
                return node
        for node, start, end in reversed(spans):
            if end == offset:
                return node
        return None
    for node, start, end in spans:
        if start < offset <= end:
            return node
    for node, start, end in spans:
        if start == offset:
            return node
    return None


def selected_text_nodes(root: Tag, start: int, end: int) -> List[NavigableString]:
    """Nodes a selection applies to, ignoring layout whitespace between blocks"""
    if start == end:
        node = node_at(root, start)
        return [node] if node is not None else []
    nodes = nodes_in_range(root, start, end)
    significant = [node for node in nodes if not is_blank(node)]
    return significant or nodes


###############################################################################
# Tree surgery

def isolate(soup: BeautifulSoup, node: Node, ancestor: Tag) -> Tag:
    """
    Split the elements between ``node`` and ``ancestor`` around ``node``

    Siblings on either side are moved into shallow copies of their parent, so
    that afterwards ``ancestor`` contains nothing but the path to ``node``.

    Returns:
        The (same) ancestor element
    """
    child = node
    parent = child.parent
    while parent is not None:
        position = parent.index(child)
        before = parent.contents[:position]
        after = parent.contents[position + 1:]
        if before:
            shell = clone_shell(soup, parent)
            for sibling in before:
                shell.append(sibling.extract())
            parent.insert_before(shell)
        if after:
            shell = clone_shell(soup, parent)
            for sibling in after:
                shell.append(sibling.extract())
            parent.insert_after(shell)
        if parent is ancestor:
            return ancestor
        child = parent
        parent = parent.parent
    raise ValueError("Ancestor does not contain node")


def lift_to_container(soup: BeautifulSoup, node: Node) -> None:
    """Split the non-container ancestors of ``node`` so it sits directly in a container"""
    parent = node.parent
    while parent is not None and not is_container(parent):
        position = parent.index(node)
        after = parent.contents[position + 1:]
        if after:
            shell = clone_shell(soup, parent)
            for sibling in after:
                shell.append(sibling.extract())
            parent.insert_after(shell)
        parent.insert_after(node.extract())
        if not parent.contents:
            parent.extract()
        parent = node.parent


def ensure_block(soup: BeautifulSoup, node: Node) -> Tag:
    """
    Return the text block holding ``node``, creating a paragraph if needed

    Loose inline content at the top level of the document (or directly in a
    container) is wrapped, together with its adjacent inline siblings, in a
    new ``<p>``.
    """
    block = nearest(node, lambda tag: tag.name in TEXT_BLOCK_TAGS)
    if block is not None:
        return block

    top = node
    while top.parent is not None and not isinstance(top.parent, BeautifulSoup) and is_inline(top.parent):
        top = top.parent
    if isinstance(top, Tag) and top.name in BLOCK_TAGS:
        return top

    run = [top]
    sibling = top.previous_sibling
    while sibling is not None and is_inline(sibling):
        run.insert(0, sibling)
        sibling = sibling.previous_sibling
    sibling = top.next_sibling
    while sibling is not None and is_inline(sibling):
        run.append(sibling)
        sibling = sibling.next_sibling

    paragraph = soup.new_tag("p")
    run[0].insert_before(paragraph)
    for item in run:
        paragraph.append(item.extract())
    return paragraph


def merge_adjacent(root: Tag, names: Iterable[str], skip_whitespace: bool = False) -> None:
    """Merge sibling elements with the same name and attributes"""
    for tag in list(root.find_all(list(names))):
        if tag.parent is None:
            continue
        following = tag.next_sibling
        while following is not None:
            if skip_whitespace and is_text(following) and is_blank(following):
                candidate = following.next_sibling
                if not _same_element(tag, candidate):
                    break
                following.extract()
                following = candidate
            if not _same_element(tag, following):
                break
            for child in list(following.contents):
                tag.append(child.extract())
            following.extract()
            following = tag.next_sibling


def _same_element(tag: Tag, other) -> bool:
    return isinstance(other, Tag) and other.name == tag.name and other.attrs == tag.attrs


def remove_empty_inline(tag: Optional[Tag]) -> None:
    """Remove ``tag`` and its ancestors while they are childless inline formatting"""
    while tag is not None and not isinstance(tag, BeautifulSoup) and tag.name in INLINE_FORMAT_TAGS and not tag.contents:
        parent = tag.parent
        tag.extract()
        tag = parent


###############################################################################
# Inline styles

_DECLARATION = re.compile(r"^\s*([^:]+?)\s*:\s*(.*?)\s*$", re.DOTALL)


def parse_style(value: Optional[str]) -> Dict[str, str]:
    """Parse a style attribute into an ordered mapping of lowercased properties"""
    declarations: Dict[str, str] = {}
    for chunk in (value or "").split(";"):
        match = _DECLARATION.match(chunk)
        if match and match.group(2):
            declarations[match.group(1).lower()] = match.group(2)
    return declarations


def format_style(declarations: Dict[str, str]) -> str:
    return " ".join(f"{prop}: {value};" for prop, value in declarations.items())


def get_style_property(tag: Tag, prop: str) -> Optional[str]:
    return parse_style(tag.get("style")).get(prop)


def set_style_property(tag: Tag, prop: str, value: Optional[str]) -> None:
    """Set (or remove, when ``value`` is None) one declaration of ``tag``'s style"""
    declarations = parse_style(tag.get("style"))
    if value is None:
        declarations.pop(prop, None)
    else:
        declarations[prop] = value
    if declarations:
        tag["style"] = format_style(declarations)
    elif "style" in tag.attrs:
        del tag["style"]
