# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Clipboard HTML cleanup for content pasted from word processors

Word and Outlook put a full HTML document on the clipboard: conditional
comments, an <xml> island, a <style> block of Mso classes, namespaced
elements such as <o:p> and mso-* style declarations on nearly every
element. ``PasteSanitizer`` strips that markup and keeps the text and the
ordinary formatting around it.
"""

import logging
from typing import Optional

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup
from bs4.element import PreformattedString

from .dom import format_style, is_blank, parse_html, parse_style, serialize, serialize_contents

logger = logging.getLogger(__name__)

DROPPED_ELEMENTS = ["head", "link", "meta", "script", "style", "title", "xml"]
VENDOR_ELEMENT_PREFIXES = ("w:", "v:", "o:", "mso-", "mso:")
VENDOR_ATTRIBUTE_PREFIXES = ("mso-", "w:", "v:", "o:", "xmlns")
VENDOR_STYLE_PREFIXES = ("mso-",)
DROPPED_STYLE_PROPERTIES = ("tab-stops", "text-indent")


class SanitizationError(Exception):
    """Raised when clipboard HTML cannot be parsed"""


class PasteSanitizer:
    """Strips word-processor export markup from clipboard HTML"""

    def sanitize(self, html: Optional[str]) -> str:
        """
        Clean clipboard HTML

        Args:
            html: Raw ``text/html`` clipboard payload

        Returns:
            Cleaned HTML fragment, "" for an empty payload

        Raises:
            SanitizationError: If the parser rejects the markup
        """
        if not html:
            return ""

        try:
            soup = parse_html(html)
        except ParserRejectedMarkup as e:
            raise SanitizationError(f"Clipboard HTML could not be parsed: {e}") from e

        self._drop_non_content(soup)
        root = soup.find("body") or soup

        self._unwrap_vendor_elements(root)
        for tag in root.find_all(True):
            self._clean_attributes(tag)
            self._clean_style(tag)
        self._remove_empty(root, "span")
        self._remove_empty(root, "p")

        cleaned = serialize_contents(root) if root is not soup else serialize(soup)
        logger.debug(f"Sanitized {len(html)} chars of clipboard HTML into {len(cleaned)} chars")
        return cleaned

    def _drop_non_content(self, soup: BeautifulSoup) -> None:
        # Comments, conditional comments and declarations
        for node in list(soup.descendants):
            if isinstance(node, PreformattedString):
                node.extract()
        for tag in soup.find_all(DROPPED_ELEMENTS):
            if tag.parent is not None:
                tag.extract()

    def _unwrap_vendor_elements(self, root: Tag) -> None:
        for tag in root.find_all(True):
            if self._is_vendor_element(tag.name):
                tag.unwrap()

    @staticmethod
    def _is_vendor_element(name: str) -> bool:
        name = name.lower()
        return name == "o:p" or name.startswith(VENDOR_ELEMENT_PREFIXES)

    @staticmethod
    def _clean_attributes(tag: Tag) -> None:
        for name in list(tag.attrs):
            lowered = name.lower()
            if lowered.startswith(VENDOR_ATTRIBUTE_PREFIXES):
                del tag[name]
            elif lowered == "class" and "mso" in str(tag[name]).lower():
                del tag[name]

    @staticmethod
    def _clean_style(tag: Tag) -> None:
        if "style" not in tag.attrs:
            return
        declarations = parse_style(tag["style"])
        kept = {
            prop: value for prop, value in declarations.items()
            if not prop.startswith(VENDOR_STYLE_PREFIXES) and prop not in DROPPED_STYLE_PROPERTIES
        }
        if not kept:
            del tag["style"]
        elif len(kept) != len(declarations):
            tag["style"] = format_style(kept)

    @staticmethod
    def _remove_empty(root: Tag, name: str) -> None:
        # Deepest first so that a span holding only empty spans goes too
        for tag in reversed(root.find_all(name)):
            if all(isinstance(child, str) and is_blank(child) for child in tag.contents):
                tag.extract()


_default_sanitizer = PasteSanitizer()


def sanitize(html: Optional[str]) -> str:
    """Clean clipboard HTML with the default sanitizer"""
    return _default_sanitizer.sanitize(html)
