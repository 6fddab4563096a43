"""
Element Signatures

Canonical string keys for DOM elements, used to compare page structure
across documents:

    tag#id              when the element has an id
    tag.a.b.c           otherwise, with classes sorted and CSS-escaped
    tag                 when it has neither

Two elements with the same signature are treated as structurally
interchangeable. Signatures are valid CSS compound selectors, so they are
also used verbatim when building card selectors.
"""

import re
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup, Tag

_INVALID_CSS_CHAR_RE = re.compile(r"[^a-zA-Z0-9_-]")


def escape_css_identifier(identifier: Optional[str]) -> str:
    """
    Backslash-escape every character outside [a-zA-Z0-9_-].

    A leading digit (or "-" + digit) is not a valid identifier start, so
    that digit is written as a hex escape.
    """
    if not identifier:
        return ""

    escaped = _INVALID_CSS_CHAR_RE.sub(lambda m: "\\" + m.group(0), identifier)

    if escaped[0].isdigit():
        return _hex_escape(escaped[0], escaped[1:])
    if len(escaped) > 1 and escaped[0] == "-" and escaped[1].isdigit():
        return "-" + _hex_escape(escaped[1], escaped[2:])
    return escaped


def _hex_escape(char: str, rest: str) -> str:
    # Terminating space only when more characters follow
    if not rest:
        return f"\\{ord(char):x}"
    return f"\\{ord(char):x} {rest}"


def element_classes(element: Tag) -> List[str]:
    """Class list of an element (BeautifulSoup already splits it)."""
    classes = element.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return [c for c in classes if c]


def class_selector(tag_name: str, classes: Iterable[str]) -> str:
    """Build 'tag.class1.class2' with sorted, escaped classes."""
    escaped = sorted(escape_css_identifier(c) for c in set(classes) if c)
    if not escaped:
        return tag_name
    return tag_name + "." + ".".join(escaped)


def element_signature(element: Optional[Tag]) -> str:
    """Signature of a single element: tag#id, else tag.sorted.classes."""
    if element is None or not element.name:
        return ""

    tag = element.name.lower()
    element_id = (element.get("id") or "").strip()
    if element_id:
        return f"{tag}#{escape_css_identifier(element_id)}"

    return class_selector(tag, element_classes(element))


def element_children(element: Tag) -> List[Tag]:
    """Direct element children (text and comment nodes skipped)."""
    return [child for child in element.children if isinstance(child, Tag)]


def element_ancestors(element: Tag) -> List[Tag]:
    """Ancestors from the document root down to the direct parent."""
    ancestors = [
        parent for parent in element.parents
        if isinstance(parent, Tag) and not isinstance(parent, BeautifulSoup)
    ]
    ancestors.reverse()
    return ancestors


def element_depth(element: Tag) -> int:
    """Number of element ancestors."""
    return len(element_ancestors(element))


def full_path_signature(element: Tag) -> str:
    """
    'ancestor > ancestor > ... > own' signature chain from the root.

    Used as the blacklist key for differential discovery: an element with
    the same full path on a no-results page is page chrome.
    """
    parts = [element_signature(a) for a in element_ancestors(element)]
    parts.append(element_signature(element))
    return " > ".join(p for p in parts if p)


def child_shape_key(element: Tag) -> str:
    """
    Tag names of an element's direct children, in order.

    Ids and classes are left out so per-item ids and modifier classes on
    inner elements do not split otherwise identical cards.
    """
    return " ".join(child.name.lower() for child in element_children(element))


def common_card_selector(parent_signature: str, elements: Iterable[Tag]) -> str:
    """
    Selector matching every given card: '<parent> > tag.common.classes'.

    Only classes shared by every element are kept, which generalises past
    per-item modifier classes (e.g. 'card card--featured').
    """
    elements = list(elements)
    if not elements:
        raise ValueError("Cannot build a selector from zero elements")

    tag = elements[0].name.lower()
    common = set(element_classes(elements[0]))
    for element in elements[1:]:
        common &= set(element_classes(element))

    card = class_selector(tag, common)
    if not parent_signature:
        return card
    return f"{parent_signature} > {card}"
