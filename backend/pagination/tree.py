"""Document-tree primitives over BeautifulSoup: clone, move, query."""
from __future__ import annotations

import copy
from typing import Iterable

from bs4 import BeautifulSoup, Tag

from .variants import has_class


def document_of(node: Tag) -> Tag:
    top = node
    while top.parent is not None:
        top = top.parent
    return top


def deep_clone(node: Tag) -> Tag:
    """Independent copy of the node and its subtree; not attached anywhere."""
    return copy.copy(node)


def shallow_clone(soup: BeautifulSoup, node: Tag) -> Tag:
    """Same tag name and attributes, no children."""
    attrs = {k: (list(v) if isinstance(v, list) else v) for k, v in node.attrs.items()}
    return soup.new_tag(node.name, attrs=attrs)


def move(node, parent: Tag):
    """Transfer ownership of `node` from wherever it is to the end of `parent`."""
    parent.append(node.extract())
    return node


def element_children(node: Tag) -> list[Tag]:
    return [c for c in node.children if isinstance(c, Tag)]


def outermost_with_class(root: Tag, name: str) -> list[Tag]:
    """Elements under root carrying `name`, skipping ones nested inside another match."""
    found = []
    for tag in root.find_all(class_=name):
        parent = tag.parent
        while parent is not None and parent is not root and not has_class(parent, name):
            parent = parent.parent
        if parent is None or parent is root:
            found.append(tag)
    return found


def inside_class(node: Tag, name: str, root: Tag) -> bool:
    parent = node.parent
    while parent is not None and parent is not root:
        if has_class(parent, name):
            return True
        parent = parent.parent
    return False


def contains(nodes: Iterable[Tag], node) -> bool:
    return any(n is node for n in nodes)
