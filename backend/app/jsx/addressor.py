"""Element addressor — ``tagName[occurrenceIndex]`` ↔ tree node.

The occurrence index counts elements of the same tag over a pre-order walk of
the whole document, regardless of nesting. Fragments and member-expression
tags (``<Foo.Bar>``) are walked through but never counted.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator

from app.jsx.tree import Document, ElementNode
from app.models.mutations import ElementAddress


def iter_addressed(document: Document) -> Iterator[tuple[ElementAddress, ElementNode]]:
    counters: dict[str, int] = defaultdict(int)
    for element in document.iter_elements():
        if not element.addressable:
            continue
        index = counters[element.tag]
        counters[element.tag] = index + 1
        yield ElementAddress(tag_name=element.tag, occurrence_index=index), element


def resolve(document: Document, address: ElementAddress) -> ElementNode | None:
    """Return the addressed element, or None when the index is out of range."""
    seen = 0
    for element in document.iter_elements():
        if element.tag != address.tag_name or not element.addressable:
            continue
        if seen == address.occurrence_index:
            return element
        seen += 1
    return None


def address_of(node: ElementNode, document: Document) -> ElementAddress | None:
    for address, element in iter_addressed(document):
        if element is node:
            return address
    return None
