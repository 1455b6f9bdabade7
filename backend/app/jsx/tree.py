"""Element tree — the structured form of one source document.

Every node keeps the character span it was parsed from, so the generator can
splice regenerated nodes back into the original text and leave everything
else byte-identical. Nodes created by a mutation have ``start == -1``.
"""

from __future__ import annotations

import html
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Union

# Tag names the addressor counts: plain identifiers, no member or namespaced names
_IDENT_TAG_RE = re.compile(r"^[A-Za-z_$][\w$-]*$")


@dataclass(eq=False)
class TextNode:
    """A run of literal text between markup."""

    raw: str
    start: int = -1
    end: int = -1

    @property
    def value(self) -> str:
        return html.unescape(self.raw)


@dataclass(eq=False)
class ExpressionNode:
    """An embedded ``{...}`` expression; ``code`` is the text between the braces."""

    code: str
    start: int
    end: int
    # Markup found inside the expression, in document order
    elements: list[ElementNode] = field(default_factory=list)


@dataclass
class StyleEntry:
    """One entry of an inline style object literal."""

    # Property name; None for spread and computed entries
    key: str | None
    # Key exactly as written (keeps quotes of string keys)
    raw_key: str
    # Value expression as written, or the whole entry text for opaque entries
    raw_value: str
    # Decoded value when raw_value is a plain string or number literal
    literal: str | None = None
    shorthand: bool = False
    opaque: bool = False

    def render(self) -> str:
        if self.opaque:
            return self.raw_value
        if self.shorthand:
            return self.raw_key
        return f"{self.raw_key}: {self.raw_value}"


@dataclass
class StyleObject:
    """A parsed ``{key: value, ...}`` object literal."""

    entries: list[StyleEntry] = field(default_factory=list)

    def find(self, key: str) -> StyleEntry | None:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def upsert(self, key: str, value: str) -> tuple[bool, str | None]:
        """Set ``key`` to the string ``value``.

        Returns ``(existed, old_literal)``; ``old_literal`` is None when the
        previous value was not a plain literal.
        """
        entry = self.find(key)
        if entry is None:
            self.entries.append(
                StyleEntry(key=key, raw_key=key, raw_value=quote_string(value), literal=value)
            )
            return False, None
        old = entry.literal
        entry.raw_value = quote_string(value)
        entry.literal = value
        entry.shorthand = False
        return True, old

    def render(self) -> str:
        return "{" + ", ".join(entry.render() for entry in self.entries) + "}"


@dataclass(eq=False)
class AttributeNode:
    name: str
    start: int = -1
    end: int = -1
    # Quoted literal value, without the quotes
    string_value: str | None = None
    quote: str = '"'
    expression: ExpressionNode | None = None
    # ``attr=<Element />`` form
    element: ElementNode | None = None
    spread: bool = False
    # Set once the attribute has been rewritten as a style object
    style: StyleObject | None = None

    @property
    def is_new(self) -> bool:
        return self.start < 0


Child = Union[TextNode, ExpressionNode, "ElementNode"]


@dataclass(eq=False)
class ElementNode:
    # "" for fragments; member names such as "Foo.Bar" are kept verbatim
    tag: str
    start: int
    end: int = -1
    # Offset just past the last attribute (or the tag name)
    attrs_end: int = -1
    # Content bounds; -1 for self-closing elements
    inner_start: int = -1
    inner_end: int = -1
    self_closing: bool = False
    attributes: list[AttributeNode] = field(default_factory=list)
    children: list[Child] = field(default_factory=list)
    parent: ElementNode | None = field(default=None, repr=False)
    # Children were replaced by a mutation and must be regenerated
    replaced_children: bool = False

    @property
    def is_fragment(self) -> bool:
        return self.tag == ""

    @property
    def addressable(self) -> bool:
        return bool(_IDENT_TAG_RE.match(self.tag))

    def find_attribute(self, name: str) -> AttributeNode | None:
        for attr in self.attributes:
            if not attr.spread and attr.name == name:
                return attr
        return None

    def nested_elements(self) -> Iterator[ElementNode]:
        """Direct descendants in traversal order: attribute values first, then children."""
        for attr in self.attributes:
            if attr.expression is not None:
                yield from attr.expression.elements
            if attr.element is not None:
                yield attr.element
        for child in self.children:
            if isinstance(child, ElementNode):
                yield child
            elif isinstance(child, ExpressionNode):
                yield from child.elements

    def text_content(self) -> str:
        """Trimmed text runs among the direct children, space-joined."""
        runs = (c.value.strip() for c in self.children if isinstance(c, TextNode))
        return " ".join(run for run in runs if run)


@dataclass(eq=False)
class Document:
    """Parsed source document. Rebuilt from text for every mutation."""

    source: str
    # Top-level markup roots in document order
    roots: list[ElementNode] = field(default_factory=list)

    def iter_elements(self) -> Iterator[ElementNode]:
        """Every element (fragments included) in pre-order / document order."""
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(list(node.nested_elements())))

    @property
    def num_elements(self) -> int:
        return sum(1 for el in self.iter_elements() if not el.is_fragment)


def quote_string(value: str) -> str:
    """Render ``value`` as a single-quoted JS string literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


_TEXT_ESCAPES = {"&": "&amp;", "{": "&#123;", "}": "&#125;", "<": "&lt;", ">": "&gt;"}


def escape_text(value: str) -> str:
    """Escape characters that cannot appear literally in markup text."""
    return "".join(_TEXT_ESCAPES.get(ch, ch) for ch in value)
