"""JSX parser — facade over tree-sitter's ``tsx`` grammar.

tree-sitter parses the whole module (JavaScript or TypeScript with markup);
this module maps its JSX nodes onto the span-carrying element tree in
``app.jsx.tree`` so the generator can splice edits back into the original
text. tree-sitter works in UTF-8 byte offsets, the element tree in character
offsets; ``_Source`` converts between the two.
"""

from __future__ import annotations

import logging

from tree_sitter import Node
from tree_sitter_language_pack import get_parser

from app.errors import ParseError
from app.jsx.tree import (
    AttributeNode,
    Child,
    Document,
    ElementNode,
    ExpressionNode,
    StyleEntry,
    StyleObject,
    TextNode,
)

logger = logging.getLogger(__name__)

_ELEMENT_TYPES = frozenset({"jsx_element", "jsx_self_closing_element"})
_ATTRIBUTE_TYPES = frozenset({"jsx_attribute", "jsx_expression"})
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


def parse(source: str) -> Document:
    """Parse ``source`` into a Document. Raises ParseError on malformed input."""
    src = _Source(source)
    tree = get_parser("tsx").parse(src.data)
    root = tree.root_node
    if root.has_error:
        raise _syntax_error(src, root)
    try:
        roots = _Mapper(src).collect(root, parent=None)
    except RecursionError:
        raise src.error("Markup is nested too deeply", 0) from None
    doc = Document(source=source, roots=roots)
    logger.debug("Parsed source: %d roots, %d elements", len(roots), doc.num_elements)
    return doc


def check_syntax(source: str) -> tuple[bool, str | None]:
    """Return ``(True, None)`` when ``source`` parses, else ``(False, message)``."""
    try:
        parse(source)
    except ParseError as e:
        return False, e.message
    return True, None


def parse_style_object(code: str) -> StyleObject | None:
    """Parse the inside of a ``style={...}`` container.

    Returns None unless ``code`` is exactly one plain object literal.
    """
    parsed = _parse_expression(code)
    if parsed is None:
        return None
    src, node = parsed
    if node.type != "object":
        return None
    entries = [_style_entry(src, child) for child in node.named_children if child.type != "comment"]
    return StyleObject(entries=entries)


def literal_value(raw: str) -> str | None:
    """Decode a plain string or number literal; None for any other expression."""
    parsed = _parse_expression(raw)
    if parsed is None:
        return None
    src, node = parsed
    return _literal(src, node)


# -- source offsets -----------------------------------------------------------


class _Source:
    def __init__(self, text: str) -> None:
        self.text = text
        self.data = text.encode("utf-8", "surrogatepass")
        # byte offset -> character offset, only needed outside ASCII
        self._chars: list[int] | None = None
        if len(self.data) != len(text):
            chars: list[int] = []
            for i, ch in enumerate(text):
                chars.extend([i] * len(ch.encode("utf-8", "surrogatepass")))
            chars.append(len(text))
            self._chars = chars

    def offset(self, byte: int) -> int:
        return byte if self._chars is None else self._chars[byte]

    def start(self, node: Node) -> int:
        return self.offset(node.start_byte)

    def end(self, node: Node) -> int:
        return self.offset(node.end_byte)

    def slice(self, node: Node) -> str:
        return self.text[self.start(node):self.end(node)]

    def error(self, reason: str, pos: int) -> ParseError:
        pos = max(0, min(pos, len(self.text)))
        line = self.text.count("\n", 0, pos) + 1
        column = pos - (self.text.rfind("\n", 0, pos) + 1)
        return ParseError(reason, line, column)


# -- syntax errors ------------------------------------------------------------


def _syntax_error(src: _Source, root: Node) -> ParseError:
    """Describe the first problem tree-sitter recovered from.

    An opening tag that never got its closing tag is reported as such; any
    other problem points at the first ERROR or MISSING node.
    """
    first: Node | None = None
    unclosed: Node | None = None
    stack = [root]
    while stack:
        node = stack.pop()
        if unclosed is None and node.type == "jsx_opening_element" and _is_unclosed(node):
            unclosed = node
        if first is None and (node.type == "ERROR" or node.is_missing):
            first = node
        if node.has_error:
            stack.extend(reversed(node.children))

    if unclosed is not None:
        name = unclosed.child_by_field_name("name")
        label = src.slice(name) if name is not None else ""
        return src.error(f"Unterminated contents, expected </{label}>", src.start(unclosed))
    if first is None:
        return src.error("Unexpected token", 0)
    if first.is_missing:
        return src.error(f'Unexpected token, expected "{first.type}"', src.start(first))
    token = _first_leaf(first)
    text = src.slice(token).strip() if token is not None else ""
    reason = f"Unexpected token '{text}'" if text else "Unexpected token"
    return src.error(reason, src.start(first))


def _is_unclosed(opening: Node) -> bool:
    parent = opening.parent
    if parent is None or parent.type != "jsx_element":
        return True
    closing = parent.children[-1]
    return closing.type != "jsx_closing_element" or closing.has_error


def _first_leaf(node: Node) -> Node | None:
    while node.child_count:
        node = node.children[0]
    return node if node.end_byte > node.start_byte else None


# -- tree mapping -------------------------------------------------------------


class _Mapper:
    def __init__(self, src: _Source) -> None:
        self.src = src

    def collect(self, node: Node, parent: ElementNode | None) -> list[ElementNode]:
        """Outermost markup below ``node``, in document order."""
        found: list[ElementNode] = []
        stack = list(reversed(node.children))
        while stack:
            child = stack.pop()
            if child.type in _ELEMENT_TYPES:
                found.append(self.element(child, parent))
            else:
                stack.extend(reversed(child.children))
        return found

    def element(self, node: Node, parent: ElementNode | None) -> ElementNode:
        src = self.src
        if node.type == "jsx_self_closing_element":
            element = self._opening(node, node, parent)
            element.self_closing = True
            element.end = src.end(node)
            return element

        opening, closing = node.children[0], node.children[-1]
        element = self._opening(node, opening, parent)
        closing_name = closing.child_by_field_name("name")
        if (src.slice(closing_name) if closing_name is not None else "") != element.tag:
            raise src.error(
                f"Expected corresponding closing tag for <{element.tag}>", src.start(closing)
            )
        element.inner_start = src.end(opening)
        element.inner_end = src.start(closing)
        element.end = src.end(closing)
        element.children = self._children(node, element)
        return element

    def _opening(self, node: Node, tag: Node, parent: ElementNode | None) -> ElementNode:
        src = self.src
        name = tag.child_by_field_name("name")
        element = ElementNode(
            tag=src.slice(name) if name is not None else "",
            start=src.start(node),
            parent=parent,
        )
        parts = [child for child in tag.named_children if child.type != "comment"]
        element.attributes = [self._attribute(child, element) for child in parts if child.type in _ATTRIBUTE_TYPES]
        if parts:
            element.attrs_end = src.end(parts[-1])
        else:
            # fragment: just before the ">"
            element.attrs_end = src.end(tag) - 1
        return element

    def _attribute(self, node: Node, owner: ElementNode) -> AttributeNode:
        src = self.src
        start, end = src.start(node), src.end(node)
        if node.type == "jsx_expression":
            expr = self._expression(node, owner)
            if not expr.code.strip().startswith("..."):
                raise src.error("Expected spread attribute", start + 1)
            return AttributeNode(name="", start=start, end=end, expression=expr, spread=True)

        parts = [child for child in node.named_children if child.type != "comment"]
        attr = AttributeNode(name=src.slice(parts[0]), start=start, end=end)
        if len(parts) == 1:
            return attr
        value = parts[-1]
        if value.type == "string":
            text = src.slice(value)
            attr.string_value = text[1:-1]
            attr.quote = text[0]
        elif value.type == "jsx_expression":
            attr.expression = self._expression(value, owner)
            if not attr.expression.code.strip():
                raise src.error(
                    "Attributes must only be assigned a non-empty expression", src.start(value)
                )
        elif value.type in _ELEMENT_TYPES:
            attr.element = self.element(value, owner)
        return attr

    def _expression(self, node: Node, owner: ElementNode) -> ExpressionNode:
        src = self.src
        start, end = src.start(node), src.end(node)
        return ExpressionNode(
            code=src.text[start + 1:end - 1],
            start=start,
            end=end,
            elements=self.collect(node, parent=owner),
        )

    def _children(self, node: Node, element: ElementNode) -> list[Child]:
        """Nested markup and expressions; the text between them becomes text runs."""
        src = self.src
        children: list[Child] = []
        cursor = element.inner_start
        for child in node.children[1:-1]:
            if child.type in _ELEMENT_TYPES:
                mapped: Child = self.element(child, element)
            elif child.type == "jsx_expression":
                mapped = self._expression(child, element)
            else:
                continue
            if mapped.start > cursor:
                children.append(TextNode(raw=src.text[cursor:mapped.start], start=cursor, end=mapped.start))
            children.append(mapped)
            cursor = mapped.end
        if element.inner_end > cursor:
            children.append(
                TextNode(raw=src.text[cursor:element.inner_end], start=cursor, end=element.inner_end)
            )
        return children


# -- expressions --------------------------------------------------------------


def _parse_expression(code: str) -> tuple[_Source, Node] | None:
    """Parse ``code`` as a lone expression; None when it is anything else."""
    src = _Source(f"({code}\n);")
    root = get_parser("tsx").parse(src.data).root_node
    if root.has_error:
        return None
    statements = [child for child in root.named_children if child.type != "comment"]
    if len(statements) != 1 or statements[0].type != "expression_statement":
        return None
    wrapped = [child for child in statements[0].named_children if child.type != "comment"]
    if len(wrapped) != 1 or wrapped[0].type != "parenthesized_expression":
        return None
    inner = [child for child in wrapped[0].named_children if child.type != "comment"]
    if len(inner) != 1:
        return None
    return src, inner[0]


def _style_entry(src: _Source, node: Node) -> StyleEntry:
    text = src.slice(node)
    if node.type == "shorthand_property_identifier":
        return StyleEntry(key=text, raw_key=text, raw_value=text, shorthand=True)
    if node.type != "pair":
        # spreads, methods, getters and the like
        return StyleEntry(key=None, raw_key="", raw_value=text, opaque=True)

    key_node = node.child_by_field_name("key")
    value_node = node.child_by_field_name("value")
    if key_node.type == "property_identifier" or key_node.type == "number":
        key = src.slice(key_node)
    elif key_node.type == "string":
        key = _literal(src, key_node)
    else:
        # computed key
        return StyleEntry(key=None, raw_key="", raw_value=text, opaque=True)
    raw_value = src.slice(value_node)
    return StyleEntry(
        key=key,
        raw_key=src.slice(key_node),
        raw_value=raw_value,
        literal=_literal(src, value_node),
    )


def _literal(src: _Source, node: Node) -> str | None:
    if node.type == "number":
        return src.slice(node)
    if node.type == "unary_expression":
        argument = node.child_by_field_name("argument")
        text = src.slice(node)
        if argument is not None and argument.type == "number" and text.startswith("-"):
            return "-" + src.slice(argument)
        return None
    if node.type != "string":
        return None
    out: list[str] = []
    for part in node.named_children:
        if part.type == "escape_sequence":
            out.append(_unescape(src.slice(part)))
        elif part.type == "string_fragment":
            out.append(src.slice(part))
        else:
            return None
    return "".join(out)


def _unescape(sequence: str) -> str:
    body = sequence[1:]
    if body.startswith("u{"):
        return chr(int(body[2:-1], 16))
    if body[:1] in ("u", "x") and len(body) > 1:
        return chr(int(body[1:], 16))
    if body in ("\n", "\r\n", "\r"):
        # line continuation
        return ""
    return _ESCAPES.get(body, body)
