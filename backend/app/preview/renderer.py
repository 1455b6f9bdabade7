"""Static renderer: instrumented source → RenderedNode trees.

Stands in for the browser. Only what can be read off the markup is rendered:
literal attributes, literal inline style entries, text runs and literal
expression children. Anything computed at runtime is left out.
"""

from __future__ import annotations

import html
import logging
from typing import Protocol

from app.jsx.parser import literal_value, parse, parse_style_object
from app.jsx.tree import ElementNode, ExpressionNode, TextNode
from app.preview.dom import RenderedNode

logger = logging.getLogger(__name__)

# Numeric style values that stay unitless
_UNITLESS = frozenset({"fontWeight", "lineHeight", "opacity", "zIndex", "flex", "flexGrow", "flexShrink", "order"})


class Renderer(Protocol):
    def render(self, source: str) -> list[RenderedNode]: ...


class StaticRenderer:
    def render(self, source: str) -> list[RenderedNode]:
        document = parse(source)
        nodes: list[RenderedNode] = []
        for root in document.roots:
            nodes.extend(self._element(root))
        logger.debug("Rendered %d top-level nodes", len(nodes))
        return nodes

    def _element(self, element: ElementNode) -> list[RenderedNode]:
        if element.is_fragment:
            return self._children(element)
        node = RenderedNode(tag=element.tag)
        for attr in element.attributes:
            if attr.spread:
                continue
            if attr.name == "style":
                if attr.expression is not None:
                    node.style.update(_inline_style(attr.expression.code))
                continue
            if attr.string_value is not None:
                node.attributes[attr.name] = html.unescape(attr.string_value)
            elif attr.expression is not None:
                value = literal_value(attr.expression.code)
                if value is not None:
                    node.attributes[attr.name] = value
            elif attr.element is None:
                node.attributes[attr.name] = ""
        for child in self._children(element):
            node.append(child)
        return [node]

    def _children(self, element: ElementNode) -> list[RenderedNode]:
        out: list[RenderedNode] = []
        for child in element.children:
            if isinstance(child, TextNode):
                text = _collapse(child.value)
                if text:
                    out.append(RenderedNode.text_node(text))
            elif isinstance(child, ExpressionNode):
                if child.elements:
                    for nested in child.elements:
                        out.extend(self._element(nested))
                    continue
                value = literal_value(child.code)
                if value:
                    out.append(RenderedNode.text_node(value))
            else:
                out.extend(self._element(child))
        return out


def _inline_style(code: str) -> dict[str, str]:
    style = parse_style_object(code)
    if style is None:
        return {}
    out: dict[str, str] = {}
    for entry in style.entries:
        if entry.key is None or entry.literal is None:
            continue
        value = entry.literal
        if literal_value(entry.raw_value) == entry.raw_value.strip() and entry.key not in _UNITLESS:
            # bare number
            value = f"{value}px"
        out[entry.key] = value
    return out


def _collapse(text: str) -> str:
    """JSX whitespace: lines are trimmed and blank lines dropped."""
    if "\n" not in text:
        return text
    lines = (line.strip() for line in text.splitlines())
    return " ".join(line for line in lines if line)
