"""Code generator — Document → source text.

Regions of the source that no mutation touched are copied verbatim from the
spans recorded at parse time; only rewritten attributes and replaced children
are regenerated. Rewritten style objects always come out in one canonical
form, ``style={{key: 'value', other: 'value'}}``, so repeated edits converge.
"""

from __future__ import annotations

from app.jsx.tree import (
    AttributeNode,
    Child,
    Document,
    ElementNode,
    ExpressionNode,
    TextNode,
)


def generate(document: Document) -> str:
    src = document.source
    pieces = [(root.start, root.end, _emit_element(src, root)) for root in document.roots]
    return _splice(src, 0, len(src), pieces)


def _splice(src: str, start: int, end: int, pieces: list[tuple[int, int, str]]) -> str:
    """Copy ``src[start:end]`` with each ``(s, e, text)`` piece substituted for ``src[s:e]``."""
    out: list[str] = []
    cursor = start
    for s, e, text in pieces:
        out.append(src[cursor:s])
        out.append(text)
        cursor = e
    out.append(src[cursor:end])
    return "".join(out)


def _emit_element(src: str, element: ElementNode) -> str:
    existing = [
        (attr.start, attr.end, _emit_attribute(src, attr))
        for attr in element.attributes
        if not attr.is_new
    ]
    opening = _splice(src, element.start, element.attrs_end, existing)
    opening += "".join(" " + _emit_attribute(src, attr) for attr in element.attributes if attr.is_new)

    if element.replaced_children:
        body = "".join(_emit_child(src, child) for child in element.children)
        if element.self_closing:
            return f"{opening}>{body}</{element.tag}>"
        return (
            opening
            + src[element.attrs_end:element.inner_start]
            + body
            + src[element.inner_end:element.end]
        )

    if element.self_closing:
        return opening + src[element.attrs_end:element.end]

    children = [
        (child.start, child.end, _emit_child(src, child))
        for child in element.children
        if not isinstance(child, TextNode)
    ]
    return opening + _splice(src, element.attrs_end, element.end, children)


def _emit_child(src: str, child: Child) -> str:
    if isinstance(child, TextNode):
        return child.raw
    if isinstance(child, ExpressionNode):
        return _emit_expression(src, child)
    return _emit_element(src, child)


def _emit_expression(src: str, expr: ExpressionNode) -> str:
    pieces = [(el.start, el.end, _emit_element(src, el)) for el in expr.elements]
    return _splice(src, expr.start, expr.end, pieces)


def _emit_attribute(src: str, attr: AttributeNode) -> str:
    if attr.style is not None:
        return f"{attr.name}={{{attr.style.render()}}}"
    if attr.is_new:
        if attr.string_value is not None:
            return f"{attr.name}={attr.quote}{attr.string_value}{attr.quote}"
        return attr.name
    if attr.expression is not None:
        expr = attr.expression
        return _splice(src, attr.start, attr.end, [(expr.start, expr.end, _emit_expression(src, expr))])
    if attr.element is not None:
        el = attr.element
        return _splice(src, attr.start, attr.end, [(el.start, el.end, _emit_element(src, el))])
    return src[attr.start:attr.end]
