"""Minimal DOM-like tree the preview renders into.

A ``RenderedNode`` is either an element (``tag`` set) or a text run
(``tag == "#text"``). Nodes are connected while their ancestor chain reaches
an attached render target.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from app.errors import ElementDisconnected
from app.models.mutations import TEXT_PROPERTY

TEXT_TAG = "#text"

# Properties inherited from the parent when not set inline
_INHERITED = ("color", "fontFamily", "fontSize", "fontWeight", "lineHeight", "textAlign")

_DEFAULTS: dict[str, str] = {
    "color": "rgb(0, 0, 0)",
    "backgroundColor": "rgba(0, 0, 0, 0)",
    "fontFamily": "serif",
    "fontSize": "16px",
    "fontWeight": "400",
    "lineHeight": "normal",
    "textAlign": "start",
    "padding": "0px",
    "margin": "0px",
    "borderRadius": "0px",
    "border": "none",
    "width": "auto",
    "height": "auto",
    "position": "static",
}

_INLINE_TAGS = frozenset({"a", "span", "strong", "em", "b", "i", "code", "img", "label", "button"})


@dataclass(eq=False)
class RenderedNode:
    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    style: dict[str, str] = field(default_factory=dict)
    children: list[RenderedNode] = field(default_factory=list)
    parent: RenderedNode | None = field(default=None, repr=False)
    text: str = ""
    # Only a render target is attached on its own
    attached: bool = False

    @classmethod
    def text_node(cls, text: str) -> RenderedNode:
        return cls(tag=TEXT_TAG, text=text)

    @property
    def is_text(self) -> bool:
        return self.tag == TEXT_TAG

    @property
    def is_connected(self) -> bool:
        node: RenderedNode | None = self
        while node is not None:
            if node.attached:
                return True
            node = node.parent
        return False

    def append(self, child: RenderedNode) -> RenderedNode:
        child.remove()
        child.parent = self
        self.children.append(child)
        return child

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None

    def replace_children(self, children: list[RenderedNode]) -> None:
        for old in list(self.children):
            old.remove()
        for child in children:
            self.append(child)

    def iter_tree(self) -> Iterator[RenderedNode]:
        yield self
        for child in self.children:
            yield from child.iter_tree()

    def closest(self, attribute: str) -> RenderedNode | None:
        """Nearest ancestor-or-self element carrying ``attribute``."""
        node: RenderedNode | None = self
        while node is not None:
            if not node.is_text and attribute in node.attributes:
                return node
            node = node.parent
        return None

    @property
    def text_content(self) -> str:
        if self.is_text:
            return self.text
        return "".join(child.text_content for child in self.children)

    def computed_style(self) -> dict[str, str]:
        parent = self.parent.computed_style() if self.parent is not None and not self.parent.attached else None
        computed = dict(_DEFAULTS)
        computed["display"] = "inline" if self.tag in _INLINE_TAGS else "block"
        if parent is not None:
            for prop in _INHERITED:
                computed[prop] = parent[prop]
        computed.update(self.style)
        return computed

    def apply_property(self, prop: str, value: str) -> None:
        """Optimistically write one editable property onto this node."""
        if not self.is_connected:
            raise ElementDisconnected(
                f"Rendered <{self.tag}> is no longer attached", {"property": prop}
            )
        if prop == TEXT_PROPERTY:
            self.replace_children([RenderedNode.text_node(value)])
        else:
            self.style[prop] = value
