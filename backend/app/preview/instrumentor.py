"""Live preview instrumentation.

Before rendering, every element gets a sequential instrumentation id in
pre-order, written into the source as ``data-editor-id``. The id exists only
to correlate rendered nodes with tree nodes; editing always goes through the
element's ``tag[index]`` address.
"""

from __future__ import annotations

import logging

from app.jsx.addressor import iter_addressed
from app.jsx.generator import generate
from app.jsx.parser import parse
from app.jsx.tree import AttributeNode, Document, ElementNode
from app.models.mutations import TEXT_PROPERTY, ElementAddress
from app.models.selection import (
    OBSERVED_PROPERTIES,
    ElementInfo,
    ElementSelection,
    InstrumentedSource,
)
from app.preview.dom import RenderedNode
from app.preview.renderer import Renderer, StaticRenderer

logger = logging.getLogger(__name__)

EDITOR_ID_ATTR = "data-editor-id"


def assign_ids(document: Document) -> dict[int, ElementNode]:
    """Number every non-fragment element in pre-order, starting at 1."""
    elements = (el for el in document.iter_elements() if not el.is_fragment)
    return {editor_id: el for editor_id, el in enumerate(elements, start=1)}


def instrument(source: str) -> InstrumentedSource:
    document = parse(source)
    ids = assign_ids(document)
    address_by_node = {id(el): address for address, el in iter_addressed(document)}

    addresses: dict[int, ElementAddress | None] = {}
    for editor_id, element in ids.items():
        address = address_by_node.get(id(element))
        existing = element.find_attribute(EDITOR_ID_ATTR)
        if existing is None:
            element.attributes.append(AttributeNode(name=EDITOR_ID_ATTR, string_value=str(editor_id)))
            addresses[editor_id] = address
        elif existing.string_value is not None and existing.string_value.isdigit():
            # Already instrumented: keep the id the element carries
            addresses.setdefault(int(existing.string_value), address)
    logger.debug("Instrumented %d elements", len(ids))
    return InstrumentedSource(source=generate(document), addresses=addresses)


def analyze(source: str) -> list[ElementInfo]:
    """Describe every element: instrumentation id, address, style presence, text."""
    document = parse(source)
    address_by_node = {id(el): address for address, el in iter_addressed(document)}
    return [
        ElementInfo(
            editor_id=editor_id,
            address=address_by_node.get(id(el)),
            tag_name=el.tag,
            has_style=el.find_attribute("style") is not None,
            text=el.text_content(),
        )
        for editor_id, el in assign_ids(document).items()
    ]


def select_node(node: RenderedNode, address: ElementAddress | None) -> ElementSelection:
    computed = node.computed_style()
    properties = {
        prop: node.text_content if prop == TEXT_PROPERTY else computed.get(prop, "")
        for prop in OBSERVED_PROPERTIES
    }
    return ElementSelection(
        editor_id=int(node.attributes[EDITOR_ID_ATTR]),
        address=address,
        tag_name=node.tag,
        properties=properties,
        node=node,
    )


class PreviewSurface:
    """One long-lived render target whose content is refreshed in place."""

    def __init__(self, renderer: Renderer | None = None) -> None:
        self.renderer = renderer or StaticRenderer()
        self.target = RenderedNode(tag="#root", attached=True)
        self.addresses: dict[int, ElementAddress | None] = {}
        self.selection: ElementSelection | None = None
        self.render_count = 0

    def render(self, source: str) -> InstrumentedSource:
        instrumented = instrument(source)
        nodes = self.renderer.render(instrumented.source)
        self.target.replace_children(nodes)
        self.addresses = instrumented.addresses
        self.render_count += 1

        # The previous selection points at detached nodes now; reselect by id
        if self.selection is not None:
            previous = self.selection.editor_id
            self.selection = None
            node = self.find(previous)
            if node is not None:
                self.selection = select_node(node, self.addresses.get(previous))
        return instrumented

    def find(self, editor_id: int) -> RenderedNode | None:
        wanted = str(editor_id)
        for node in self.target.iter_tree():
            if node.attributes.get(EDITOR_ID_ATTR) == wanted:
                return node
        return None

    def click(self, node: RenderedNode | None) -> ElementSelection | None:
        """Select the nearest instrumented ancestor of ``node``; None clears the selection."""
        hit = node.closest(EDITOR_ID_ATTR) if node is not None else None
        if hit is None or not hit.is_connected or not hit.attributes[EDITOR_ID_ATTR].isdigit():
            self.selection = None
            return None
        editor_id = int(hit.attributes[EDITOR_ID_ATTR])
        self.selection = select_node(hit, self.addresses.get(editor_id))
        logger.debug("Selected %s (id %d)", self.selection.address, editor_id)
        return self.selection

    def select(self, editor_id: int) -> ElementSelection | None:
        return self.click(self.find(editor_id))
