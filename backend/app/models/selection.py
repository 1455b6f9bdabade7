"""Preview selection and element-analysis models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.models.mutations import ElementAddress

# Live properties captured when an element is selected
OBSERVED_PROPERTIES = (
    "textContent",
    "color",
    "backgroundColor",
    "fontSize",
    "fontWeight",
    "fontFamily",
    "lineHeight",
    "textAlign",
    "padding",
    "margin",
    "borderRadius",
    "border",
    "width",
    "height",
    "display",
    "position",
)


class ElementSelection(BaseModel):
    """Snapshot of a selected rendered element.

    Valid only while ``node`` stays attached to the render target.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    editor_id: int
    # None for elements the addressor does not count (member tags)
    address: ElementAddress | None = None
    tag_name: str
    properties: dict[str, str] = Field(default_factory=dict)
    node: Any = Field(default=None, exclude=True)

    @property
    def is_valid(self) -> bool:
        return self.node is not None and self.node.is_connected


class ElementInfo(BaseModel):
    editor_id: int
    address: ElementAddress | None = None
    tag_name: str
    has_style: bool = False
    text: str = ""


class InstrumentedSource(BaseModel):
    source: str
    # instrumentation id -> address
    addresses: dict[int, ElementAddress | None] = Field(default_factory=dict)
