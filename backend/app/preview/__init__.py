"""Live preview: instrumentation, static rendering and selection."""

from app.preview.dom import RenderedNode
from app.preview.instrumentor import EDITOR_ID_ATTR, PreviewSurface, analyze, assign_ids, instrument

__all__ = [
    "RenderedNode",
    "EDITOR_ID_ATTR",
    "PreviewSurface",
    "analyze",
    "assign_ids",
    "instrument",
]
