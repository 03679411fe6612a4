"""Interaction module: drag, search, highlight and viewport control."""

from .drag import DragController, DragRelease, OrbitAnchor
from .highlight import (
    EdgeHighlight,
    HighlightClass,
    HighlightSource,
    HighlightState,
    edge_highlight,
    edge_stroke_width,
    highlight_class_of,
)
from .search import SearchController
from .viewport import IDENTITY, ViewTransform, center_on, fit_to_view, zoom_by

__all__ = [
    # Drag
    "DragController",
    "DragRelease",
    "OrbitAnchor",
    # Highlight
    "EdgeHighlight",
    "HighlightClass",
    "HighlightSource",
    "HighlightState",
    "edge_highlight",
    "edge_stroke_width",
    "highlight_class_of",
    # Search
    "SearchController",
    # Viewport
    "IDENTITY",
    "ViewTransform",
    "center_on",
    "fit_to_view",
    "zoom_by",
]
