"""Highlight precedence for nodes and edges.

Several sources can highlight at once. Precedence is fixed:
explicit selection, then search, then drag, then default.
"""

import math
from dataclasses import dataclass
from enum import Enum

DIMMED_OPACITY = 0.2
EDGE_DEFAULT_OPACITY = 0.4
EDGE_HIGHLIGHT_OPACITY = 0.8
EDGE_DIMMED_OPACITY = 0.15


class HighlightSource(str, Enum):
    """Which interaction currently drives highlighting."""

    SELECTION = "selection"
    SEARCH = "search"
    DRAG = "drag"
    NONE = "none"


@dataclass(frozen=True)
class HighlightClass:
    """Highlight classification of a node."""

    selected: bool = False
    related: bool = False
    dimmed: bool = False

    @property
    def opacity(self) -> float:
        return DIMMED_OPACITY if self.dimmed else 1.0


@dataclass(frozen=True)
class EdgeHighlight:
    """Highlight classification of an edge."""

    highlighted: bool = False
    dimmed: bool = False

    @property
    def opacity(self) -> float:
        if self.highlighted:
            return EDGE_HIGHLIGHT_OPACITY
        if self.dimmed:
            return EDGE_DIMMED_OPACITY
        return EDGE_DEFAULT_OPACITY


@dataclass(frozen=True)
class HighlightState:
    """Snapshot of every highlight source for one tick."""

    selected_id: str | None = None
    selected_related: frozenset[str] = frozenset()
    search_highlight_id: str | None = None
    search_matches: frozenset[str] = frozenset()
    drag_id: str | None = None
    drag_related: frozenset[str] = frozenset()

    @property
    def source(self) -> HighlightSource:
        if self.selected_id is not None:
            return HighlightSource.SELECTION
        if self.search_matches:
            return HighlightSource.SEARCH
        if self.drag_id is not None:
            return HighlightSource.DRAG
        return HighlightSource.NONE

    def highlighted_ids(self) -> set[str]:
        """Ids of every selected or related node under the active source."""
        source = self.source
        if source == HighlightSource.SELECTION:
            return {self.selected_id, *self.selected_related}
        if source == HighlightSource.SEARCH:
            ids = set(self.search_matches)
            if self.search_highlight_id is not None:
                ids.add(self.search_highlight_id)
            return ids
        if source == HighlightSource.DRAG:
            return {self.drag_id, *self.drag_related}
        return set()


def highlight_class_of(node_id: str, state: HighlightState) -> HighlightClass:
    """Classify a node under the active highlight source.

    Args:
        node_id: Node to classify
        state: Highlight sources for this tick

    Returns:
        HighlightClass; everything is undimmed when nothing highlights
    """
    source = state.source
    if source == HighlightSource.SELECTION:
        selected_id, related = state.selected_id, state.selected_related
    elif source == HighlightSource.SEARCH:
        selected_id, related = state.search_highlight_id, state.search_matches
    elif source == HighlightSource.DRAG:
        selected_id, related = state.drag_id, state.drag_related
    else:
        return HighlightClass()

    if node_id == selected_id:
        return HighlightClass(selected=True)
    if node_id in related:
        return HighlightClass(related=True)
    return HighlightClass(dimmed=True)


def edge_highlight(source_id: str, target_id: str, state: HighlightState) -> EdgeHighlight:
    """Classify an edge under the active highlight source.

    Selection and drag highlight edges touching the focused node; search
    highlights edges touching any match.
    """
    source = state.source
    if source == HighlightSource.NONE:
        return EdgeHighlight()
    if source == HighlightSource.SEARCH:
        touched = source_id in state.search_matches or target_id in state.search_matches
    else:
        focus = state.selected_id if source == HighlightSource.SELECTION else state.drag_id
        touched = focus in (source_id, target_id)
    return EdgeHighlight(highlighted=touched, dimmed=not touched)


def edge_stroke_width(weight: int) -> float:
    """Stroke width for an edge of the given aggregated weight."""
    return max(1.0, min(2.0, math.sqrt(weight) * 0.3))
