"""Renderer frame: per-node and per-edge geometry and styling for one tick."""

import math
import re

from pydantic import BaseModel, Field

from .graph.colors import DEFAULT_COLOR, ColorMode, churn_color, layer_color
from .graph.models import GraphNode, NodeKind
from .graph.queries import GraphView
from .interaction.highlight import (
    HighlightState,
    edge_highlight,
    edge_stroke_width,
    highlight_class_of,
)
from .interaction.viewport import ViewTransform
from .physics.state import SimulationState

DEGENERATE_PATH = "M0,0L0,0"
SELECTED_COLOR = "#ff5f5f"
RELATED_COLOR = "#00ff9d"
ARC_SAGITTA = 1 - math.sqrt(3) / 2  # Arc of radius equal to the chord spans 60 degrees

_EXTENSION = re.compile(r"\.[^.]+$")


class NodeFrame(BaseModel):
    """Render data of one node."""

    id: str
    kind: str
    label: str = Field(..., description="Full label for tooltips")
    text: str = Field(..., description="Text drawn inside the circle")
    x: float
    y: float
    radius: float
    fill: str
    border: str
    opacity: float
    selected: bool = False
    related: bool = False
    dimmed: bool = False
    pinned: bool = False


class EdgeFrame(BaseModel):
    """Render data of one edge."""

    id: str
    source_id: str
    target_id: str
    path: str = Field(..., description="SVG path data")
    is_external: bool = False
    weight: int = 1
    stroke_width: float
    opacity: float
    highlighted: bool = False


class TransformFrame(BaseModel):
    x: float = 0.0
    y: float = 0.0
    k: float = 1.0


class Frame(BaseModel):
    """Everything a renderer needs to draw one tick."""

    tick: int = 0
    alpha: float = 0.0
    layout_mode: str
    degraded: bool = False
    show_labels: bool = True
    curved_links: bool = True
    color_mode: str = ColorMode.FOLDER.value
    transform: TransformFrame = Field(default_factory=TransformFrame)
    nodes: list[NodeFrame] = Field(default_factory=list)
    edges: list[EdgeFrame] = Field(default_factory=list)
    highlighted_ids: list[str] = Field(default_factory=list)


def edge_path(sx: float, sy: float, tx: float, ty: float, curved: bool) -> str:
    """Build SVG path data for an edge between two node centers.

    Curved edges are quadratic arcs whose apex matches a circular arc with
    radius equal to the chord length. Non-finite or coincident endpoints
    produce an empty path.
    """
    if not all(math.isfinite(value) for value in (sx, sy, tx, ty)):
        return DEGENERATE_PATH
    if not curved:
        return f"M{sx:g},{sy:g}L{tx:g},{ty:g}"
    dx = tx - sx
    dy = ty - sy
    chord = math.hypot(dx, dy)
    if chord == 0:
        return DEGENERATE_PATH
    offset = chord * ARC_SAGITTA * 2
    cx = (sx + tx) / 2 - dy / chord * offset
    cy = (sy + ty) / 2 + dx / chord * offset
    return f"M{sx:g},{sy:g}Q{cx:g},{cy:g} {tx:g},{ty:g}"


def node_text(node: GraphNode, radius: float) -> str:
    """Text drawn inside a node circle.

    File labels drop their extension; the text is cut to the number of
    characters that fit around the circle.
    """
    text = node.label or node.id or "?"
    if node.kind == NodeKind.FILE:
        text = _EXTENSION.sub("", text) or text
    font_size = max(8.0, min(12.0, radius * 0.4))
    max_chars = max(3, math.floor(radius * 2 * math.pi / (font_size * 0.6)) - 1)
    if len(text) > max_chars:
        return text[:max_chars] + "…"
    return text


def node_fill(node: GraphNode, color_mode: ColorMode) -> tuple[str, str]:
    """Fill and border color of a node under a color mode."""
    fill = node.color or DEFAULT_COLOR.fill
    border = node.border_color or DEFAULT_COLOR.border
    if node.kind != NodeKind.FILE or color_mode == ColorMode.FOLDER:
        return fill, border
    if color_mode == ColorMode.LAYER:
        color = layer_color(node.path)
    else:
        color = churn_color(node.path)
    return color, color


def build_frame(
    view: GraphView,
    state: SimulationState,
    highlight: HighlightState,
    transform: ViewTransform,
    layout_mode: str,
    show_labels: bool = True,
    curved_links: bool = True,
    color_mode: ColorMode = ColorMode.FOLDER,
) -> Frame:
    """Assemble the render frame for the current tick.

    Args:
        view: Rendered nodes and edges
        state: Physics state holding live positions
        highlight: Highlight sources for this tick
        transform: Current viewport transform
        layout_mode: Active layout mode name
        show_labels: Whether labels are drawn
        curved_links: Whether edges are arcs
        color_mode: Node coloring

    Returns:
        Frame with nodes in view order
    """
    nodes: list[NodeFrame] = []
    for node in view.nodes:
        node_state = state.nodes.get(node.id)
        if node_state is None:
            continue
        cls = highlight_class_of(node.id, highlight)
        fill, border = node_fill(node, color_mode)
        if cls.selected:
            fill = border = SELECTED_COLOR
        elif cls.related:
            fill = border = RELATED_COLOR
        x = node_state.x if math.isfinite(node_state.x) else 0.0
        y = node_state.y if math.isfinite(node_state.y) else 0.0
        nodes.append(
            NodeFrame(
                id=node.id,
                kind=node.kind,
                label=node.label,
                text=node_text(node, node_state.radius) if show_labels else "",
                x=x,
                y=y,
                radius=node_state.radius,
                fill=fill,
                border=border,
                opacity=cls.opacity,
                selected=cls.selected,
                related=cls.related,
                dimmed=cls.dimmed,
                pinned=node_state.pinned,
            )
        )

    edges: list[EdgeFrame] = []
    for edge in view.edges:
        source = state.nodes.get(edge.source_id)
        target = state.nodes.get(edge.target_id)
        if source is None or target is None:
            path = DEGENERATE_PATH
        else:
            path = edge_path(source.x, source.y, target.x, target.y, curved_links)
        styling = edge_highlight(edge.source_id, edge.target_id, highlight)
        edges.append(
            EdgeFrame(
                id=edge.id,
                source_id=edge.source_id,
                target_id=edge.target_id,
                path=path,
                is_external=edge.is_external,
                weight=edge.weight,
                stroke_width=edge_stroke_width(edge.weight),
                opacity=styling.opacity,
                highlighted=styling.highlighted,
            )
        )

    return Frame(
        tick=state.tick,
        alpha=state.alpha,
        layout_mode=layout_mode,
        degraded=view.degraded,
        show_labels=show_labels,
        curved_links=curved_links,
        color_mode=ColorMode(color_mode).value,
        transform=TransformFrame(x=transform.x, y=transform.y, k=transform.k),
        nodes=nodes,
        edges=edges,
        highlighted_ids=sorted(highlight.highlighted_ids()),
    )
