"""Target coordinate strategies for each layout mode."""

import logging
import math
from collections import deque
from dataclasses import dataclass, field

from ..graph.queries import GraphView, find_cyclic_nodes
from .modes import LayoutConfig, LayoutMode

logger = logging.getLogger(__name__)

MAX_HUBS = 20
HUB_FRACTION = 0.3
RING_BASE = 80.0
RING_STEP = 32.0
PER_RING = 8
RADIAL_FRACTION = 0.35
METRO_MARGIN = 80.0
METRO_MAX_LINE_SPACING = 120.0
METRO_STEP_FACTOR = 0.8
METRO_OVERFLOW_STEP = 50.0

Point = tuple[float, float]


@dataclass
class LayoutPlan:
    """Per-node target coordinates and the metadata behind them."""

    mode: LayoutMode
    targets: dict[str, Point] = field(default_factory=dict)
    folder_centers: dict[str, Point] = field(default_factory=dict)
    hubs: list[str] = field(default_factory=list)
    metro_lines: dict[str, int] = field(default_factory=dict)  # node id -> line index
    cyclic: set[str] = field(default_factory=set)

    def target_of(self, node_id: str) -> Point | None:
        """Get the target coordinate of a node, or None if it has none."""
        return self.targets.get(node_id)


def folder_centers(view: GraphView, width: float, height: float) -> dict[str, Point]:
    """Compute one grid-cell center per top-level folder.

    Folders are laid out in encounter order on a grid with at least two
    columns.

    Args:
        view: Graph view
        width: Viewport width
        height: Viewport height

    Returns:
        Mapping of folder key to cell center
    """
    folders = list(dict.fromkeys(node.top_folder for node in view.nodes))
    if not folders:
        return {}
    cols = max(2, math.ceil(math.sqrt(len(folders))))
    rows = math.ceil(len(folders) / cols)
    cell_w = width / (cols + 1)
    cell_h = height / (rows + 1)
    return {
        folder: (((i % cols) + 1) * cell_w, ((i // cols) + 1) * cell_h)
        for i, folder in enumerate(folders)
    }


def compute_layout(
    view: GraphView,
    config: LayoutConfig,
    width: float,
    height: float,
) -> LayoutPlan:
    """Assign a target coordinate to every node of a view.

    Args:
        view: Nodes and edges to lay out
        config: Layout options; ``mode`` selects the strategy
        width: Viewport width
        height: Viewport height

    Returns:
        LayoutPlan with a finite target for every node
    """
    plan = LayoutPlan(mode=config.mode, folder_centers=folder_centers(view, width, height))
    if not view.nodes:
        return plan

    if config.mode == LayoutMode.HUB_SPINE:
        _hub_spine(view, plan, width, height)
    elif config.mode == LayoutMode.RADIAL:
        _radial(view, plan, width, height)
    elif config.mode == LayoutMode.HIERARCHICAL:
        _hierarchical(view, plan, width, height)
    elif config.mode == LayoutMode.GRID:
        _grid(view, plan, width, height)
    elif config.mode == LayoutMode.METRO:
        _metro(view, plan, config.spacing_factor, height)

    # Any node the strategy left out falls back to its folder cell
    for node in view.nodes:
        if node.id not in plan.targets:
            plan.targets[node.id] = plan.folder_centers.get(
                node.top_folder, (width / 2, height / 2)
            )

    logger.debug(f"Computed {config.mode.value} layout for {len(view.nodes)} nodes")
    return plan


def _hub_spine(view: GraphView, plan: LayoutPlan, width: float, height: float) -> None:
    out_degree: dict[str, int] = {}
    for edge in view.edges:
        out_degree[edge.source_id] = out_degree.get(edge.source_id, 0) + 1

    ranked = sorted(view.nodes, key=lambda node: -out_degree.get(node.id, 0))
    hub_count = min(MAX_HUBS, math.floor(len(view.nodes) * HUB_FRACTION))
    plan.hubs = [node.id for node in ranked[:hub_count]]
    hub_set = set(plan.hubs)

    spacing = width / (len(plan.hubs) + 1)
    for i, hub_id in enumerate(plan.hubs):
        plan.targets[hub_id] = ((i + 1) * spacing, height / 2)

    # Direct dependents of each hub orbit it; the first hub to claim a node keeps it
    dependents: dict[str, list[str]] = {hub_id: [] for hub_id in plan.hubs}
    claimed: set[str] = set()
    for edge in view.edges:
        if edge.source_id not in hub_set or edge.target_id in hub_set:
            continue
        if edge.target_id in claimed:
            continue
        claimed.add(edge.target_id)
        dependents[edge.source_id].append(edge.target_id)

    for hub_id, deps in dependents.items():
        hub_x, hub_y = plan.targets[hub_id]
        for i, dep_id in enumerate(deps):
            ring, slot = divmod(i, PER_RING)
            angle = slot / PER_RING * 2 * math.pi
            radius = RING_BASE + ring * RING_STEP
            plan.targets[dep_id] = (
                hub_x + math.cos(angle) * radius,
                hub_y + math.sin(angle) * radius,
            )


def _radial(view: GraphView, plan: LayoutPlan, width: float, height: float) -> None:
    n = len(view.nodes)
    radius = min(width, height) * RADIAL_FRACTION
    for i, node in enumerate(view.nodes):
        angle = i / n * 2 * math.pi
        plan.targets[node.id] = (
            width / 2 + math.cos(angle) * radius,
            height / 2 + math.sin(angle) * radius,
        )


def _hierarchical(view: GraphView, plan: LayoutPlan, width: float, height: float) -> None:
    groups: dict[str, list[str]] = {}
    for node in view.nodes:
        groups.setdefault(node.top_folder or "root", []).append(node.id)

    layers = sorted(groups)
    col_w = width / (len(layers) + 1)
    for li, layer in enumerate(layers):
        members = groups[layer]
        for ni, node_id in enumerate(members):
            plan.targets[node_id] = ((li + 1) * col_w, (ni + 1) * height / (len(members) + 1))


def _grid(view: GraphView, plan: LayoutPlan, width: float, height: float) -> None:
    n = len(view.nodes)
    cols = math.ceil(math.sqrt(n))
    cell_w = width / (cols + 1)
    cell_h = height / (math.ceil(n / cols) + 1)
    for i, node in enumerate(view.nodes):
        plan.targets[node.id] = (((i % cols) + 1) * cell_w, ((i // cols) + 1) * cell_h)


def _metro(view: GraphView, plan: LayoutPlan, spacing_factor: float, height: float) -> None:
    """Lay out one horizontal line per root, walking outgoing edges breadth-first.

    A node visited from an earlier root is never revisited from a later
    one. Nodes on import cycles are recorded in ``plan.cyclic``; when every
    node has an incoming edge the lowest id seeds the only line.
    """
    outgoing: dict[str, list[str]] = {node.id: [] for node in view.nodes}
    has_incoming: set[str] = set()
    for edge in view.edges:
        if edge.source_id in outgoing and edge.target_id in outgoing:
            outgoing[edge.source_id].append(edge.target_id)
            has_incoming.add(edge.target_id)

    roots = [node.id for node in view.nodes if node.id not in has_incoming]
    if not roots:
        roots = [min(outgoing)]
    plan.cyclic = find_cyclic_nodes(view)

    line_spacing = min(METRO_MAX_LINE_SPACING, (height - 2 * METRO_MARGIN) / max(1, len(roots)))
    step = spacing_factor * METRO_STEP_FACTOR
    visited: set[str] = set()

    for li, root_id in enumerate(roots):
        if root_id in visited:
            continue
        line_y = METRO_MARGIN + li * line_spacing
        x = METRO_MARGIN
        queue = deque([root_id])
        while queue:
            node_id = queue.popleft()
            if node_id in visited:
                continue
            visited.add(node_id)
            plan.targets[node_id] = (x, line_y)
            plan.metro_lines[node_id] = li
            x += step
            queue.extend(target for target in outgoing[node_id] if target not in visited)

    overflow_line = len(roots)
    unreached = [node.id for node in view.nodes if node.id not in visited]
    for i, node_id in enumerate(unreached):
        plan.targets[node_id] = (METRO_MARGIN + i * METRO_OVERFLOW_STEP, height - METRO_MARGIN)
        plan.metro_lines[node_id] = overflow_line
    if unreached:
        logger.debug(f"Metro layout: {len(unreached)} nodes on the overflow line")
