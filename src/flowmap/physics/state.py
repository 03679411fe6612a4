"""Per-node physics state, warm start and degenerate-layout recovery."""

import logging
import math
import random
from collections.abc import Mapping
from dataclasses import dataclass, field, replace

from ..graph.queries import GraphView

logger = logging.getLogger(__name__)

FOLDER_JITTER = 50.0
CENTER_JITTER = 100.0

Point = tuple[float, float]


@dataclass
class NodeState:
    """Position, velocity and pin of one node."""

    id: str
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    radius: float = 8.0
    fx: float | None = None
    fy: float | None = None

    @property
    def pinned(self) -> bool:
        return self.fx is not None or self.fy is not None

    @property
    def has_position(self) -> bool:
        """Whether the position is finite and off the origin axes."""
        return (
            math.isfinite(self.x)
            and math.isfinite(self.y)
            and self.x != 0
            and self.y != 0
        )

    def pin(self, x: float, y: float) -> None:
        self.fx = x
        self.fy = y

    def unpin(self) -> None:
        self.fx = None
        self.fy = None


@dataclass(frozen=True)
class Link:
    """A spring between two nodes."""

    source_id: str
    target_id: str


@dataclass
class SimulationState:
    """Everything ``advance`` reads and produces for one tick."""

    nodes: dict[str, NodeState]
    links: list[Link]
    targets: dict[str, Point]
    width: float
    height: float
    alpha: float = 1.0
    alpha_target: float = 0.0
    tick: int = 0
    order: list[str] = field(default_factory=list)  # Node ids in graph order

    def __post_init__(self) -> None:
        if not self.order:
            self.order = list(self.nodes)

    def copy(self) -> "SimulationState":
        """Deep copy of node states; links and targets are shared read-only."""
        return replace(
            self,
            nodes={node_id: replace(node) for node_id, node in self.nodes.items()},
            order=list(self.order),
        )

    def positions(self) -> dict[str, Point]:
        return {node_id: (node.x, node.y) for node_id, node in self.nodes.items()}

    def valid_fraction(self) -> float:
        """Fraction of nodes with finite, non-degenerate, in-range positions."""
        if not self.nodes:
            return 0.0
        valid = sum(
            1 for node in self.nodes.values()
            if node.has_position
            and abs(node.x) < self.width * 10
            and abs(node.y) < self.height * 10
        )
        return valid / len(self.nodes)


def seed_states(
    view: GraphView,
    previous: Mapping[str, NodeState],
    folder_centers: Mapping[str, Point],
    width: float,
    height: float,
    rng: random.Random,
) -> dict[str, NodeState]:
    """Create node states for a view, carrying over surviving nodes by id.

    Surviving nodes keep position and velocity when their position is
    valid. New nodes are placed near their folder's cell center, or near
    the viewport center when the folder has none, with small jitter.

    Args:
        view: Nodes to create states for
        previous: States from before the rebuild, keyed by node id
        folder_centers: Folder key -> cell center
        width: Viewport width
        height: Viewport height
        rng: Source of placement jitter

    Returns:
        Node states in view order
    """
    states: dict[str, NodeState] = {}
    carried = 0
    for node in view.nodes:
        existing = previous.get(node.id)
        if existing is not None and existing.has_position:
            states[node.id] = NodeState(
                id=node.id,
                x=existing.x,
                y=existing.y,
                vx=existing.vx,
                vy=existing.vy,
                radius=node.radius,
            )
            carried += 1
            continue

        center = folder_centers.get(node.top_folder)
        if center is not None:
            x = center[0] + (rng.random() - 0.5) * FOLDER_JITTER
            y = center[1] + (rng.random() - 0.5) * FOLDER_JITTER
        else:
            x = width / 2 + (rng.random() - 0.5) * CENTER_JITTER
            y = height / 2 + (rng.random() - 0.5) * CENTER_JITTER
        states[node.id] = NodeState(id=node.id, x=x, y=y, radius=node.radius)

    if previous:
        logger.debug(f"Warm start: {carried} of {len(states)} nodes kept their position")
    return states


def is_degenerate(state: SimulationState) -> bool:
    """Whether no node has a finite, non-zero position."""
    return bool(state.nodes) and not any(node.has_position for node in state.nodes.values())


def reseed(state: SimulationState, rng: random.Random) -> SimulationState:
    """Scatter every node near the viewport center and clear velocities.

    The viewport falls back to 1x1 when its size is zero or non-finite, so
    reseeded positions are always finite.
    """
    width = state.width if math.isfinite(state.width) and state.width > 0 else 1.0
    height = state.height if math.isfinite(state.height) and state.height > 0 else 1.0
    result = state.copy()
    for node in result.nodes.values():
        node.x = width / 2 + (rng.random() - 0.5) * CENTER_JITTER
        node.y = height / 2 + (rng.random() - 0.5) * CENTER_JITTER
        node.vx = 0.0
        node.vy = 0.0
    logger.warning(f"Degenerate layout: reseeded {len(result.nodes)} nodes near the center")
    return result
