"""Drag with orbit-follow for directly connected nodes."""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from ..physics.state import NodeState

logger = logging.getLogger(__name__)

DEFAULT_DRAG_THRESHOLD = 5.0
MIN_ORBIT_DISTANCE = 80.0


@dataclass(frozen=True)
class OrbitAnchor:
    """Bearing and distance of a related node from the dragged node at drag start."""

    node_id: str
    rel_x: float
    rel_y: float

    @property
    def distance(self) -> float:
        return math.hypot(self.rel_x, self.rel_y)

    def target(self, pointer_x: float, pointer_y: float) -> tuple[float, float]:
        """Orbit position for the current pointer.

        Keeps the start bearing at ``max(80, distance)`` from the pointer; a
        node that started on top of the dragged node follows the pointer.
        """
        distance = self.distance
        if distance == 0:
            return (pointer_x, pointer_y)
        radius = max(MIN_ORBIT_DISTANCE, distance)
        return (
            pointer_x + self.rel_x / distance * radius,
            pointer_y + self.rel_y / distance * radius,
        )


@dataclass
class DragRelease:
    """Outcome of a pointer release."""

    node_id: str | None
    was_drag: bool
    released_ids: list[str] = field(default_factory=list)

    @property
    def is_click(self) -> bool:
        return self.node_id is not None and not self.was_drag


class DragController:
    """Tracks one pointer gesture on a node.

    A press becomes a drag once the pointer has moved at least the
    threshold along either axis; a release before that is a click.
    """

    def __init__(self, threshold: float = DEFAULT_DRAG_THRESHOLD):
        self.threshold = threshold
        self._pressed_id: str | None = None
        self._start = (0.0, 0.0)
        self._pointer = (0.0, 0.0)
        self._active = False
        self._anchors: list[OrbitAnchor] = []

    @property
    def active(self) -> bool:
        return self._active

    @property
    def pressed_id(self) -> str | None:
        """Id of the pressed node, whether or not the drag has activated."""
        return self._pressed_id

    @property
    def dragged_id(self) -> str | None:
        """Id of the dragged node while a drag is active."""
        return self._pressed_id if self._active else None

    @property
    def related_ids(self) -> list[str]:
        return [anchor.node_id for anchor in self._anchors]

    def press(self, node_id: str, x: float, y: float) -> None:
        """Start a gesture on a node at pointer position (x, y)."""
        self._pressed_id = node_id
        self._start = (x, y)
        self._pointer = (x, y)
        self._active = False
        self._anchors = []

    def move(
        self,
        x: float,
        y: float,
        nodes: Mapping[str, NodeState],
        related_ids: Iterable[str] = (),
    ) -> bool:
        """Move the pointer.

        On the first move past the threshold the drag activates and the
        positions of ``related_ids`` relative to the dragged node are
        snapshotted.

        Args:
            x: Pointer x in world coordinates
            y: Pointer y in world coordinates
            nodes: Current node states
            related_ids: Nodes connected to the pressed node in either direction

        Returns:
            True if a drag is active after this move
        """
        if self._pressed_id is None:
            return False
        self._pointer = (x, y)
        if self._active:
            return True

        dx = abs(x - self._start[0])
        dy = abs(y - self._start[1])
        if dx < self.threshold and dy < self.threshold:
            return False

        dragged = nodes.get(self._pressed_id)
        if dragged is None:
            logger.debug(f"Drag on unknown node {self._pressed_id} ignored")
            self._pressed_id = None
            return False

        self._active = True
        self._anchors = [
            OrbitAnchor(
                node_id=node_id,
                rel_x=nodes[node_id].x - dragged.x,
                rel_y=nodes[node_id].y - dragged.y,
            )
            for node_id in dict.fromkeys(related_ids)
            if node_id in nodes and node_id != self._pressed_id
        ]
        logger.debug(f"Drag started on {self._pressed_id} with {len(self._anchors)} related nodes")
        return True

    def pins(self) -> dict[str, tuple[float, float]]:
        """Pin positions for the dragged node and its orbiting neighbors."""
        if not self._active or self._pressed_id is None:
            return {}
        px, py = self._pointer
        pins = {anchor.node_id: anchor.target(px, py) for anchor in self._anchors}
        pins[self._pressed_id] = (px, py)
        return pins

    def release(self) -> DragRelease:
        """End the gesture.

        Returns:
            DragRelease naming the node, whether it was a drag and which
            nodes must be unpinned
        """
        node_id = self._pressed_id
        was_drag = self._active
        released = list(self.pins()) if was_drag else []
        self.cancel()
        return DragRelease(node_id=node_id, was_drag=was_drag, released_ids=released)

    def cancel(self) -> None:
        self._pressed_id = None
        self._active = False
        self._anchors = []
