"""Force-directed relaxation: a pure step function and a stateful driver."""

import logging
import math
import random
from collections.abc import Callable

from ..layout.forces import ForceParams
from .state import SimulationState, is_degenerate, reseed

logger = logging.getLogger(__name__)

ALPHA_MIN = 0.001
ALPHA_DECAY = 0.05
VELOCITY_DECAY = 0.6
DISTANCE_MIN2 = 1.0
RELEASE_ALPHA_TARGET = 0.1
RELEASE_TICKS = 30


def _jiggle(seed: int) -> float:
    """Tiny, never-zero deterministic offset that separates coincident nodes."""
    return ((((seed * 7919) % 1000) + 0.5) / 1000 - 0.5) * 1e-6


def advance(state: SimulationState, forces: ForceParams, dt: float = 1.0) -> SimulationState:
    """Advance the simulation by one tick.

    Forces are applied in a fixed order: link springs, many-body
    repulsion, collision, target attraction. Velocities are then damped
    and integrated, pinned nodes are snapped to their pins and every node
    is clamped inside the padded viewport.

    Args:
        state: Current state (not modified)
        forces: Force parameters for the active layout mode
        dt: Integration time step

    Returns:
        The next state
    """
    result = state.copy()
    result.alpha += (result.alpha_target - result.alpha) * ALPHA_DECAY
    result.tick += 1
    alpha = result.alpha

    nodes = [result.nodes[node_id] for node_id in result.order if node_id in result.nodes]

    _apply_links(result, forces, alpha)
    _apply_many_body(nodes, forces, alpha)
    _apply_collision(nodes, forces)
    _apply_targets(result, nodes, forces, alpha)

    for node in nodes:
        if node.fx is None:
            node.vx *= 1 - VELOCITY_DECAY
            node.x += node.vx * dt
        else:
            node.x = node.fx
            node.vx = 0.0
        if node.fy is None:
            node.vy *= 1 - VELOCITY_DECAY
            node.y += node.vy * dt
        else:
            node.y = node.fy
            node.vy = 0.0

    _clamp_to_viewport(result, nodes, forces.padding)
    return result


def _apply_links(state: SimulationState, forces: ForceParams, alpha: float) -> None:
    if forces.link_strength <= 0:
        return
    count: dict[str, int] = {}
    links = [
        link for link in state.links
        if link.source_id in state.nodes and link.target_id in state.nodes
        and link.source_id != link.target_id
    ]
    for link in links:
        count[link.source_id] = count.get(link.source_id, 0) + 1
        count[link.target_id] = count.get(link.target_id, 0) + 1

    for i, link in enumerate(links):
        source = state.nodes[link.source_id]
        target = state.nodes[link.target_id]
        x = target.x + target.vx - source.x - source.vx or _jiggle(i)
        y = target.y + target.vy - source.y - source.vy or _jiggle(i + 1)
        length = math.sqrt(x * x + y * y)
        length = (length - forces.link_distance) / length * alpha * forces.link_strength
        x *= length
        y *= length
        # Lower-degree endpoints move more
        bias = count[link.source_id] / (count[link.source_id] + count[link.target_id])
        target.vx -= x * bias
        target.vy -= y * bias
        source.vx += x * (1 - bias)
        source.vy += y * (1 - bias)


def _apply_many_body(nodes: list, forces: ForceParams, alpha: float) -> None:
    distance_max2 = forces.charge_distance_max ** 2
    for i, node in enumerate(nodes):
        for j, other in enumerate(nodes):
            if i == j:
                continue
            x = other.x - node.x
            y = other.y - node.y
            distance2 = x * x + y * y
            if distance2 >= distance_max2:
                continue
            if x == 0:
                x = _jiggle(i * 31 + j)
                distance2 += x * x
            if y == 0:
                y = _jiggle(j * 31 + i)
                distance2 += y * y
            if distance2 < DISTANCE_MIN2:
                distance2 = math.sqrt(DISTANCE_MIN2 * distance2)
            weight = forces.charge_strength * alpha / distance2
            node.vx += x * weight
            node.vy += y * weight


def _apply_collision(nodes: list, forces: ForceParams) -> None:
    margin = forces.collision_margin
    for _ in range(forces.collision_iterations):
        for i, node in enumerate(nodes):
            ri = node.radius + margin
            ri2 = ri * ri
            xi = node.x + node.vx
            yi = node.y + node.vy
            for j in range(i + 1, len(nodes)):
                other = nodes[j]
                rj = other.radius + margin
                r = ri + rj
                x = xi - other.x - other.vx
                y = yi - other.y - other.vy
                distance2 = x * x + y * y
                if distance2 >= r * r:
                    continue
                if x == 0:
                    x = _jiggle(i + j)
                    distance2 += x * x
                if y == 0:
                    y = _jiggle(i * j + 1)
                    distance2 += y * y
                length = math.sqrt(distance2)
                length = (r - length) / length
                rj2 = rj * rj
                share = rj2 / (ri2 + rj2)
                x *= length
                y *= length
                node.vx += x * share
                node.vy += y * share
                other.vx -= x * (1 - share)
                other.vy -= y * (1 - share)


def _apply_targets(
    state: SimulationState, nodes: list, forces: ForceParams, alpha: float
) -> None:
    center = (state.width / 2, state.height / 2)
    for node in nodes:
        tx, ty = state.targets.get(node.id, center)
        node.vx += (tx - node.x) * forces.x_strength * alpha
        node.vy += (ty - node.y) * forces.y_strength * alpha


def _clamp_to_viewport(state: SimulationState, nodes: list, padding: float) -> None:
    for node in nodes:
        if not (math.isfinite(node.x) and math.isfinite(node.y)):
            continue
        node.x = _clamp_axis(node.x, node.radius, state.width, padding)
        node.y = _clamp_axis(node.y, node.radius, state.height, padding)


def _clamp_axis(value: float, radius: float, extent: float, padding: float) -> float:
    low = padding + radius
    high = extent - padding - radius
    if low > high:
        return extent / 2
    return max(low, min(high, value))


class Simulation:
    """Drives ``advance`` tick by tick for a host loop.

    The simulation is hot while alpha is above ``ALPHA_MIN`` or a positive
    alpha target keeps it warm. When it cools down the registered end
    callbacks run once.
    """

    def __init__(
        self,
        state: SimulationState,
        forces: ForceParams,
        seed: int | None = None,
    ):
        """Initialize the simulation.

        Args:
            state: Initial state
            forces: Force parameters for the active layout mode
            seed: Seed for degenerate-layout reseeding
        """
        self.state = state
        self.forces = forces
        self._rng = random.Random(seed)
        self._end_callbacks: list[Callable[["Simulation"], None]] = []
        self._release_ticks = 0
        self._settled = False
        self._stopped = False

    @property
    def alpha(self) -> float:
        return self.state.alpha

    @property
    def is_hot(self) -> bool:
        if self._stopped:
            return False
        return self.state.alpha >= ALPHA_MIN or self.state.alpha_target > 0

    @property
    def settled(self) -> bool:
        return self._settled

    @property
    def stopped(self) -> bool:
        return self._stopped

    def on_end(self, callback: Callable[["Simulation"], None]) -> None:
        """Register a callback run each time the simulation cools down."""
        self._end_callbacks.append(callback)

    def restart(self, alpha: float = 1.0) -> None:
        """Reheat the simulation and clear every pin."""
        if self._stopped:
            return
        self.state.alpha = alpha
        self._settled = False
        for node in self.state.nodes.values():
            node.unpin()

    def reheat(self, alpha_target: float = RELEASE_ALPHA_TARGET, ticks: int = RELEASE_TICKS) -> None:
        """Keep the simulation warm for a number of ticks, then let it cool.

        Used after a drag release so nodes settle back under the forces.
        """
        if self._stopped:
            return
        self.state.alpha_target = alpha_target
        self.state.alpha = max(self.state.alpha, alpha_target)
        self._release_ticks = ticks
        self._settled = False

    def step(self, dt: float = 1.0) -> bool:
        """Advance one tick if the simulation is hot.

        Args:
            dt: Integration time step

        Returns:
            True if a tick was applied
        """
        if not self.is_hot:
            return False

        if is_degenerate(self.state):
            self.state = reseed(self.state, self._rng)

        self.state = advance(self.state, self.forces, dt)

        if self._release_ticks > 0:
            self._release_ticks -= 1
            if self._release_ticks == 0:
                self.state.alpha_target = 0.0

        if self.state.alpha < ALPHA_MIN and self.state.alpha_target == 0 and not self._settled:
            self._settled = True
            logger.debug(f"Simulation settled after {self.state.tick} ticks")
            for callback in list(self._end_callbacks):
                callback(self)
        return True

    def run_until_settled(self, max_ticks: int = 1000, dt: float = 1.0) -> int:
        """Step until the simulation settles or ``max_ticks`` is reached.

        Returns:
            Number of ticks applied
        """
        ticks = 0
        while ticks < max_ticks and self.step(dt):
            ticks += 1
        return ticks

    def stop(self) -> None:
        """Detach the simulation: no further ticks, no callbacks."""
        self._stopped = True
        self._end_callbacks.clear()
        self._release_ticks = 0
        logger.debug("Simulation stopped")
