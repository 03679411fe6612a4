"""Physics module: relaxation engine and per-node state."""

from .engine import ALPHA_MIN, Simulation, advance
from .state import Link, NodeState, SimulationState, is_degenerate, reseed, seed_states

__all__ = [
    "ALPHA_MIN",
    "Link",
    "NodeState",
    "Simulation",
    "SimulationState",
    "advance",
    "is_degenerate",
    "reseed",
    "seed_states",
]
