"""Per-mode force parameters for the relaxation engine."""

from dataclasses import dataclass

from .modes import LayoutConfig, LayoutMode

DEFAULT_VIEWPORT_PADDING = 50.0
COLLISION_MARGIN = 50.0
COLLISION_ITERATIONS = 8


@dataclass(frozen=True)
class ForceParams:
    """Force tuning consumed by ``advance``."""

    link_distance: float
    link_strength: float
    charge_strength: float  # Negative: repulsion
    charge_distance_max: float
    x_strength: float
    y_strength: float
    collision_margin: float = COLLISION_MARGIN
    collision_iterations: int = COLLISION_ITERATIONS
    padding: float = DEFAULT_VIEWPORT_PADDING


# mode -> (link distance factor, link strength, charge multiplier, max distance, x, y)
_PRESETS: dict[LayoutMode, tuple[float, float, float, float, float, float]] = {
    LayoutMode.HUB_SPINE: (1.0, 0.3, 2.5, 1000.0, 0.8, 0.8),
    LayoutMode.RADIAL: (0.5, 0.05, 1.5, 800.0, 0.8, 0.8),
    LayoutMode.HIERARCHICAL: (1.0, 0.1, 2.0, 800.0, 0.9, 0.3),
    LayoutMode.GRID: (1.5, 0.02, 1.5, 800.0, 1.0, 1.0),
    LayoutMode.METRO: (1.0, 0.02, 2.5, 1000.0, 0.3, 0.3),
}


def forces_for(config: LayoutConfig, padding: float = DEFAULT_VIEWPORT_PADDING) -> ForceParams:
    """Get the force parameters for a layout configuration.

    Args:
        config: Layout options (mode, spacing factor, link distance)
        padding: Viewport padding for the boundary clamp

    Returns:
        ForceParams for the configured mode
    """
    distance_factor, link_strength, multiplier, distance_max, x_strength, y_strength = (
        _PRESETS[config.mode]
    )
    return ForceParams(
        link_distance=config.link_distance * distance_factor,
        link_strength=link_strength,
        charge_strength=-config.spacing_factor * multiplier,
        charge_distance_max=distance_max,
        x_strength=x_strength,
        y_strength=y_strength,
        padding=padding,
    )
