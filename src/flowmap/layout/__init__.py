"""Layout module: layout modes, force presets and target strategies."""

from .forces import ForceParams, forces_for
from .modes import LayoutConfig, LayoutMode, parse_layout_mode
from .strategies import LayoutPlan, compute_layout, folder_centers

__all__ = [
    "ForceParams",
    "LayoutConfig",
    "LayoutMode",
    "LayoutPlan",
    "compute_layout",
    "folder_centers",
    "forces_for",
    "parse_layout_mode",
]
