"""Layout mode identifiers and layout options."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class LayoutMode(str, Enum):
    """Coordinate assignment strategies."""

    HUB_SPINE = "hub-spine"  # Out-degree hubs on a spine, dependents in orbits
    RADIAL = "radial"  # Single circle
    HIERARCHICAL = "hierarchical"  # One column per folder
    GRID = "grid"  # Square-ish grid
    METRO = "metro"  # One BFS line per root


# Names used by older hosts
_ALIASES = {
    "force": LayoutMode.HUB_SPINE,
    "hub_spine": LayoutMode.HUB_SPINE,
    "hubspine": LayoutMode.HUB_SPINE,
}


def parse_layout_mode(value: str | LayoutMode) -> LayoutMode:
    """Parse a layout mode from its value or a known alias.

    Args:
        value: Mode name (case-insensitive) or LayoutMode member

    Returns:
        The matching LayoutMode

    Raises:
        ValueError: If the name is not a known mode
    """
    if isinstance(value, LayoutMode):
        return value
    name = str(value).strip().lower()
    if name in _ALIASES:
        return _ALIASES[name]
    try:
        return LayoutMode(name)
    except ValueError:
        valid = ", ".join(mode.value for mode in LayoutMode)
        raise ValueError(f"Invalid layout mode: {value}. Must be one of {valid}") from None


class LayoutConfig(BaseModel):
    """Layout options shared by the strategy selector and the force presets."""

    mode: LayoutMode = LayoutMode.METRO
    spacing_factor: float = Field(default=750.0, gt=0)
    link_distance: float = Field(default=195.0, gt=0)
    show_labels: bool = True
    curved_links: bool = True

    @field_validator("mode", mode="before")
    @classmethod
    def validate_mode(cls, v: str | LayoutMode) -> LayoutMode:
        """Accept enum members, values and the legacy ``force`` alias."""
        return parse_layout_mode(v)
