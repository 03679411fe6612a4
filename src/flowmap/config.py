"""Configuration management for flowmap."""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .graph.colors import ColorMode
from .layout.modes import LayoutConfig, LayoutMode, parse_layout_mode


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FLOWMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Layout settings
    layout_mode: LayoutMode = Field(
        default=LayoutMode.METRO,
        description="Layout strategy: hub-spine, radial, hierarchical, grid or metro",
    )
    spacing_factor: float = Field(
        default=750.0,
        description="Repulsion scale and metro x step base",
    )
    link_distance: float = Field(
        default=195.0,
        description="Rest length of link springs",
    )
    show_labels: bool = Field(default=True, description="Render node labels")
    curved_links: bool = Field(default=True, description="Render edges as arcs")

    # Graph settings
    node_budget: int = Field(
        default=300,
        description="Maximum node count before pruning",
    )
    min_edge_weight: int = Field(
        default=1,
        description="Hide dependency edges below this aggregated weight",
    )
    include_external: bool = Field(
        default=True,
        description="Show edges to external packages",
    )
    color_mode: ColorMode = Field(
        default=ColorMode.FOLDER,
        description="Node coloring: folder, layer or churn",
    )

    # Interaction settings
    blast_radius_cap: int = Field(
        default=50,
        description="Maximum number of nodes returned by a blast radius query",
    )
    drag_threshold_px: int = Field(
        default=5,
        description="Pointer displacement that turns a press into a drag",
    )

    # Viewport settings
    viewport_width: float = Field(default=800.0, description="Viewport width in px")
    viewport_height: float = Field(default=600.0, description="Viewport height in px")
    boundary_padding: float = Field(
        default=50.0,
        description="Padding kept between nodes and the viewport edge",
    )

    random_seed: int | None = Field(
        default=None,
        description="Seed for placement jitter (None for nondeterministic)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("layout_mode", mode="before")
    @classmethod
    def validate_layout_mode(cls, v: str | LayoutMode) -> LayoutMode:
        """Parse a layout mode name, accepting the legacy ``force`` alias."""
        return parse_layout_mode(v)

    @field_validator("node_budget", "blast_radius_cap", "min_edge_weight")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Budgets, caps and thresholds must be at least 1."""
        if v < 1:
            raise ValueError(f"Value must be >= 1, got {v}")
        return v

    @field_validator("drag_threshold_px", "boundary_padding")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Value must be >= 0, got {v}")
        return v

    @field_validator("spacing_factor", "link_distance", "viewport_width", "viewport_height")
    @classmethod
    def validate_positive_float(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Value must be > 0, got {v}")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @property
    def layout_config(self) -> LayoutConfig:
        """Get the layout options as a LayoutConfig."""
        return LayoutConfig(
            mode=self.layout_mode,
            spacing_factor=self.spacing_factor,
            link_distance=self.link_distance,
            show_labels=self.show_labels,
            curved_links=self.curved_links,
        )


def setup_logging(level: str) -> None:
    """Configure logging for the application."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
