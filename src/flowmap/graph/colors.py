"""Node color assignment: stable folder palette and alternate color modes."""

from dataclasses import dataclass, field
from enum import Enum


class ColorMode(str, Enum):
    """How nodes are colored in the rendered frame."""

    FOLDER = "folder"  # Palette color of the top-level folder
    LAYER = "layer"  # Architectural layer guessed from the path
    CHURN = "churn"  # Path depth as a stand-in for change frequency


@dataclass(frozen=True)
class NodeColor:
    """Fill and border color pair."""

    fill: str
    border: str


PALETTE: tuple[NodeColor, ...] = (
    NodeColor("#8b5cf6", "#a78bfa"),
    NodeColor("#f59e0b", "#fbbf24"),
    NodeColor("#22c55e", "#4ade80"),
    NodeColor("#06b6d4", "#22d3ee"),
    NodeColor("#ec4899", "#f472b6"),
    NodeColor("#3b82f6", "#60a5fa"),
    NodeColor("#f97316", "#fb923c"),
    NodeColor("#14b8a6", "#2dd4bf"),
)

DEFAULT_COLOR = PALETTE[0]
PACKAGE_COLOR = NodeColor("#f59e0b", "#fbbf24")
ROOT_COLOR = NodeColor("#0b0f1a", "#a78bfa")

# Ordered: the first matching fragment wins
LAYER_COLORS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("/ui/", "/components/", "/pages/"), "#4d9fff"),
    (("/api/", "/server/", "/backend/"), "#00ff9d"),
    (("/lib/", "/utils/", "/helpers/"), "#a78bfa"),
    (("/db/", "/models/", "/schema/"), "#ff9f43"),
    (("/test/", "/__tests__/", "spec."), "#ec4899"),
    (("/config/", "/."), "#84cc16"),
)
LAYER_DEFAULT = "#8b5cf6"


@dataclass
class FolderPalette:
    """Assigns palette colors to top-level folders on first encounter.

    Colors cycle with wraparound once all palette entries are used. The
    assignment only depends on encounter order, so identical inputs always
    produce identical colors.
    """

    assigned: dict[str, NodeColor] = field(default_factory=dict)

    def color_for(self, folder_key: str) -> NodeColor:
        """Get (or assign) the color of a top-level folder.

        Args:
            folder_key: Top-level folder name ("root" for root-level files)

        Returns:
            The folder's color pair
        """
        existing = self.assigned.get(folder_key)
        if existing is not None:
            return existing
        color = PALETTE[len(self.assigned) % len(PALETTE)]
        self.assigned[folder_key] = color
        return color


def layer_color(path: str) -> str:
    """Guess an architectural layer color from path fragments."""
    padded = f"/{path}"
    for fragments, color in LAYER_COLORS:
        if any(fragment in padded for fragment in fragments):
            return color
    return LAYER_DEFAULT


def churn_color(path: str) -> str:
    """Color by path depth: shallow files are assumed to change most often."""
    depth = len(path.split("/"))
    if depth <= 2:
        return "#ff5f5f"
    if depth <= 4:
        return "#ff9f43"
    return "#4d9fff"
