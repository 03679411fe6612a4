"""Graph module: dependency graph construction, pruning and queries."""

from .builder import (
    BuildResult,
    GraphBuilder,
    NodeIdAllocator,
    classify_external,
    normalize_path,
    package_key,
    select_code_files,
)
from .colors import ColorMode, FolderPalette, NodeColor
from .models import (
    ROOT_ID,
    AnyNode,
    DependencyEdge,
    Edge,
    FileEntry,
    FileNode,
    FolderNode,
    Graph,
    GraphIntegrityError,
    GraphNode,
    NodeKind,
    PackageNode,
    RootNode,
)
from .overview import build_folder_overview
from .pruning import DEFAULT_NODE_BUDGET, prune_graph
from .queries import (
    GraphView,
    blast_radius,
    find_cyclic_nodes,
    find_nodes,
    get_connected_components,
    get_dependencies,
    get_dependents,
    get_related,
    node_matches,
    renderable_view,
)

__all__ = [
    # Models
    "ROOT_ID",
    "AnyNode",
    "DependencyEdge",
    "Edge",
    "FileEntry",
    "FileNode",
    "FolderNode",
    "Graph",
    "GraphIntegrityError",
    "GraphNode",
    "NodeKind",
    "PackageNode",
    "RootNode",
    # Colors
    "ColorMode",
    "FolderPalette",
    "NodeColor",
    # Builder
    "BuildResult",
    "GraphBuilder",
    "NodeIdAllocator",
    "classify_external",
    "normalize_path",
    "package_key",
    "select_code_files",
    "build_folder_overview",
    # Pruning
    "DEFAULT_NODE_BUDGET",
    "prune_graph",
    # Queries
    "GraphView",
    "blast_radius",
    "find_cyclic_nodes",
    "find_nodes",
    "get_connected_components",
    "get_dependencies",
    "get_dependents",
    "get_related",
    "node_matches",
    "renderable_view",
]
