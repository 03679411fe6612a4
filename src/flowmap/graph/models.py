"""Pydantic models for the dependency graph and its inputs."""

import math
import re
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

ROOT_ID = "root"
FOLDER_EDGE_KIND = "folder"

MAX_LABEL_LENGTH = 18
MIN_VISUAL_SIZE = 26.0
MAX_VISUAL_SIZE = 90.0

_UNSAFE_ID_CHARS = re.compile(r"[^a-zA-Z0-9]")


class NodeKind(str, Enum):
    """Types of nodes in the dependency graph."""

    FILE = "file"  # Source file from the repository tree
    PACKAGE = "package"  # External dependency keyed by its root segment
    FOLDER = "folder"  # Directory derived from file paths
    ROOT = "root"  # Synthetic repository root


class GraphIntegrityError(ValueError):
    """Raised when a graph references nodes it does not contain."""


class FileEntry(BaseModel):
    """One entry of the repository tree listing."""

    path: str = Field(..., description="Path relative to the repository root")
    type: str = Field(default="file", description="Entry type (file, blob, tree, dir)")


class DependencyEdge(BaseModel):
    """A dependency reported by the import resolver."""

    model_config = ConfigDict(populate_by_name=True)

    from_path: str = Field(..., alias="from", description="Importing file path")
    to: str = Field(..., description="Resolved file path or module specifier")
    kind: str = Field(default="import", description="Import flavour (import, require, ...)")


class GraphNode(BaseModel):
    """Base class for all graph nodes."""

    id: str = Field(..., description="Unique, deterministic node id")
    label: str = Field(..., description="Full label (basename, folder name or package key)")
    path: str = Field(..., description="Repository path or package key")
    folder_path: str = Field(
        default="", description="Parent directory of the path ('' at repository root)"
    )
    top_folder: str = Field(
        default="root", description="First path segment, used for grouping and color"
    )
    color: str | None = Field(default=None, description="Fill color")
    border_color: str | None = Field(default=None, description="Border color")

    @computed_field
    @property
    def display_label(self) -> str:
        """Label shortened for display."""
        return truncate_label(self.label)

    @computed_field
    @property
    def visual_size(self) -> float:
        """Size derived from the display label length."""
        return visual_size_for(self.display_label)

    @property
    def radius(self) -> float:
        """Render radius derived from the visual size."""
        return node_radius(self.visual_size)


class FileNode(GraphNode):
    """A source file."""

    kind: Literal["file"] = "file"


class PackageNode(GraphNode):
    """An external package."""

    kind: Literal["package"] = "package"


class FolderNode(GraphNode):
    """A directory in the repository tree."""

    kind: Literal["folder"] = "folder"
    depth: int = Field(default=1, description="Number of path segments")


class RootNode(GraphNode):
    """The synthetic repository root."""

    kind: Literal["root"] = "root"


AnyNode = Annotated[
    FileNode | PackageNode | FolderNode | RootNode,
    Field(discriminator="kind"),
]


class Edge(BaseModel):
    """A directed edge between two nodes."""

    id: str = Field(..., description="Deterministic edge id")
    source_id: str = Field(..., description="Source node id")
    target_id: str = Field(..., description="Target node id")
    kind: str = Field(default="import", description="'folder' for hierarchy edges")
    is_external: bool = Field(default=False, description="Target is an external package")
    weight: int = Field(default=1, ge=1, description="Aggregated occurrence count")

    @property
    def is_hierarchy(self) -> bool:
        """Whether this edge links a folder to its child."""
        return self.kind == FOLDER_EDGE_KIND


class Graph(BaseModel):
    """Node/edge graph consumed by layout, physics and rendering."""

    nodes: dict[str, AnyNode] = Field(default_factory=dict)
    edges: list[Edge] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def get_node(self, node_id: str) -> GraphNode | None:
        """Get a node by id, or None if absent."""
        return self.nodes.get(node_id)

    def nodes_of_kind(self, *kinds: NodeKind) -> list[GraphNode]:
        """Get nodes of the given kinds in graph order."""
        return [node for node in self.nodes.values() if node.kind in kinds]

    def dependency_edges(self) -> list[Edge]:
        """Get all non-hierarchy edges."""
        return [edge for edge in self.edges if not edge.is_hierarchy]

    def hierarchy_edges(self) -> list[Edge]:
        """Get all folder hierarchy edges."""
        return [edge for edge in self.edges if edge.is_hierarchy]

    def degree_map(self) -> dict[str, int]:
        """Get total degree (in + out) per node over all edges."""
        degree = dict.fromkeys(self.nodes, 0)
        for edge in self.edges:
            degree[edge.source_id] = degree.get(edge.source_id, 0) + 1
            degree[edge.target_id] = degree.get(edge.target_id, 0) + 1
        return degree

    def validate_integrity(self) -> None:
        """Check that every edge endpoint exists and edge ids are unique.

        Raises:
            GraphIntegrityError: If an edge references a missing node
        """
        seen: set[str] = set()
        for edge in self.edges:
            for endpoint in (edge.source_id, edge.target_id):
                if endpoint not in self.nodes:
                    raise GraphIntegrityError(
                        f"Edge {edge.id} references missing node {endpoint}"
                    )
            if edge.id in seen:
                raise GraphIntegrityError(f"Duplicate edge id {edge.id}")
            seen.add(edge.id)
        for node_id, node in self.nodes.items():
            if node.id != node_id:
                raise GraphIntegrityError(f"Node keyed {node_id} has id {node.id}")

    def get_statistics(self) -> dict[str, Any]:
        """Get graph statistics.

        Returns:
            Dictionary with node/edge counts per kind and a health score
        """
        stats: dict[str, Any] = {
            "nodes": len(self.nodes),
            "edges": len(self.edges),
            "files": 0,
            "packages": 0,
            "folders": 0,
            "dependencies": 0,
            "external_dependencies": 0,
        }
        for node in self.nodes.values():
            if node.kind == NodeKind.FILE:
                stats["files"] += 1
            elif node.kind == NodeKind.PACKAGE:
                stats["packages"] += 1
            elif node.kind == NodeKind.FOLDER:
                stats["folders"] += 1
        for edge in self.dependency_edges():
            stats["dependencies"] += 1
            if edge.is_external:
                stats["external_dependencies"] += 1
        stats["health_score"] = health_score(stats["files"], stats["dependencies"])
        return stats


def sanitize_id(key: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return _UNSAFE_ID_CHARS.sub("_", key)


def truncate_label(label: str) -> str:
    """Shorten labels longer than 18 characters to first 8 + '...' + last 6."""
    if len(label) <= MAX_LABEL_LENGTH:
        return label
    return f"{label[:8]}...{label[-6:]}"


def visual_size_for(label: str) -> float:
    """Compute the visual size of a node from its display label."""
    length = max(len(label), 3)
    size = length * 7.5 + 8
    return min(max(size, MIN_VISUAL_SIZE), MAX_VISUAL_SIZE)


def node_radius(size: float) -> float:
    """Map a visual size to a render radius in [8, 24]."""
    weight = math.floor(math.sqrt(max(size, 0.0)))
    return max(8.0, min(24.0, 5 + weight * 0.8))


def health_score(file_count: int, dependency_count: int) -> float:
    """Score a graph 0-100; denser dependency graphs score lower."""
    if file_count <= 0:
        return 0.0
    return min(100.0, max(0.0, 100 - dependency_count / file_count * 10))


def parent_folder(path: str) -> str:
    """Get the parent directory of a path ('' for root-level paths)."""
    return path.rsplit("/", 1)[0] if "/" in path else ""


def top_level_folder(path: str) -> str:
    """Get the top-level folder of a path ('root' for root-level paths)."""
    return path.split("/", 1)[0] if "/" in path else "root"


def basename(path: str) -> str:
    """Get the last segment of a path."""
    return path.rsplit("/", 1)[-1] or path
