"""Query functions for traversing the dependency graph."""

import logging
from collections import deque
from dataclasses import dataclass, field

import networkx as nx

from .models import Edge, Graph, GraphNode, NodeKind

logger = logging.getLogger(__name__)

DEFAULT_BLAST_RADIUS_CAP = 50


@dataclass
class GraphView:
    """The subset of a graph that is laid out and rendered."""

    nodes: list[GraphNode]
    edges: list[Edge]
    degraded: bool = False  # Folder structure shown because no dependency edges exist
    _adjacency: nx.Graph | None = field(default=None, repr=False)

    @property
    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    def adjacency(self) -> nx.Graph:
        """Undirected adjacency over the view's edges (cached)."""
        if self._adjacency is None:
            undirected = nx.Graph()
            undirected.add_nodes_from(node.id for node in self.nodes)
            undirected.add_edges_from((edge.source_id, edge.target_id) for edge in self.edges)
            self._adjacency = undirected
        return self._adjacency


def renderable_view(
    graph: Graph,
    min_weight: int = 1,
    include_external: bool = True,
) -> GraphView:
    """Select the nodes and edges that are laid out and rendered.

    Only file and package nodes with dependency edges are shown. When the
    graph has no dependency edges at all, the full folder structure is
    returned instead and the view is marked degraded.

    Args:
        graph: Source graph
        min_weight: Hide dependency edges with a lower aggregated weight
        include_external: Keep edges to external packages

    Returns:
        GraphView with nodes in graph order
    """
    dependency_edges = graph.dependency_edges()
    if not dependency_edges:
        return GraphView(
            nodes=list(graph.nodes.values()),
            edges=list(graph.edges),
            degraded=True,
        )

    nodes = graph.nodes_of_kind(NodeKind.FILE, NodeKind.PACKAGE)
    allowed = {node.id for node in nodes}
    edges = [
        edge for edge in dependency_edges
        if edge.weight >= min_weight
        and (include_external or not edge.is_external)
        and edge.source_id in allowed
        and edge.target_id in allowed
    ]
    return GraphView(nodes=nodes, edges=edges)


def get_dependencies(view: GraphView, node_id: str) -> list[str]:
    """Get ids of the nodes that ``node_id`` imports (outgoing edges)."""
    return [edge.target_id for edge in view.edges if edge.source_id == node_id]


def get_dependents(view: GraphView, node_id: str) -> list[str]:
    """Get ids of the nodes that import ``node_id`` (incoming edges)."""
    return [edge.source_id for edge in view.edges if edge.target_id == node_id]


def get_related(view: GraphView, node_id: str) -> list[str]:
    """Get ids of all nodes directly connected to ``node_id`` in either direction."""
    adjacency = view.adjacency()
    if node_id not in adjacency:
        return []
    return [neighbor for neighbor in adjacency.neighbors(node_id) if neighbor != node_id]


def blast_radius(
    view: GraphView,
    node_id: str,
    cap: int = DEFAULT_BLAST_RADIUS_CAP,
) -> list[str]:
    """Get the nodes reachable from a node over undirected edges.

    Breadth-first; stops once ``cap`` nodes have been collected.

    Args:
        view: Graph view to traverse
        node_id: Origin node id
        cap: Maximum number of nodes returned

    Returns:
        Reached node ids in BFS order, excluding the origin
    """
    adjacency = view.adjacency()
    if node_id not in adjacency:
        logger.debug(f"Blast radius requested for unknown node {node_id}")
        return []

    visited = {node_id}
    affected: list[str] = []
    queue = deque([node_id])
    while queue and len(affected) < cap:
        current = queue.popleft()
        for neighbor in adjacency.neighbors(current):
            if neighbor in visited:
                continue
            visited.add(neighbor)
            affected.append(neighbor)
            if len(affected) >= cap:
                break
            queue.append(neighbor)
    return affected


def node_matches(node: GraphNode, query: str) -> bool:
    """Case-insensitive substring match against label, path, folder and id."""
    needle = query.strip().lower()
    if not needle:
        return False
    haystacks = (node.label, node.path, node.folder_path, node.id)
    return any(needle in value.lower() for value in haystacks)


def find_nodes(graph: Graph, query: str) -> list[str]:
    """Find nodes matching a search query.

    Args:
        graph: Graph to search
        query: Substring to look for

    Returns:
        Matching node ids in graph order (empty for a blank query)
    """
    if not query.strip():
        return []
    return [node.id for node in graph.nodes.values() if node_matches(node, query)]


def get_connected_components(view: GraphView) -> list[list[str]]:
    """Get connected components of the view, largest first."""
    components = sorted(nx.connected_components(view.adjacency()), key=len, reverse=True)
    return [list(component) for component in components]


def find_cyclic_nodes(view: GraphView) -> set[str]:
    """Get nodes that sit on a dependency cycle.

    Returns:
        Ids of nodes in non-trivial strongly connected components
    """
    digraph = nx.DiGraph()
    digraph.add_nodes_from(view.node_ids)
    digraph.add_edges_from((edge.source_id, edge.target_id) for edge in view.edges)
    cyclic: set[str] = set()
    for component in nx.strongly_connected_components(digraph):
        if len(component) > 1:
            cyclic.update(component)
    return cyclic
