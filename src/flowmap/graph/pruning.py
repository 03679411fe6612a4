"""Budget pruning: keep the structure and the most connected nodes."""

import logging

from .models import ROOT_ID, Graph, NodeKind

logger = logging.getLogger(__name__)

DEFAULT_NODE_BUDGET = 300
MIN_FOLDER_QUOTA = 20


def folder_quota(budget: int) -> int:
    """Get the maximum number of folder nodes kept under a budget."""
    return max(MIN_FOLDER_QUOTA, budget // 5)


def prune_graph(graph: Graph, budget: int = DEFAULT_NODE_BUDGET) -> Graph:
    """Reduce a graph to at most ``budget`` nodes.

    Selection order:
    1. The synthetic root
    2. Folder nodes in depth order (top-level first), up to the folder quota
    3. File and package nodes by total degree, descending; ties keep
       encounter order

    Edges with a pruned endpoint are dropped. A graph already within budget
    is returned unchanged, which makes pruning idempotent.

    Args:
        graph: Graph to prune
        budget: Maximum node count

    Returns:
        The pruned graph (the input graph itself when within budget)
    """
    if len(graph.nodes) <= budget:
        return graph

    keep: set[str] = set()

    def add(node_id: str) -> None:
        if len(keep) < budget:
            keep.add(node_id)

    if ROOT_ID in graph.nodes:
        add(ROOT_ID)

    folders = sorted(
        graph.nodes_of_kind(NodeKind.FOLDER),
        key=lambda node: node.path.count("/"),
    )
    for folder in folders[: folder_quota(budget)]:
        add(folder.id)

    degree = graph.degree_map()
    candidates = graph.nodes_of_kind(NodeKind.FILE, NodeKind.PACKAGE)
    # sorted() is stable, so equal degrees keep encounter order
    for node in sorted(candidates, key=lambda node: -degree.get(node.id, 0)):
        if len(keep) >= budget:
            break
        add(node.id)

    nodes = {node_id: node for node_id, node in graph.nodes.items() if node_id in keep}
    edges = [
        edge for edge in graph.edges
        if edge.source_id in keep and edge.target_id in keep
    ]
    logger.info(
        f"Pruned graph from {len(graph.nodes)} to {len(nodes)} nodes "
        f"(budget {budget}), {len(graph.edges) - len(edges)} edges dropped"
    )
    return Graph(nodes=nodes, edges=edges)
