"""Folder-level overview graph: dependencies aggregated between folders."""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .builder import classify_external, coerce_dependency, normalize_path
from .models import (
    FOLDER_EDGE_KIND,
    DependencyEdge,
    Edge,
    FolderNode,
    Graph,
    GraphNode,
    PackageNode,
    basename,
    parent_folder,
    sanitize_id,
    top_level_folder,
)

logger = logging.getLogger(__name__)

OVERVIEW_ROOT_ID = "folder_root"


def _folder_id(folder_path: str) -> str:
    return f"folder_{sanitize_id(folder_path)}" if folder_path else OVERVIEW_ROOT_ID


def build_folder_overview(
    file_paths: Sequence[str],
    dependencies: Iterable[DependencyEdge | Mapping[str, Any]] = (),
) -> tuple[Graph, dict[str, int]]:
    """Build a graph with one node per folder and per external package.

    File-level dependencies are lifted to the folders containing their
    endpoints; edges inside a single folder are dropped and the rest are
    aggregated into weighted folder -> folder (or folder -> package) edges.

    Args:
        file_paths: Repository file paths
        dependencies: File-level dependency edges

    Returns:
        Tuple of (overview graph, node size by id). Folder size counts files
        plus incoming internal dependencies; package size counts references.
    """
    paths = [path for path in (normalize_path(p) for p in file_paths) if path]
    file_set = set(paths)

    folders: dict[str, None] = {}
    for path in paths:
        parts = path.split("/")
        for i in range(1, len(parts)):
            folders.setdefault("/".join(parts[:i]), None)
    sorted_folders = sorted(folders, key=lambda folder: folder.count("/"))
    folder_set = set(folders)

    nodes: dict[str, GraphNode] = {
        OVERVIEW_ROOT_ID: FolderNode(id=OVERVIEW_ROOT_ID, label="/", path="/", depth=0)
    }
    edges: list[Edge] = []
    for folder_path in sorted_folders:
        folder_id = _folder_id(folder_path)
        nodes[folder_id] = FolderNode(
            id=folder_id,
            label=basename(folder_path),
            path=folder_path,
            folder_path=parent_folder(folder_path),
            top_folder=top_level_folder(f"{folder_path}/"),
            depth=folder_path.count("/") + 1,
        )
    for folder_path in sorted_folders:
        parent_id = _folder_id(parent_folder(folder_path))
        child_id = _folder_id(folder_path)
        edges.append(
            Edge(id=f"{parent_id}_{child_id}", source_id=parent_id, target_id=child_id,
                 kind=FOLDER_EDGE_KIND)
        )

    file_counts: dict[str, int] = {}
    for path in paths:
        folder_path = parent_folder(path)
        if folder_path:
            file_counts[folder_path] = file_counts.get(folder_path, 0) + 1

    incoming: dict[str, int] = {}
    package_refs: dict[str, int] = {}
    edge_counts: dict[tuple[str, str], tuple[int, bool]] = {}

    for raw in dependencies:
        dep = coerce_dependency(raw)
        source = normalize_path(dep.from_path)
        target = normalize_path(dep.to)
        from_id = _folder_id(parent_folder(source))
        is_internal = target in file_set

        if is_internal:
            to_id = _folder_id(parent_folder(target))
        else:
            key = classify_external(dep.to, folder_set)
            if key is None:
                logger.warning(f"Skipping unresolvable edge: {dep.from_path} -> {dep.to}")
                continue
            to_id = f"pkg_{sanitize_id(key)}"
            if to_id not in nodes:
                nodes[to_id] = PackageNode(id=to_id, label=key, path=key,
                                           top_folder=key.split("/")[0])

        if from_id == to_id:
            continue

        count, _ = edge_counts.get((from_id, to_id), (0, not is_internal))
        edge_counts[(from_id, to_id)] = (count + 1, not is_internal)

        if is_internal:
            target_folder = parent_folder(target)
            if target_folder:
                incoming[target_folder] = incoming.get(target_folder, 0) + 1
        else:
            package_refs[to_id] = package_refs.get(to_id, 0) + 1

    for (from_id, to_id), (weight, is_external) in edge_counts.items():
        if from_id not in nodes:
            continue
        edges.append(
            Edge(id=f"{from_id}|{to_id}", source_id=from_id, target_id=to_id,
                 kind="depends", is_external=is_external, weight=weight)
        )

    sizes: dict[str, int] = {}
    for node_id, node in nodes.items():
        if isinstance(node, PackageNode):
            sizes[node_id] = max(1, package_refs.get(node_id, 1))
        else:
            sizes[node_id] = max(1, file_counts.get(node.path, 0) + incoming.get(node.path, 0))

    logger.debug(
        f"Folder overview: {len(sorted_folders)} folders, {len(edge_counts)} aggregated edges"
    )
    return Graph(nodes=nodes, edges=edges), sizes
