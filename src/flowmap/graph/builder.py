"""Graph builder for turning file lists and dependency edges into a graph."""

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .colors import PACKAGE_COLOR, ROOT_COLOR, FolderPalette
from .models import (
    FOLDER_EDGE_KIND,
    ROOT_ID,
    DependencyEdge,
    Edge,
    FileEntry,
    FileNode,
    FolderNode,
    Graph,
    GraphNode,
    PackageNode,
    RootNode,
    basename,
    parent_folder,
    sanitize_id,
    top_level_folder,
)
from .pruning import DEFAULT_NODE_BUDGET, prune_graph

logger = logging.getLogger(__name__)

CODE_FILE_PATTERN = re.compile(r"\.(js|ts|jsx|tsx|py|go|rs|java|php|rb)$")
FILE_ENTRY_TYPES = ("file", "blob")

# Bare module specifiers: "react", "@scope/name/sub", "os.path", "github.com/x/y"
_PACKAGE_SPECIFIER = re.compile(r"^(@[\w.\-~]+/)?[\w.\-~][\w.\-~]*(/.*)?$")


@dataclass
class BuildResult:
    """Outcome of a graph build."""

    graph: Graph
    unpruned_node_count: int
    degraded: bool  # No files or no dependency edges: only folder structure renders
    skipped_edges: list[DependencyEdge] = field(default_factory=list)

    @property
    def pruned(self) -> bool:
        """Whether pruning removed nodes."""
        return len(self.graph.nodes) < self.unpruned_node_count


@dataclass
class NodeIdAllocator:
    """Maps path keys to unique, deterministic node ids.

    Distinct keys that sanitize to the same id (``src/a.ts`` and
    ``src_a.ts``) get numeric suffixes in encounter order.
    """

    reserved: set[str] = field(default_factory=lambda: {ROOT_ID})
    ids_by_key: dict[str, str] = field(default_factory=dict)

    def allocate(self, key: str, prefix: str = "") -> str:
        """Get the id for a key, allocating one on first use.

        Args:
            key: Namespaced key (e.g. "file:src/a.ts")
            prefix: Prefix prepended to the sanitized path part

        Returns:
            Unique node id
        """
        existing = self.ids_by_key.get(key)
        if existing is not None:
            return existing
        raw = key.split(":", 1)[-1]
        base = f"{prefix}{sanitize_id(raw)}"
        candidate = base
        suffix = 2
        while candidate in self.reserved:
            candidate = f"{base}_{suffix}"
            suffix += 1
        self.reserved.add(candidate)
        self.ids_by_key[key] = candidate
        return candidate


def normalize_path(path: str) -> str:
    """Normalize a repository path: forward slashes, no leading './' or '/'."""
    normalized = path.strip().replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    normalized = normalized.lstrip("/")
    while "//" in normalized:
        normalized = normalized.replace("//", "/")
    return normalized.rstrip("/")


def package_key(specifier: str) -> str:
    """Get the package a module specifier belongs to.

    Scoped packages keep two segments (``@scope/name``); everything else
    keeps its first segment.

    Args:
        specifier: Module specifier such as "react-dom/client"

    Returns:
        Package key such as "react-dom"
    """
    if specifier.startswith("@"):
        return "/".join(specifier.split("/")[:2])
    return specifier.split("/")[0] or specifier


def classify_external(specifier: str, folders: set[str]) -> str | None:
    """Get the package key for a non-internal target, or None if malformed.

    Relative or absolute paths and paths into a known repository folder
    are unresolved internal imports rather than packages.

    Args:
        specifier: Dependency target that is not a known file
        folders: Known repository folder paths

    Returns:
        Package key, or None when the target cannot be a package
    """
    spec = specifier.strip()
    if not spec or spec.startswith((".", "/")):
        return None
    if "/" in spec and not spec.startswith("@") and spec.split("/")[0] in folders:
        return None
    if not _PACKAGE_SPECIFIER.match(spec):
        return None
    key = package_key(spec)
    if key.startswith("@") and "/" not in key:
        return None
    return key


def select_code_files(entries: Iterable[FileEntry | Mapping[str, Any] | str]) -> list[str]:
    """Keep the file entries whose extension marks them as source code.

    Args:
        entries: Tree entries ({path, type}) or bare paths

    Returns:
        Normalized code file paths in input order
    """
    paths: list[str] = []
    for entry in entries:
        if isinstance(entry, str):
            entry = FileEntry(path=entry)
        elif not isinstance(entry, FileEntry):
            entry = FileEntry.model_validate(entry)
        if entry.type not in FILE_ENTRY_TYPES:
            continue
        path = normalize_path(entry.path)
        if path and CODE_FILE_PATTERN.search(path):
            paths.append(path)
    return paths


def coerce_dependency(dep: DependencyEdge | Mapping[str, Any]) -> DependencyEdge:
    """Accept DependencyEdge instances or {from, to, kind} mappings."""
    if isinstance(dep, DependencyEdge):
        return dep
    return DependencyEdge.model_validate(dep)


class GraphBuilder:
    """Builds the budget-constrained dependency graph."""

    def __init__(self, node_budget: int = DEFAULT_NODE_BUDGET):
        """Initialize the graph builder.

        Args:
            node_budget: Maximum node count kept after pruning
        """
        self._node_budget = node_budget

    @property
    def node_budget(self) -> int:
        """Maximum node count kept after pruning."""
        return self._node_budget

    def build(
        self,
        file_paths: Sequence[str],
        dependencies: Iterable[DependencyEdge | Mapping[str, Any]] = (),
    ) -> BuildResult:
        """Build the graph from a file list and dependency edges.

        This is a three-pass process:
        1. Folder and file nodes with their hierarchy edges
        2. Dependency edges, aggregated per (source, target) pair
        3. Budget pruning

        Args:
            file_paths: Repository file paths in tree order
            dependencies: Edges reported by the import resolver

        Returns:
            BuildResult with the pruned graph and build diagnostics
        """
        paths = self._unique_paths(file_paths)
        logger.info(f"Building graph from {len(paths)} files")

        allocator = NodeIdAllocator()
        palette = FolderPalette()
        nodes: dict[str, GraphNode] = {
            ROOT_ID: RootNode(
                id=ROOT_ID,
                label="/",
                path="/",
                color=ROOT_COLOR.fill,
                border_color=ROOT_COLOR.border,
            )
        }
        edges: list[Edge] = []

        folders = self._extract_folders(paths)
        folder_ids: dict[str, str] = {}
        for folder_path in folders:
            folder_id = allocator.allocate(f"folder:{folder_path}", prefix="folder_")
            folder_ids[folder_path] = folder_id
            color = palette.color_for(top_level_folder(f"{folder_path}/"))
            nodes[folder_id] = FolderNode(
                id=folder_id,
                label=basename(folder_path),
                path=folder_path,
                folder_path=parent_folder(folder_path),
                top_folder=top_level_folder(f"{folder_path}/"),
                color=color.fill,
                border_color=color.border,
                depth=folder_path.count("/") + 1,
            )
            parent_id = folder_ids.get(parent_folder(folder_path), ROOT_ID)
            edges.append(self._hierarchy_edge(parent_id, folder_id))

        file_ids: dict[str, str] = {}
        for path in paths:
            file_id = allocator.allocate(f"file:{path}")
            file_ids[path] = file_id
            folder_key = top_level_folder(path)
            color = palette.color_for(folder_key)
            nodes[file_id] = FileNode(
                id=file_id,
                label=basename(path),
                path=path,
                folder_path=parent_folder(path),
                top_folder=folder_key,
                color=color.fill,
                border_color=color.border,
            )
            parent_id = folder_ids.get(parent_folder(path), ROOT_ID)
            edges.append(self._hierarchy_edge(parent_id, file_id))

        dependency_edges, skipped = self._build_dependency_edges(
            dependencies, file_ids, set(folders), nodes, allocator
        )
        edges.extend(dependency_edges)

        graph = Graph(nodes=nodes, edges=edges)
        unpruned = len(graph.nodes)
        stats = graph.get_statistics()
        logger.info(
            f"Graph built: {stats['nodes']} nodes, {stats['edges']} edges, "
            f"{stats['files']} files, {stats['packages']} packages, "
            f"{stats['dependencies']} dependencies"
        )

        pruned = prune_graph(graph, self._node_budget)
        degraded = not paths or not dependency_edges
        if degraded:
            logger.info("No dependency edges; rendering folder structure only")

        return BuildResult(
            graph=pruned,
            unpruned_node_count=unpruned,
            degraded=degraded,
            skipped_edges=skipped,
        )

    def _unique_paths(self, file_paths: Sequence[str]) -> list[str]:
        """Normalize paths and drop empties and duplicates, keeping order."""
        seen: set[str] = set()
        result: list[str] = []
        for raw in file_paths:
            path = normalize_path(raw)
            if not path or path in seen:
                continue
            seen.add(path)
            result.append(path)
        return result

    def _extract_folders(self, paths: list[str]) -> list[str]:
        """Collect every ancestor folder, ordered by depth then encounter."""
        folders: dict[str, None] = {}
        for path in paths:
            parts = path.split("/")
            for i in range(1, len(parts)):
                folders.setdefault("/".join(parts[:i]), None)
        return sorted(folders, key=lambda folder: folder.count("/"))

    def _hierarchy_edge(self, parent_id: str, child_id: str) -> Edge:
        return Edge(
            id=f"{parent_id}_{child_id}",
            source_id=parent_id,
            target_id=child_id,
            kind=FOLDER_EDGE_KIND,
        )

    def _build_dependency_edges(
        self,
        dependencies: Iterable[DependencyEdge | Mapping[str, Any]],
        file_ids: dict[str, str],
        folders: set[str],
        nodes: dict[str, GraphNode],
        allocator: NodeIdAllocator,
    ) -> tuple[list[Edge], list[DependencyEdge]]:
        """Resolve dependency targets and aggregate duplicate edges.

        Args:
            dependencies: Raw dependency edges
            file_ids: Internal file path -> node id
            folders: Known folder paths
            nodes: Node map, extended with package nodes
            allocator: Id allocator shared with file and folder nodes

        Returns:
            Tuple of (aggregated edges, skipped malformed edges)
        """
        aggregated: dict[tuple[str, str], Edge] = {}
        skipped: list[DependencyEdge] = []

        for raw in dependencies:
            dep = coerce_dependency(raw)
            source_path = normalize_path(dep.from_path)
            source_id = file_ids.get(source_path)
            if source_id is None:
                logger.warning(f"Skipping edge from unknown file: {dep.from_path} -> {dep.to}")
                skipped.append(dep)
                continue

            target_path = normalize_path(dep.to)
            target_id = file_ids.get(target_path)
            is_external = target_id is None
            if is_external:
                key = classify_external(dep.to, folders)
                if key is None:
                    logger.warning(f"Skipping unresolvable edge: {dep.from_path} -> {dep.to}")
                    skipped.append(dep)
                    continue
                target_id = self._ensure_package(key, nodes, allocator)

            if source_id == target_id:
                logger.debug(f"Ignoring self-import in {source_path}")
                continue

            pair = (source_id, target_id)
            existing = aggregated.get(pair)
            if existing is not None:
                existing.weight += 1
                continue
            aggregated[pair] = Edge(
                id=f"{source_id}->{target_id}",
                source_id=source_id,
                target_id=target_id,
                kind=dep.kind,
                is_external=is_external,
            )

        if skipped:
            logger.info(f"Skipped {len(skipped)} malformed dependency edges")
        return list(aggregated.values()), skipped

    def _ensure_package(
        self, key: str, nodes: dict[str, GraphNode], allocator: NodeIdAllocator
    ) -> str:
        package_id = allocator.allocate(f"package:{key}")
        if package_id not in nodes:
            nodes[package_id] = PackageNode(
                id=package_id,
                label=key,
                path=key,
                top_folder=key.split("/")[0],
                color=PACKAGE_COLOR.fill,
                border_color=PACKAGE_COLOR.border,
            )
        return package_id
