"""MCP tools for graph loading and graph queries."""

from typing import Any

from fastmcp import Context

from ..graph import build_folder_overview, select_code_files
from ..session import ExplorerSession


def register_graph_tools(mcp) -> None:
    """Register graph tools with the MCP server.

    Args:
        mcp: FastMCP server instance
    """

    @mcp.tool()
    def tool_load_graph(
        ctx: Context,
        files: list[dict[str, Any] | str],
        dependencies: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Build the dependency graph from a repository tree and its imports.

        Args:
            files: Tree entries ({"path", "type"}) or bare paths; non-code files are ignored
            dependencies: Edges {"from": path, "to": path or module specifier, "kind"}

        Returns:
            Build summary with node counts and the degraded flag
        """
        context = ctx.request_context.lifespan_context
        session: ExplorerSession = context["session"]
        paths = select_code_files(files)
        deps = dependencies or []
        result = session.load(paths, deps)
        context["last_input"] = (paths, deps)
        return {
            "files": len(paths),
            "nodes": len(result.graph.nodes),
            "edges": len(result.graph.edges),
            "unpruned_nodes": result.unpruned_node_count,
            "pruned": result.pruned,
            "degraded": result.degraded,
            "skipped_edges": [edge.model_dump(by_alias=True) for edge in result.skipped_edges],
        }

    @mcp.tool()
    def tool_get_graph_statistics(ctx: Context) -> dict[str, Any]:
        """Get statistics about the loaded dependency graph.

        Returns:
            Node and edge counts per kind, health score and view diagnostics
        """
        session: ExplorerSession = ctx.request_context.lifespan_context["session"]
        return session.statistics()

    @mcp.tool()
    def tool_get_folder_overview(ctx: Context) -> dict[str, Any]:
        """Get the folder-level overview of the last loaded graph.

        Returns:
            Folder and package nodes with sizes, and aggregated folder edges
        """
        paths, deps = ctx.request_context.lifespan_context.get("last_input", ([], []))
        graph, sizes = build_folder_overview(paths, deps)
        return {
            "nodes": [
                {"id": node.id, "kind": node.kind, "path": node.path, "size": sizes[node.id]}
                for node in graph.nodes.values()
            ],
            "edges": [
                edge.model_dump(include={"id", "source_id", "target_id", "kind", "weight",
                                         "is_external"})
                for edge in graph.edges
            ],
        }

    @mcp.tool()
    def tool_search_nodes(
        ctx: Context,
        query: str,
    ) -> dict[str, Any]:
        """Search nodes by label, path, folder or id (case-insensitive).

        An empty query clears the search.

        Args:
            query: Substring to search for

        Returns:
            Matching node ids and the highlighted match
        """
        session: ExplorerSession = ctx.request_context.lifespan_context["session"]
        if not query.strip():
            session.clear_search()
            return {"query": query, "matches": [], "highlighted": None, "count": 0}
        matches = session.set_search(query)
        return {
            "query": query,
            "matches": matches,
            "highlighted": session.search.highlighted_id,
            "count": len(matches),
        }

    @mcp.tool()
    def tool_get_blast_radius(
        ctx: Context,
        node_id: str,
    ) -> dict[str, Any]:
        """Get the nodes affected by a change to a node.

        Args:
            node_id: Origin node id

        Returns:
            Reached node ids in breadth-first order, excluding the origin
        """
        session: ExplorerSession = ctx.request_context.lifespan_context["session"]
        affected = session.blast_radius(node_id)
        return {
            "node_id": node_id,
            "affected": affected,
            "count": len(affected),
            "cap": session.settings.blast_radius_cap,
        }
