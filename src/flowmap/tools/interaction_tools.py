"""MCP tools for layout, simulation and viewport interaction."""

from typing import Any

from fastmcp import Context

from ..session import ExplorerSession


def _session(ctx: Context) -> ExplorerSession:
    return ctx.request_context.lifespan_context["session"]


def _transform(session: ExplorerSession) -> dict[str, float]:
    return {"x": session.transform.x, "y": session.transform.y, "k": session.transform.k}


def register_interaction_tools(mcp) -> None:
    """Register interaction tools with the MCP server.

    Args:
        mcp: FastMCP server instance
    """

    @mcp.tool()
    def tool_set_layout(
        ctx: Context,
        mode: str | None = None,
        spacing_factor: float | None = None,
        link_distance: float | None = None,
        show_labels: bool | None = None,
        curved_links: bool | None = None,
    ) -> dict[str, Any]:
        """Change layout options; the simulation restarts at full energy.

        Args:
            mode: hub-spine (alias: force), radial, hierarchical, grid or metro
            spacing_factor: Repulsion scale and metro step base
            link_distance: Rest length of link springs
            show_labels: Draw node labels
            curved_links: Draw edges as arcs

        Returns:
            The active layout options
        """
        layout = _session(ctx).set_layout(
            mode=mode,
            spacing_factor=spacing_factor,
            link_distance=link_distance,
            show_labels=show_labels,
            curved_links=curved_links,
        )
        return layout.model_dump(mode="json")

    @mcp.tool()
    def tool_set_display(
        ctx: Context,
        color_mode: str | None = None,
        min_edge_weight: int | None = None,
        include_external: bool | None = None,
    ) -> dict[str, Any]:
        """Change node coloring and which dependency edges are shown.

        Args:
            color_mode: folder, layer or churn
            min_edge_weight: Hide edges below this aggregated weight
            include_external: Show edges to external packages

        Returns:
            The active display options
        """
        session = _session(ctx)
        if color_mode is not None:
            session.set_color_mode(color_mode)
        if min_edge_weight is not None or include_external is not None:
            session.set_edge_filter(min_edge_weight, include_external)
        return {
            "color_mode": session.color_mode.value,
            "min_edge_weight": session.min_edge_weight,
            "include_external": session.include_external,
            "view_edges": len(session.view.edges),
        }

    @mcp.tool()
    def tool_advance_simulation(
        ctx: Context,
        ticks: int = 1,
    ) -> dict[str, Any]:
        """Run the physics for a number of frames.

        Args:
            ticks: Number of frames to run (default: 1)

        Returns:
            Ticks applied, current energy and whether the layout settled
        """
        session = _session(ctx)
        applied = 0
        for _ in range(max(0, ticks)):
            if not session.tick():
                break
            applied += 1
        simulation = session.simulation
        return {
            "ticks": applied,
            "alpha": simulation.alpha if simulation is not None else 0.0,
            "settled": simulation.settled if simulation is not None else False,
        }

    @mcp.tool()
    def tool_get_frame(ctx: Context) -> dict[str, Any]:
        """Get the render frame: node positions, edge paths and highlight state.

        Returns:
            The current frame
        """
        return _session(ctx).frame().model_dump()

    @mcp.tool()
    def tool_select_node(
        ctx: Context,
        node_id: str,
        focus: bool = False,
    ) -> dict[str, Any]:
        """Select a node.

        Args:
            node_id: Node to select
            focus: Also return dependents, dependencies and blast radius

        Returns:
            Selection result
        """
        session = _session(ctx)
        if focus:
            details = session.focus(node_id)
            if details is None:
                return {"node_id": node_id, "selected": False}
            return {"selected": True, **details}
        return {"node_id": node_id, "selected": session.select(node_id)}

    @mcp.tool()
    def tool_clear_selection(ctx: Context) -> dict[str, Any]:
        """Clear the selection and the search."""
        session = _session(ctx)
        session.clear_selection()
        session.clear_search()
        return {"cleared": True}

    @mcp.tool()
    def tool_fit_view(ctx: Context) -> dict[str, Any]:
        """Fit the viewport to all node positions.

        Returns:
            The viewport transform and whether a fit was possible
        """
        session = _session(ctx)
        fitted = session.fit_view() is not None
        return {"fitted": fitted, "transform": _transform(session)}

    @mcp.tool()
    def tool_zoom_view(
        ctx: Context,
        direction: str = "in",
    ) -> dict[str, Any]:
        """Zoom the viewport.

        Args:
            direction: "in", "out" or "reset"

        Returns:
            The viewport transform
        """
        session = _session(ctx)
        session.zoom(direction)
        return {"transform": _transform(session)}

    @mcp.tool()
    def tool_drag_node(
        ctx: Context,
        node_id: str,
        path: list[list[float]],
    ) -> dict[str, Any]:
        """Drag a node along a pointer path, ticking the physics between moves.

        Args:
            node_id: Node to drag
            path: Pointer positions [[x, y], ...]; the first one is the press

        Returns:
            Whether the gesture was a drag or a click
        """
        session = _session(ctx)
        if not path or not session.pointer_down(node_id, path[0][0], path[0][1]):
            return {"node_id": node_id, "dragged": False, "clicked": False}
        for x, y in path[1:]:
            session.pointer_move(x, y)
            session.tick()
        release = session.pointer_up()
        return {
            "node_id": node_id,
            "dragged": release.was_drag,
            "clicked": release.is_click,
            "released": release.released_ids,
        }
