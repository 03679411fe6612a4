"""Explorer session: one graph, its simulation and the interaction state around it."""

import logging
import random
import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from .config import Settings
from .graph import (
    BuildResult,
    DependencyEdge,
    Graph,
    GraphBuilder,
    GraphView,
    blast_radius,
    get_dependencies,
    get_dependents,
    get_connected_components,
    get_related,
    renderable_view,
)
from .graph.colors import ColorMode
from .interaction import (
    IDENTITY,
    DragController,
    DragRelease,
    HighlightState,
    SearchController,
    ViewTransform,
    center_on,
    fit_to_view,
    zoom_by,
)
from .interaction.viewport import ZOOM_IN_FACTOR, ZOOM_OUT_FACTOR
from .layout import LayoutConfig, LayoutMode, LayoutPlan, compute_layout, forces_for
from .physics import Link, Simulation, SimulationState, seed_states
from .render import Frame, build_frame

logger = logging.getLogger(__name__)

FIT_VALID_FRACTION = 0.5

SelectionCallback = Callable[[str], None]


class ExplorerSession:
    """Interactive dependency graph explorer.

    Everything runs on the caller's tick. ``submit_rebuild`` may be called
    from any thread; the rebuild is merged at the start of the next tick.
    Interaction pins are applied before the physics step of each tick.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        on_select: SelectionCallback | None = None,
    ):
        """Initialize the session.

        Args:
            settings: Application settings (defaults loaded from the environment)
            on_select: Callback invoked with a node id on click or selection
        """
        self.settings = settings or Settings()
        self.width = self.settings.viewport_width
        self.height = self.settings.viewport_height
        self.layout: LayoutConfig = self.settings.layout_config
        self.color_mode = self.settings.color_mode
        self.min_edge_weight = self.settings.min_edge_weight
        self.include_external = self.settings.include_external

        self._builder = GraphBuilder(node_budget=self.settings.node_budget)
        self._rng = random.Random(self.settings.random_seed)
        self._lock = threading.Lock()
        self._pending: tuple[list[str], list[Any]] | None = None
        self._selection_callbacks: list[SelectionCallback] = []
        if on_select is not None:
            self._selection_callbacks.append(on_select)

        self.build_result: BuildResult | None = None
        self.graph = Graph()
        self.view = GraphView(nodes=[], edges=[], degraded=True)
        self.plan = LayoutPlan(mode=self.layout.mode)
        self.simulation: Simulation | None = None

        self.drag = DragController(threshold=self.settings.drag_threshold_px)
        self.search = SearchController()
        self.selected_id: str | None = None
        self.transform: ViewTransform = IDENTITY
        self._fitted = False
        self._stopped = False

    # ------------------------------------------------------------------
    # Graph lifecycle
    # ------------------------------------------------------------------

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def degraded(self) -> bool:
        return self.view.degraded

    def add_selection_callback(self, callback: SelectionCallback) -> None:
        self._selection_callbacks.append(callback)

    def submit_rebuild(
        self,
        file_paths: Sequence[str],
        dependencies: Iterable[DependencyEdge | Mapping[str, Any]] = (),
    ) -> None:
        """Queue a rebuild for the next tick; a later submission replaces an earlier one."""
        if self._stopped:
            return
        with self._lock:
            self._pending = (list(file_paths), list(dependencies))

    def load(
        self,
        file_paths: Sequence[str],
        dependencies: Iterable[DependencyEdge | Mapping[str, Any]] = (),
    ) -> BuildResult:
        """Rebuild the graph now and warm-start the simulation.

        Args:
            file_paths: Repository code file paths
            dependencies: Dependency edges {from, to, kind}

        Returns:
            BuildResult of the rebuild
        """
        result = self._builder.build(file_paths, dependencies)
        self.build_result = result
        self.graph = result.graph
        self._rebuild_view()

        if self.selected_id is not None and self.selected_id not in self._visible_ids():
            self.selected_id = None
        auto = self.search.refresh(self.graph, self._visible_ids())
        if auto is not None:
            self._center_on_node(auto)
        return result

    def _visible_ids(self) -> set[str]:
        return set(self.view.node_ids)

    def _rebuild_view(self) -> None:
        """Recompute view, targets and forces, carrying node states over by id."""
        self.view = renderable_view(self.graph, self.min_edge_weight, self.include_external)
        self.plan = compute_layout(self.view, self.layout, self.width, self.height)
        if self._stopped:
            return
        dragged = self.drag.dragged_id
        if dragged is not None and dragged not in self._visible_ids():
            self.drag.cancel()

        previous = self.simulation.state.nodes if self.simulation is not None else {}
        nodes = seed_states(
            self.view, previous, self.plan.folder_centers, self.width, self.height, self._rng
        )
        state = SimulationState(
            nodes=nodes,
            links=[Link(edge.source_id, edge.target_id) for edge in self.view.edges],
            targets=self.plan.targets,
            width=self.width,
            height=self.height,
            tick=self.simulation.state.tick if self.simulation is not None else 0,
        )
        forces = forces_for(self.layout, padding=self.settings.boundary_padding)

        if self.simulation is None:
            self.simulation = Simulation(state, forces, seed=self.settings.random_seed)
            self.simulation.on_end(self._on_settled)
        else:
            self.simulation.state = state
            self.simulation.forces = forces
        self.simulation.restart()
        if self.drag.active:
            # An active drag keeps the simulation warm
            self.simulation.reheat(ticks=0)
        self._fitted = False
        logger.info(
            f"View rebuilt: {len(self.view.nodes)} nodes, {len(self.view.edges)} edges, "
            f"mode {self.layout.mode.value}"
        )

    def set_layout(
        self,
        mode: LayoutMode | str | None = None,
        spacing_factor: float | None = None,
        link_distance: float | None = None,
        show_labels: bool | None = None,
        curved_links: bool | None = None,
    ) -> LayoutConfig:
        """Change layout options and restart the simulation at full energy.

        Raises:
            ValueError: If an option is invalid
        """
        updates = {
            "mode": mode,
            "spacing_factor": spacing_factor,
            "link_distance": link_distance,
            "show_labels": show_labels,
            "curved_links": curved_links,
        }
        values = self.layout.model_dump()
        values.update({key: value for key, value in updates.items() if value is not None})
        self.layout = LayoutConfig(**values)
        if not self._stopped:
            self._rebuild_view()
        return self.layout

    def set_edge_filter(
        self, min_weight: int | None = None, include_external: bool | None = None
    ) -> None:
        """Change which dependency edges are rendered."""
        if min_weight is not None:
            if min_weight < 1:
                raise ValueError(f"min_weight must be >= 1, got {min_weight}")
            self.min_edge_weight = min_weight
        if include_external is not None:
            self.include_external = include_external
        if not self._stopped:
            self._rebuild_view()

    def set_color_mode(self, color_mode: ColorMode | str) -> None:
        self.color_mode = ColorMode(color_mode)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, dt: float = 1.0) -> bool:
        """Run one frame.

        Order: pending rebuild, interaction pins, physics step, settle
        handling (run by the simulation's end callbacks).

        Returns:
            True if the physics advanced
        """
        if self._stopped:
            return False

        with self._lock:
            pending, self._pending = self._pending, None
        if pending is not None:
            self.load(*pending)

        if self.simulation is None:
            return False
        self._apply_interaction_pins()
        return self.simulation.step(dt)

    def _apply_interaction_pins(self) -> None:
        nodes = self.simulation.state.nodes
        for node_id, (x, y) in self.drag.pins().items():
            node = nodes.get(node_id)
            if node is not None:
                node.pin(x, y)

    def _on_settled(self, simulation: Simulation) -> None:
        """Fit once to the settled layout and anchor hub-spine hubs."""
        state = simulation.state
        if not self._fitted and state.valid_fraction() > FIT_VALID_FRACTION:
            transform = fit_to_view(
                [(node.x, node.y) for node in state.nodes.values()], self.width, self.height
            )
            if transform is not None:
                self.transform = transform
                self._fitted = True
                logger.debug(f"Fitted view: scale {transform.k:.3f}")

        if self.layout.mode == LayoutMode.HUB_SPINE:
            for hub_id in self.plan.hubs:
                node = state.nodes.get(hub_id)
                target = self.plan.target_of(hub_id)
                if node is not None and target is not None:
                    node.pin(*target)

    # ------------------------------------------------------------------
    # Pointer interaction
    # ------------------------------------------------------------------

    def pointer_down(self, node_id: str, x: float, y: float) -> bool:
        """Press on a node at world position (x, y)."""
        if self.simulation is None or node_id not in self.simulation.state.nodes:
            logger.debug(f"Pointer down on unknown node {node_id} ignored")
            return False
        self.drag.press(node_id, x, y)
        return True

    def pointer_move(self, x: float, y: float) -> bool:
        """Move the pointer; returns True while a drag is active."""
        pressed = self.drag.pressed_id
        if pressed is None or self.simulation is None:
            return False
        was_active = self.drag.active
        related = get_related(self.view, pressed)
        active = self.drag.move(x, y, self.simulation.state.nodes, related)
        if active and not was_active:
            # Keep the simulation warm for as long as the drag lasts
            self.simulation.reheat(ticks=0)
        return active

    def pointer_up(self) -> DragRelease:
        """Release the pointer: end a drag or treat the press as a click."""
        release = self.drag.release()
        if release.was_drag and self.simulation is not None:
            nodes = self.simulation.state.nodes
            for node_id in release.released_ids:
                node = nodes.get(node_id)
                if node is not None:
                    node.unpin()
            self.simulation.reheat()
        elif release.is_click:
            self.select(release.node_id)
        return release

    # ------------------------------------------------------------------
    # Selection and search
    # ------------------------------------------------------------------

    def select(self, node_id: str) -> bool:
        """Select a node and notify the selection callbacks."""
        if node_id not in self._visible_ids():
            logger.debug(f"Selection of unrendered node {node_id} ignored")
            return False
        self.selected_id = node_id
        if self.search.active:
            self.search.highlight(node_id)
        self._notify_selection(node_id)
        return True

    def focus(self, node_id: str) -> dict[str, Any] | None:
        """Select a node and describe its neighborhood and blast radius.

        Returns:
            Dictionary with dependents, dependencies and blast radius, or
            None if the node is unknown
        """
        if not self.select(node_id):
            return None
        return {
            "node_id": node_id,
            "dependencies": get_dependencies(self.view, node_id),
            "dependents": get_dependents(self.view, node_id),
            "blast_radius": self.blast_radius(node_id),
        }

    def clear_selection(self) -> None:
        self.selected_id = None

    def blast_radius(self, node_id: str) -> list[str]:
        return blast_radius(self.view, node_id, cap=self.settings.blast_radius_cap)

    def set_search(self, query: str) -> list[str]:
        """Update the search query.

        The first match is highlighted, centered and reported to the
        selection callbacks.

        Returns:
            Matching node ids
        """
        auto = self.search.set_query(query, self.graph, self._visible_ids())
        if auto is not None:
            self._center_on_node(auto)
            self._notify_selection(auto)
        return list(self.search.matches)

    def clear_search(self) -> None:
        self.search.clear()

    def _notify_selection(self, node_id: str) -> None:
        for callback in list(self._selection_callbacks):
            callback(node_id)

    # ------------------------------------------------------------------
    # Viewport
    # ------------------------------------------------------------------

    def fit_view(self) -> ViewTransform | None:
        """Fit the viewport to the current node positions."""
        if self.simulation is None:
            return None
        transform = fit_to_view(
            [(node.x, node.y) for node in self.simulation.state.nodes.values()],
            self.width,
            self.height,
        )
        if transform is not None:
            self.transform = transform
        return transform

    def zoom(self, direction: str) -> ViewTransform:
        """Zoom "in", "out" or "reset" the viewport.

        Raises:
            ValueError: If the direction is unknown
        """
        if direction == "in":
            self.transform = zoom_by(self.transform, ZOOM_IN_FACTOR, self.width, self.height)
        elif direction == "out":
            self.transform = zoom_by(self.transform, ZOOM_OUT_FACTOR, self.width, self.height)
        elif direction == "reset":
            self.transform = IDENTITY
        else:
            raise ValueError(f"Invalid zoom direction: {direction}. Must be in, out or reset")
        return self.transform

    def _center_on_node(self, node_id: str) -> None:
        if self.simulation is None:
            return
        node = self.simulation.state.nodes.get(node_id)
        if node is not None and node.has_position:
            self.transform = center_on(node.x, node.y, self.width, self.height)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def highlight_state(self) -> HighlightState:
        """Snapshot every highlight source for this tick."""
        selected_related: frozenset[str] = frozenset()
        if self.selected_id is not None:
            selected_related = frozenset(get_related(self.view, self.selected_id))
        search_active = self.search.active
        return HighlightState(
            selected_id=self.selected_id,
            selected_related=selected_related,
            search_highlight_id=self.search.highlighted_id if search_active else None,
            search_matches=frozenset(self.search.matches) if search_active else frozenset(),
            drag_id=self.drag.dragged_id,
            drag_related=frozenset(self.drag.related_ids),
        )

    def frame(self) -> Frame:
        """Build the render frame for the current state."""
        state = self.simulation.state if self.simulation is not None else SimulationState(
            nodes={}, links=[], targets={}, width=self.width, height=self.height, alpha=0.0
        )
        return build_frame(
            self.view,
            state,
            self.highlight_state(),
            self.transform,
            layout_mode=self.layout.mode.value,
            show_labels=self.layout.show_labels,
            curved_links=self.layout.curved_links,
            color_mode=self.color_mode,
        )

    def statistics(self) -> dict[str, Any]:
        """Graph statistics plus build and view diagnostics."""
        stats = self.graph.get_statistics()
        result = self.build_result
        stats.update(
            {
                "degraded": self.view.degraded,
                "pruned": result.pruned if result is not None else False,
                "unpruned_nodes": result.unpruned_node_count if result is not None else 0,
                "skipped_edges": len(result.skipped_edges) if result is not None else 0,
                "view_nodes": len(self.view.nodes),
                "view_edges": len(self.view.edges),
                "components": len(get_connected_components(self.view)),
                "layout_mode": self.layout.mode.value,
                "settled": self.simulation.settled if self.simulation is not None else False,
            }
        )
        return stats

    def stop(self) -> None:
        """Detach the simulation and drop callbacks and queued work."""
        if self._stopped:
            return
        self._stopped = True
        if self.simulation is not None:
            self.simulation.stop()
        self.simulation = None
        with self._lock:
            self._pending = None
        self._selection_callbacks.clear()
        self.drag.cancel()
        logger.info("Explorer session stopped")
