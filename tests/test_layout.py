"""Tests for layout modes, force presets and target strategies."""

import math

import pytest

from flowmap.graph import GraphBuilder, renderable_view
from flowmap.layout import (
    LayoutConfig,
    LayoutMode,
    compute_layout,
    folder_centers,
    forces_for,
    parse_layout_mode,
)

WIDTH = 800.0
HEIGHT = 600.0


def _view(files, deps=()):
    return renderable_view(GraphBuilder().build(files, list(deps)).graph)


def _layout(view, mode, **options):
    return compute_layout(view, LayoutConfig(mode=mode, **options), WIDTH, HEIGHT)


class TestLayoutModes:
    """Tests for layout mode parsing and force presets."""

    def test_parse_aliases(self):
        """Test the legacy force alias and case-insensitive names."""
        assert parse_layout_mode("force") == LayoutMode.HUB_SPINE
        assert parse_layout_mode("Hub-Spine") == LayoutMode.HUB_SPINE
        assert parse_layout_mode("METRO") == LayoutMode.METRO
        assert parse_layout_mode(LayoutMode.GRID) == LayoutMode.GRID

    def test_parse_invalid(self):
        """Test unknown mode names are rejected."""
        with pytest.raises(ValueError):
            parse_layout_mode("spiral")
        with pytest.raises(ValueError):
            LayoutConfig(mode="spiral")

    def test_force_presets(self):
        """Test per-mode force parameters."""
        config = LayoutConfig(mode="hub-spine", spacing_factor=100, link_distance=200)
        forces = forces_for(config)
        assert forces.link_distance == 200
        assert forces.link_strength == 0.3
        assert forces.charge_strength == -250
        assert forces.charge_distance_max == 1000

        radial = forces_for(config.model_copy(update={"mode": LayoutMode.RADIAL}))
        assert radial.link_distance == 100
        assert radial.charge_strength == -150

        grid = forces_for(config.model_copy(update={"mode": LayoutMode.GRID}))
        assert grid.link_distance == 300
        assert (grid.x_strength, grid.y_strength) == (1.0, 1.0)

        hierarchical = forces_for(config.model_copy(update={"mode": LayoutMode.HIERARCHICAL}))
        assert (hierarchical.x_strength, hierarchical.y_strength) == (0.9, 0.3)

        metro = forces_for(config.model_copy(update={"mode": LayoutMode.METRO}))
        assert metro.link_strength == 0.02
        assert (metro.x_strength, metro.y_strength) == (0.3, 0.3)

    def test_link_strength_range(self):
        """Test every mode keeps link and target strengths in range."""
        for mode in LayoutMode:
            forces = forces_for(LayoutConfig(mode=mode))
            assert 0.02 <= forces.link_strength <= 0.3
            assert 0.3 <= forces.x_strength <= 1.0
            assert 0.3 <= forces.y_strength <= 1.0


class TestLayoutStrategies:
    """Tests for target coordinate assignment."""

    def test_every_mode_targets_every_node(self):
        """Test each mode gives every node a finite target."""
        files = [f"src/f{i}.ts" for i in range(12)] + ["lib/x.ts", "main.ts"]
        deps = [{"from": files[0], "to": files[i]} for i in range(1, 6)]
        deps.append({"from": "lib/x.ts", "to": "react"})
        view = _view(files, deps)

        for mode in LayoutMode:
            plan = _layout(view, mode)
            assert set(plan.targets) == set(view.node_ids)
            for x, y in plan.targets.values():
                assert math.isfinite(x) and math.isfinite(y)

    def test_folder_centers(self):
        """Test folder cells use at least two columns."""
        view = _view(["src/a.ts", "lib/c.ts", "main.ts"], [{"from": "src/a.ts", "to": "lib/c.ts"}])
        centers = folder_centers(view, WIDTH, HEIGHT)

        cell_w = WIDTH / 3
        cell_h = HEIGHT / 3
        assert centers["src"] == pytest.approx((cell_w, cell_h))
        assert centers["lib"] == pytest.approx((2 * cell_w, cell_h))
        assert centers["root"] == pytest.approx((cell_w, 2 * cell_h))

    def test_hub_spine(self):
        """Test hubs sit on the spine and dependents on rings."""
        files = [f"src/f{i:02d}.ts" for i in range(30)]
        deps = [{"from": files[0], "to": files[i]} for i in range(1, 21)]
        view = _view(files, deps)
        plan = _layout(view, LayoutMode.HUB_SPINE)

        assert len(plan.hubs) == 9
        assert plan.hubs[0] == "src_f00_ts"
        spacing = WIDTH / 10
        for i, hub_id in enumerate(plan.hubs):
            assert plan.targets[hub_id] == pytest.approx(((i + 1) * spacing, HEIGHT / 2))

        hub_x, hub_y = plan.targets["src_f00_ts"]
        # f09 is the first non-hub dependent: ring 0, slot 0
        assert plan.targets["src_f09_ts"] == pytest.approx((hub_x + 80, hub_y))
        # f17 is the ninth: ring 1, slot 0
        assert plan.targets["src_f17_ts"] == pytest.approx((hub_x + 112, hub_y))
        # f11 is the third: ring 0, slot 2 (a quarter turn)
        assert plan.targets["src_f11_ts"] == pytest.approx((hub_x, hub_y + 80))

        # Unrelated nodes fall back to their folder cell
        assert plan.targets["src_f25_ts"] == pytest.approx(plan.folder_centers["src"])

    def test_radial(self):
        """Test nodes are spread evenly on one circle."""
        view = _view([f"src/f{i}.ts" for i in range(4)], [{"from": "src/f0.ts", "to": "src/f1.ts"}])
        plan = _layout(view, LayoutMode.RADIAL)

        radius = 0.35 * HEIGHT
        assert plan.targets["src_f0_ts"] == pytest.approx((400 + radius, 300))
        assert plan.targets["src_f1_ts"] == pytest.approx((400, 300 + radius))
        for x, y in plan.targets.values():
            assert math.hypot(x - 400, y - 300) == pytest.approx(radius)

    def test_hierarchical(self):
        """Test folders become lexicographically sorted columns."""
        view = _view(["src/a.ts", "src/b.ts", "lib/c.ts"], [{"from": "src/a.ts", "to": "lib/c.ts"}])
        plan = _layout(view, LayoutMode.HIERARCHICAL)

        col_w = WIDTH / 3
        assert plan.targets["lib_c_ts"] == pytest.approx((col_w, 300))
        assert plan.targets["src_a_ts"] == pytest.approx((2 * col_w, 200))
        assert plan.targets["src_b_ts"] == pytest.approx((2 * col_w, 400))

    def test_grid(self):
        """Test nodes fill a ceil(sqrt(n))-column grid in order."""
        files = [f"src/f{i}.ts" for i in range(5)]
        view = _view(files, [{"from": "src/f0.ts", "to": "src/f1.ts"}])
        plan = _layout(view, LayoutMode.GRID)

        assert plan.targets["src_f0_ts"] == pytest.approx((200, 200))
        assert plan.targets["src_f2_ts"] == pytest.approx((600, 200))
        assert plan.targets["src_f4_ts"] == pytest.approx((400, 400))

    def test_metro_lines(self):
        """Test one BFS line per root, stacked in the viewport."""
        files = ["src/a.ts", "src/b.ts", "src/c.ts", "src/d.ts"]
        deps = [{"from": "src/a.ts", "to": "src/b.ts"}, {"from": "src/b.ts", "to": "src/c.ts"}]
        view = _view(files, deps)
        plan = _layout(view, LayoutMode.METRO, spacing_factor=100)

        assert plan.targets["src_a_ts"] == pytest.approx((80, 80))
        assert plan.targets["src_b_ts"] == pytest.approx((160, 80))
        assert plan.targets["src_c_ts"] == pytest.approx((240, 80))
        assert plan.targets["src_d_ts"] == pytest.approx((80, 200))
        assert plan.metro_lines == {"src_a_ts": 0, "src_b_ts": 0, "src_c_ts": 0, "src_d_ts": 1}

    def test_metro_first_visit_wins(self):
        """Test a node reachable from two roots stays on the first line."""
        files = ["src/a.ts", "src/b.ts", "src/shared.ts", "src/z.ts"]
        deps = [
            {"from": "src/a.ts", "to": "src/shared.ts"},
            {"from": "src/b.ts", "to": "src/shared.ts"},
            {"from": "src/shared.ts", "to": "src/z.ts"},
        ]
        plan = _layout(_view(files, deps), LayoutMode.METRO)

        assert plan.metro_lines["src_shared_ts"] == 0
        assert plan.metro_lines["src_z_ts"] == 0
        assert plan.metro_lines["src_b_ts"] == 1
        assert len(plan.metro_lines) == 4
        for x, y in plan.targets.values():
            assert math.isfinite(x) and math.isfinite(y)

    def test_metro_cycle_without_roots(self):
        """Test a pure cycle is seeded from the lowest id and flagged."""
        files = ["src/a.ts", "src/b.ts", "src/c.ts"]
        deps = [
            {"from": "src/a.ts", "to": "src/b.ts"},
            {"from": "src/b.ts", "to": "src/c.ts"},
            {"from": "src/c.ts", "to": "src/a.ts"},
        ]
        plan = _layout(_view(files, deps), LayoutMode.METRO, spacing_factor=100)

        assert plan.cyclic == {"src_a_ts", "src_b_ts", "src_c_ts"}
        assert plan.targets["src_a_ts"] == pytest.approx((80, 80))
        assert plan.targets["src_c_ts"] == pytest.approx((240, 80))
        assert set(plan.metro_lines.values()) == {0}

    def test_metro_overflow_line(self):
        """Test nodes unreachable from any root go on the overflow line."""
        files = ["src/root.ts", "src/a.ts", "src/b.ts"]
        deps = [{"from": "src/a.ts", "to": "src/b.ts"}, {"from": "src/b.ts", "to": "src/a.ts"}]
        plan = _layout(_view(files, deps), LayoutMode.METRO)

        assert plan.metro_lines["src_root_ts"] == 0
        assert plan.metro_lines["src_a_ts"] == 1
        assert plan.targets["src_a_ts"] == pytest.approx((80, HEIGHT - 80))
        assert plan.targets["src_b_ts"] == pytest.approx((130, HEIGHT - 80))

    def test_empty_view(self):
        """Test an empty view produces an empty plan."""
        view = renderable_view(GraphBuilder().build([], []).graph)
        plan = _layout(view, LayoutMode.METRO)
        assert set(plan.targets) == set(view.node_ids)
