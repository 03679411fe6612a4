"""Tests for the graph module."""

import pytest

from flowmap.graph import (
    ROOT_ID,
    DependencyEdge,
    Edge,
    FileNode,
    Graph,
    GraphBuilder,
    GraphIntegrityError,
    NodeIdAllocator,
    NodeKind,
    blast_radius,
    build_folder_overview,
    find_cyclic_nodes,
    find_nodes,
    get_connected_components,
    get_dependencies,
    get_dependents,
    get_related,
    package_key,
    prune_graph,
    renderable_view,
    select_code_files,
)
from flowmap.graph.colors import PALETTE, FolderPalette, churn_color, layer_color
from flowmap.graph.models import health_score, node_radius, truncate_label, visual_size_for

SCENARIO_A_FILES = ["src/a.ts", "src/b.ts", "lib/c.ts"]
SCENARIO_A_DEPS = [
    {"from": "src/a.ts", "to": "src/b.ts", "kind": "import"},
    {"from": "src/a.ts", "to": "react", "kind": "import"},
]


def _scenario_b_files() -> list[str]:
    return [f"pkg{i % 10}/file{i}.ts" for i in range(400)]


class TestGraphBuilder:
    """Tests for GraphBuilder."""

    def test_scenario_a(self):
        """Test internal and external edges for a small repository."""
        result = GraphBuilder().build(SCENARIO_A_FILES, SCENARIO_A_DEPS)
        graph = result.graph

        files = [node.id for node in graph.nodes_of_kind(NodeKind.FILE)]
        packages = [node.id for node in graph.nodes_of_kind(NodeKind.PACKAGE)]
        assert files == ["src_a_ts", "src_b_ts", "lib_c_ts"]
        assert packages == ["react"]

        deps = {edge.id: edge for edge in graph.dependency_edges()}
        assert set(deps) == {"src_a_ts->src_b_ts", "src_a_ts->react"}
        assert deps["src_a_ts->src_b_ts"].is_external is False
        assert deps["src_a_ts->react"].is_external is True

        assert not result.degraded
        assert not result.pruned
        assert prune_graph(graph, 300) is graph

    def test_scenario_b(self):
        """Test budget pruning of a large repository without edges."""
        files = _scenario_b_files()
        first = GraphBuilder(node_budget=300).build(files, [])
        second = GraphBuilder(node_budget=300).build(files, [])

        graph = first.graph
        assert len(graph.nodes) <= 300
        assert first.unpruned_node_count == 411
        assert first.pruned
        assert first.degraded

        assert ROOT_ID in graph
        folders = graph.nodes_of_kind(NodeKind.FOLDER)
        assert len(folders) == 10
        kinds = {node.kind for node in graph.nodes.values()}
        assert kinds == {"root", "folder", "file"}

        # Equal degree: files are kept in encounter order
        kept_files = [node.path for node in graph.nodes_of_kind(NodeKind.FILE)]
        assert kept_files == files[: len(kept_files)]

        assert list(graph.nodes) == list(second.graph.nodes)
        assert [edge.id for edge in graph.edges] == [edge.id for edge in second.graph.edges]

    def test_referential_integrity(self):
        """Test that every edge endpoint exists, before and after pruning."""
        files = _scenario_b_files()
        deps = [{"from": files[i], "to": files[i + 1]} for i in range(0, 399, 3)]
        deps.append({"from": files[0], "to": "lodash/fp"})

        graph = GraphBuilder(node_budget=120).build(files, deps).graph
        graph.validate_integrity()
        for edge in graph.edges:
            assert edge.source_id in graph.nodes
            assert edge.target_id in graph.nodes
            assert edge.weight >= 1

    def test_integrity_error(self):
        """Test that a dangling edge is reported."""
        graph = Graph(
            nodes={"a": FileNode(id="a", label="a.ts", path="a.ts")},
            edges=[Edge(id="a->b", source_id="a", target_id="b")],
        )
        with pytest.raises(GraphIntegrityError):
            graph.validate_integrity()

    def test_determinism(self):
        """Test identical inputs give identical ids and colors."""
        first = GraphBuilder().build(SCENARIO_A_FILES, SCENARIO_A_DEPS).graph
        second = GraphBuilder().build(SCENARIO_A_FILES, SCENARIO_A_DEPS).graph

        assert [node.model_dump() for node in first.nodes.values()] == [
            node.model_dump() for node in second.nodes.values()
        ]
        assert [edge.model_dump() for edge in first.edges] == [
            edge.model_dump() for edge in second.edges
        ]

    def test_folder_hierarchy(self):
        """Test folder nodes are created top-down and linked to their parent."""
        graph = GraphBuilder().build(["app/ui/button.tsx", "main.ts"], []).graph

        assert "folder_app" in graph
        assert "folder_app_ui" in graph
        hierarchy = {edge.id for edge in graph.hierarchy_edges()}
        assert "root_folder_app" in hierarchy
        assert "folder_app_folder_app_ui" in hierarchy
        assert "folder_app_ui_app_ui_button_tsx" in hierarchy
        assert "root_main_ts" in hierarchy

        button = graph.get_node("app_ui_button_tsx")
        assert button.folder_path == "app/ui"
        assert button.path.startswith(button.folder_path)
        assert button.top_folder == "app"
        assert graph.get_node("main_ts").top_folder == "root"

    def test_edge_aggregation(self):
        """Test repeated edges collapse into one weighted edge."""
        deps = [
            {"from": "src/a.ts", "to": "src/b.ts"},
            {"from": "src/a.ts", "to": "src/b.ts", "kind": "require"},
            {"from": "src/a.ts", "to": "src/b.ts"},
        ]
        graph = GraphBuilder().build(SCENARIO_A_FILES, deps).graph

        edges = graph.dependency_edges()
        assert len(edges) == 1
        assert edges[0].weight == 3

    def test_malformed_edges_skipped(self):
        """Test unresolvable edges are skipped without failing the build."""
        deps = [
            {"from": "src/a.ts", "to": "./missing"},
            {"from": "src/a.ts", "to": "src/missing.ts"},
            {"from": "src/unknown.ts", "to": "src/a.ts"},
            {"from": "src/a.ts", "to": "@scope"},
            {"from": "src/a.ts", "to": "src/b.ts"},
        ]
        result = GraphBuilder().build(SCENARIO_A_FILES, deps)

        assert len(result.skipped_edges) == 4
        assert [edge.id for edge in result.graph.dependency_edges()] == ["src_a_ts->src_b_ts"]
        result.graph.validate_integrity()

    def test_self_import_ignored(self):
        """Test a file importing itself adds no edge."""
        result = GraphBuilder().build(SCENARIO_A_FILES, [{"from": "src/a.ts", "to": "src/a.ts"}])
        assert result.graph.dependency_edges() == []
        assert result.degraded

    def test_scoped_packages(self):
        """Test scoped packages keep two segments and unscoped keep one."""
        deps = [
            DependencyEdge(from_path="src/a.ts", to="@angular/core/testing"),
            DependencyEdge(from_path="src/b.ts", to="@angular/core"),
            DependencyEdge(from_path="src/b.ts", to="react-dom/client"),
        ]
        graph = GraphBuilder().build(SCENARIO_A_FILES, deps).graph

        labels = sorted(node.label for node in graph.nodes_of_kind(NodeKind.PACKAGE))
        assert labels == ["@angular/core", "react-dom"]
        assert package_key("@scope/name/deep") == "@scope/name"
        assert package_key("lodash/fp") == "lodash"

    def test_empty_input(self):
        """Test an empty file list yields a root-only degraded graph."""
        result = GraphBuilder().build([], [])
        assert list(result.graph.nodes) == [ROOT_ID]
        assert result.degraded

    def test_pruning_keeps_high_degree_nodes(self):
        """Test the most connected files survive pruning."""
        files = _scenario_b_files()
        hub = files[-1]
        deps = [{"from": hub, "to": target} for target in files[:50]]
        graph = GraphBuilder(node_budget=100).build(files, deps).graph

        assert len(graph.nodes) == 100
        assert "pkg9_file399_ts" in graph
        graph.validate_integrity()

    def test_pruning_idempotent(self):
        """Test pruning an already pruned graph is a no-op."""
        graph = GraphBuilder(node_budget=150).build(_scenario_b_files(), []).graph
        assert prune_graph(graph, 150) is graph


class TestNodeAttributes:
    """Tests for labels, sizes, ids and colors."""

    def test_truncate_label(self):
        """Test long labels keep the first 8 and last 6 characters."""
        assert truncate_label("averyveryverylongfilename.ts") == "averyver...ame.ts"
        assert truncate_label("short.ts") == "short.ts"
        assert truncate_label("x" * 18) == "x" * 18

    def test_visual_size(self):
        """Test visual size clamping and the short-label floor."""
        assert visual_size_for("a.ts") == 38.0
        assert visual_size_for("ab") == 30.5
        assert visual_size_for("a") == 30.5
        assert visual_size_for("averyver...ame.ts") == 90.0

    def test_node_radius(self):
        """Test radius mapping stays within [8, 24]."""
        assert node_radius(38.0) == pytest.approx(9.8)
        assert node_radius(90.0) == pytest.approx(12.2)
        assert node_radius(0.0) == 8.0
        assert node_radius(10_000.0) == 24.0

    def test_id_collisions(self):
        """Test paths that sanitize to the same id get suffixes."""
        allocator = NodeIdAllocator()
        first = allocator.allocate("file:src/a.ts")
        second = allocator.allocate("file:src_a.ts")
        assert first == "src_a_ts"
        assert second == "src_a_ts_2"
        assert allocator.allocate("file:src/a.ts") == first
        assert allocator.allocate("package:root") == "root_2"

    def test_folder_palette(self):
        """Test colors are assigned on first encounter and wrap around."""
        palette = FolderPalette()
        colors = [palette.color_for(f"folder{i}") for i in range(9)]
        assert colors[0] == PALETTE[0]
        assert colors[8] == PALETTE[0]
        assert palette.color_for("folder1") == PALETTE[1]

    def test_builder_colors(self):
        """Test files share the color of their top-level folder."""
        graph = GraphBuilder().build(SCENARIO_A_FILES, []).graph
        assert graph.get_node("src_a_ts").color == PALETTE[0].fill
        assert graph.get_node("src_b_ts").color == PALETTE[0].fill
        assert graph.get_node("lib_c_ts").color == PALETTE[1].fill

    def test_alternate_color_modes(self):
        """Test the layer and churn heuristics."""
        assert layer_color("ui/button.tsx") == "#4d9fff"
        assert layer_color("src/api/routes.ts") == "#00ff9d"
        assert layer_color("main.ts") == "#8b5cf6"
        assert churn_color("main.ts") == "#ff5f5f"
        assert churn_color("a/b/c.ts") == "#ff9f43"
        assert churn_color("a/b/c/d/e.ts") == "#4d9fff"

    def test_statistics(self):
        """Test graph statistics and health score."""
        stats = GraphBuilder().build(SCENARIO_A_FILES, SCENARIO_A_DEPS).graph.get_statistics()
        assert stats["files"] == 3
        assert stats["packages"] == 1
        assert stats["folders"] == 2
        assert stats["dependencies"] == 2
        assert stats["external_dependencies"] == 1
        assert stats["health_score"] == pytest.approx(100 - 2 / 3 * 10)
        assert health_score(0, 5) == 0.0
        assert health_score(1, 50) == 0.0


class TestGraphQueries:
    """Tests for graph query functions."""

    def test_select_code_files(self):
        """Test only code files of file/blob entries are kept."""
        entries = [
            {"path": "src/a.ts", "type": "blob"},
            {"path": "src", "type": "tree"},
            {"path": "README.md", "type": "file"},
            "./lib/c.py",
        ]
        assert select_code_files(entries) == ["src/a.ts", "lib/c.py"]

    def test_renderable_view(self):
        """Test the view keeps file/package nodes and filters edges."""
        graph = GraphBuilder().build(SCENARIO_A_FILES, SCENARIO_A_DEPS).graph

        view = renderable_view(graph)
        assert view.node_ids == ["src_a_ts", "src_b_ts", "lib_c_ts", "react"]
        assert len(view.edges) == 2
        assert not view.degraded

        internal = renderable_view(graph, include_external=False)
        assert [edge.id for edge in internal.edges] == ["src_a_ts->src_b_ts"]

        heavy = renderable_view(graph, min_weight=2)
        assert heavy.edges == []

    def test_renderable_view_degraded(self):
        """Test a graph without dependencies renders its folder structure."""
        graph = GraphBuilder().build(SCENARIO_A_FILES, []).graph
        view = renderable_view(graph)
        assert view.degraded
        assert len(view.nodes) == len(graph.nodes)
        assert all(edge.is_hierarchy for edge in view.edges)

    def test_neighbors(self):
        """Test dependency and dependent lookups."""
        view = renderable_view(GraphBuilder().build(SCENARIO_A_FILES, SCENARIO_A_DEPS).graph)
        assert get_dependencies(view, "src_a_ts") == ["src_b_ts", "react"]
        assert get_dependents(view, "src_b_ts") == ["src_a_ts"]
        assert sorted(get_related(view, "src_a_ts")) == ["react", "src_b_ts"]
        assert get_related(view, "missing") == []

    def test_blast_radius_cap(self):
        """Test the blast radius is capped and excludes the origin."""
        files = [f"src/f{i}.ts" for i in range(60)]
        deps = [{"from": files[i], "to": files[i + 1]} for i in range(59)]
        view = renderable_view(GraphBuilder().build(files, deps).graph)

        affected = blast_radius(view, "src_f0_ts", cap=50)
        assert len(affected) == 50
        assert "src_f0_ts" not in affected
        assert affected[:3] == ["src_f1_ts", "src_f2_ts", "src_f3_ts"]

    def test_blast_radius_undirected(self):
        """Test the traversal follows edges in both directions."""
        view = renderable_view(GraphBuilder().build(SCENARIO_A_FILES, SCENARIO_A_DEPS).graph)
        assert sorted(blast_radius(view, "src_b_ts")) == ["react", "src_a_ts"]
        assert blast_radius(view, "lib_c_ts") == []
        assert blast_radius(view, "missing") == []

    def test_find_nodes_case_insensitive(self):
        """Test search matches label, path, folder and id ignoring case."""
        graph = GraphBuilder().build(SCENARIO_A_FILES, SCENARIO_A_DEPS).graph
        assert find_nodes(graph, "SRC/A") == ["src_a_ts"]
        assert find_nodes(graph, "A.TS") == ["src_a_ts"]
        assert find_nodes(graph, "React") == ["react"]
        assert "lib_c_ts" in find_nodes(graph, "LIB")
        assert find_nodes(graph, "   ") == []

    def test_find_cyclic_nodes(self):
        """Test nodes on import cycles are detected."""
        deps = [
            {"from": "src/a.ts", "to": "src/b.ts"},
            {"from": "src/b.ts", "to": "src/a.ts"},
            {"from": "src/a.ts", "to": "lib/c.ts"},
        ]
        view = renderable_view(GraphBuilder().build(SCENARIO_A_FILES, deps).graph)
        assert find_cyclic_nodes(view) == {"src_a_ts", "src_b_ts"}

    def test_connected_components(self):
        """Test components are returned largest first."""
        deps = [{"from": "src/a.ts", "to": "src/b.ts"}]
        view = renderable_view(GraphBuilder().build(SCENARIO_A_FILES, deps).graph)
        components = get_connected_components(view)
        assert [sorted(component) for component in components] == [
            ["src_a_ts", "src_b_ts"],
            ["lib_c_ts"],
        ]


class TestFolderOverview:
    """Tests for the folder-level overview graph."""

    def test_overview_aggregation(self):
        """Test dependencies are lifted to folders and aggregated."""
        deps = [
            {"from": "src/a.ts", "to": "lib/c.ts"},
            {"from": "src/b.ts", "to": "lib/c.ts"},
            {"from": "src/a.ts", "to": "src/b.ts"},
            {"from": "src/a.ts", "to": "react"},
        ]
        graph, sizes = build_folder_overview(SCENARIO_A_FILES, deps)

        assert set(graph.nodes) == {"folder_root", "folder_src", "folder_lib", "pkg_react"}
        edges = {edge.id: edge for edge in graph.edges}
        assert edges["folder_src|folder_lib"].weight == 2
        assert edges["folder_src|pkg_react"].is_external
        assert "folder_src|folder_src" not in edges
        assert "folder_root_folder_src" in edges

        assert sizes["folder_lib"] == 3
        assert sizes["folder_src"] == 2
        assert sizes["pkg_react"] == 1
        graph.validate_integrity()

    def test_overview_skips_unresolvable_targets(self):
        """Test relative and unresolved internal targets do not become packages."""
        deps = [
            {"from": "src/a.ts", "to": "../missing"},
            {"from": "src/a.ts", "to": "./x"},
            {"from": "src/a.ts", "to": "src/gone.ts"},
            {"from": "src/a.ts", "to": "react"},
        ]
        graph, sizes = build_folder_overview(["src/a.ts"], deps)

        assert set(graph.nodes) == {"folder_root", "folder_src", "pkg_react"}
        dependency_edges = [edge for edge in graph.edges if edge.kind == "depends"]
        assert [edge.id for edge in dependency_edges] == ["folder_src|pkg_react"]
        assert sizes["pkg_react"] == 1
        graph.validate_integrity()
