"""Unit tests for the layout engine."""

import math

import pytest

from vargraph.config import Settings
from vargraph.graph import GraphStore, initial_visible_set
from vargraph.layout import (
    AggregatedForceLayout,
    ForceSimulation,
    NeighborTreeLayout,
    PositionForce,
    TreeNode,
    fit_to_viewport,
    path_layout,
    stratify,
    style_nodes,
    tidy_tree,
)
from vargraph.models import LinkDirection, Tier, VariableNode, VisibleSet
from vargraph.query import QueryEngine
from vargraph.query.neighbors import NeighborLink, NeighborResult


def variable(node_id: str, radius: float = 10.0) -> VariableNode:
    return VariableNode(id=node_id, name=node_id, submodule_key="M", segment_key="M_x", radius=radius)


@pytest.fixture
def styled_store(scenario_store: GraphStore, test_settings: Settings) -> GraphStore:
    style_nodes(scenario_store, test_settings)
    return scenario_store


class TestForceSimulation:
    """Tests for the simulation core."""

    def test_position_force_converges(self) -> None:
        """Test a lone node is pulled onto its anchor."""
        sim = ForceSimulation(["a"], x=[100.0], y=[-50.0], alpha_target=0.5)
        sim.force("anchor", PositionForce([0.0], [0.0], 0.5))

        sim.tick(200)

        x, y = sim.positions()["a"]
        assert abs(x) < 1.0
        assert abs(y) < 1.0

    def test_pinned_node(self) -> None:
        """Test pinned nodes do not move."""
        sim = ForceSimulation(["a", "b"], x=[0.0, 5.0], y=[0.0, 0.0])
        sim.force("anchor", PositionForce([50.0, 50.0], [50.0, 50.0], 0.5))
        sim.pin("a", 0.0, 0.0)

        sim.tick(10)

        assert sim.positions()["a"] == (0.0, 0.0)
        assert sim.positions()["b"] != (5.0, 0.0)

    def test_empty(self) -> None:
        """Test ticking with no nodes."""
        sim = ForceSimulation([], x=[], y=[])
        sim.tick(5)

        assert sim.positions() == {}


class TestAggregatedForceLayout:
    """Tests for the default view layout."""

    def test_deterministic(self, styled_store: GraphStore, test_settings: Settings) -> None:
        """Test identical input gives identical positions."""
        layout = AggregatedForceLayout(styled_store, test_settings)

        first = layout.run(initial_visible_set(styled_store, Tier.VARIABLE))
        second = AggregatedForceLayout(styled_store, test_settings).run(
            initial_visible_set(styled_store, Tier.VARIABLE)
        )

        assert first == second

    def test_all_nodes_placed(self, styled_store: GraphStore, test_settings: Settings) -> None:
        """Test every visible node gets a finite position."""
        visible = initial_visible_set(styled_store, Tier.SEGMENT)

        positions = AggregatedForceLayout(styled_store, test_settings).run(visible)

        assert set(positions) == set(visible.nodes)
        assert all(math.isfinite(x) and math.isfinite(y) for x, y in positions.values())

    def test_empty_visible_set(self, styled_store: GraphStore, test_settings: Settings) -> None:
        """Test an empty set has no positions."""
        layout = AggregatedForceLayout(styled_store, test_settings)

        assert layout.run(VisibleSet()) == {}
        assert layout.reheat(VisibleSet(), {}) == {}

    def test_homes_per_submodule(self, styled_store: GraphStore, test_settings: Settings) -> None:
        """Test each submodule gets a home inside the canvas."""
        layout = AggregatedForceLayout(styled_store, test_settings)

        assert set(layout.homes) == {"submodule-A", "submodule-B", "submodule-C"}
        for x, y in layout.homes.values():
            assert abs(x) <= test_settings.layout_width / 2
            assert abs(y) <= test_settings.layout_height / 2

    def test_zero_ticks(self, styled_store: GraphStore, test_settings: Settings) -> None:
        """Test an explicit zero tick count is kept, not replaced by the default."""
        layout = AggregatedForceLayout(styled_store, test_settings, ticks=0)
        visible = initial_visible_set(styled_store, Tier.SUBMODULE)

        assert layout.ticks == 0
        assert AggregatedForceLayout(styled_store, test_settings).ticks == test_settings.simulation_ticks
        assert set(layout.run(visible)) == set(visible.nodes)

    def test_reheat_keeps_ids(self, styled_store: GraphStore, test_settings: Settings) -> None:
        """Test reheating seeds new nodes and drops stale ones."""
        layout = AggregatedForceLayout(styled_store, test_settings)
        collapsed = initial_visible_set(styled_store, Tier.SUBMODULE)
        previous = layout.run(collapsed)

        segments = initial_visible_set(styled_store, Tier.SEGMENT)
        positions = layout.reheat(segments, previous)

        assert set(positions) == set(segments.nodes)

    def test_visible_set_untouched(self, styled_store: GraphStore, test_settings: Settings) -> None:
        """Test layout does not change topology."""
        visible = initial_visible_set(styled_store, Tier.VARIABLE)
        before = visible.link_signature()

        AggregatedForceLayout(styled_store, test_settings).run(visible)

        assert visible.link_signature() == before


class TestTidyTree:
    """Tests for tidy tree placement."""

    def test_stratify_skips_unknown_parent(self) -> None:
        """Test pairs are added only under nodes already in the tree."""
        root = stratify("r", [("r", "a"), ("x", "b"), ("a", "c"), ("r", "c")])

        assert [node.id for node in root.pre_order()] == ["r", "a", "c"]

    def test_two_children(self) -> None:
        """Test siblings are centred under their parent."""
        root = tidy_tree(stratify("r", [("r", "a"), ("r", "b")]), dx=10.0, dy=100.0)
        a, b = root.children

        assert (root.x, root.y) == (0.0, 0.0)
        assert (a.x, a.y) == (-5.0, 100.0)
        assert (b.x, b.y) == (5.0, 100.0)

    def test_subtrees_do_not_overlap(self) -> None:
        """Test nodes at the same depth keep at least one unit apart."""
        root = stratify(
            "r",
            [("r", "a"), ("r", "b"), ("a", "a1"), ("a", "a2"), ("a", "a3"), ("b", "b1"), ("b", "b2")],
        )
        tidy_tree(root, dx=1.0, dy=1.0)

        by_depth: dict[int, list[float]] = {}
        for node in root.pre_order():
            by_depth.setdefault(node.depth, []).append(node.x)
        for xs in by_depth.values():
            xs.sort()
            assert all(b - a >= 1.0 - 1e-9 for a, b in zip(xs, xs[1:]))

    def test_single_node(self) -> None:
        """Test a lone root."""
        root = tidy_tree(TreeNode(id="r"), dx=10.0, dy=10.0)

        assert (root.x, root.y) == (0.0, 0.0)


class TestNeighborTreeLayout:
    """Tests for the nearest neighbor view."""

    def test_inbound_left_outbound_right(self, neighbor_store: GraphStore, test_settings: Settings) -> None:
        """Test the origin is centred with inbound and outbound on either side."""
        visible = initial_visible_set(neighbor_store, Tier.VARIABLE)
        result = QueryEngine(visible).nearest_neighbors("a", max_depth=3)

        positions = NeighborTreeLayout(test_settings).run(result, visible.nodes)

        assert positions["a"] == (0.0, 0.0)
        assert positions["e"][0] < 0
        assert 0 < positions["b"][0] < positions["c"][0] < positions["d"][0]
        # Four depth columns share the layout width
        assert positions["b"][0] == pytest.approx(test_settings.layout_width / 4)

    def test_columns_stacked(self, test_settings: Settings) -> None:
        """Test a column that fits the height is stacked edge to edge."""
        nodes = {node_id: variable(node_id) for node_id in ["o", "x", "y", "z"]}
        result = NeighborResult(
            origin="o",
            max_depth=1,
            links=[NeighborLink("o", t, LinkDirection.OUTBOUND, 1, t) for t in ["x", "y", "z"]],
        )

        placed = NeighborTreeLayout(test_settings).run(result, nodes)

        assert [placed[t][1] for t in ["x", "y", "z"]] == pytest.approx([-23.0, -1.0, 21.0])
        assert all(placed[t][0] == pytest.approx(test_settings.layout_width) for t in ["x", "y", "z"])

    def test_tall_column_relaxed(self) -> None:
        """Test a column taller than the canvas is spread without overlaps."""
        settings = Settings(layout_height=100.0, neighbor_relax_ticks=60)
        targets = [f"t{i}" for i in range(8)]
        nodes = {node_id: variable(node_id) for node_id in ["o", *targets]}
        result = NeighborResult(
            origin="o",
            max_depth=1,
            links=[NeighborLink("o", t, LinkDirection.OUTBOUND, 1, t) for t in targets],
        )

        placed = NeighborTreeLayout(settings).run(result, nodes)

        assert set(placed) == {"o", *targets}
        assert all(math.isfinite(x) and math.isfinite(y) for x, y in placed.values())


class TestPathLayout:
    """Tests for the linear path view."""

    def test_line(self, test_settings: Settings) -> None:
        """Test nodes are spaced along y = 0."""
        nodes = {node_id: variable(node_id) for node_id in "ABCD"}

        positions = path_layout(list("ABCD"), nodes, test_settings)

        assert [positions[n] for n in "ABCD"] == [(-200.0, 0.0), (-110.0, 0.0), (-20.0, 0.0), (70.0, 0.0)]

    def test_empty(self, test_settings: Settings) -> None:
        """Test an empty path."""
        assert path_layout([], {}, test_settings) == {}


class TestViewport:
    """Tests for fit-to-screen."""

    def test_fit(self, test_settings: Settings) -> None:
        """Test the content is centred and scaled to the limiting side."""
        transform = fit_to_viewport({"a": (0.0, 0.0), "b": (100.0, 0.0)}, 1000.0, 500.0, test_settings)

        assert transform.translate_x == -50.0
        assert transform.translate_y == 0.0
        assert transform.scale == pytest.approx(0.95 / 0.12)
        assert transform.apply(100.0, 0.0) == pytest.approx((50.0 * transform.scale, 0.0))

    def test_empty(self, test_settings: Settings) -> None:
        """Test no positions gives the identity transform."""
        transform = fit_to_viewport({}, 1000.0, 500.0, test_settings)

        assert transform.scale == 1.0
        assert transform.to_dict() == {"translate_x": 0.0, "translate_y": 0.0, "scale": 1.0}
