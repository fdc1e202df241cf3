"""Unit tests for nearest neighbor search."""

import pytest

from vargraph.exceptions import InvalidOperation
from vargraph.graph import GraphStore, initial_visible_set
from vargraph.models import LinkDirection, Tier
from vargraph.query import NearestNeighbors, QueryEngine, build_adjacency


@pytest.fixture
def query(neighbor_store: GraphStore) -> QueryEngine:
    return QueryEngine(initial_visible_set(neighbor_store, Tier.VARIABLE))


class TestAdjacency:
    """Tests for the adjacency graph."""

    def test_nodes_and_edges(self, neighbor_store: GraphStore) -> None:
        """Test every visible node and link is present."""
        graph = build_adjacency(initial_visible_set(neighbor_store, Tier.VARIABLE))

        assert list(graph.nodes) == ["a", "b", "c", "d", "e"]
        assert graph.number_of_edges() == 4
        assert graph.has_edge("e", "a")

    def test_both_links_go_both_ways(self, scenario_store: GraphStore) -> None:
        """Test a merged link adds an edge in each direction."""
        graph = build_adjacency(initial_visible_set(scenario_store, Tier.SUBMODULE))

        assert graph.has_edge("submodule-A", "submodule-B")
        assert graph.has_edge("submodule-B", "submodule-A")
        assert not graph.has_edge("submodule-C", "submodule-B")


class TestNearestNeighbors:
    """Tests for bounded BFS."""

    def test_depth_one(self, query: QueryEngine) -> None:
        """Test direct neighbors in both directions."""
        result = query.nearest_neighbors("a")

        assert result.nodes == ["a", "b", "e"]
        assert [(l.source, l.target, l.direction) for l in result.links] == [
            ("a", "b", LinkDirection.OUTBOUND),
            ("e", "a", LinkDirection.INBOUND),
        ]
        assert all(link.depth == 1 for link in result.links)

    def test_depth_three(self, query: QueryEngine) -> None:
        """Test deeper levels follow only their own direction."""
        result = query.nearest_neighbors("a", max_depth=3)

        assert result.nodes == ["a", "b", "e", "c", "d"]
        assert result.depth_reached == 3
        assert [l.node for l in result.links_for(LinkDirection.OUTBOUND)] == ["b", "c", "d"]
        assert [l.node for l in result.links_for(LinkDirection.INBOUND)] == ["e"]
        assert result.max_depth_for(LinkDirection.INBOUND) == 1

    def test_outbound_only(self, query: QueryEngine) -> None:
        """Test restricting the search to outbound links."""
        result = query.nearest_neighbors("b", max_depth=2, direction="outbound")

        assert result.nodes == ["b", "c", "d"]
        assert all(link.direction == LinkDirection.OUTBOUND for link in result.links)

    def test_inbound_only(self, query: QueryEngine) -> None:
        """Test restricting the search to inbound links."""
        result = query.nearest_neighbors("c", max_depth=3, direction="inbound")

        assert result.nodes == ["c", "b", "a", "e"]
        assert [l.depth for l in result.links] == [1, 2, 3]
        assert result.links[0].source == "b"
        assert result.links[0].target == "c"

    def test_stops_on_empty_level(self, store_factory) -> None:
        """Test a cycle back to the origin ends the search early."""
        store = store_factory(["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "a")])
        graph = build_adjacency(initial_visible_set(store, Tier.VARIABLE))

        result = NearestNeighbors(graph).search("a", max_depth=3, direction="outbound")

        assert result.nodes == ["a", "b", "c"]
        assert result.depth_reached == 2

    def test_isolated_origin(self, path_store: GraphStore) -> None:
        """Test a node without links has no neighbors."""
        result = QueryEngine(initial_visible_set(path_store, Tier.VARIABLE)).nearest_neighbors("E", max_depth=3)

        assert result.nodes == ["E"]
        assert result.links == []
        assert result.depth_reached == 0

    def test_aggregate_view(self, scenario_store: GraphStore) -> None:
        """Test search over a collapsed view with a merged link."""
        query = QueryEngine(initial_visible_set(scenario_store, Tier.SUBMODULE))

        result = query.nearest_neighbors("submodule-B")

        assert result.nodes == ["submodule-B", "submodule-A", "submodule-C"]

    def test_default_depth_from_engine(self, neighbor_store: GraphStore) -> None:
        """Test the configured depth is used when none is given."""
        query = QueryEngine(initial_visible_set(neighbor_store, Tier.VARIABLE), neighbor_depth=2)

        assert query.nearest_neighbors("a").max_depth == 2

    @pytest.mark.parametrize("depth", [0, 4])
    def test_depth_out_of_range(self, query: QueryEngine, depth: int) -> None:
        """Test depth is limited to 1..3."""
        with pytest.raises(ValueError):
            query.nearest_neighbors("a", max_depth=depth)

    def test_unknown_direction(self, query: QueryEngine) -> None:
        """Test an unknown direction is rejected instead of returning nothing."""
        with pytest.raises(ValueError):
            query.nearest_neighbors("a", direction="sideways")

    def test_invisible_origin(self, query: QueryEngine) -> None:
        """Test searching from a node that is not shown."""
        with pytest.raises(InvalidOperation):
            query.nearest_neighbors("ghost")

    def test_to_rows(self, query: QueryEngine) -> None:
        """Test tabular export."""
        rows = query.nearest_neighbors("a").to_rows()

        assert rows[0] == {"source": "a", "target": "b", "direction": "outbound", "depth": 1}
        assert rows[1]["direction"] == "inbound"

    def test_visible_set_untouched(self, neighbor_store: GraphStore) -> None:
        """Test queries do not change the visible set."""
        visible = initial_visible_set(neighbor_store, Tier.VARIABLE)
        before = visible.link_signature()

        QueryEngine(visible).nearest_neighbors("a", max_depth=3)

        assert visible.link_signature() == before
        assert len(visible) == 5


class TestNeighborGrowth:
    """Tests for result growth with depth."""

    def test_monotonic_in_depth(self, scenario_store: GraphStore) -> None:
        """Test a deeper search never loses nodes found by a shallower one."""
        query = QueryEngine(initial_visible_set(scenario_store, Tier.VARIABLE))

        found = [set(query.nearest_neighbors("B_s1_v1", max_depth=d).nodes) for d in (1, 2, 3)]

        assert found[0] <= found[1] <= found[2]
        assert found[0] == {"B_s1_v1", "A_s1_v2"}
