"""Query engine - read-only queries over one visible set."""

import logging

import networkx as nx

from vargraph.models import VisibleSet
from vargraph.query.adjacency import build_adjacency
from vargraph.query.neighbors import NearestNeighbors, NeighborResult, SearchDirection
from vargraph.query.shortest_path import NoPathFound, ShortestPathResult, find_shortest_path

logger = logging.getLogger(__name__)


class QueryEngine:
    """
    Neighbor and shortest path queries over a visible set.

    The adjacency graph is built once per visible set; queries never touch
    the visible set itself.
    """

    def __init__(self, visible: VisibleSet, neighbor_depth: int = 1) -> None:
        self.visible = visible
        self.graph: nx.DiGraph = build_adjacency(visible)
        self.neighbors = NearestNeighbors(self.graph, max_depth=neighbor_depth)

    def nearest_neighbors(
        self,
        origin: str,
        max_depth: int | None = None,
        direction: SearchDirection = "both",
    ) -> NeighborResult:
        return self.neighbors.search(origin, max_depth=max_depth, direction=direction)

    def shortest_path(self, start: str, end: str) -> ShortestPathResult | NoPathFound:
        return find_shortest_path(self.graph, self.visible, start, end)
