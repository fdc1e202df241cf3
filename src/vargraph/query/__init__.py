"""Query engine: adjacency graph, nearest neighbors and shortest path."""

from vargraph.query.adjacency import build_adjacency
from vargraph.query.engine import QueryEngine
from vargraph.query.neighbors import (
    MAX_NEIGHBOR_DEPTH,
    NearestNeighbors,
    NeighborLink,
    NeighborResult,
)
from vargraph.query.shortest_path import (
    NO_PATH_MESSAGE,
    NoPathFound,
    PathLink,
    ShortestPathResult,
    find_shortest_path,
)

__all__ = [
    "build_adjacency",
    "QueryEngine",
    "MAX_NEIGHBOR_DEPTH",
    "NearestNeighbors",
    "NeighborLink",
    "NeighborResult",
    "NO_PATH_MESSAGE",
    "NoPathFound",
    "PathLink",
    "ShortestPathResult",
    "find_shortest_path",
]
